from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

class DomainTag(str, Enum):
    PROGRAMMING = "programming"
    DEVOPS = "devops"
    DATABASE = "database"
    NETWORKING = "networking"
    SECURITY = "security"
    WEB_DEVELOPMENT = "web-development"
    MOBILE_DEVELOPMENT = "mobile-development"
    DATA_SCIENCE = "data-science"
    ARTIFICIAL_INTELLIGENCE = "artificial-intelligence"
    GENERAL = "general-technical"

@dataclass
class TranscriptFragment:
    text: str
    is_final: bool

@dataclass
class ProcessedSegment:
    text: str
    seen_at: float       # time.time() when the segment was accepted

@dataclass
class Classification:
    is_technical: bool
    confidence: float
    category: Optional[DomainTag]   # only set when is_technical
    matched_keywords: List[str] = field(default_factory=list)

@dataclass(frozen=True)
class DetectedQuestion:
    id: str
    text: str
    timestamp: str       # display string, e.g. "14:03:27"
    category: Optional[DomainTag]
    confidence: float

@dataclass
class AnswerResult:
    answer: str
    response_time_ms: int
    source: str          # "openai" | "openai-stream"

@dataclass(frozen=True)
class AnswerSession:
    generation: int
    question: DetectedQuestion
    partial_answer: str = ""
    is_streaming: bool = True
    elapsed_ms: int = 0
    error: Optional[str] = None

# --- Capture engine events ---

@dataclass
class RecognitionAlternative:
    transcript: str
    confidence: float = 1.0

@dataclass
class RecognitionResult:
    is_final: bool
    alternatives: List[RecognitionAlternative]

@dataclass
class RecognitionEvent:
    result_index: int
    results: List[RecognitionResult]
