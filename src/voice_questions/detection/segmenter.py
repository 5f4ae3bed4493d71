import logging
import time
from typing import List, Optional

from voice_questions.detection.classifier import DomainClassifier
from voice_questions.detection.extractor import QuestionExtractor
from voice_questions.detection.similarity import is_similar
from voice_questions.models import DetectedQuestion, ProcessedSegment
from voice_questions.question_store import QuestionRegistry

log = logging.getLogger(__name__)

MIN_CANDIDATE_CHARS = 5

class TranscriptSegmenter:
    def __init__(self, registry: QuestionRegistry,
                 extractor: Optional[QuestionExtractor] = None,
                 classifier: Optional[DomainClassifier] = None):
        self.registry = registry
        self.extractor = extractor or QuestionExtractor()
        self.classifier = classifier or DomainClassifier()
        self.processed: List[ProcessedSegment] = []

    def _is_redelivery(self, text: str) -> bool:
        # Continuous recognizers re-emit finalized spans; skip anything close
        # to a segment we already analysed.
        return any(is_similar(text, seg.text) for seg in self.processed)

    def candidates_for(self, text: str) -> List[str]:
        candidates = [c for c in self.extractor.extract(text) if len(c) > MIN_CANDIDATE_CHARS]
        if not candidates and len(text) > MIN_CANDIDATE_CHARS and self.extractor.looks_conversational(text):
            candidates = [text]
        return candidates

    def on_final_fragment(self, text: str) -> List[DetectedQuestion]:
        """
        Input: a finalized transcript delta.
        Output: questions accepted into the registry because of it.
        """
        if self._is_redelivery(text):
            log.debug("[SEGMENT] Suppressed re-delivered segment: %r", text)
            return []

        self.processed.append(ProcessedSegment(text=text, seen_at=time.time()))
        log.debug("[SEGMENT] New segment: %r", text)

        accepted: List[DetectedQuestion] = []
        for candidate in self.candidates_for(text):
            classification = self.classifier.classify(candidate)
            if not classification.is_technical:
                log.debug("[SEGMENT] Not technical (%.2f): %r", classification.confidence, candidate)
                continue
            question = self.registry.insert(candidate, classification)
            if question:
                accepted.append(question)
        return accepted

    def reset(self):
        self.processed = []
