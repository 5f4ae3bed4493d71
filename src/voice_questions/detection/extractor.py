import re
from typing import List, Sequence, Tuple

QUESTION_STARTERS: Tuple[str, ...] = (
    "how", "what", "why", "when", "where", "which", "who",
    "can", "could", "would", "should",
    "is", "are", "am", "was", "were",
    "do", "does", "did", "has", "have", "had", "will", "shall",
    "tell me", "explain", "describe", "show me", "help me understand",
    "i need", "help with", "walk me through", "i want to know",
)

CONVERSATIONAL_PHRASES: Tuple[str, ...] = (
    "tell me", "i need", "can you", "could you", "how do", "how does",
    "what is", "what are", "explain", "help me", "walk me through",
    "i want to know", "i was wondering", "i'm wondering",
)

MIN_SENTENCE_CHARS = 3
FALLBACK_MAX_CHARS = 150

_SENTENCE_SPLIT = re.compile(r"[.!?]")

def _phrase_pattern(phrase: str) -> re.Pattern:
    # Standalone word or phrase; lookarounds instead of \b so phrases ending
    # in punctuation still anchor correctly.
    return re.compile(r"(?<!\w)" + re.escape(phrase) + r"(?!\w)", re.IGNORECASE)

class QuestionExtractor:
    def __init__(self,
                 starters: Sequence[str] = QUESTION_STARTERS,
                 conversational: Sequence[str] = CONVERSATIONAL_PHRASES):
        self.starter_patterns = tuple(_phrase_pattern(s) for s in starters)
        self.conversational = tuple(p.lower() for p in conversational)

    def split_sentences(self, utterance: str) -> List[str]:
        pieces = (p.strip() for p in _SENTENCE_SPLIT.split(utterance))
        return [p for p in pieces if len(p) >= MIN_SENTENCE_CHARS]

    def has_starter(self, sentence: str) -> bool:
        return any(p.search(sentence) for p in self.starter_patterns)

    def extract(self, utterance: str) -> List[str]:
        """
        Candidate questions in order of appearance.
        Sentences that were terminated by '?' in the utterance are taken as-is,
        the rest must start with or contain a question/conversational starter.
        Short utterances with no qualifying sentence become a single candidate.
        """
        candidates: List[str] = []
        for sentence in self.split_sentences(utterance):
            if f"{sentence}?" in utterance:
                candidates.append(f"{sentence}?")
            elif self.has_starter(sentence):
                candidates.append(sentence)

        if not candidates:
            whole = utterance.strip()
            if whole and len(whole) < FALLBACK_MAX_CHARS:
                candidates.append(whole)
        return candidates

    def looks_conversational(self, text: str) -> bool:
        lowered = text.lower()
        return any(phrase in lowered for phrase in self.conversational)
