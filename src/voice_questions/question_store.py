import logging
import threading
import time
from datetime import datetime
from typing import List, Optional

from voice_questions.detection.similarity import is_similar
from voice_questions.models import Classification, DetectedQuestion

log = logging.getLogger(__name__)

class QuestionRegistry:
    """
    Ordered, de-duplicated collection of detected questions.

    No two live entries are more than 80% similar. The newest accepted entry
    becomes the selection; ``selected_index`` is -1 when nothing is selected.
    """

    def __init__(self):
        self.questions: List[DetectedQuestion] = []
        self.selected_index: int = -1
        self.lock = threading.Lock()
        self._last_id = 0

    def _next_id(self) -> str:
        # Time based, bumped so two inserts within the same tick stay distinct
        self._last_id = max(time.time_ns(), self._last_id + 1)
        return str(self._last_id)

    def insert(self, text: str, classification: Classification) -> Optional[DetectedQuestion]:
        if not classification.is_technical:
            return None
        text = text.strip()
        with self.lock:
            for existing in self.questions:
                if is_similar(existing.text, text):
                    log.debug("[REGISTRY] Duplicate of %r rejected: %r", existing.text, text)
                    return None

            question = DetectedQuestion(
                id=self._next_id(),
                text=text,
                timestamp=datetime.now().strftime("%H:%M:%S"),
                category=classification.category,
                confidence=classification.confidence,
            )
            self.questions.append(question)
            self.selected_index = len(self.questions) - 1
        log.info("[REGISTRY] Detected question (%s, %.0f%%): %s",
                 question.category.value if question.category else "-",
                 question.confidence * 100, question.text)
        return question

    def select(self, index: int) -> bool:
        with self.lock:
            if 0 <= index < len(self.questions):
                self.selected_index = index
                return True
            return False

    def select_next(self) -> bool:
        """Move the selection one entry down, wrapping to the first."""
        with self.lock:
            if not self.questions:
                return False
            self.selected_index = (self.selected_index + 1) % len(self.questions)
            return True

    @property
    def selected(self) -> Optional[DetectedQuestion]:
        with self.lock:
            if self.selected_index < 0:
                return None
            return self.questions[self.selected_index]

    def clear(self):
        with self.lock:
            self.questions = []
            self.selected_index = -1

    def __len__(self) -> int:
        with self.lock:
            return len(self.questions)
