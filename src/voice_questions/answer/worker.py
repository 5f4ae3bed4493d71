import logging
import queue
import threading
from dataclasses import replace
from typing import List, Optional

from voice_questions.answer.client import AnswerError, AnswerOptions, AnswerStreamClient, MissingApiKeyError
from voice_questions.models import AnswerSession, DetectedQuestion

log = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "API key is required to get answers"

class AnswerWorker:
    """
    Runs answer requests off the main thread and hands back AnswerSession
    snapshots through ``updates``.

    Each submit() opens a new generation. Snapshots from older generations are
    dropped by drain(), so a superseded request can keep streaming in the
    background without reaching the caller.
    """

    def __init__(self, options: AnswerOptions):
        self.options = options
        self.updates: queue.Queue[AnswerSession] = queue.Queue()
        self.generation = 0
        self.lock = threading.Lock()
        self.threads: List[threading.Thread] = []
        self.current: Optional[AnswerSession] = None

    def is_current(self, generation: int) -> bool:
        with self.lock:
            return generation == self.generation

    def supersede(self) -> int:
        """Invalidate any in-flight request (selection or API key changed)."""
        with self.lock:
            self.generation += 1
            self.current = None
            return self.generation

    def set_api_key(self, api_key: str):
        """Switch credentials; the running request belongs to the old key and is dropped."""
        self.options = replace(self.options, api_key=api_key)
        self.supersede()

    def submit(self, question: DetectedQuestion, api_key: Optional[str] = None) -> int:
        if api_key is not None and api_key != self.options.api_key:
            self.set_api_key(api_key)
        generation = self.supersede()

        try:
            client = AnswerStreamClient(self.options)
        except MissingApiKeyError:
            self._start(AnswerSession(generation=generation, question=question,
                                      is_streaming=False, error=MISSING_KEY_MESSAGE))
            return generation

        self._start(AnswerSession(generation=generation, question=question))
        thread = threading.Thread(target=self._run, args=(client, generation, question), daemon=True)
        self.threads = [t for t in self.threads if t.is_alive()]
        self.threads.append(thread)
        thread.start()
        return generation

    def _start(self, session: AnswerSession):
        with self.lock:
            self.current = session
        self.updates.put(session)

    def _post(self, session: AnswerSession):
        if self.is_current(session.generation):
            self.updates.put(session)

    def _run(self, client: AnswerStreamClient, generation: int, question: DetectedQuestion):
        session = AnswerSession(generation=generation, question=question)

        def on_partial(text: str):
            self._post(replace(session, partial_answer=text))

        try:
            result = client.get_answer(question.text, on_partial=on_partial)
        except AnswerError as e:
            self._post(replace(session, is_streaming=False, error=f"Error getting answer: {e}"))
            return
        except Exception as e:
            log.exception("[ANSWER] Unexpected failure for %r", question.text)
            self._post(replace(session, is_streaming=False, error=f"Error getting answer: {e}"))
            return

        self._post(replace(session, partial_answer=result.answer,
                           is_streaming=False, elapsed_ms=result.response_time_ms))

    def drain(self) -> List[AnswerSession]:
        """Snapshots of the current generation, in the order they were produced."""
        sessions: List[AnswerSession] = []
        try:
            while True:
                session = self.updates.get_nowait()
                if self.is_current(session.generation):
                    sessions.append(session)
        except queue.Empty:
            pass
        if sessions:
            with self.lock:
                if sessions[-1].generation == self.generation:
                    self.current = sessions[-1]
        return sessions

    @property
    def busy(self) -> bool:
        with self.lock:
            return self.current is not None and self.current.is_streaming

    def join(self, timeout: Optional[float] = None):
        for thread in self.threads:
            thread.join(timeout)
