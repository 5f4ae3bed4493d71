import logging
import queue
import threading
import time
from typing import Callable, Optional, TextIO

from voice_questions.models import RecognitionAlternative, RecognitionEvent, RecognitionResult

log = logging.getLogger(__name__)

class TextFeedEngine:
    """
    Recognition engine that "hears" lines of text from a stream.

    Every non-blank line is delivered as one final result. When the stream is
    exhausted the engine reports ``no-speech`` and ends the session.

    If ``events`` is given, callbacks are not invoked from the reader thread but
    queued as ``(callback, args)`` for the owner to run on its own thread.
    """

    def __init__(self, stream: TextIO, events: Optional[queue.Queue] = None, line_delay_s: float = 0.0):
        self.stream = stream
        self.events = events
        self.line_delay_s = line_delay_s

        self.on_result: Optional[Callable[[RecognitionEvent], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None
        self.on_end: Optional[Callable[[], None]] = None

        self.running = False
        self.exhausted = False
        self.thread: Optional[threading.Thread] = None

    def _emit(self, callback: Optional[Callable], *args):
        if callback is None:
            return
        if self.events is not None:
            self.events.put((callback, args))
        else:
            callback(*args)

    def _run(self):
        while self.running:
            line = self.stream.readline()
            if not line:
                self.exhausted = True
                break
            text = line.strip()
            if not text:
                continue
            event = RecognitionEvent(
                result_index=0,
                results=[RecognitionResult(is_final=True,
                                           alternatives=[RecognitionAlternative(transcript=text)])],
            )
            self._emit(self.on_result, event)
            if self.line_delay_s:
                time.sleep(self.line_delay_s)

        stopped = not self.running
        self.running = False
        if self.exhausted and not stopped:
            log.info("[FEED] End of input")
            self._emit(self.on_error, "no-speech")
        self._emit(self.on_end)

    def start(self):
        if self.running:
            return
        self.running = True
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.start()

    def stop(self):
        self.running = False

    def join(self, timeout: Optional[float] = None):
        if self.thread:
            self.thread.join(timeout)
