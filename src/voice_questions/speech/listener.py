import logging
from typing import Callable, List, Optional, Protocol

from voice_questions.config import cfg
from voice_questions.detection.segmenter import TranscriptSegmenter
from voice_questions.models import DetectedQuestion, RecognitionEvent, TranscriptFragment

log = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "Speech recognition not supported in this environment"

ERROR_MESSAGES = {
    "not-allowed": "Microphone access denied. Please check your permissions and privacy settings.",
    "no-speech": "No speech detected. Please try speaking again.",
    "audio-capture": "No microphone was found or microphone is busy.",
    "network": "Network error occurred. Please check your connection.",
}

def error_message(code: str) -> str:
    return ERROR_MESSAGES.get(code, f"Recognition error: {code}")

class RecognitionEngine(Protocol):
    on_result: Optional[Callable[[RecognitionEvent], None]]
    on_error: Optional[Callable[[str], None]]
    on_end: Optional[Callable[[], None]]

    def start(self) -> None: ...

    def stop(self) -> None: ...

def fragments_from_event(event: RecognitionEvent) -> List[TranscriptFragment]:
    fragments = []
    for result in event.results[event.result_index:]:
        if not result.alternatives:
            continue
        fragments.append(TranscriptFragment(text=result.alternatives[0].transcript,
                                            is_final=result.is_final))
    return fragments

class SpeechListener:
    """
    Glue between a continuous speech recognition engine and the segmenter.

    Keeps the running transcript and interim text, maps engine error codes to
    user-facing messages and restarts the engine when it ends a session on its
    own while we are still listening.
    """

    def __init__(self, engine: Optional[RecognitionEngine], segmenter: TranscriptSegmenter,
                 restart_limit: int = cfg.auto_restart_limit):
        self.engine = engine
        self.segmenter = segmenter
        self.restart_limit = restart_limit

        self.listening = False
        self.transcript = ""
        self.interim = ""
        self.error = ""
        self.restarts = 0

        if engine is None:
            log.warning("[LISTENER] %s", UNSUPPORTED_MESSAGE)
            self.error = UNSUPPORTED_MESSAGE
        else:
            engine.on_result = self.handle_result
            engine.on_error = self.handle_error
            engine.on_end = self.handle_end

    @property
    def supported(self) -> bool:
        return self.engine is not None

    def start_listening(self) -> bool:
        if self.engine is None:
            self.error = UNSUPPORTED_MESSAGE
            return False

        self.listening = True
        self.error = ""
        self.restarts = 0
        try:
            self.engine.start()
        except Exception as e:
            log.error("[LISTENER] Failed to start listening: %s", e)
            self.error = f"Failed to start listening: {e}"
            self.listening = False
            return False
        log.info("[LISTENER] Listening started")
        return True

    def stop_listening(self):
        self.listening = False
        if self.engine is None:
            return
        try:
            self.engine.stop()
        except Exception as e:
            # UI state is already off, nothing else to undo
            log.error("[LISTENER] Error stopping recognition: %s", e)
        log.info("[LISTENER] Listening stopped")

    def handle_result(self, event: RecognitionEvent) -> List[DetectedQuestion]:
        self.restarts = 0
        final = ""
        interim = ""
        for fragment in fragments_from_event(event):
            if fragment.is_final:
                final += fragment.text
            else:
                interim += fragment.text

        if not final:
            self.interim = interim
            return []

        self.transcript = f"{self.transcript} {final}" if self.transcript else final
        self.interim = ""
        return self.segmenter.on_final_fragment(final)

    def handle_error(self, code: str):
        log.warning("[LISTENER] Recognition error: %s", code)
        self.error = error_message(code)
        self.listening = False

    def handle_end(self):
        if not self.listening or self.engine is None:
            return
        if self.restarts >= self.restart_limit:
            log.warning("[LISTENER] Giving up after %d restarts without speech", self.restarts)
            self.error = "Recognition keeps ending without results. Listening stopped."
            self.listening = False
            return

        self.restarts += 1
        log.info("[LISTENER] Engine ended session, restarting (%d)", self.restarts)
        try:
            self.engine.start()
        except Exception as e:
            log.error("[LISTENER] Restart failed: %s", e)
            self.error = f"Failed to start listening: {e}"
            self.listening = False

    def clear_transcript(self):
        self.transcript = ""
        self.interim = ""
        self.error = ""
        self.segmenter.reset()

    def clear_questions(self):
        self.segmenter.registry.clear()

    def clear_all(self):
        self.clear_transcript()
        self.clear_questions()
