import sys
import threading
import queue
import time
import logging
import argparse
from typing import Dict, Optional

import keyboard

from voice_questions.config import cfg
from voice_questions.answer.client import AnswerOptions
from voice_questions.answer.worker import AnswerWorker
from voice_questions.detection.segmenter import TranscriptSegmenter
from voice_questions.models import AnswerSession, DetectedQuestion
from voice_questions.question_store import QuestionRegistry
from voice_questions.speech.feed import TextFeedEngine
from voice_questions.speech.listener import SpeechListener

log = logging.getLogger(__name__)

# Global stop event
stop_event = threading.Event()
hotkeys_registered = False

def register_hotkeys(control_queue: queue.Queue) -> bool:
    global hotkeys_registered
    if hotkeys_registered:
        return True

    last_trigger: Dict[str, float] = {"answer": 0.0, "next": 0.0, "stop": 0.0}

    def _debounced(name: str, interval_s: float = 0.35) -> bool:
        now = time.time()
        if now - last_trigger[name] < interval_s:
            return False
        last_trigger[name] = now
        return True

    def on_answer():
        if _debounced("answer"):
            control_queue.put("answer")

    def on_next():
        if _debounced("next"):
            control_queue.put("next")

    def on_stop():
        if not _debounced("stop"):
            return
        print("[HOTKEY] Full stop requested")
        stop_event.set()

    try:
        keyboard.add_hotkey(cfg.hotkey_answer, on_answer)
        keyboard.add_hotkey(cfg.hotkey_next, on_next)
        keyboard.add_hotkey(cfg.hotkey_stop, on_stop)
    except Exception as e:
        log.warning("[HOTKEY] Registration failed: %s", e)
        return False
    hotkeys_registered = True
    print(f"Hotkeys registered: ANSWER={cfg.hotkey_answer.upper()} "
          f"NEXT={cfg.hotkey_next.upper()} STOP={cfg.hotkey_stop.upper()}")
    return True

def unregister_hotkeys():
    global hotkeys_registered
    if hotkeys_registered:
        keyboard.unhook_all_hotkeys()
        hotkeys_registered = False

class TerminalRenderer:
    """Prints detected questions and streamed answers to stdout."""

    def __init__(self, out=sys.stdout):
        self.out = out
        self.printed: Dict[int, int] = {}   # generation -> chars already written

    def question(self, index: int, question: DetectedQuestion):
        category = question.category.value if question.category else "-"
        print(f"\n[Q{index + 1}] {question.timestamp} [{category}] "
              f"{question.text} (confidence {round(question.confidence * 100)}%)", file=self.out)

    def selected(self, index: int, question: DetectedQuestion):
        print(f"\n> Selected Q{index + 1}: {question.text}", file=self.out)

    def answer(self, session: AnswerSession):
        written = self.printed.get(session.generation)
        if written is None:
            print(f"\n[Answer] {session.question.text}", file=self.out)
            written = 0
        if session.error:
            print(session.error, file=self.out)
        elif len(session.partial_answer) > written:
            print(session.partial_answer[written:], end="", file=self.out, flush=True)
            written = len(session.partial_answer)
        if not session.is_streaming and not session.error:
            print(f"\nAnswer generated in {session.elapsed_ms / 1000:.2f}s", file=self.out)
        self.printed[session.generation] = written

    def status(self, message: str):
        print(f"[Status] {message}", file=self.out)

def request_answer(registry: QuestionRegistry, worker: AnswerWorker, renderer: Optional[TerminalRenderer]):
    question = registry.selected
    if question is None:
        if renderer:
            renderer.status("No question selected.")
        return
    worker.submit(question)

def run(listener: SpeechListener, engine_events: queue.Queue, control_queue: queue.Queue,
        worker: AnswerWorker, renderer: Optional[TerminalRenderer], auto_answer: bool = False):
    registry = listener.segmenter.registry
    last_error = ""

    while not stop_event.is_set():
        # 1. Engine events, strictly in arrival order
        try:
            callback, args = engine_events.get(timeout=0.05)
            result = callback(*args)
            if callback == listener.handle_result and result:
                for question in result:
                    if renderer:
                        renderer.question(registry.questions.index(question), question)
                if auto_answer:
                    request_answer(registry, worker, renderer)
                else:
                    # Newest question took the selection
                    worker.supersede()
        except queue.Empty:
            pass

        # 2. Hotkey commands
        try:
            while True:
                cmd = control_queue.get_nowait()
                if cmd == "answer":
                    request_answer(registry, worker, renderer)
                elif cmd == "next" and registry.select_next():
                    worker.supersede()
                    if renderer:
                        renderer.selected(registry.selected_index, registry.selected)
        except queue.Empty:
            pass

        # 3. Answer updates
        for session in worker.drain():
            if renderer:
                renderer.answer(session)

        if listener.error and listener.error != last_error:
            last_error = listener.error
            if renderer:
                renderer.status(listener.error)

        idle = not listener.listening and engine_events.empty() and not worker.busy
        if idle and not hotkeys_registered:
            break

def main():
    parser = argparse.ArgumentParser(description="Detect technical questions in a transcript and answer them")
    parser.add_argument("--transcript", help="Text file to read the transcript from (default: stdin)")
    parser.add_argument("--auto-answer", action="store_true", help="Answer every newly detected question")
    parser.add_argument("--no-stream", action="store_true", help="Wait for the full answer instead of streaming")
    parser.add_argument("--model", help="Chat completions model")
    parser.add_argument("--max-tokens", type=int, help="Maximum answer tokens")
    parser.add_argument("--no-hotkeys", action="store_true", help="Do not register global hotkeys")
    parser.add_argument("--line-delay", type=float, default=0.0,
                        help="Seconds to wait between transcript lines, to pace the feed like live speech")
    args = parser.parse_args()

    logging.basicConfig(level=cfg.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # 1. Queues
    engine_events = queue.Queue()
    control_queue = queue.Queue()

    # 2. Components
    registry = QuestionRegistry()
    segmenter = TranscriptSegmenter(registry)
    stream = open(args.transcript, encoding="utf-8") if args.transcript else sys.stdin
    engine = TextFeedEngine(stream, events=engine_events, line_delay_s=args.line_delay)
    listener = SpeechListener(engine, segmenter)
    options = AnswerOptions.from_config(
        cfg,
        model=args.model,
        max_tokens=args.max_tokens,
        stream=False if args.no_stream else None,
    )
    worker = AnswerWorker(options)
    renderer = TerminalRenderer() if cfg.terminal_output else None

    if not options.api_key:
        print("OPENAI_API_KEY is not set; questions will be detected but not answered.")

    if not args.no_hotkeys:
        register_hotkeys(control_queue)

    # 3. Start
    if not listener.start_listening():
        print(listener.error)
        return

    print("System started. Listening for technical questions.")
    try:
        run(listener, engine_events, control_queue, worker, renderer, auto_answer=args.auto_answer)
    except KeyboardInterrupt:
        stop_event.set()

    # Cleanup
    print("\nStopping...")
    unregister_hotkeys()
    listener.stop_listening()
    worker.supersede()
    if stream is not sys.stdin:
        stream.close()
    print(f"Done. {len(registry)} question(s) detected.")

if __name__ == "__main__":
    main()
