import io
import queue
import time
import unittest
from unittest.mock import patch

from voice_questions import app
from voice_questions.answer.client import AnswerOptions
from voice_questions.answer.worker import MISSING_KEY_MESSAGE, AnswerWorker
from voice_questions.detection.segmenter import TranscriptSegmenter
from voice_questions.models import (
    AnswerResult,
    AnswerSession,
    DetectedQuestion,
    DomainTag,
    RecognitionAlternative,
    RecognitionEvent,
    RecognitionResult,
)
from voice_questions.question_store import QuestionRegistry
from voice_questions.speech.feed import TextFeedEngine
from voice_questions.speech.listener import SpeechListener

QUESTION = DetectedQuestion(id="1", text="What is a closure?", timestamp="12:00:00",
                            category=DomainTag.PROGRAMMING, confidence=0.8)

class TestTerminalRenderer(unittest.TestCase):
    def test_streamed_answer_printed_incrementally(self):
        out = io.StringIO()
        renderer = app.TerminalRenderer(out)
        renderer.answer(AnswerSession(generation=1, question=QUESTION))
        renderer.answer(AnswerSession(generation=1, question=QUESTION, partial_answer="Hel"))
        renderer.answer(AnswerSession(generation=1, question=QUESTION, partial_answer="Hello"))
        renderer.answer(AnswerSession(generation=1, question=QUESTION, partial_answer="Hello",
                                      is_streaming=False, elapsed_ms=1500))
        text = out.getvalue()
        self.assertEqual(text.count("[Answer] What is a closure?"), 1)
        self.assertIn("Hello", text)
        self.assertEqual(text.count("Hel"), 1)
        self.assertIn("Answer generated in 1.50s", text)

    def test_question_line(self):
        out = io.StringIO()
        app.TerminalRenderer(out).question(0, QUESTION)
        self.assertIn("[Q1] 12:00:00 [programming] What is a closure? (confidence 80%)", out.getvalue())

class TestRun(unittest.TestCase):
    def test_feed_to_answer_error_without_key(self):
        events = queue.Queue()
        registry = QuestionRegistry()
        engine = TextFeedEngine(io.StringIO("Hello everyone.\nSo, what is a function in javascript?\n"),
                                events=events)
        listener = SpeechListener(engine, TranscriptSegmenter(registry))
        worker = AnswerWorker(AnswerOptions(api_key=""))
        out = io.StringIO()

        self.assertTrue(listener.start_listening())
        app.run(listener, events, queue.Queue(), worker, app.TerminalRenderer(out), auto_answer=True)

        text = out.getvalue()
        self.assertEqual(len(registry), 1)
        self.assertIn("[Q1]", text)
        self.assertIn("what is a function in javascript?", text)
        self.assertIn(MISSING_KEY_MESSAGE, text)
        self.assertIn("No speech detected", text)

class SlowClient:
    """Answers after a short pause, long enough for another question to arrive."""

    def __init__(self, options):
        self.options = options

    def get_answer(self, text, on_partial=None):
        time.sleep(0.3)
        on_partial("OLD-ANSWER")
        return AnswerResult(answer="OLD-ANSWER", response_time_ms=300, source="openai-stream")

class IdleEngine:
    on_result = None
    on_error = None
    on_end = None

    def start(self):
        pass

    def stop(self):
        pass

def final_event(text):
    return RecognitionEvent(0, [RecognitionResult(is_final=True,
                                                  alternatives=[RecognitionAlternative(transcript=text)])])

class TestSelectionChange(unittest.TestCase):
    @patch("voice_questions.answer.worker.AnswerStreamClient", SlowClient)
    def test_new_question_drops_answer_for_previous_selection(self):
        registry = QuestionRegistry()
        listener = SpeechListener(IdleEngine(), TranscriptSegmenter(registry))
        worker = AnswerWorker(AnswerOptions(api_key="sk-test"))
        events = queue.Queue()
        events.put((listener.handle_result, (final_event("what is a function in javascript?"),)))
        events.put((listener.handle_result, (final_event("how do I run a docker container in kubernetes?"),)))
        commands = queue.Queue()
        commands.put("answer")
        out = io.StringIO()

        app.run(listener, events, commands, worker, app.TerminalRenderer(out))
        worker.join(5)
        for session in worker.drain():
            app.TerminalRenderer(out).answer(session)

        text = out.getvalue()
        self.assertIn("[Q1]", text)
        self.assertIn("[Q2]", text)
        self.assertEqual(registry.selected_index, 1)
        self.assertNotIn("OLD-ANSWER", text)

class TestRequestAnswer(unittest.TestCase):
    def test_nothing_selected_without_renderer(self):
        worker = AnswerWorker(AnswerOptions(api_key="sk-test"))
        app.request_answer(QuestionRegistry(), worker, None)
        self.assertEqual(worker.generation, 0)
        self.assertEqual(worker.drain(), [])

    def test_nothing_selected_reports_status(self):
        out = io.StringIO()
        app.request_answer(QuestionRegistry(), AnswerWorker(AnswerOptions(api_key="sk-test")),
                           app.TerminalRenderer(out))
        self.assertIn("No question selected.", out.getvalue())

if __name__ == '__main__':
    unittest.main()
