import threading
import unittest
from unittest.mock import patch

from voice_questions.answer.client import AnswerError, AnswerOptions, MissingApiKeyError
from voice_questions.answer.worker import MISSING_KEY_MESSAGE, AnswerWorker
from voice_questions.models import AnswerResult, DetectedQuestion, DomainTag

def question(text, qid="1"):
    return DetectedQuestion(id=qid, text=text, timestamp="12:00:00",
                            category=DomainTag.PROGRAMMING, confidence=0.8)

class FakeClient:
    """Stands in for AnswerStreamClient; 'slow' questions wait for the gate."""
    gate = threading.Event()
    keys = []

    def __init__(self, options):
        if not options.api_key:
            raise MissingApiKeyError("OpenAI API key is required")
        self.options = options
        self.keys.append(options.api_key)

    def get_answer(self, text, on_partial=None):
        if text == "slow":
            self.gate.wait(5)
        if text == "broken":
            raise AnswerError("Failed to get answer: API error: 500 - boom", status_code=500)
        on_partial(f"{text}-1")
        on_partial(f"{text}-1-2")
        return AnswerResult(answer=f"{text}-1-2", response_time_ms=42, source="openai-stream")

@patch("voice_questions.answer.worker.AnswerStreamClient", FakeClient)
class TestAnswerWorker(unittest.TestCase):
    def setUp(self):
        FakeClient.gate.clear()
        FakeClient.keys = []
        self.worker = AnswerWorker(AnswerOptions(api_key="sk-test"))

    def test_session_snapshots_in_order(self):
        generation = self.worker.submit(question("closure"))
        self.worker.join(5)
        sessions = self.worker.drain()

        self.assertEqual([s.partial_answer for s in sessions], ["", "closure-1", "closure-1-2", "closure-1-2"])
        self.assertTrue(all(s.generation == generation for s in sessions))
        self.assertTrue(all(s.is_streaming for s in sessions[:-1]))
        final = sessions[-1]
        self.assertFalse(final.is_streaming)
        self.assertEqual(final.elapsed_ms, 42)
        self.assertIsNone(final.error)
        self.assertFalse(self.worker.busy)

    def test_missing_api_key(self):
        worker = AnswerWorker(AnswerOptions(api_key=""))
        worker.submit(question("closure"))
        sessions = worker.drain()
        self.assertEqual(len(sessions), 1)
        self.assertEqual(sessions[0].error, MISSING_KEY_MESSAGE)
        self.assertFalse(sessions[0].is_streaming)
        self.assertEqual(worker.threads, [])

    def test_explicit_api_key_overrides_options(self):
        worker = AnswerWorker(AnswerOptions(api_key=""))
        worker.submit(question("closure"), api_key="sk-other")
        worker.join(5)
        self.assertIsNone(worker.drain()[-1].error)

    def test_stale_generation_dropped(self):
        self.worker.submit(question("slow", "1"))
        self.assertTrue(self.worker.busy)
        second = self.worker.submit(question("fast", "2"))
        FakeClient.gate.set()
        self.worker.join(5)

        sessions = self.worker.drain()
        self.assertTrue(sessions)
        self.assertTrue(all(s.generation == second for s in sessions))
        self.assertEqual(sessions[-1].partial_answer, "fast-1-2")

    def test_supersede_silences_request(self):
        self.worker.submit(question("slow"))
        self.worker.supersede()
        FakeClient.gate.set()
        self.worker.join(5)
        self.assertEqual(self.worker.drain(), [])
        self.assertFalse(self.worker.busy)

    def test_api_key_change_drops_running_request(self):
        self.worker.submit(question("slow"))
        self.worker.set_api_key("sk-new")
        FakeClient.gate.set()
        self.worker.join(5)
        self.assertEqual(self.worker.drain(), [])
        self.assertFalse(self.worker.busy)

        self.worker.submit(question("closure"))
        self.worker.join(5)
        self.assertIsNone(self.worker.drain()[-1].error)
        self.assertEqual(FakeClient.keys, ["sk-test", "sk-new"])

    def test_submit_with_new_key_switches_credentials(self):
        first = self.worker.submit(question("slow"))
        second = self.worker.submit(question("closure"), api_key="sk-other")
        FakeClient.gate.set()
        self.worker.join(5)

        sessions = self.worker.drain()
        self.assertTrue(all(s.generation == second for s in sessions))
        self.assertGreater(second, first + 1)
        self.assertEqual(self.worker.options.api_key, "sk-other")
        self.assertEqual(FakeClient.keys, ["sk-test", "sk-other"])

    def test_failure_becomes_session_error(self):
        self.worker.submit(question("broken"))
        self.worker.join(5)
        final = self.worker.drain()[-1]
        self.assertFalse(final.is_streaming)
        self.assertIn("500", final.error)
        self.assertTrue(final.error.startswith("Error getting answer:"))

if __name__ == '__main__':
    unittest.main()
