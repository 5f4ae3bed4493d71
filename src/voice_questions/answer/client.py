import json
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

import requests

from voice_questions.config import Config, cfg
from voice_questions.models import AnswerResult

log = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Explain like I'm in a job interview, simple and practical. "
    "Answer like you're a programmer talking to another programmer, fast and clear. "
    "Keep it short and beginner-friendly, with an example. "
    "Give me the 'what it is' and 'why it matters' in one or two sentences."
)

NO_ANSWER = "No answer received"

class AnswerState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"

class AnswerError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

class MissingApiKeyError(AnswerError):
    pass

@dataclass(frozen=True)
class AnswerOptions:
    api_key: str
    model: str = "gpt-4o-mini"
    max_tokens: int = 300
    temperature: float = 0.3
    stream: bool = True
    api_url: str = "https://api.openai.com/v1/chat/completions"
    timeout_s: float = 60.0

    @classmethod
    def from_config(cls, config: Config = cfg, **overrides) -> "AnswerOptions":
        options = cls(
            api_key=config.openai_api_key,
            model=config.answer_model,
            max_tokens=config.answer_max_tokens,
            temperature=config.answer_temperature,
            stream=config.answer_stream,
            api_url=config.answer_api_url,
            timeout_s=config.answer_timeout_s,
        )
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(options, **overrides)

class AnswerStreamClient:
    """
    One answer request against an OpenAI-compatible chat completions endpoint.

    Each instance serves a single request: IDLE -> REQUESTING -> STREAMING ->
    COMPLETED | FAILED. With ``stream`` enabled every received delta triggers
    ``on_partial`` with the full answer accumulated so far.
    """

    def __init__(self, options: AnswerOptions):
        if not options.api_key:
            raise MissingApiKeyError("OpenAI API key is required")
        self.options = options
        self.state = AnswerState.IDLE

    def build_payload(self, question: str) -> dict:
        return {
            "model": self.options.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": question},
            ],
            "max_tokens": self.options.max_tokens,
            "temperature": self.options.temperature,
            "stream": self.options.stream,
        }

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.options.api_key}",
        }

    def get_answer(self, question: str,
                   on_partial: Optional[Callable[[str], None]] = None) -> AnswerResult:
        if self.state != AnswerState.IDLE:
            raise RuntimeError("AnswerStreamClient instances serve a single request")

        self.state = AnswerState.REQUESTING
        start = time.monotonic()
        log.info("[ANSWER] POST %s stream=%s model=%s", self.options.api_url,
                 self.options.stream, self.options.model)
        try:
            response = requests.post(
                self.options.api_url,
                json=self.build_payload(question),
                headers=self._headers(),
                stream=self.options.stream,
                timeout=self.options.timeout_s,
            )
            with response:
                if not 200 <= response.status_code < 300:
                    body = response.text
                    raise AnswerError(
                        f"API error: {response.status_code} - {body}",
                        status_code=response.status_code,
                        body=body,
                    )
                if self.options.stream:
                    self.state = AnswerState.STREAMING
                    answer = self._consume_stream(response, on_partial)
                    source = "openai-stream"
                else:
                    answer = self._extract_answer(response.json())
                    source = "openai"
        except AnswerError as e:
            self.state = AnswerState.FAILED
            log.error("[ANSWER] %s", e)
            raise AnswerError(f"Failed to get answer: {e}", e.status_code, e.body) from e
        except Exception as e:
            self.state = AnswerState.FAILED
            log.error("[ANSWER] Request failed: %s", e)
            raise AnswerError(f"Failed to get answer: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        self.state = AnswerState.COMPLETED
        log.info("[ANSWER] Completed in %d ms (%d chars)", elapsed_ms, len(answer))
        return AnswerResult(answer=answer, response_time_ms=elapsed_ms, source=source)

    @staticmethod
    def _extract_answer(payload: dict) -> str:
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        return content or NO_ANSWER

    @staticmethod
    def _extract_delta(message) -> str:
        try:
            return message["choices"][0]["delta"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError):
            return ""

    def _consume_stream(self, response, on_partial: Optional[Callable[[str], None]]) -> str:
        full_answer = ""
        for line in response.iter_lines():
            if not line:
                continue
            if isinstance(line, bytes):
                line = line.decode("utf-8", errors="ignore")
            line = line.strip()
            if not line.startswith("data:"):
                continue
            payload = line[5:].strip()
            if payload == "[DONE]":
                break
            try:
                message = json.loads(payload)
            except json.JSONDecodeError:
                log.debug("[ANSWER] Skipping malformed chunk: %s", payload)
                continue

            content = self._extract_delta(message)
            if content:
                full_answer += content
                if on_partial:
                    on_partial(full_answer)
        return full_answer
