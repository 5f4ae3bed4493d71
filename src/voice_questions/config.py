from dataclasses import dataclass
import os
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Config:
    # --- Answer endpoint ---
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    answer_api_url: str = os.getenv("ANSWER_API_URL", "https://api.openai.com/v1/chat/completions")
    answer_model: str = os.getenv("ANSWER_MODEL", "gpt-4o-mini")
    answer_max_tokens: int = int(os.getenv("ANSWER_MAX_TOKENS", "300"))
    answer_temperature: float = float(os.getenv("ANSWER_TEMPERATURE", "0.3"))
    answer_stream: bool = os.getenv("ANSWER_STREAM", "true").lower() == "true"
    answer_timeout_s: float = float(os.getenv("ANSWER_TIMEOUT_S", "60"))

    # --- Listener ---
    auto_restart_limit: int = int(os.getenv("AUTO_RESTART_LIMIT", "20"))  # consecutive restarts with no result

    # --- Output ---
    terminal_output: bool = True
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # --- Hotkeys ---
    hotkey_answer: str = os.getenv("HOTKEY_ANSWER", "f8")
    hotkey_next: str = os.getenv("HOTKEY_NEXT", "f9")
    hotkey_stop: str = os.getenv("HOTKEY_STOP", "f10")

# Global instance
cfg = Config()
