import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[2]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=True)


def _env_flag(name: str, default: str = "false") -> bool:
    return str(os.getenv(name, default)).strip().lower() in {"1", "true", "yes", "on"}


OPENAI_API_KEY = str(os.getenv("OPENAI_API_KEY") or "").strip()
MODEL_NAME = str(os.getenv("MODEL_NAME") or "gpt-4o-mini").strip()
LLM_TIMEOUT_SEC = max(1.0, float(os.getenv("LLM_TIMEOUT_SEC", "12")))
LLM_RETRIES = max(0, int(os.getenv("LLM_RETRIES", "2")))
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.4"))
QA_MODE = _env_flag("QA_MODE")

# Adaptive flow
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10
MAX_DIFFICULTY_DEVIATION = 3
DEFAULT_TOTAL_QUESTIONS = max(1, int(os.getenv("DEFAULT_TOTAL_QUESTIONS", "10")))

# Interruption handling (milliseconds)
MAX_INTERRUPTION_DELAY_MS = max(1.0, float(os.getenv("MAX_INTERRUPTION_DELAY_MS", "200")))
SPEECH_CANCELLATION_TIMEOUT_MS = max(10.0, float(os.getenv("SPEECH_CANCELLATION_TIMEOUT_MS", "100")))

# Flow state persistence
USE_REDIS_FLOW_STATE = _env_flag("USE_REDIS_FLOW_STATE")
REDIS_URL = str(os.getenv("REDIS_URL") or "").strip()

# Live call bookkeeping
SESSION_CLEANUP_TTL_SEC = max(60, int(os.getenv("SESSION_CLEANUP_TTL_SEC", "1800")))
SESSION_CLEANUP_INTERVAL_SEC = max(30, int(os.getenv("SESSION_CLEANUP_INTERVAL_SEC", "120")))


def get_allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if not raw:
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    return [item.strip() for item in raw.split(",") if item.strip()]
