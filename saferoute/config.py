import os
from pathlib import Path
from dotenv import load_dotenv

# Always load .env from the package folder
load_dotenv(Path(__file__).resolve().parent / ".env")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "").strip()
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

HAZARD_TIMEOUT_S = float(os.getenv("HAZARD_TIMEOUT_S", "15"))
HAZARD_INTERMEDIATE_POINTS = int(os.getenv("HAZARD_INTERMEDIATE_POINTS", "4"))

AVERAGE_SPEED_KMH = float(os.getenv("AVERAGE_SPEED_KMH", "50"))
SIMULATED_LATENCY_S = float(os.getenv("SIMULATED_LATENCY_S", "0"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

APP_HOST = os.getenv("APP_HOST", "127.0.0.1")
APP_PORT = int(os.getenv("APP_PORT", "8000"))

# Values people leave in .env templates
_PLACEHOLDER_KEYS = {"", "changeme", "none", "null", "xxx", "api_key", "your_api_key"}


def is_placeholder_key(key: str | None) -> bool:
    """True when the credential is missing or still a template value."""
    if key is None:
        return True
    k = key.strip().lower()
    return k in _PLACEHOLDER_KEYS or k.startswith("your")
