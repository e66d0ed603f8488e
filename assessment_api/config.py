"""Application configuration and constants."""
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DB_DIR / 'assessments.db'}"
)

# Tests
DEFAULT_DURATION_MINUTES = _parse_int_env("DEFAULT_DURATION_MINUTES", 60)
TEST_CODE_LENGTH = 6

# Sessions
SESSION_TICK_SECONDS = _parse_int_env("SESSION_TICK_SECONDS", 1)
SESSION_RETENTION_SECONDS = _parse_int_env("SESSION_RETENTION_SECONDS", 60 * 60)
SESSION_CLEANUP_INTERVAL_SECONDS = _parse_int_env(
    "SESSION_CLEANUP_INTERVAL_SECONDS", 5 * 60
)

# AI question extraction (OpenAI-compatible chat completions gateway)
EXTRACTION_API_URL = os.environ.get(
    "EXTRACTION_API_URL", "https://ai.gateway.lovable.dev/v1/chat/completions"
)
EXTRACTION_API_KEY = os.environ.get("EXTRACTION_API_KEY")
EXTRACTION_MODEL = os.environ.get("EXTRACTION_MODEL", "google/gemini-2.5-flash")
EXTRACTION_TIMEOUT_SECONDS = _parse_int_env("EXTRACTION_TIMEOUT_SECONDS", 60)
EXTRACTION_MAX_IMAGES = _parse_int_env("EXTRACTION_MAX_IMAGES", 10)
EXTRACT_IMAGE_MAX_DIMENSION = _parse_int_env("EXTRACT_IMAGE_MAX_DIMENSION", 1600)
EXTRACT_ALLOWED_EXTENSIONS = {".docx"}
