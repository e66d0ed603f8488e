import logging
import os

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def _level_from_env(default: int) -> int:
    name = os.environ.get("LOG_LEVEL", "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def setup_console_logging(level: int = logging.INFO) -> None:
    """
    Call once at app start. Sends log records to the console.

    ``LOG_LEVEL`` in the environment overrides ``level``.
    """
    level = _level_from_env(level)
    root = logging.getLogger()
    if root.handlers:
        # already configured (uvicorn, pytest)
        root.setLevel(level)
        return

    root.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(handler)
