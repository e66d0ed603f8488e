"""Service for cleanup operations."""
import logging
import threading
import time

from assessment_api.config import (
    SESSION_CLEANUP_INTERVAL_SECONDS,
    SESSION_RETENTION_SECONDS,
)
from assessment_api.services.session_service import SessionRegistry


def cleanup_submitted_sessions(registry: SessionRegistry) -> int:
    """Remove submitted sessions past the retention period from the registry."""
    if SESSION_RETENTION_SECONDS <= 0:
        return 0

    logger = logging.getLogger(__name__)
    try:
        return registry.purge_submitted(SESSION_RETENTION_SECONDS)
    except Exception as e:
        logger.error(f"Failed to cleanup submitted sessions: {e}")
        return 0


def schedule_session_cleanup(registry: SessionRegistry) -> threading.Thread:
    """Schedule periodic cleanup of submitted sessions."""

    def _worker() -> None:
        while True:
            time.sleep(SESSION_CLEANUP_INTERVAL_SECONDS)
            cleanup_submitted_sessions(registry)

    thread = threading.Thread(
        target=_worker,
        name="sessions_cleanup",
        daemon=True,
    )
    thread.start()
    return thread
