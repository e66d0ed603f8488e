"""In-memory registry of live assessment sessions and the clock that drives them."""
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable

from assessment_api.config import SESSION_TICK_SECONDS
from assessment_api.services.question_service import DbQuestionSource
from assessment_api.services.result_service import DbResultSink
from assessment_api.utils import normalize_test_code, utc_now
from errors import InvalidActionError, NotFoundError
from session_controller import QuestionSource, ResultSink, SessionController

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Owns every live SessionController, keyed by session id.

    A controller stays registered after submission so the client can fetch
    its result; submitted sessions are purged after a retention period.
    """

    def __init__(
        self,
        source: QuestionSource,
        sink: ResultSink,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.source = source
        self.sink = sink
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: dict[str, SessionController] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _find_open(self, test_code: str, student_id: str) -> SessionController | None:
        for controller in self._sessions.values():
            if (
                not controller.is_submitted
                and controller.test.test_code == test_code
                and controller.student_id == student_id
            ):
                return controller
        return None

    def start(self, test_code: str, student_id: str) -> SessionController:
        """
        Start an attempt, or return the student's open attempt on the same test.

        Raises:
            InvalidTestCodeError: malformed code.
            NotFoundError: unknown/inactive test or no practice questions.
        """
        code = normalize_test_code(test_code)
        with self._lock:
            existing = self._find_open(code, student_id)
        if existing is not None:
            logger.info("Resuming session %s for student %s", existing.session_id, student_id)
            return existing

        controller = SessionController.start(
            code, student_id, self.source, self.sink, clock=self._clock
        )
        with self._lock:
            # another request may have opened the attempt during the lookup
            existing = self._find_open(code, student_id)
            if existing is None:
                self._sessions[controller.session_id] = controller
        if existing is not None:
            logger.info("Resuming session %s for student %s", existing.session_id, student_id)
            return existing
        return controller

    def get(self, session_id: str) -> SessionController:
        with self._lock:
            controller = self._sessions.get(session_id)
        if controller is None:
            raise NotFoundError(f"Unknown session: {session_id}")
        return controller

    def discard(self, session_id: str) -> bool:
        """
        Forget a session whose result has been stored.

        Returns False for unknown sessions.

        Raises:
            InvalidActionError: the session is still open, or its result was
                not stored.
        """
        with self._lock:
            controller = self._sessions.get(session_id)
            if controller is None:
                return False
            if not controller.is_submitted:
                raise InvalidActionError("Submit the session before discarding it")
            if not controller.stored:
                raise InvalidActionError("Session result has not been stored")
            del self._sessions[session_id]
        return True

    def open_sessions(self) -> list[SessionController]:
        with self._lock:
            return [c for c in self._sessions.values() if not c.is_submitted]

    def tick_all(self) -> int:
        """Deliver one clock tick to every open session. Returns sessions ticked."""
        ticked = 0
        for controller in self.open_sessions():
            try:
                controller.tick()
            except Exception:
                logger.exception("Tick failed for session %s", controller.session_id)
                continue
            ticked += 1
        return ticked

    def purge_submitted(self, max_age_seconds: int) -> int:
        """
        Drop submitted sessions whose result is older than max_age_seconds.

        Sessions whose result the sink did not store are kept, since the
        controller holds the only copy of it.
        """
        cutoff = self._clock() - timedelta(seconds=max_age_seconds)
        expired = []
        unstored = []
        with self._lock:
            for session_id, controller in self._sessions.items():
                result = controller.result
                if result is None or result.completed_at > cutoff:
                    continue
                if controller.stored:
                    expired.append(session_id)
                else:
                    unstored.append(session_id)
            for session_id in expired:
                del self._sessions[session_id]
        if unstored:
            logger.warning(
                "Keeping %d submitted sessions with unstored results: %s",
                len(unstored),
                ", ".join(unstored),
            )
        if expired:
            logger.info(f"Purged {len(expired)} submitted sessions")
        return len(expired)


class SessionClock:
    """Daemon thread calling ``registry.tick_all()`` every interval."""

    def __init__(self, registry: SessionRegistry, interval: float = SESSION_TICK_SECONDS):
        self.registry = registry
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()

        def _worker() -> None:
            while not self._stop.wait(self.interval):
                self.registry.tick_all()

        self._thread = threading.Thread(target=_worker, name="session_clock", daemon=True)
        self._thread.start()
        logger.info("Session clock started (interval %ss)", self.interval)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


_registry: SessionRegistry | None = None
_registry_lock = threading.Lock()


def get_session_registry() -> SessionRegistry:
    """Dependency returning the process-wide session registry."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = SessionRegistry(DbQuestionSource(), DbResultSink())
        return _registry
