"""Main FastAPI application with modularized routes."""
from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from assessment_api.database import init_db
from assessment_api.routes import questions, results, sessions, tests
from assessment_api.services.cleanup_service import schedule_session_cleanup
from assessment_api.services.session_service import (
    SessionClock,
    SessionRegistry,
    get_session_registry,
)
from core.logging_setup import setup_console_logging

setup_console_logging()

app = FastAPI(title="Adaptive Assessment API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_events() -> None:
    """Initialize database, start the session clock and schedule cleanup."""
    init_db()
    registry = get_session_registry()
    clock = SessionClock(registry)
    clock.start()
    app.state.session_clock = clock
    schedule_session_cleanup(registry)


@app.on_event("shutdown")
def shutdown_events() -> None:
    clock = getattr(app.state, "session_clock", None)
    if clock is not None:
        clock.stop(timeout=5)


@app.get("/api/health")
def health(
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> dict[str, object]:
    return {"status": "ok", "openSessions": len(registry.open_sessions())}


# Include routers
app.include_router(tests.router)
app.include_router(questions.router)
app.include_router(sessions.router)
app.include_router(results.router)
