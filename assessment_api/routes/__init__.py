"""API route modules."""
from assessment_api.routes import questions, results, sessions, tests

__all__ = ["questions", "results", "sessions", "tests"]
