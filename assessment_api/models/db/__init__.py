"""Database models."""
from assessment_api.models.db.test import AssessmentTest
from assessment_api.models.db.question import Question
from assessment_api.models.db.result import TestResult

__all__ = [
    "AssessmentTest",
    "Question",
    "TestResult",
]
