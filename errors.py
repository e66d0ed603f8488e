"""Exceptions raised by the assessment core and its collaborators."""


class AssessmentError(Exception):
    """Base class for assessment errors."""


class DegenerateInputError(AssessmentError, ValueError):
    """Scoring was asked to score an empty question sequence."""


class NotFoundError(AssessmentError, LookupError):
    """A test code, tier or session could not be resolved."""


class SessionClosedError(AssessmentError):
    """A mutating action reached a session that is already submitted."""


class InvalidActionError(AssessmentError, IndexError):
    """An action referenced a question index or delta that does not exist."""


class AlreadyTakenError(AssessmentError):
    """The student already has a stored result for this test."""


class InvalidTestCodeError(AssessmentError, ValueError):
    """A test code is not six alphanumeric characters."""


class ExtractionError(AssessmentError):
    """The AI extraction service failed or is not configured."""


class ExtractionRateLimitError(ExtractionError):
    """The extraction gateway answered 429."""


class ExtractionQuotaError(ExtractionError):
    """The extraction gateway answered 402 (credits exhausted)."""
