"""Validation utilities."""
from fastapi import HTTPException

from assessment_api.config import TEST_CODE_LENGTH
from errors import InvalidTestCodeError


def validate_id(name: str, value: str) -> str:
    """Validate identifier string (non-empty, no path separators)."""
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{name} is required")
    cleaned = value.strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail=f"{name} is required")
    if "/" in cleaned or "\\" in cleaned or cleaned in {".", ".."}:
        raise HTTPException(status_code=400, detail=f"Invalid {name}")
    return cleaned


def normalize_test_code(value: str) -> str:
    """Upper-case a test code and check it is six alphanumeric characters."""
    code = (value or "").strip().upper()
    if len(code) != TEST_CODE_LENGTH or not code.isascii() or not code.isalnum():
        raise InvalidTestCodeError(
            f"Test code must be {TEST_CODE_LENGTH} letters or digits"
        )
    return code
