"""Utility modules."""
from assessment_api.utils.json_utils import (
    json_dump,
    read_json_file,
    read_question_list,
    write_json_file,
)
from assessment_api.utils.time_utils import isoformat, utc_now
from assessment_api.utils.validation import normalize_test_code, validate_id

__all__ = [
    "json_dump",
    "read_json_file",
    "read_question_list",
    "write_json_file",
    "isoformat",
    "utc_now",
    "normalize_test_code",
    "validate_id",
]
