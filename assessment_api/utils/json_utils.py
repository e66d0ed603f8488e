"""JSON helpers for question import and export files."""
import json
from pathlib import Path
from typing import Any


def json_dump(payload: object) -> str:
    """Pretty JSON that keeps non-ASCII question text readable."""
    return json.dumps(payload, ensure_ascii=False, indent=2, default=str)


def read_json_file(path: Path, default: object) -> object:
    """Parse a JSON file, or return ``default`` when it does not exist."""
    if not path.exists():
        return default
    return json.loads(path.read_text(encoding="utf-8"))


def write_json_file(path: Path, payload: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json_dump(payload) + "\n", encoding="utf-8")


def read_question_list(path: Path) -> list[dict[str, Any]]:
    """
    Question dicts from an import file.

    Accepts a bare list or an object with a ``questions`` list, which is
    the shape the extraction model replies with.
    """
    payload = read_json_file(path, [])
    if isinstance(payload, dict):
        payload = payload.get("questions")
    if not isinstance(payload, list):
        raise ValueError(f"{path} must contain a list of questions")
    return [item for item in payload if isinstance(item, dict)]
