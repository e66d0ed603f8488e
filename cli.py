import argparse
import logging
from pathlib import Path

from fastapi import HTTPException

from assessment_api.database import SessionLocal, init_db
from assessment_api.services.extraction_service import ExtractionClient
from assessment_api.services.question_service import add_question
from assessment_api.services.test_service import create_test, load_test
from assessment_api.utils import read_question_list, write_json_file
from core.logging_setup import setup_console_logging
from document_extract import DocumentTextExtractor
from errors import ExtractionError

setup_console_logging()
log = logging.getLogger("cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Adaptive assessment tools")
    commands = parser.add_subparsers(dest="command", required=True)

    extract = commands.add_parser("extract", help="Extract questions from a .docx file")
    extract.add_argument("file", type=Path, help="Path to .docx file")
    extract.add_argument(
        "--output",
        type=Path,
        default=None,
        help="JSON file to write (default: next to the document)",
    )
    extract.add_argument(
        "--text-only",
        action="store_true",
        help="Only flatten the document, do not call the extraction service",
    )

    create = commands.add_parser("create-test", help="Create a test and print its code")
    create.add_argument("--title", required=True)
    create.add_argument("--subject", required=True)
    create.add_argument("--duration", type=int, default=None, help="Duration in minutes")
    create.add_argument("--created-by", default=None)

    load = commands.add_parser("import-questions", help="Add questions from a JSON file")
    load.add_argument("test_code")
    load.add_argument("file", type=Path, help="JSON list of questions")
    return parser.parse_args(argv)


def run_extract(args: argparse.Namespace) -> int:
    document = DocumentTextExtractor(args.file).extract()
    output = args.output or args.file.with_suffix(".questions.json")
    if args.text_only:
        write_json_file(output, {"text": document.text, "images": document.images})
        print(f"Saved document text to {output}")
        return 0

    try:
        drafts = ExtractionClient().extract(document.text, document.images)
    except ExtractionError as exc:
        log.error("Extraction failed: %s", exc)
        return 1
    write_json_file(output, [draft.to_payload() for draft in drafts])
    print(f"Saved {len(drafts)} questions to {output}")
    return 0


def run_create_test(args: argparse.Namespace) -> int:
    db = SessionLocal()
    try:
        test = create_test(
            db,
            args.title,
            args.subject,
            duration_minutes=args.duration,
            created_by=args.created_by,
        )
    finally:
        db.close()
    print(test.test_code)
    return 0


def run_import_questions(args: argparse.Namespace) -> int:
    try:
        items = read_question_list(args.file)
    except ValueError as exc:
        log.error("%s", exc)
        return 1

    db = SessionLocal()
    try:
        test = load_test(db, args.test_code)
        for item in items:
            add_question(
                db,
                test,
                str(item.get("questionText", "")),
                stage=item.get("stage") or "easy",
                options=item.get("options") or [],
                correct_answer=item.get("correctAnswer"),
                passage_title=item.get("passageTitle"),
                passage_text=item.get("passageText"),
                commit=False,
            )
        db.commit()
    except (HTTPException, ValueError):
        db.rollback()
        raise
    finally:
        db.close()
    print(f"Imported {len(items)} questions into {args.test_code.upper()}")
    return 0


COMMANDS = {
    "extract": run_extract,
    "create-test": run_create_test,
    "import-questions": run_import_questions,
}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.command != "extract":
        init_db()
    try:
        return COMMANDS[args.command](args)
    except HTTPException as exc:
        log.error("%s", exc.detail)
        return 1
    except ValueError as exc:
        log.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
