"""Question bank endpoints, including AI extraction from documents."""
import io
import logging
from pathlib import Path
from typing import Annotated
from zipfile import BadZipFile

from docx.opc.exceptions import PackageNotFoundError
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session as DbSession

from assessment_api.config import (
    EXTRACT_ALLOWED_EXTENSIONS,
    EXTRACT_IMAGE_MAX_DIMENSION,
    EXTRACTION_MAX_IMAGES,
)
from assessment_api.database import get_db
from assessment_api.models import QuestionCreate, QuestionUpdate
from assessment_api.models.questions import StageName
from assessment_api.services import question_service
from assessment_api.services.extraction_service import ExtractionClient, get_extraction_client
from assessment_api.services.question_service import serialize_question_row
from assessment_api.services.test_service import load_test
from document_extract import DocumentTextExtractor, image_to_data_url
from errors import ExtractionError, ExtractionQuotaError, ExtractionRateLimitError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tests/{test_code}/questions", tags=["questions"])


@router.get("")
def list_questions(
    test_code: str,
    db: Annotated[DbSession, Depends(get_db)],
    stage: StageName | None = Query(None),
) -> list[dict[str, object]]:
    """List questions of a test in presentation order."""
    test = load_test(db, test_code)
    return [serialize_question_row(q) for q in question_service.list_questions(db, test.id, stage)]


@router.post("", status_code=status.HTTP_201_CREATED)
def add_question(
    test_code: str,
    payload: QuestionCreate,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Add new question to test."""
    test = load_test(db, test_code)
    question = question_service.add_question(
        db,
        test,
        payload.questionText,
        stage=payload.stage,
        options=payload.options,
        correct_answer=payload.correctAnswer,
        passage_title=payload.passageTitle,
        passage_text=payload.passageText,
        marks=payload.marks,
    )
    return serialize_question_row(question)


@router.get("/stats")
def question_stats(
    test_code: str,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Questions per stage, plus the stages that have none yet."""
    test = load_test(db, test_code)
    counts = question_service.stage_counts(db, test.id)
    return {
        "testCode": test.test_code,
        "total": sum(counts.values()),
        "counts": counts,
        "emptyStages": [stage for stage, count in counts.items() if count == 0],
    }


def _read_images(images: list[UploadFile]) -> list[str]:
    urls = []
    for image in images[:EXTRACTION_MAX_IMAGES]:
        url = image_to_data_url(image.file.read(), EXTRACT_IMAGE_MAX_DIMENSION)
        if url is None:
            logger.warning("Skipping unreadable image upload %s", image.filename)
            continue
        urls.append(url)
    return urls


@router.post("/extract")
def extract_questions(
    test_code: str,
    db: Annotated[DbSession, Depends(get_db)],
    client: Annotated[ExtractionClient, Depends(get_extraction_client)],
    file: UploadFile | None = File(None),
    text: str = Form(""),
    images: list[UploadFile] | None = File(None),
    save: bool = Form(False),
) -> dict[str, object]:
    """
    Extract multiple-choice questions from a Word document and/or pasted text.

    With ``save`` the drafts are appended to the question bank; otherwise they
    are only returned for review.
    """
    test = load_test(db, test_code)

    content = text.strip()
    image_urls: list[str] = []
    logs: list[str] = []

    if file is not None and file.filename:
        if Path(file.filename).suffix.lower() not in EXTRACT_ALLOWED_EXTENSIONS:
            raise HTTPException(status_code=400, detail="Only .docx files are supported")
        extractor = DocumentTextExtractor(
            io.BytesIO(file.file.read()),
            max_images=EXTRACTION_MAX_IMAGES,
            max_image_dimension=EXTRACT_IMAGE_MAX_DIMENSION,
        )
        try:
            document = extractor.extract()
        except (PackageNotFoundError, BadZipFile, KeyError, ValueError) as exc:
            logger.warning("Could not read uploaded document %s: %s", file.filename, exc)
            raise HTTPException(status_code=400, detail="Could not read the Word document")
        content = "\n\n".join(part for part in (content, document.text) if part)
        image_urls.extend(document.images)
        logs.extend(document.logs)

    if images:
        image_urls.extend(_read_images(images))
    image_urls = image_urls[:EXTRACTION_MAX_IMAGES]

    if not content and not image_urls:
        raise HTTPException(status_code=400, detail="Provide a document, text or images")

    try:
        drafts = client.extract(content, image_urls)
    except ExtractionRateLimitError as exc:
        raise HTTPException(status_code=429, detail=str(exc))
    except ExtractionQuotaError as exc:
        raise HTTPException(status_code=402, detail=str(exc))
    except ExtractionError as exc:
        raise HTTPException(status_code=502, detail=str(exc))

    saved: list[dict[str, object]] = []
    if save and drafts:
        saved = [serialize_question_row(q) for q in question_service.add_drafts(db, test, drafts)]

    return {
        "questions": [draft.to_payload() for draft in drafts],
        "saved": saved,
        "logs": logs,
    }


@router.get("/{question_id}")
def get_question(
    test_code: str,
    question_id: str,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    test = load_test(db, test_code)
    return serialize_question_row(question_service.get_question(db, test.id, question_id))


@router.patch("/{question_id}")
def update_question(
    test_code: str,
    question_id: str,
    update: QuestionUpdate,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, object]:
    """Edit a question. The answer key is checked against the updated options."""
    test = load_test(db, test_code)
    question = question_service.get_question(db, test.id, question_id)
    changes = update.model_dump(exclude_unset=True)
    question = question_service.update_question(db, question, changes)
    return serialize_question_row(question)


@router.delete("/{question_id}")
def delete_question(
    test_code: str,
    question_id: str,
    db: Annotated[DbSession, Depends(get_db)],
) -> dict[str, str]:
    """Delete question from test."""
    test = load_test(db, test_code)
    question = question_service.get_question(db, test.id, question_id)
    question_service.delete_question(db, question)
    return {"status": "deleted"}
