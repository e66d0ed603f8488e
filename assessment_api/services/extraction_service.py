"""Client for the AI question extraction gateway."""
import logging

import requests

from assessment_api.config import (
    EXTRACTION_API_KEY,
    EXTRACTION_API_URL,
    EXTRACTION_MAX_IMAGES,
    EXTRACTION_MODEL,
    EXTRACTION_TIMEOUT_SECONDS,
)
from errors import ExtractionError, ExtractionQuotaError, ExtractionRateLimitError
from question_extract import (
    QuestionDraft,
    build_extraction_messages,
    normalize_extracted_questions,
    parse_extraction_content,
)

log = logging.getLogger(__name__)


class ExtractionClient:
    """
    Sends document text and images to an OpenAI-compatible chat completions
    endpoint and turns the reply into question drafts.
    """

    def __init__(
        self,
        api_url: str = EXTRACTION_API_URL,
        api_key: str | None = EXTRACTION_API_KEY,
        model: str = EXTRACTION_MODEL,
        timeout: int = EXTRACTION_TIMEOUT_SECONDS,
        max_images: int = EXTRACTION_MAX_IMAGES,
        session: requests.Session | None = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_images = max_images
        self.session = session or requests.Session()

    def complete(self, text: str, images: list[str] | None = None) -> str:
        """Run the extraction prompt and return the raw model reply."""
        if not self.api_key:
            raise ExtractionError("EXTRACTION_API_KEY is not configured")

        payload = {
            "model": self.model,
            "messages": build_extraction_messages(text, (images or [])[: self.max_images]),
        }
        try:
            response = self.session.post(
                self.api_url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            log.error("Extraction gateway unreachable: %s", exc)
            raise ExtractionError(f"Extraction gateway unreachable: {exc}") from exc

        if response.status_code == 429:
            raise ExtractionRateLimitError("Rate limit exceeded. Please try again later.")
        if response.status_code == 402:
            raise ExtractionQuotaError("AI credits exhausted. Please add credits.")
        if not response.ok:
            log.error("Extraction gateway error %s: %s", response.status_code, response.text)
            raise ExtractionError(f"Extraction gateway error: {response.status_code}")

        try:
            data = response.json()
            return data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ExtractionError("Unexpected extraction gateway response") from exc

    def extract(self, text: str, images: list[str] | None = None) -> list[QuestionDraft]:
        """Extract multiple-choice question drafts from document content."""
        if not text.strip() and not images:
            return []
        content = self.complete(text, images)
        raw_questions = parse_extraction_content(content)
        log.info("Extraction reply contained %d questions", len(raw_questions))
        return normalize_extracted_questions(raw_questions)


def get_extraction_client() -> ExtractionClient:
    """Dependency returning an extraction client built from configuration."""
    return ExtractionClient()
