"""
Core reviewer module.

Validates the request, builds the prompt, makes the single Gemini call and
normalizes the reply. The client is created once per process and passed in
explicitly; nothing here keeps per-request state.
"""

import time
import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

from code_editor.config import Settings
from code_editor.models import ReviewRequest, VALID_MODES
from code_editor.normalizer import Status, normalize
from code_editor.prompts import build_prompt, PROMPT_VERSION

logger = logging.getLogger(__name__)


class ReviewerError(Exception):
    """Base exception for reviewer errors."""
    pass


class InvalidRequestError(ReviewerError):
    """Request is missing a field or names an unknown mode."""
    pass


class UpstreamError(ReviewerError):
    """Gemini API answered with a non-success status."""

    def __init__(self, status_code: int, message: str, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details


class EmptyModelOutput(ReviewerError):
    """Gemini API answered 2xx but without any reply text."""
    pass


class NormalizationFailure(ReviewerError):
    """Review reply could not be parsed; carries the raw text for debugging."""

    def __init__(self, raw_text: str, parse_error: Optional[str]):
        super().__init__("Failed to parse AI response as JSON")
        self.raw_text = raw_text
        self.parse_error = parse_error


def validate_request(payload: Any) -> ReviewRequest:
    """Check an inbound body before any prompt is built or call is made."""
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    code = payload.get("code")
    if not code or not isinstance(code, str):
        raise InvalidRequestError("Code is required")

    language = payload.get("language")
    if not language or not isinstance(language, str):
        raise InvalidRequestError("Programming language is required")

    mode = payload.get("mode") or "review"
    if mode not in VALID_MODES:
        raise InvalidRequestError(
            f"Invalid mode. Must be one of: {', '.join(VALID_MODES)}"
        )

    return ReviewRequest(code=code, language=language, mode=mode)


class GeminiClient:
    """
    Thin client for the Gemini generateContent REST endpoint.

    Failure modes:
    - Non-2xx response -> raises UpstreamError with the upstream status
    - 2xx without reply text -> raises EmptyModelOutput
    - Transport errors (connection, timeout) -> requests exceptions propagate
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise ReviewerError("GEMINI_API_KEY not set")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiClient":
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.request_timeout,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def generate(self, prompt: str) -> str:
        response = self.session.post(
            self.endpoint,
            params={"key": self.api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
            timeout=self.timeout,
        )

        try:
            data = response.json()
        except ValueError:
            data = {"error": {"message": response.text}}

        if not response.ok:
            error = data.get("error") if isinstance(data, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            logger.warning(f"Gemini API returned {response.status_code}: {message}")
            raise UpstreamError(response.status_code, message or "AI API Error", data)

        return _extract_text(data)


def _extract_text(data: Any) -> str:
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise EmptyModelOutput("No text content found in model response")
    if not isinstance(text, str):
        raise EmptyModelOutput("No text content found in model response")
    return text


@dataclass(frozen=True)
class ReviewOutcome:
    mode: str
    data: dict
    status: Status


def review_code(
    request: ReviewRequest,
    client: GeminiClient,
    strict: bool = False,
) -> ReviewOutcome:
    """
    Run one request through prompt -> model -> normalizer.

    Raises NormalizationFailure when a review reply cannot be parsed; the
    other modes always recover from the raw text.
    """
    start_time = time.time()

    prompt = build_prompt(request.code, request.language, request.mode)
    raw_text = client.generate(prompt)
    normalized = normalize(raw_text, request.mode, strict=strict)

    logger.info(
        f"{request.mode} ({request.language}) finished with status "
        f"{normalized.status.value} in {round(time.time() - start_time, 2)}s "
        f"[prompt {PROMPT_VERSION}]"
    )

    if normalized.failed:
        raise NormalizationFailure(normalized.raw_text, normalized.parse_error)

    return ReviewOutcome(mode=request.mode, data=normalized.data, status=normalized.status)
