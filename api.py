"""
FastAPI app for the AI code editor backend.
Exposes review / fix / optimize / explain over a single endpoint.
"""

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Callable

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from code_editor.config import Settings, configure_logging
from code_editor.prompts import PROMPT_VERSION
from code_editor.reviewer import (
    GeminiClient,
    InvalidRequestError,
    NormalizationFailure,
    ReviewerError,
    UpstreamError,
    review_code,
    validate_request,
)

settings = Settings.from_env()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


def get_settings() -> Settings:
    return settings


@lru_cache(maxsize=4)
def build_client(config: Settings) -> GeminiClient:
    """Process-wide Gemini client, built on first use."""
    return GeminiClient.from_settings(config)


def get_client(config: Settings = Depends(get_settings)) -> Callable[[], GeminiClient]:
    """Client provider; handlers call it only after the request is validated."""
    return lambda: build_client(config)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Server starting on port {settings.port} "
        f"(model: {settings.gemini_model}, prompt {PROMPT_VERSION})"
    )
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set - model calls will fail")
    yield


app = FastAPI(
    title="AI Code Editor Backend",
    description="Review, fix, optimize and explain code with Gemini",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url] if settings.frontend_url else [],
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Error envelopes ─────────────────────────────────────────────────────────

@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return JSONResponse({"success": False, "error": str(exc)}, status_code=400)


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    return JSONResponse(
        {"success": False, "error": exc.message, "details": exc.details},
        status_code=exc.status_code,
    )


@app.exception_handler(NormalizationFailure)
async def normalization_failure_handler(request: Request, exc: NormalizationFailure):
    return JSONResponse(
        {
            "success": False,
            "error": str(exc),
            "rawResponse": exc.raw_text,
            "parseError": exc.parse_error,
        },
        status_code=500,
    )


@app.exception_handler(ReviewerError)
async def reviewer_error_handler(request: Request, exc: ReviewerError):
    logger.error(f"Reviewer error: {exc}")
    return JSONResponse({"success": False, "error": str(exc)}, status_code=500)


def unexpected_fault(exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error while handling request")
    return JSONResponse({"success": False, "error": str(exc)}, status_code=500)


async def read_json(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None

# ── Endpoints ───────────────────────────────────────────────────────────────

@app.get("/", response_class=PlainTextResponse)
def root():
    return "Hello World"


@app.post("/api/review")
async def review(
    request: Request,
    client_provider: Callable[[], GeminiClient] = Depends(get_client),
    config: Settings = Depends(get_settings),
):
    review_request = validate_request(await read_json(request))
    client = client_provider()

    try:
        outcome = await run_in_threadpool(
            review_code, review_request, client, config.strict_schema
        )
    except ReviewerError:
        raise
    except Exception as e:
        return unexpected_fault(e)

    return {"success": True, "mode": outcome.mode, "data": outcome.data}


@app.post("/api/test")
async def model_check(
    request: Request,
    client_provider: Callable[[], GeminiClient] = Depends(get_client),
):
    """Send a message straight to the model to check the API key."""
    payload = await read_json(request)
    message = payload.get("message") if isinstance(payload, dict) else None
    if not message:
        return JSONResponse({"error": "Message is required"}, status_code=400)

    client = client_provider()

    try:
        answer = await run_in_threadpool(client.generate, message)
    except ReviewerError:
        raise
    except Exception as e:
        return unexpected_fault(e)

    return {"success": True, "answer": answer}
