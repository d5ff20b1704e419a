"""
Process configuration, read once from the environment (and .env) at startup.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_CORS_REGEX = (
    r"^https://ai-code-editor-frontend.*\.vercel\.app$"
    r"|^https?://(localhost|127\.0\.0\.1)(:\d+)?$"
)


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_MODEL
    gemini_base_url: str = DEFAULT_BASE_URL
    request_timeout: float = 60.0
    frontend_url: Optional[str] = None
    cors_origin_regex: str = DEFAULT_CORS_REGEX
    strict_schema: bool = False
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()  # Load environment variables from .env file

        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_MODEL),
            gemini_base_url=os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            request_timeout=float(os.getenv("GEMINI_TIMEOUT", "60")),
            frontend_url=os.getenv("FRONTEND_URL") or None,
            cors_origin_regex=os.getenv("CORS_ORIGIN_REGEX", DEFAULT_CORS_REGEX),
            strict_schema=_as_bool(os.getenv("STRICT_SCHEMA")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=int(os.getenv("PORT", "8000")),
        )


def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')
