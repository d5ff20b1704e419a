"""
Response normalizer.

Turns the model's free-text reply into the JSON shape of the requested mode.
Each step below is a pure text transform so it can be tested on its own:

    strip_fences -> extract_json_span -> parse_object -> (recovery)

normalize() never raises. When the reply cannot be parsed, fix/optimize/explain
fall back to the raw text (lossless), while review reports a failure rather
than inventing findings.
"""

import json
import math
import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import ValidationError

from code_editor.models import CODE_FIELDS, RESULT_MODELS

logger = logging.getLogger(__name__)

JSON_FENCE = re.compile(r"```json\n?", re.IGNORECASE)
BARE_FENCE = re.compile(r"```\n?")
JSON_SPAN = re.compile(r"\{[\s\S]*\}")
CODE_BLOCK = re.compile(r"```[\s\S]*?```")
OPENING_FENCE = re.compile(r"```\w*\n?")


class Status(str, Enum):
    OK = "ok"
    RECOVERED = "recovered"
    FAILED = "failed"


@dataclass(frozen=True)
class NormalizedResponse:
    status: Status
    data: Optional[dict]
    raw_text: str
    parse_error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status is Status.FAILED


def strip_fences(text: str) -> str:
    """Remove ```json and bare ``` markers anywhere in the text."""
    cleaned = JSON_FENCE.sub("", text.strip())
    cleaned = BARE_FENCE.sub("", cleaned)
    return cleaned.strip()


def extract_json_span(text: str) -> Optional[str]:
    """Return the first '{' through the last '}' or None."""
    match = JSON_SPAN.search(text)
    if match:
        return match.group(0)
    return None


def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON constant: {name}")


def _finite_float(value: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Number out of range: {value}")
    return number


def parse_object(text: str) -> dict:
    """Strict JSON parse that only accepts an object at the top level.

    NaN, Infinity and out-of-range floats are rejected like JSON.parse does.
    """
    data = json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def extract_code_block(text: str) -> Optional[str]:
    """Inner text of the first fenced code block, without markers or tag."""
    match = CODE_BLOCK.search(text)
    if not match:
        return None
    inner = OPENING_FENCE.sub("", match.group(0))
    return inner.replace("```", "").strip()


def _recover(raw_text: str, mode: str) -> Optional[dict]:
    if mode == "explain":
        return {"explanation": strip_fences(raw_text)}

    if mode in CODE_FIELDS:
        code = extract_code_block(raw_text)
        if code is None:
            code = strip_fences(raw_text)
        return {CODE_FIELDS[mode]: code}

    # Review output is too rich to guess
    return None


def _schema_error(data: dict, mode: str) -> Optional[str]:
    model = RESULT_MODELS.get(mode)
    if model is None:
        return f"Unknown mode: {mode}"
    try:
        model.model_validate(data)
    except ValidationError as e:
        return str(e)
    return None


def normalize(raw_text: str, mode: str, strict: bool = False) -> NormalizedResponse:
    """
    Normalize a model reply for the given mode.

    With strict=True a parsed object is also validated against the mode's
    result model and downgraded to FAILED on mismatch. By default parsed JSON
    is passed through as-is.
    """
    raw_text = raw_text or ""
    cleaned = strip_fences(raw_text)
    candidate = extract_json_span(cleaned) or cleaned

    try:
        data = parse_object(candidate)
    except (ValueError, RecursionError) as e:
        parse_error = str(e)
    else:
        if strict:
            schema_error = _schema_error(data, mode)
            if schema_error:
                logger.error(f"Model reply does not match the {mode} schema")
                return NormalizedResponse(Status.FAILED, None, raw_text, schema_error)
        return NormalizedResponse(Status.OK, data, raw_text)

    recovered = _recover(raw_text, mode)
    if recovered is None:
        logger.error(f"Could not parse {mode} reply as JSON: {parse_error}")
        return NormalizedResponse(Status.FAILED, None, raw_text, parse_error)

    logger.warning(f"Recovered {mode} reply from non-JSON text: {parse_error}")
    return NormalizedResponse(Status.RECOVERED, recovered, raw_text, parse_error)
