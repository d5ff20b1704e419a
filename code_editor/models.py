"""
Data models for the code editor backend.
Using Pydantic for validation and type safety.
"""

from typing import Optional, List, Literal, Dict, Type
from pydantic import BaseModel, ConfigDict, Field


Mode = Literal["review", "fix", "optimize", "explain"]

VALID_MODES = ("review", "fix", "optimize", "explain")


class ReviewRequest(BaseModel):
    """Validated inbound request."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1)
    mode: Mode = "review"


class Issue(BaseModel):
    """Single finding reported in review mode."""

    type: Literal["bug", "performance", "security", "best_practice"]
    severity: Literal["critical", "high", "medium", "low"]
    description: str
    line: Optional[int] = Field(None, description="Line number if applicable")
    suggestion: str


class ReviewResult(BaseModel):
    summary: str
    issues: List[Issue]
    suggestions: List[str]
    timeComplexity: str
    spaceComplexity: str
    rating: float = Field(..., ge=0, le=10)


class FixResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fixedCode: str


class OptimizeResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    optimizedCode: str


class ExplanationResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    explanation: str


# One result shape per mode
RESULT_MODELS: Dict[str, Type[BaseModel]] = {
    "review": ReviewResult,
    "fix": FixResult,
    "optimize": OptimizeResult,
    "explain": ExplanationResult,
}

# Field holding the code text for the code-producing modes
CODE_FIELDS = {
    "fix": "fixedCode",
    "optimize": "optimizedCode",
}
