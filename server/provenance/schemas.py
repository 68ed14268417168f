"""
Provenance Analysis Schema Definitions

Pydantic models for the API contract, plus the plain dataclasses that carry
repository metadata between pipeline stages.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# PIPELINE DATA (internal)
# =============================================================================

@dataclass(frozen=True)
class CommitInfo:
    """A single commit as it appears in the prompt"""
    message: str
    author: str
    date: str


@dataclass
class RepositorySnapshot:
    """Metadata gathered for one analysis run. Every field may be missing."""
    readme: str | None = None
    manifest: str | None = None
    manifest_path: str = "package.json"
    commits: list[CommitInfo] = field(default_factory=list)

    @property
    def files(self) -> list[tuple[str, str]]:
        """Key files as (path, content) pairs for prompt rendering."""
        if self.manifest is None:
            return []
        return [(self.manifest_path, self.manifest)]


# =============================================================================
# API MODELS
# =============================================================================

class CamelModel(BaseModel):
    """Serializes with camelCase names while accepting either form on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def clamp_score(value: Any) -> int:
    """Round a numeric value to int and clamp it to [0, 100]."""
    if isinstance(value, bool):
        raise ValueError("score must be a number, not a boolean")
    if isinstance(value, int):
        # Arbitrary-precision ints can overflow float conversion
        return max(0, min(100, value))
    if isinstance(value, str):
        value = float(value.strip())
    if not isinstance(value, float) or not math.isfinite(value):
        raise ValueError(f"score must be a finite number, got {value!r}")
    return max(0, min(100, int(round(value))))


class Indicators(CamelModel):
    """Evidence phrases grouped by the pattern family they support"""
    code_patterns: list[str] = Field(default_factory=list, description="Patterns found in code and manifests")
    commit_patterns: list[str] = Field(default_factory=list, description="Patterns found in commit history")
    documentation_patterns: list[str] = Field(default_factory=list, description="Patterns found in the README")

    @field_validator("code_patterns", "commit_patterns", "documentation_patterns", mode="before")
    @classmethod
    def _coerce_list(cls, value):
        if not isinstance(value, list):
            return []
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]


class AnalysisResult(CamelModel):
    """
    The verdict returned for a repository.

    Numeric fields are clamped to [0, 100] on construction and indicator
    lists are always present.
    """
    vci_score: int = Field(..., ge=0, le=100, description="Vibe Code Index: 0 = human-written, 100 = AI-generated")
    analysis: str = Field(..., description="Short explanation of the assessment")
    confidence: int = Field(..., ge=0, le=100, description="How certain the assessment is")
    indicators: Indicators = Field(default_factory=Indicators, description="Supporting evidence")

    @field_validator("vci_score", "confidence", mode="before")
    @classmethod
    def _clamp(cls, value):
        return clamp_score(value)

    @field_validator("indicators", mode="before")
    @classmethod
    def _default_indicators(cls, value):
        if value is None or not isinstance(value, (dict, Indicators)):
            return Indicators()
        return value


class Interpretation(BaseModel):
    """An AnalysisResult tagged with how the interpreter produced it"""
    result: AnalysisResult
    source: Literal["parsed", "fallback"]


# =============================================================================
# REQUEST / ERROR MODELS
# =============================================================================

class AnalyzeRequest(CamelModel):
    """Request body for POST /analyze-repo"""
    github_url: str | None = Field(None, description="Full GitHub URL to analyze (e.g., https://github.com/user/repo)")


class ErrorResponse(BaseModel):
    """Body returned for every failed request"""
    error: str = Field(..., description="Stable error code (e.g., 'invalid_locator')")
    message: str = Field(..., description="Human-readable explanation")
