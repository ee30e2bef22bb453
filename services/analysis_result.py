"""
Analysis-provider result types.

The AI analysis endpoint returns loosely-shaped JSON for two kinds of audit
(`seo` and `security`). This module validates that payload at the boundary into
typed pydantic models so nothing downstream handles untyped dicts.

- Successful payloads are a tagged union discriminated on `kind`.
- Anything that does not parse or validate becomes an `AnalysisFailure`
  carrying the error and the first 1000 characters of the raw response.

The model call itself is not made here, and nothing in this project calls
`parse_analysis_response` yet: it is the entry point for whichever client
requests the analysis, and tests exercise it directly.
"""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

logger = logging.getLogger(__name__)

RAW_RESPONSE_LIMIT = 1000

_FENCE = re.compile(r"```(?:json)?\n?", re.IGNORECASE)

TextOrList = Union[str, List[str]]


class AnalysisKind(str, Enum):
    SEO = "seo"
    SECURITY = "security"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class _Payload(BaseModel):
    """Base for provider payload parts: camelCase keys in, snake_case attributes out."""

    class Config:
        populate_by_name = True
        extra = "ignore"


class _HasSeverity(_Payload):
    severity: Severity = Severity.MEDIUM

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


class SeoIssue(_HasSeverity):
    title: str
    priority: int = Field(5, ge=1, le=10)
    description: str = ""
    code_snippet: Optional[str] = Field(None, alias="codeSnippet")
    implementation: Optional[str] = None
    impact: Optional[str] = None


class AeoOptimization(_Payload):
    title: str
    description: str = ""
    code_snippet: Optional[str] = Field(None, alias="codeSnippet")
    implementation: Optional[str] = None
    expected_improvement: Optional[str] = Field(None, alias="expectedImprovement")


class TechnicalSeo(_Payload):
    present: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    how_to_add: List[str] = Field(default_factory=list, alias="howToAdd")


class ContentGap(_Payload):
    gap: str
    why_it_matters: Optional[str] = Field(None, alias="whyItMatters")
    suggestions: Optional[TextOrList] = None
    recommended_format: Optional[str] = Field(None, alias="recommendedFormat")


class Recommendation(_Payload):
    title: str
    description: str = ""
    code_snippet: Optional[str] = Field(None, alias="codeSnippet")
    expected_improvement: Optional[str] = Field(None, alias="expectedImprovement")


class SeoAnalysis(_Payload):
    kind: Literal["seo"] = "seo"
    score: int = Field(0, ge=0, le=100)
    grade: str = "N/A"
    seo_issues: List[SeoIssue] = Field(default_factory=list, alias="seoIssues")
    aeo_optimizations: List[AeoOptimization] = Field(default_factory=list, alias="aeoOptimizations")
    technical_seo: TechnicalSeo = Field(default_factory=TechnicalSeo, alias="technicalSeo")
    content_gaps: List[ContentGap] = Field(default_factory=list, alias="contentGaps")
    recommendations: List[Recommendation] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _missing_score_is_zero(cls, value):
        return 0 if value is None else value

    @field_validator("grade", mode="before")
    @classmethod
    def _missing_grade(cls, value):
        return value or "N/A"


class Vulnerability(_HasSeverity):
    title: str
    cve: Optional[str] = None
    description: str = ""
    risk_impact: Optional[str] = Field(None, alias="riskImpact")


class SecurityFix(_Payload):
    vulnerability: str
    code_fix: Optional[str] = Field(None, alias="codeFix")
    configuration: Optional[str] = None
    best_practices: Optional[TextOrList] = Field(None, alias="bestPractices")


class StrategicReport(_Payload):
    executive_summary: Optional[str] = Field(None, alias="executiveSummary")
    detailed_findings: Optional[TextOrList] = Field(None, alias="detailedFindings")
    remediation_roadmap: Optional[TextOrList] = Field(None, alias="remediationRoadmap")
    expected_improvements: Optional[TextOrList] = Field(None, alias="expectedImprovements")


class SecurityAnalysis(_Payload):
    kind: Literal["security"] = "security"
    risk_score: int = Field(0, ge=0, le=100, alias="riskScore")
    vulnerabilities: List[Vulnerability] = Field(default_factory=list)
    fixes: List[SecurityFix] = Field(default_factory=list)
    strategic_report: Optional[StrategicReport] = Field(None, alias="strategicReport")


class AnalysisFailure(BaseModel):
    """A payload that could not be parsed or validated for the requested kind."""

    kind: AnalysisKind
    error: str
    raw_response: str = ""


AnalysisPayload = Annotated[Union[SeoAnalysis, SecurityAnalysis], Field(discriminator="kind")]
AnalysisResult = Union[SeoAnalysis, SecurityAnalysis, AnalysisFailure]

_payload_adapter: TypeAdapter = TypeAdapter(AnalysisPayload)


def strip_code_fences(content: str) -> str:
    return _FENCE.sub("", content).strip()


def parse_analysis_response(kind: AnalysisKind | str, content: str) -> AnalysisResult:
    """
    Validate a raw provider response for the requested analysis kind.

    Never raises for bad content; returns `AnalysisFailure` instead.
    Raises ValueError only for an unknown `kind`.
    """

    kind = AnalysisKind(kind)
    raw = content or ""

    try:
        data = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as e:
        logger.warning("Analysis response is not valid JSON", extra={"kind": kind.value, "error": str(e)})
        return AnalysisFailure(
            kind=kind,
            error="Failed to parse JSON response",
            raw_response=raw[:RAW_RESPONSE_LIMIT],
        )

    if not isinstance(data, dict):
        return AnalysisFailure(
            kind=kind,
            error="Analysis response must be a JSON object",
            raw_response=raw[:RAW_RESPONSE_LIMIT],
        )

    data["kind"] = kind.value
    try:
        return _payload_adapter.validate_python(data)
    except ValidationError as e:
        logger.warning(
            "Analysis response failed validation",
            extra={"kind": kind.value, "error_count": e.error_count()},
        )
        return AnalysisFailure(
            kind=kind,
            error=f"Invalid {kind.value} analysis payload: {e.error_count()} validation error(s)",
            raw_response=raw[:RAW_RESPONSE_LIMIT],
        )


__all__ = [
    "AnalysisFailure",
    "AnalysisKind",
    "AnalysisPayload",
    "AnalysisResult",
    "SecurityAnalysis",
    "SeoAnalysis",
    "Severity",
    "parse_analysis_response",
    "strip_code_fences",
]
