"""
API Models

Request and response bodies for the CDR service endpoints.
Differential items accept both snake_case and camelCase keys.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.cdr.base import ComponentSource, DifferentialItem


class DiagnosisInput(BaseModel):
    """One entry of the worst-first differential."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    diagnosis: str = ""
    reasoning: str = ""
    cdr_context: Optional[str] = Field(default=None, alias="cdrContext")
    urgency: Optional[str] = None
    regional_context: Optional[str] = Field(default=None, alias="regionalContext")

    def to_domain(self) -> DifferentialItem:
        return DifferentialItem(
            diagnosis=self.diagnosis or "",
            reasoning=self.reasoning or "",
            cdr_context=self.cdr_context,
            urgency=self.urgency,
            regional_context=self.regional_context,
        )


def to_differential(items: List[DiagnosisInput]) -> List[DifferentialItem]:
    return [item.to_domain() for item in items]


# ── Requests ─────────────────────────────────────────────────────────────────

class IdentifyRequest(BaseModel):
    differential: List[DiagnosisInput] = Field(default_factory=list)


class RecommendTestsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    differential: List[DiagnosisInput] = Field(default_factory=list)
    trusted_ids: Optional[List[str]] = Field(
        default=None,
        alias="trustedIds",
        description="Test ids from an upstream recommendation list; kept first",
    )


class InitializeTrackingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    differential: List[DiagnosisInput] = Field(default_factory=list)
    auto_populated: Optional[Dict[str, Dict[str, Any]]] = Field(
        default=None,
        alias="autoPopulated",
        description="{cdr_id: {component_id: value}} from narrative extraction",
    )
    section: Optional[int] = Field(default=None, description="Documentation section (1-3)")


class AnswerComponentRequest(BaseModel):
    value: Union[bool, int, float]
    source: ComponentSource = ComponentSource.USER_INPUT


class ProposalsRequest(BaseModel):
    source: ComponentSource = Field(
        default=ComponentSource.SECTION2,
        description="Automated channel the batch comes from",
    )
    proposals: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @field_validator("source")
    @classmethod
    def _automated_source(cls, value: ComponentSource) -> ComponentSource:
        if value == ComponentSource.USER_INPUT:
            raise ValueError("proposals come from section1 or section2")
        return value


# ── Responses ────────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
    uptime_seconds: float
    cdr_count: int
    test_count: int
    encounter_count: int


class IdentifyResponse(BaseModel):
    identified: List[Dict[str, Any]]


class RecommendTestsResponse(BaseModel):
    test_ids: List[str]


class TrackingResponse(BaseModel):
    encounter_id: str
    current_section: int
    tracking: Dict[str, Dict[str, Any]]


class EntryResponse(BaseModel):
    encounter_id: str
    cdr_id: str
    entry: Dict[str, Any]
    effective_status: str


class ExcludedResponse(BaseModel):
    encounter_id: str
    cdr_id: str
    excluded: bool


class ProposalsResponse(BaseModel):
    encounter_id: str
    updated: List[str]
    tracking: Dict[str, Dict[str, Any]]


class DocumentationResponse(BaseModel):
    encounter_id: str
    mdm_lines: List[str]
    summary: Dict[str, Any]
    suggested_treatments: List[Dict[str, Any]]
