"""
Catalog Schemas

Pydantic models for the CDR and test library documents. Field aliases match
the camelCase document-store shape; snake_case names are accepted as well.
Each schema converts itself into the frozen domain dataclass it describes.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .base import (
    CdrComponent,
    CdrDefinition,
    ComponentOption,
    ComponentSource,
    ComponentType,
    ScoringMethod,
    ScoringRange,
    ScoringSpec,
    TestCategory,
    TestDefinition,
)


class _CatalogModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ComponentOptionSchema(_CatalogModel):
    label: str
    value: float


class CdrComponentSchema(_CatalogModel):
    id: str
    label: str
    type: ComponentType
    source: ComponentSource
    options: Optional[List[ComponentOptionSchema]] = None
    # Catalog documents store a boolean's point weight under "value"
    value: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    auto_populate_from: Optional[str] = Field(None, alias="autoPopulateFrom")

    @model_validator(mode="after")
    def _check_shape(self) -> "CdrComponentSchema":
        if self.type == ComponentType.SELECT and not self.options:
            raise ValueError(f"select component '{self.id}' has no options")
        if (
            self.type == ComponentType.NUMBER_RANGE
            and self.min is not None
            and self.max is not None
            and self.min > self.max
        ):
            raise ValueError(f"number_range component '{self.id}' has min > max")
        return self

    def to_domain(self) -> CdrComponent:
        return CdrComponent(
            id=self.id,
            label=self.label,
            type=self.type,
            source=self.source,
            options=tuple(
                ComponentOption(label=o.label, value=_as_number(o.value))
                for o in (self.options or [])
            ),
            weight=_as_number(self.value) if self.value is not None else 1,
            min=_as_number(self.min) if self.min is not None else None,
            max=_as_number(self.max) if self.max is not None else None,
            auto_populate_from=self.auto_populate_from,
        )


class ScoringRangeSchema(_CatalogModel):
    min: float
    max: float
    risk: str
    interpretation: str


class ScoringSchema(_CatalogModel):
    method: ScoringMethod
    ranges: List[ScoringRangeSchema] = Field(default_factory=list)


class CdrDefinitionSchema(_CatalogModel):
    id: str
    name: str
    full_name: str = Field(alias="fullName")
    category: str = ""
    application: str = ""
    applicable_chief_complaints: List[str] = Field(default_factory=list, alias="applicableChiefComplaints")
    keywords: List[str] = Field(default_factory=list)
    required_tests: List[str] = Field(default_factory=list, alias="requiredTests")
    components: List[CdrComponentSchema] = Field(default_factory=list)
    scoring: ScoringSchema
    suggested_treatments: Dict[str, List[str]] = Field(default_factory=dict, alias="suggestedTreatments")

    @model_validator(mode="after")
    def _unique_components(self) -> "CdrDefinitionSchema":
        ids = [c.id for c in self.components]
        if len(ids) != len(set(ids)):
            raise ValueError(f"CDR '{self.id}' has duplicate component ids")
        return self

    def to_domain(self) -> CdrDefinition:
        return CdrDefinition(
            id=self.id,
            name=self.name,
            full_name=self.full_name,
            applicable_chief_complaints=tuple(self.applicable_chief_complaints),
            components=tuple(c.to_domain() for c in self.components),
            scoring=ScoringSpec(
                method=self.scoring.method,
                ranges=tuple(
                    ScoringRange(
                        min=_as_number(r.min),
                        max=_as_number(r.max),
                        risk=r.risk,
                        interpretation=r.interpretation,
                    )
                    for r in self.scoring.ranges
                ),
            ),
            suggested_treatments={k: tuple(v) for k, v in self.suggested_treatments.items()},
            category=self.category,
            application=self.application,
            keywords=tuple(self.keywords),
            required_tests=tuple(self.required_tests),
        )


class TestDefinitionSchema(_CatalogModel):
    __test__ = False

    id: str
    name: str
    category: TestCategory
    subcategory: str = ""
    common_indications: List[str] = Field(default_factory=list, alias="commonIndications")
    unit: Optional[str] = None
    normal_range: Optional[str] = Field(None, alias="normalRange")
    quick_findings: Optional[List[str]] = Field(None, alias="quickFindings")
    feeds_cdrs: List[str] = Field(default_factory=list, alias="feedsCdrs")

    def to_domain(self) -> TestDefinition:
        return TestDefinition(
            id=self.id,
            name=self.name,
            category=self.category,
            subcategory=self.subcategory,
            common_indications=tuple(self.common_indications),
            unit=self.unit,
            normal_range=self.normal_range,
            quick_findings=tuple(self.quick_findings) if self.quick_findings is not None else None,
            feeds_cdrs=tuple(self.feeds_cdrs),
        )


def _as_number(value: float):
    """Keep integral catalog values as ints so scores read 5, not 5.0."""
    return int(value) if float(value).is_integer() else value
