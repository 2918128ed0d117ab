"""Pydantic models for brief requests, section results, and the trust payload."""

from datetime import date, datetime
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import (
    Field,
    StrictStr,
    field_validator,
    model_serializer,
    model_validator,
)

from schemas.chunk import UnstructuredChunk
from schemas.hotel import PromotionValidity, Season, TravelerType
from schemas.source_record import CamelModel, Citation


class Role(str, Enum):
    RESERVATIONS = "reservations"
    MARKETING = "marketing"
    DESTINATION_SPECIALIST = "destination_specialist"
    FINANCE = "finance"


class SectionKey(str, Enum):
    POSITIONING = "positioning"
    TRAVELER_FIT = "travelerFit"
    RISKS = "risks"
    PROMOTIONS = "promotions"
    UJV_POV = "ujvPov"


class SectionStatus(str, Enum):
    OK = "OK"
    INSUFFICIENT_SOURCES = "INSUFFICIENT_SOURCES"


class RetrievalMode(str, Enum):
    DETERMINISTIC = "deterministic"
    NARRATIVE_ASSISTED = "narrative_assisted"


# Sections the narrative service may rewrite; promotions stay structured-only
NARRATIVE_SECTIONS = (
    SectionKey.POSITIONING,
    SectionKey.TRAVELER_FIT,
    SectionKey.RISKS,
    SectionKey.UJV_POV,
)


# ── Request ──


class BriefRequest(CamelModel):
    """A validated, fully populated query."""

    hotel_id: StrictStr = Field(min_length=1)
    traveler_type: TravelerType
    season: Season
    include_risks: bool = True
    include_promotions: bool = True
    include_ujv_pov: bool = True
    role: Role
    use_llm: bool = Field(default=False, alias="useLLM")

    @field_validator("include_risks", "include_promotions", "include_ujv_pov", mode="before")
    @classmethod
    def _default_include_flag(cls, value):
        return value if isinstance(value, bool) else True

    @field_validator("use_llm", mode="before")
    @classmethod
    def _default_use_llm(cls, value):
        return value if isinstance(value, bool) else False

    def requested_sections(self) -> list[SectionKey]:
        sections = [SectionKey.POSITIONING, SectionKey.TRAVELER_FIT]
        if self.include_risks:
            sections.append(SectionKey.RISKS)
        if self.include_promotions:
            sections.append(SectionKey.PROMOTIONS)
        if self.include_ujv_pov:
            sections.append(SectionKey.UJV_POV)
        return sections


class QueryTerms(CamelModel):
    global_terms: list[str] = Field(default_factory=list, alias="global")
    per_section: dict[SectionKey, list[str]] = Field(default_factory=dict)


class QueryPlan(CamelModel):
    hotel_id: str
    hotel_name: str
    traveler_type: TravelerType
    season: Season
    role: Role
    sections_requested: list[SectionKey]
    retrieval_mode: RetrievalMode
    query_terms: QueryTerms
    created_at: datetime


# ── Sections ──


class ConflictEvent(CamelModel):
    chunk_id: str
    reason: str
    structured_rule_ref: str = Field(description="Path into the canonical data the chunk contradicts")


class RetrievalBreakdown(CamelModel):
    structured_facts_count: int
    semantic_chunks_count: int
    overrides_applied: bool
    conflicts_ignored_count: int


class TextSection(CamelModel):
    status: SectionStatus
    content: str
    citations: list[Citation] = Field(default_factory=list)
    semantic_chunks_used: list[UnstructuredChunk] = Field(default_factory=list)
    retrieval_breakdown: RetrievalBreakdown
    conflicts_ignored: list[ConflictEvent] = Field(default_factory=list)
    ai_modified: bool = False


class PromoSummary(CamelModel):
    promo_id: str
    name: str
    description: str
    validity: PromotionValidity
    eligibility: list[str] = Field(default_factory=list)


class StackingRuleSummary(CamelModel):
    rule_id: str
    text: str
    allows_combination: bool
    applies_to_promo_ids: list[str] = Field(default_factory=list)


class PromotionsContent(CamelModel):
    promos: list[PromoSummary] = Field(default_factory=list)
    stacking_rules: list[StackingRuleSummary] = Field(default_factory=list)


class PromotionsSection(CamelModel):
    status: SectionStatus
    content: PromotionsContent
    citations: list[Citation] = Field(default_factory=list)
    semantic_chunks_used: list[UnstructuredChunk] = Field(default_factory=list)
    retrieval_breakdown: RetrievalBreakdown
    conflicts_ignored: list[ConflictEvent] = Field(default_factory=list)
    ai_modified: bool = False


AnySection = Union[TextSection, PromotionsSection]

_SECTION_FIELDS = {
    SectionKey.POSITIONING: "positioning",
    SectionKey.TRAVELER_FIT: "traveler_fit",
    SectionKey.RISKS: "risks",
    SectionKey.PROMOTIONS: "promotions",
    SectionKey.UJV_POV: "ujv_pov",
}


class BriefSections(CamelModel):
    """Section results; optional sections exist only when requested."""

    positioning: TextSection
    traveler_fit: TextSection
    risks: Optional[TextSection] = None
    promotions: Optional[PromotionsSection] = None
    ujv_pov: Optional[TextSection] = None

    def get(self, key: SectionKey) -> Optional[AnySection]:
        return getattr(self, _SECTION_FIELDS[key])

    def present(self) -> list[SectionKey]:
        return [key for key in SectionKey if self.get(key) is not None]

    def items(self) -> list[tuple[SectionKey, AnySection]]:
        return [(key, self.get(key)) for key in self.present()]

    def replace(self, updates: dict[SectionKey, AnySection]) -> "BriefSections":
        """Copy with the given sections swapped in."""
        return self.model_copy(
            update={_SECTION_FIELDS[key]: section for key, section in updates.items()}
        )

    @model_serializer(mode="wrap")
    def _omit_unrequested(self, handler):
        data = handler(self)
        return {key: value for key, value in data.items() if value is not None}


# ── Trust ──


class FreshnessSummary(CamelModel):
    promotions_last_verified_date: Optional[date] = None
    most_recent_site_visit_date: Optional[date] = None
    last_feedback_date: Optional[date] = None
    last_semantic_chunk_date: Optional[date] = None


class TrustStats(CamelModel):
    structured_sources_used: int = 0
    unstructured_sources_used: int = 0
    semantic_chunks_used: int = 0
    structured_facts_used: int = 0
    conflicts_ignored: int = 0


class Guardrails(CamelModel):
    canonical_overrides_notes: bool
    promotions_from_contract_only: bool
    all_sections_backed_by_citations: bool
    sensitive_data_restricted_by_role: bool
    within_freshness_policy: Literal["PASS", "WARN"]
    policy_warnings: list[str] = Field(default_factory=list)


class TrustPayload(CamelModel):
    evidence_strength_score: float = Field(ge=0.0, le=1.0)
    evidence_strength_label: Literal["High", "Medium", "Low"]
    freshness: FreshnessSummary
    stats: TrustStats
    guardrails: Guardrails
    policy_compliance: Literal["PASS", "WARN"]
    policy_snapshot: dict[str, int] = Field(default_factory=dict)
    escalation_needed: bool
    escalation_reason: str = ""


class BriefResponse(CamelModel):
    query_plan: QueryPlan
    sections: BriefSections
    trust: TrustPayload

    @model_validator(mode="after")
    def _sections_match_plan(self):
        requested = set(self.query_plan.sections_requested)
        present = set(self.sections.present())
        if requested != present:
            raise ValueError(
                f"sections {sorted(s.value for s in present)} do not match "
                f"requested {sorted(s.value for s in requested)}"
            )
        return self

    def to_payload(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
