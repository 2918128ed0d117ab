"""Pydantic models for the canonical hotel record.

The hotel record is the single governed source of truth for a query. Every
fact rendered into a brief section comes from here, and every fact carries
the source ids that back it.
"""

from datetime import date
from enum import Enum
from typing import Literal

from pydantic import Field

from schemas.source_record import CanonicalModel


class TravelerType(str, Enum):
    HONEYMOON = "honeymoon"
    MULTI_GEN_FAMILY = "multi_gen_family"
    SOLO_WELLNESS = "solo_wellness"
    CORPORATE_EXECUTIVE = "corporate_executive"


class Season(str, Enum):
    LATE_SEPTEMBER = "late_september"
    PEAK_SUMMER = "peak_summer"
    SHOULDER_APR_MAY = "shoulder_apr_may"
    LOW_NOV_MAR = "low_nov_mar"


class FreshnessPolicy(CanonicalModel):
    # Source types without an entry have no age limit
    max_age_days_by_source_type: dict[str, int] = Field(default_factory=dict)


class Positioning(CanonicalModel):
    strengths: list[str] = Field(default_factory=list)
    source_ids: list[str] = Field(default_factory=list)


class TravelerFit(CanonicalModel):
    common: list[str] = Field(default_factory=list)
    by_type: dict[str, list[str]] = Field(default_factory=dict)
    source_ids: dict[str, list[str]] = Field(
        default_factory=dict,
        description="'common' plus one entry per traveler type",
    )


class Risk(CanonicalModel):
    risk_id: str
    text: str
    severity: Literal["low", "medium", "high"]
    season_relevance: list[Season] = Field(default_factory=list)
    source_ids: list[str] = Field(default_factory=list)


class PromotionValidity(CanonicalModel):
    booking_from: date
    booking_to: date
    travel_from: date
    travel_to: date


class Promotion(CanonicalModel):
    promo_id: str
    name: str
    description: str
    validity: PromotionValidity
    eligibility: list[str] = Field(default_factory=list)
    source_ids: list[str] = Field(default_factory=list)


class StackingRule(CanonicalModel):
    rule_id: str
    text: str
    allows_combination: bool
    applies_to_promo_ids: list[str] = Field(default_factory=list)
    source_ids: list[str] = Field(default_factory=list)


class Contract(CanonicalModel):
    source_ids: list[str] = Field(default_factory=list)
    stacking_rules: list[StackingRule] = Field(default_factory=list)


class BookingIntelligence(CanonicalModel):
    avg_booking_value_usd: float
    qualitative_summary: str
    patterns: list[str] = Field(default_factory=list)
    source_ids: list[str] = Field(default_factory=list)


class FeedbackTheme(CanonicalModel):
    theme_id: str
    label: str
    text: str
    source_ids: list[str] = Field(default_factory=list)


class UjvPov(CanonicalModel):
    talk_track: list[str] = Field(default_factory=list)
    source_ids: list[str] = Field(default_factory=list)


class HotelRecord(CanonicalModel):
    hotel_id: str
    name: str
    country: str = ""
    region: str = ""
    category: str = ""
    owner_team: str = ""
    version: str = ""
    last_updated_at: date
    policy: FreshnessPolicy = Field(default_factory=FreshnessPolicy)
    positioning_tags: list[str] = Field(default_factory=list)
    positioning: Positioning = Field(default_factory=Positioning)
    traveler_fit: TravelerFit = Field(default_factory=TravelerFit)
    seasonality: dict[Season, str] = Field(default_factory=dict)
    risks: list[Risk] = Field(default_factory=list)
    promotions: list[Promotion] = Field(default_factory=list)
    contract: Contract = Field(default_factory=Contract)
    booking_intelligence: BookingIntelligence
    feedback_themes: list[FeedbackTheme] = Field(default_factory=list)
    ujv_pov: UjvPov = Field(default_factory=UjvPov)

    def referenced_source_ids(self) -> list[str]:
        """Every source id the record points at, first-seen order."""
        ids: list[str] = []
        ids.extend(self.positioning.source_ids)
        for group in self.traveler_fit.source_ids.values():
            ids.extend(group)
        for risk in self.risks:
            ids.extend(risk.source_ids)
        for promo in self.promotions:
            ids.extend(promo.source_ids)
        ids.extend(self.contract.source_ids)
        for rule in self.contract.stacking_rules:
            ids.extend(rule.source_ids)
        ids.extend(self.booking_intelligence.source_ids)
        for theme in self.feedback_themes:
            ids.extend(theme.source_ids)
        ids.extend(self.ujv_pov.source_ids)
        return list(dict.fromkeys(ids))
