"""Composite evidence-strength score and escalation decision.

Score = min(1, citations / 8) * avg_reliability * 0.9
        + 0.05 if any citation is at most 120 days old
        + min(0.02, 0.01 * semantic chunks used)
clamped to [0, 1] and rounded to two decimals.

Escalation fires on the first matching trigger, in priority order: low
score, promotions requested without sources, traveler fit without sources,
freshness policy WARN.
"""

import logging
from dataclasses import dataclass
from datetime import date

from processors.freshness import days_old
from schemas.brief import SectionStatus
from schemas.source_record import Citation

logger = logging.getLogger(__name__)

CITATION_SATURATION = 8
RELIABILITY_WEIGHT = 0.9
RECENCY_WINDOW_DAYS = 120
RECENCY_BONUS = 0.05
SEMANTIC_BONUS_PER_CHUNK = 0.01
SEMANTIC_BONUS_CAP = 0.02

HIGH_THRESHOLD = 0.75
ESCALATION_THRESHOLD = 0.60


@dataclass
class EvidenceScore:
    score: float
    label: str
    total_citations: int
    avg_reliability: float
    recent: bool
    semantic_chunks: int


def unique_citations(citations: list[Citation]) -> list[Citation]:
    """First citation per source id."""
    seen: dict[str, Citation] = {}
    for citation in citations:
        seen.setdefault(citation.source_id, citation)
    return list(seen.values())


def strength_label(score: float) -> str:
    if score >= HIGH_THRESHOLD:
        return "High"
    if score >= ESCALATION_THRESHOLD:
        return "Medium"
    return "Low"


class EvidenceScorer:
    """Scores citation volume, reliability and recency for a whole brief."""

    def __init__(self, today: date):
        self.today = today

    def score(self, citations: list[Citation], semantic_chunks: int) -> EvidenceScore:
        unique = unique_citations(citations)
        total = len(unique)
        avg_reliability = sum(c.reliability for c in unique) / total if total else 0.0
        recent = any(days_old(c.date, self.today) <= RECENCY_WINDOW_DAYS for c in unique)

        base = min(1.0, total / CITATION_SATURATION)
        raw = (
            base * (avg_reliability * RELIABILITY_WEIGHT)
            + (RECENCY_BONUS if recent else 0.0)
            + min(SEMANTIC_BONUS_CAP, semantic_chunks * SEMANTIC_BONUS_PER_CHUNK)
        )
        score = round(min(1.0, max(0.0, raw)), 2)

        return EvidenceScore(
            score=score,
            label=strength_label(score),
            total_citations=total,
            avg_reliability=avg_reliability,
            recent=recent,
            semantic_chunks=semantic_chunks,
        )


def decide_escalation(
    evidence: EvidenceScore,
    promotions_requested: bool,
    promotions_citations: int,
    traveler_fit_status: SectionStatus,
    policy_compliance: str,
) -> tuple[bool, str]:
    """Return (escalation_needed, reason); the reason names the first trigger."""
    if evidence.score < ESCALATION_THRESHOLD:
        reason = (
            f"Reason: Evidence Strength below threshold ({ESCALATION_THRESHOLD:.1f}). "
            f"Current score {evidence.score:.2f}"
        )
    elif promotions_requested and promotions_citations == 0:
        reason = "Reason: Promotions requested but no verified promotions/contract sources were found."
    elif traveler_fit_status == SectionStatus.INSUFFICIENT_SOURCES:
        reason = "Reason: Traveler Fit section lacks sufficient verified evidence."
    elif policy_compliance == "WARN":
        reason = "Reason: Policy freshness WARN."
    else:
        return False, ""

    logger.info("Escalation required: %s", reason)
    return True, reason
