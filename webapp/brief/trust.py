"""Trust payload aggregation over all produced sections of a brief."""

import logging
from datetime import date
from typing import Optional

from generators.section_builders import format_usd_figure
from processors.evidence_scorer import EvidenceScorer, decide_escalation
from processors.freshness import FreshnessEvaluator
from schemas.brief import (
    BriefRequest,
    BriefSections,
    FreshnessSummary,
    Guardrails,
    Role,
    SectionStatus,
    TrustPayload,
    TrustStats,
)
from schemas.hotel import HotelRecord
from schemas.source_record import UNSTRUCTURED_SOURCE_TYPES, SourceRecord, SourceType

logger = logging.getLogger(__name__)


def _latest(dates: list[Optional[date]]) -> Optional[date]:
    valid = [d for d in dates if d is not None]
    return max(valid) if valid else None


def booking_value_exposed(hotel: HotelRecord, sections: BriefSections) -> bool:
    """Best-effort check: is the booking figure, as rendered, in traveler-fit text?

    This is a substring heuristic. A rewritten narrative that phrases the
    figure differently would not be caught.
    """
    figure = format_usd_figure(hotel.booking_intelligence.avg_booking_value_usd)
    return figure in sections.traveler_fit.content


def build_trust_payload(
    hotel: HotelRecord,
    sections: BriefSections,
    sources: dict[str, SourceRecord],
    request: BriefRequest,
    today: date,
) -> TrustPayload:
    """Aggregate evidence strength, freshness, stats, guardrails and escalation."""
    produced = sections.items()
    all_citations = [c for _, s in produced for c in s.citations]
    semantic_used = sum(len(s.semantic_chunks_used) for _, s in produced)

    evidence = EvidenceScorer(today).score(all_citations, semantic_used)

    cited_sources = [
        sources[source_id]
        for source_id in dict.fromkeys(c.source_id for c in all_citations)
        if source_id in sources
    ]
    unstructured_count = sum(
        1 for s in cited_sources if s.source_type in UNSTRUCTURED_SOURCE_TYPES
    )
    conflicts_total = sum(len(s.conflicts_ignored) for _, s in produced)

    promotions = sections.promotions
    promo_dates = []
    if promotions is not None:
        for citation in promotions.citations:
            if citation.source_type not in (SourceType.PROMOTION, SourceType.CONTRACT):
                continue
            source = sources.get(citation.source_id)
            verified = source.last_verified_at if source is not None else None
            promo_dates.append(verified or citation.date)

    freshness = FreshnessSummary(
        promotions_last_verified_date=_latest(promo_dates),
        most_recent_site_visit_date=_latest(
            [s.date for s in cited_sources if s.source_type == SourceType.SITE_VISIT]
        ),
        last_feedback_date=_latest(
            [s.date for s in cited_sources if s.source_type == SourceType.POST_TRIP_FEEDBACK]
        ),
        last_semantic_chunk_date=_latest(
            [c.date for _, s in produced for c in s.semantic_chunks_used]
        ),
    )

    policy = hotel.policy.max_age_days_by_source_type
    report = FreshnessEvaluator(policy, today).evaluate(produced)

    sensitive_restricted = request.role == Role.FINANCE or not booking_value_exposed(hotel, sections)
    if not sensitive_restricted:
        logger.warning("Booking value figure found in traveler fit for role %s", request.role.value)

    guardrails = Guardrails(
        canonical_overrides_notes=conflicts_total > 0,
        promotions_from_contract_only=promotions is None or not promotions.semantic_chunks_used,
        all_sections_backed_by_citations=all(
            s.citations and s.status == SectionStatus.OK for _, s in produced
        ),
        sensitive_data_restricted_by_role=sensitive_restricted,
        within_freshness_policy=report.compliance,
        policy_warnings=report.warnings,
    )

    escalation_needed, escalation_reason = decide_escalation(
        evidence,
        promotions_requested=request.include_promotions,
        promotions_citations=len(promotions.citations) if promotions is not None else 0,
        traveler_fit_status=sections.traveler_fit.status,
        policy_compliance=report.compliance,
    )

    logger.info(
        "Trust for %s: score=%.2f (%s), citations=%d, compliance=%s, escalate=%s",
        hotel.hotel_id,
        evidence.score,
        evidence.label,
        evidence.total_citations,
        report.compliance,
        escalation_needed,
    )

    return TrustPayload(
        evidence_strength_score=evidence.score,
        evidence_strength_label=evidence.label,
        freshness=freshness,
        stats=TrustStats(
            structured_sources_used=len(cited_sources) - unstructured_count,
            unstructured_sources_used=unstructured_count,
            semantic_chunks_used=semantic_used,
            structured_facts_used=sum(
                s.retrieval_breakdown.structured_facts_count for _, s in produced
            ),
            conflicts_ignored=conflicts_total,
        ),
        guardrails=guardrails,
        policy_compliance=report.compliance,
        policy_snapshot=dict(policy),
        escalation_needed=escalation_needed,
        escalation_reason=escalation_reason,
    )
