"""Promotions section builder.

Promotions are rendered from structured data only: the promotions list and
the contract stacking rules. No chunk is ever used for promotion content.
The whole chunk pool is still screened so that notes contradicting the
contract (e.g. a claim that two offers stack) show up in the section's
conflicts-ignored log.
"""

import logging
from typing import Optional

from generators.section_builders import build_breakdown, collect_citations
from processors.conflict_detector import ConflictDetector
from schemas.brief import (
    PromoSummary,
    PromotionsContent,
    PromotionsSection,
    SectionKey,
    SectionStatus,
    StackingRuleSummary,
)
from schemas.chunk import UnstructuredChunk
from schemas.hotel import HotelRecord
from schemas.source_record import SourceRecord

logger = logging.getLogger(__name__)


def build_promotions_section(
    hotel: HotelRecord,
    sources: dict[str, SourceRecord],
    chunks: list[UnstructuredChunk],
    detector: Optional[ConflictDetector] = None,
) -> PromotionsSection:
    """Build the promotions section and its hotel-wide conflict log.

    Args:
        hotel: The canonical hotel record.
        sources: Source id to source record lookup.
        chunks: The full chunk pool (filtered to the hotel here).
        detector: Conflict detector; defaults to the standard rule table.

    Returns:
        PromotionsSection, with empty promo/rule arrays when no source resolves.
    """
    detector = detector or ConflictDetector()
    conflicts = detector.scan(chunks, SectionKey.PROMOTIONS, hotel)

    contract = hotel.contract
    source_ids = (
        [sid for promo in hotel.promotions for sid in promo.source_ids]
        + contract.source_ids
        + [sid for rule in contract.stacking_rules for sid in rule.source_ids]
    )
    citations = collect_citations(source_ids, sources)

    if citations:
        status = SectionStatus.OK
        content = PromotionsContent(
            promos=[
                PromoSummary(
                    promo_id=p.promo_id,
                    name=p.name,
                    description=p.description,
                    validity=p.validity,
                    eligibility=list(p.eligibility),
                )
                for p in hotel.promotions
            ],
            stacking_rules=[
                StackingRuleSummary(
                    rule_id=r.rule_id,
                    text=r.text,
                    allows_combination=r.allows_combination,
                    applies_to_promo_ids=list(r.applies_to_promo_ids),
                )
                for r in contract.stacking_rules
            ],
        )
    else:
        status = SectionStatus.INSUFFICIENT_SOURCES
        content = PromotionsContent()
        logger.warning("No promotion or contract sources resolved for %s", hotel.hotel_id)

    return PromotionsSection(
        status=status,
        content=content,
        citations=citations,
        semantic_chunks_used=[],
        retrieval_breakdown=build_breakdown(
            len(hotel.promotions) + len(contract.stacking_rules), 0, len(conflicts)
        ),
        conflicts_ignored=conflicts,
    )
