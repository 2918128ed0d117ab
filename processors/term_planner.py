"""Query-term planning for keyword retrieval.

Builds the per-request query plan: a global term list taken from the hotel
and the request labels, and one term list per requested section that adds a
fixed section keyword table on top of the global terms.
"""

import logging
from datetime import datetime

from schemas.brief import (
    BriefRequest,
    QueryPlan,
    QueryTerms,
    RetrievalMode,
    Role,
    SectionKey,
)
from schemas.hotel import HotelRecord, Season, TravelerType

logger = logging.getLogger(__name__)

TRAVELER_LABELS = {
    TravelerType.HONEYMOON: "Honeymoon",
    TravelerType.MULTI_GEN_FAMILY: "Multi-gen Family",
    TravelerType.SOLO_WELLNESS: "Solo / Wellness",
    TravelerType.CORPORATE_EXECUTIVE: "Corporate / Executive",
}

SEASON_LABELS = {
    Season.LATE_SEPTEMBER: "Late September",
    Season.PEAK_SUMMER: "Peak Summer (Jul-Aug)",
    Season.SHOULDER_APR_MAY: "Shoulder Season (Apr-May)",
    Season.LOW_NOV_MAR: "Low (Nov-Mar)",
}

ROLE_LABELS = {
    Role.RESERVATIONS: "Reservations",
    Role.MARKETING: "Marketing",
    Role.DESTINATION_SPECIALIST: "Destination Specialist",
    Role.FINANCE: "Finance",
}

SECTION_KEYWORDS = {
    SectionKey.POSITIONING: ["privacy", "romantic", "service", "design", "nightlife"],
    SectionKey.TRAVELER_FIT: ["traveler", "fit", "honeymoon", "family", "wellness", "executive"],
    SectionKey.RISKS: ["risk", "caveat", "transfer", "logistics", "nightlife"],
    SectionKey.PROMOTIONS: ["promotion", "discount", "offer", "stack", "combinable"],
    SectionKey.UJV_POV: ["talk track", "position", "qualify", "value drivers"],
}


def _unique(items: list[str]) -> list[str]:
    """De-duplicate, keeping the first occurrence."""
    return list(dict.fromkeys(items))


def build_global_terms(hotel: HotelRecord, request: BriefRequest) -> list[str]:
    return _unique([
        hotel.name,
        hotel.region,
        TRAVELER_LABELS[request.traveler_type],
        SEASON_LABELS[request.season],
        ROLE_LABELS[request.role],
    ])


def build_query_plan(
    hotel: HotelRecord,
    request: BriefRequest,
    narrative_available: bool,
    created_at: datetime,
) -> QueryPlan:
    """Derive the read-only query plan for one request.

    Args:
        hotel: The canonical hotel record.
        request: The validated request.
        narrative_available: Whether a narrative-service credential is configured.
        created_at: Timestamp stamped onto the plan.

    Returns:
        QueryPlan with global and per-section term lists.
    """
    sections = request.requested_sections()
    global_terms = build_global_terms(hotel, request)
    per_section = {
        section: _unique(global_terms + SECTION_KEYWORDS[section])
        for section in sections
    }

    if request.use_llm and narrative_available:
        mode = RetrievalMode.NARRATIVE_ASSISTED
    else:
        mode = RetrievalMode.DETERMINISTIC

    logger.debug(
        "Query plan for %s: sections=%s mode=%s global_terms=%s",
        hotel.hotel_id,
        [s.value for s in sections],
        mode.value,
        global_terms,
    )

    return QueryPlan(
        hotel_id=hotel.hotel_id,
        hotel_name=hotel.name,
        traveler_type=request.traveler_type,
        season=request.season,
        role=request.role,
        sections_requested=sections,
        retrieval_mode=mode,
        query_terms=QueryTerms(global_terms=global_terms, per_section=per_section),
        created_at=created_at,
    )
