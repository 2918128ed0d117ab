"""Brief section builders for the narrative sections.

Each builder turns canonical hotel facts plus the section's retrieval result
into a status-tagged TextSection:

- positioning: tags, strengths, and seasonality for the requested season
- travelerFit: common and traveler-specific fit, booking intelligence,
  feedback themes (booking value is redacted unless the role is finance)
- risks: canonical risks relevant to the requested season
- ujvPov: the UJV talk track

A section is OK only when at least one backing source resolves to a
citation. Otherwise it carries the fixed insufficiency sentence and nothing
else; conflicts found during retrieval are still reported.
"""

import logging
from typing import Callable

from processors.term_planner import SEASON_LABELS, TRAVELER_LABELS
from schemas.brief import (
    BriefRequest,
    RetrievalBreakdown,
    Role,
    SectionKey,
    SectionStatus,
    TextSection,
)
from schemas.chunk import UnstructuredChunk
from schemas.hotel import HotelRecord
from schemas.source_record import Citation, SourceRecord
from webapp.rag.retriever import RetrievalResult

logger = logging.getLogger(__name__)

INSUFFICIENT_SOURCES_TEXT = "Insufficient verified sources to answer this section."


def collect_citations(source_ids: list[str], sources: dict[str, SourceRecord]) -> list[Citation]:
    """Resolve source ids to citations, de-duplicated; unknown ids are dropped."""
    citations = []
    for source_id in dict.fromkeys(source_ids):
        source = sources.get(source_id)
        if source is None:
            logger.debug("Source id %s has no source record, skipping", source_id)
            continue
        citations.append(source.to_citation())
    return citations


def build_breakdown(facts: int, chunks: int, conflicts: int) -> RetrievalBreakdown:
    return RetrievalBreakdown(
        structured_facts_count=facts,
        semantic_chunks_count=chunks,
        overrides_applied=conflicts > 0,
        conflicts_ignored_count=conflicts,
    )


def render_bullets(lines: list[str]) -> str:
    return "\n".join(f"- {line}" for line in lines)


def format_usd_figure(value: float) -> str:
    """The booking value exactly as it appears in rendered text."""
    if float(value).is_integer():
        return f"{value:.0f}"
    return f"{value:.2f}"


def _supporting_color(chunks: list[UnstructuredChunk]) -> list[str]:
    if not chunks:
        return []
    titles = ", ".join(c.title for c in chunks)
    return [f"Supporting color (non-canonical): {titles}."]


def _assemble(
    lines: list[str],
    facts_count: int,
    citations: list[Citation],
    retrieval: RetrievalResult,
) -> TextSection:
    """Apply the citation rule and render the section."""
    if citations:
        status = SectionStatus.OK
        used = list(retrieval.used)
        content = render_bullets(lines + _supporting_color(used))
    else:
        status = SectionStatus.INSUFFICIENT_SOURCES
        used = []
        content = INSUFFICIENT_SOURCES_TEXT

    return TextSection(
        status=status,
        content=content,
        citations=citations,
        semantic_chunks_used=used,
        retrieval_breakdown=build_breakdown(
            facts_count, len(used), len(retrieval.conflicts_ignored)
        ),
        conflicts_ignored=list(retrieval.conflicts_ignored),
    )


def build_positioning_section(
    hotel: HotelRecord,
    sources: dict[str, SourceRecord],
    retrieval: RetrievalResult,
    request: BriefRequest,
) -> TextSection:
    strengths = hotel.positioning.strengths
    seasonality = hotel.seasonality.get(request.season, "")
    tags = hotel.positioning_tags

    lines = []
    if tags:
        lines.append(f"{hotel.name} is positioned as {', '.join(tags)}.")
    if strengths:
        lines.append(f"Core strengths: {'; '.join(strengths)}.")
    if seasonality:
        lines.append(seasonality)

    facts_count = (1 if tags else 0) + len(strengths) + 1
    citations = collect_citations(hotel.positioning.source_ids, sources)
    return _assemble(lines, facts_count, citations, retrieval)


def build_traveler_fit_section(
    hotel: HotelRecord,
    sources: dict[str, SourceRecord],
    retrieval: RetrievalResult,
    request: BriefRequest,
) -> TextSection:
    fit = hotel.traveler_fit
    booking = hotel.booking_intelligence
    traveler_key = request.traveler_type.value
    specific = fit.by_type.get(traveler_key, [])

    source_ids = (
        fit.source_ids.get("common", [])
        + fit.source_ids.get(traveler_key, [])
        + [sid for theme in hotel.feedback_themes for sid in theme.source_ids]
        + booking.source_ids
    )
    citations = collect_citations(source_ids, sources)

    # The only role-dependent line in the brief
    if request.role == Role.FINANCE:
        value_line = f"Average booking value signal: USD {format_usd_figure(booking.avg_booking_value_usd)}."
    else:
        value_line = f"Average booking value signal: {booking.qualitative_summary}."

    lines = [f"Traveler type assessed: {TRAVELER_LABELS[request.traveler_type]}."]
    lines.extend(fit.common)
    lines.extend(specific)
    if booking.patterns:
        lines.append(f"Booking intelligence: {'; '.join(booking.patterns)}.")
    lines.append(value_line)
    if hotel.feedback_themes:
        lines.append(f"Feedback themes: {', '.join(t.label for t in hotel.feedback_themes)}.")

    facts_count = (
        len(fit.common)
        + len(specific)
        + len(booking.patterns)
        + len(hotel.feedback_themes)
        + 1
    )
    return _assemble(lines, facts_count, citations, retrieval)


def build_risks_section(
    hotel: HotelRecord,
    sources: dict[str, SourceRecord],
    retrieval: RetrievalResult,
    request: BriefRequest,
) -> TextSection:
    relevant = [r for r in hotel.risks if request.season in r.season_relevance]
    facts = [f"{r.severity.upper()}: {r.text}" for r in relevant]
    citations = collect_citations(
        [sid for r in relevant for sid in r.source_ids], sources
    )
    lines = [f"Season assessed: {SEASON_LABELS[request.season]}."] + facts
    return _assemble(lines, len(facts), citations, retrieval)


def build_ujv_pov_section(
    hotel: HotelRecord,
    sources: dict[str, SourceRecord],
    retrieval: RetrievalResult,
    request: BriefRequest,
) -> TextSection:
    talk_track = list(hotel.ujv_pov.talk_track)
    citations = collect_citations(hotel.ujv_pov.source_ids, sources)
    return _assemble(talk_track, len(talk_track), citations, retrieval)


SectionBuilder = Callable[
    [HotelRecord, dict[str, SourceRecord], RetrievalResult, BriefRequest],
    TextSection,
]

SECTION_BUILDERS: dict[SectionKey, SectionBuilder] = {
    SectionKey.POSITIONING: build_positioning_section,
    SectionKey.TRAVELER_FIT: build_traveler_fit_section,
    SectionKey.RISKS: build_risks_section,
    SectionKey.UJV_POV: build_ujv_pov_section,
}
