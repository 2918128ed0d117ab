"""Detection of semantic chunks that contradict canonical hotel data.

Canonical data always wins. Each rule below recognises one kind of claim a
free-text note can make and checks it against the hotel record:

- stacking_claim: a note says two promotions combine while the contract
  carries a non-stackable rule for them
- positioning_claim: a note pitches the hotel as nightlife-led while the
  canonical positioning tags do not include nightlife

New kinds of contradiction need a new named rule; there is no general
contradiction engine here.
"""

import logging
from typing import Callable, Optional

from schemas.brief import ConflictEvent, SectionKey
from schemas.chunk import UnstructuredChunk
from schemas.hotel import HotelRecord, StackingRule

logger = logging.getLogger(__name__)

KNOWN_NON_STACKABLE_RULE_ID = "sr_nonstack_4nf_eb15"

STACKING_CLAIM_KEYWORDS = ("stack", "combine", "combinable")
NIGHTLIFE_CLAIM_PHRASES = ("nightlife-focused", "nightlife focused", "late-night scene")

ConflictRule = Callable[[str, UnstructuredChunk, SectionKey, HotelRecord], Optional[ConflictEvent]]


def _find_non_stackable_rule(hotel: HotelRecord) -> Optional[StackingRule]:
    for rule in hotel.contract.stacking_rules:
        if rule.rule_id == KNOWN_NON_STACKABLE_RULE_ID:
            return rule
        if not rule.allows_combination and rule.applies_to_promo_ids:
            return rule
    return None


def stacking_claim(
    text: str, chunk: UnstructuredChunk, section: SectionKey, hotel: HotelRecord
) -> Optional[ConflictEvent]:
    claims_stacking = any(kw in text for kw in STACKING_CLAIM_KEYWORDS)
    if not (claims_stacking and "4th" in text and "early booking" in text):
        return None

    rule = _find_non_stackable_rule(hotel)
    if rule is None:
        return None

    return ConflictEvent(
        chunk_id=chunk.chunk_id,
        reason="Chunk claims promo combinability that conflicts with contract stacking rules.",
        structured_rule_ref=f"contract.stackingRules.{rule.rule_id}",
    )


def positioning_claim(
    text: str, chunk: UnstructuredChunk, section: SectionKey, hotel: HotelRecord
) -> Optional[ConflictEvent]:
    if section != SectionKey.POSITIONING:
        return None
    if "nightlife" in hotel.positioning_tags:
        return None
    if not any(phrase in text for phrase in NIGHTLIFE_CLAIM_PHRASES):
        return None

    return ConflictEvent(
        chunk_id=chunk.chunk_id,
        reason=(
            "Chunk conflicts with canonical positioning tags and site visit notes "
            "(privacy-led, not nightlife-led)."
        ),
        structured_rule_ref="hotel.positioningTags",
    )


CONFLICT_RULES: list[tuple[str, ConflictRule]] = [
    ("stacking_claim", stacking_claim),
    ("positioning_claim", positioning_claim),
]


class ConflictDetector:
    """Runs the named rule table over a chunk; the first rule that fires wins."""

    def __init__(self, rules: Optional[list[tuple[str, ConflictRule]]] = None):
        self.rules = rules if rules is not None else CONFLICT_RULES

    def detect(
        self,
        chunk: UnstructuredChunk,
        section: SectionKey,
        hotel: HotelRecord,
    ) -> Optional[ConflictEvent]:
        text = chunk.text.lower()
        for name, rule in self.rules:
            event = rule(text, chunk, section, hotel)
            if event is not None:
                logger.info(
                    "Conflict [%s] in %s: chunk %s -> %s",
                    name,
                    section.value,
                    chunk.chunk_id,
                    event.structured_rule_ref,
                )
                return event
        return None

    def scan(
        self,
        chunks: list[UnstructuredChunk],
        section: SectionKey,
        hotel: HotelRecord,
    ) -> list[ConflictEvent]:
        """Check every chunk owned by the hotel, keeping pool order."""
        conflicts = []
        for chunk in chunks:
            if chunk.hotel_id != hotel.hotel_id:
                continue
            event = self.detect(chunk, section, hotel)
            if event is not None:
                conflicts.append(event)
        return conflicts
