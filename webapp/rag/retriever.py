"""Deterministic keyword retrieval over the unstructured chunk pool.

Wraps the keyword scorer and the conflict detector:
  - Hotel filtering (chunks for other hotels are never candidates)
  - Additive keyword scoring; zero-score chunks are dropped
  - Ranking by score, then by chunk reliability
  - Conflict screening against canonical data while collecting the top N
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from processors.conflict_detector import ConflictDetector
from processors.keyword_scorer import keyword_score
from schemas.brief import ConflictEvent, SectionKey
from schemas.chunk import UnstructuredChunk
from schemas.hotel import HotelRecord

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 3


@dataclass
class ScoredChunk:
    """A candidate chunk with its keyword score."""
    chunk: UnstructuredChunk
    score: int


@dataclass
class RetrievalResult:
    """Clean chunks used for a section plus the chunks rejected as conflicts."""
    used: list[UnstructuredChunk] = field(default_factory=list)
    conflicts_ignored: list[ConflictEvent] = field(default_factory=list)


class SemanticRetriever:
    """Keyword retrieval engine for one hotel's chunk pool."""

    def __init__(
        self,
        chunks: list[UnstructuredChunk],
        hotel: HotelRecord,
        detector: Optional[ConflictDetector] = None,
    ):
        self.chunks = chunks
        self.hotel = hotel
        self.detector = detector or ConflictDetector()

    def rank(self, terms: list[str]) -> list[ScoredChunk]:
        """Score the hotel's chunks and sort them, best first.

        Ties on score fall back to reliability; beyond that the pool order
        is kept (sorted() is stable).
        """
        scored = [
            ScoredChunk(chunk=chunk, score=keyword_score(chunk, terms))
            for chunk in self.chunks
            if chunk.hotel_id == self.hotel.hotel_id
        ]
        scored = [item for item in scored if item.score > 0]
        return sorted(scored, key=lambda x: (-x.score, -x.chunk.reliability))

    def retrieve(
        self,
        section: SectionKey,
        terms: list[str],
        top_n: int = DEFAULT_TOP_N,
    ) -> RetrievalResult:
        """Collect up to top_n clean chunks for a section.

        Args:
            section: Section the chunks are being considered for.
            terms: The section's query terms.
            top_n: Maximum number of clean chunks to keep.

        Returns:
            RetrievalResult with used chunks and the conflicts-ignored log.
        """
        result = RetrievalResult()
        candidates = self.rank(terms)

        for item in candidates:
            conflict = self.detector.detect(item.chunk, section, self.hotel)
            if conflict is not None:
                result.conflicts_ignored.append(conflict)
                continue
            result.used.append(item.chunk)
            if len(result.used) >= top_n:
                break

        logger.info(
            "Retrieval for %s: %d candidates, %d used, %d conflicts ignored",
            section.value,
            len(candidates),
            len(result.used),
            len(result.conflicts_ignored),
        )
        return result
