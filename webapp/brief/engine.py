"""Brief engine: validates a query and assembles the full brief response.

Flow for one request:
  1. Validate the raw payload into a BriefRequest (no data access before this)
  2. Load the dataset and resolve the hotel (not-found is its own error)
  3. Build the query plan
  4. Retrieve and build every requested section in parallel
  5. Apply narrative overrides when the plan is narrative-assisted
  6. Aggregate the trust payload over the final sections
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from generators.promotions_builder import build_promotions_section
from generators.section_builders import SECTION_BUILDERS
from processors.conflict_detector import ConflictDetector
from processors.term_planner import build_query_plan
from schemas.brief import (
    AnySection,
    BriefRequest,
    BriefResponse,
    BriefSections,
    QueryPlan,
    RetrievalMode,
    SectionKey,
)
from webapp.brief.errors import BriefQueryError, HotelNotFoundError, InvalidQueryError
from webapp.brief.loader import HotelDataset, JsonDatasetLoader
from webapp.brief.trust import build_trust_payload
from webapp.rag.narrative import NarrativeOverrideGate, NarrativeWriter
from webapp.rag.retriever import DEFAULT_TOP_N, SemanticRetriever

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_request(payload) -> BriefRequest:
    """Turn a raw JSON body into a BriefRequest.

    Raises:
        InvalidQueryError: naming the first offending field.
    """
    if not isinstance(payload, dict):
        raise InvalidQueryError("Invalid request body")

    try:
        return BriefRequest.model_validate(payload)
    except ValidationError as e:
        error = e.errors()[0]
        field_name = str(error["loc"][0]) if error["loc"] else "request"
        if field_name == "hotelId":
            message = "hotelId is required"
        else:
            message = f"Invalid {field_name}"
        logger.info("Rejected query: %s (%s)", message, error["msg"])
        raise InvalidQueryError(message) from e


class BriefEngine:
    """Answers structured hotel queries against a dataset loader."""

    def __init__(
        self,
        loader: JsonDatasetLoader,
        narrative_writer: Optional[NarrativeWriter] = None,
        top_n: int = DEFAULT_TOP_N,
        clock: Optional[Callable[[], datetime]] = None,
        max_workers: int = 4,
    ):
        self.loader = loader
        self.narrative_writer = narrative_writer
        self.top_n = top_n
        self.clock = clock or _utc_now
        self.max_workers = max_workers
        self.detector = ConflictDetector()

    @property
    def narrative_available(self) -> bool:
        return self.narrative_writer is not None and self.narrative_writer.available

    def load_dataset(self) -> HotelDataset:
        try:
            return self.loader.load()
        except BriefQueryError:
            raise
        except Exception as e:
            raise BriefQueryError(f"Failed to load dataset: {e}") from e

    def query(self, payload) -> BriefResponse:
        """Run one query end to end.

        Raises:
            InvalidQueryError: the payload failed validation.
            HotelNotFoundError: no canonical record for the hotel id.
            BriefQueryError: the dataset could not be loaded.
        """
        request = validate_request(payload)
        dataset = self.load_dataset()

        hotel = dataset.find_hotel(request.hotel_id)
        if hotel is None:
            raise HotelNotFoundError(request.hotel_id)

        now = self.clock()
        plan = build_query_plan(hotel, request, self.narrative_available, now)
        sections = self.build_sections(dataset, plan, request)

        if plan.retrieval_mode == RetrievalMode.NARRATIVE_ASSISTED:
            logger.info("Requesting narrative overrides for %s", hotel.hotel_id)
            sections = NarrativeOverrideGate(self.narrative_writer).apply(hotel, plan, sections)
        elif request.use_llm:
            logger.info("Narrative requested but no credential configured, skipping")

        trust = build_trust_payload(
            hotel, sections, dataset.source_lookup(), request, now.date()
        )
        return BriefResponse(query_plan=plan, sections=sections, trust=trust)

    def build_sections(
        self,
        dataset: HotelDataset,
        plan: QueryPlan,
        request: BriefRequest,
    ) -> BriefSections:
        """Build every requested section concurrently."""
        hotel = dataset.hotel
        sources = dataset.source_lookup()
        chunks = list(dataset.chunks)
        retriever = SemanticRetriever(chunks, hotel, self.detector)

        def build_text(key: SectionKey) -> AnySection:
            retrieval = retriever.retrieve(key, plan.query_terms.per_section[key], self.top_n)
            return SECTION_BUILDERS[key](hotel, sources, retrieval, request)

        built: dict[SectionKey, AnySection] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {}
            for key in plan.sections_requested:
                if key == SectionKey.PROMOTIONS:
                    future = executor.submit(
                        build_promotions_section, hotel, sources, chunks, self.detector
                    )
                else:
                    future = executor.submit(build_text, key)
                futures[future] = key

            for future in as_completed(futures):
                key = futures[future]
                built[key] = future.result()
                logger.debug("Section %s: %s", key.value, built[key].status.value)

        return BriefSections(
            positioning=built[SectionKey.POSITIONING],
            traveler_fit=built[SectionKey.TRAVELER_FIT],
            risks=built.get(SectionKey.RISKS),
            promotions=built.get(SectionKey.PROMOTIONS),
            ujv_pov=built.get(SectionKey.UJV_POV),
        )
