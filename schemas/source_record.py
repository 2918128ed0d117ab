"""Pydantic models for provenance source records and the citations built from them."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CanonicalModel(CamelModel):
    """Dataset records are read-only for the lifetime of a query."""

    model_config = ConfigDict(frozen=True)


class SourceType(str, Enum):
    SITE_VISIT = "site_visit"
    POST_TRIP_FEEDBACK = "post_trip_feedback"
    BOOKING_INTELLIGENCE = "booking_intelligence"
    CONTRACT = "contract"
    PROMOTION = "promotion"
    UJV_POV = "ujv_pov"
    UNSTRUCTURED_CHUNK = "unstructured_chunk"


# Source types produced by people in the field rather than governed systems
UNSTRUCTURED_SOURCE_TYPES = {
    SourceType.SITE_VISIT,
    SourceType.POST_TRIP_FEEDBACK,
}


class SourceRecord(CanonicalModel):
    source_id: str = Field(description="Unique identifier referenced from the hotel record")
    source_type: SourceType = Field(alias="type")
    title: str
    author: str = ""
    date: date
    system: str = ""
    reliability: float = Field(ge=0.0, le=1.0)
    snippet: str = ""
    owner_team: str = ""
    version: str = ""
    doc_ref: str = ""
    last_verified_at: Optional[date] = None

    def to_citation(self) -> "Citation":
        return Citation(
            source_id=self.source_id,
            source_type=self.source_type,
            title=self.title,
            author=self.author,
            date=self.date,
            system=self.system,
            reliability=self.reliability,
            snippet=self.snippet,
            doc_ref=self.doc_ref,
        )


class Citation(CamelModel):
    source_id: str
    source_type: SourceType = Field(alias="type")
    title: str
    author: str = ""
    date: date
    system: str = ""
    reliability: float
    snippet: str = ""
    doc_ref: str = ""
