"""Pydantic model for unstructured semantic snippets scanned by keyword retrieval."""

from datetime import date
from typing import Literal

from pydantic import Field

from schemas.source_record import CanonicalModel


class UnstructuredChunk(CanonicalModel):
    chunk_id: str = Field(description="Unique chunk ID")
    hotel_id: str = Field(description="Owning hotel; chunks for other hotels are never retrieved")
    source_type: Literal["unstructured_chunk"] = "unstructured_chunk"
    title: str
    date: date
    reliability: float = Field(ge=0.0, le=1.0)
    text: str = Field(description="Free text matched against query terms")
    owner_team: str = ""
    version: str = ""
    doc_ref: str = ""
