"""Dataset loading: canonical hotel record, source records and chunk pool.

Each file is parsed with orjson and validated through the pydantic schemas.
A dataset is loaded per request and never mutated afterwards.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from schemas.chunk import UnstructuredChunk
from schemas.hotel import HotelRecord
from schemas.source_record import SourceRecord
from webapp.brief.errors import DatasetLoadError

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"


@dataclass(frozen=True)
class HotelDataset:
    """One canonical hotel record with its sources and chunk pool."""
    hotel: HotelRecord
    sources: tuple[SourceRecord, ...]
    chunks: tuple[UnstructuredChunk, ...]

    def source_lookup(self) -> dict[str, SourceRecord]:
        """Source id to record. Later duplicates win."""
        return {source.source_id: source for source in self.sources}

    def find_hotel(self, hotel_id: str) -> Optional[HotelRecord]:
        return self.hotel if self.hotel.hotel_id == hotel_id else None


def check_references(dataset: HotelDataset) -> list[str]:
    """Source ids referenced by the hotel record that have no source record."""
    known = dataset.source_lookup()
    referenced = dict.fromkeys(dataset.hotel.referenced_source_ids())
    return [source_id for source_id in referenced if source_id not in known]


def _read_json(path: Path):
    import orjson

    try:
        return orjson.loads(path.read_bytes())
    except FileNotFoundError:
        raise DatasetLoadError(f"Dataset file not found: {path}")
    except orjson.JSONDecodeError as e:
        raise DatasetLoadError(f"Invalid JSON in {path.name}: {e}")


def _read_list(path: Path) -> list:
    data = _read_json(path)
    if not isinstance(data, list):
        raise DatasetLoadError(f"{path.name} must contain a JSON array")
    return data


class JsonDatasetLoader:
    """Loads a HotelDataset from three JSON files in one directory."""

    def __init__(
        self,
        data_dir: Union[str, Path] = DEFAULT_DATA_DIR,
        hotel_file: str = "hotel.json",
        sources_file: str = "sources.json",
        chunks_file: str = "unstructured_chunks.json",
    ):
        self.data_dir = Path(data_dir)
        self.hotel_file = hotel_file
        self.sources_file = sources_file
        self.chunks_file = chunks_file

    def load(self) -> HotelDataset:
        """Read and validate all three files.

        Raises:
            DatasetLoadError: if any file is missing, malformed or invalid.
        """
        t0 = time.perf_counter()
        hotel_path = self.data_dir / self.hotel_file

        try:
            hotel = HotelRecord.model_validate(_read_json(hotel_path))
            sources = tuple(
                SourceRecord.model_validate(item)
                for item in _read_list(self.data_dir / self.sources_file)
            )
            chunks = tuple(
                UnstructuredChunk.model_validate(item)
                for item in _read_list(self.data_dir / self.chunks_file)
            )
        except ValidationError as e:
            raise DatasetLoadError(f"Dataset failed validation: {e}") from e

        logger.info(
            "Loaded dataset for %s: %d sources, %d chunks in %.3fs",
            hotel.hotel_id, len(sources), len(chunks), time.perf_counter() - t0,
        )
        return HotelDataset(hotel=hotel, sources=sources, chunks=chunks)
