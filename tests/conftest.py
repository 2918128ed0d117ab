"""Shared fixtures: the sample dataset, a fixed clock and stub narrative writers."""

import json
import shutil
from datetime import datetime, timezone
from pathlib import Path

import pytest

from processors.term_planner import build_query_plan
from schemas.brief import BriefRequest
from webapp.brief.engine import BriefEngine
from webapp.brief.loader import JsonDatasetLoader

DATA_DIR = Path(__file__).parent.parent / "data"

FIXED_NOW = datetime(2025, 10, 1, 9, 0, tzinfo=timezone.utc)
TODAY = FIXED_NOW.date()

C1 = "chk_amz_honeymoon_001"
C2 = "chk_amz_nightlife_002"
C3 = "chk_amz_promo_stack_003"
C4 = "chk_amz_transfer_004"
C5 = "chk_amz_family_005"
C6 = "chk_amz_wellness_006"


class StubWriter:
    """NarrativeWriter double that returns a canned payload or raises."""

    def __init__(self, payload=None, error=None, available=True):
        self.payload = payload
        self.error = error
        self._available = available
        self.contexts = []

    @property
    def available(self):
        return self._available

    def rewrite(self, context):
        self.contexts.append(context)
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def loader():
    return JsonDatasetLoader(DATA_DIR)


@pytest.fixture
def dataset(loader):
    return loader.load()


@pytest.fixture
def hotel(dataset):
    return dataset.hotel


@pytest.fixture
def sources(dataset):
    return dataset.source_lookup()


@pytest.fixture
def chunks(dataset):
    return list(dataset.chunks)


@pytest.fixture
def base_payload():
    return {
        "hotelId": "amanzoe_gr",
        "travelerType": "honeymoon",
        "season": "late_september",
        "includeRisks": True,
        "includePromotions": True,
        "includeUjvPov": True,
        "role": "reservations",
        "useLLM": False,
    }


@pytest.fixture
def make_request(base_payload):
    def _make(**overrides) -> BriefRequest:
        return BriefRequest.model_validate({**base_payload, **overrides})
    return _make


@pytest.fixture
def make_plan(hotel, make_request):
    def _make(narrative_available=False, **overrides):
        return build_query_plan(hotel, make_request(**overrides), narrative_available, FIXED_NOW)
    return _make


@pytest.fixture
def make_engine(loader):
    def _make(narrative_writer=None, dataset_loader=None, **kwargs) -> BriefEngine:
        return BriefEngine(
            dataset_loader or loader,
            narrative_writer=narrative_writer,
            clock=lambda: FIXED_NOW,
            **kwargs,
        )
    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()


@pytest.fixture
def write_dataset(tmp_path):
    """Copy the sample dataset into tmp_path, replacing any given file contents."""
    def _write(hotel=None, sources=None, chunks=None) -> JsonDatasetLoader:
        for name in ("hotel.json", "sources.json", "unstructured_chunks.json"):
            shutil.copy(DATA_DIR / name, tmp_path / name)
        if hotel is not None:
            (tmp_path / "hotel.json").write_text(json.dumps(hotel))
        if sources is not None:
            (tmp_path / "sources.json").write_text(json.dumps(sources))
        if chunks is not None:
            (tmp_path / "unstructured_chunks.json").write_text(json.dumps(chunks))
        return JsonDatasetLoader(tmp_path)
    return _write


@pytest.fixture
def sample_json():
    """Raw JSON of the sample dataset files, for building variants."""
    def _read(name):
        return json.loads((DATA_DIR / name).read_text())
    return _read
