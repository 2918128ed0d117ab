from datetime import date

import pytest

from conftest import C2, C3, C4, StubWriter

from schemas.brief import RetrievalMode, SectionKey, SectionStatus
from webapp.brief.engine import validate_request
from webapp.brief.errors import (
    BriefQueryError,
    HotelNotFoundError,
    InvalidQueryError,
)


class ExplodingLoader:
    def load(self):
        raise AssertionError("dataset must not be read")


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------

def test_validate_request_defaults(base_payload):
    payload = {k: v for k, v in base_payload.items() if not k.startswith("include") and k != "useLLM"}
    request = validate_request(payload)
    assert request.include_risks and request.include_promotions and request.include_ujv_pov
    assert request.use_llm is False


def test_non_boolean_flags_fall_back_to_defaults(base_payload):
    request = validate_request({**base_payload, "includeRisks": "no", "useLLM": "yes"})
    assert request.include_risks is True
    assert request.use_llm is False


@pytest.mark.parametrize("hotel_id", [None, "", 42])
def test_hotel_id_required(base_payload, hotel_id):
    payload = {**base_payload, "hotelId": hotel_id}
    with pytest.raises(InvalidQueryError, match="hotelId is required"):
        validate_request(payload)


def test_missing_hotel_id(base_payload):
    payload = {k: v for k, v in base_payload.items() if k != "hotelId"}
    with pytest.raises(InvalidQueryError, match="hotelId is required"):
        validate_request(payload)


@pytest.mark.parametrize("field", ["travelerType", "season", "role"])
def test_out_of_enum_values_rejected(base_payload, field):
    with pytest.raises(InvalidQueryError, match=f"Invalid {field}"):
        validate_request({**base_payload, field: "backpacker"})


def test_non_object_body_rejected():
    with pytest.raises(InvalidQueryError, match="Invalid request body"):
        validate_request(["amanzoe_gr"])


def test_validation_happens_before_data_access(make_engine, base_payload):
    engine = make_engine(dataset_loader=ExplodingLoader())
    with pytest.raises(InvalidQueryError):
        engine.query({**base_payload, "season": "monsoon"})


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

def test_unknown_hotel_is_not_found(engine, base_payload):
    with pytest.raises(HotelNotFoundError) as exc_info:
        engine.query({**base_payload, "hotelId": "nowhere_xx"})
    assert exc_info.value.status_code == 404
    assert exc_info.value.error_code == "NOT_FOUND"


def test_dataset_load_failure_is_generic(make_engine, tmp_path, base_payload):
    from webapp.brief.loader import JsonDatasetLoader

    engine = make_engine(dataset_loader=JsonDatasetLoader(tmp_path))
    with pytest.raises(BriefQueryError) as exc_info:
        engine.query(base_payload)
    assert exc_info.value.status_code == 500
    assert exc_info.value.error_code == "QUERY_FAILED"
    assert "hotel.json" in exc_info.value.message


# ---------------------------------------------------------------------------
# Sample dataset briefs
# ---------------------------------------------------------------------------

def test_sample_brief_conflicts(engine, base_payload):
    payload = engine.query(base_payload).to_payload()
    sections = payload["sections"]

    promo_conflicts = sections["promotions"]["conflictsIgnored"]
    assert [c["chunkId"] for c in promo_conflicts] == [C3]
    assert promo_conflicts[0]["structuredRuleRef"] == "contract.stackingRules.sr_nonstack_4nf_eb15"

    positioning_conflicts = sections["positioning"]["conflictsIgnored"]
    assert [c["chunkId"] for c in positioning_conflicts] == [C2]
    assert positioning_conflicts[0]["structuredRuleRef"] == "hotel.positioningTags"

    assert payload["trust"]["guardrails"]["canonicalOverridesNotes"] is True


def test_sample_brief_trust(engine, base_payload):
    trust = engine.query(base_payload).trust

    assert trust.evidence_strength_score == 0.79
    assert trust.evidence_strength_label == "High"
    assert trust.policy_compliance == "PASS"
    assert trust.guardrails.policy_warnings == []
    assert trust.escalation_needed is False
    assert trust.escalation_reason == ""

    assert trust.stats.structured_sources_used == 5
    assert trust.stats.unstructured_sources_used == 2
    assert trust.stats.semantic_chunks_used == 11
    assert trust.stats.structured_facts_used == 21
    assert trust.stats.conflicts_ignored == 2

    assert trust.freshness.promotions_last_verified_date == date(2025, 9, 15)
    assert trust.freshness.most_recent_site_visit_date == date(2025, 6, 10)
    assert trust.freshness.last_feedback_date == date(2025, 7, 5)
    assert trust.freshness.last_semantic_chunk_date == date(2025, 9, 5)

    assert trust.guardrails.promotions_from_contract_only is True
    assert trust.guardrails.all_sections_backed_by_citations is True
    assert trust.guardrails.sensitive_data_restricted_by_role is True
    assert trust.policy_snapshot["promotion"] == 120


def test_stale_family_feedback_escalates(engine, base_payload):
    trust = engine.query({**base_payload, "travelerType": "multi_gen_family"}).trust

    assert trust.evidence_strength_score == 0.88
    assert trust.policy_compliance == "WARN"
    assert trust.guardrails.within_freshness_policy == "WARN"
    assert trust.guardrails.policy_warnings == [
        "travelerFit: src_feedback_family_2024 (post_trip_feedback) exceeds max age 270d (age 333d)"
    ]
    assert trust.escalation_needed is True
    assert trust.escalation_reason == "Reason: Policy freshness WARN."


def test_finance_sees_booking_value(engine, base_payload):
    finance = engine.query({**base_payload, "role": "finance"})
    reservations = engine.query(base_payload)

    assert "USD 18450" in finance.sections.traveler_fit.content
    assert "18450" not in reservations.sections.traveler_fit.content
    assert finance.trust.guardrails.sensitive_data_restricted_by_role is True


def test_optional_sections_omitted(engine, base_payload):
    response = engine.query({**base_payload, "includeRisks": False, "includePromotions": False})
    payload = response.to_payload()

    assert set(payload["sections"]) == {"positioning", "travelerFit", "ujvPov"}
    assert payload["queryPlan"]["sectionsRequested"] == ["positioning", "travelerFit", "ujvPov"]
    assert "Promotions" not in response.trust.escalation_reason


def test_queries_are_idempotent(engine, base_payload):
    assert engine.query(base_payload).to_payload() == engine.query(base_payload).to_payload()


def test_no_sources_means_insufficient_everywhere(make_engine, write_dataset, base_payload):
    engine = make_engine(dataset_loader=write_dataset(sources=[]))
    response = engine.query(base_payload)

    for _, section in response.sections.items():
        assert section.status == SectionStatus.INSUFFICIENT_SOURCES
        assert section.citations == []
        assert section.semantic_chunks_used == []

    assert response.trust.evidence_strength_score == 0.0
    assert response.trust.evidence_strength_label == "Low"
    assert response.trust.escalation_reason.startswith("Reason: Evidence Strength below threshold")
    assert [c.chunk_id for c in response.sections.positioning.conflicts_ignored] == [C2]
    assert response.trust.guardrails.all_sections_backed_by_citations is False


# ---------------------------------------------------------------------------
# Narrative mode
# ---------------------------------------------------------------------------

def test_use_llm_without_credential_stays_deterministic(make_engine, base_payload):
    writer = StubWriter({"positioning": "Rewritten."}, available=False)
    response = make_engine(narrative_writer=writer).query({**base_payload, "useLLM": True})

    assert response.query_plan.retrieval_mode == RetrievalMode.DETERMINISTIC
    assert writer.contexts == []
    assert response.sections.positioning.ai_modified is False


def test_narrative_overrides_applied(make_engine, engine, base_payload):
    writer = StubWriter({"positioning": "Rewritten.", "ujvPov": "Pitch privacy."})
    response = make_engine(narrative_writer=writer).query({**base_payload, "useLLM": True})
    baseline = engine.query(base_payload)

    assert response.query_plan.retrieval_mode == RetrievalMode.NARRATIVE_ASSISTED
    assert response.sections.positioning.content == "Rewritten."
    assert response.sections.ujv_pov.ai_modified is True
    assert response.sections.risks.ai_modified is False
    assert response.trust.evidence_strength_score == baseline.trust.evidence_strength_score
    assert response.trust.stats == baseline.trust.stats
    assert SectionKey.PROMOTIONS.value not in writer.contexts[0]["sections"]


def test_narrative_failure_keeps_deterministic_text(make_engine, engine, base_payload):
    writer = StubWriter(error=RuntimeError("503 from provider"))
    response = make_engine(narrative_writer=writer).query({**base_payload, "useLLM": True})
    baseline = engine.query(base_payload)

    assert response.query_plan.retrieval_mode == RetrievalMode.NARRATIVE_ASSISTED
    assert response.sections.positioning.content == baseline.sections.positioning.content
    assert response.sections.positioning.ai_modified is False


def test_rewrite_leaking_booking_value_flags_guardrail(make_engine, base_payload):
    writer = StubWriter({"travelerFit": "Average booking value signal: USD 18450."})
    response = make_engine(narrative_writer=writer).query({**base_payload, "useLLM": True})

    assert response.sections.traveler_fit.ai_modified is True
    assert "18450" in response.sections.traveler_fit.content
    assert response.trust.guardrails.sensitive_data_restricted_by_role is False


def test_top_n_is_configurable(make_engine, base_payload):
    response = make_engine(top_n=1).query(base_payload)
    assert [c.chunk_id for c in response.sections.risks.semantic_chunks_used] == [C4]
