from conftest import TODAY

from processors.evidence_scorer import (
    EvidenceScore,
    EvidenceScorer,
    decide_escalation,
    strength_label,
)
from schemas.brief import SectionStatus

HONEYMOON_SOURCES = [
    "src_site_visit_2025",
    "src_ujv_pov_2025",
    "src_feedback_q2_2025",
    "src_booking_intel_2025",
    "src_promo_4nf_2025",
    "src_promo_eb15_2025",
    "src_contract_2025",
]


def make_score(score):
    return EvidenceScore(
        score=score,
        label=strength_label(score),
        total_citations=5,
        avg_reliability=0.9,
        recent=True,
        semantic_chunks=0,
    )


def test_no_citations_scores_zero():
    evidence = EvidenceScorer(TODAY).score([], 0)
    assert evidence.score == 0.0
    assert evidence.label == "Low"


def test_sample_brief_score(sources):
    citations = [sources[sid].to_citation() for sid in HONEYMOON_SOURCES]
    evidence = EvidenceScorer(TODAY).score(citations, 11)
    assert evidence.total_citations == 7
    assert evidence.recent is True
    assert evidence.score == 0.79
    assert evidence.label == "High"


def test_duplicate_citations_counted_once(sources):
    citation = sources["src_site_visit_2025"].to_citation()
    assert EvidenceScorer(TODAY).score([citation] * 5, 0).total_citations == 1


def test_semantic_bonus_is_capped(sources):
    citations = [sources["src_contract_2025"].to_citation()]
    few = EvidenceScorer(TODAY).score(citations, 2)
    many = EvidenceScorer(TODAY).score(citations, 20)
    assert few.score == many.score


def test_score_grows_with_citations_and_stays_bounded(sources):
    base = sources["src_contract_2025"].to_citation()
    citations = [base.model_copy(update={"source_id": f"src_{i}"}) for i in range(12)]

    scores = [
        EvidenceScorer(TODAY).score(citations[:n], semantic).score
        for n in range(len(citations) + 1)
        for semantic in (0, 20)
    ]
    assert all(0.0 <= s <= 1.0 for s in scores)

    plain = [EvidenceScorer(TODAY).score(citations[:n], 0).score for n in range(len(citations) + 1)]
    assert plain == sorted(plain)
    assert plain[-1] > plain[1]


def test_strength_labels():
    assert strength_label(0.75) == "High"
    assert strength_label(0.74) == "Medium"
    assert strength_label(0.6) == "Medium"
    assert strength_label(0.59) == "Low"


def test_low_score_escalates_first():
    needed, reason = decide_escalation(
        make_score(0.42), True, 0, SectionStatus.INSUFFICIENT_SOURCES, "WARN"
    )
    assert needed is True
    assert reason == "Reason: Evidence Strength below threshold (0.6). Current score 0.42"


def test_missing_promotion_sources_escalate():
    needed, reason = decide_escalation(make_score(0.8), True, 0, SectionStatus.OK, "PASS")
    assert needed is True
    assert reason == "Reason: Promotions requested but no verified promotions/contract sources were found."


def test_promotions_not_requested_do_not_escalate():
    assert decide_escalation(make_score(0.8), False, 0, SectionStatus.OK, "PASS") == (False, "")


def test_traveler_fit_insufficiency_escalates():
    _, reason = decide_escalation(make_score(0.8), True, 3, SectionStatus.INSUFFICIENT_SOURCES, "WARN")
    assert reason == "Reason: Traveler Fit section lacks sufficient verified evidence."


def test_freshness_warn_escalates_last():
    _, reason = decide_escalation(make_score(0.8), True, 3, SectionStatus.OK, "WARN")
    assert reason == "Reason: Policy freshness WARN."
