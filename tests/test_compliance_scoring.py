from datetime import date, datetime

from aiready.services.compliance_scoring import (
    CONFORMITY_RECOMMENDATION,
    CRITERIA,
    calculate_compliance_score,
    _round_half_up,
    generate_compliance_roadmap,
)

BARE = {"is_transparent": True, "humans_in_loop": True}

COMPLETE = {
    "risk_level": "High",
    "risk_score": 70,
    "last_assessment_date": datetime(2025, 1, 10),
    "training_datasets": "Claims history 2015-2023",
    "usage_context": "Reviewed by underwriters",
    "uses_personal_data": True,
    "version": "2.1",
    "implementation_date": date(2024, 6, 1),
    "doc_completeness": 100,
    "training_completeness": 100,
    "is_transparent": True,
    "humans_in_loop": True,
}


def test_weights_sum_to_one():
    assert round(sum(c.weight for c in CRITERIA), 6) == 1.0


def test_bare_system_score():
    out = calculate_compliance_score(BARE)
    assert out["category_scores"]["Transparency"] == 100
    assert out["category_scores"]["Human Oversight"] == 70
    assert out["category_scores"]["Data Governance"] == 50
    assert out["overall_score"] == 28
    assert "Risk Management System (0% complete)" in out["gaps"]
    assert not any(g.startswith("Data Governance") for g in out["gaps"])
    assert len(out["recommendations"]) == 6
    assert CONFORMITY_RECOMMENDATION not in out["recommendations"]
    assert out["relevant_articles"][:2] == ["Article 9", "Article 10"]
    assert "Article 29" in out["relevant_articles"]


def test_complete_high_risk_system():
    out = calculate_compliance_score(COMPLETE)
    assert out["overall_score"] == 100
    assert out["gaps"] == []
    assert out["recommendations"] == [CONFORMITY_RECOMMENDATION]


def test_personal_data_without_context_loses_governance_points():
    out = calculate_compliance_score({"uses_personal_data": True, "training_datasets": "logs"})
    assert out["category_scores"]["Data Governance"] == 50


def test_scores_orm_rows(make_system):
    s = make_system(doc_completeness=40, training_completeness=80)
    out = calculate_compliance_score(s)
    assert out["category_scores"]["Technical Documentation"] == 40
    assert out["category_scores"]["Training & Implementation"] == 80


def test_roadmap_buckets_and_timeline():
    out = generate_compliance_roadmap(BARE)
    assert out["current_score"] == 28
    assert len(out["priority_actions"]["immediate"]) == 3
    assert len(out["priority_actions"]["short_term"]) == 3
    assert out["priority_actions"]["long_term"] == []
    assert out["estimated_timeline"] == {
        "assessment_phase": "4 weeks",
        "implementation_phase": "12 weeks",
        "verification_phase": "8 weeks",
    }


def test_roadmap_timeline_scales_with_risk():
    assert generate_compliance_roadmap(COMPLETE)["estimated_timeline"]["implementation_phase"] == "6 weeks"
    limited = generate_compliance_roadmap(dict(BARE, risk_level="Limited"))
    assert limited["estimated_timeline"] == {
        "assessment_phase": "3 weeks",
        "implementation_phase": "9 weeks",
        "verification_phase": "6 weeks",
    }


def test_scores_round_half_up():
    assert _round_half_up(72.5) == 73
    assert _round_half_up(2.5) == 3
    assert _round_half_up(72.49) == 72
