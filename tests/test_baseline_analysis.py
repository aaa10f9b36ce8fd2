from aiready.services.baseline_analysis import (
    baseline_risk_analysis,
    detect_prohibited,
    high_risk_triggers,
    system_to_dict,
)


def test_prohibited_keywords_make_system_unacceptable():
    out = baseline_risk_analysis(
        {"name": "Citizen Score", "description": "Social scoring of residents for benefit eligibility"}
    )
    assert out["risk_level"] == "Unacceptable"
    assert out["risk_score"] == 90
    assert out["applicable_articles"] == ["Article 5 - Prohibited AI Practices"]
    assert out["key_risk_factors"] == ["Social scoring by public authorities"]


def test_medical_imaging_is_high_risk():
    out = baseline_risk_analysis(
        {
            "name": "Chest X-ray triage",
            "purpose": "Pneumonia detection",
            "department": "Radiology",
            "ai_capabilities": "Computer Vision",
            "uses_personal_data": True,
        }
    )
    assert out["risk_level"] == "High"
    assert out["risk_score"] == 70
    assert out["system_category"] == "Computer Vision"
    assert "Article 10 - Data and Data Governance" in out["applicable_articles"]
    assert any(t.startswith("High-risk domain") for t in out["key_risk_factors"])


def test_plain_system_defaults_to_limited():
    out = baseline_risk_analysis({"name": "Meeting notes summariser", "description": "Summarises notes"})
    assert out["risk_level"] == "Limited"
    assert out["risk_score"] == 40
    assert out["system_category"] == "Generic AI System"
    assert out["key_risk_factors"] == []


def test_flag_triggers():
    data = {
        "impacts_vulnerable_groups": True,
        "uses_deep_learning": True,
        "is_transparent": False,
        "impacts_autonomous": True,
        "humans_in_loop": False,
    }
    triggers = high_risk_triggers(data)
    assert "Impacts vulnerable groups" in triggers
    assert "Opaque deep learning model" in triggers
    assert "Autonomous decisions without human review" in triggers

    # missing flags fall back to the model defaults (transparent, human in the loop)
    assert high_risk_triggers({"uses_deep_learning": True, "impacts_autonomous": True}) == []


def test_keywords_list_is_searched():
    hits = detect_prohibited({"name": "x", "keywords": ["Live facial recognition"]})
    assert [h["article"] for h in hits] == ["Article 5(1)(h)"]


def test_system_to_dict_reads_orm_attributes(make_system):
    s = make_system(name="HR screener", department="HR")
    data = system_to_dict(s)
    assert data["name"] == "HR screener"
    assert data["department"] == "HR"
    assert data["humans_in_loop"] is True
