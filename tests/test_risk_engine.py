from aiready.services.risk_engine import classify_ai_system


def test_not_an_ai_system_is_out_of_scope():
    out = classify_ai_system({"is_ai_system": False, "social_scoring": True})
    assert out["risk_level"] == "out_of_scope"
    assert out["risk_score"] == 0
    assert out["obligations"] == {"core": [], "situational": []}


def test_prohibited_flag_wins_over_lower_tiers():
    out = classify_ai_system({"social_scoring": True, "employment_workers_management": True, "deepfake": True})
    assert out["risk_level"] == "unacceptable"
    assert out["matched_flags"] == ["social_scoring"]
    assert out["risk_score"] == 90
    assert "Art. 5(1)(c)" in out["references"]


def test_high_risk_lists_core_obligations_and_annex_reference():
    out = classify_ai_system({"employment_workers_management": True, "law_enforcement": True})
    assert out["risk_level"] == "high"
    assert out["matched_flags"] == ["employment_workers_management", "law_enforcement"]
    assert any("Art. 9" in o for o in out["obligations"]["core"])
    assert "Annex III(4)" in out["references"]


def test_limited_risk_transparency():
    out = classify_ai_system({"interacts_with_humans": True})
    assert out["risk_level"] == "limited"
    assert out["risk_score"] == 40
    assert "Art. 50" in out["references"]


def test_minimal_when_nothing_matches():
    out = classify_ai_system({})
    assert out["risk_level"] == "minimal"
    assert out["matched_flags"] == []
    assert out["rationale"] == ["No unacceptable, high or limited risk criteria matched."]


def test_situational_obligations():
    out = classify_ai_system(
        {"critical_infrastructure": True, "provider_outside_eu": True, "public_body_deployer": True}
    )
    situational = out["obligations"]["situational"]
    assert any("Art. 22" in o for o in situational)
    assert any("Art. 27" in o for o in situational)

    # fundamental rights impact assessment only for high risk deployments
    out = classify_ai_system({"interacts_with_humans": True, "public_body_deployer": True})
    assert not any("Art. 27" in o for o in out["obligations"]["situational"])


def test_only_literal_true_counts():
    out = classify_ai_system({"social_scoring": "yes", "deepfake": 1})
    assert out["risk_level"] == "minimal"
