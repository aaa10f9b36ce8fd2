from datetime import datetime

from aiready.services.legal_validation import (
    ConfidenceLevel,
    add_legal_disclaimer,
    analyze_confidence,
    check_for_contradictions,
    check_required_sections,
    legal_disclaimer,
    requires_expert_review,
    review_result,
    validate_legal_output,
    validate_legal_references,
)

COMPLETE_TEXT = (
    "Risk level: high.\n"
    "Recommended actions: keep event logs.\n"
    "Legal basis: Article 6(2) and Annex III.\n"
    "Limitations: based on the information provided."
)


def test_confidence_levels():
    hedged = "This might be high risk, possibly; it is unclear and seems ambiguous."
    assert analyze_confidence(hedged) is ConfidenceLevel.LOW

    firm = "The system is clearly covered; logs must be kept and oversight is required according to Article 14."
    assert analyze_confidence(firm) is ConfidenceLevel.HIGH

    assert analyze_confidence("A spam filter.") is ConfidenceLevel.MEDIUM
    mixed = "It might be high risk and could be limited, but it must be documented and review is required."
    assert analyze_confidence(mixed) is ConfidenceLevel.MEDIUM


def test_article_references():
    ok, invalid = validate_legal_references("See Article 6(2), article 50 and Article 113 of the EU AI Act.")
    assert ok is True
    assert invalid == []

    ok, invalid = validate_legal_references("Article 250 applies, as does Article 9(14). Article 250 again.")
    assert ok is False
    assert invalid == ["Article 250", "Article 9(14)"]


def test_contradictions():
    text = "The tool is high risk. On reflection it is not high risk."
    assert check_for_contradictions(text) == ["Contradicting statements about high risk classification"]
    assert check_for_contradictions("Article 6 applies. Article 5 does not apply.") == [
        "Contradicting statements about applicable articles"
    ]
    assert check_for_contradictions(COMPLETE_TEXT) == []


def test_required_sections():
    assert check_required_sections(COMPLETE_TEXT) == []
    assert check_required_sections("Risk level: high.") == ["Required Actions", "Legal Basis", "Limitations"]
    assert check_required_sections("Risk level: high.", ["Risk Classification"]) == []


def test_validate_clean_output():
    out = validate_legal_output(COMPLETE_TEXT)
    assert out["is_valid"] is True
    assert out["issues"] == []
    assert out["review_status"] == "validated"
    assert out["review_required"] is False
    assert out["validator"] == "system"


def test_validate_flags_problems():
    text = COMPLETE_TEXT + "\nThe system is prohibited. Deployment is allowed under Article 300."
    out = validate_legal_output(text)
    assert out["is_valid"] is False
    assert out["issues"] == [
        "Invalid legal references: Article 300",
        "Contradicting statements about prohibition",
    ]
    assert out["review_status"] == "requires_legal_review"
    assert out["review_required"] is True

    hedged = validate_legal_output(COMPLETE_TEXT + " It might be, possibly, unclear and seems so.")
    assert hedged["confidence_level"] == "low"
    assert hedged["warnings"] == ["Assessment contains high uncertainty language"]
    assert hedged["review_required"] is True


def test_requires_expert_review():
    assert requires_expert_review({"risk_level": "High"}) is True
    assert requires_expert_review({"risk_level": "unacceptable"}) is True
    assert requires_expert_review({"risk_level": "Minimal", "confidence_level": "uncertain"}) is True
    assert requires_expert_review(
        {"risk_level": "Minimal", "legal_validation": {"is_valid": False, "issues": ["x"]}}
    ) is True
    assert requires_expert_review(
        {
            "risk_level": "Minimal",
            "confidence_level": "medium",
            "legal_validation": {"is_valid": True, "issues": []},
        }
    ) is False


def test_disclaimer_text():
    text = legal_disclaimer("medium", False, today=datetime(2026, 3, 1))
    assert text.startswith("Important legal notice")
    assert "medium confidence" in text
    assert "Assessment generated on 2026-03-01" in text
    assert "requires professional legal review" not in text

    assert "requires professional legal review" in legal_disclaimer("low", True)

    original = {"confidence_level": "high", "review_required": False}
    out = add_legal_disclaimer(original)
    assert "high confidence" in out["legal_disclaimer"]
    assert "legal_disclaimer" not in original


def test_review_structured_result():
    result = {
        "risk_level": "Minimal",
        "justification": "Filters spam from a shared inbox.",
        "suggested_improvements": ["Keep logs of filtered mail"],
        "applicable_articles": ["Article 95 - Codes of conduct"],
    }
    out = review_result(result)
    assert out["legal_validation"]["is_valid"] is True
    assert out["confidence_level"] == "medium"
    assert out["review_status"] == "validated"
    assert out["review_required"] is False
    assert "requires professional legal review" not in out["legal_disclaimer"]
    assert "legal_validation" not in result


def test_review_structured_result_missing_sections():
    out = review_result({"riskLevel": "Minimal", "justification": "Spam filter"})
    assert out["legal_validation"]["issues"] == ["Missing required sections: Required Actions, Legal Basis"]
    assert out["review_required"] is True


def test_review_uses_given_risk_level():
    result = {
        "executive_summary": "Screening tool.",
        "risk_classification": {"level": "Limited"},
        "recommendations": [],
        "regulatory_implications": {"applicable_articles": []},
    }
    assert review_result(result)["review_required"] is False
    assert review_result(result, "High")["review_required"] is True
