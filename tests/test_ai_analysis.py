import json

import httpx

from aiready.services.ai_analysis import (
    analyze_compliance_gaps,
    analyze_prohibited_use,
    analyze_system_risk,
    document_type_hint,
    extract_system_from_document,
    filename_fallback,
    generate_risk_report,
    normalize_risk_level,
    process_ai_result,
    suggest_system_fields,
)
from aiready.services.ai_client import AIClient, DeepSeekProvider, OpenAIProvider, ProviderChain


def model_chain(reply, provider_cls=DeepSeekProvider, search=None):
    """Chain whose only model answers every prompt with `reply`."""
    text = reply if isinstance(reply, str) else json.dumps(reply)

    def handler(request):
        return httpx.Response(200, json={"choices": [{"message": {"content": text}}]})

    provider = provider_cls("test-key", client=httpx.Client(transport=httpx.MockTransport(handler)))
    return ProviderChain(client=AIClient(providers={provider.name: provider}), search=search or (lambda q: []))


HR_SYSTEM = {
    "system_id": "AI-SYS-0001",
    "name": "CV screener",
    "description": "Ranks job applicants for employment decisions",
    "department": "HR",
    "ai_capabilities": "Natural Language Processing",
    "uses_personal_data": True,
}


def test_normalize_risk_level():
    assert normalize_risk_level("HIGH RISK") == "High"
    assert normalize_risk_level("unacceptable") == "Unacceptable"
    assert normalize_risk_level("Limited risk") == "Limited"
    assert normalize_risk_level(None) == "Unknown"


def test_process_ai_result_normalises_and_clamps():
    out = process_ai_result(
        {"riskLevel": "high risk", "riskScore": 140, "keyRiskFactors": ["bias", None], "justification": " ok "}
    )
    assert out == {"risk_level": "High", "risk_score": 100, "key_risk_factors": ["bias"], "justification": "ok"}


def test_risk_analysis_rule_based_when_offline(offline_chain):
    out = analyze_system_risk(HR_SYSTEM, chain=offline_chain)
    assert out["risk_level"] == "High"
    assert out["analysis_method"] == "rule_based"
    assert out["source"] == "static"
    assert "analyzed_at" in out
    assert out["review_required"] is True
    assert out["legal_validation"]["validator"] == "system"
    assert "does not constitute legal advice" in out["legal_disclaimer"]
    assert "requires professional legal review" in out["legal_disclaimer"]


def test_risk_analysis_search_grounded():
    hits = [{"title": "AI Act Annex III", "url": "https://example.eu/annex"}]
    chain = ProviderChain(client=AIClient(providers={}), search=lambda q: hits)
    out = analyze_system_risk(HR_SYSTEM, chain=chain)
    assert out["source"] == "search"
    assert out["analysis_method"] == "rule_based"
    assert out["sources"] == [{"title": "AI Act Annex III", "url": "https://example.eu/annex"}]


def test_risk_analysis_merges_model_reply_over_baseline():
    chain = model_chain(
        "```json\n"
        + json.dumps({"riskLevel": "Limited", "riskScore": 35, "justification": "Assistive only"})
        + "\n```"
    )
    out = analyze_system_risk(HR_SYSTEM, chain=chain)
    assert out["analysis_method"] == "ai_enhanced"
    assert out["source"] == "deepseek"
    assert out["risk_level"] == "Limited"
    assert out["risk_score"] == 35
    assert out["justification"] == "Assistive only"
    # untouched baseline fields survive
    assert out["applicable_articles"][0].startswith("Article 6")


def test_unknown_model_level_keeps_baseline():
    out = analyze_system_risk(HR_SYSTEM, chain=model_chain({"riskLevel": "unclear"}))
    assert out["risk_level"] == "High"
    assert out["risk_score"] == 70


def test_prohibited_fallback_flags_keywords(offline_chain):
    system = {"name": "Nudge", "description": "Uses dark patterns and subliminal cues"}
    out = analyze_prohibited_use(system, chain=offline_chain)
    assert out["is_compliant"] is False
    assert len(out["practices"]) == 7
    flagged = [p for p in out["practices"] if not p["compliant"]]
    assert [p["article"] for p in flagged] == ["Article 5(1)(a)"]
    assert "dark pattern" in flagged[0]["justification"]


def test_prohibited_model_reply():
    chain = model_chain(
        {
            "prohibitedPractices": [
                {"practice": "Social scoring", "article": "Article 5(1)(c)", "compliant": True, "riskLevel": "None"}
            ],
            "overallAssessment": "No issues",
        }
    )
    out = analyze_prohibited_use(HR_SYSTEM, chain=chain)
    assert out["source"] == "deepseek"
    assert out["is_compliant"] is True
    assert out["practices"][0]["risk_level"] == "None"
    assert out["overall_assessment"] == "No issues"


def test_gap_fallback_statuses(offline_chain):
    system = dict(HR_SYSTEM, risk_level="High", doc_completeness=60)
    docs = [{"title": "Tech docs", "type": "technical_documentation"}]
    out = analyze_compliance_gaps(system, docs, chain=offline_chain)

    status = {a["area"]: a["status"] for a in out["areas"]}
    assert status["Technical documentation"] == "partial"
    assert status["Transparency"] == "partial"
    assert status["Risk management"] == "gap"
    assert status["Human oversight"] == "gap"

    severities = {g["area"]: g["severity"] for g in out["compliance_gaps"]}
    assert severities["Risk management"] == "Critical"
    assert severities["Technical documentation"] == "Medium"
    assert out["missing_documentation"] == ["risk_assessment", "data_governance_policy", "human_oversight_protocol"]
    assert len(out["priority_actions"]) == 3


def test_gap_fallback_all_compliant(offline_chain):
    system = dict(HR_SYSTEM, risk_level="Limited", doc_completeness=90)
    docs = [
        {"type": t}
        for t in (
            "technical_documentation",
            "risk_assessment",
            "data_governance_policy",
            "human_oversight_protocol",
        )
    ]
    out = analyze_compliance_gaps(system, docs, chain=offline_chain)
    assert out["compliance_gaps"] == []
    assert all(a["status"] == "compliant" for a in out["areas"])


def test_gap_model_reply_marks_areas():
    chain = model_chain(
        {
            "complianceGaps": [{"area": "Data governance", "severity": "High", "euAiActReference": "Article 10"}],
            "overallComplianceStatus": "Partially compliant",
            "priorityActions": ["Write a data governance policy"],
        }
    )
    out = analyze_compliance_gaps(HR_SYSTEM, [], chain=chain)
    status = {a["area"]: a["status"] for a in out["areas"]}
    assert status["Data governance"] == "gap"
    assert status["Risk management"] == "compliant"
    assert out["compliance_gaps"][0]["eu_ai_act_reference"] == "Article 10"


def test_report_fallback_uses_assessment_level(offline_chain):
    assessment = {"assessment_id": "ra_1", "risk_level": "limited", "risk_score": 42, "status": "approved"}
    out = generate_risk_report(HR_SYSTEM, assessment, chain=offline_chain)
    assert out["risk_classification"]["level"] == "Limited"
    assert out["risk_classification"]["score"] == 42
    assert out["assessment_id"] == "ra_1"
    assert out["system_id"] == "AI-SYS-0001"
    assert out["source"] == "static"
    assert "CV screener" in out["executive_summary"]


def test_report_requires_executive_summary():
    out = generate_risk_report(HR_SYSTEM, chain=model_chain({"conclusion": "fine"}))
    assert out["source"] == "static"
    assert out["risk_classification"]["level"] == "High"
    assert out["review_required"] is True
    assert out["legal_disclaimer"].startswith("Important legal notice")


def test_report_with_unknown_article_needs_review():
    reply = {
        "executiveSummary": "The system is clearly limited risk.",
        "riskClassification": {"level": "Limited", "score": 30, "justification": "According to Article 50"},
        "regulatoryImplications": {"applicableArticles": [{"article": "Article 250", "title": "Transparency"}]},
        "recommendations": [{"title": "Label outputs", "description": "Users must be informed"}],
        "conclusion": "Transparency duties apply.",
    }
    out = generate_risk_report(HR_SYSTEM, chain=model_chain(reply))

    assert out["source"] == "deepseek"
    validation = out["legal_validation"]
    assert validation["is_valid"] is False
    assert validation["issues"] == ["Invalid legal references: Article 250"]
    assert out["review_required"] is True


def test_suggest_fields_fallback(offline_chain):
    out = suggest_system_fields("Radiology triage", "Flags urgent chest x-ray images for review", chain=offline_chain)
    s = out["suggestions"]
    assert out["source"] == "static"
    assert s["name"] == {"value": "Radiology triage", "confidence": 90, "justification": "Provided by the user"}
    assert s["department"]["value"] == "Healthcare"
    assert s["ai_capabilities"]["value"] == "Computer Vision"
    assert s["risk_level"]["value"] == "High"
    assert s["overall_confidence_score"] == 40


def test_suggest_fields_model_reply():
    chain = model_chain(
        {
            "vendor": {"value": "Acme", "confidence": 80, "justification": "Named in description"},
            "version": {"value": "", "confidence": 10},
            "overallConfidenceScore": 75,
        }
    )
    out = suggest_system_fields("Thing", chain=chain)
    assert out["suggestions"] == {
        "vendor": {"value": "Acme", "confidence": 80, "justification": "Named in description"},
        "overall_confidence_score": 75,
    }


def test_filename_fallback():
    out = filename_fallback("fraud_detector-v2.3.pdf", "Vendor: Acme Corp\n")
    details = out["system_details"]
    assert details["name"]["value"] == "fraud detector v2 3"
    assert details["version"]["value"] == "2.3"
    assert details["vendor"] == {"value": "Acme Corp", "confidence": 45}
    assert out["overall_confidence_score"] == 40

    assert filename_fallback("notes.txt")["system_details"]["version"]["value"] == "1.0"


def test_document_type_hint():
    assert "PDF" in document_type_hint("spec.PDF")
    assert "unknown format" in document_type_hint("README")


def test_extraction_prefers_openai_and_reads_prose():
    chain = model_chain("Name: Loan approver\nVendor: FinCo\n", provider_cls=OpenAIProvider)
    out = extract_system_from_document("loan.txt", "...", chain=chain)
    assert out["source"] == "openai"
    assert out["system_details"]["name"] == {"value": "Loan approver", "confidence": 60}
    assert out["system_details"]["vendor"]["value"] == "FinCo"


def test_extraction_json_reply_maps_capabilities():
    chain = model_chain(
        {
            "systemDetails": {"capabilities": {"value": "OCR", "confidence": 70}},
            "overallConfidenceScore": 70,
        },
        provider_cls=OpenAIProvider,
    )
    out = extract_system_from_document("x.pdf", "...", chain=chain)
    assert out["system_details"]["ai_capabilities"]["value"] == "OCR"
    assert out["overall_confidence_score"] == 70
