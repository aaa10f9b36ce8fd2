# aiready/services/ai_analysis.py
"""
Analysis operations on top of the provider chain.

Each operation owns a prompt, a parser for model replies and a rule based
fallback; ProviderChain decides which one produces the answer.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from aiready.core.errors import AIModelError
from aiready.services.ai_client import PROVIDER_ORDER, ProviderChain
from aiready.services.baseline_analysis import (
    baseline_risk_analysis,
    detect_prohibited,
    system_text,
    system_to_dict,
)
from aiready.services.eu_ai_act import (
    COMPLIANCE_AREAS,
    PROHIBITED_PRACTICES,
    find_keywords,
    level_score,
)
from aiready.services.json_extract import extract_fields_from_text, parse_json_reply
from aiready.services.legal_validation import review_result

log = logging.getLogger(__name__)

RISK_LEVEL_ORDER = (
    ("high", "High"),
    ("unacceptable", "Unacceptable"),
    ("limited", "Limited"),
    ("minimal", "Minimal"),
)

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL.sub("_", key).lower()


def _snake_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {_snake(k): v for k, v in data.items()}


def _nz(value: Any) -> str:
    return str(value) if value not in (None, "") else "Not provided"


def _system_block(data: Mapping[str, Any]) -> str:
    return "\n".join(
        [
            f"System Name: {_nz(data.get('name'))}",
            f"Description: {_nz(data.get('description'))}",
            f"Department: {_nz(data.get('department'))}",
            f"Purpose: {_nz(data.get('purpose'))}",
            f"Vendor: {_nz(data.get('vendor'))}",
            f"Version: {_nz(data.get('version'))}",
            f"AI Capabilities: {_nz(data.get('ai_capabilities'))}",
            f"Training Datasets: {_nz(data.get('training_datasets'))}",
            f"Usage Context: {_nz(data.get('usage_context'))}",
            f"Potential Impact: {_nz(data.get('potential_impact'))}",
        ]
    )


def _sources(hits: Sequence[Mapping[str, Any]]) -> List[Dict[str, str]]:
    return [{"title": h.get("title", ""), "url": h.get("url", "")} for h in hits[:5]]


def _search_query(data: Mapping[str, Any], topic: str) -> str:
    return " ".join(
        p for p in ("EU AI Act", topic, data.get("ai_capabilities") or "", data.get("department") or "") if p
    ).strip()


# -----------------------------
# Risk analysis
# -----------------------------
def normalize_risk_level(value: Any) -> str:
    text = str(value or "").lower()
    for needle, label in RISK_LEVEL_ORDER:
        if needle in text:
            return label
    return "Unknown"


def _clamp_score(value: Any) -> Optional[int]:
    try:
        return max(0, min(100, int(round(float(value)))))
    except (TypeError, ValueError):
        return None


def _confidence(value: Any, default: int = 50) -> int:
    score = _clamp_score(value)
    return default if score is None else score


def process_ai_result(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Normalise a model's risk analysis. Only fields that came back usable are
    returned so the result can be merged over the baseline.
    """
    data = _snake_keys(raw)
    out: Dict[str, Any] = {"risk_level": normalize_risk_level(data.get("risk_level"))}

    score = _clamp_score(data.get("risk_score"))
    if score is not None:
        out["risk_score"] = score

    for key in ("justification", "system_category", "potential_impact", "vulnerabilities"):
        val = data.get(key)
        if isinstance(val, str) and val.strip():
            out[key] = val.strip()

    for key in ("key_risk_factors", "applicable_articles", "suggested_improvements"):
        val = data.get(key)
        if isinstance(val, list):
            out[key] = [str(v) for v in val if v not in (None, "")]

    return out


def _risk_prompt(data: Mapping[str, Any]) -> str:
    return f"""
Perform a comprehensive EU AI Act risk assessment for the following AI system:

{_system_block(data)}

Based on the EU AI Act classification framework provide the risk level
(Unacceptable, High, Limited or Minimal), a 0-100 risk score, a justification,
the system category, the key risk factors, the applicable articles and
suggested improvements.

Respond with JSON only:
{{
  "riskLevel": "High | Limited | Minimal | Unacceptable",
  "riskScore": 0,
  "justification": "text",
  "systemCategory": "text",
  "keyRiskFactors": ["text"],
  "applicableArticles": ["Article X - title"],
  "suggestedImprovements": ["text"],
  "potentialImpact": "text",
  "vulnerabilities": "text"
}}
""".strip()


def analyze_system_risk(system: Any, chain: Optional[ProviderChain] = None) -> Dict[str, Any]:
    """
    Baseline rules first, then a model pass merged over them.
    analysis_method is "ai_enhanced" when a model answered, "rule_based" otherwise.
    """
    chain = chain or ProviderChain()
    data = system_to_dict(system)
    baseline = baseline_risk_analysis(data)

    def _fallback(hits):
        result = dict(baseline)
        if hits:
            result["sources"] = _sources(hits)
            result["justification"] = (
                f"{baseline['justification']} Cross-checked against {len(hits)} public sources."
            )
        return result

    res = chain.run(
        _risk_prompt(data),
        parse=lambda text: process_ai_result(parse_json_reply(text)),
        fallback=_fallback,
        search_query=_search_query(data, "risk classification"),
        temperature=0.1,
    )

    if res.source in PROVIDER_ORDER:
        ai = dict(res.data)
        if ai.get("risk_level") == "Unknown":
            ai.pop("risk_level")
        merged = {**baseline, **ai}
        if "risk_score" not in ai:
            merged["risk_score"] = level_score(merged["risk_level"])
        merged["analysis_method"] = "ai_enhanced"
    else:
        merged = res.data
        merged["analysis_method"] = "rule_based"

    merged["source"] = res.source
    merged["analyzed_at"] = datetime.now(timezone.utc).isoformat()
    return review_result(merged, merged.get("risk_level"))


# -----------------------------
# Prohibited practices (Article 5)
# -----------------------------
def _prohibited_prompt(data: Mapping[str, Any]) -> str:
    practices = "\n".join(f"{i}. {p} ({a})" for i, (p, a, _) in enumerate(PROHIBITED_PRACTICES, 1))
    return f"""
Analyze the following AI system against EU AI Act Article 5 prohibited practices:

{_system_block(data)}

Article 5 prohibits:
{practices}

For each practice assess whether the system potentially violates Article 5.
Respond with JSON only:
{{
  "prohibitedPractices": [
    {{"practice": "name", "article": "reference", "compliant": true,
      "riskLevel": "None | Low | Medium | High",
      "justification": "text", "mitigationAdvice": "text"}}
  ],
  "overallAssessment": "text",
  "isCompliant": true
}}
""".strip()


def _parse_prohibited(text: str) -> Dict[str, Any]:
    data = _snake_keys(parse_json_reply(text))
    practices = data.get("prohibited_practices")
    if not isinstance(practices, list):
        raise ValueError("prohibitedPractices missing")
    items = []
    for p in practices:
        if not isinstance(p, Mapping):
            continue
        p = _snake_keys(p)
        items.append(
            {
                "practice": str(p.get("practice") or ""),
                "article": str(p.get("article") or "Article 5"),
                "compliant": bool(p.get("compliant", True)),
                "risk_level": str(p.get("risk_level") or "None"),
                "justification": str(p.get("justification") or ""),
                "mitigation_advice": str(p.get("mitigation_advice") or ""),
            }
        )
    is_compliant = data.get("is_compliant")
    if not isinstance(is_compliant, bool):
        is_compliant = all(i["compliant"] for i in items)
    return {
        "practices": items,
        "overall_assessment": str(data.get("overall_assessment") or ""),
        "is_compliant": is_compliant,
    }


def _prohibited_fallback(data: Mapping[str, Any]) -> Dict[str, Any]:
    hits = {h["practice"]: h for h in detect_prohibited(data)}
    items = []
    for practice, article, _ in PROHIBITED_PRACTICES:
        hit = hits.get(practice)
        if hit:
            items.append(
                {
                    "practice": practice,
                    "article": article,
                    "compliant": False,
                    "risk_level": "High",
                    "justification": f"System description mentions: {', '.join(hit['keywords'])}",
                    "mitigation_advice": "Remove the functionality or obtain legal review before EU deployment.",
                }
            )
        else:
            items.append(
                {
                    "practice": practice,
                    "article": article,
                    "compliant": True,
                    "risk_level": "None",
                    "justification": "No indicators of this practice in the system description.",
                    "mitigation_advice": "",
                }
            )
    is_compliant = not hits
    return {
        "practices": items,
        "overall_assessment": (
            "No indicators of Article 5 prohibited practices were found."
            if is_compliant
            else f"{len(hits)} potential Article 5 prohibited practice(s) identified."
        ),
        "is_compliant": is_compliant,
    }


def analyze_prohibited_use(system: Any, chain: Optional[ProviderChain] = None) -> Dict[str, Any]:
    chain = chain or ProviderChain()
    data = system_to_dict(system)
    res = chain.run(
        _prohibited_prompt(data),
        parse=_parse_prohibited,
        fallback=lambda hits: _prohibited_fallback(data),
        temperature=0.1,
    )
    return {**res.data, "source": res.source}


# -----------------------------
# Compliance gaps
# -----------------------------
def _gap_prompt(data: Mapping[str, Any], documents: Sequence[Mapping[str, Any]]) -> str:
    docs = "\n".join(f"- {d.get('title')} ({d.get('type')})" for d in documents) or "- none"
    areas = "\n".join(f"{i}. {name} ({article})" for i, (name, article, _) in enumerate(COMPLIANCE_AREAS, 1))
    return f"""
Perform a compliance gap analysis for the following AI system under the EU AI Act:

{_system_block(data)}
Risk Level: {_nz(data.get('risk_level'))}

The system has the following documentation:
{docs}

Identify compliance gaps in these areas:
{areas}

Respond with JSON only:
{{
  "complianceGaps": [
    {{"area": "name", "description": "text", "severity": "Critical | High | Medium | Low",
      "euAiActReference": "Article X", "remediation": "text"}}
  ],
  "overallComplianceStatus": "text",
  "missingDocumentation": ["text"],
  "priorityActions": ["text"]
}}
""".strip()


def _parse_gaps(text: str) -> Dict[str, Any]:
    data = _snake_keys(parse_json_reply(text))
    gaps = data.get("compliance_gaps")
    if not isinstance(gaps, list):
        raise ValueError("complianceGaps missing")
    norm = []
    for g in gaps:
        if isinstance(g, Mapping):
            g = _snake_keys(g)
            norm.append(
                {
                    "area": str(g.get("area") or ""),
                    "description": str(g.get("description") or ""),
                    "severity": str(g.get("severity") or "Medium"),
                    "eu_ai_act_reference": str(g.get("eu_ai_act_reference") or ""),
                    "remediation": str(g.get("remediation") or ""),
                }
            )
    gap_areas = {g["area"].lower() for g in norm}
    return {
        "areas": [
            {"area": name, "article": article, "status": "gap" if name.lower() in gap_areas else "compliant"}
            for name, article, _ in COMPLIANCE_AREAS
        ],
        "compliance_gaps": norm,
        "overall_compliance_status": str(data.get("overall_compliance_status") or ""),
        "missing_documentation": [str(x) for x in data.get("missing_documentation") or [] if x],
        "priority_actions": [str(x) for x in data.get("priority_actions") or [] if x],
    }


def _gaps_fallback(data: Mapping[str, Any], documents: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    doc_types = {str(d.get("type") or "") for d in documents}
    completeness = int(data.get("doc_completeness") or 0)
    high = (data.get("risk_level") or "").lower() in {"high", "unacceptable"}

    areas, gaps, missing = [], [], []
    for name, article, evidence in COMPLIANCE_AREAS:
        present = [t for t in evidence if t in doc_types]
        if present and completeness >= 80:
            status = "compliant"
        elif present:
            status = "partial"
        else:
            status = "gap"
        areas.append({"area": name, "article": article, "status": status})
        if status == "compliant":
            continue

        if status == "gap":
            missing.extend(t for t in evidence[:1] if t not in missing)
            severity = "Critical" if high else "High"
            description = f"No documentation evidencing {name.lower()} requirements."
            remediation = f"Prepare {evidence[0].replace('_', ' ')} covering {article}."
        else:
            severity = "Medium"
            description = f"{name} is documented but overall documentation is only {completeness}% complete."
            remediation = f"Complete and review the {name.lower()} documentation against {article}."
        gaps.append(
            {
                "area": name,
                "description": description,
                "severity": severity,
                "eu_ai_act_reference": article,
                "remediation": remediation,
            }
        )

    order = {"Critical": 0, "High": 1, "Medium": 2, "Low": 3}
    priority = [g["remediation"] for g in sorted(gaps, key=lambda g: order.get(g["severity"], 9))][:3]
    if not gaps:
        overall = "No compliance gaps identified from the available documentation."
    else:
        overall = f"{len(gaps)} of {len(COMPLIANCE_AREAS)} compliance areas need attention."
    return {
        "areas": areas,
        "compliance_gaps": gaps,
        "overall_compliance_status": overall,
        "missing_documentation": missing,
        "priority_actions": priority,
    }


def analyze_compliance_gaps(
    system: Any,
    documents: Iterable[Any] = (),
    chain: Optional[ProviderChain] = None,
) -> Dict[str, Any]:
    chain = chain or ProviderChain()
    data = system_to_dict(system)
    docs = [
        d if isinstance(d, Mapping) else {"title": getattr(d, "title", ""), "type": getattr(d, "type", "")}
        for d in documents
    ]
    res = chain.run(
        _gap_prompt(data, docs),
        parse=_parse_gaps,
        fallback=lambda hits: _gaps_fallback(data, docs),
        temperature=0.2,
    )
    return {**res.data, "source": res.source}


# -----------------------------
# Risk report
# -----------------------------
REPORT_KEYS = (
    "executive_summary",
    "system_overview",
    "methodology",
    "risk_classification",
    "key_findings",
    "regulatory_implications",
    "recommendations",
    "conclusion",
)


def _report_prompt(data: Mapping[str, Any], assessment: Optional[Mapping[str, Any]]) -> str:
    lines = [_system_block(data)]
    level = (assessment or {}).get("risk_level") or data.get("risk_level") or "Not determined"
    lines.append(f"Risk Level: {level}")
    if assessment:
        date = assessment.get("assessment_date")
        if isinstance(date, datetime):
            date = date.date().isoformat()
        lines.append(f"Assessment Date: {date}")
        lines.append(f"Assessment Status: {assessment.get('status')}")
        lines.append(f"Risk Score: {assessment.get('risk_score')}")
    body = "\n".join(lines)
    return f"""
Generate a comprehensive EU AI Act compliance risk assessment report for the following AI system:

{body}

Respond with JSON only, using the keys executiveSummary, systemOverview,
methodology, riskClassification {{level, score, justification}},
keyFindings [{{area, description, severity}}], regulatoryImplications
{{applicableArticles: [{{article, title, requirements, complianceStatus}}]}},
recommendations [{{title, description, priority, timeframe}}] and conclusion.
""".strip()


def _parse_report(text: str) -> Dict[str, Any]:
    data = _snake_keys(parse_json_reply(text))
    if not data.get("executive_summary"):
        raise ValueError("executiveSummary missing")
    return {k: data.get(k) for k in REPORT_KEYS if k in data}


def _report_fallback(data: Mapping[str, Any], assessment: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    base = baseline_risk_analysis(data)
    level = base["risk_level"]
    score = base["risk_score"]
    if assessment and assessment.get("risk_level"):
        level = str(assessment["risk_level"]).capitalize()
        score = assessment.get("risk_score") or score

    findings = [
        {"area": "Risk factors", "description": f, "severity": "High" if level == "High" else "Medium"}
        for f in base["key_risk_factors"]
    ] or [{"area": "Transparency", "description": base["potential_impact"], "severity": "Low"}]

    return {
        "executive_summary": (
            f"{data.get('name')} is classified as {level} risk under the EU AI Act "
            f"with a risk score of {score}."
        ),
        "system_overview": data.get("description") or data.get("purpose") or "No description provided.",
        "methodology": "Rule-based screening of system attributes against EU AI Act risk criteria.",
        "risk_classification": {"level": level, "score": score, "justification": base["justification"]},
        "key_findings": findings,
        "regulatory_implications": {
            "applicable_articles": [
                {"article": a, "title": a, "requirements": "", "compliance_status": "Not assessed"}
                for a in base["applicable_articles"]
            ]
        },
        "recommendations": [
            {"title": imp, "description": imp, "priority": "High" if i == 0 else "Medium", "timeframe": "Short-term"}
            for i, imp in enumerate(base["suggested_improvements"])
        ],
        "conclusion": base["potential_impact"],
    }


def generate_risk_report(
    system: Any,
    assessment: Optional[Any] = None,
    chain: Optional[ProviderChain] = None,
) -> Dict[str, Any]:
    chain = chain or ProviderChain()
    data = system_to_dict(system)
    adata = None
    if assessment is not None:
        adata = assessment if isinstance(assessment, Mapping) else {
            "assessment_id": assessment.assessment_id,
            "assessment_date": assessment.assessment_date,
            "status": assessment.status,
            "risk_level": assessment.risk_level,
            "risk_score": assessment.risk_score,
        }

    res = chain.run(
        _report_prompt(data, adata),
        parse=_parse_report,
        fallback=lambda hits: _report_fallback(data, adata),
        temperature=0.3,
        max_tokens=2000,
    )
    report = {
        **res.data,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "assessment_id": (adata or {}).get("assessment_id"),
        "system_id": data.get("system_id"),
        "system_name": data.get("name"),
        "source": res.source,
    }
    classification = report.get("risk_classification")
    level = (adata or {}).get("risk_level") or (
        classification.get("level") if isinstance(classification, Mapping) else None
    )
    return review_result(report, level)


# -----------------------------
# Registration helpers
# -----------------------------
SUGGESTION_FIELDS = (
    "name",
    "vendor",
    "version",
    "department",
    "purpose",
    "ai_capabilities",
    "training_datasets",
    "usage_context",
    "potential_impact",
    "risk_level",
)

DEPARTMENT_HINTS = (
    (("recruit", "hiring", "candidate", "employee", "hr "), "Human Resources"),
    (("patient", "medical", "clinic", "hospital", "radiology", "diagnos"), "Healthcare"),
    (("credit", "loan", "bank", "fraud", "invoice", "finance"), "Finance"),
    (("customer", "support", "chatbot", "helpdesk"), "Customer Service"),
    (("marketing", "campaign", "advert"), "Marketing"),
    (("student", "exam", "school", "education"), "Education"),
)

CAPABILITY_HINTS = (
    (("image", "vision", "x-ray", "xray", "camera", "face"), "Computer Vision"),
    (("chat", "language", "text", "translation", "document"), "Natural Language Processing"),
    (("predict", "forecast", "scoring", "score"), "Predictive Analytics"),
    (("recommend",), "Recommendation System"),
    (("speech", "voice", "audio"), "Speech Recognition"),
)


def _hint(text: str, table) -> Optional[str]:
    for needles, label in table:
        if find_keywords(text, needles):
            return label
    return None


def _suggest_parse(text: str) -> Dict[str, Any]:
    data = _snake_keys(parse_json_reply(text))
    out: Dict[str, Any] = {}
    for field in SUGGESTION_FIELDS:
        entry = data.get(field)
        if isinstance(entry, Mapping) and entry.get("value") not in (None, ""):
            out[field] = {
                "value": entry.get("value"),
                "confidence": _confidence(entry.get("confidence")),
                "justification": str(entry.get("justification") or ""),
            }
    if not out:
        raise ValueError("no usable fields")
    overall = _clamp_score(data.get("overall_confidence_score"))
    out["overall_confidence_score"] = overall if overall is not None else int(
        sum(v["confidence"] for v in out.values()) / len(out)
    )
    return out


def _suggest_fallback(name: str, description: str) -> Dict[str, Any]:
    data = {"name": name, "description": description}
    text = system_text(data)
    base = baseline_risk_analysis(data)
    out: Dict[str, Any] = {
        "name": {"value": name, "confidence": 90, "justification": "Provided by the user"},
        "risk_level": {
            "value": base["risk_level"],
            "confidence": 50,
            "justification": base["justification"],
        },
    }
    dept = _hint(text, DEPARTMENT_HINTS)
    if dept:
        out["department"] = {"value": dept, "confidence": 55, "justification": "Inferred from keywords"}
    cap = _hint(text, CAPABILITY_HINTS)
    if cap:
        out["ai_capabilities"] = {"value": cap, "confidence": 55, "justification": "Inferred from keywords"}
    if description:
        out["purpose"] = {"value": description, "confidence": 60, "justification": "Taken from the description"}
    out["overall_confidence_score"] = 40
    return out


def suggest_system_fields(
    name: str,
    description: Optional[str] = None,
    chain: Optional[ProviderChain] = None,
) -> Dict[str, Any]:
    chain = chain or ProviderChain()
    fields = ", ".join(SUGGESTION_FIELDS)
    prompt = f"""
Based on the following information about an AI system, suggest values for its
EU AI Act registration fields: {fields}.

System Name: {name}
Description: {description or 'Not provided'}

For each field give a value, a confidence from 0 to 100 and a justification.
Respond with JSON only:
{{"name": {{"value": "text", "confidence": 0, "justification": "text"}}, "overallConfidenceScore": 0}}
""".strip()
    res = chain.run(
        prompt,
        parse=_suggest_parse,
        fallback=lambda hits: _suggest_fallback(name, description or ""),
        temperature=0.2,
    )
    return {"suggestions": res.data, "source": res.source}


# -----------------------------
# Extraction from uploaded documents
# -----------------------------
DOCUMENT_HINTS = {
    "pdf": "This appears to be a PDF document; focus on headings and tables with system specifications.",
    "docx": "This appears to be a Word document; focus on section headings and structured content.",
    "doc": "This appears to be a Word document; focus on section headings and structured content.",
    "txt": "This appears to be a plain text document; rely on context and content patterns.",
    "ppt": "This appears to be a presentation; focus on bullet points and slide titles.",
    "pptx": "This appears to be a presentation; focus on bullet points and slide titles.",
    "csv": "This appears to be tabular data; use column headers and row labels.",
    "xls": "This appears to be tabular data; use column headers and row labels.",
    "xlsx": "This appears to be tabular data; use column headers and row labels.",
    "json": "This appears to be structured data; extract key-value pairs.",
    "xml": "This appears to be structured data; extract key-value pairs.",
    "md": "This appears to be a Markdown document; focus on headings, lists and code blocks.",
    "markdown": "This appears to be a Markdown document; focus on headings, lists and code blocks.",
}

EXTRACTION_FIELDS = (
    "name",
    "vendor",
    "version",
    "department",
    "purpose",
    "ai_capabilities",
    "training_datasets",
    "risk_level",
)

_VERSION_IN_NAME = re.compile(r"v(\d+(\.\d+)*)|version\s*(\d+(\.\d+)*)", re.IGNORECASE)
_EXTENSION = re.compile(r"\.[^/.]+$")


def document_type_hint(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return DOCUMENT_HINTS.get(ext, "This appears to be a document with unknown format.")


def _details_from_text(text: str, confidence: int) -> Dict[str, Dict[str, Any]]:
    found = extract_fields_from_text(text, EXTRACTION_FIELDS)
    return {k: {"value": v, "confidence": confidence} for k, v in found.items()}


def _extract_parse(text: str) -> Dict[str, Any]:
    try:
        data = _snake_keys(parse_json_reply(text))
    except (AIModelError, ValueError):
        # prose reply: pull "key: value" lines instead
        details = _details_from_text(text, 60)
        if not details:
            raise ValueError("reply contains neither JSON nor key/value lines")
        return {
            "system_details": details,
            "document_quality": {"score": 60, "assessment": "Partial extraction from unstructured reply"},
            "overall_confidence_score": 60,
            "unstructured_insights": ["Some fields may require manual verification"],
        }

    details = data.get("system_details")
    if not isinstance(details, Mapping):
        raise ValueError("systemDetails missing")
    norm = {}
    for k, v in details.items():
        key = _snake(k)
        if key == "capabilities":
            key = "ai_capabilities"
        if isinstance(v, Mapping) and v.get("value") not in (None, ""):
            norm[key] = {
                "value": v.get("value"),
                "confidence": _confidence(v.get("confidence")),
                "justification": str(v.get("justification") or ""),
            }
    return {
        "system_details": norm,
        "document_quality": data.get("document_quality") or {},
        "overall_confidence_score": _confidence(data.get("overall_confidence_score")),
        "unstructured_insights": [str(x) for x in data.get("unstructured_insights") or []],
    }


def filename_fallback(filename: str, content: str = "") -> Dict[str, Any]:
    """What can be recovered from the file name (and plain key/value lines in the content)."""
    name = re.sub(r"[-_.]", " ", _EXTENSION.sub("", filename)).strip()
    version = "1.0"
    match = _VERSION_IN_NAME.search(filename)
    if match:
        version = match.group(1) or match.group(3) or "1.0"

    details: Dict[str, Dict[str, Any]] = {
        "name": {"value": name, "confidence": 50},
        "vendor": {"value": "Unknown", "confidence": 40},
        "version": {"value": version, "confidence": 40},
        "department": {"value": "Information Technology", "confidence": 40},
        "purpose": {"value": "AI system functionality extracted from document", "confidence": 40},
        "ai_capabilities": {"value": "AI capabilities", "confidence": 40},
        "training_datasets": {"value": "Proprietary datasets", "confidence": 40},
        "risk_level": {"value": "Limited", "confidence": 40},
    }
    details.update(_details_from_text(content, 45))
    return {
        "system_details": details,
        "document_quality": {"score": 40, "assessment": "Automated extraction unavailable, limited information"},
        "overall_confidence_score": 40,
        "unstructured_insights": [
            "Please verify all information manually",
            "Consider providing additional information about the system",
        ],
    }


def extract_system_from_document(
    filename: str,
    content: str,
    chain: Optional[ProviderChain] = None,
) -> Dict[str, Any]:
    chain = chain or ProviderChain()
    fields = ", ".join(EXTRACTION_FIELDS)
    prompt = f"""
You are a document analysis system specialised in extracting AI system information.
{document_type_hint(filename)}

DOCUMENT NAME: {filename}
DOCUMENT CONTENT:
{content[:8000]}

Extract the following fields with a value, a 0-100 confidence and a short
justification: {fields}. Also assess the document quality.

Respond with JSON only:
{{
  "systemDetails": {{"name": {{"value": "text", "confidence": 0, "justification": "text"}}}},
  "documentQuality": {{"score": 0, "assessment": "text"}},
  "overallConfidenceScore": 0,
  "unstructuredInsights": ["text"]
}}
""".strip()
    res = chain.run(
        prompt,
        parse=_extract_parse,
        fallback=lambda hits: filename_fallback(filename, content),
        preferred="openai",
        temperature=0.2,
        max_tokens=2500,
    )
    return {**res.data, "source": res.source}
