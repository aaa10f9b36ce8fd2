# aiready/services/baseline_analysis.py
"""
Deterministic keyword/flag classification. Used on its own when no model is
reachable and as the base the model output is merged over.
"""
from typing import Any, Dict, List, Mapping

from aiready.services.eu_ai_act import (
    HIGH_RISK_DOMAINS,
    PROHIBITED_PRACTICES,
    level_score,
    find_keywords,
)

SYSTEM_TEXT_FIELDS = ("purpose", "department", "ai_capabilities", "name", "description")

DEFAULT_IMPROVEMENTS = [
    "Clearly inform users that they are interacting with an AI system",
    "Document the system's capabilities and limitations",
    "Provide a channel for users to give feedback or raise concerns",
]


def system_to_dict(system: Any) -> Dict[str, Any]:
    """ORM row or mapping -> plain dict with the fields the analysis reads."""
    if isinstance(system, Mapping):
        return dict(system)
    keys = (
        "id",
        "system_id",
        "name",
        "vendor",
        "department",
        "description",
        "purpose",
        "version",
        "ai_capabilities",
        "training_datasets",
        "usage_context",
        "potential_impact",
        "keywords",
        "status",
        "risk_level",
        "risk_score",
        "doc_completeness",
        "training_completeness",
        "implementation_date",
        "last_assessment_date",
        "uses_personal_data",
        "uses_sensitive_data",
        "uses_deep_learning",
        "is_transparent",
        "impacts_vulnerable_groups",
        "impacts_autonomous",
        "humans_in_loop",
    )
    return {k: getattr(system, k, None) for k in keys}


def system_text(system: Mapping[str, Any]) -> str:
    parts = [str(system.get(f) or "") for f in SYSTEM_TEXT_FIELDS]
    parts.extend(str(k) for k in (system.get("keywords") or []))
    return " ".join(parts).lower()


def _flag(system: Mapping[str, Any], name: str, default: bool = False) -> bool:
    val = system.get(name)
    return default if val is None else bool(val)


def detect_prohibited(system: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Article 5 practices whose trigger keywords appear in the system text."""
    text = system_text(system)
    hits = []
    for practice, article, keywords in PROHIBITED_PRACTICES:
        found = find_keywords(text, keywords)
        if found:
            hits.append({"practice": practice, "article": article, "keywords": found})
    return hits


def high_risk_triggers(system: Mapping[str, Any]) -> List[str]:
    triggers: List[str] = []
    if _flag(system, "impacts_vulnerable_groups"):
        triggers.append("Impacts vulnerable groups")
    if _flag(system, "uses_deep_learning") and not _flag(system, "is_transparent", True):
        triggers.append("Opaque deep learning model")
    if _flag(system, "uses_personal_data") and _flag(system, "uses_sensitive_data"):
        triggers.append("Processes sensitive personal data")
    if _flag(system, "impacts_autonomous") and not _flag(system, "humans_in_loop", True):
        triggers.append("Autonomous decisions without human review")
    domains = find_keywords(system_text(system), HIGH_RISK_DOMAINS)
    if domains:
        triggers.append(f"High-risk domain: {', '.join(domains)}")
    return triggers


def baseline_risk_analysis(system: Any) -> Dict[str, Any]:
    data = system_to_dict(system)
    category = data.get("ai_capabilities") or "Generic AI System"

    prohibited = detect_prohibited(data)
    if prohibited:
        return {
            "risk_level": "Unacceptable",
            "risk_score": level_score("unacceptable"),
            "system_category": category,
            "applicable_articles": ["Article 5 - Prohibited AI Practices"],
            "key_risk_factors": [p["practice"] for p in prohibited],
            "suggested_improvements": [
                "Stop development or use of the prohibited functionality",
                "Obtain legal review before any further deployment in the EU",
            ],
            "potential_impact": "Prohibited practice with unacceptable risk to fundamental rights",
            "vulnerabilities": "; ".join(f"{p['practice']} ({p['article']})" for p in prohibited),
            "justification": "Matches Article 5 prohibited practice indicators.",
        }

    triggers = high_risk_triggers(data)
    if not triggers:
        return {
            "risk_level": "Limited",
            "risk_score": level_score("limited"),
            "system_category": category,
            "applicable_articles": ["Article 52 - Transparency Obligations"],
            "key_risk_factors": [],
            "suggested_improvements": list(DEFAULT_IMPROVEMENTS),
            "potential_impact": "Limited impact on fundamental rights or critical activities",
            "vulnerabilities": "No specific vulnerabilities identified",
            "justification": "No high-risk indicators found; transparency obligations apply.",
        }

    articles = [
        "Article 6 - Classification Rules for High-Risk AI Systems",
        "Article 9 - Risk Management System",
    ]
    if _flag(data, "uses_personal_data"):
        articles.append("Article 10 - Data and Data Governance")
    if not _flag(data, "is_transparent", True):
        articles.append("Article 13 - Transparency and Provision of Information")
    if not _flag(data, "humans_in_loop", True):
        articles.append("Article 14 - Human Oversight")

    if _flag(data, "impacts_vulnerable_groups"):
        impact = "Significant potential impact on fundamental rights of vulnerable groups"
    else:
        impact = "Potential impact on health, safety or fundamental rights in a high-risk domain"

    return {
        "risk_level": "High",
        "risk_score": level_score("high"),
        "system_category": category,
        "applicable_articles": articles,
        "key_risk_factors": triggers,
        "suggested_improvements": [
            "Prepare technical documentation covering Annex IV (Article 11)",
            "Implement human oversight measures with the ability to override outputs (Article 14)",
            "Provide clear instructions for use and explanation of outputs (Article 13)",
            "Establish a documented, continuous risk management process (Article 9)",
        ],
        "potential_impact": impact,
        "vulnerabilities": "; ".join(triggers),
        "justification": "High-risk indicators found: " + "; ".join(triggers),
    }
