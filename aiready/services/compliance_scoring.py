# aiready/services/compliance_scoring.py
"""Weighted EU AI Act readiness score, recommendations and roadmap."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Tuple

from aiready.services.baseline_analysis import system_to_dict


def _truthy(*values: Any) -> bool:
    return all(v not in (None, "", 0, False) for v in values)


def _risk_management(s: Mapping[str, Any]) -> int:
    return (40 if _truthy(s.get("risk_level")) else 0) + (30 if _truthy(s.get("risk_score")) else 0) + (
        30 if _truthy(s.get("last_assessment_date")) else 0
    )


def _data_governance(s: Mapping[str, Any]) -> int:
    score = 50 if _truthy(s.get("training_datasets")) else 0
    # personal data use counts as documented once the data sources are described
    if not s.get("uses_personal_data") or _truthy(s.get("training_datasets"), s.get("usage_context")):
        score += 50
    return score


def _record_keeping(s: Mapping[str, Any]) -> int:
    return (50 if _truthy(s.get("version")) else 0) + (50 if _truthy(s.get("implementation_date")) else 0)


def _transparency(s: Mapping[str, Any]) -> int:
    if s.get("is_transparent"):
        return 100
    return 50 if _truthy(s.get("description")) else 0


def _human_oversight(s: Mapping[str, Any]) -> int:
    return (70 if s.get("humans_in_loop") else 0) + (30 if _truthy(s.get("usage_context")) else 0)


def _accuracy(s: Mapping[str, Any]) -> int:
    return (
        (40 if _truthy(s.get("last_assessment_date")) else 0)
        + (30 if _truthy(s.get("risk_score")) else 0)
        + (30 if _truthy(s.get("version")) else 0)
    )


@dataclass(frozen=True)
class Criterion:
    name: str
    weight: float
    articles: Tuple[str, ...]
    score: Callable[[Mapping[str, Any]], int]
    threshold: int
    recommendation: str


CRITERIA: Tuple[Criterion, ...] = (
    Criterion(
        "Risk Management System", 0.15, ("Article 9",), _risk_management, 70,
        "Implement a comprehensive risk management system with regular assessments",
    ),
    Criterion(
        "Data Governance", 0.15, ("Article 10",), _data_governance, 70,
        "Enhance data governance practices with focus on quality control and data protection",
    ),
    Criterion(
        "Technical Documentation", 0.15, ("Article 11",),
        lambda s: int(s.get("doc_completeness") or 0), 80,
        "Complete technical documentation including system architecture, algorithms, and validation",
    ),
    Criterion(
        "Record Keeping", 0.10, ("Article 12",), _record_keeping, 60,
        "Implement robust logging and audit trail mechanisms",
    ),
    Criterion(
        "Transparency", 0.10, ("Article 13",), _transparency, 50,
        "Enhance transparency measures for end-users and affected individuals",
    ),
    Criterion(
        "Human Oversight", 0.15, ("Article 14",), _human_oversight, 70,
        "Strengthen human oversight protocols, especially for decision-making processes",
    ),
    Criterion(
        "Accuracy & Robustness", 0.10, ("Article 15",), _accuracy, 60,
        "Implement regular accuracy testing and bias monitoring",
    ),
    Criterion(
        "Training & Implementation", 0.10, ("Article 16", "Article 29"),
        lambda s: int(s.get("training_completeness") or 0), 50,
        "Develop comprehensive training for staff on EU AI Act requirements",
    ),
)

CONFORMITY_RECOMMENDATION = "Conduct a formal conformity assessment as required for high-risk AI systems"
GAP_THRESHOLD = 50


def _round_half_up(x: float) -> int:
    return int(x + 0.5)


def _is_high(system: Mapping[str, Any]) -> bool:
    return str(system.get("risk_level") or "").strip().lower() in {"high", "high risk"}


def calculate_compliance_score(system: Any) -> Dict[str, Any]:
    s = system_to_dict(system)
    category_scores: Dict[str, int] = {}
    weighted = 0.0
    articles: List[str] = []

    for c in CRITERIA:
        score = max(0, min(100, int(c.score(s))))
        category_scores[c.name] = score
        weighted += score * c.weight
        articles.extend(a for a in c.articles if a not in articles)

    recommendations = [c.recommendation for c in CRITERIA if category_scores[c.name] < c.threshold]
    if _is_high(s):
        recommendations.append(CONFORMITY_RECOMMENDATION)

    return {
        "overall_score": _round_half_up(weighted),
        "category_scores": category_scores,
        "gaps": [f"{name} ({score}% complete)" for name, score in category_scores.items() if score < GAP_THRESHOLD],
        "recommendations": recommendations,
        "relevant_articles": articles,
    }


def generate_compliance_roadmap(system: Any) -> Dict[str, Any]:
    s = system_to_dict(system)
    score = calculate_compliance_score(s)
    recs = score["recommendations"]

    level = str(s.get("risk_level") or "").strip().lower()
    multiplier = 1.0 if level == "high" else 1.5 if level == "limited" else 2.0

    return {
        "current_score": score["overall_score"],
        "priority_actions": {
            "immediate": recs[:3],
            "short_term": recs[3:6],
            "long_term": recs[6:],
        },
        "estimated_timeline": {
            "assessment_phase": f"{_round_half_up(2 * multiplier)} weeks",
            "implementation_phase": f"{_round_half_up(6 * multiplier)} weeks",
            "verification_phase": f"{_round_half_up(4 * multiplier)} weeks",
        },
    }
