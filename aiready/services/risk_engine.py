# aiready/services/risk_engine.py
"""
Questionnaire based classification.

Input is a flat mapping of boolean answers. Tiers are checked from the most
severe down and the first tier with a matching flag wins.
"""
from typing import Any, Dict, List, Mapping, Tuple

from aiready.services.eu_ai_act import level_score

# flag -> legal reference
UNACCEPTABLE_FLAGS: Dict[str, str] = {
    "subliminal_manipulation": "Art. 5(1)(a)",
    "exploits_vulnerabilities": "Art. 5(1)(b)",
    "social_scoring": "Art. 5(1)(c)",
    "predictive_policing_profiling": "Art. 5(1)(d)",
    "untargeted_facial_scraping": "Art. 5(1)(e)",
    "emotion_recognition_work_or_education": "Art. 5(1)(f)",
    "biometric_categorisation_sensitive": "Art. 5(1)(g)",
    "realtime_remote_biometric_id_law_enforcement": "Art. 5(1)(h)",
}

HIGH_FLAGS: Dict[str, str] = {
    "safety_component_of_regulated_product": "Art. 6(1), Annex I",
    "biometric_identification": "Annex III(1)",
    "critical_infrastructure": "Annex III(2)",
    "education_vocational_training": "Annex III(3)",
    "employment_workers_management": "Annex III(4)",
    "essential_services_credit_insurance": "Annex III(5)",
    "law_enforcement": "Annex III(6)",
    "migration_asylum_border": "Annex III(7)",
    "justice_democratic_processes": "Annex III(8)",
}

LIMITED_FLAGS: Dict[str, str] = {
    "interacts_with_humans": "Art. 50(1)",
    "generates_synthetic_content": "Art. 50(2)",
    "emotion_recognition": "Art. 50(3)",
    "biometric_categorisation": "Art. 50(3)",
    "deepfake": "Art. 50(4)",
}

TIER_REFERENCES: Dict[str, List[str]] = {
    "unacceptable": ["Art. 5"],
    "high": ["Art. 6", "Art. 9-15", "Annex III", "Annex IV", "Art. 43", "Art. 72"],
    "limited": ["Art. 50"],
    "minimal": ["Art. 95"],
}

CORE_OBLIGATIONS: Dict[str, List[str]] = {
    "unacceptable": [
        "Prohibited practice: the system must not be placed on the EU market or put into service. (Art. 5)",
    ],
    "high": [
        "Establish a risk management system. (Art. 9)",
        "Apply data governance and data quality controls. (Art. 10)",
        "Maintain technical documentation. (Art. 11, Annex IV)",
        "Enable automatic record keeping. (Art. 12)",
        "Provide transparency and instructions for use. (Art. 13)",
        "Design for effective human oversight. (Art. 14)",
        "Ensure accuracy, robustness and cybersecurity. (Art. 15)",
        "Complete a conformity assessment and affix CE marking. (Art. 43, Art. 48)",
        "Register the system in the EU database. (Art. 49)",
        "Run post-market monitoring and report serious incidents. (Art. 72, Art. 73)",
    ],
    "limited": [
        "Inform people that they are interacting with an AI system. (Art. 50)",
        "Mark synthetic or manipulated content as artificially generated. (Art. 50)",
    ],
    "minimal": [
        "No mandatory obligations; voluntary codes of conduct encouraged. (Art. 95)",
    ],
}

_TIERS: Tuple[Tuple[str, Dict[str, str]], ...] = (
    ("unacceptable", UNACCEPTABLE_FLAGS),
    ("high", HIGH_FLAGS),
    ("limited", LIMITED_FLAGS),
)


def _hits(answers: Mapping[str, Any], flags: Mapping[str, str]) -> List[str]:
    return [k for k in flags if answers.get(k) is True]


def _situational(answers: Mapping[str, Any], tier: str) -> List[str]:
    out: List[str] = []
    if answers.get("provider_outside_eu") is True:
        out.append("Appoint an EU authorised representative. (Art. 22)")
        out.append("Provide an EU contact point in notices and documentation.")
    if tier == "high" and answers.get("public_body_deployer") is True:
        out.append("Carry out a fundamental rights impact assessment before deployment. (Art. 27)")
    if answers.get("general_purpose_model") is True:
        out.append("Meet general-purpose AI model provider obligations. (Art. 53)")
    return out


def _dedup(items: List[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def classify_ai_system(answers: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Returns
      {
        "risk_level": "unacceptable" | "high" | "limited" | "minimal" | "out_of_scope",
        "risk_score": int,
        "matched_flags": [...],
        "obligations": {"core": [...], "situational": [...]},
        "rationale": [...],
        "references": [...],
      }
    """
    if answers.get("is_ai_system") is False:
        return {
            "risk_level": "out_of_scope",
            "risk_score": 0,
            "matched_flags": [],
            "obligations": {"core": [], "situational": []},
            "rationale": ["Does not meet the definition of an AI system. (Art. 3(1))"],
            "references": ["Art. 3"],
        }

    tier, hits, flag_refs = "minimal", [], {}
    for name, flags in _TIERS:
        found = _hits(answers, flags)
        if found:
            tier, hits, flag_refs = name, found, flags
            break

    if hits:
        rationale = [f"{tier.capitalize()} risk criteria matched: {', '.join(hits)}"]
    else:
        rationale = ["No unacceptable, high or limited risk criteria matched."]

    return {
        "risk_level": tier,
        "risk_score": level_score(tier),
        "matched_flags": hits,
        "obligations": {
            "core": list(CORE_OBLIGATIONS[tier]),
            "situational": _situational(answers, tier),
        },
        "rationale": rationale,
        "references": _dedup(TIER_REFERENCES[tier] + [flag_refs[h] for h in hits]),
    }
