# aiready/services/eu_ai_act.py
"""
Static EU AI Act reference data shared by the rule engine, the analysis
pipeline and the document generator.
"""
from typing import Dict, List, Tuple

# default score per level when no per-area scores exist
LEVEL_SCORES: Dict[str, int] = {
    "unacceptable": 90,
    "high": 70,
    "limited": 40,
    "minimal": 20,
}

# (practice, article, trigger keywords)
PROHIBITED_PRACTICES: List[Tuple[str, str, Tuple[str, ...]]] = [
    (
        "Subliminal manipulation resulting in physical or psychological harm",
        "Article 5(1)(a)",
        ("subliminal", "manipulat", "dark pattern"),
    ),
    (
        "Exploitation of vulnerabilities of specific groups",
        "Article 5(1)(b)",
        ("exploit vulnerab", "exploiting vulnerab", "target children", "target elderly"),
    ),
    (
        "Social scoring by public authorities",
        "Article 5(1)(c)",
        ("social scoring", "social credit", "citizen score"),
    ),
    (
        "Real-time remote biometric identification in publicly accessible spaces for law enforcement",
        "Article 5(1)(h)",
        ("real-time biometric", "real-time facial recognition", "live facial recognition"),
    ),
    (
        "Emotion recognition in workplace or educational settings",
        "Article 5(1)(f)",
        ("emotion recognition in the workplace", "employee emotion", "student emotion"),
    ),
    (
        "Biometric categorisation by ethnicity, political views or other sensitive traits",
        "Article 5(1)(g)",
        ("categorise by ethnicity", "categorize by ethnicity", "infer political", "infer sexual orientation"),
    ),
    (
        "Untargeted scraping of facial images",
        "Article 5(1)(e)",
        ("scrape facial", "scraping facial", "facial image scraping", "untargeted scraping"),
    ),
]

HIGH_RISK_DOMAINS: Tuple[str, ...] = (
    "healthcare",
    "medical",
    "legal",
    "judicial",
    "law enforcement",
    "education",
    "employment",
    "critical infrastructure",
    "banking",
    "financial",
    "insurance",
    "credit",
    "pneumonia",
    "diagnostic",
    "radiology",
    "hospital",
    "clinic",
    "x-ray",
    "xray",
    "chest",
    "computer vision",
    "image analysis",
)

# gap analysis areas: (name, article, document types that evidence it)
COMPLIANCE_AREAS: List[Tuple[str, str, Tuple[str, ...]]] = [
    ("Technical documentation", "Article 11", ("technical_documentation",)),
    ("Risk management", "Article 9", ("risk_assessment",)),
    ("Data governance", "Article 10", ("data_governance_policy",)),
    ("Human oversight", "Article 14", ("human_oversight_protocol",)),
    ("Transparency", "Article 13", ("technical_documentation", "conformity_declaration")),
    ("Accuracy and robustness", "Article 15", ("incident_response_plan", "technical_documentation")),
]


def level_score(level: str) -> int:
    return LEVEL_SCORES.get((level or "").strip().lower(), LEVEL_SCORES["minimal"])


def find_keywords(text: str, keywords) -> List[str]:
    """Keywords (in declaration order) that occur in the lowercased text."""
    haystack = (text or "").lower()
    return [k for k in keywords if k in haystack]
