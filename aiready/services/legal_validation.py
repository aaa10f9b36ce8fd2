# aiready/services/legal_validation.py
"""
Automated checks on generated legal assessments.

Every analysis result is scanned for hedging language, article references
outside the Act, self-contradicting statements and missing sections. The
outcome decides whether the result must go to a human expert before anyone
acts on it, and a disclaimer is attached either way.
"""
from __future__ import annotations

import enum
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


class ConfidenceLevel(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNCERTAIN = "uncertain"


class ReviewStatus(str, enum.Enum):
    VALIDATED = "validated"
    PENDING_REVIEW = "pending_review"
    REQUIRES_LEGAL_REVIEW = "requires_legal_review"
    OUTDATED = "outdated"


UNCERTAINTY_PHRASES = (
    "might be",
    "possibly",
    "could be",
    "unclear",
    "uncertain",
    "may be",
    "potential",
    "arguably",
    "seems",
    "appears to be",
    "not entirely clear",
    "ambiguous",
    "open to interpretation",
)

CERTAINTY_PHRASES = (
    "definitely",
    "certainly",
    "clearly",
    "without doubt",
    "unquestionably",
    "is required",
    "must be",
    "explicitly states",
    "according to article",
    "precisely",
    "specifically mandates",
    "is prohibited",
)

# Regulation (EU) 2024/1689 has 113 articles
MAX_ARTICLE = 113
MAX_PARAGRAPH = 10

_ARTICLE_REF = re.compile(
    r"Article (\d+)(?:\((\d+)\))?(?:\s*(?:of the EU AI Act|of Regulation|EU AI Act))?",
    re.IGNORECASE,
)

CONTRADICTIONS: Tuple[Tuple[re.Pattern, str], ...] = (
    (
        re.compile(r"is high risk.*is not high risk", re.IGNORECASE | re.DOTALL),
        "Contradicting statements about high risk classification",
    ),
    (
        re.compile(r"is prohibited.*is allowed", re.IGNORECASE | re.DOTALL),
        "Contradicting statements about prohibition",
    ),
    (
        re.compile(r"must comply.*exempt from", re.IGNORECASE | re.DOTALL),
        "Contradicting statements about compliance requirements",
    ),
    (
        re.compile(r"Article \d+ applies.*Article \d+ does not apply", re.IGNORECASE | re.DOTALL),
        "Contradicting statements about applicable articles",
    ),
)

REQUIRED_SECTIONS: Tuple[Tuple[str, re.Pattern], ...] = (
    ("Risk Classification", re.compile(r"risk (classification|category|level)", re.IGNORECASE)),
    (
        "Required Actions",
        re.compile(
            r"(required|recommended|necessary) (actions|steps|measures)|suggested improvements|recommendations",
            re.IGNORECASE,
        ),
    ),
    (
        "Legal Basis",
        re.compile(
            r"legal basis|according to article|based on the EU AI Act|applicable articles|regulatory implications",
            re.IGNORECASE,
        ),
    ),
    (
        "Limitations",
        re.compile(
            r"limitations|constraints|restrictions|this (assessment|analysis) (does not|is not)",
            re.IGNORECASE,
        ),
    ),
)

# structured results carry the disclaimer, which stands in for a limitations section
STRUCTURED_SECTIONS = tuple(name for name, _ in REQUIRED_SECTIONS if name != "Limitations")

REVIEW_RISK_LEVELS = {"high", "unacceptable"}
_CAMEL = re.compile(r"(?<=[a-z])(?=[A-Z])")


# -----------------------------
# Individual checks
# -----------------------------
def analyze_confidence(text: str) -> ConfidenceLevel:
    lowered = (text or "").lower()
    uncertain = sum(1 for p in UNCERTAINTY_PHRASES if p in lowered)
    certain = sum(1 for p in CERTAINTY_PHRASES if p in lowered)

    if uncertain > 3 and certain < 2:
        return ConfidenceLevel.LOW
    if uncertain > 1 and certain >= 2:
        return ConfidenceLevel.MEDIUM
    if uncertain <= 1 and certain >= 3:
        return ConfidenceLevel.HIGH
    return ConfidenceLevel.MEDIUM


def validate_legal_references(text: str) -> Tuple[bool, List[str]]:
    """(valid, invalid references) for every "Article N" / "Article N(p)" in text."""
    invalid: List[str] = []
    for match in _ARTICLE_REF.finditer(text or ""):
        article, paragraph = int(match.group(1)), match.group(2)
        if not 1 <= article <= MAX_ARTICLE or (paragraph and int(paragraph) > MAX_PARAGRAPH):
            ref = f"Article {article}({paragraph})" if paragraph else f"Article {article}"
            if ref not in invalid:
                invalid.append(ref)
    return not invalid, invalid


def check_for_contradictions(text: str) -> List[str]:
    return [message for pattern, message in CONTRADICTIONS if pattern.search(text or "")]


def check_required_sections(text: str, sections: Optional[Sequence[str]] = None) -> List[str]:
    """Names of the required sections with no match in text."""
    wanted = set(sections) if sections is not None else None
    return [
        name
        for name, pattern in REQUIRED_SECTIONS
        if (wanted is None or name in wanted) and not pattern.search(text or "")
    ]


def validate_legal_output(text: str, sections: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "is_valid": True,
        "confidence_level": ConfidenceLevel.MEDIUM.value,
        "review_status": ReviewStatus.VALIDATED.value,
        "issues": [],
        "warnings": [],
        "review_required": False,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "validator": "system",
    }

    confidence = analyze_confidence(text)
    result["confidence_level"] = confidence.value
    if confidence is ConfidenceLevel.LOW:
        result["warnings"].append("Assessment contains high uncertainty language")
        result["review_status"] = ReviewStatus.REQUIRES_LEGAL_REVIEW.value
        result["review_required"] = True

    valid_refs, invalid_refs = validate_legal_references(text)
    if not valid_refs:
        result["issues"].append(f"Invalid legal references: {', '.join(invalid_refs)}")
        result["is_valid"] = False
        result["review_required"] = True

    contradictions = check_for_contradictions(text)
    if contradictions:
        result["issues"].extend(contradictions)
        result["is_valid"] = False
        result["review_status"] = ReviewStatus.REQUIRES_LEGAL_REVIEW.value
        result["review_required"] = True

    missing = check_required_sections(text, sections)
    if missing:
        result["issues"].append(f"Missing required sections: {', '.join(missing)}")
        result["is_valid"] = False
        result["review_required"] = True

    return result


def requires_expert_review(assessment: Mapping[str, Any]) -> bool:
    if str(assessment.get("risk_level") or "").strip().lower() in REVIEW_RISK_LEVELS:
        return True
    if assessment.get("confidence_level") in (ConfidenceLevel.LOW.value, ConfidenceLevel.UNCERTAIN.value):
        return True
    validation = assessment.get("legal_validation")
    if validation and (validation.get("issues") or not validation.get("is_valid", True)):
        return True
    return False


def legal_disclaimer(confidence_level: str, review_required: bool, today: Optional[datetime] = None) -> str:
    today = today or datetime.now(timezone.utc)
    parts = [
        "Important legal notice: this assessment is provided for informational purposes only and "
        "does not constitute legal advice. It was generated with "
        f"{confidence_level} confidence and should be reviewed by qualified legal professionals "
        "before making compliance decisions."
    ]
    if review_required:
        parts.append("This assessment requires professional legal review before implementation.")
    parts.append(
        f"Assessment generated on {today.date().isoformat()} based on the current understanding of the EU AI Act."
    )
    return " ".join(parts)


def add_legal_disclaimer(assessment: Mapping[str, Any]) -> Dict[str, Any]:
    out = dict(assessment)
    out["legal_disclaimer"] = legal_disclaimer(
        assessment.get("confidence_level") or ConfidenceLevel.MEDIUM.value,
        bool(assessment.get("review_required")),
    )
    return out


# -----------------------------
# Structured results
# -----------------------------
def _walk(value: Any, label: str, values: List[str], labelled: List[str]) -> None:
    if isinstance(value, Mapping):
        for k, v in value.items():
            key = _CAMEL.sub(" ", str(k)).replace("_", " ").lower()
            if isinstance(v, (Mapping, list, tuple)):
                labelled.append(f"{key}:")
            _walk(v, key, values, labelled)
    elif isinstance(value, (list, tuple)):
        for v in value:
            _walk(v, label, values, labelled)
    elif isinstance(value, str) and value.strip():
        values.append(value.strip())
        labelled.append(f"{label}: {value.strip()}" if label else value.strip())
    elif value is not None and not isinstance(value, bool):
        labelled.append(f"{label}: {value}" if label else str(value))


def result_text(data: Any, with_labels: bool = False) -> str:
    """Flatten a result into text; with_labels prefixes each value with its key."""
    values: List[str] = []
    labelled: List[str] = []
    _walk(data, "", values, labelled)
    return "\n".join(labelled if with_labels else values)


def review_result(result: Mapping[str, Any], risk_level: Optional[str] = None) -> Dict[str, Any]:
    """
    Validate an analysis result and attach legal_validation, confidence_level,
    review_status, review_required and legal_disclaimer.
    """
    content = result_text(result)
    validation = validate_legal_output(content, sections=())
    missing = check_required_sections(result_text(result, with_labels=True), STRUCTURED_SECTIONS)
    if missing:
        validation["issues"].append(f"Missing required sections: {', '.join(missing)}")
        validation["is_valid"] = False
        validation["review_required"] = True

    out = dict(result)
    out["legal_validation"] = validation
    out["confidence_level"] = validation["confidence_level"]
    out["review_status"] = validation["review_status"]
    out["review_required"] = requires_expert_review(
        {**out, "risk_level": risk_level or result.get("risk_level")}
    )
    return add_legal_disclaimer(out)
