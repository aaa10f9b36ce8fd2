# aiready/services/training.py
"""
Training catalogue, role tailored module content and per user progress.

Module content is generated through the provider chain. Scored assessments
always use the fixed question bank so results are comparable between users.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from aiready.core.errors import ResourceNotFoundError, ValidationError
from aiready.models.training import TrainingModule, TrainingProgress
from aiready.models.user import User
from aiready.services.activity import record_activity
from aiready.services.ai_client import ProviderChain
from aiready.services.json_extract import parse_json_reply

log = logging.getLogger(__name__)

TRAINING_ROLES = ("decision_maker", "developer", "operator", "user")
PASS_SCORE = 70

MODULES: List[Dict[str, Any]] = [
    {
        "id": "1",
        "title": "EU AI Act Introduction",
        "description": "Overview of the EU AI Act, its objectives, scope, and implications for organizations.",
        "estimated_time": "45 minutes",
        "topics": ["AI Act Overview", "Key Definitions", "Prohibited Practices", "Risk Categories"],
        "role_relevance": {"decision_maker": "High", "developer": "High", "operator": "High", "user": "Medium"},
    },
    {
        "id": "2",
        "title": "Risk Classification System",
        "description": "Detailed exploration of the risk-based approach and classification criteria.",
        "estimated_time": "60 minutes",
        "topics": ["Risk-Based Approach", "Classification Criteria", "Examples by Category", "Risk Assessment Process"],
        "role_relevance": {"decision_maker": "High", "developer": "High", "operator": "Medium", "user": "Low"},
    },
    {
        "id": "3",
        "title": "Technical Requirements",
        "description": "Technical compliance requirements for AI systems under the EU AI Act.",
        "estimated_time": "90 minutes",
        "topics": ["Data Governance", "Technical Documentation", "Record Keeping", "Transparency"],
        "role_relevance": {"decision_maker": "Medium", "developer": "High", "operator": "High", "user": "Low"},
    },
    {
        "id": "4",
        "title": "Documentation Requirements",
        "description": "Comprehensive guide to required documentation for AI system compliance.",
        "estimated_time": "75 minutes",
        "topics": ["Technical Documentation", "Risk Management", "Data Sheets", "User Instructions"],
        "role_relevance": {"decision_maker": "Medium", "developer": "High", "operator": "Medium", "user": "Low"},
    },
    {
        "id": "5",
        "title": "Governance Framework",
        "description": "Organizational governance structures for EU AI Act compliance.",
        "estimated_time": "60 minutes",
        "topics": ["Compliance Roles", "Reporting Structure", "Oversight Mechanisms", "Incident Response"],
        "role_relevance": {"decision_maker": "High", "developer": "Medium", "operator": "Medium", "user": "Low"},
    },
    {
        "id": "6",
        "title": "Implementation Case Studies",
        "description": "Real-world examples of EU AI Act implementation across various industries.",
        "estimated_time": "90 minutes",
        "topics": ["Healthcare AI", "Financial Services", "Manufacturing", "Public Services"],
        "role_relevance": {"decision_maker": "High", "developer": "High", "operator": "High", "user": "Medium"},
    },
]

GENERAL_QUESTIONS: List[Dict[str, Any]] = [
    {
        "question": "Which of the following is NOT one of the risk categories in the EU AI Act?",
        "options": ["Unacceptable Risk", "High Risk", "Medium Risk", "Limited Risk"],
        "correct_answer": "Medium Risk",
    },
    {
        "question": "What happens to AI systems classified as 'Unacceptable Risk'?",
        "options": [
            "They require continuous monitoring",
            "They are prohibited",
            "They need special certification",
            "They must be registered in an EU database",
        ],
        "correct_answer": "They are prohibited",
    },
]

QUESTION_BANK: Dict[str, List[Dict[str, Any]]] = {
    "4": [
        {
            "question": "Which EU AI Act article specifically covers technical documentation requirements?",
            "options": ["Article 9", "Article 10", "Article 11", "Article 12"],
            "correct_answer": "Article 11",
        },
        {
            "question": "Which of the following is NOT typically included in automatic logs required under Article 12?",
            "options": [
                "Start/stop periods of operation",
                "Development team meeting minutes",
                "Input data reference",
                "User interactions with the system",
            ],
            "correct_answer": "Development team meeting minutes",
        },
        {
            "question": "Who is primarily responsible for maintaining the EU Declaration of Conformity?",
            "options": [
                "The AI system user",
                "The AI system provider",
                "The regulatory authority",
                "Third-party testers",
            ],
            "correct_answer": "The AI system provider",
        },
    ],
}

STATIC_SECTIONS: List[Dict[str, str]] = [
    {
        "title": "Introduction",
        "content": (
            "<h3>Welcome to this training module</h3>"
            "<p>The EU AI Act is a comprehensive regulatory framework designed to ensure AI systems used "
            "within the European Union are safe, transparent, traceable and non-discriminatory. The Act "
            "takes a risk-based approach, with different requirements based on the level of risk posed "
            "by AI systems.</p>"
        ),
    },
    {
        "title": "Learning Objectives",
        "content": (
            "<p>By the end of this module, you will be able to:</p><ul>"
            "<li>Understand the purpose and scope of the EU AI Act</li>"
            "<li>Identify the different risk categories for AI systems</li>"
            "<li>Recognize prohibited AI practices</li>"
            "<li>Understand basic compliance requirements for your role</li></ul>"
        ),
    },
    {
        "title": "Key Concepts",
        "content": (
            "<h3>Risk-Based Approach</h3>"
            "<p>The EU AI Act classifies AI systems into four risk categories:</p><ol>"
            "<li><strong>Unacceptable Risk:</strong> AI systems that pose a clear threat to people are prohibited.</li>"
            "<li><strong>High Risk:</strong> AI systems that could harm people's safety or fundamental rights "
            "are subject to strict requirements.</li>"
            "<li><strong>Limited Risk:</strong> AI systems with specific transparency obligations.</li>"
            "<li><strong>Minimal Risk:</strong> All other AI systems are subject to minimal regulation.</li></ol>"
        ),
    },
]


# -----------------------------
# Catalogue
# -----------------------------
def ensure_modules(db: Session) -> int:
    """Insert the built-in modules that are missing. Returns how many were added."""
    existing = {m_id for (m_id,) in db.query(TrainingModule.id).all()}
    added = 0
    for order, data in enumerate(MODULES, 1):
        if data["id"] in existing:
            continue
        db.add(TrainingModule(sort_order=order, **data))
        added += 1
    if added:
        db.commit()
        log.info("seeded %s training modules", added)
    return added


def list_modules(db: Session) -> List[TrainingModule]:
    ensure_modules(db)
    return db.query(TrainingModule).order_by(TrainingModule.sort_order.asc()).all()


def get_module_or_404(db: Session, module_id: str) -> TrainingModule:
    ensure_modules(db)
    module = db.get(TrainingModule, module_id)
    if not module:
        raise ResourceNotFoundError("Training module", module_id)
    return module


def questions_for(module_id: str) -> List[Dict[str, Any]]:
    return QUESTION_BANK.get(module_id, GENERAL_QUESTIONS)


# -----------------------------
# Content
# -----------------------------
def _content_prompt(module: TrainingModule, role: str) -> str:
    return (
        "Generate a complete EU AI Act training module with the following details:\n\n"
        f"Module title: {module.title}\n"
        f"Module description: {module.description}\n"
        f"Topics: {', '.join(module.topics or [])}\n"
        f"User role: {role}\n\n"
        f"The content should be tailored to a user with role: {role}.\n\n"
        "Structure your response as JSON with the following format:\n"
        '{"title": "Module title", '
        '"sections": [{"title": "Section title", "content": "HTML-formatted content"}], '
        '"assessments": [{"question": "Question text", "options": ["A", "B", "C", "D"], '
        '"correct_answer": "Correct option text"}]}\n\n'
        "Include 3-4 informative sections and 2-3 assessment questions. "
        "Ensure all content is accurate according to the official EU AI Act. "
        "Format section content with HTML tags like <p>, <ul>, <li>, <h3>."
    )


def _parse_content(text: str) -> Dict[str, Any]:
    data = parse_json_reply(text)
    sections = data.get("sections")
    assessments = data.get("assessments")
    if not data.get("title") or not isinstance(sections, list) or not isinstance(assessments, list):
        raise ValueError("module content missing title, sections or assessments")
    for q in assessments:
        if isinstance(q, dict) and "correctAnswer" in q and "correct_answer" not in q:
            q["correct_answer"] = q.pop("correctAnswer")
    return {"title": data["title"], "sections": sections, "assessments": assessments}


def static_content(module: TrainingModule) -> Dict[str, Any]:
    return {
        "title": module.title,
        "sections": [dict(s) for s in STATIC_SECTIONS],
        "assessments": [dict(q) for q in questions_for(module.id)],
    }


def get_module_content(
    module: TrainingModule,
    role: str = "user",
    chain: Optional[ProviderChain] = None,
) -> Dict[str, Any]:
    if role not in TRAINING_ROLES:
        role = "user"
    chain = chain or ProviderChain()
    res = chain.run(
        _content_prompt(module, role),
        parse=_parse_content,
        fallback=lambda hits: static_content(module),
        max_tokens=3000,
    )
    out = dict(res.data)
    out.update({"module_id": module.id, "role": role, "source": res.source})
    return out


# -----------------------------
# Progress
# -----------------------------
def _clamp(value: Any) -> int:
    try:
        v = int(round(float(value)))
    except (TypeError, ValueError):
        raise ValidationError("completion must be a number") from None
    return max(0, min(100, v))


def _progress_row(db: Session, user_id: int, module_id: str) -> TrainingProgress:
    row = (
        db.query(TrainingProgress)
        .filter(TrainingProgress.user_id == user_id, TrainingProgress.module_id == module_id)
        .first()
    )
    if row is None:
        row = TrainingProgress(user_id=user_id, module_id=module_id, completion=0)
        db.add(row)
    return row


def track_progress(db: Session, user: User, module_id: str, completion: Any) -> TrainingProgress:
    module = get_module_or_404(db, module_id)
    row = _progress_row(db, user.id, module.id)
    row.completion = _clamp(completion)
    row.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(row)
    return row


def get_user_progress(db: Session, user_id: int) -> Dict[str, Dict[str, Any]]:
    rows = db.query(TrainingProgress).filter(TrainingProgress.user_id == user_id).all()
    return {
        r.module_id: {
            "module_id": r.module_id,
            "completion": r.completion,
            "assessment_score": r.assessment_score,
            "updated_at": r.updated_at,
        }
        for r in rows
    }


def score_answers(questions: List[Mapping[str, Any]], answers: Mapping[str, str]) -> Dict[str, Any]:
    """answers maps question text -> chosen option."""
    results = []
    correct = 0
    for q in questions:
        chosen = answers.get(q["question"])
        ok = chosen is not None and chosen.strip() == q["correct_answer"]
        correct += ok
        results.append(
            {"question": q["question"], "selected": chosen, "correct": ok, "correct_answer": q["correct_answer"]}
        )
    total = len(questions)
    score = round(correct * 100 / total) if total else 0
    return {"score": score, "correct": correct, "total": total, "passed": score >= PASS_SCORE, "results": results}


def submit_assessment(db: Session, user: User, module_id: str, answers: Mapping[str, str]) -> Dict[str, Any]:
    module = get_module_or_404(db, module_id)
    outcome = score_answers(questions_for(module.id), answers)

    row = _progress_row(db, user.id, module.id)
    row.assessment_score = outcome["score"]
    if outcome["passed"]:
        row.completion = 100
    row.updated_at = datetime.utcnow()
    record_activity(
        db,
        type="training_assessment_submitted",
        description=f"{module.title} assessment scored {outcome['score']}%",
        user_id=user.id,
        meta={"module_id": module.id, "score": outcome["score"], "passed": outcome["passed"]},
        commit=False,
    )
    db.commit()
    outcome["module_id"] = module.id
    outcome["completion"] = row.completion
    return outcome
