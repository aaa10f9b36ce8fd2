# aiready/services/risk_assessment.py
"""
Risk assessment workflow.

    draft / in_progress / requires_update --submit--> completed
    completed --approve--> approved   (copies risk level/score onto the system)
    completed --reject-->  rejected
"""
from __future__ import annotations

import calendar
import functools
import logging
import uuid
from datetime import datetime
from typing import Any, List, Mapping, Optional

from sqlalchemy.orm import Session

from aiready.core.errors import AppError, BusinessLogicError, ResourceNotFoundError
from aiready.models.ai_system import AISystem
from aiready.models.deadline import Deadline
from aiready.models.risk_assessment import (
    AssessmentStatus,
    EDITABLE_STATUSES,
    RiskAssessment,
    RiskLevel,
)
from aiready.models.user import User
from aiready.services.activity import record_activity
from aiready.services.ai_analysis import analyze_prohibited_use, analyze_system_risk
from aiready.services.ai_client import ProviderChain
from aiready.services.eu_ai_act import level_score
from aiready.services.expert_review import queue_for_expert_review

log = logging.getLogger(__name__)

REASSESSMENT_MONTHS = {
    "monthly": 1,
    "quarterly": 3,
    "semi-annual": 6,
    "semi_annual": 6,
    "annual": 12,
}
DEFAULT_REASSESSMENT_MONTHS = 6

REQUIRED_DOCUMENTATION = {
    "unacceptable": [],
    "high": [
        "technical_documentation",
        "risk_assessment",
        "conformity_declaration",
        "human_oversight_protocol",
        "data_governance_policy",
        "incident_response_plan",
    ],
    "limited": ["technical_documentation"],
    "minimal": [],
}

# fields a caller may set on create/update
ASSESSMENT_FIELDS = (
    "risk_level",
    "risk_score",
    "risk_factors",
    "risk_areas",
    "mitigation_measures",
    "required_documentation",
    "applicable_articles",
    "prohibited_uses_checked",
    "prohibited_uses_results",
    "summary_notes",
    "next_review_date",
)


def _workflow_step(operation: str):
    """Wrap unexpected failures of a workflow step in BusinessLogicError."""

    def deco(fn):
        @functools.wraps(fn)
        def wrapper(db: Session, *args, **kwargs):
            try:
                return fn(db, *args, **kwargs)
            except AppError:
                db.rollback()
                raise
            except Exception as e:
                db.rollback()
                log.exception("risk assessment %s failed", operation)
                raise BusinessLogicError(f"Failed to {operation} risk assessment", details={"error": str(e)}) from e

        return wrapper

    return deco


def normalize_level(value: Any) -> str:
    text = str(value or "").strip().lower()
    for level in RiskLevel:
        if level.value in text:
            return level.value
    return RiskLevel.MINIMAL.value


def system_level_label(level: str) -> str:
    """Title-case label stored on the system, e.g. high -> High."""
    return normalize_level(level).capitalize()


def overall_assessment_score(risk_areas: Optional[List[Mapping[str, Any]]], risk_level: str) -> int:
    """Mean of per-area scores when there are any, otherwise the level default."""
    scores = []
    for area in risk_areas or []:
        try:
            scores.append(float(area.get("score")))
        except (TypeError, ValueError, AttributeError):
            continue
    if scores:
        return int(round(sum(scores) / len(scores)))
    return level_score(risk_level)


def add_months(dt: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


# -----------------------------
# Queries
# -----------------------------
def get_system_or_404(db: Session, ai_system_id: int) -> AISystem:
    system = db.get(AISystem, ai_system_id)
    if system is None:
        raise ResourceNotFoundError("System", ai_system_id)
    return system


def get_assessment_or_404(db: Session, assessment_id: str) -> RiskAssessment:
    row = db.query(RiskAssessment).filter(RiskAssessment.assessment_id == assessment_id).first()
    if row is None:
        raise ResourceNotFoundError("Risk assessment", assessment_id)
    return row


def list_for_system(db: Session, ai_system_id: int) -> List[RiskAssessment]:
    return (
        db.query(RiskAssessment)
        .filter(RiskAssessment.ai_system_id == ai_system_id)
        .order_by(RiskAssessment.assessment_date.desc(), RiskAssessment.id.desc())
        .all()
    )


def latest_for_system(db: Session, ai_system_id: int) -> Optional[RiskAssessment]:
    rows = list_for_system(db, ai_system_id)
    return rows[0] if rows else None


# -----------------------------
# Workflow
# -----------------------------
def _apply_fields(row: RiskAssessment, data: Mapping[str, Any]) -> None:
    for key in ASSESSMENT_FIELDS:
        if key in data:
            value = data[key]
            if key == "risk_level":
                value = normalize_level(value)
            setattr(row, key, value)


@_workflow_step("create")
def create_assessment(
    db: Session,
    ai_system_id: int,
    data: Mapping[str, Any],
    user: Optional[User] = None,
) -> RiskAssessment:
    system = get_system_or_404(db, ai_system_id)

    row = RiskAssessment(
        assessment_id=f"ra_{uuid.uuid4().hex}",
        ai_system_id=system.id,
        created_by=user.id if user else None,
        status=AssessmentStatus.DRAFT.value,
        risk_level=RiskLevel.MINIMAL.value,
        risk_score=0,
        assessment_date=datetime.utcnow(),
    )
    _apply_fields(row, data)
    if data.get("risk_score") is None and data.get("risk_areas"):
        row.risk_score = overall_assessment_score(row.risk_areas, row.risk_level)
    if "required_documentation" not in data:
        row.required_documentation = list(REQUIRED_DOCUMENTATION.get(row.risk_level, []))

    db.add(row)
    db.flush()
    record_activity(
        db,
        type="risk_assessment_created",
        description=f"Risk assessment created for {system.name}",
        user_id=user.id if user else None,
        ai_system_id=system.id,
        meta={"assessment_id": row.assessment_id},
        commit=False,
    )
    db.commit()
    db.refresh(row)
    return row


@_workflow_step("update")
def update_assessment(
    db: Session,
    row: RiskAssessment,
    data: Mapping[str, Any],
    user: Optional[User] = None,
) -> RiskAssessment:
    if row.status not in EDITABLE_STATUSES:
        raise BusinessLogicError(
            f"Assessment in status '{row.status}' cannot be modified",
            details={"status": row.status},
        )
    _apply_fields(row, data)
    if "status" in data and data["status"] in EDITABLE_STATUSES:
        row.status = data["status"]
    if data.get("risk_score") is None and "risk_areas" in data:
        row.risk_score = overall_assessment_score(row.risk_areas, row.risk_level)

    record_activity(
        db,
        type="risk_assessment_updated",
        description=f"Risk assessment {row.assessment_id} updated",
        user_id=user.id if user else None,
        ai_system_id=row.ai_system_id,
        meta={"fields": sorted(k for k in data if k in ASSESSMENT_FIELDS or k == "status")},
        commit=False,
    )
    db.commit()
    db.refresh(row)
    return row


@_workflow_step("submit")
def submit_assessment(
    db: Session,
    row: RiskAssessment,
    notes: Optional[str] = None,
    user: Optional[User] = None,
) -> RiskAssessment:
    if row.status not in EDITABLE_STATUSES:
        raise BusinessLogicError(f"Only draft or in-progress assessments can be submitted (status '{row.status}')")
    row.status = AssessmentStatus.COMPLETED.value
    row.summary_notes = notes or row.summary_notes
    record_activity(
        db,
        type="risk_assessment_submitted",
        description=f"Risk assessment {row.assessment_id} submitted for review",
        user_id=user.id if user else None,
        ai_system_id=row.ai_system_id,
        commit=False,
    )
    db.commit()
    db.refresh(row)
    return row


@_workflow_step("approve")
def approve_assessment(
    db: Session,
    row: RiskAssessment,
    notes: Optional[str] = None,
    user: Optional[User] = None,
) -> RiskAssessment:
    if row.status != AssessmentStatus.COMPLETED.value:
        raise BusinessLogicError(f"Only completed assessments can be approved (status '{row.status}')")

    now = datetime.utcnow()
    row.status = AssessmentStatus.APPROVED.value
    row.approved_by = user.id if user else None
    row.approved_at = now
    if notes:
        row.summary_notes = f"{row.summary_notes or ''}\n\nApproval Notes: {notes}"

    system = get_system_or_404(db, row.ai_system_id)
    system.risk_level = system_level_label(row.risk_level)
    system.risk_score = row.risk_score
    system.last_assessment_date = now

    record_activity(
        db,
        type="risk_assessment_approved",
        description=f"Risk assessment {row.assessment_id} approved; {system.name} is {system.risk_level} risk",
        user_id=user.id if user else None,
        ai_system_id=system.id,
        commit=False,
    )
    db.commit()
    db.refresh(row)
    return row


@_workflow_step("reject")
def reject_assessment(
    db: Session,
    row: RiskAssessment,
    reason: str,
    user: Optional[User] = None,
) -> RiskAssessment:
    if row.status != AssessmentStatus.COMPLETED.value:
        raise BusinessLogicError(f"Only completed assessments can be rejected (status '{row.status}')")
    row.status = AssessmentStatus.REJECTED.value
    row.summary_notes = f"{row.summary_notes or ''}\n\nRejection Reason: {reason}"
    record_activity(
        db,
        type="risk_assessment_rejected",
        description=f"Risk assessment {row.assessment_id} rejected",
        user_id=user.id if user else None,
        ai_system_id=row.ai_system_id,
        meta={"reason": reason},
        commit=False,
    )
    db.commit()
    db.refresh(row)
    return row


def run_ai_assessment(
    db: Session,
    ai_system_id: int,
    user: Optional[User] = None,
    chain: Optional[ProviderChain] = None,
) -> RiskAssessment:
    """Analysis pipeline -> new draft assessment carrying the result."""
    system = get_system_or_404(db, ai_system_id)
    chain = chain or ProviderChain()

    analysis = analyze_system_risk(system, chain=chain)
    prohibited = analyze_prohibited_use(system, chain=chain)

    level = normalize_level(analysis.get("risk_level"))
    if not prohibited.get("is_compliant", True):
        level = RiskLevel.UNACCEPTABLE.value

    score = int(analysis.get("risk_score") or level_score(level))
    if level == RiskLevel.UNACCEPTABLE.value:
        score = max(score, level_score(level))

    row = create_assessment(
        db,
        system.id,
        {
            "risk_level": level,
            "risk_score": score,
            "risk_factors": analysis.get("key_risk_factors") or [],
            "mitigation_measures": analysis.get("suggested_improvements") or [],
            "applicable_articles": analysis.get("applicable_articles") or [],
            "prohibited_uses_checked": True,
            "prohibited_uses_results": prohibited,
            "summary_notes": analysis.get("justification"),
        },
        user,
    )
    if level in (RiskLevel.HIGH.value, RiskLevel.UNACCEPTABLE.value):
        analysis["review_required"] = True
    if analysis.get("review_required"):
        queue_for_expert_review(
            db,
            analysis,
            user=user,
            ai_system_id=system.id,
            assessment_id=row.assessment_id,
            commit=False,
        )
    row.analysis = analysis
    row.analysis_source = analysis.get("source")
    db.commit()
    db.refresh(row)
    return row


@_workflow_step("schedule reassessment for")
def schedule_reassessment(
    db: Session,
    ai_system_id: int,
    interval: str = "semi-annual",
    user: Optional[User] = None,
    *,
    now: Optional[datetime] = None,
) -> Deadline:
    system = get_system_or_404(db, ai_system_id)
    months = REASSESSMENT_MONTHS.get((interval or "").lower(), DEFAULT_REASSESSMENT_MONTHS)
    due = add_months(now or datetime.utcnow(), months)

    deadline = Deadline(
        title=f"Reassessment of {system.name}",
        description=f"Scheduled {interval} risk reassessment under the EU AI Act",
        date=due,
        type="reassessment",
        ai_system_id=system.id,
    )
    db.add(deadline)

    latest = latest_for_system(db, system.id)
    if latest is not None:
        latest.next_review_date = due

    record_activity(
        db,
        type="reassessment_scheduled",
        description=f"Reassessment of {system.name} scheduled for {due.date().isoformat()}",
        user_id=user.id if user else None,
        ai_system_id=system.id,
        meta={"interval": interval},
        commit=False,
    )
    db.commit()
    db.refresh(deadline)
    return deadline

