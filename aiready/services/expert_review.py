# aiready/services/expert_review.py
"""
Queue of analysis results waiting for a human legal expert.

    pending --(assigned)--> in_progress --> completed
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from aiready.core.errors import BusinessLogicError, ResourceNotFoundError
from aiready.crud.ai_system import get_system_or_404
from aiready.models.expert_review import ExpertReview
from aiready.models.risk_assessment import RiskAssessment
from aiready.models.user import User
from aiready.services.activity import record_activity
from aiready.services.legal_validation import ReviewStatus, result_text

log = logging.getLogger(__name__)


def create_review(
    db: Session,
    user: Optional[User],
    *,
    text: str,
    type: str = "risk_assessment",
    ai_system_id: Optional[int] = None,
    assessment_id: Optional[str] = None,
    validation_result: Optional[Dict[str, Any]] = None,
    commit: bool = True,
) -> ExpertReview:
    if ai_system_id is not None:
        get_system_or_404(db, ai_system_id)
    if assessment_id is not None:
        exists = db.query(RiskAssessment.id).filter(RiskAssessment.assessment_id == assessment_id).first()
        if not exists:
            raise ResourceNotFoundError("Risk assessment", assessment_id)

    row = ExpertReview(
        review_id=f"review_{uuid.uuid4().hex}",
        text=text,
        type=type,
        status="pending",
        ai_system_id=ai_system_id,
        assessment_id=assessment_id,
        validation_result=validation_result,
        requested_by=user.id if user else None,
    )
    db.add(row)
    db.flush()
    record_activity(
        db,
        type="expert_review_requested",
        description=f"Expert review requested for {type}",
        user_id=row.requested_by,
        ai_system_id=ai_system_id,
        meta={"review_id": row.review_id, "assessment_id": assessment_id},
        commit=False,
    )
    if commit:
        db.commit()
        db.refresh(row)
    return row


def queue_for_expert_review(
    db: Session,
    result: Dict[str, Any],
    *,
    type: str = "risk_assessment",
    user: Optional[User] = None,
    ai_system_id: Optional[int] = None,
    assessment_id: Optional[str] = None,
    commit: bool = True,
) -> ExpertReview:
    """Store a review request for an analysis result and mark the result pending."""
    row = create_review(
        db,
        user,
        text=result_text(result),
        type=type,
        ai_system_id=ai_system_id,
        assessment_id=assessment_id,
        validation_result=result.get("legal_validation"),
        commit=commit,
    )
    result["review_status"] = ReviewStatus.PENDING_REVIEW.value
    result["review_id"] = row.review_id
    log.info("queued %s for expert review as %s", type, row.review_id)
    return row


def list_reviews(
    db: Session,
    *,
    status: Optional[str] = None,
    type: Optional[str] = None,
    ai_system_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 50,
) -> List[ExpertReview]:
    q = db.query(ExpertReview)
    if status:
        q = q.filter(ExpertReview.status == status)
    if type:
        q = q.filter(ExpertReview.type == type)
    if ai_system_id is not None:
        q = q.filter(ExpertReview.ai_system_id == ai_system_id)
    return q.order_by(ExpertReview.requested_at.desc(), ExpertReview.id.desc()).offset(skip).limit(limit).all()


def get_review_or_404(db: Session, review_id: str) -> ExpertReview:
    row = db.query(ExpertReview).filter(ExpertReview.review_id == review_id).first()
    if not row:
        raise ResourceNotFoundError("Expert review", review_id)
    return row


def update_review(
    db: Session,
    row: ExpertReview,
    changes: Mapping[str, Any],
    user: Optional[User] = None,
) -> ExpertReview:
    status = changes.get("status")
    assignee = changes.get("assigned_to")

    if assignee is not None:
        if not db.query(User.id).filter(User.id == assignee).first():
            raise ResourceNotFoundError("User", assignee)
        row.assigned_to = assignee
        if row.assigned_at is None:
            row.assigned_at = datetime.utcnow()

    if status == "in_progress":
        if row.assigned_to is None:
            raise BusinessLogicError("Cannot transition to in_progress without assigning a reviewer")
        if row.status == "pending" and row.assigned_at is None:
            row.assigned_at = datetime.utcnow()
    if status == "completed" and row.completed_at is None:
        row.completed_at = datetime.utcnow()
    if status:
        row.status = status

    if changes.get("expert_feedback") is not None:
        row.expert_feedback = changes["expert_feedback"]

    record_activity(
        db,
        type="expert_review_updated",
        description=f"Expert review {row.review_id} is {row.status}",
        user_id=user.id if user else None,
        ai_system_id=row.ai_system_id,
        meta={"review_id": row.review_id, "fields": sorted(k for k, v in changes.items() if v is not None)},
        commit=False,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def delete_review(db: Session, row: ExpertReview) -> None:
    db.delete(row)
    db.commit()
