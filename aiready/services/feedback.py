# aiready/services/feedback.py
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from aiready.core.errors import AuthorizationError, ResourceNotFoundError, ValidationError
from aiready.crud.ai_system import get_system_or_404
from aiready.models.feedback import (
    FEEDBACK_CATEGORIES,
    FEEDBACK_PRIORITIES,
    FEEDBACK_STATUSES,
    UserFeedback,
)
from aiready.models.user import User
from aiready.services.activity import record_activity

log = logging.getLogger(__name__)


def _check_choice(field: str, value: Optional[str], allowed) -> None:
    if value is not None and value not in allowed:
        raise ValidationError(f"Invalid {field}: {value}", details={"allowed": list(allowed)})


def submit_feedback(db: Session, user: Optional[User], data: Dict[str, Any]) -> UserFeedback:
    _check_choice("category", data.get("category"), FEEDBACK_CATEGORIES)
    _check_choice("priority", data.get("priority"), FEEDBACK_PRIORITIES)
    if data.get("ai_system_id") is not None:
        get_system_or_404(db, data["ai_system_id"])

    row = UserFeedback(
        feedback_id=f"fb_{uuid.uuid4().hex}",
        user_id=user.id if user else None,
        title=data["title"],
        description=data["description"],
        category=data.get("category") or "other",
        priority=data.get("priority") or "medium",
        context=data.get("context"),
        ai_system_id=data.get("ai_system_id"),
        assessment_id=data.get("assessment_id"),
        is_public=bool(data.get("is_public", False)),
        status="pending",
        votes=0,
    )
    db.add(row)
    db.flush()
    record_activity(
        db,
        type="feedback_submitted",
        description=f"Feedback submitted: {row.title}",
        user_id=row.user_id,
        ai_system_id=row.ai_system_id,
        meta={"feedback_id": row.feedback_id, "category": row.category},
        commit=False,
    )
    db.commit()
    db.refresh(row)
    return row


def list_feedback(
    db: Session,
    user: User,
    *,
    status: Optional[str] = None,
    category: Optional[str] = None,
    priority: Optional[str] = None,
    ai_system_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 50,
) -> List[UserFeedback]:
    """Staff see everything; other users see public items and their own."""
    q = db.query(UserFeedback)
    if not user.is_staff:
        q = q.filter(or_(UserFeedback.is_public.is_(True), UserFeedback.user_id == user.id))
    if status:
        q = q.filter(UserFeedback.status == status)
    if category:
        q = q.filter(UserFeedback.category == category)
    if priority:
        q = q.filter(UserFeedback.priority == priority)
    if ai_system_id is not None:
        q = q.filter(UserFeedback.ai_system_id == ai_system_id)
    return (
        q.order_by(UserFeedback.votes.desc(), UserFeedback.created_at.desc(), UserFeedback.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_feedback_or_404(db: Session, feedback_id: str, user: Optional[User] = None) -> UserFeedback:
    row = db.query(UserFeedback).filter(UserFeedback.feedback_id == feedback_id).first()
    if not row:
        raise ResourceNotFoundError("Feedback", feedback_id)
    # hidden items are reported as missing
    if user is not None and not user.is_staff and not row.is_public and row.user_id != user.id:
        raise ResourceNotFoundError("Feedback", feedback_id)
    return row


def vote_feedback(db: Session, row: UserFeedback) -> UserFeedback:
    row.votes = int(row.votes or 0) + 1
    db.commit()
    db.refresh(row)
    return row


def respond_to_feedback(
    db: Session,
    row: UserFeedback,
    *,
    response: str,
    status: str,
    user: User,
) -> UserFeedback:
    if not user.is_staff:
        raise AuthorizationError("Only staff can respond to feedback")
    _check_choice("status", status, FEEDBACK_STATUSES)

    row.response = response
    row.status = status
    row.responded_at = datetime.utcnow()
    row.responded_by = user.id
    record_activity(
        db,
        type="feedback_responded",
        description=f"Feedback {row.feedback_id} marked {status}",
        user_id=user.id,
        ai_system_id=row.ai_system_id,
        meta={"feedback_id": row.feedback_id, "status": status},
        commit=False,
    )
    db.commit()
    db.refresh(row)
    log.info("feedback %s -> %s by user %s", row.feedback_id, status, user.id)
    return row
