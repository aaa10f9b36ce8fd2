# aiready/api/v1/feedback.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from aiready.core.auth import get_current_user, get_db
from aiready.core.scoping import require_reviewer
from aiready.models.user import User
from aiready.schemas.feedback import FeedbackCreate, FeedbackOut, FeedbackResponse
from aiready.services import feedback as svc

router = APIRouter(prefix="/feedback")


@router.post("", response_model=FeedbackOut, status_code=status.HTTP_201_CREATED)
def submit(
    payload: FeedbackCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.submit_feedback(db, current_user, payload.model_dump())


@router.get("", response_model=List[FeedbackOut])
def list_feedback(
    status_: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    ai_system_id: Optional[int] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.list_feedback(
        db,
        current_user,
        status=status_,
        category=category,
        priority=priority,
        ai_system_id=ai_system_id,
        skip=skip,
        limit=limit,
    )


@router.get("/{feedback_id}", response_model=FeedbackOut)
def get_feedback(
    feedback_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.get_feedback_or_404(db, feedback_id, current_user)


@router.post("/{feedback_id}/vote", response_model=FeedbackOut)
def vote(
    feedback_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    row = svc.get_feedback_or_404(db, feedback_id, current_user)
    return svc.vote_feedback(db, row)


@router.post("/{feedback_id}/respond", response_model=FeedbackOut)
def respond(
    feedback_id: str,
    payload: FeedbackResponse,
    db: Session = Depends(get_db),
    staff: User = Depends(require_reviewer),
):
    row = svc.get_feedback_or_404(db, feedback_id)
    return svc.respond_to_feedback(db, row, response=payload.response, status=payload.status, user=staff)
