# aiready/api/v1/expert_reviews.py
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from aiready.core.auth import get_current_user, get_db
from aiready.core.scoping import require_reviewer
from aiready.models.user import User
from aiready.schemas.expert_review import (
    ExpertReviewCreate,
    ExpertReviewOut,
    ExpertReviewUpdate,
    LegalValidationRequest,
)
from aiready.services import expert_review as svc
from aiready.services.legal_validation import add_legal_disclaimer, validate_legal_output

router = APIRouter()


@router.post("/analysis/legal-validation")
def validate_text(
    payload: LegalValidationRequest,
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    result = validate_legal_output(payload.text)
    return add_legal_disclaimer(result)


@router.get("/expert-reviews", response_model=List[ExpertReviewOut])
def list_reviews(
    status_: Optional[str] = Query(None, alias="status"),
    type_: Optional[str] = Query(None, alias="type"),
    ai_system_id: Optional[int] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.list_reviews(db, status=status_, type=type_, ai_system_id=ai_system_id, skip=skip, limit=limit)


@router.post("/expert-reviews", response_model=ExpertReviewOut, status_code=status.HTTP_201_CREATED)
def request_review(
    payload: ExpertReviewCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.create_review(db, current_user, **payload.model_dump())


@router.get("/expert-reviews/{review_id}", response_model=ExpertReviewOut)
def get_review(
    review_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.get_review_or_404(db, review_id)


@router.patch("/expert-reviews/{review_id}", response_model=ExpertReviewOut)
def update_review(
    review_id: str,
    payload: ExpertReviewUpdate,
    db: Session = Depends(get_db),
    reviewer: User = Depends(require_reviewer),
):
    row = svc.get_review_or_404(db, review_id)
    return svc.update_review(db, row, payload.model_dump(exclude_unset=True), reviewer)


@router.delete("/expert-reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: str,
    db: Session = Depends(get_db),
    reviewer: User = Depends(require_reviewer),
):
    svc.delete_review(db, svc.get_review_or_404(db, review_id))
