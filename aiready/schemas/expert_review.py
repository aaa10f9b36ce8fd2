# aiready/schemas/expert_review.py
from datetime import datetime
from typing import Any, Dict, Optional, Literal

from pydantic import BaseModel, constr

ReviewStatus = Literal["pending", "in_progress", "completed"]


class ExpertReviewCreate(BaseModel):
    text: constr(strip_whitespace=True, min_length=1)
    type: constr(strip_whitespace=True, min_length=1, max_length=50) = "risk_assessment"
    ai_system_id: Optional[int] = None
    assessment_id: Optional[str] = None
    validation_result: Optional[Dict[str, Any]] = None


class ExpertReviewUpdate(BaseModel):
    status: Optional[ReviewStatus] = None
    assigned_to: Optional[int] = None
    expert_feedback: Optional[str] = None


class ExpertReviewOut(BaseModel):
    id: int
    review_id: str
    assessment_id: Optional[str] = None
    ai_system_id: Optional[int] = None
    text: str
    type: str
    status: str
    validation_result: Optional[Dict[str, Any]] = None
    expert_feedback: Optional[str] = None
    requested_by: Optional[int] = None
    assigned_to: Optional[int] = None
    requested_at: datetime
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LegalValidationRequest(BaseModel):
    text: constr(strip_whitespace=True, min_length=1)
