# aiready/schemas/feedback.py
from datetime import datetime
from typing import Any, Dict, Optional, Literal

from pydantic import BaseModel, constr

FeedbackStatus = Literal["pending", "under_review", "implemented", "rejected", "planned"]
FeedbackCategory = Literal["ui_ux", "compliance_gap", "feature_request", "error_report", "documentation", "other"]
FeedbackPriority = Literal["low", "medium", "high", "critical"]


class FeedbackCreate(BaseModel):
    title: constr(strip_whitespace=True, min_length=1, max_length=255)
    description: constr(strip_whitespace=True, min_length=1)
    category: FeedbackCategory = "other"
    priority: FeedbackPriority = "medium"
    context: Optional[Dict[str, Any]] = None
    ai_system_id: Optional[int] = None
    assessment_id: Optional[str] = None
    is_public: bool = False


class FeedbackResponse(BaseModel):
    response: constr(strip_whitespace=True, min_length=1)
    status: FeedbackStatus


class FeedbackOut(BaseModel):
    id: int
    feedback_id: str
    user_id: Optional[int] = None
    title: str
    description: str
    status: str
    category: str
    priority: str
    context: Optional[Dict[str, Any]] = None
    ai_system_id: Optional[int] = None
    assessment_id: Optional[str] = None
    votes: int
    response: Optional[str] = None
    responded_at: Optional[datetime] = None
    responded_by: Optional[int] = None
    is_public: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
