# aiready/schemas/risk_assessment.py
from datetime import datetime
from typing import Any, Dict, List, Optional, Literal

from pydantic import BaseModel, Field, conint, constr

AssessmentRiskLevel = Literal["unacceptable", "high", "limited", "minimal"]


class RiskArea(BaseModel):
    area: str
    score: conint(ge=0, le=100)
    notes: Optional[str] = None


class RiskAssessmentCreate(BaseModel):
    risk_level: Optional[AssessmentRiskLevel] = None
    risk_score: Optional[conint(ge=0, le=100)] = None
    risk_factors: Optional[List[str]] = None
    risk_areas: Optional[List[RiskArea]] = None
    mitigation_measures: Optional[List[str]] = None
    required_documentation: Optional[List[str]] = None
    applicable_articles: Optional[List[str]] = None
    prohibited_uses_checked: Optional[bool] = None
    prohibited_uses_results: Optional[Dict[str, Any]] = None
    summary_notes: Optional[str] = None
    next_review_date: Optional[datetime] = None


class RiskAssessmentUpdate(RiskAssessmentCreate):
    status: Optional[Literal["draft", "in_progress", "requires_update"]] = None


class SubmitRequest(BaseModel):
    notes: Optional[str] = None


class ApproveRequest(BaseModel):
    notes: Optional[str] = None


class RejectRequest(BaseModel):
    reason: constr(strip_whitespace=True, min_length=1)


class RiskAssessmentOut(BaseModel):
    id: int
    assessment_id: str
    ai_system_id: int
    created_by: Optional[int] = None
    approved_by: Optional[int] = None
    status: str
    risk_level: str
    risk_score: int
    assessment_date: datetime

    prohibited_uses_checked: bool = False
    prohibited_uses_results: Optional[Dict[str, Any]] = None
    risk_factors: Optional[List[Any]] = None
    risk_areas: Optional[List[Any]] = None
    mitigation_measures: Optional[List[Any]] = None
    required_documentation: Optional[List[str]] = None
    applicable_articles: Optional[List[str]] = None
    analysis: Optional[Dict[str, Any]] = None
    analysis_source: Optional[str] = None

    summary_notes: Optional[str] = None
    next_review_date: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ScheduleReassessmentRequest(BaseModel):
    interval: str = Field(
        default="semi-annual",
        description="monthly | quarterly | semi-annual | annual (unknown values use six months)",
    )


class DeadlineOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    date: datetime
    type: str
    ai_system_id: Optional[int] = None
    is_notified: bool = False
    created_at: datetime

    class Config:
        from_attributes = True
