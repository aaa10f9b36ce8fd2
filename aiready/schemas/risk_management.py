# aiready/schemas/risk_management.py
from datetime import datetime
from typing import List, Optional, Literal

from pydantic import BaseModel, constr, field_validator

ControlType = Literal["technical", "procedural", "organizational", "contractual"]
ControlStatus = Literal["planned", "in_progress", "implemented", "verified", "failed"]
ControlEffectiveness = Literal[
    "very_effective",
    "effective",
    "partially_effective",
    "ineffective",
    "not_tested",
    "not_implemented",
]
EventType = Literal["incident", "near_miss", "performance_deviation", "external_factor", "user_feedback"]
EventSeverity = Literal["critical", "high", "medium", "low"]
EventStatus = Literal["new", "under_investigation", "resolved", "closed"]


class RiskControlCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=255)
    description: constr(strip_whitespace=True, min_length=1)
    control_type: ControlType = "procedural"
    implementation_status: ControlStatus = "planned"
    effectiveness: ControlEffectiveness = "not_tested"
    implementation_date: Optional[datetime] = None
    next_review_date: Optional[datetime] = None
    responsible_person: Optional[str] = None
    related_gaps: Optional[List[str]] = None
    implementation_steps: Optional[List[str]] = None
    notes: Optional[str] = None


class RiskControlUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    description: Optional[str] = None
    control_type: Optional[ControlType] = None
    implementation_status: Optional[ControlStatus] = None
    effectiveness: Optional[ControlEffectiveness] = None
    implementation_date: Optional[datetime] = None
    last_review_date: Optional[datetime] = None
    next_review_date: Optional[datetime] = None
    responsible_person: Optional[str] = None
    related_gaps: Optional[List[str]] = None
    implementation_steps: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator("name", "description", "control_type", "implementation_status", "effectiveness")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null.")
        return v


class RiskControlOut(BaseModel):
    id: int
    control_id: str
    ai_system_id: int
    name: str
    description: str
    control_type: str
    implementation_status: str
    effectiveness: str
    implementation_date: Optional[datetime] = None
    last_review_date: Optional[datetime] = None
    next_review_date: Optional[datetime] = None
    responsible_person: Optional[str] = None
    related_gaps: Optional[List[str]] = None
    implementation_steps: Optional[List[str]] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RiskEventCreate(BaseModel):
    event_type: EventType
    severity: EventSeverity
    description: constr(strip_whitespace=True, min_length=1)
    detection_date: Optional[datetime] = None
    impact: Optional[str] = None
    related_controls: Optional[List[str]] = None


class RiskEventUpdate(BaseModel):
    status: Optional[EventStatus] = None
    severity: Optional[EventSeverity] = None
    impact: Optional[str] = None
    root_cause: Optional[str] = None
    mitigation_actions: Optional[List[str]] = None
    recurrence_prevention: Optional[str] = None
    related_controls: Optional[List[str]] = None

    @field_validator("status", "severity")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null.")
        return v


class RiskEventOut(BaseModel):
    id: int
    event_id: str
    ai_system_id: int
    event_type: str
    severity: str
    description: str
    detection_date: datetime
    reported_by: Optional[int] = None
    status: str
    impact: Optional[str] = None
    root_cause: Optional[str] = None
    mitigation_actions: Optional[List[str]] = None
    recurrence_prevention: Optional[str] = None
    closure_date: Optional[datetime] = None
    related_controls: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
