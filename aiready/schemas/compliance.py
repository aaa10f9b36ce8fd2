# aiready/schemas/compliance.py
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class AlertOut(BaseModel):
    id: int
    ai_system_id: Optional[int] = None
    type: str
    message: str
    severity: str
    is_resolved: bool
    created_at: datetime
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ActivityOut(BaseModel):
    id: int
    type: str
    description: str
    user_id: Optional[int] = None
    ai_system_id: Optional[int] = None
    meta: Optional[Dict[str, Any]] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class MonitoringCheckRequest(BaseModel):
    alert_threshold: int = 10
