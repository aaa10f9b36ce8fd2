# aiready/api/v1/compliance.py
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from aiready.core.auth import get_current_user, get_db
from aiready.core.errors import ResourceNotFoundError
from aiready.crud.ai_system import get_system_or_404
from aiready.models.alert import Alert
from aiready.models.deadline import Deadline
from aiready.models.user import User
from aiready.schemas.compliance import ActivityOut, AlertOut, MonitoringCheckRequest
from aiready.schemas.risk_assessment import DeadlineOut
from aiready.services.activity import list_activities
from aiready.services.compliance_scoring import calculate_compliance_score, generate_compliance_roadmap
from aiready.services.monitoring import list_alerts, perform_monitoring_check, resolve_alert

router = APIRouter()


@router.get("/systems/{system_id}/compliance-score")
def compliance_score(
    system_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    return calculate_compliance_score(get_system_or_404(db, system_id))


@router.get("/systems/{system_id}/compliance-roadmap")
def compliance_roadmap(
    system_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    return generate_compliance_roadmap(get_system_or_404(db, system_id))


@router.post("/systems/{system_id}/monitoring-check")
def monitoring_check(
    system_id: int,
    payload: Optional[MonitoringCheckRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    system = get_system_or_404(db, system_id)
    threshold = payload.alert_threshold if payload else MonitoringCheckRequest().alert_threshold
    return perform_monitoring_check(db, system, alert_threshold=threshold)


@router.get("/alerts", response_model=List[AlertOut])
def alerts(
    ai_system_id: Optional[int] = Query(None),
    include_resolved: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return list_alerts(db, ai_system_id=ai_system_id, include_resolved=include_resolved)


@router.post("/alerts/{alert_id}/resolve", response_model=AlertOut)
def resolve(
    alert_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    alert = db.get(Alert, alert_id)
    if not alert:
        raise ResourceNotFoundError("Alert", alert_id)
    return resolve_alert(db, alert)


@router.get("/deadlines", response_model=List[DeadlineOut])
def deadlines(
    ai_system_id: Optional[int] = Query(None),
    upcoming_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(Deadline)
    if ai_system_id is not None:
        q = q.filter(Deadline.ai_system_id == ai_system_id)
    if upcoming_only:
        q = q.filter(Deadline.is_notified.is_(False))
    return q.order_by(Deadline.date.asc(), Deadline.id.asc()).all()


@router.get("/activities", response_model=List[ActivityOut])
def activities(
    ai_system_id: Optional[int] = Query(None),
    type_: Optional[str] = Query(None, alias="type"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return list_activities(db, ai_system_id=ai_system_id, type=type_, skip=skip, limit=limit)
