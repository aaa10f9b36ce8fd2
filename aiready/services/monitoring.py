# aiready/services/monitoring.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from aiready.models.ai_system import AISystem
from aiready.models.alert import Alert, MonitoringCheck
from aiready.models.deadline import Deadline
from aiready.services.compliance_scoring import calculate_compliance_score

log = logging.getLogger(__name__)

DEFAULT_ALERT_THRESHOLD = 10


def _build_alerts(system: AISystem, current: int, delta: Optional[int], threshold: int) -> List[Dict[str, str]]:
    alerts: List[Dict[str, str]] = []
    if delta is not None and delta < -threshold:
        alerts.append(
            {
                "type": "score_decrease",
                "message": f"Compliance score has decreased by {abs(delta)} points",
                "severity": "high",
            }
        )
    if (system.risk_level or "").lower() == "high" and current < 70:
        alerts.append(
            {
                "type": "high_risk_low_compliance",
                "message": f"High-risk system has low compliance score ({current})",
                "severity": "high",
            }
        )
    if system.doc_completeness is not None and system.doc_completeness < 50:
        alerts.append(
            {
                "type": "missing_documentation",
                "message": "Critical documentation is incomplete",
                "severity": "medium",
            }
        )
    return alerts


def latest_check(db: Session, ai_system_id: int) -> Optional[MonitoringCheck]:
    return (
        db.query(MonitoringCheck)
        .filter(MonitoringCheck.ai_system_id == ai_system_id)
        .order_by(MonitoringCheck.created_at.desc(), MonitoringCheck.id.desc())
        .first()
    )


def perform_monitoring_check(
    db: Session,
    system: AISystem,
    *,
    alert_threshold: int = DEFAULT_ALERT_THRESHOLD,
) -> Dict[str, Any]:
    """Score the system, compare with the previous check, store the snapshot and raise alerts."""
    score = calculate_compliance_score(system)
    current = score["overall_score"]

    prev = latest_check(db, system.id)
    previous = prev.score if prev else None
    delta = current - previous if previous is not None else None
    prev_areas = (prev.area_scores or {}) if prev else {}

    statuses = []
    for area, value in score["category_scores"].items():
        before = prev_areas.get(area)
        if before is None or value == before:
            status = "unchanged"
        else:
            status = "improved" if value > before else "declined"
        statuses.append({"area": area, "status": status, "current_score": value, "previous_score": before})

    alerts = _build_alerts(system, current, delta, alert_threshold)

    check = MonitoringCheck(
        ai_system_id=system.id,
        score=current,
        area_scores=score["category_scores"],
        alerts=alerts,
    )
    db.add(check)
    for a in alerts:
        db.add(Alert(ai_system_id=system.id, type=a["type"], message=a["message"], severity=a["severity"]))
    db.commit()
    db.refresh(check)

    return {
        "system_id": system.system_id,
        "timestamp": check.created_at.isoformat(),
        "compliance_score": current,
        "previous_score": previous,
        "score_delta": delta,
        "alerts": alerts,
        "statuses": statuses,
    }


def flag_due_reassessments(db: Session, *, now: Optional[datetime] = None, lead_days: int = 0) -> int:
    """Raise one alert per reassessment deadline that falls due; returns how many."""
    now = now or datetime.utcnow()
    due = (
        db.query(Deadline)
        .filter(
            Deadline.type == "reassessment",
            Deadline.is_notified.is_(False),
            Deadline.date <= now + timedelta(days=lead_days),
        )
        .all()
    )
    for d in due:
        db.add(
            Alert(
                ai_system_id=d.ai_system_id,
                type="reassessment_due",
                message=f"{d.title} is due on {d.date.date().isoformat()}",
                severity="medium",
            )
        )
        d.is_notified = True
    db.commit()
    return len(due)


def run_monitoring(db: Session) -> int:
    """Monitoring check over every active system; returns the number checked."""
    systems = db.query(AISystem).filter(AISystem.status == "active").all()
    for s in systems:
        perform_monitoring_check(db, s)
    log.info("monitoring checked %s active systems", len(systems))
    return len(systems)


def list_alerts(db: Session, *, ai_system_id: Optional[int] = None, include_resolved: bool = False) -> List[Alert]:
    q = db.query(Alert)
    if ai_system_id is not None:
        q = q.filter(Alert.ai_system_id == ai_system_id)
    if not include_resolved:
        q = q.filter(Alert.is_resolved.is_(False))
    return q.order_by(Alert.created_at.desc(), Alert.id.desc()).all()


def resolve_alert(db: Session, alert: Alert) -> Alert:
    alert.is_resolved = True
    alert.resolved_at = datetime.utcnow()
    db.commit()
    db.refresh(alert)
    return alert
