# aiready/services/risk_management.py
"""
Risk controls and risk events for registered systems (Article 9 risk
management). Controls can be drafted from the compliance gaps of the
latest assessment.
"""
from __future__ import annotations

import functools
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from aiready.core.errors import AppError, BusinessLogicError, ResourceNotFoundError
from aiready.crud.ai_system import get_system_or_404
from aiready.models.document import Document
from aiready.models.risk_assessment import RiskAssessment
from aiready.models.risk_management import CONTROL_TYPES, RiskControl, RiskEvent
from aiready.models.user import User
from aiready.services.activity import record_activity
from aiready.services.ai_analysis import analyze_compliance_gaps
from aiready.services.ai_client import ProviderChain
from aiready.services.json_extract import parse_json_reply

log = logging.getLogger(__name__)

DEFAULT_CONTROL_TYPES = {
    "risk management": "procedural",
    "technical documentation": "procedural",
    "transparency": "procedural",
    "data governance": "technical",
    "record keeping": "technical",
    "accuracy and robustness": "technical",
    "human oversight": "organizational",
}
DEFAULT_STEPS = ["Review requirements", "Implement solution", "Test and validate"]
CLOSED_EVENT_STATUSES = {"resolved", "closed"}


def _risk_step(operation: str):
    """Roll back and wrap unexpected failures in BusinessLogicError."""

    def deco(fn):
        @functools.wraps(fn)
        def wrapper(db: Session, *args, **kwargs):
            try:
                return fn(db, *args, **kwargs)
            except AppError:
                db.rollback()
                raise
            except Exception as e:
                db.rollback()
                log.exception("risk management %s failed", operation)
                raise BusinessLogicError(f"Failed to {operation}", details={"error": str(e)}) from e

        return wrapper

    return deco


def default_control_type(area: str) -> str:
    return DEFAULT_CONTROL_TYPES.get((area or "").strip().lower(), "procedural")


# -----------------------------
# Controls
# -----------------------------
def list_controls(db: Session, ai_system_id: int) -> List[RiskControl]:
    get_system_or_404(db, ai_system_id)
    return (
        db.query(RiskControl)
        .filter(RiskControl.ai_system_id == ai_system_id)
        .order_by(RiskControl.id.asc())
        .all()
    )


def get_control_or_404(db: Session, control_id: str) -> RiskControl:
    row = db.query(RiskControl).filter(RiskControl.control_id == control_id).first()
    if not row:
        raise ResourceNotFoundError("Risk control", control_id)
    return row


@_risk_step("create risk control")
def create_control(
    db: Session,
    ai_system_id: int,
    data: Mapping[str, Any],
    user: Optional[User] = None,
    *,
    commit: bool = True,
) -> RiskControl:
    system = get_system_or_404(db, ai_system_id)
    row = RiskControl(control_id=f"ctrl_{uuid.uuid4().hex}", ai_system_id=system.id, **dict(data))
    row.created_by = user.id if user else None
    db.add(row)
    db.flush()
    record_activity(
        db,
        type="risk_control_created",
        description=f"Risk control created for {system.name}: {row.name}",
        user_id=row.created_by,
        ai_system_id=system.id,
        meta={"control_id": row.control_id, "control_type": row.control_type},
        commit=False,
    )
    if commit:
        db.commit()
        db.refresh(row)
    return row


@_risk_step("update risk control")
def update_control(
    db: Session,
    row: RiskControl,
    changes: Mapping[str, Any],
    user: Optional[User] = None,
) -> RiskControl:
    for k, v in changes.items():
        setattr(row, k, v)
    record_activity(
        db,
        type="risk_control_updated",
        description=f"Risk control {row.name} updated",
        user_id=user.id if user else None,
        ai_system_id=row.ai_system_id,
        meta={"control_id": row.control_id, "fields": sorted(changes)},
        commit=False,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _control_prompt(system_name: str, gap: Mapping[str, Any]) -> str:
    return f"""
Suggest one risk control for the following EU AI Act compliance gap of the AI system "{system_name}".

Area: {gap.get('area')}
Gap: {gap.get('description')}
Reference: {gap.get('eu_ai_act_reference')}
Remediation: {gap.get('remediation')}

Respond with JSON only:
{{"name": "short name", "description": "what the control does",
  "controlType": "technical|procedural|organizational|contractual",
  "implementationSteps": ["step"]}}
""".strip()


def _parse_control(text: str) -> Dict[str, Any]:
    data = parse_json_reply(text)
    name = str(data.get("name") or "").strip()
    if not name:
        raise ValueError("control name missing")
    control_type = str(data.get("controlType") or data.get("control_type") or "").strip().lower()
    steps = data.get("implementationSteps") or data.get("implementation_steps") or []
    return {
        "name": name,
        "description": str(data.get("description") or "").strip(),
        "control_type": control_type if control_type in CONTROL_TYPES else None,
        "implementation_steps": [str(s) for s in steps if s] if isinstance(steps, list) else [],
    }


def _control_fallback(gap: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "name": f"Control for {gap['area']}",
        "description": gap.get("remediation") or gap.get("description") or "",
        "control_type": default_control_type(gap["area"]),
        "implementation_steps": list(DEFAULT_STEPS),
    }


@_risk_step("generate risk controls")
def generate_controls_from_gaps(
    db: Session,
    ai_system_id: int,
    user: Optional[User] = None,
    chain: Optional[ProviderChain] = None,
) -> List[RiskControl]:
    """
    One planned control per open gap of the system. Gaps whose area is
    already listed in an existing control's related_gaps are skipped.
    """
    system = get_system_or_404(db, ai_system_id)
    has_assessment = (
        db.query(RiskAssessment.id).filter(RiskAssessment.ai_system_id == system.id).first()
    )
    if not has_assessment:
        raise BusinessLogicError("No risk assessment found for this system")

    chain = chain or ProviderChain()
    documents = db.query(Document).filter(Document.ai_system_id == system.id).all()
    gaps = analyze_compliance_gaps(system, documents, chain=chain).get("compliance_gaps") or []

    covered = set()
    for control in db.query(RiskControl).filter(RiskControl.ai_system_id == system.id):
        covered.update(control.related_gaps or [])

    created: List[RiskControl] = []
    for gap in gaps:
        area = str(gap.get("area") or "").strip()
        if not area or area in covered:
            continue
        covered.add(area)

        res = chain.run(
            _control_prompt(system.name, gap),
            parse=_parse_control,
            fallback=lambda hits, gap=gap: _control_fallback(gap),
            temperature=0.3,
        )
        suggestion = res.data
        created.append(
            create_control(
                db,
                system.id,
                {
                    "name": suggestion["name"][:255],
                    "description": suggestion["description"] or gap.get("description") or area,
                    "control_type": suggestion["control_type"] or default_control_type(area),
                    "implementation_status": "planned",
                    "effectiveness": "not_implemented",
                    "related_gaps": [area],
                    "implementation_steps": suggestion["implementation_steps"] or list(DEFAULT_STEPS),
                    "notes": f"Automatically generated for compliance gap: {gap.get('description') or area}",
                },
                user,
                commit=False,
            )
        )

    db.commit()
    for row in created:
        db.refresh(row)
    log.info("generated %d risk controls for system %s", len(created), system.id)
    return created


# -----------------------------
# Events
# -----------------------------
def list_events(db: Session, ai_system_id: int, *, status: Optional[str] = None) -> List[RiskEvent]:
    get_system_or_404(db, ai_system_id)
    q = db.query(RiskEvent).filter(RiskEvent.ai_system_id == ai_system_id)
    if status:
        q = q.filter(RiskEvent.status == status)
    return q.order_by(RiskEvent.detection_date.desc(), RiskEvent.id.desc()).all()


def get_event_or_404(db: Session, event_id: str) -> RiskEvent:
    row = db.query(RiskEvent).filter(RiskEvent.event_id == event_id).first()
    if not row:
        raise ResourceNotFoundError("Risk event", event_id)
    return row


@_risk_step("record risk event")
def record_event(
    db: Session,
    ai_system_id: int,
    data: Mapping[str, Any],
    user: Optional[User] = None,
) -> RiskEvent:
    system = get_system_or_404(db, ai_system_id)
    fields = {k: v for k, v in data.items() if v is not None}
    row = RiskEvent(
        event_id=f"evt_{uuid.uuid4().hex}",
        ai_system_id=system.id,
        reported_by=user.id if user else None,
        status="new",
        **fields,
    )
    db.add(row)
    db.flush()
    record_activity(
        db,
        type="risk_event_recorded",
        description=f"Risk event recorded for {system.name}: {row.event_type} - {row.severity}",
        user_id=row.reported_by,
        ai_system_id=system.id,
        meta={"event_id": row.event_id, "severity": row.severity},
        commit=False,
    )
    db.commit()
    db.refresh(row)
    return row


@_risk_step("update risk event")
def update_event(
    db: Session,
    row: RiskEvent,
    changes: Mapping[str, Any],
    user: Optional[User] = None,
) -> RiskEvent:
    for k, v in changes.items():
        setattr(row, k, v)
    if changes.get("status") in CLOSED_EVENT_STATUSES and row.closure_date is None:
        row.closure_date = datetime.utcnow()
    record_activity(
        db,
        type="risk_event_updated",
        description=f"Risk event {row.event_id} is {row.status}",
        user_id=user.id if user else None,
        ai_system_id=row.ai_system_id,
        meta={"event_id": row.event_id, "fields": sorted(changes)},
        commit=False,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
