# aiready/crud/ai_system.py
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from aiready.core.errors import ResourceNotFoundError, ValidationError
from aiready.models.ai_system import AISystem
from aiready.models.user import User
from aiready.schemas.ai_system import AISystemCreate, AISystemUpdate
from aiready.services.activity import record_activity

SYSTEM_ID_PREFIX = "AI-SYS-"


# --- Read helpers -------------------------------------------------------------

def get_system(db: Session, system_id: int) -> Optional[AISystem]:
    return db.query(AISystem).filter(AISystem.id == system_id).first()


def get_system_or_404(db: Session, system_id: int) -> AISystem:
    s = get_system(db, system_id)
    if not s:
        raise ResourceNotFoundError("System", system_id)
    return s


def list_systems(
    db: Session,
    *,
    department: Optional[str] = None,
    status: Optional[str] = None,
    risk_level: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> List[AISystem]:
    q = db.query(AISystem)
    if department:
        q = q.filter(AISystem.department == department)
    if status:
        q = q.filter(AISystem.status == status)
    if risk_level:
        q = q.filter(func.lower(AISystem.risk_level) == risk_level.lower())
    return q.order_by(AISystem.id.desc()).offset(skip).limit(limit).all()


def next_system_id(db: Session) -> str:
    """AI-SYS-0001, AI-SYS-0002, ... skipping identifiers already taken."""
    n = (db.query(func.max(AISystem.id)).scalar() or 0) + 1
    while True:
        candidate = f"{SYSTEM_ID_PREFIX}{n:04d}"
        if not db.query(AISystem.id).filter(AISystem.system_id == candidate).first():
            return candidate
        n += 1


# --- Create / Update / Delete ------------------------------------------------

def create_system(
    db: Session,
    payload: AISystemCreate,
    user: Optional[User] = None,
    ip: Optional[str] = None,
) -> AISystem:
    data = payload.model_dump(exclude_none=True)
    if not data.get("system_id"):
        data["system_id"] = next_system_id(db)
    elif db.query(AISystem.id).filter(AISystem.system_id == data["system_id"]).first():
        raise ValidationError(
            f"System ID {data['system_id']} is already in use",
            details={"field": "system_id"},
        )

    obj = AISystem(**data)
    obj.created_by = user.id if user else None

    db.add(obj)
    db.flush()
    record_activity(
        db,
        type="system_created",
        description=f"AI system {obj.name} registered",
        user_id=obj.created_by,
        ai_system_id=obj.id,
        meta={"system_id": obj.system_id},
        ip=ip,
        commit=False,
    )
    db.commit()
    db.refresh(obj)
    return obj


def update_system(
    db: Session,
    obj: AISystem,
    payload: AISystemUpdate,
    user: Optional[User] = None,
    ip: Optional[str] = None,
) -> AISystem:
    # only fields that were sent
    data: Dict[str, Any] = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(obj, k, v)

    record_activity(
        db,
        type="system_updated",
        description=f"AI system {obj.name} updated",
        user_id=user.id if user else None,
        ai_system_id=obj.id,
        meta={"fields": sorted(data)},
        ip=ip,
        commit=False,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def delete_system(
    db: Session,
    obj: AISystem,
    user: Optional[User] = None,
    ip: Optional[str] = None,
) -> None:
    # the activity outlives the row, so it is not linked to it
    record_activity(
        db,
        type="system_deleted",
        description=f"AI system {obj.name} ({obj.system_id}) deleted",
        user_id=user.id if user else None,
        meta={"system_id": obj.system_id, "id": obj.id},
        ip=ip,
        commit=False,
    )
    db.delete(obj)
    db.commit()
