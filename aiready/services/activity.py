# aiready/services/activity.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session
from starlette.requests import Request

from aiready.models.activity import Activity

log = logging.getLogger(__name__)


def ip_from_request(request: Optional[Request]) -> Optional[str]:
    """
    Client IP compatible with proxies.
    Order:
      - Forwarded (first for= token)
      - X-Forwarded-For (first in the list)
      - X-Real-IP
      - request.client.host
    """
    if request is None:
        return None

    fwd = request.headers.get("forwarded")
    if fwd:
        for part in (p.strip() for p in fwd.split(";")):
            if part.lower().startswith("for="):
                val = part.split("=", 1)[1].strip().strip('"')
                if val:
                    return val

    xff = request.headers.get("x-forwarded-for")
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    client = getattr(request, "client", None)
    return getattr(client, "host", None)


def record_activity(
    db: Session,
    *,
    type: str,
    description: str,
    user_id: Optional[int] = None,
    ai_system_id: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None,
    commit: bool = True,
) -> Activity:
    """
    Append an activity row. With commit=False the row joins the caller's
    transaction so it is persisted (or rolled back) together with the change.
    """
    row = Activity(
        type=type,
        description=description,
        user_id=user_id,
        ai_system_id=ai_system_id,
        meta=meta or None,
        ip_address=ip,
    )
    db.add(row)
    if commit:
        db.commit()
        db.refresh(row)
    log.debug("activity %s system=%s user=%s", type, ai_system_id, user_id)
    return row


def list_activities(
    db: Session,
    *,
    ai_system_id: Optional[int] = None,
    type: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> List[Activity]:
    q = db.query(Activity)
    if ai_system_id is not None:
        q = q.filter(Activity.ai_system_id == ai_system_id)
    if type:
        q = q.filter(Activity.type == type)
    return q.order_by(Activity.timestamp.desc(), Activity.id.desc()).offset(skip).limit(limit).all()
