# aiready/api/v1/risk_management.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from aiready.core.auth import get_current_user, get_db
from aiready.models.user import User
from aiready.schemas.risk_management import (
    RiskControlCreate,
    RiskControlOut,
    RiskControlUpdate,
    RiskEventCreate,
    RiskEventOut,
    RiskEventUpdate,
)
from aiready.services import risk_management as svc
from aiready.services.ai_client import ProviderChain, get_chain

router = APIRouter()


# ---- Controls ----------------------------------------------------------------

@router.get("/systems/{system_id}/risk-controls", response_model=List[RiskControlOut])
def list_controls(
    system_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.list_controls(db, system_id)


@router.post(
    "/systems/{system_id}/risk-controls",
    response_model=RiskControlOut,
    status_code=status.HTTP_201_CREATED,
)
def create_control(
    system_id: int,
    payload: RiskControlCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.create_control(db, system_id, payload.model_dump(exclude_none=True), current_user)


@router.post(
    "/systems/{system_id}/risk-controls/generate",
    response_model=List[RiskControlOut],
    status_code=status.HTTP_201_CREATED,
)
def generate_controls(
    system_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    chain: ProviderChain = Depends(get_chain),
):
    return svc.generate_controls_from_gaps(db, system_id, current_user, chain=chain)


@router.patch("/risk-controls/{control_id}", response_model=RiskControlOut)
def update_control(
    control_id: str,
    payload: RiskControlUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    row = svc.get_control_or_404(db, control_id)
    return svc.update_control(db, row, payload.model_dump(exclude_unset=True), current_user)


# ---- Events ------------------------------------------------------------------

@router.get("/systems/{system_id}/risk-events", response_model=List[RiskEventOut])
def list_events(
    system_id: int,
    status_: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.list_events(db, system_id, status=status_)


@router.post(
    "/systems/{system_id}/risk-events",
    response_model=RiskEventOut,
    status_code=status.HTTP_201_CREATED,
)
def record_event(
    system_id: int,
    payload: RiskEventCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.record_event(db, system_id, payload.model_dump(exclude_none=True), current_user)


@router.patch("/risk-events/{event_id}", response_model=RiskEventOut)
def update_event(
    event_id: str,
    payload: RiskEventUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    row = svc.get_event_or_404(db, event_id)
    return svc.update_event(db, row, payload.model_dump(exclude_unset=True), current_user)
