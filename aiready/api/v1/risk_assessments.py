# aiready/api/v1/risk_assessments.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from aiready.core.auth import get_current_user, get_db
from aiready.core.scoping import require_reviewer
from aiready.models.user import User
from aiready.schemas.risk_assessment import (
    ApproveRequest,
    DeadlineOut,
    RejectRequest,
    RiskAssessmentCreate,
    RiskAssessmentOut,
    RiskAssessmentUpdate,
    ScheduleReassessmentRequest,
    SubmitRequest,
)
from aiready.services import risk_assessment as svc
from aiready.services.ai_client import ProviderChain, get_chain

router = APIRouter()


@router.get("/systems/{system_id}/risk-assessments", response_model=List[RiskAssessmentOut])
def list_system_assessments(
    system_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    svc.get_system_or_404(db, system_id)
    return svc.list_for_system(db, system_id)


@router.post(
    "/systems/{system_id}/risk-assessments",
    response_model=RiskAssessmentOut,
    status_code=status.HTTP_201_CREATED,
)
def create_system_assessment(
    system_id: int,
    payload: RiskAssessmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.create_assessment(db, system_id, payload.model_dump(exclude_unset=True), current_user)


@router.post(
    "/systems/{system_id}/risk-assessments/run-ai",
    response_model=RiskAssessmentOut,
    status_code=status.HTTP_201_CREATED,
)
def run_ai_assessment(
    system_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    chain: ProviderChain = Depends(get_chain),
):
    return svc.run_ai_assessment(db, system_id, current_user, chain=chain)


@router.post(
    "/systems/{system_id}/reassessment",
    response_model=DeadlineOut,
    status_code=status.HTTP_201_CREATED,
)
def schedule_reassessment(
    system_id: int,
    payload: ScheduleReassessmentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.schedule_reassessment(db, system_id, payload.interval, current_user)


@router.get("/risk-assessments/{assessment_id}", response_model=RiskAssessmentOut)
def get_assessment(
    assessment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return svc.get_assessment_or_404(db, assessment_id)


@router.patch("/risk-assessments/{assessment_id}", response_model=RiskAssessmentOut)
def update_assessment(
    assessment_id: str,
    payload: RiskAssessmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    row = svc.get_assessment_or_404(db, assessment_id)
    return svc.update_assessment(db, row, payload.model_dump(exclude_unset=True), current_user)


@router.post("/risk-assessments/{assessment_id}/submit", response_model=RiskAssessmentOut)
def submit_assessment(
    assessment_id: str,
    payload: SubmitRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    row = svc.get_assessment_or_404(db, assessment_id)
    return svc.submit_assessment(db, row, payload.notes, current_user)


@router.post("/risk-assessments/{assessment_id}/approve", response_model=RiskAssessmentOut)
def approve_assessment(
    assessment_id: str,
    payload: ApproveRequest,
    db: Session = Depends(get_db),
    reviewer: User = Depends(require_reviewer),
):
    row = svc.get_assessment_or_404(db, assessment_id)
    return svc.approve_assessment(db, row, payload.notes, reviewer)


@router.post("/risk-assessments/{assessment_id}/reject", response_model=RiskAssessmentOut)
def reject_assessment(
    assessment_id: str,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    reviewer: User = Depends(require_reviewer),
):
    row = svc.get_assessment_or_404(db, assessment_id)
    return svc.reject_assessment(db, row, payload.reason, reviewer)
