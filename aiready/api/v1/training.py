# aiready/api/v1/training.py
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from aiready.core.auth import get_current_user, get_db
from aiready.models.user import User
from aiready.schemas.training import AssessmentSubmission, ProgressOut, ProgressUpdate, TrainingModuleOut
from aiready.services import training
from aiready.services.ai_client import ProviderChain, get_chain

router = APIRouter(prefix="/training")


@router.get("/modules", response_model=List[TrainingModuleOut])
def list_modules(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return training.list_modules(db)


@router.get("/modules/{module_id}/content")
def module_content(
    module_id: str,
    role: str = Query("user", description="decision_maker | developer | operator | user"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    chain: ProviderChain = Depends(get_chain),
) -> Dict[str, Any]:
    module = training.get_module_or_404(db, module_id)
    return training.get_module_content(module, role, chain=chain)


@router.post("/progress", response_model=ProgressOut)
def track_progress(
    payload: ProgressUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return training.track_progress(db, current_user, payload.module_id, payload.completion)


@router.get("/progress")
def my_progress(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    return training.get_user_progress(db, current_user.id)


@router.post("/modules/{module_id}/assessment")
def submit_assessment(
    module_id: str,
    payload: AssessmentSubmission,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    return training.submit_assessment(db, current_user, module_id, payload.answers)
