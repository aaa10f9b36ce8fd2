# aiready/api/v1/systems.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from aiready.core.auth import get_current_user, get_db
from aiready.core.errors import AuthorizationError
from aiready.core.scoping import can_delete_system
from aiready.crud.ai_system import (
    create_system as crud_create_system,
    delete_system as crud_delete_system,
    get_system_or_404,
    list_systems as crud_list_systems,
    update_system as crud_update_system,
)
from aiready.models.user import User
from aiready.schemas.ai_system import (
    AISystemCreate,
    AISystemOut,
    AISystemUpdate,
    ClassificationAnswers,
    ClassificationResult,
)
from aiready.services.activity import ip_from_request, record_activity
from aiready.services.risk_engine import classify_ai_system

router = APIRouter()


@router.get("/systems", response_model=List[AISystemOut])
def list_ai_systems(
    department: Optional[str] = Query(None),
    status_: Optional[str] = Query(None, alias="status"),
    risk_level: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_list_systems(
        db,
        department=department,
        status=status_,
        risk_level=risk_level,
        skip=skip,
        limit=limit,
    )


@router.post("/systems", response_model=AISystemOut, status_code=status.HTTP_201_CREATED)
def create_ai_system(
    payload: AISystemCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_create_system(db, payload, current_user, ip=ip_from_request(request))


@router.get("/systems/{system_id}", response_model=AISystemOut)
def get_ai_system(
    system_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_system_or_404(db, system_id)


@router.patch("/systems/{system_id}", response_model=AISystemOut)
def update_ai_system(
    system_id: int,
    payload: AISystemUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    obj = get_system_or_404(db, system_id)
    return crud_update_system(db, obj, payload, current_user, ip=ip_from_request(request))


@router.delete("/systems/{system_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ai_system(
    system_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    obj = get_system_or_404(db, system_id)
    if not can_delete_system(current_user, obj):
        raise AuthorizationError("Only an admin or the creator can delete this system")
    crud_delete_system(db, obj, current_user, ip=ip_from_request(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/systems/{system_id}/classify", response_model=ClassificationResult)
def classify_system(
    system_id: int,
    payload: ClassificationAnswers,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    obj = get_system_or_404(db, system_id)
    result = classify_ai_system(payload.model_dump())

    record_activity(
        db,
        type="system_classified",
        description=f"{obj.name} classified as {result['risk_level']}",
        user_id=current_user.id,
        ai_system_id=obj.id,
        meta={"risk_level": result["risk_level"], "matched_flags": result["matched_flags"]},
        ip=ip_from_request(request),
    )
    return ClassificationResult(system_id=obj.id, **result)
