# aiready/api/v1/analysis.py
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from aiready.core.auth import get_current_user, get_db
from aiready.core.errors import ResourceNotFoundError
from aiready.crud.ai_system import get_system_or_404
from aiready.models.document import Document
from aiready.models.user import User
from aiready.schemas.analysis import DocumentExtractionRequest, GapAnalysisRequest, SuggestFieldsRequest
from aiready.services import ai_analysis
from aiready.services import risk_assessment as ra
from aiready.services.ai_client import ProviderChain, get_chain

router = APIRouter(prefix="/analysis")


@router.post("/systems/{system_id}/risk")
def analyze_risk(
    system_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    chain: ProviderChain = Depends(get_chain),
) -> Dict[str, Any]:
    system = get_system_or_404(db, system_id)
    return ai_analysis.analyze_system_risk(system, chain=chain)


@router.post("/systems/{system_id}/prohibited")
def analyze_prohibited(
    system_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    chain: ProviderChain = Depends(get_chain),
) -> Dict[str, Any]:
    system = get_system_or_404(db, system_id)
    return ai_analysis.analyze_prohibited_use(system, chain=chain)


@router.post("/systems/{system_id}/gaps")
def analyze_gaps(
    system_id: int,
    payload: Optional[GapAnalysisRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    chain: ProviderChain = Depends(get_chain),
) -> Dict[str, Any]:
    system = get_system_or_404(db, system_id)
    if payload is not None and payload.document_types is not None:
        documents = [{"title": t, "type": t} for t in payload.document_types]
    else:
        documents = db.query(Document).filter(Document.ai_system_id == system.id).all()
    return ai_analysis.analyze_compliance_gaps(system, documents, chain=chain)


@router.post("/systems/{system_id}/report")
def risk_report(
    system_id: int,
    assessment_id: Optional[str] = Query(None, description="Defaults to the latest assessment"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    chain: ProviderChain = Depends(get_chain),
) -> Dict[str, Any]:
    system = get_system_or_404(db, system_id)
    if assessment_id:
        assessment = ra.get_assessment_or_404(db, assessment_id)
        # an assessment of another system is reported as missing
        if assessment.ai_system_id != system.id:
            raise ResourceNotFoundError("Risk assessment", assessment_id)
    else:
        assessment = ra.latest_for_system(db, system.id)
    return ai_analysis.generate_risk_report(system, assessment, chain=chain)


@router.post("/suggest-fields")
def suggest_fields(
    payload: SuggestFieldsRequest,
    current_user: User = Depends(get_current_user),
    chain: ProviderChain = Depends(get_chain),
) -> Dict[str, Any]:
    return ai_analysis.suggest_system_fields(payload.name, payload.description, chain=chain)


@router.post("/extract-document")
def extract_document(
    payload: DocumentExtractionRequest,
    current_user: User = Depends(get_current_user),
    chain: ProviderChain = Depends(get_chain),
) -> Dict[str, Any]:
    return ai_analysis.extract_system_from_document(payload.filename, payload.content, chain=chain)
