# aiready/api/v1/documents.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from aiready.core.auth import get_current_user, get_db
from aiready.core.errors import ResourceNotFoundError
from aiready.crud.ai_system import get_system_or_404
from aiready.models.document import Document
from aiready.models.user import User
from aiready.schemas.document import DocumentGenerateRequest, DocumentOut
from aiready.services.ai_client import ProviderChain, get_chain
from aiready.services.document_generator import DOCUMENT_SPECS, generate_document

router = APIRouter()


@router.get("/documents/types")
def list_document_types(current_user: User = Depends(get_current_user)):
    return [
        {"type": t.value, "title": spec.title, "sections": list(spec.sections)}
        for t, spec in DOCUMENT_SPECS.items()
    ]


@router.post("/documents/generate", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
def generate(
    payload: DocumentGenerateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    chain: ProviderChain = Depends(get_chain),
):
    system = get_system_or_404(db, payload.ai_system_id)
    return generate_document(
        db,
        system,
        payload.type,
        company_name=payload.company_name,
        user=current_user,
        additional_details=payload.additional_details,
        chain=chain,
    )


@router.get("/documents", response_model=List[DocumentOut])
def list_documents(
    ai_system_id: Optional[int] = Query(None),
    type_: Optional[str] = Query(None, alias="type"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(Document)
    if ai_system_id is not None:
        q = q.filter(Document.ai_system_id == ai_system_id)
    if type_:
        q = q.filter(Document.type == type_)
    return q.order_by(Document.created_at.desc(), Document.id.desc()).offset(skip).limit(limit).all()


@router.get("/documents/{document_id}", response_model=DocumentOut)
def get_document(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    doc = db.get(Document, document_id)
    if not doc:
        raise ResourceNotFoundError("Document", document_id)
    return doc
