# aiready/schemas/document.py
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, constr

from aiready.services.document_generator import DocumentType


class DocumentGenerateRequest(BaseModel):
    ai_system_id: int
    type: DocumentType
    company_name: constr(strip_whitespace=True, min_length=1, max_length=255)
    additional_details: Optional[Dict[str, Any]] = None


class DocumentOut(BaseModel):
    id: int
    title: str
    type: str
    ai_system_id: Optional[int] = None
    content: Optional[str] = None
    version: str
    status: str
    source: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
