# aiready/schemas/analysis.py
from typing import List, Optional

from pydantic import BaseModel, constr


class SuggestFieldsRequest(BaseModel):
    name: constr(strip_whitespace=True, min_length=1)
    description: Optional[str] = ""


class DocumentExtractionRequest(BaseModel):
    filename: constr(strip_whitespace=True, min_length=1)
    content: str = ""


class GapAnalysisRequest(BaseModel):
    # document types to consider; defaults to the stored documents of the system
    document_types: Optional[List[str]] = None
