# aiready/schemas/training.py
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TrainingModuleOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    estimated_time: Optional[str] = None
    topics: List[str] = []
    role_relevance: Dict[str, str] = {}

    class Config:
        from_attributes = True


class ProgressUpdate(BaseModel):
    module_id: str
    # clamped to 0..100 by the service
    completion: float


class ProgressOut(BaseModel):
    module_id: str
    completion: int
    assessment_score: Optional[int] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class AssessmentSubmission(BaseModel):
    answers: Dict[str, str] = Field(default_factory=dict, description="question text -> chosen option")
