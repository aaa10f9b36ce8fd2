# aiready/schemas/ai_system.py
from datetime import date, datetime
from typing import Dict, List, Optional, Literal

from pydantic import BaseModel, Field, conint, constr, field_validator

SystemStatus = Literal["active", "inactive", "development", "retired"]
SystemRiskLevel = Literal["Unacceptable", "High", "Limited", "Minimal", "Unknown"]
Percent = conint(ge=0, le=100)


# -----------------------------
# CRUD schemas for AI Systems
# -----------------------------
class AISystemBase(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=255)
    vendor: Optional[constr(strip_whitespace=True, max_length=255)] = None
    department: Optional[constr(strip_whitespace=True, max_length=255)] = None
    description: Optional[str] = None
    purpose: Optional[str] = None
    version: Optional[constr(strip_whitespace=True, max_length=50)] = None
    ai_capabilities: Optional[str] = None
    training_datasets: Optional[str] = None
    usage_context: Optional[str] = None
    potential_impact: Optional[str] = None
    keywords: Optional[List[str]] = None

    status: SystemStatus = "active"
    risk_level: Optional[SystemRiskLevel] = None
    risk_score: Optional[Percent] = None
    doc_completeness: Percent = 0
    training_completeness: Percent = 0
    implementation_date: Optional[date] = None

    # flags consumed by the rule-based analysis
    uses_personal_data: bool = False
    uses_sensitive_data: bool = False
    uses_deep_learning: bool = False
    is_transparent: bool = True
    impacts_vulnerable_groups: bool = False
    impacts_autonomous: bool = False
    humans_in_loop: bool = True


class AISystemCreate(AISystemBase):
    system_id: Optional[constr(strip_whitespace=True, min_length=1, max_length=50)] = Field(
        default=None,
        description="Public identifier; generated as AI-SYS-XXXX when omitted.",
    )


class AISystemUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    vendor: Optional[str] = None
    department: Optional[str] = None
    description: Optional[str] = None
    purpose: Optional[str] = None
    version: Optional[str] = None
    ai_capabilities: Optional[str] = None
    training_datasets: Optional[str] = None
    usage_context: Optional[str] = None
    potential_impact: Optional[str] = None
    keywords: Optional[List[str]] = None

    status: Optional[SystemStatus] = None
    risk_level: Optional[SystemRiskLevel] = None
    risk_score: Optional[Percent] = None
    doc_completeness: Optional[Percent] = None
    training_completeness: Optional[Percent] = None
    implementation_date: Optional[date] = None

    uses_personal_data: Optional[bool] = None
    uses_sensitive_data: Optional[bool] = None
    uses_deep_learning: Optional[bool] = None
    is_transparent: Optional[bool] = None
    impacts_vulnerable_groups: Optional[bool] = None
    impacts_autonomous: Optional[bool] = None
    humans_in_loop: Optional[bool] = None

    @field_validator(
        "name",
        "status",
        "doc_completeness",
        "training_completeness",
        "uses_personal_data",
        "uses_sensitive_data",
        "uses_deep_learning",
        "is_transparent",
        "impacts_vulnerable_groups",
        "impacts_autonomous",
        "humans_in_loop",
    )
    @classmethod
    def _not_null(cls, v):
        # omit the field to leave it unchanged
        if v is None:
            raise ValueError("Field cannot be null.")
        return v


class AISystemOut(AISystemBase):
    id: int
    system_id: str
    last_assessment_date: Optional[datetime] = None
    created_by: Optional[int] = None

    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# --------------------------------
# Questionnaire classification
# --------------------------------
class ClassificationAnswers(BaseModel):
    """
    Flat set of booleans consumed by risk_engine.py.
    """

    # Scope / context
    is_ai_system: bool = True  # Art. 3; False -> out_of_scope
    provider_outside_eu: bool = False
    public_body_deployer: bool = False
    general_purpose_model: bool = False

    # Prohibited (Art. 5)
    subliminal_manipulation: bool = False
    exploits_vulnerabilities: bool = False
    social_scoring: bool = False
    predictive_policing_profiling: bool = False
    untargeted_facial_scraping: bool = False
    emotion_recognition_work_or_education: bool = False
    biometric_categorisation_sensitive: bool = False
    realtime_remote_biometric_id_law_enforcement: bool = False

    # High-risk (Art. 6, Annex I / III)
    safety_component_of_regulated_product: bool = False
    biometric_identification: bool = False
    critical_infrastructure: bool = False
    education_vocational_training: bool = False
    employment_workers_management: bool = False
    essential_services_credit_insurance: bool = False
    law_enforcement: bool = False
    migration_asylum_border: bool = False
    justice_democratic_processes: bool = False

    # Limited-risk (Art. 50)
    interacts_with_humans: bool = False
    generates_synthetic_content: bool = False
    emotion_recognition: bool = False
    biometric_categorisation: bool = False
    deepfake: bool = False


class ClassificationResult(BaseModel):
    system_id: int
    risk_level: str
    risk_score: int
    matched_flags: List[str]
    obligations: Dict[str, List[str]]
    rationale: List[str]
    references: List[str] = []
