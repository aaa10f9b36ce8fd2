# aiready/models/risk_assessment.py
import enum
from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    JSON,
)
from sqlalchemy.orm import relationship, backref

from aiready.db.base import Base


class AssessmentStatus(str, enum.Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    APPROVED = "approved"
    REJECTED = "rejected"
    REQUIRES_UPDATE = "requires_update"


class RiskLevel(str, enum.Enum):
    UNACCEPTABLE = "unacceptable"
    HIGH = "high"
    LIMITED = "limited"
    MINIMAL = "minimal"


# statuses in which the assessment content may still be edited
EDITABLE_STATUSES = {
    AssessmentStatus.DRAFT.value,
    AssessmentStatus.IN_PROGRESS.value,
    AssessmentStatus.REQUIRES_UPDATE.value,
}


class RiskAssessment(Base):
    __tablename__ = "risk_assessments"

    id = Column(Integer, primary_key=True, index=True)
    assessment_id = Column(String(64), unique=True, nullable=False, index=True)

    ai_system_id = Column(
        Integer,
        ForeignKey("ai_systems.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    status = Column(String(30), nullable=False, default=AssessmentStatus.DRAFT.value, index=True)
    risk_level = Column(String(30), nullable=False, default=RiskLevel.MINIMAL.value)
    risk_score = Column(Integer, nullable=False, default=0)
    assessment_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    prohibited_uses_checked = Column(Boolean, nullable=False, default=False)
    prohibited_uses_results = Column(JSON, nullable=True)
    risk_factors = Column(JSON, nullable=True)
    risk_areas = Column(JSON, nullable=True)
    mitigation_measures = Column(JSON, nullable=True)
    required_documentation = Column(JSON, nullable=True)
    applicable_articles = Column(JSON, nullable=True)

    # raw pipeline output and which stage produced it
    analysis = Column(JSON, nullable=True)
    analysis_source = Column(String(30), nullable=True)

    summary_notes = Column(Text, nullable=True)
    next_review_date = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    system = relationship("AISystem", backref=backref("risk_assessments", passive_deletes=True))


Index(
    "ix_risk_assessments_system_created",
    RiskAssessment.ai_system_id,
    RiskAssessment.created_at,
)
