# aiready/models/ai_system.py
from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    DateTime,
    Boolean,
    ForeignKey,
    Index,
    JSON,
)
from sqlalchemy.orm import relationship

from aiready.db.base import Base

SYSTEM_STATUSES = ("active", "inactive", "development", "retired")
RISK_LEVELS = ("Unacceptable", "High", "Limited", "Minimal", "Unknown")


class AISystem(Base):
    __tablename__ = "ai_systems"

    id = Column(Integer, primary_key=True, index=True)
    # public identifier, e.g. "AI-SYS-0042"
    system_id = Column(String(50), unique=True, nullable=False, index=True)

    name = Column(String(255), nullable=False, index=True)
    vendor = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True, index=True)
    description = Column(Text, nullable=True)
    purpose = Column(Text, nullable=True)
    version = Column(String(50), nullable=True)
    ai_capabilities = Column(Text, nullable=True)
    training_datasets = Column(Text, nullable=True)
    usage_context = Column(Text, nullable=True)
    potential_impact = Column(Text, nullable=True)
    keywords = Column(JSON, nullable=True)

    status = Column(String(30), nullable=False, default="active", index=True)
    risk_level = Column(String(30), nullable=True, index=True)
    risk_score = Column(Integer, nullable=True)
    doc_completeness = Column(Integer, nullable=False, default=0)
    training_completeness = Column(Integer, nullable=False, default=0)

    implementation_date = Column(Date, nullable=True)
    last_assessment_date = Column(DateTime, nullable=True)

    # flags consumed by the rule-based analysis
    uses_personal_data = Column(Boolean, nullable=False, default=False)
    uses_sensitive_data = Column(Boolean, nullable=False, default=False)
    uses_deep_learning = Column(Boolean, nullable=False, default=False)
    is_transparent = Column(Boolean, nullable=False, default=True)
    impacts_vulnerable_groups = Column(Boolean, nullable=False, default=False)
    impacts_autonomous = Column(Boolean, nullable=False, default=False)
    humans_in_loop = Column(Boolean, nullable=False, default=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    creator = relationship("User", foreign_keys=[created_by])

    __table_args__ = (
        Index("ix_ai_systems_department_risk", "department", "risk_level"),
    )

    @property
    def is_high_risk(self) -> bool:
        return (self.risk_level or "").lower() in {"high", "unacceptable"}
