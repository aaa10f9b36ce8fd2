# aiready/models/expert_review.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON

from aiready.db.base import Base

REVIEW_STATUSES = ("pending", "in_progress", "completed")


class ExpertReview(Base):
    __tablename__ = "expert_reviews"

    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(String(64), unique=True, nullable=False, index=True)

    assessment_id = Column(
        String(64),
        ForeignKey("risk_assessments.assessment_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    ai_system_id = Column(Integer, ForeignKey("ai_systems.id", ondelete="SET NULL"), nullable=True, index=True)

    text = Column(Text, nullable=False)
    type = Column(String(50), nullable=False, default="risk_assessment")
    status = Column(String(20), nullable=False, default="pending", index=True)
    validation_result = Column(JSON, nullable=True)
    expert_feedback = Column(Text, nullable=True)

    requested_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    requested_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    assigned_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
