# aiready/models/feedback.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, JSON

from aiready.db.base import Base

FEEDBACK_STATUSES = ("pending", "under_review", "implemented", "rejected", "planned")
FEEDBACK_CATEGORIES = (
    "ui_ux",
    "compliance_gap",
    "feature_request",
    "error_report",
    "documentation",
    "other",
)
FEEDBACK_PRIORITIES = ("low", "medium", "high", "critical")


class UserFeedback(Base):
    __tablename__ = "user_feedback"

    id = Column(Integer, primary_key=True, index=True)
    feedback_id = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(30), nullable=False, default="pending", index=True)
    category = Column(String(30), nullable=False, default="other", index=True)
    priority = Column(String(20), nullable=False, default="medium")
    context = Column(JSON, nullable=True)

    ai_system_id = Column(Integer, ForeignKey("ai_systems.id", ondelete="SET NULL"), nullable=True)
    assessment_id = Column(String(64), nullable=True)

    votes = Column(Integer, nullable=False, default=0)
    response = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    responded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
