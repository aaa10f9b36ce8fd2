# aiready/models/training.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, JSON

from aiready.db.base import Base


class TrainingModule(Base):
    __tablename__ = "training_modules"

    id = Column(String(20), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    estimated_time = Column(String(50), nullable=True)
    topics = Column(JSON, nullable=False, default=list)
    role_relevance = Column(JSON, nullable=False, default=dict)
    sort_order = Column(Integer, nullable=False, default=0)


class TrainingProgress(Base):
    __tablename__ = "training_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    module_id = Column(String(20), ForeignKey("training_modules.id", ondelete="CASCADE"), nullable=False)
    completion = Column(Integer, nullable=False, default=0)
    assessment_score = Column(Integer, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "module_id", name="uq_training_progress_user_module"),
    )
