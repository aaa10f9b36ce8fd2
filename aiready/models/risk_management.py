# aiready/models/risk_management.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON

from aiready.db.base import Base

CONTROL_TYPES = ("technical", "procedural", "organizational", "contractual")
CONTROL_STATUSES = ("planned", "in_progress", "implemented", "verified", "failed")
CONTROL_EFFECTIVENESS = (
    "very_effective",
    "effective",
    "partially_effective",
    "ineffective",
    "not_tested",
    "not_implemented",
)

EVENT_TYPES = ("incident", "near_miss", "performance_deviation", "external_factor", "user_feedback")
EVENT_SEVERITIES = ("critical", "high", "medium", "low")
EVENT_STATUSES = ("new", "under_investigation", "resolved", "closed")


class RiskControl(Base):
    __tablename__ = "risk_controls"

    id = Column(Integer, primary_key=True, index=True)
    control_id = Column(String(64), unique=True, nullable=False, index=True)
    ai_system_id = Column(
        Integer,
        ForeignKey("ai_systems.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    control_type = Column(String(30), nullable=False, default="procedural")
    implementation_status = Column(String(30), nullable=False, default="planned", index=True)
    effectiveness = Column(String(30), nullable=False, default="not_tested")

    implementation_date = Column(DateTime, nullable=True)
    last_review_date = Column(DateTime, nullable=True)
    next_review_date = Column(DateTime, nullable=True)
    responsible_person = Column(String(255), nullable=True)

    related_gaps = Column(JSON, nullable=True)
    implementation_steps = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class RiskEvent(Base):
    __tablename__ = "risk_events"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(String(64), unique=True, nullable=False, index=True)
    ai_system_id = Column(
        Integer,
        ForeignKey("ai_systems.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    event_type = Column(String(30), nullable=False)
    severity = Column(String(20), nullable=False, index=True)
    description = Column(Text, nullable=False)
    detection_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    reported_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(30), nullable=False, default="new", index=True)

    impact = Column(Text, nullable=True)
    root_cause = Column(Text, nullable=True)
    mitigation_actions = Column(JSON, nullable=True)
    recurrence_prevention = Column(Text, nullable=True)
    closure_date = Column(DateTime, nullable=True)
    related_controls = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
