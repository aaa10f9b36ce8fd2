# aiready/models/document.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship, backref

from aiready.db.base import Base

DOCUMENT_STATUSES = ("draft", "review", "approved", "archived")


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False, index=True)
    ai_system_id = Column(Integer, ForeignKey("ai_systems.id", ondelete="CASCADE"), nullable=True, index=True)
    content = Column(Text, nullable=True)
    version = Column(String(20), nullable=False, default="1.0")
    status = Column(String(20), nullable=False, default="draft")
    # "deepseek" | "gemini" | "openai" | "search" | "static" | "manual"
    source = Column(String(30), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    system = relationship("AISystem", backref=backref("documents", passive_deletes=True))
