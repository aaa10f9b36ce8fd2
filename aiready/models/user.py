# aiready/models/user.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Boolean, text

from aiready.db.base import Base

# Roles: "admin" manages everything, "compliance_officer" signs off assessments
# and answers feedback, "user" works with the inventory.
USER_ROLES = ("admin", "compliance_officer", "user")
STAFF_ROLES = {"admin", "compliance_officer"}


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)

    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String(255), nullable=True)
    organization = Column(String(255), nullable=True)
    role = Column(String(50), nullable=False, default="user", index=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("1"))

    # login lockout bookkeeping
    failed_login_attempts = Column(Integer, nullable=False, default=0, server_default=text("0"))
    locked_until = Column(DateTime, nullable=True, index=True)
    last_login_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def is_staff(self) -> bool:
        return (self.role or "") in STAFF_ROLES
