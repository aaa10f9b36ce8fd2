# aiready/schemas/user.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, constr


class UserCreate(BaseModel):
    email: EmailStr
    password: constr(min_length=8, max_length=128)
    full_name: Optional[constr(strip_whitespace=True, max_length=255)] = None
    organization: Optional[constr(strip_whitespace=True, max_length=255)] = None


class UserOut(BaseModel):
    id: int
    email: EmailStr
    role: str
    full_name: Optional[str] = None
    organization: Optional[str] = None
    is_active: bool = True
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
