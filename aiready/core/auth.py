# aiready/core/auth.py
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from aiready.db.session import get_db
from aiready.models.user import User
from aiready.core.security import verify_password, SECRET_KEY, ALGORITHM

# OAuth2 bearer scheme for the Swagger "Authorize" button and DI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/login")

# Lockout policy
MAX_FAILED_ATTEMPTS = 3
LOCKOUT_MINUTES = 15

__all__ = [
    "get_db",
    "oauth2_scheme",
    "authenticate_user",
    "is_locked",
    "get_current_user",
    "MAX_FAILED_ATTEMPTS",
    "LOCKOUT_MINUTES",
]


def is_locked(user: User, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    return bool(user.locked_until and user.locked_until > now)


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Attempt authentication:
      - if user doesn't exist → return None (do not reveal existence)
      - if user is deactivated → 403
      - if account is locked → 423
      - if password is correct → reset counters and return user
      - if password is incorrect → increment counter, lock if needed, return None
    """
    user = db.query(User).filter(User.email == email).first()
    if not user:
        # Do not reveal whether the user exists
        return None

    # Deactivated
    if user.is_active is False:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is disabled")

    # Already locked?
    if is_locked(user):
        raise HTTPException(
            status_code=status.HTTP_423_LOCKED,
            detail=f"Account locked until {user.locked_until.isoformat()}",
        )

    # Password check
    if verify_password(password, user.hashed_password):
        # Success: reset counters and lock
        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login_at = datetime.utcnow()
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    # Failure: increment counter and lock at the threshold
    user.failed_login_attempts = int(user.failed_login_attempts or 0) + 1
    if user.failed_login_attempts >= MAX_FAILED_ATTEMPTS:
        user.locked_until = datetime.utcnow() + timedelta(minutes=LOCKOUT_MINUTES)
        user.failed_login_attempts = 0

    db.add(user)
    db.commit()
    return None


def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Decode JWT and load the user from DB or return 401.
    Stores user_id / role on request.state for the request logger.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        email: Optional[str] = payload.get("sub")
        if email is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise credentials_exception

    # Deactivated?
    if user.is_active is False:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is disabled")

    # Locked accounts are rejected even with a valid token
    if is_locked(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account locked until {user.locked_until.isoformat()}",
        )

    # Expose user context to middleware/loggers
    request.state.user_id = user.id
    request.state.user_role = user.role
    return user
