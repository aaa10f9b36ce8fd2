# aiready/api/v1/auth.py
import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func
from sqlalchemy.orm import Session

from aiready.core.auth import LOCKOUT_MINUTES, authenticate_user, get_current_user, get_db, is_locked
from aiready.core.errors import ValidationError
from aiready.core.security import ACCESS_TOKEN_EXPIRE_MINUTES, create_access_token, get_password_hash
from aiready.models.user import User
from aiready.schemas.user import Token, UserCreate, UserOut
from aiready.services.activity import ip_from_request, record_activity

router = APIRouter()
log = logging.getLogger(__name__)


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, request: Request, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    if db.query(User.id).filter(func.lower(User.email) == email).first():
        raise ValidationError("Email already registered")

    user = User(
        email=email,
        hashed_password=get_password_hash(payload.password),
        full_name=payload.full_name,
        organization=payload.organization,
        role="user",
    )
    db.add(user)
    db.flush()
    record_activity(
        db,
        type="user_registered",
        description=f"User {email} registered",
        user_id=user.id,
        ip=ip_from_request(request),
        commit=False,
    )
    db.commit()
    db.refresh(user)
    return user


@router.post("/login", response_model=Token)
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    email = (form_data.username or "").strip().lower()
    user = authenticate_user(db, email, form_data.password)

    if not user:
        u = db.query(User).filter(func.lower(User.email) == email).first()
        if u is not None and is_locked(u):
            log.warning("account %s locked after failed sign-ins ip=%s", u.id, ip_from_request(request))
            record_activity(
                db,
                type="account_locked",
                description=f"Account {u.email} locked for {LOCKOUT_MINUTES} minutes",
                user_id=u.id,
                ip=ip_from_request(request),
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=(
                    "Your account is temporarily locked due to too many failed sign-in attempts. "
                    f"Please try again in {LOCKOUT_MINUTES} minutes."
                ),
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={"sub": user.email},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
