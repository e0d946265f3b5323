from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fedha.core.database import get_db
from fedha.deps import get_current_principal
from fedha.models.principal import Principal
from fedha.services.auth import create_access_token, hash_password, verify_password
from fedha.services.staff import normalize_email

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


class RegisterPayload(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: Optional[str] = None


class LoginPayload(BaseModel):
    username: EmailStr
    password: str


def _principal_to_dict(principal: Principal) -> dict:
    return {
        "id": principal.id,
        "email": principal.email,
        "full_name": principal.full_name,
        "phone": principal.phone,
    }


def _authenticate(db: Session, email: str, password: str) -> Principal:
    principal = db.query(Principal).filter(Principal.email == normalize_email(email)).first()
    if not principal or not verify_password(password, principal.password_hash):
        logger.warning("Login failed: email=%s", normalize_email(email))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


@router.post("/register", status_code=201)
def register(payload: RegisterPayload, db: Session = Depends(get_db)):
    email = normalize_email(payload.email)
    if db.query(Principal.id).filter(Principal.email == email).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    principal = Principal(
        email=email,
        full_name=payload.full_name.strip(),
        phone=(payload.phone or "").strip() or None,
        password_hash=hash_password(payload.password),
    )
    db.add(principal)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    db.refresh(principal)
    logger.info("Principal registered: principal_id=%s", principal.id)
    return _principal_to_dict(principal)


@router.post("/login")
def login(payload: LoginPayload, db: Session = Depends(get_db)):
    principal = _authenticate(db, payload.username, payload.password)
    return {"access_token": create_access_token(principal.id), "token_type": "bearer"}


@router.post("/token")
def token(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """Form-data login used by the Swagger UI Authorize button."""
    principal = _authenticate(db, form_data.username, form_data.password)
    return {"access_token": create_access_token(principal.id), "token_type": "bearer"}


@router.get("/me")
def me(principal: Principal = Depends(get_current_principal)):
    return _principal_to_dict(principal)
