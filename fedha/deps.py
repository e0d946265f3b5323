from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from fedha.core.database import get_db
from fedha.models.principal import Principal
from fedha.services.auth import decode_access_token

# Swagger "Authorize" posts the password form here.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

logger = logging.getLogger(__name__)


def _credentials_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_principal_id(payload: Dict[str, Any]) -> Optional[int]:
    raw = payload.get("sub")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return None


def get_current_principal(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    """Decode the bearer token and load its principal."""
    try:
        payload = decode_access_token(token)
    except ValueError:
        raise _credentials_error("Invalid or expired token")

    principal_id = _extract_principal_id(payload)
    if principal_id is None:
        raise _credentials_error("Token has no subject")

    principal = db.query(Principal).filter(Principal.id == principal_id).first()
    if principal is None:
        logger.warning("Token for unknown principal: principal_id=%s", principal_id)
        raise _credentials_error("Principal not found")

    request.state.principal = principal
    return principal
