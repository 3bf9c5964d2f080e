# orderdesk/api/deps.py
from __future__ import annotations

import logging
from typing import Dict, Generator, Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from orderdesk.core.rate_limit import client_key
from orderdesk.core.rbac import load_user_with_permissions
from orderdesk.db.session import SessionLocal
from orderdesk.models.user import User
from orderdesk.utils.jwt import decode_token

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =========================================================
# AUTH HELPERS
# =========================================================
def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    raw = _extract_bearer(authorization)
    if not raw:
        raise HTTPException(status_code=401, detail="Missing token")

    payload = decode_token(raw)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = load_user_with_permissions(db, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="User inactive")
    return user


# =========================================================
# REQUEST META / RATE LIMIT
# =========================================================
def get_request_meta(request: Optional[Request]) -> Dict[str, Optional[str]]:
    if request is None:
        return {"ip": None, "ua": None}
    return {"ip": client_key(request), "ua": request.headers.get("user-agent")}


def rate_limit(request: Request) -> None:
    """
    Fixed-window per-IP gate for write endpoints and login.
    """
    store = request.app.state.rate_limiter
    key = client_key(request)
    if not store.allow(key):
        logger.warning("Rate limit exceeded for %s on %s %s", key,
                       request.method, request.url.path)
        raise HTTPException(status_code=429, detail="Too many requests")
