# orderdesk/api/routes_auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from orderdesk.api.deps import current_user, get_db, get_request_meta, rate_limit
from orderdesk.core.rbac import iter_user_perm_codes, is_admin_user
from orderdesk.core.security import verify_password
from orderdesk.models.audit import AuditAction
from orderdesk.models.user import User
from orderdesk.schemas.auth import LoginIn, TokenOut
from orderdesk.schemas.user import MeOut
from orderdesk.services.audit_logger import log_audit
from orderdesk.services.rbac_helpers import MODULES
from orderdesk.utils.jwt import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=TokenOut, dependencies=[Depends(rate_limit)])
def login(payload: LoginIn, request: Request, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    user = db.query(User).filter(func.lower(User.email) == email).first()

    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="User inactive")

    token = create_access_token(user_id=user.id, role=user.role)

    meta = get_request_meta(request)
    log_audit(
        db,
        user_id=user.id,
        action=AuditAction.LOGIN,
        entity_type="User",
        entity_id=user.id,
        description=f"{user.email} logged in",
        ip_address=meta["ip"],
        user_agent=meta["ua"],
    )
    return TokenOut(access_token=token)


@router.get("/me", response_model=MeOut)
def me(user: User = Depends(current_user)):
    if is_admin_user(user):
        perms = sorted(f"{m}.{a}" for m, actions in MODULES for a in actions)
    else:
        perms = sorted(iter_user_perm_codes(user))
    out = MeOut.model_validate(user)
    out.permissions = perms
    return out
