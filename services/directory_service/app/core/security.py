"""Caller identity and the authorization policy applied to every procedure."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_USER, ROLE_ADMIN)


@dataclass
class Caller:
    """The authenticated principal behind a request."""
    id: str
    role: str = ROLE_USER
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "role": self.role}


def create_session_token(caller: Caller, secret: str, expires_minutes: int = 60 * 24) -> str:
    """Sign a session token carrying the caller's id, name and role."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    claims = {"sub": caller.id, "role": caller.role, "exp": expire}
    if caller.name:
        claims["name"] = caller.name
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def decode_session_token(token: str, secret: Optional[str]) -> Optional[Caller]:
    """Verify a session token; any failure yields an anonymous caller (None)."""
    if not secret:
        return None
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning("Session token rejected: %s", e)
        return None

    subject = payload.get("sub")
    if not subject:
        return None
    role = payload.get("role")
    if role not in ROLES:
        role = ROLE_USER
    return Caller(id=str(subject), role=role, name=payload.get("name"))


def authorize(caller: Optional[Caller], procedure) -> bool:
    """Return True when ``caller`` may invoke ``procedure``.

    Public procedures are open to anyone, anonymous callers included. Procedures
    flagged ``admin_only`` need an authenticated caller holding the admin role.
    """
    if not procedure.admin_only:
        return True
    return caller is not None and caller.is_admin
