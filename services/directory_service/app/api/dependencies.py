from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..config.settings import Settings
from ..core.security import Caller, decode_session_token
from ..models.database import get_db
from ..services.member import MemberService

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_member_service(db: Optional[Session] = Depends(get_db)):
    return MemberService(db)


def get_current_caller(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> Optional[Caller]:
    """Resolve the caller from a bearer token or the session cookie; None if anonymous."""
    token = credentials.credentials if credentials else request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    return decode_session_token(token, settings.SESSION_SECRET)


async def get_raw_body(request: Request) -> bytes:
    # Decoded later by the procedure layer, after authorization.
    return await request.body()
