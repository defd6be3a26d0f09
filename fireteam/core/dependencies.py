"""
FastAPI dependencies: caller identity and the social service
"""
import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fireteam.core.config import settings
from fireteam.core.security import decode_session_token
from fireteam.schemas.relationship import CallerContext
from fireteam.services.record_store import RecordStore, build_record_store
from fireteam.services.social_service import SocialService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_caller(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> CallerContext:
    """Resolve the caller from a Bearer token or the session cookie"""
    token = credentials.credentials if credentials else request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    caller = decode_session_token(token)
    if caller is None:
        logger.info(f"Rejected session token on {request.method} {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate session",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller


@lru_cache()
def get_record_store() -> RecordStore:
    return build_record_store(settings)


def get_social_service(store: RecordStore = Depends(get_record_store)) -> SocialService:
    return SocialService(store)
