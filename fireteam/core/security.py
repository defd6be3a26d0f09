"""
Session token helpers

Tokens are issued by the identity provider glue after the OAuth exchange and
carry the caller's membership id (``sub``) and display name (``name``).
"""
from datetime import timedelta
from typing import Optional

from jose import JWTError, jwt

from fireteam.core.config import settings
from fireteam.schemas.relationship import CallerContext
from fireteam.utils.time_utils import utc_now


def create_session_token(user_id: str, display_name: str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a session token for the given caller"""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.SESSION_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": user_id,
        "name": display_name,
        "exp": utc_now() + expires_delta,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> Optional[CallerContext]:
    """Return the caller for a valid token, None for an invalid or expired one"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    user_id = payload.get("sub")
    display_name = payload.get("name")
    if not user_id or not display_name:
        return None
    return CallerContext(user_id=str(user_id), display_name=str(display_name))
