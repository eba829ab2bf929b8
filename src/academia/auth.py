"""Password hashing and the authentication gate for admin routes.

bcrypt only uses the first 72 bytes of a password; longer inputs are
truncated explicitly so hashing and verification agree.
"""

import bcrypt
from fastapi import Depends, Request

from .errors import ApiError
from .services import MemberStore
from .sessions import SessionData, SessionManager

UNAUTHORIZED = "Não autorizado"


def _to_bcrypt_secret(password: str) -> bytes:
    return password.encode("utf-8")[:72]


def hash_password(password: str, rounds: int = 10) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_to_bcrypt_secret(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_to_bcrypt_secret(password), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


async def get_store(request: Request) -> MemberStore:
    return request.app.state.store


async def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


async def session_token(request: Request, sessions: SessionManager = Depends(get_sessions)) -> str | None:
    """Return the session token carried by the request cookie, if valid."""
    cookie = request.cookies.get(request.app.state.settings.session_cookie_name)
    return sessions.unsign(cookie)


async def current_session(
    token: str | None = Depends(session_token),
    sessions: SessionManager = Depends(get_sessions),
) -> SessionData | None:
    return sessions.get(token)


async def require_admin(session: SessionData | None = Depends(current_session)) -> SessionData:
    if session is None or not session.authenticated:
        raise ApiError(401, UNAUTHORIZED)
    return session
