"""In-process session store for authenticated administrators.

The session token never leaves the server unsigned: clients hold a JWT
(signed with the session secret) whose ``sid`` claim names the token.
Deleting the server-side entry is the only revocation mechanism.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict

import jwt

logger = logging.getLogger(__name__)


@dataclass
class SessionData:
    username: str | None = None
    authenticated: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)


class SessionManager:
    """Map opaque session tokens to :class:`SessionData` with a fixed TTL.

    The request dependencies that read it are coroutines, so only the event
    loop thread touches the mapping and it is not locked.
    """

    def __init__(
        self,
        secret: str,
        max_age_seconds: int = 24 * 60 * 60,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._clock = clock
        self.max_age = timedelta(seconds=max_age_seconds)
        self._sessions: Dict[str, SessionData] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _expired(self, data: SessionData) -> bool:
        return self._clock() - data.created_at >= self.max_age

    def create(self, username: str) -> str:
        """Start an authenticated session for ``username`` and return its token."""
        self.purge_expired()
        token = secrets.token_urlsafe(32)
        self._sessions[token] = SessionData(
            username=username, authenticated=True, created_at=self._clock()
        )
        logger.info("session created for %s", username)
        return token

    def get(self, token: str | None) -> SessionData | None:
        if not token:
            return None
        data = self._sessions.get(token)
        if data is None:
            return None
        if self._expired(data):
            self._sessions.pop(token, None)
            return None
        return data

    def destroy(self, token: str | None) -> None:
        if token and self._sessions.pop(token, None) is not None:
            logger.info("session destroyed")

    def purge_expired(self) -> int:
        expired = [t for t, d in list(self._sessions.items()) if self._expired(d)]
        for token in expired:
            self._sessions.pop(token, None)
        return len(expired)

    def clear(self) -> None:
        self._sessions.clear()

    def sign(self, token: str) -> str:
        """Return the cookie value carrying ``token``."""
        now = self._clock()
        payload = {"sid": token, "iat": now, "exp": now + self.max_age}
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def unsign(self, cookie: str | None) -> str | None:
        """Return the token inside ``cookie`` or ``None`` if it is not trustworthy."""
        if not cookie:
            return None
        try:
            payload = jwt.decode(cookie, self._secret, algorithms=[self._algorithm])
        except jwt.PyJWTError:
            logger.debug("rejected session cookie")
            return None
        token = payload.get("sid")
        return token if isinstance(token, str) else None
