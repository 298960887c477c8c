"""Session lifecycle — create, resolve, revoke.

Learn: SessionManager is the only code that writes to the session store.
create_session() is called only with a user that was just verified or
just created, which is what keeps every stored user id pointing at a
real users row.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from smartbrain.auth.jwt import TokenIssuer
from smartbrain.auth.session_store import SessionStore
from smartbrain.db.models import User

logger = structlog.get_logger()


@dataclass
class SessionInfo:
    user_id: int
    token: str


class SessionManager:
    def __init__(self, issuer: TokenIssuer, store: SessionStore):
        self.issuer = issuer
        self.store = store

    async def create_session(self, user: User) -> SessionInfo:
        """Issue a token for user and store token → user id.

        Raises SessionStoreError if the write fails; the caller must treat
        the sign-in or registration as failed.
        """
        token = self.issuer.issue(user.email)
        await self.store.set(token, str(user.id))
        logger.info("session.created", user_id=user.id)
        return SessionInfo(user_id=user.id, token=token)

    async def resolve(self, token: str) -> Optional[str]:
        """Return the user id stored for token, or None."""
        return await self.store.get(token)

    async def revoke(self, token: str) -> bool:
        """Delete the session. False if the token was not stored."""
        deleted = await self.store.delete(token)
        if deleted:
            logger.info("session.revoked")
        return deleted > 0
