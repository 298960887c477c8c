"""FastAPI auth dependencies — the authentication gate.

Learn: require_session is applied to every protected router via
include_router(dependencies=...), so handlers never call it themselves.
The resolved user id is left on request.state, where the access log
picks it up, and bound to the structlog context for the handler's own
log lines.

The Authorization header carries the opaque token itself — no "Bearer"
prefix.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from smartbrain.auth.jwt import TokenIssuer
from smartbrain.auth.session_store import SessionStore, get_session_store
from smartbrain.auth.sessions import SessionManager
from smartbrain.config import Settings, get_settings
from smartbrain.errors import Unauthorized


@dataclass
class CurrentSession:
    """The identity resolved from a valid session token."""

    user_id: str
    token: str


def get_token_issuer(settings: Settings = Depends(get_settings)) -> TokenIssuer:
    return TokenIssuer(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expire_days=settings.session_token_expire_days,
    )


def get_session_manager(
    issuer: TokenIssuer = Depends(get_token_issuer),
    store: SessionStore = Depends(get_session_store),
) -> SessionManager:
    return SessionManager(issuer, store)


async def require_session(
    request: Request,
    authorization: Optional[str] = Header(None),
    sessions: SessionManager = Depends(get_session_manager),
) -> CurrentSession:
    """Admit the request only if its token is a live session.

    1. No header → Unauthorized (Redis is not touched)
    2. Redis unreachable → SessionStoreError (503) / RequestTimeout (504)
    3. Unknown token → Unauthorized
    4. Otherwise the user id is attached to request.state
    """
    if not authorization:
        raise Unauthorized()

    user_id = await sessions.resolve(authorization)
    if not user_id:
        raise Unauthorized()

    request.state.user_id = user_id
    structlog.contextvars.bind_contextvars(user_id=user_id)
    return CurrentSession(user_id=user_id, token=authorization)
