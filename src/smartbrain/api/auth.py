"""Auth API — registration, sign-in, sign-out.

Learn: Routes for the session lifecycle:
- POST /register → create login + user rows → new session
- POST /signin → email/password → new session
- POST /signin with Authorization header → {id} of the existing session
- POST /signout → delete the presented session

/signin keeps both behaviours behind one URL (the frontend relies on
it), but they are two separate service calls chosen by header presence.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from smartbrain.auth.dependencies import get_session_manager
from smartbrain.auth.sessions import SessionManager
from smartbrain.config import Settings, get_settings
from smartbrain.db.engine import get_db
from smartbrain.schemas.auth import (
    RegisterRequest,
    SessionResponse,
    SignInRequest,
    SignOutResponse,
    WhoAmIResponse,
)
from smartbrain.services.auth_service import AuthService

router = APIRouter()


def _svc(
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(db, sessions, bcrypt_rounds=settings.bcrypt_rounds)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=SessionResponse)
async def register(body: RegisterRequest, svc: AuthService = Depends(_svc)):
    """Create a new account and sign it in."""
    session = await svc.register(body.email, body.name, body.password)
    return SessionResponse(user_id=session.user_id, token=session.token)


# ─── Sign-in ─────────────────────────────────────────────


@router.post("/signin")
async def signin(
    body: Optional[SignInRequest] = None,
    authorization: Optional[str] = Header(None),
    svc: AuthService = Depends(_svc),
):
    """Sign in with credentials, or resolve the session in the header."""
    if authorization:
        return WhoAmIResponse(id=await svc.whoami(authorization))

    body = body or SignInRequest()
    session = await svc.sign_in(body.email, body.password)
    return SessionResponse(user_id=session.user_id, token=session.token)


# ─── Sign-out ────────────────────────────────────────────


@router.post("/signout", response_model=SignOutResponse)
async def signout(
    authorization: Optional[str] = Header(None),
    svc: AuthService = Depends(_svc),
):
    """Delete the session named by the Authorization header."""
    await svc.sign_out(authorization)
    return SignOutResponse()
