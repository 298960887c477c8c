"""Registration, sign-in, session resolution and sign-out.

Learn: AuthService owns the credential side of the system — the login
table, bcrypt verification — and hands off to SessionManager once a user
is known. Each public method is one operation; the /signin route picks
sign_in() or whoami() depending on whether an Authorization header was
sent.

Registration runs both inserts inside the session's single transaction:
either the login row and the users row are both committed, or neither
is. A unique-constraint violation at commit time means another request
registered the same email first, and is reported as DuplicateEmail.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from smartbrain.auth.password import (
    DEFAULT_ROUNDS,
    burn_verification,
    hash_password,
    verify_password,
)
from smartbrain.auth.sessions import SessionInfo, SessionManager
from smartbrain.db.models import Login, User, utcnow
from smartbrain.errors import (
    BadRequest,
    DuplicateEmail,
    InternalError,
    InvalidCredentials,
    RequestTimeout,
    TokenNotFound,
    Unauthorized,
)

logger = structlog.get_logger()


class AuthService:
    def __init__(
        self,
        db: AsyncSession,
        sessions: SessionManager,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ):
        self.db = db
        self.sessions = sessions
        self.bcrypt_rounds = bcrypt_rounds

    # ─── Credentials ──────────────────────────────────────

    async def verify(self, email: str, password: str) -> User:
        """Check email/password and return the matching user.

        Unknown email and wrong password raise the same InvalidCredentials,
        and both cost one bcrypt check.
        """
        try:
            result = await self.db.execute(select(Login).where(Login.email == email))
            credential = result.scalars().first()

            if credential is None:
                burn_verification(password, self.bcrypt_rounds)
                raise InvalidCredentials()

            if not verify_password(password, credential.hash):
                raise InvalidCredentials()

            result = await self.db.execute(select(User).where(User.email == email))
            user = result.scalars().first()
        except (TimeoutError, PoolTimeoutError) as e:
            logger.error("auth.verify_timeout", error=str(e))
            raise RequestTimeout("Database timed out") from e
        except SQLAlchemyError as e:
            logger.error("auth.verify_failed", error=str(e))
            raise InternalError("Error logging in") from e

        if user is None:
            logger.warning("auth.credential_without_user", email=email)
            raise InvalidCredentials()
        return user

    # ─── Sign-in ──────────────────────────────────────────

    async def sign_in(
        self, email: Optional[str], password: Optional[str]
    ) -> SessionInfo:
        """Verify credentials and open a new session."""
        if not email or not password:
            raise BadRequest()
        try:
            user = await self.verify(email, password)
        except InvalidCredentials:
            logger.info("auth.signin_failed", email=email)
            raise
        session = await self.sessions.create_session(user)
        logger.info("auth.signin", user_id=user.id)
        return session

    async def whoami(self, token: str) -> str:
        """Resolve an existing session token to its user id."""
        user_id = await self.sessions.resolve(token)
        if not user_id:
            raise Unauthorized()
        return user_id

    # ─── Registration ─────────────────────────────────────

    async def register(
        self,
        email: Optional[str],
        name: Optional[str],
        password: Optional[str],
    ) -> SessionInfo:
        """Create login + users rows atomically, then open a session."""
        email = (email or "").strip()
        name = (name or "").strip()
        if not email or not name or not password:
            raise BadRequest()

        try:
            # Fast path only; the unique constraint is the real guard.
            result = await self.db.execute(select(Login.id).where(Login.email == email))
            if result.first() is not None:
                raise DuplicateEmail()

            credential = Login(
                email=email,
                hash=hash_password(password, self.bcrypt_rounds),
            )
            self.db.add(credential)
            await self.db.flush()

            user = User(email=credential.email, name=name, joined=utcnow())
            self.db.add(user)
            await self.db.flush()
            await self.db.commit()
        except DuplicateEmail:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.info("auth.register_conflict", email=email, error=str(e.orig))
            raise DuplicateEmail() from e
        except (TimeoutError, PoolTimeoutError) as e:
            await self.db.rollback()
            logger.error("auth.register_timeout", error=str(e))
            raise RequestTimeout("Database timed out") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("auth.register_failed")
            raise InternalError("Unable to register") from e

        logger.info("auth.registered", user_id=user.id)
        return await self.sessions.create_session(user)

    # ─── Sign-out ─────────────────────────────────────────

    async def sign_out(self, token: Optional[str]) -> None:
        """Delete the presented session. Other sessions of the user survive."""
        if not token:
            raise BadRequest("No token provided")
        if not await self.sessions.revoke(token):
            raise TokenNotFound()
