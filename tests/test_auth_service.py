"""AuthService and SessionManager, exercised without HTTP.

Learn: These tests drive the service directly with the test database
session so that failures can be injected in the middle of the
registration transaction.
"""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from smartbrain.db.models import Login, User
from smartbrain.errors import (
    BadRequest,
    DuplicateEmail,
    InternalError,
    InvalidCredentials,
    SessionStoreError,
    TokenNotFound,
    Unauthorized,
)
from smartbrain.services.auth_service import AuthService


@pytest.fixture()
def svc(db_session, session_manager):
    return AuthService(db_session, session_manager, bcrypt_rounds=4)


async def _login_row(db_session, email):
    result = await db_session.execute(select(Login).where(Login.email == email))
    return result.scalars().first()


# ─── Registration ────────────────────────────────────────


@pytest.mark.asyncio
async def test_register_then_sign_in(svc, session_manager):
    created = await svc.register("ann@example.com", "Ann", "pw1")
    signed_in = await svc.sign_in("ann@example.com", "pw1")

    assert signed_in.user_id == created.user_id
    assert await session_manager.resolve(signed_in.token) == str(created.user_id)


@pytest.mark.asyncio
async def test_register_strips_name_and_email(svc, db_session):
    created = await svc.register("  ann@example.com ", " Ann ", "pw1")
    user = await db_session.get(User, created.user_id)
    assert user.email == "ann@example.com"
    assert user.name == "Ann"


@pytest.mark.asyncio
async def test_register_rejects_empty_fields(svc):
    with pytest.raises(BadRequest):
        await svc.register("", "Ann", "pw1")
    with pytest.raises(BadRequest):
        await svc.register("ann@example.com", None, "pw1")
    with pytest.raises(BadRequest):
        await svc.register("ann@example.com", "Ann", "")


@pytest.mark.asyncio
async def test_register_duplicate_fast_path(svc):
    await svc.register("ann@example.com", "Ann", "pw1")
    with pytest.raises(DuplicateEmail):
        await svc.register("ann@example.com", "Ann Again", "pw2")


@pytest.mark.asyncio
async def test_register_rolls_back_credential_when_user_insert_fails(
    svc, db_session, monkeypatch
):
    """A failure after the login insert leaves neither row behind."""
    real_flush = db_session.flush
    calls = 0

    async def flaky_flush(*args, **kwargs):
        nonlocal calls
        calls += 1
        if calls == 2:  # the users insert
            raise OperationalError("INSERT INTO users", {}, Exception("connection lost"))
        return await real_flush(*args, **kwargs)

    monkeypatch.setattr(db_session, "flush", flaky_flush)

    with pytest.raises(InternalError):
        await svc.register("ann@example.com", "Ann", "pw1")

    monkeypatch.setattr(db_session, "flush", real_flush)
    assert await _login_row(db_session, "ann@example.com") is None

    # The address is still free
    created = await svc.register("ann@example.com", "Ann", "pw1")
    assert created.user_id


@pytest.mark.asyncio
async def test_register_maps_unique_violation_to_duplicate(svc, db_session):
    """A conflicting row that slips past the pre-check is still a DuplicateEmail."""
    if db_session.bind.dialect.name != "sqlite":
        pytest.skip("needs a users row without a login row (SQLite does not enforce FKs)")

    db_session.add(User(email="race@example.com", name="Winner"))
    await db_session.commit()

    with pytest.raises(DuplicateEmail):
        await svc.register("race@example.com", "Loser", "pw1")

    # The login insert from the failed attempt was rolled back with it
    assert await _login_row(db_session, "race@example.com") is None


@pytest.mark.asyncio
async def test_register_store_failure_after_commit(svc, redis, db_session):
    redis.fail = RedisConnectionError("connection refused")
    with pytest.raises(SessionStoreError):
        await svc.register("ann@example.com", "Ann", "pw1")

    # The account exists; signing in once Redis is back works
    redis.fail = None
    session = await svc.sign_in("ann@example.com", "pw1")
    assert session.token in redis.data


# ─── Credentials ─────────────────────────────────────────


@pytest.mark.asyncio
async def test_verify_wrong_password(svc):
    await svc.register("ann@example.com", "Ann", "pw1")
    with pytest.raises(InvalidCredentials):
        await svc.verify("ann@example.com", "pw2")


@pytest.mark.asyncio
async def test_verify_unknown_email(svc):
    with pytest.raises(InvalidCredentials) as exc:
        await svc.verify("nobody@example.com", "pw")
    assert exc.value.message == "Wrong credentials"


@pytest.mark.asyncio
async def test_verify_credential_without_user(svc, db_session):
    from smartbrain.auth.password import hash_password

    db_session.add(Login(email="orphan@example.com", hash=hash_password("pw", 4)))
    await db_session.commit()

    with pytest.raises(InvalidCredentials):
        await svc.verify("orphan@example.com", "pw")


@pytest.mark.asyncio
async def test_failed_sign_in_stores_nothing(svc, redis):
    await svc.register("ann@example.com", "Ann", "pw1")
    before = dict(redis.data)
    with pytest.raises(InvalidCredentials):
        await svc.sign_in("ann@example.com", "bad")
    assert redis.data == before


# ─── Sessions ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_whoami_unknown_token(svc):
    with pytest.raises(Unauthorized):
        await svc.whoami("nope")


@pytest.mark.asyncio
async def test_sign_out_is_not_repeatable(svc):
    session = await svc.register("ann@example.com", "Ann", "pw1")
    await svc.sign_out(session.token)
    with pytest.raises(Unauthorized):
        await svc.whoami(session.token)
    with pytest.raises(TokenNotFound):
        await svc.sign_out(session.token)


@pytest.mark.asyncio
async def test_sign_out_requires_token(svc):
    with pytest.raises(BadRequest):
        await svc.sign_out(None)
    with pytest.raises(BadRequest):
        await svc.sign_out("")


@pytest.mark.asyncio
async def test_create_session_embeds_email(session_manager, svc, db_session):
    created = await svc.register("ann@example.com", "Ann", "pw1")
    user = await db_session.get(User, created.user_id)

    session = await session_manager.create_session(user)
    claims = session_manager.issuer.decode(session.token)
    assert claims["email"] == "ann@example.com"
    assert session.user_id == user.id
