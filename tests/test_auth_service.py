"""
Tests for registration, login, JWT and migrated account completion
"""

from datetime import datetime, timedelta, UTC

import pytest
from jose import jwt

from config.config import JWT_ALGORITHM, JWT_SECRET
from astra.core.exceptions import (
    AlreadyRegisteredError,
    EmailTakenError,
    InvalidCredentialsError,
    InvalidTokenError,
    PasswordTooLongError,
    UserNotFoundError,
)
from astra.database.models import AccountKind
from astra.services.auth_service import (
    AuthService,
    decode_token,
    hash_password,
    issue_token,
    verify_password,
)
from astra.utils.hashing import create_user_hash


def test_user_hash_is_sha256_of_user_id():
    assert create_user_hash("abc") == (
        "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    )
    assert create_user_hash("abc") == create_user_hash("abc")
    assert create_user_hash("abc") != create_user_hash("abd")


def test_password_hashing():
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("anything", None)
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_password_over_72_bytes_is_rejected():
    # 40 two-byte characters: short in characters, too long for bcrypt
    long_password = "\u00e9" * 40
    hashed = hash_password("x" * 72)

    with pytest.raises(PasswordTooLongError):
        hash_password(long_password)
    with pytest.raises(PasswordTooLongError):
        hash_password("x" * 100)

    assert verify_password("x" * 72, hashed)
    assert not verify_password("x" * 73, hashed)


@pytest.mark.asyncio
async def test_register_with_long_password_stores_nothing(db_session):
    service = AuthService(db_session)

    with pytest.raises(PasswordTooLongError):
        await service.register("long@example.com", "x" * 100)

    with pytest.raises(InvalidCredentialsError):
        await service.login("long@example.com", "x" * 100)


@pytest.mark.asyncio
async def test_register_and_login(db_session):
    service = AuthService(db_session)

    registered = await service.register("a@example.com", "password123", name="Ann")

    assert registered["user"]["email"] == "a@example.com"
    assert registered["user"]["telegram_id"] is None
    payload = decode_token(registered["token"])
    assert payload["email"] == "a@example.com"

    logged_in = await service.login("a@example.com", "password123")
    assert logged_in["user"]["userHash"] == registered["user"]["userHash"]

    user = await service.get_user_from_token(logged_in["token"])
    assert user.account_kind == AccountKind.REGISTERED
    assert user.is_registered is True


@pytest.mark.asyncio
async def test_register_duplicate_email(db_session):
    service = AuthService(db_session)
    await service.register("a@example.com", "password123")

    with pytest.raises(EmailTakenError):
        await service.register("a@example.com", "password456")


@pytest.mark.asyncio
async def test_login_rejects_bad_credentials(db_session):
    service = AuthService(db_session)
    await service.register("a@example.com", "password123")

    with pytest.raises(InvalidCredentialsError):
        await service.login("a@example.com", "nope")
    with pytest.raises(InvalidCredentialsError):
        await service.login("b@example.com", "password123")


def test_token_without_email_for_migrated_user():
    class Stub:
        user_id = "u-1"
        email = None

    payload = decode_token(issue_token(Stub()))
    assert payload["id"] == "u-1"
    assert "email" not in payload


def test_expired_or_forged_token():
    expired = jwt.encode(
        {"id": "u-1", "exp": datetime.now(UTC) - timedelta(minutes=1)},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )
    with pytest.raises(InvalidTokenError):
        decode_token(expired)

    forged = jwt.encode({"id": "u-1"}, "other-secret", algorithm=JWT_ALGORITHM)
    with pytest.raises(InvalidTokenError):
        decode_token(forged)

    no_id = jwt.encode({"sub": "x"}, JWT_SECRET, algorithm=JWT_ALGORITHM)
    with pytest.raises(InvalidTokenError):
        decode_token(no_id)


@pytest.mark.asyncio
async def test_set_email_password_on_bot_user(db_session, make_user):
    user = await make_user(telegram_id="777")
    service = AuthService(db_session)

    result = await service.set_email_password(user.user_hash, "tg@example.com", "password123")

    assert result["message"] == "Email and password set successfully"
    assert result["user"]["telegram_id"] == "777"
    assert user.account_kind == AccountKind.BOTH

    login = await service.login("tg@example.com", "password123")
    assert login["user"]["userHash"] == user.user_hash


@pytest.mark.asyncio
async def test_set_email_password_errors(db_session, make_user):
    service = AuthService(db_session)
    await service.register("taken@example.com", "password123")
    registered = await make_user(email="me@example.com", password_hash=hash_password("x" * 8))
    stub = await make_user()

    with pytest.raises(UserNotFoundError):
        await service.set_email_password("missing", "n@example.com", "password123")
    with pytest.raises(AlreadyRegisteredError):
        await service.set_email_password(registered.user_hash, "n@example.com", "password123")
    with pytest.raises(EmailTakenError):
        await service.set_email_password(stub.user_hash, "taken@example.com", "password123")
    with pytest.raises(PasswordTooLongError):
        await service.set_email_password(stub.user_hash, "n@example.com", "x" * 100)

    assert stub.email is None
    assert stub.password_hash is None


@pytest.mark.asyncio
async def test_token_for_deleted_user(db_session):
    class Stub:
        user_id = "ghost"
        email = "ghost@example.com"

    with pytest.raises(UserNotFoundError):
        await AuthService(db_session).get_user_from_token(issue_token(Stub()))
