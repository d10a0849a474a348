# coding: utf-8
"""
Auth Service

Email/password registration and login, JWT issuing (python-jose) and
password hashing (bcrypt).

Token payload: {"id": user_id, "email": email?, "exp": ...}. Users created
through migration have no email, so "email" is optional.
"""

import uuid
from datetime import datetime, timedelta, UTC
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.config import BCRYPT_ROUNDS, JWT_ALGORITHM, JWT_EXPIRES_DAYS, JWT_SECRET
from astra.core.exceptions import (
    AlreadyRegisteredError,
    EmailTakenError,
    InvalidCredentialsError,
    InvalidTokenError,
    PasswordTooLongError,
    UserNotFoundError,
)
from astra.database import crud
from astra.database.models import User
from astra.utils.hashing import create_user_hash


# bcrypt only reads the first 72 bytes; newer releases reject longer input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise PasswordTooLongError()
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def issue_token(user: User, now: Optional[datetime] = None) -> str:
    """
    Sign a JWT for the user

    Args:
        user: User model
        now: Issue time (defaults to UTC now)

    Returns:
        Encoded JWT string
    """
    now = now or datetime.now(UTC)
    payload: Dict[str, Any] = {
        "id": user.user_id,
        "iat": now,
        "exp": now + timedelta(days=JWT_EXPIRES_DAYS),
    }
    if user.email:
        payload["email"] = user.email
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT

    Returns:
        Payload with at least "id"

    Raises:
        InvalidTokenError: bad signature, expired or missing id
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(reason=str(e))

    if not payload.get("id"):
        raise InvalidTokenError(reason="Missing id in JWT payload")
    return payload


def _auth_response(user: User, token: str) -> Dict[str, Any]:
    return {
        "token": token,
        "user": {
            "email": user.email,
            "userHash": user.user_hash,
            "telegram_id": user.telegram_id,
        },
    }


class AuthService:
    """Registration, login and migration account completion"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def register(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        nickname: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Register a new email/password user

        Returns:
            {"token", "user": {"email", "userHash", "telegram_id"}}

        Raises:
            EmailTakenError: email already registered
            PasswordTooLongError: password over 72 bytes
        """
        if await crud.get_user_by_email(self.session, email):
            raise EmailTakenError(email=email)

        user_id = str(uuid.uuid4())
        try:
            user = await crud.add_user(
                self.session,
                user_id=user_id,
                user_hash=create_user_hash(user_id),
                email=email,
                password_hash=hash_password(password),
                name=name,
                nickname=nickname,
                is_registered=True,
            )
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise EmailTakenError(email=email)

        logger.info(f"User registered: {user.user_hash[:8]}")
        return _auth_response(user, issue_token(user))

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Raises:
            InvalidCredentialsError: unknown email or wrong password
        """
        user = await crud.get_user_by_email(self.session, email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning("Login failed: invalid credentials")
            raise InvalidCredentialsError()

        return _auth_response(user, issue_token(user))

    async def set_email_password(
        self, user_hash: str, email: str, password: str
    ) -> Dict[str, Any]:
        """
        Add email/password to a user created through migration

        Raises:
            UserNotFoundError: unknown user_hash
            AlreadyRegisteredError: user already has an email
            EmailTakenError: email belongs to another user
            PasswordTooLongError: password over 72 bytes
        """
        user = await crud.get_user_by_hash(self.session, user_hash)
        if not user:
            raise UserNotFoundError(user_hash=user_hash)

        if user.email:
            raise AlreadyRegisteredError()

        holder = await crud.get_user_by_email(self.session, email)
        if holder and holder.id != user.id:
            raise EmailTakenError(email=email)

        password_hash = hash_password(password)
        user.email = email
        user.password_hash = password_hash
        user.is_registered = True

        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise EmailTakenError(email=email)

        logger.info(f"Email/password set for migrated user {user_hash[:8]} ({user.account_kind.value})")
        response = _auth_response(user, issue_token(user))
        response["message"] = "Email and password set successfully"
        return response

    async def get_user_from_token(self, token: str) -> User:
        """
        Resolve the user a token was issued for

        Raises:
            InvalidTokenError, UserNotFoundError
        """
        payload = decode_token(token)
        user = await crud.get_user_by_user_id(self.session, payload["id"])
        if not user:
            raise UserNotFoundError(user_id=payload["id"])
        return user
