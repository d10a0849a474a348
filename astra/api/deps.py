"""
FastAPI dependencies: authenticated user, ownership check, proof verifier
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from config.sentry import set_user_context
from astra.core.exceptions import InvalidTokenError, NotOwnerError
from astra.database.engine import get_session
from astra.database.models import User
from astra.services.auth_service import AuthService
from astra.services.gender_verification_service import HttpProofVerifier


async def get_current_user(
    authorization: Optional[str] = Header(None),
    session: AsyncSession = Depends(get_session),
) -> User:
    """
    FastAPI Dependency для получения текущего пользователя.

    Expects "Authorization: Bearer <jwt>" issued by /api/auth.

    Usage:
        @router.get("/me")
        async def me(user: User = Depends(get_current_user)):
            ...
    """
    if not authorization:
        raise InvalidTokenError("Missing token")

    if not authorization.startswith("Bearer "):
        raise InvalidTokenError("Invalid authorization header. Expected: 'Bearer <token>'")

    token = authorization[7:]  # Remove "Bearer " prefix
    user = await AuthService(session).get_user_from_token(token)
    set_user_context(user.user_hash)
    return user


def ensure_owner(user: User, user_hash: str) -> None:
    """Routes keyed by user_hash only serve the token's own user"""
    if user.user_hash != user_hash:
        raise NotOwnerError(user_hash=user_hash)


def get_proof_verifier() -> HttpProofVerifier:
    return HttpProofVerifier()
