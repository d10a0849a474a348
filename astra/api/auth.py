"""
Auth API Endpoints

POST /api/auth/register            - email/password registration
POST /api/auth/login               - login, returns JWT
POST /api/auth/set-email-password  - complete an account created via migration (Bearer token)
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from astra.api.deps import get_current_user
from astra.database.engine import get_session
from astra.database.models import User
from astra.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    name: Optional[str] = None
    nickname: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SetEmailPasswordRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)


@router.post("/register", status_code=201)
async def register(
    request: RegisterRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await AuthService(session).register(
        email=request.email,
        password=request.password,
        name=request.name,
        nickname=request.nickname,
    )


@router.post("/login")
async def login(
    request: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await AuthService(session).login(request.email, request.password)


@router.post("/set-email-password")
async def set_email_password(
    request: SetEmailPasswordRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    """The account is the one the Bearer token was issued for"""
    return await AuthService(session).set_email_password(
        user.user_hash, request.email, request.password
    )
