"""
Migration API Endpoints (Telegram -> app account linking)

POST /api/migration/generate-code  - {"telegram_id"} -> {"code", "expiresIn"}
POST /api/migration/verify-code    - {"code", "user_hash"} -> link accounts
GET  /api/migration/status?code=   - code status
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from astra.database.engine import get_session
from astra.services.migration_service import MigrationCodeService

router = APIRouter(prefix="/migration", tags=["migration"])

CODE_PATTERN = r"^\d{6}$"


class GenerateCodeRequest(BaseModel):
    telegram_id: str = Field(..., min_length=1)


class VerifyCodeRequest(BaseModel):
    code: str = Field(..., pattern=CODE_PATTERN)
    user_hash: str = Field(..., min_length=1)


@router.post("/generate-code")
async def generate_code(
    request: GenerateCodeRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await MigrationCodeService(session).generate_code(request.telegram_id)


@router.post("/verify-code")
async def verify_code(
    request: VerifyCodeRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    result = await MigrationCodeService(session).verify_code(request.code, request.user_hash)
    return {"success": True, **result, "message": "Account linked successfully"}


@router.get("/status")
async def get_status(
    code: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await MigrationCodeService(session).get_status(code)
