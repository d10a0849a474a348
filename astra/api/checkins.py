"""
Check-in API Endpoints

POST /api/checkins/{user_hash}  - daily check-in (one per UTC day)
GET  /api/checkins/{user_hash}  - check-in history, newest first
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from astra.api.deps import ensure_owner, get_current_user
from astra.database.engine import get_session
from astra.database.models import User
from astra.services.checkin_service import CheckInService

router = APIRouter(prefix="/checkins", tags=["checkins"])


class CheckInRequest(BaseModel):
    """Mood/symptom fields, all optional"""
    mood: Optional[str] = None
    health_comment: Optional[str] = None
    doctor_visit: Optional[bool] = None
    health_profile_update: Optional[bool] = None
    anxiety_level: Optional[int] = Field(None, ge=0, le=10)
    anxiety_details: Optional[str] = None
    pain_level: Optional[int] = Field(None, ge=0, le=10)
    pain_details: Optional[str] = None
    fatigue_level: Optional[int] = Field(None, ge=0, le=10)
    fatigue_details: Optional[str] = None


@router.post("/{user_hash}")
async def create_check_in(
    user_hash: str,
    request: CheckInRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    """
    Returns:
        {"success": true, "checkIn": {...}, "stats": {"totalCheckIns",
        "currentStreak", "longestStreak", "streakHistory"}}
    """
    ensure_owner(user, user_hash)
    result = await CheckInService(session).create_check_in(
        user_hash, request.model_dump(exclude_none=True)
    )
    return {
        "success": True,
        "checkIn": result["checkIn"].to_dict(),
        "stats": result["stats"],
    }


@router.get("/{user_hash}")
async def get_user_check_ins(
    user_hash: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> List[Dict[str, Any]]:
    ensure_owner(user, user_hash)
    check_ins = await CheckInService(session).get_user_check_ins(user_hash)
    return [check_in.to_dict() for check_in in check_ins]
