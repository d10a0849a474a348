"""
User API Endpoints

GET  /api/users/{user_hash}         - profile + current health data (applies streak decay)
PUT  /api/users/update              - update profile, store new health data snapshot
GET  /api/users/admin/sync-stats    - data union sync statistics
POST /api/users/verify-gender       - zero-knowledge gender verification
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from astra.api.deps import ensure_owner, get_current_user, get_proof_verifier
from astra.database.engine import get_session
from astra.database.models import User
from astra.services.data_union_service import DataUnionService
from astra.services.gender_verification_service import GenderVerificationService
from astra.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


class HealthProfileModel(BaseModel):
    age_range: Optional[str] = None
    ethnicity: List[str] = Field(default_factory=list)
    location: Optional[str] = None
    is_pregnant: Optional[bool] = None


class HealthDataModel(BaseModel):
    research_opt_in: Optional[bool] = None
    profile: Optional[HealthProfileModel] = None
    conditions: Optional[List[Dict[str, Any]]] = None
    medications: Optional[List[str]] = None
    treatments: Optional[List[Dict[str, Any]]] = None
    caretaker: Optional[List[str]] = None


class UpdateUserRequest(BaseModel):
    name: Optional[str] = None
    nickname: Optional[str] = None
    wallet_address: Optional[str] = None
    proof_of_passport_id: Optional[str] = None
    healthData: Optional[HealthDataModel] = None


class VerifyGenderRequest(BaseModel):
    attestationId: Any
    proof: Any
    publicSignals: Any
    userContextData: Any


@router.get("/admin/sync-stats")
async def get_sync_stats(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await DataUnionService(session).get_sync_stats()


@router.get("/{user_hash}")
async def get_user(
    user_hash: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    ensure_owner(user, user_hash)
    return await UserService(session).get_user(user_hash)


@router.put("/update")
async def update_user(
    request: UpdateUserRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    """Profile fields of the authenticated user; healthData becomes the current snapshot"""
    user_fields = request.model_dump(exclude={"healthData"}, exclude_unset=True)
    health_data = request.healthData.model_dump(exclude_none=True) if request.healthData else {}

    return await UserService(session).update_profile(user.user_id, user_fields, health_data)


@router.post("/verify-gender")
async def verify_gender(
    request: VerifyGenderRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    verifier=Depends(get_proof_verifier),
) -> Dict[str, Any]:
    service = GenderVerificationService(session, verifier)
    return await service.verify_gender(
        request.attestationId,
        request.proof,
        request.publicSignals,
        request.userContextData,
    )
