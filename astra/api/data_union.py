"""
Data Union API Endpoints

POST /api/data-union/track              - record a partner sync attempt
GET  /api/data-union/failed/{partner}   - records still to sync (?data_type=)
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from astra.api.deps import ensure_owner, get_current_user
from astra.database.engine import get_session
from astra.database.models import User
from astra.services.data_union_service import DataUnionService

router = APIRouter(prefix="/data-union", tags=["data-union"])


class TrackSyncRequest(BaseModel):
    user_hash: str = Field(..., min_length=1)
    data_type: str
    data_id: str = Field(..., min_length=1)
    partner: str
    is_synced: bool
    error_message: Optional[str] = None
    retry_data: Optional[Dict[str, Any]] = None


@router.post("/track")
async def track_sync(
    request: TrackSyncRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    ensure_owner(user, request.user_hash)
    record = await DataUnionService(session).track_sync(
        request.user_hash,
        request.data_type,
        request.data_id,
        request.partner,
        request.is_synced,
        request.error_message,
        request.retry_data,
    )
    return record.to_dict()


@router.get("/failed/{partner}")
async def find_failed(
    partner: str,
    data_type: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> List[Dict[str, Any]]:
    records = await DataUnionService(session).find_failed(partner, data_type)
    return [record.to_dict() for record in records]
