"""
Feedback API Endpoints

POST /api/feedback                            - submit feedback
GET  /api/feedback?type=bug&resolved=false    - list, newest first
GET  /api/feedback/{id}
PUT  /api/feedback/{id}                       - resolve/unresolve or edit
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from astra.database.engine import get_session
from astra.services.feedback_service import FeedbackService

router = APIRouter(prefix="/feedback", tags=["feedback"])


class CreateFeedbackRequest(BaseModel):
    type: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    user_hash: Optional[str] = None


class UpdateFeedbackRequest(BaseModel):
    resolved: Optional[bool] = None
    message: Optional[str] = None
    type: Optional[str] = None


@router.post("", status_code=201)
async def create_feedback(
    request: CreateFeedbackRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    feedback = await FeedbackService(session).create_feedback(
        request.type, request.message, request.user_hash
    )
    return feedback.to_dict()


@router.get("")
async def list_feedback(
    type: Optional[str] = Query(None),
    resolved: Optional[bool] = Query(None),
    session: AsyncSession = Depends(get_session),
) -> List[Dict[str, Any]]:
    items = await FeedbackService(session).list_feedback(type, resolved)
    return [item.to_dict() for item in items]


@router.get("/{feedback_id}")
async def get_feedback(feedback_id: int, session: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    feedback = await FeedbackService(session).get_feedback(feedback_id)
    return feedback.to_dict()


@router.put("/{feedback_id}")
async def update_feedback(
    feedback_id: int,
    request: UpdateFeedbackRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    feedback = await FeedbackService(session).update_feedback(
        feedback_id,
        resolved=request.resolved,
        message=request.message,
        type=request.type,
    )
    return feedback.to_dict()
