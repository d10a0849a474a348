"""
Research Invite API Endpoints

CRUD plus:
POST /api/research-invites/{id}/invite         - add user to a private invite
POST /api/research-invites/{id}/respond        - record yes/no answer
GET  /api/research-invites/{id}/status         - a user's invite/answer status
GET  /api/research-invites/{id}/invited-users  - invite list with answers
GET  /api/research-invites/{id}/stats          - counts
"""

from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from astra.database.engine import get_session
from astra.services.research_invite_service import ResearchInviteService

router = APIRouter(prefix="/research-invites", tags=["research-invites"])


class CreateInviteRequest(BaseModel):
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    client: str = Field(..., min_length=1)
    link: str = Field(..., min_length=1)
    type: Optional[str] = None
    isPrivate: bool = False


class UpdateInviteRequest(BaseModel):
    title: Optional[str] = None
    message: Optional[str] = None
    client: Optional[str] = None
    link: Optional[str] = None
    type: Optional[str] = None
    isPrivate: Optional[bool] = None


class InviteUserRequest(BaseModel):
    user_hash: str = Field(..., min_length=1)


class RespondRequest(BaseModel):
    user_hash: str = Field(..., min_length=1)
    response: Literal["yes", "no"]


@router.post("", status_code=201)
async def create_invite(
    request: CreateInviteRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    invite = await ResearchInviteService(session).create_invite(
        title=request.title,
        message=request.message,
        client=request.client,
        link=request.link,
        type=request.type,
        is_private=request.isPrivate,
    )
    return invite.to_dict()


@router.get("")
async def list_invites(session: AsyncSession = Depends(get_session)) -> List[Dict[str, Any]]:
    invites = await ResearchInviteService(session).list_invites()
    return [invite.to_dict() for invite in invites]


@router.get("/{invite_id}")
async def get_invite(invite_id: int, session: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    invite = await ResearchInviteService(session).get_invite(invite_id)
    return invite.to_dict()


@router.put("/{invite_id}")
async def update_invite(
    invite_id: int,
    request: UpdateInviteRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    fields = request.model_dump(exclude_unset=True)
    if "isPrivate" in fields:
        fields["is_private"] = fields.pop("isPrivate")

    invite = await ResearchInviteService(session).update_invite(invite_id, **fields)
    return invite.to_dict()


@router.delete("/{invite_id}")
async def delete_invite(invite_id: int, session: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    await ResearchInviteService(session).delete_invite(invite_id)
    return {"message": "Research invite deleted successfully"}


@router.post("/{invite_id}/invite")
async def invite_user(
    invite_id: int,
    request: InviteUserRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    response = await ResearchInviteService(session).invite_user(invite_id, request.user_hash)
    return {"message": "User invited successfully", "response": response}


@router.post("/{invite_id}/respond")
async def record_response(
    invite_id: int,
    request: RespondRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    response = await ResearchInviteService(session).record_response(
        invite_id, request.user_hash, request.response
    )
    return {"message": "Response recorded successfully", "response": response}


@router.get("/{invite_id}/status")
async def get_user_status(
    invite_id: int,
    user_hash: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return await ResearchInviteService(session).get_user_status(invite_id, user_hash)


@router.get("/{invite_id}/invited-users")
async def get_invited_users(invite_id: int, session: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    return await ResearchInviteService(session).get_invited_users(invite_id)


@router.get("/{invite_id}/stats")
async def get_stats(invite_id: int, session: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    return await ResearchInviteService(session).get_stats(invite_id)
