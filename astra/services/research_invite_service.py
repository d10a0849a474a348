# coding: utf-8
"""
Research Invite Service

Public invites accept a response from anyone; private invites only from
users on the invite list. One response per user, the latest answer wins.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from astra.core.exceptions import (
    InvalidResponseError,
    InviteNotFoundError,
    NotInvitedError,
    ValidationError,
)
from astra.database import crud
from astra.database.models import (
    InviteResponse,
    ResearchInvite,
    ResearchInvitee,
    ResearchInviteResponse,
)
from astra.utils.dt import as_utc, utc_now

REQUIRED_INVITE_FIELDS = ("title", "message", "client", "link")
UPDATABLE_INVITE_FIELDS = ("title", "message", "type", "client", "link", "is_private")


def _parse_response(response: Any) -> str:
    try:
        return InviteResponse(response).value
    except ValueError:
        raise InvalidResponseError(response=response)


class ResearchInviteService:
    """Research invites: CRUD, invite list, responses and stats"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_or_raise(self, invite_id: int) -> ResearchInvite:
        invite = await crud.get_research_invite(self.session, invite_id)
        if not invite:
            raise InviteNotFoundError(invite_id=invite_id)
        return invite

    async def _reload(self, invite: ResearchInvite) -> ResearchInvite:
        await self.session.refresh(invite, ["invitees", "responses"])
        return invite

    # ===========================
    # CRUD
    # ===========================

    async def create_invite(
        self,
        title: str,
        message: str,
        client: str,
        link: str,
        type: Optional[str] = None,
        is_private: bool = False,
    ) -> ResearchInvite:
        """
        Create a research invite

        Raises:
            ValidationError: title, message, client or link missing
        """
        values = {"title": title, "message": message, "client": client, "link": link}
        missing = [name for name in REQUIRED_INVITE_FIELDS if not values[name]]
        if missing:
            raise ValidationError("Title, message, client, and link are required", missing=missing)

        invite = ResearchInvite(type=type or None, is_private=bool(is_private), **values)
        self.session.add(invite)
        await self.session.commit()
        await self._reload(invite)

        logger.info(f"Research invite created: {invite.id}, client: {client}, isPrivate: {invite.is_private}")
        return invite

    async def list_invites(self) -> List[ResearchInvite]:
        return await crud.list_research_invites(self.session)

    async def get_invite(self, invite_id: int) -> ResearchInvite:
        return await self._get_or_raise(invite_id)

    async def update_invite(self, invite_id: int, **fields: Any) -> ResearchInvite:
        """Update given fields; empty title/message/client/link are ignored"""
        invite = await self._get_or_raise(invite_id)

        for name in UPDATABLE_INVITE_FIELDS:
            if name not in fields:
                continue
            value = fields[name]
            if name in REQUIRED_INVITE_FIELDS and not value:
                continue
            if name == "is_private":
                value = bool(value)
            setattr(invite, name, value)

        await self.session.commit()
        await self._reload(invite)

        logger.info(f"Research invite updated: {invite_id}")
        return invite

    async def delete_invite(self, invite_id: int) -> None:
        invite = await self._get_or_raise(invite_id)
        await self.session.delete(invite)
        await self.session.commit()
        logger.info(f"Research invite deleted: {invite_id}")

    # ===========================
    # INVITES & RESPONSES
    # ===========================

    async def invite_user(self, invite_id: int, user_hash: str) -> Dict[str, Any]:
        """
        Add a user to the invite list (idempotent)

        Returns:
            {"user_hash", "already_invited": True} or {"user_hash", "invited": True}
        """
        await self._get_or_raise(invite_id)

        if await crud.get_invitee(self.session, invite_id, user_hash):
            return {"user_hash": user_hash, "already_invited": True}

        self.session.add(ResearchInvitee(invite_id=invite_id, user_hash=user_hash))
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return {"user_hash": user_hash, "already_invited": True}

        logger.info(f"User {user_hash[:8]} invited to research invite {invite_id}")
        return {"user_hash": user_hash, "invited": True}

    async def record_response(
        self,
        invite_id: int,
        user_hash: str,
        response: str,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Record (or overwrite) a user's yes/no answer

        Raises:
            InvalidResponseError: response is not "yes" or "no"
            InviteNotFoundError: unknown invite
            NotInvitedError: private invite and user not on the list
        """
        value = _parse_response(response)
        now = as_utc(now) if now else utc_now()

        invite = await self._get_or_raise(invite_id)

        if invite.is_private and not await crud.get_invitee(self.session, invite_id, user_hash):
            logger.warning(f"Response rejected: {user_hash[:8]} not invited to {invite_id}")
            raise NotInvitedError(invite_id=invite_id)

        existing = await crud.get_invite_response(self.session, invite_id, user_hash)
        if existing:
            existing.response = value
            existing.responded_at = now
        else:
            existing = ResearchInviteResponse(
                invite_id=invite_id, user_hash=user_hash, response=value, responded_at=now
            )
            self.session.add(existing)

        try:
            await self.session.commit()
        except IntegrityError:
            # Concurrent first answer from the same user; overwrite it
            await self.session.rollback()
            existing = await crud.get_invite_response(self.session, invite_id, user_hash)
            existing.response = value
            existing.responded_at = now
            await self.session.commit()

        logger.info(f"User {user_hash[:8]} responded {value} to research invite {invite_id}")
        return existing.to_dict()

    # ===========================
    # READS
    # ===========================

    async def get_user_status(self, invite_id: int, user_hash: str) -> Dict[str, Any]:
        invite = await self._get_or_raise(invite_id)

        invited = user_hash in invite.invited_users
        answer = invite.find_response(user_hash)

        return {
            "isPrivate": invite.is_private,
            "invited": invited,
            "canRespond": invited if invite.is_private else True,
            "hasResponded": answer is not None,
            "response": answer.response if answer else None,
            "responded_at": answer.responded_at if answer else None,
        }

    async def get_invited_users(self, invite_id: int) -> Dict[str, Any]:
        invite = await self._get_or_raise(invite_id)

        users = []
        for user_hash in invite.invited_users:
            answer = invite.find_response(user_hash)
            users.append({
                "user_hash": user_hash,
                "hasResponded": answer is not None,
                "response": answer.response if answer else None,
                "responded_at": answer.responded_at if answer else None,
            })

        return {
            "isPrivate": invite.is_private,
            "total_invited": len(users),
            "users": users,
        }

    async def get_stats(self, invite_id: int) -> Dict[str, Any]:
        """
        Response statistics

        pending_count = invited but not responded (private only, 0 for public)
        """
        invite = await self._get_or_raise(invite_id)

        answers = [r.response for r in invite.responses]
        responded = {r.user_hash for r in invite.responses}

        pending = 0
        if invite.is_private:
            pending = len([h for h in invite.invited_users if h not in responded])

        return {
            "isPrivate": invite.is_private,
            "total_invited": len(invite.invited_users),
            "total_responses": len(answers),
            "yes_count": answers.count(InviteResponse.YES.value),
            "no_count": answers.count(InviteResponse.NO.value),
            "pending_count": pending,
        }
