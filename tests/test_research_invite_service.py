"""
Tests for research invites (public/private, responses, stats)
"""

import pytest

from astra.core.exceptions import (
    InvalidResponseError,
    InviteNotFoundError,
    NotInvitedError,
    ValidationError,
)
from astra.services.research_invite_service import ResearchInviteService


async def create(service, **overrides):
    fields = {
        "title": "Sleep study",
        "message": "Tell us about your sleep",
        "client": "Lab",
        "link": "https://example.com/study",
    }
    fields.update(overrides)
    return await service.create_invite(**fields)


@pytest.mark.asyncio
async def test_create_requires_fields(db_session):
    service = ResearchInviteService(db_session)

    with pytest.raises(ValidationError):
        await create(service, link="")


@pytest.mark.asyncio
async def test_crud(db_session):
    service = ResearchInviteService(db_session)
    invite = await create(service, type="survey")

    assert invite.to_dict()["isPrivate"] is False
    assert [i.id for i in await service.list_invites()] == [invite.id]

    updated = await service.update_invite(invite.id, title="New title", client="", is_private=True)
    assert updated.title == "New title"
    assert updated.client == "Lab"
    assert updated.is_private is True

    await service.delete_invite(invite.id)
    with pytest.raises(InviteNotFoundError):
        await service.get_invite(invite.id)


@pytest.mark.asyncio
async def test_public_invite_accepts_anyone(db_session):
    service = ResearchInviteService(db_session)
    invite = await create(service)

    response = await service.record_response(invite.id, "u1", "yes")

    assert response["response"] == "yes"
    status = await service.get_user_status(invite.id, "u1")
    assert status["canRespond"] is True
    assert status["hasResponded"] is True


@pytest.mark.asyncio
async def test_private_invite_requires_invitation(db_session):
    service = ResearchInviteService(db_session)
    invite = await create(service, is_private=True)

    with pytest.raises(NotInvitedError):
        await service.record_response(invite.id, "u1", "yes")

    assert await service.invite_user(invite.id, "u1") == {"user_hash": "u1", "invited": True}
    assert await service.invite_user(invite.id, "u1") == {"user_hash": "u1", "already_invited": True}

    await service.record_response(invite.id, "u1", "no")
    status = await service.get_user_status(invite.id, "u1")
    assert status["invited"] is True
    assert status["response"] == "no"


@pytest.mark.asyncio
async def test_latest_response_wins(db_session):
    service = ResearchInviteService(db_session)
    invite = await create(service)

    await service.record_response(invite.id, "u1", "yes")
    await service.record_response(invite.id, "u1", "no")

    invite = await service.get_invite(invite.id)
    assert len(invite.responses) == 1
    assert invite.responses[0].response == "no"


@pytest.mark.asyncio
async def test_invalid_response(db_session):
    service = ResearchInviteService(db_session)
    invite = await create(service)

    with pytest.raises(InvalidResponseError):
        await service.record_response(invite.id, "u1", "maybe")


@pytest.mark.asyncio
async def test_unknown_invite(db_session):
    with pytest.raises(InviteNotFoundError):
        await ResearchInviteService(db_session).record_response(404, "u1", "yes")


@pytest.mark.asyncio
async def test_private_stats_and_invited_users(db_session):
    service = ResearchInviteService(db_session)
    invite = await create(service, is_private=True)
    for user_hash in ("u1", "u2", "u3"):
        await service.invite_user(invite.id, user_hash)

    await service.record_response(invite.id, "u1", "yes")
    await service.record_response(invite.id, "u2", "no")

    stats = await service.get_stats(invite.id)
    assert stats == {
        "isPrivate": True,
        "total_invited": 3,
        "total_responses": 2,
        "yes_count": 1,
        "no_count": 1,
        "pending_count": 1,
    }

    invited = await service.get_invited_users(invite.id)
    assert invited["total_invited"] == 3
    by_hash = {u["user_hash"]: u for u in invited["users"]}
    assert by_hash["u3"]["hasResponded"] is False
    assert by_hash["u1"]["response"] == "yes"


@pytest.mark.asyncio
async def test_public_stats_have_no_pending(db_session):
    service = ResearchInviteService(db_session)
    invite = await create(service)
    await service.record_response(invite.id, "u1", "yes")

    stats = await service.get_stats(invite.id)

    assert stats["pending_count"] == 0
    assert stats["yes_count"] == 1
