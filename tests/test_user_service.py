"""
Tests for UserService (profile, health data, account creation paths)
"""

from datetime import datetime, timedelta, UTC

import pytest

from astra.core.exceptions import ConflictingLinkError, UserNotFoundError, ValidationError
from astra.database.crud import get_notification, get_user_by_hash
from astra.database.models import AccountKind
from astra.services.checkin_service import CheckInService
from astra.services.user_service import UserService, user_to_dict

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_get_user_applies_streak_decay(db_session, make_user):
    user = await make_user()
    checkins = CheckInService(db_session)
    await checkins.create_check_in(user.user_hash, now=NOW - timedelta(days=2))
    await checkins.create_check_in(user.user_hash, now=NOW - timedelta(days=1))

    service = UserService(db_session)
    fresh = await service.get_user(user.user_hash, now=NOW)
    assert fresh["currentStreak"] == 2

    decayed = await service.get_user(user.user_hash, now=NOW + timedelta(days=2))
    assert decayed["currentStreak"] == 0
    assert decayed["longestStreak"] == 2
    assert decayed["checkIns"] == 2

    stored = await get_user_by_hash(db_session, user.user_hash)
    assert stored.current_streak == 0


@pytest.mark.asyncio
async def test_get_user_never_exposes_password(db_session, make_user):
    user = await make_user(email="a@example.com", password_hash="secret-hash")

    data = await UserService(db_session).get_user(user.user_hash, now=NOW)

    assert "password_hash" not in data
    assert "secret-hash" not in str(data)
    assert data["healthData"] is None
    assert data["accountKind"] == AccountKind.REGISTERED.value


@pytest.mark.asyncio
async def test_get_unknown_user(db_session):
    with pytest.raises(UserNotFoundError):
        await UserService(db_session).get_user("missing")


@pytest.mark.asyncio
async def test_update_profile_versions_health_data(db_session, make_user):
    user = await make_user()
    service = UserService(db_session)

    first = await service.update_profile(
        user.user_id,
        {"name": "Ann", "email": "ignored@example.com"},
        {"research_opt_in": True, "medications": ["ibuprofen"]},
        now=NOW,
    )
    second = await service.update_profile(
        user.user_id, {}, {"conditions": [{"name": "endometriosis"}]}, now=NOW + timedelta(hours=1)
    )

    assert first["name"] == "Ann"
    assert first["email"] is None
    assert first["healthData"]["schema_version"] == "v2"
    assert first["healthData"]["medications"] == ["ibuprofen"]
    assert second["currentHealthDataId"] == second["healthData"]["healthDataId"]
    assert second["currentHealthDataId"] != first["currentHealthDataId"]

    current = await service.get_user(user.user_hash, now=NOW)
    assert current["healthData"]["conditions"] == [{"name": "endometriosis"}]


@pytest.mark.asyncio
async def test_update_profile_creates_default_notification_once(db_session, make_user):
    user = await make_user()
    service = UserService(db_session)

    await service.update_profile(user.user_id, {"nickname": "a"}, {}, now=NOW)
    await service.update_profile(user.user_id, {"nickname": "b"}, {}, now=NOW)

    notification = await get_notification(db_session, user.user_id)
    assert notification.type == "daily_checkin"
    assert notification.scheduled_time == "0 10 * * *"
    assert notification.reminder_schedule == "daily"
    assert notification.reminder_time == "10:00"
    assert notification.is_active is True


@pytest.mark.asyncio
async def test_update_profile_unknown_user(db_session):
    with pytest.raises(UserNotFoundError):
        await UserService(db_session).update_profile("missing", {}, {})


@pytest.mark.asyncio
async def test_create_bot_user(db_session):
    service = UserService(db_session)

    user = await service.create_bot_user("777", name="Ann", nickname="ann")

    assert user.telegram_id == "777"
    assert user.is_registered is False
    assert user.account_kind == AccountKind.BOT_LINKED
    assert user_to_dict(user)["checkIns"] == 0

    with pytest.raises(ConflictingLinkError):
        await service.create_bot_user("777")


@pytest.mark.asyncio
async def test_create_user_from_migration(db_session):
    service = UserService(db_session)

    user = await service.create_user_from_migration("uid-1", "hash-1")

    assert user.user_hash == "hash-1"
    assert user.account_kind == AccountKind.STUB

    with pytest.raises(ValidationError):
        await service.create_user_from_migration("", "hash-2")
