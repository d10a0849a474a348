"""
Tests for bot command handlers (/start, /join, /link, /checkin)
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from astra.bot.handlers.checkin import cmd_checkin
from astra.bot.handlers.link import cmd_link
from astra.bot.handlers.start import cmd_join, cmd_start
from astra.database.crud import get_migration_code, get_user_by_telegram_id


def make_message(telegram_id=777, username="ann"):
    return SimpleNamespace(
        from_user=SimpleNamespace(id=telegram_id, full_name="Ann A", username=username),
        answer=AsyncMock(),
    )


def answer_text(message) -> str:
    return message.answer.await_args.args[0]


@pytest.mark.asyncio
async def test_start_without_account_creates_nothing(db_session):
    message = make_message()

    await cmd_start(message, db_session, None)

    assert "/link" in answer_text(message)
    assert await get_user_by_telegram_id(db_session, "777") is None


@pytest.mark.asyncio
async def test_join_creates_bot_user(db_session):
    message = make_message()

    await cmd_join(message, db_session, None)

    user = await get_user_by_telegram_id(db_session, "777")
    assert user is not None
    assert user.nickname == "ann"
    assert "Account created" in answer_text(message)


@pytest.mark.asyncio
async def test_join_when_already_linked(db_session, make_user):
    user = await make_user(telegram_id="777")
    message = make_message()

    await cmd_join(message, db_session, user)

    assert "already have an Astra account" in answer_text(message)


@pytest.mark.asyncio
async def test_link_issues_code(db_session):
    message = make_message()

    await cmd_link(message, db_session, None)

    text = answer_text(message)
    code = text.split("<code>")[1].split("</code>")[0]
    record = await get_migration_code(db_session, code)
    assert record.telegram_id == "777"
    assert "5 minutes" in text


@pytest.mark.asyncio
async def test_checkin_requires_account(db_session):
    message = make_message()

    await cmd_checkin(message, db_session, None)

    assert "/join" in answer_text(message)


@pytest.mark.asyncio
async def test_checkin_once_per_day(db_session, make_user):
    user = await make_user(telegram_id="777")
    message = make_message()

    await cmd_checkin(message, db_session, user)
    assert "Checked in" in answer_text(message)

    await cmd_checkin(message, db_session, user)
    assert "already checked in today" in answer_text(message)
