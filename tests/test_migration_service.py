"""
Tests for migration codes (Telegram -> app account linking)
"""

from datetime import datetime, timedelta, UTC
from unittest.mock import Mock

import pytest
from sqlalchemy import select

from config.config import MIGRATION_CODE_MAX_ATTEMPTS, MIGRATION_CODE_TTL_SECONDS
from astra.core.exceptions import (
    CodeAlreadyUsedError,
    CodeExpiredError,
    CodeGenerationExhaustedError,
    CodeNotFoundError,
    ConflictingLinkError,
    UserNotFoundError,
)
from astra.database.crud import add_migration_code, get_migration_code, get_user_by_hash
from astra.database.models import MigrationCode
from astra.services.migration_service import CODE_MAX, CODE_MIN, MigrationCodeService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def fixed_rng(*values):
    return Mock(randint=Mock(side_effect=list(values)))


async def stage_code(session, code, telegram_id="111", expires_at=None, **fields):
    record = await add_migration_code(
        session,
        code=code,
        telegram_id=telegram_id,
        expires_at=expires_at or NOW + timedelta(seconds=MIGRATION_CODE_TTL_SECONDS),
        is_linked=fields.pop("is_linked", False),
        **fields,
    )
    await session.commit()
    return record


class TestGenerateCode:
    def test_draw_range(self):
        service = MigrationCodeService(None)
        for _ in range(500):
            code = service.draw_code()
            assert len(code) == 6 and code.isdigit()
            assert CODE_MIN <= int(code) <= CODE_MAX

    def test_draw_uses_full_range(self):
        rng = Mock(randint=Mock(return_value=100000))
        MigrationCodeService(None, rng=rng).draw_code()
        rng.randint.assert_called_with(100000, 999999)

    @pytest.mark.asyncio
    async def test_generate_persists_unlinked_code(self, db_session):
        service = MigrationCodeService(db_session, rng=fixed_rng(482193))

        result = await service.generate_code(12345, now=NOW)

        assert result == {"code": "482193", "expiresIn": 300}
        record = await get_migration_code(db_session, "482193")
        assert record.telegram_id == "12345"
        assert record.is_linked is False
        assert record.user_hash is None
        assert record.expires_at.replace(tzinfo=UTC) == NOW + timedelta(seconds=300)

    @pytest.mark.asyncio
    async def test_retries_on_live_collision(self, db_session):
        await stage_code(db_session, "111111")
        service = MigrationCodeService(db_session, rng=fixed_rng(111111, 222222))

        result = await service.generate_code("999", now=NOW)

        assert result["code"] == "222222"

    @pytest.mark.asyncio
    async def test_expired_code_digits_are_reused(self, db_session):
        await stage_code(db_session, "111111", expires_at=NOW - timedelta(seconds=1))
        service = MigrationCodeService(db_session, rng=fixed_rng(111111))

        result = await service.generate_code("999", now=NOW)

        assert result["code"] == "111111"
        rows = (await db_session.execute(select(MigrationCode))).scalars().all()
        assert len(rows) == 1
        assert rows[0].telegram_id == "999"

    @pytest.mark.asyncio
    async def test_exhaustion(self, db_session):
        await stage_code(db_session, "111111")
        rng = Mock(randint=Mock(return_value=111111))

        with pytest.raises(CodeGenerationExhaustedError):
            await MigrationCodeService(db_session, rng=rng).generate_code("999", now=NOW)

        assert rng.randint.call_count == MIGRATION_CODE_MAX_ATTEMPTS


class TestVerifyCode:
    @pytest.mark.asyncio
    async def test_links_user(self, db_session, make_user):
        user = await make_user(email="a@example.com", password_hash="x", is_registered=True)
        await stage_code(db_session, "123456", telegram_id="777")

        result = await MigrationCodeService(db_session).verify_code("123456", user.user_hash, now=NOW)

        assert result == {"user_hash": user.user_hash, "telegram_id": "777"}
        stored = await get_user_by_hash(db_session, user.user_hash)
        assert stored.telegram_id == "777"
        record = await get_migration_code(db_session, "123456")
        assert record.is_linked is True
        assert record.user_id == user.user_id

    @pytest.mark.asyncio
    async def test_unknown_code(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(CodeNotFoundError):
            await MigrationCodeService(db_session).verify_code("000000", user.user_hash, now=NOW)

    @pytest.mark.asyncio
    async def test_expired_code(self, db_session, make_user):
        user = await make_user()
        await stage_code(db_session, "123456")

        later = NOW + timedelta(seconds=MIGRATION_CODE_TTL_SECONDS + 1)
        with pytest.raises(CodeExpiredError):
            await MigrationCodeService(db_session).verify_code("123456", user.user_hash, now=later)

    @pytest.mark.asyncio
    async def test_code_valid_until_expiry_instant(self, db_session, make_user):
        user = await make_user()
        await stage_code(db_session, "123456")

        at_expiry = NOW + timedelta(seconds=MIGRATION_CODE_TTL_SECONDS)
        result = await MigrationCodeService(db_session).verify_code("123456", user.user_hash, now=at_expiry)
        assert result["telegram_id"] == "111"

    @pytest.mark.asyncio
    async def test_second_verify_is_already_used(self, db_session, make_user):
        user = await make_user()
        await stage_code(db_session, "123456")
        service = MigrationCodeService(db_session)

        await service.verify_code("123456", user.user_hash, now=NOW)
        with pytest.raises(CodeAlreadyUsedError):
            await service.verify_code("123456", user.user_hash, now=NOW)

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        await stage_code(db_session, "123456")
        with pytest.raises(UserNotFoundError, match="User account not found"):
            await MigrationCodeService(db_session).verify_code("123456", "nobody", now=NOW)

    @pytest.mark.asyncio
    async def test_user_linked_to_other_telegram(self, db_session, make_user):
        user = await make_user(telegram_id="555")
        await stage_code(db_session, "123456", telegram_id="777")

        with pytest.raises(ConflictingLinkError, match="different Telegram account"):
            await MigrationCodeService(db_session).verify_code("123456", user.user_hash, now=NOW)

        record = await get_migration_code(db_session, "123456")
        assert record.is_linked is False

    @pytest.mark.asyncio
    async def test_telegram_linked_to_other_user(self, db_session, make_user):
        holder = await make_user(telegram_id="777")
        other = await make_user()
        await stage_code(db_session, "123456", telegram_id="777")

        with pytest.raises(ConflictingLinkError, match="another Astra account"):
            await MigrationCodeService(db_session).verify_code("123456", other.user_hash, now=NOW)

        stored = await get_user_by_hash(db_session, other.user_hash)
        assert stored.telegram_id is None

        kept = await get_user_by_hash(db_session, holder.user_hash)
        assert kept.telegram_id == "777"

        record = await get_migration_code(db_session, "123456")
        assert record.is_linked is False
        assert record.user_hash is None

    @pytest.mark.asyncio
    async def test_same_telegram_already_on_user(self, db_session, make_user):
        user = await make_user(telegram_id="777")
        await stage_code(db_session, "123456", telegram_id="777")

        result = await MigrationCodeService(db_session).verify_code("123456", user.user_hash, now=NOW)

        assert result["telegram_id"] == "777"


class TestStatus:
    @pytest.mark.asyncio
    async def test_pending_and_linked(self, db_session, make_user):
        user = await make_user()
        await stage_code(db_session, "123456", telegram_id="777")
        service = MigrationCodeService(db_session)

        status = await service.get_status("123456", now=NOW)
        assert status == {"isLinked": False, "expired": False, "user_hash": None, "telegram_id": "777"}

        await service.verify_code("123456", user.user_hash, now=NOW)
        status = await service.get_status("123456", now=NOW)
        assert status["isLinked"] is True
        assert status["user_hash"] == user.user_hash

    @pytest.mark.asyncio
    async def test_expired_reports_not_linked(self, db_session):
        await stage_code(
            db_session, "123456", expires_at=NOW - timedelta(minutes=1), is_linked=True
        )

        status = await MigrationCodeService(db_session).get_status("123456", now=NOW)

        assert status == {"isLinked": False, "expired": True, "telegram_id": "111"}

    @pytest.mark.asyncio
    async def test_unknown(self, db_session):
        with pytest.raises(CodeNotFoundError):
            await MigrationCodeService(db_session).get_status("000000", now=NOW)


@pytest.mark.asyncio
async def test_purge_expired(db_session):
    await stage_code(db_session, "111111", expires_at=NOW - timedelta(seconds=1))
    await stage_code(db_session, "222222")

    deleted = await MigrationCodeService(db_session).purge_expired(now=NOW)

    assert deleted == 1
    assert await get_migration_code(db_session, "111111") is None
    assert await get_migration_code(db_session, "222222") is not None
