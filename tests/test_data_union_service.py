"""
Tests for the data union sync ledger
"""

from datetime import datetime, timedelta, UTC

import pytest

from astra.core.exceptions import InvalidDataTypeError, UnknownPartnerError
from astra.services.data_union_service import DataUnionService


@pytest.mark.asyncio
async def test_create_or_get_is_idempotent(db_session):
    service = DataUnionService(db_session)

    first = await service.create_or_get("hash1", "checkin", "c1")
    second = await service.create_or_get("hash1", "checkin", "c1")

    assert first.id == second.id
    assert first.akave_is_synced is False
    assert first.vana_is_synced is False


@pytest.mark.asyncio
async def test_invalid_data_type(db_session):
    with pytest.raises(InvalidDataTypeError):
        await DataUnionService(db_session).create_or_get("hash1", "photo", "p1")


@pytest.mark.asyncio
async def test_unknown_partner(db_session):
    service = DataUnionService(db_session)
    record = await service.create_or_get("hash1", "health", "h1")

    with pytest.raises(UnknownPartnerError, match="Partner filecoin not found"):
        await service.update_sync(record, "filecoin", True)

    with pytest.raises(UnknownPartnerError):
        await service.find_failed("filecoin")


@pytest.mark.asyncio
async def test_update_sync_copies_partner_fields(db_session):
    service = DataUnionService(db_session)
    record = await service.create_or_get("hash1", "health", "h1")

    await service.update_sync(record, "akave", True, retry_data={"key": "k/1", "url": "https://a/k/1"})
    await service.update_sync(record, "vana", False, "timeout", retry_data={"fileId": "42"})

    assert record.akave_is_synced is True
    assert record.akave_key == "k/1"
    assert record.akave_url == "https://a/k/1"
    assert record.vana_is_synced is False
    assert record.vana_error_message == "timeout"
    assert record.vana_file_id == "42"
    assert record.vana_retry_data == {"fileId": "42"}

    state = record.to_dict()["partners"]
    assert state["akave"]["key"] == "k/1"
    assert state["vana"]["file_id"] == "42"


@pytest.mark.asyncio
async def test_find_failed_newest_first(db_session):
    service = DataUnionService(db_session)
    base = datetime(2026, 3, 1, tzinfo=UTC)

    for index, data_id in enumerate(("c1", "c2", "h1")):
        data_type = "health" if data_id.startswith("h") else "checkin"
        record = await service.create_or_get("hash1", data_type, data_id)
        await service.update_sync(record, "vana", False, "down", now=base + timedelta(minutes=index))

    synced = await service.create_or_get("hash1", "checkin", "c3")
    await service.update_sync(synced, "vana", True)

    failed = await service.find_failed("vana")
    assert [r.data_id for r in failed] == ["h1", "c2", "c1"]

    failed_checkins = await service.find_failed("vana", data_type="checkin")
    assert [r.data_id for r in failed_checkins] == ["c2", "c1"]


@pytest.mark.asyncio
async def test_track_sync(db_session):
    service = DataUnionService(db_session)

    record = await service.track_sync("hash1", "checkin", "c1", "akave", True)
    again = await service.track_sync("hash1", "checkin", "c1", "vana", True)

    assert record.id == again.id
    assert again.akave_is_synced is True
    assert again.vana_is_synced is True


@pytest.mark.asyncio
async def test_sync_stats(db_session):
    service = DataUnionService(db_session)

    assert await service.get_sync_stats() == {
        "total": 0,
        "akave": {"success": 0, "failed": 0, "successRate": 0},
        "vana": {"success": 0, "failed": 0, "successRate": 0},
    }

    await service.track_sync("hash1", "checkin", "c1", "akave", True)
    await service.track_sync("hash1", "checkin", "c2", "akave", True)
    await service.track_sync("hash1", "checkin", "c3", "vana", True)

    stats = await service.get_sync_stats()
    assert stats["total"] == 3
    assert stats["akave"] == {"success": 2, "failed": 1, "successRate": 67}
    assert stats["vana"] == {"success": 1, "failed": 2, "successRate": 33}
