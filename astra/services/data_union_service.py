# coding: utf-8
"""
Data Union Sync Tracker

Ledger of which health/check-in records were mirrored to which data union
partner (akave, vana), with the last error and retry payload per partner.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from astra.core.exceptions import InvalidDataTypeError, UnknownPartnerError
from astra.database import crud
from astra.database.models import DataType, DataUnionRecord, SyncPartner
from astra.utils.dt import as_utc, utc_now


def _parse_partner(partner: Any) -> SyncPartner:
    try:
        return SyncPartner(partner)
    except ValueError:
        raise UnknownPartnerError(f"Partner {partner} not found", partner=partner)


def _parse_data_type(data_type: Any) -> DataType:
    try:
        return DataType(data_type)
    except ValueError:
        raise InvalidDataTypeError(data_type=data_type)


def _synced_column(partner: SyncPartner):
    return getattr(DataUnionRecord, f"{partner.value}_is_synced")


class DataUnionService:
    """Per-record, per-partner sync status"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_or_get(
        self, user_hash: str, data_type: str, data_id: str
    ) -> DataUnionRecord:
        """
        Idempotent create by (user_hash, data_type, data_id)

        Returns the existing record when the key is already tracked.

        Raises:
            InvalidDataTypeError: data_type is not health or checkin
        """
        data_type = _parse_data_type(data_type).value
        user_hash = user_hash.strip()
        data_id = str(data_id).strip()

        existing = await crud.get_data_union_record(self.session, user_hash, data_type, data_id)
        if existing:
            return existing

        record = DataUnionRecord(user_hash=user_hash, data_type=data_type, data_id=data_id)
        self.session.add(record)
        try:
            await self.session.commit()
        except IntegrityError:
            # Created concurrently under the same key
            await self.session.rollback()
            return await crud.get_data_union_record(self.session, user_hash, data_type, data_id)

        logger.debug(f"Data union record created: {data_type}/{data_id} for {user_hash[:8]}")
        return record

    async def update_sync(
        self,
        record: DataUnionRecord,
        partner: str,
        is_synced: bool,
        error_message: Optional[str] = None,
        retry_data: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> DataUnionRecord:
        """
        Set a partner's sync status on a record

        retry_data is stored as is; akave key/url and vana file_id (or fileId)
        are also copied to their own columns.

        Raises:
            UnknownPartnerError: partner is not akave or vana
        """
        sync_partner = _parse_partner(partner)
        prefix = sync_partner.value

        setattr(record, f"{prefix}_is_synced", bool(is_synced))
        setattr(record, f"{prefix}_error_message", error_message)

        if retry_data:
            setattr(record, f"{prefix}_retry_data", retry_data)
            if sync_partner == SyncPartner.AKAVE:
                if "key" in retry_data:
                    record.akave_key = retry_data["key"]
                if "url" in retry_data:
                    record.akave_url = retry_data["url"]
            else:
                if "file_id" in retry_data:
                    record.vana_file_id = retry_data["file_id"]
                if "fileId" in retry_data:
                    record.vana_file_id = retry_data["fileId"]

        record.updated_at = as_utc(now) if now else utc_now()
        await self.session.commit()

        if is_synced:
            logger.info(f"{prefix} sync ok: {record.data_type}/{record.data_id}")
        else:
            logger.warning(f"{prefix} sync failed: {record.data_type}/{record.data_id}: {error_message}")
        return record

    async def track_sync(
        self,
        user_hash: str,
        data_type: str,
        data_id: str,
        partner: str,
        is_synced: bool,
        error_message: Optional[str] = None,
        retry_data: Optional[Dict[str, Any]] = None,
    ) -> DataUnionRecord:
        """create_or_get + update_sync in one call"""
        _parse_partner(partner)
        record = await self.create_or_get(user_hash, data_type, data_id)
        return await self.update_sync(record, partner, is_synced, error_message, retry_data)

    async def find_failed(
        self, partner: str, data_type: Optional[str] = None
    ) -> List[DataUnionRecord]:
        """
        Records not yet synced to partner, most recently updated first

        Raises:
            UnknownPartnerError, InvalidDataTypeError
        """
        sync_partner = _parse_partner(partner)

        stmt = (
            select(DataUnionRecord)
            .where(_synced_column(sync_partner).is_(False))
            .order_by(DataUnionRecord.updated_at.desc(), DataUnionRecord.id.desc())
        )
        if data_type:
            stmt = stmt.where(DataUnionRecord.data_type == _parse_data_type(data_type).value)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_sync_stats(self) -> Dict[str, Any]:
        """
        Totals per partner

        Returns:
            {"total": N, "akave": {"success", "failed", "successRate"}, "vana": {...}}
            successRate is a rounded percentage (0 when there are no records)
        """
        total = await crud.count_data_union_records(self.session)

        stats: Dict[str, Any] = {"total": total}
        for partner in SyncPartner:
            success = await crud.count_data_union_records(
                self.session, _synced_column(partner).is_(True)
            )
            stats[partner.value] = {
                "success": success,
                "failed": total - success,
                "successRate": round(success / total * 100) if total else 0,
            }
        return stats
