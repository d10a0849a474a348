# coding: utf-8
"""
Migration Code Service

Links a Telegram account to an existing app account through a short-lived
6-digit code:

    bot: generate_code(telegram_id) -> "482193" (valid 5 minutes)
    app: verify_code("482193", user_hash) -> user.telegram_id is set

Code lifecycle: GENERATED -> LINKED, or GENERATED -> EXPIRED. Both are
terminal. Expiry is always computed from expires_at; the cleanup job only
deletes old rows.
"""

import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.config import MIGRATION_CODE_TTL_SECONDS, MIGRATION_CODE_MAX_ATTEMPTS
from astra.core.exceptions import (
    CodeAlreadyUsedError,
    CodeExpiredError,
    CodeGenerationExhaustedError,
    CodeNotFoundError,
    ConflictingLinkError,
    UserNotFoundError,
)
from astra.database import crud
from astra.utils.dt import as_utc, utc_now

CODE_MIN = 100000
CODE_MAX = 999999


class MigrationCodeService:
    """Generate, verify and inspect migration codes"""

    def __init__(self, session: AsyncSession, rng: Optional[secrets.SystemRandom] = None):
        self.session = session
        self._rng = rng or secrets.SystemRandom()

    def draw_code(self) -> str:
        """Uniform draw from 100000-999999 (never a leading zero)"""
        return str(self._rng.randint(CODE_MIN, CODE_MAX))

    async def generate_code(
        self, telegram_id: str, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Generate a migration code for a Telegram user

        Args:
            telegram_id: Telegram user ID
            now: Current instant (defaults to UTC now)

        Returns:
            {"code": "482193", "expiresIn": 300}

        Raises:
            CodeGenerationExhaustedError: every draw collided with a live code
        """
        now = as_utc(now) if now else utc_now()
        telegram_id = str(telegram_id)

        for attempt in range(1, MIGRATION_CODE_MAX_ATTEMPTS + 1):
            code = self.draw_code()

            if await crud.active_code_exists(self.session, code, now):
                logger.debug(f"Migration code collision on attempt {attempt}")
                continue

            # An expired row may still hold these digits until cleanup runs
            await crud.delete_expired_code(self.session, code, now)

            try:
                await crud.add_migration_code(
                    self.session,
                    code=code,
                    telegram_id=telegram_id,
                    expires_at=now + timedelta(seconds=MIGRATION_CODE_TTL_SECONDS),
                    is_linked=False,
                    created_at=now,
                )
                await self.session.commit()
            except IntegrityError:
                # Concurrent generation inserted the same digits first
                await self.session.rollback()
                logger.debug(f"Migration code insert race on attempt {attempt}")
                continue

            logger.info(f"Generated migration code: {code} for telegram_id: {telegram_id}")
            return {"code": code, "expiresIn": MIGRATION_CODE_TTL_SECONDS}

        logger.error("Failed to generate unique migration code after max attempts")
        raise CodeGenerationExhaustedError(attempts=MIGRATION_CODE_MAX_ATTEMPTS)

    async def verify_code(
        self, code: str, user_hash: str, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Link the code's Telegram account to the user identified by user_hash

        The code is marked linked (only if still unlinked) and the user's
        telegram_id is set in the same transaction.

        Args:
            code: 6-digit code
            user_hash: Hash of the app user
            now: Current instant (defaults to UTC now)

        Returns:
            {"user_hash": ..., "telegram_id": ...}

        Raises:
            CodeNotFoundError, CodeExpiredError, CodeAlreadyUsedError,
            UserNotFoundError, ConflictingLinkError
        """
        now = as_utc(now) if now else utc_now()

        record = await crud.get_migration_code(self.session, code)
        if not record:
            raise CodeNotFoundError(code=code)

        if now > as_utc(record.expires_at):
            raise CodeExpiredError(code=code)

        if record.is_linked:
            raise CodeAlreadyUsedError(code=code)

        user = await crud.get_user_by_hash(self.session, user_hash)
        if not user:
            raise UserNotFoundError("User account not found", user_hash=user_hash)

        if user.telegram_id and user.telegram_id != record.telegram_id:
            logger.warning(f"Migration code {code}: user {user_hash[:8]} has a different telegram_id")
            raise ConflictingLinkError(
                "This account is already linked to a different Telegram account"
            )

        holder = await crud.get_user_by_telegram_id(self.session, record.telegram_id)
        if holder and holder.id != user.id:
            logger.warning(f"Migration code {code}: telegram_id {record.telegram_id} belongs to another user")
            raise ConflictingLinkError(
                "Telegram account is already linked to another Astra account"
            )

        marked = await crud.mark_code_linked(
            self.session, record.id, user.user_id, user.user_hash, now
        )
        if not marked:
            await self.session.rollback()
            raise CodeAlreadyUsedError(code=code)

        user.telegram_id = record.telegram_id

        try:
            await self.session.commit()
        except IntegrityError:
            # telegram_id claimed by another user between the check and the write
            await self.session.rollback()
            raise ConflictingLinkError(
                "Telegram account is already linked to another Astra account"
            )

        await self.session.refresh(record)

        logger.info(
            f"Migration code {code} linked to telegram_id: {record.telegram_id}, "
            f"user_hash: {user_hash[:8]}"
        )
        return {"user_hash": user.user_hash, "telegram_id": record.telegram_id}

    async def get_status(self, code: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Read-only status of a code

        Expired codes report isLinked=False whatever is stored.

        Raises:
            CodeNotFoundError: unknown code
        """
        now = as_utc(now) if now else utc_now()

        record = await crud.get_migration_code(self.session, code)
        if not record:
            raise CodeNotFoundError(code=code)

        if now > as_utc(record.expires_at):
            return {"isLinked": False, "expired": True, "telegram_id": record.telegram_id}

        return {
            "isLinked": record.is_linked,
            "expired": False,
            "user_hash": record.user_hash,
            "telegram_id": record.telegram_id,
        }

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete expired codes (cleanup only)"""
        now = as_utc(now) if now else utc_now()
        deleted = await crud.delete_expired_codes(self.session, now)
        if deleted:
            logger.info(f"Purged {deleted} expired migration codes")
        return deleted
