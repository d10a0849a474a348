# coding: utf-8
"""
User Service

Profile reads/updates, versioned health data and the two non-registration
ways a user comes into existence (bot-direct and migration stub).
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from astra.core.exceptions import ConflictingLinkError, UserNotFoundError, ValidationError
from astra.database import crud
from astra.database.models import HealthData, Notification, User
from astra.services.streak_engine import check_streak_on_app_open
from astra.utils.dt import as_utc, utc_now
from astra.utils.hashing import create_user_hash

# Columns a client may set through a profile update
PROFILE_FIELDS = ("name", "nickname", "wallet_address", "proof_of_passport_id")
HEALTH_DATA_FIELDS = (
    "research_opt_in",
    "profile",
    "conditions",
    "medications",
    "treatments",
    "caretaker",
)


def user_to_dict(user: User) -> Dict[str, Any]:
    """Public representation of a user (never includes the password hash)"""
    return {
        "user_id": user.user_id,
        "user_hash": user.user_hash,
        "telegram_id": user.telegram_id,
        "email": user.email,
        "name": user.name,
        "nickname": user.nickname,
        "wallet_address": user.wallet_address,
        "proof_of_passport_id": user.proof_of_passport_id,
        "accountKind": user.account_kind.value,
        "checkIns": user.check_ins,
        "points": user.points,
        "lastCheckIn": as_utc(user.last_check_in),
        "currentStreak": user.current_streak,
        "longestStreak": user.longest_streak,
        "streakHistory": list(user.streak_history or []),
        "isRegistered": user.is_registered,
        "isGenderVerified": user.is_gender_verified,
        "currentHealthDataId": user.current_health_data_id,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


class UserService:
    """User profile operations"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _current_health_data(self, user: User) -> Optional[HealthData]:
        if user.current_health_data_id:
            return await crud.get_health_data(self.session, user.current_health_data_id)
        return await crud.get_latest_health_data(self.session, user.user_hash)

    async def apply_streak_decay(self, user: User, now: Optional[datetime] = None) -> User:
        """
        Reset current_streak to 0 when the last check-in is 2+ days old

        Only current_streak is written, and only if last_check_in is still
        the value read, so a concurrent check-in is never overwritten.
        """
        now = as_utc(now) if now else utc_now()

        decayed = check_streak_on_app_open(as_utc(user.last_check_in), user.current_streak, now)
        if decayed == user.current_streak:
            return user

        await crud.update_streak_state_if_unchanged(
            self.session, user.id, user.last_check_in, {"current_streak": decayed}
        )
        await self.session.commit()
        await self.session.refresh(user)

        logger.info(f"Streak expired for {user.user_hash[:8]}")
        return user

    async def get_user(self, user_hash: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Load a user for display, applying passive streak decay first

        Returns:
            User dict with "healthData" (current snapshot or None)

        Raises:
            UserNotFoundError: unknown user_hash
        """
        user = await crud.get_user_by_hash(self.session, user_hash)
        if not user:
            raise UserNotFoundError(user_hash=user_hash)

        await self.apply_streak_decay(user, now)
        health_data = await self._current_health_data(user)

        data = user_to_dict(user)
        data["healthData"] = health_data.to_dict() if health_data else None
        return data

    async def update_profile(
        self,
        user_id: str,
        user_fields: Optional[Dict[str, Any]] = None,
        health_data: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Update profile fields and store a new health data snapshot

        The new snapshot becomes the user's current one. Default reminder
        settings are created on the first update.

        Raises:
            UserNotFoundError: unknown user_id
        """
        now = as_utc(now) if now else utc_now()
        user_fields = user_fields or {}
        health_data = health_data or {}

        user = await crud.get_user_by_user_id(self.session, user_id)
        if not user:
            raise UserNotFoundError(user_id=user_id)

        for name in PROFILE_FIELDS:
            if name in user_fields:
                setattr(user, name, user_fields[name])

        snapshot = HealthData(
            health_data_id=str(uuid.uuid4()),
            user_hash=user.user_hash,
            timestamp=now,
            **{k: v for k, v in health_data.items() if k in HEALTH_DATA_FIELDS and v is not None},
        )
        self.session.add(snapshot)
        user.current_health_data_id = snapshot.health_data_id

        if not await crud.get_notification(self.session, user.user_id):
            self.session.add(Notification(user_id=user.user_id))
            logger.info(f"Default notification settings created for {user.user_hash[:8]}")

        await self.session.commit()
        await self.session.refresh(user)

        logger.info(f"Profile updated for {user.user_hash[:8]}, health data {snapshot.health_data_id}")

        data = user_to_dict(user)
        data["healthData"] = snapshot.to_dict()
        return data

    async def create_bot_user(
        self,
        telegram_id: str,
        name: Optional[str] = None,
        nickname: Optional[str] = None,
        points: int = 0,
    ) -> User:
        """
        Create a user directly from the bot (no email/password)

        Raises:
            ConflictingLinkError: telegram_id already belongs to a user
        """
        telegram_id = str(telegram_id)
        if await crud.get_user_by_telegram_id(self.session, telegram_id):
            raise ConflictingLinkError(
                "Telegram account is already linked to another Astra account"
            )

        user_id = str(uuid.uuid4())
        try:
            user = await crud.add_user(
                self.session,
                user_id=user_id,
                user_hash=create_user_hash(user_id),
                telegram_id=telegram_id,
                name=name,
                nickname=nickname,
                points=points,
            )
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictingLinkError(
                "Telegram account is already linked to another Astra account"
            )

        logger.info(f"Bot user created: telegram_id={telegram_id}, hash={user.user_hash[:8]}")
        return user

    async def create_user_from_migration(
        self, user_id: str, user_hash: str, telegram_id: Optional[str] = None
    ) -> User:
        """
        Create an unregistered stub with a pre-determined id and hash

        Raises:
            ValidationError: user_id or user_hash missing
        """
        if not user_id or not user_hash:
            raise ValidationError("user_id and user_hash are required for migration")

        user = await crud.add_user(
            self.session,
            user_id=user_id,
            user_hash=user_hash,
            telegram_id=str(telegram_id) if telegram_id else None,
            is_registered=False,
        )
        await self.session.commit()

        logger.info(f"Migration stub created: {user_hash[:8]} ({user.account_kind.value})")
        return user
