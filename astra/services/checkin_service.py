# coding: utf-8
"""
Check-in Service

Creates daily check-ins and advances the owner's streak.

The check-in row and the user's streak columns are written in one
transaction. The user update is a compare-and-swap on last_check_in, so two
concurrent check-ins for the same user on the same UTC day cannot both pass.
"""

import secrets
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from config.config import POINTS_PER_CHECK_IN
from astra.core.exceptions import DuplicateCheckInError, UserNotFoundError
from astra.database import crud
from astra.database.models import CheckIn
from astra.services.streak_engine import StreakState, record_check_in
from astra.utils.dt import as_utc, utc_now


# Free-form fields accepted from the client; opaque to the streak logic
CHECK_IN_FIELDS = (
    "mood",
    "health_comment",
    "doctor_visit",
    "health_profile_update",
    "anxiety_level",
    "anxiety_details",
    "pain_level",
    "pain_details",
    "fatigue_level",
    "fatigue_details",
)

# One retry after losing the compare-and-swap
MAX_CAS_ATTEMPTS = 2


def generate_checkin_id(now: Optional[datetime] = None) -> str:
    """checkin_<epoch-millis>_<16 hex chars>"""
    now = as_utc(now) if now else utc_now()
    return f"checkin_{int(now.timestamp() * 1000)}_{secrets.token_hex(8)}"


class CheckInService:
    """Check-in creation, listing and rollback"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_check_in(
        self,
        user_hash: str,
        payload: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Record a check-in for the user and update the streak

        Args:
            user_hash: Owner hash
            payload: Mood/symptom fields (unknown keys ignored)
            now: Check-in instant (defaults to current UTC time)

        Returns:
            {"checkIn": CheckIn, "stats": {...}} with post-update stats

        Raises:
            UserNotFoundError: no user with this hash
            DuplicateCheckInError: user already checked in this UTC day
        """
        now = as_utc(now) if now else utc_now()
        payload = payload or {}

        user = await crud.get_user_by_hash(self.session, user_hash)
        if not user:
            logger.warning(f"Check-in rejected, user not found: {user_hash[:8]}")
            raise UserNotFoundError(user_hash=user_hash)

        new_state = None
        for attempt in range(MAX_CAS_ATTEMPTS):
            # Raises DuplicateCheckInError when the winner of a race already
            # checked in today
            new_state = record_check_in(StreakState.from_user(user), now)

            swapped = await crud.update_streak_state_if_unchanged(
                self.session, user.id, user.last_check_in, new_state.as_values()
            )
            if swapped:
                break

            logger.debug(f"Check-in CAS lost for {user_hash[:8]}, re-reading user")
            await self.session.refresh(user)
        else:
            await self.session.rollback()
            raise DuplicateCheckInError(user_hash=user_hash)

        fields = {key: payload[key] for key in CHECK_IN_FIELDS if key in payload}
        check_in = await crud.add_check_in(
            self.session,
            checkin_id=generate_checkin_id(now),
            user_hash=user_hash,
            timestamp=now,
            **fields,
        )

        await self.session.commit()
        await self.session.refresh(user)

        logger.info(
            f"Check-in {check_in.checkin_id} for {user_hash[:8]}: "
            f"streak={new_state.current_streak}, total={new_state.check_ins}"
        )

        return {"checkIn": check_in, "stats": new_state.stats()}

    async def get_user_check_ins(self, user_hash: str) -> List[CheckIn]:
        """All check-ins of a user, newest first"""
        return await crud.get_check_ins_by_user_hash(self.session, user_hash)

    async def rollback_check_in(self, user_hash: str) -> Dict[str, Any]:
        """
        Undo the counters of one check-in

        Decrements check_ins and points (floored at 0). Streak, longest streak,
        history and last_check_in are left as they are.

        Raises:
            UserNotFoundError: no user with this hash
        """
        updated = await crud.decrement_check_in_counters(
            self.session, user_hash, points=POINTS_PER_CHECK_IN
        )
        if not updated:
            await self.session.rollback()
            raise UserNotFoundError(user_hash=user_hash)

        await self.session.commit()

        user = await crud.get_user_by_hash(self.session, user_hash)
        await self.session.refresh(user)

        logger.info(f"Check-in counters rolled back for {user_hash[:8]}: total={user.check_ins}")
        return {"totalCheckIns": user.check_ins, "points": user.points}
