"""
/checkin command handler
"""

from typing import Optional

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from astra.core.exceptions import DuplicateCheckInError
from astra.database.models import User
from astra.services.checkin_service import CheckInService

router = Router(name="checkin")


@router.message(Command("checkin"))
async def cmd_checkin(message: Message, session: AsyncSession, user: Optional[User] = None):
    """
    Record today's check-in for the linked user
    """
    if not user:
        await message.answer("You don't have an Astra account yet. Send /join or /link first.")
        return

    try:
        result = await CheckInService(session).create_check_in(user.user_hash)
    except DuplicateCheckInError:
        await message.answer("✅ You've already checked in today. See you tomorrow!")
        return

    stats = result["stats"]
    await message.answer(
        f"✅ Checked in!\n\n"
        f"🔥 Streak: <b>{stats['currentStreak']}</b> "
        f"(best {stats['longestStreak']})\n"
        f"📅 Total check-ins: <b>{stats['totalCheckIns']}</b>"
    )
