"""
/link command handler - migration code for linking with an app account
"""

from typing import Optional

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from astra.core.exceptions import CodeGenerationExhaustedError
from astra.database.models import User
from astra.services.migration_service import MigrationCodeService

router = Router(name="link")


@router.message(Command("link"))
async def cmd_link(message: Message, session: AsyncSession, user: Optional[User] = None):
    """
    Generate a 6-digit code to enter in the app
    """
    if user:
        await message.answer("✅ This Telegram account is already linked to Astra.")
        return

    try:
        result = await MigrationCodeService(session).generate_code(str(message.from_user.id))
    except CodeGenerationExhaustedError:
        await message.answer("⚠️ Could not generate a code right now, please try again.")
        return

    minutes = result["expiresIn"] // 60
    logger.info(f"/link code issued for telegram_id={message.from_user.id}")
    await message.answer(
        f"🔗 Your linking code: <code>{result['code']}</code>\n\n"
        f"Enter it in the Astra app within {minutes} minutes."
    )
