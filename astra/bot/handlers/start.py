"""
/start and /join command handlers
"""

from typing import Optional

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message, InlineKeyboardMarkup, InlineKeyboardButton, WebAppInfo
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from config.config import WEBAPP_URL
from astra.core.exceptions import ConflictingLinkError
from astra.database.models import User
from astra.services.user_service import UserService

router = Router(name="start")


def get_main_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="Open Astra", web_app=WebAppInfo(url=WEBAPP_URL))],
        ]
    )


def format_streak(user: User) -> str:
    return (
        f"🔥 Current streak: <b>{user.current_streak}</b>\n"
        f"🏆 Longest streak: <b>{user.longest_streak}</b>\n"
        f"✅ Check-ins: <b>{user.check_ins}</b>"
    )


@router.message(CommandStart())
async def cmd_start(message: Message, session: AsyncSession, user: Optional[User] = None):
    """
    Greet the user; linked users see their streak
    """
    if user:
        await UserService(session).apply_streak_decay(user)
        await message.answer(
            f"Welcome back!\n\n{format_streak(user)}\n\n"
            "Use /checkin to record today's check-in.",
            reply_markup=get_main_menu(),
        )
        return

    await message.answer(
        "👋 Welcome to <b>Astra</b>!\n\n"
        "Already have an Astra account in the app? Send /link to get a "
        "6-digit code and enter it in the app.\n\n"
        "New here? Send /join to start tracking from Telegram.",
        reply_markup=get_main_menu(),
    )


@router.message(Command("join"))
async def cmd_join(message: Message, session: AsyncSession, user: Optional[User] = None):
    """
    Create an Astra account bound to this Telegram account
    """
    if user:
        await message.answer("You already have an Astra account. Use /checkin to check in.")
        return

    try:
        created = await UserService(session).create_bot_user(
            telegram_id=str(message.from_user.id),
            name=message.from_user.full_name,
            nickname=message.from_user.username,
        )
    except ConflictingLinkError:
        await message.answer("This Telegram account is already linked to an Astra account.")
        return

    logger.info(f"Bot account created for telegram_id={message.from_user.id}")
    await message.answer(
        f"🎉 Account created!\n\n{format_streak(created)}\n\nUse /checkin every day to build your streak."
    )
