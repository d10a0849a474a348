"""
Astra Health - Telegram Bot Entry Point
"""

import asyncio
import sys

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import BotCommand
from loguru import logger

from config.config import BOT_TOKEN, validate_bot_config
from config.logging import setup_logging
from config.sentry import init_sentry
from astra.database.engine import dispose_engine
from astra.bot.handlers import start, link, checkin
from astra.bot.middleware import DatabaseMiddleware


async def setup_bot_commands(bot: Bot) -> None:
    """
    Setup bot commands menu

    Args:
        bot: Bot instance
    """
    commands = [
        BotCommand(command="start", description="🚀 Start the bot"),
        BotCommand(command="join", description="✨ Create an Astra account"),
        BotCommand(command="link", description="🔗 Link with your app account"),
        BotCommand(command="checkin", description="✅ Daily check-in"),
    ]

    await bot.set_my_commands(commands)
    logger.info("Bot commands menu initialized successfully")


async def on_startup(bot: Bot, **kwargs) -> None:
    """Actions to perform on bot startup"""
    logger.info("Starting Astra Bot...")

    # NOTE: Database tables managed by Alembic migrations
    # Run: alembic upgrade head

    await setup_bot_commands(bot)

    bot_info = await bot.get_me()
    logger.info(f"Bot started: @{bot_info.username} (ID: {bot_info.id})")


async def on_shutdown(bot: Bot, **kwargs) -> None:
    """Actions to perform on bot shutdown"""
    logger.info("Shutting down Astra Bot...")

    await dispose_engine()
    logger.info("Database connections closed")

    await bot.session.close()
    logger.info("Bot session closed")


async def main() -> None:
    """Main bot function"""
    setup_logging("bot")
    init_sentry()

    if not validate_bot_config():
        logger.error("Configuration validation failed. Please check your .env file.")
        sys.exit(1)

    logger.info("Configuration validated successfully")

    bot = Bot(
        token=BOT_TOKEN,
        default=DefaultBotProperties(
            parse_mode=ParseMode.HTML, link_preview_is_disabled=True
        ),
    )

    dp = Dispatcher(storage=MemoryStorage())

    # Provides session and the linked user (or None) to handlers
    dp.message.middleware(DatabaseMiddleware())
    dp.callback_query.middleware(DatabaseMiddleware())

    dp.include_router(start.router)  # /start, /join
    dp.include_router(link.router)  # /link
    dp.include_router(checkin.router)  # /checkin

    dp.startup.register(on_startup)
    dp.shutdown.register(on_shutdown)

    try:
        logger.info("Starting bot polling...")
        await dp.start_polling(
            bot,
            allowed_updates=dp.resolve_used_update_types(),
            drop_pending_updates=True,
        )
    except Exception as e:
        logger.exception(f"Critical error during bot operation: {e}")
        raise


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user (KeyboardInterrupt)")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)
