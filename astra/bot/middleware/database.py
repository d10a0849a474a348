"""
Database middleware - provides database session and the linked Astra user to handlers
"""

from typing import Callable, Dict, Any, Awaitable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Message, CallbackQuery
from loguru import logger

from astra.database.engine import get_session_maker
from astra.database.crud import get_user_by_telegram_id


class DatabaseMiddleware(BaseMiddleware):
    """
    Middleware that provides database session and user object to handlers.

    The user is NOT auto-created: a Telegram account only becomes an Astra
    user through /join or by linking with a migration code. Handlers get
    user=None until then.

    Usage in handler:
        async def my_handler(message: Message, session: AsyncSession, user: Optional[User]):
            ...
    """

    def __init__(self, session_maker=None):
        self.session_maker = session_maker

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        session_maker = self.session_maker or get_session_maker()
        async with session_maker() as session:
            data["session"] = session

            telegram_user = None
            if isinstance(event, (Message, CallbackQuery)):
                telegram_user = event.from_user

            data["user"] = None
            if telegram_user:
                data["user"] = await get_user_by_telegram_id(session, str(telegram_user.id))
                logger.debug(
                    f"telegram_id={telegram_user.id} linked={data['user'] is not None}"
                )

            try:
                result = await handler(event, data)
                await session.commit()
                return result

            except Exception as e:
                await session.rollback()
                logger.error(f"Database error in handler: {e}")
                raise
