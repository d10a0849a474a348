# coding: utf-8
"""
Feedback Service

User feedback (bug, feature, general, ...) with a resolved flag for triage.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from astra.core.exceptions import FeedbackNotFoundError, ValidationError
from astra.database import crud
from astra.database.models import Feedback


class FeedbackService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_feedback(
        self, type: str, message: str, user_hash: Optional[str] = None
    ) -> Feedback:
        """
        Store a feedback entry

        Raises:
            ValidationError: type or message missing
        """
        if not type or not message:
            raise ValidationError("Type and message are required")

        feedback = Feedback(type=type, message=message, user_hash=user_hash or None)
        self.session.add(feedback)
        await self.session.commit()

        logger.info(f"Feedback created: {feedback.id}, type: {type}")
        return feedback

    async def list_feedback(
        self, feedback_type: Optional[str] = None, resolved: Optional[bool] = None
    ) -> List[Feedback]:
        return await crud.list_feedback(self.session, feedback_type, resolved)

    async def get_feedback(self, feedback_id: int) -> Feedback:
        feedback = await crud.get_feedback(self.session, feedback_id)
        if not feedback:
            raise FeedbackNotFoundError(feedback_id=feedback_id)
        return feedback

    async def update_feedback(
        self,
        feedback_id: int,
        resolved: Optional[bool] = None,
        message: Optional[str] = None,
        type: Optional[str] = None,
    ) -> Feedback:
        """Mark resolved/unresolved or edit the text"""
        feedback = await self.get_feedback(feedback_id)

        if resolved is not None:
            feedback.resolved = resolved
        if message:
            feedback.message = message
        if type:
            feedback.type = type

        await self.session.commit()

        logger.info(f"Feedback updated: {feedback_id}, resolved: {feedback.resolved}")
        return feedback
