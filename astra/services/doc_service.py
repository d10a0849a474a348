# coding: utf-8
"""
Doc Service - in-app documentation pages (guides, FAQ, tutorials)
"""

from typing import Any, List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from astra.core.exceptions import DocNotFoundError, ValidationError
from astra.database import crud
from astra.database.models import Doc

DOC_FIELDS = ("title", "text", "type")


class DocService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_doc(self, title: str, text: str, type: str) -> Doc:
        if not title or not text or not type:
            raise ValidationError("Title, text, and type are required")

        doc = Doc(title=title, text=text, type=type)
        self.session.add(doc)
        await self.session.commit()

        logger.info(f"Doc created: {doc.id}, type: {type}")
        return doc

    async def list_docs(self, doc_type: Optional[str] = None) -> List[Doc]:
        """Newest first, optionally filtered by type"""
        return await crud.list_docs(self.session, doc_type)

    async def get_doc(self, doc_id: int) -> Doc:
        doc = await crud.get_doc(self.session, doc_id)
        if not doc:
            raise DocNotFoundError(doc_id=doc_id)
        return doc

    async def update_doc(self, doc_id: int, **fields: Any) -> Doc:
        doc = await self.get_doc(doc_id)

        for name in DOC_FIELDS:
            if fields.get(name):
                setattr(doc, name, fields[name])

        await self.session.commit()
        await self.session.refresh(doc)

        logger.info(f"Doc updated: {doc_id}")
        return doc

    async def delete_doc(self, doc_id: int) -> None:
        doc = await self.get_doc(doc_id)
        await self.session.delete(doc)
        await self.session.commit()
        logger.info(f"Doc deleted: {doc_id}")
