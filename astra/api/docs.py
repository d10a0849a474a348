"""
Docs API Endpoints - in-app documentation CRUD

GET /api/docs?type=guide - list, newest first
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from astra.database.engine import get_session
from astra.services.doc_service import DocService

router = APIRouter(prefix="/docs", tags=["docs"])


class CreateDocRequest(BaseModel):
    title: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)


class UpdateDocRequest(BaseModel):
    title: Optional[str] = None
    text: Optional[str] = None
    type: Optional[str] = None


@router.post("", status_code=201)
async def create_doc(request: CreateDocRequest, session: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    doc = await DocService(session).create_doc(request.title, request.text, request.type)
    return doc.to_dict()


@router.get("")
async def list_docs(
    type: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_session),
) -> List[Dict[str, Any]]:
    docs = await DocService(session).list_docs(type)
    return [doc.to_dict() for doc in docs]


@router.get("/{doc_id}")
async def get_doc(doc_id: int, session: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    doc = await DocService(session).get_doc(doc_id)
    return doc.to_dict()


@router.put("/{doc_id}")
async def update_doc(
    doc_id: int,
    request: UpdateDocRequest,
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    doc = await DocService(session).update_doc(doc_id, **request.model_dump(exclude_none=True))
    return doc.to_dict()


@router.delete("/{doc_id}")
async def delete_doc(doc_id: int, session: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    await DocService(session).delete_doc(doc_id)
    return {"message": "Doc deleted successfully"}
