"""
Main API router - собирает все sub-роутеры под /api
"""

from fastapi import APIRouter

from astra.api.auth import router as auth_router
from astra.api.users import router as users_router
from astra.api.checkins import router as checkins_router
from astra.api.migration import router as migration_router
from astra.api.research_invites import router as research_invites_router
from astra.api.docs import router as docs_router
from astra.api.feedback import router as feedback_router
from astra.api.data_union import router as data_union_router


router = APIRouter()

# Sub-routers already carry their prefixes
router.include_router(auth_router)
router.include_router(users_router)
router.include_router(checkins_router)
router.include_router(migration_router)  # Telegram -> app account linking
router.include_router(research_invites_router)
router.include_router(docs_router)
router.include_router(feedback_router)
router.include_router(data_union_router)  # Partner sync ledger
