from fastapi import APIRouter, Depends

from safeprep.api.admin_auth import require_admin
from safeprep.db.session import SessionFactory, get_session_factory
from safeprep.schemas.admin import AdminData
from safeprep.services.admin_stats_service import load_admin_stats

router = APIRouter(prefix="/v1/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=AdminData)
async def get_admin_stats(sessions: SessionFactory = Depends(get_session_factory)) -> AdminData:
    return await load_admin_stats(sessions)
