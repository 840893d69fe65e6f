import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.api.deps import CurrentUser
from safeprep.db.session import SessionFactory, get_db, get_session_factory
from safeprep.schemas.dashboard import (
    DashboardData,
    GameCompleteRequest,
    ModuleProgressRequest,
    ProgressOut,
    RegionUpdateRequest,
)
from safeprep.services.dashboard_service import complete_game, load_dashboard, set_region, update_module_progress

router = APIRouter(prefix="/v1", tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardData)
async def get_dashboard(
    current_user: CurrentUser,
    sessions: SessionFactory = Depends(get_session_factory),
) -> DashboardData:
    return await load_dashboard(sessions, current_user.id)


@router.put("/modules/{module_id}/progress", response_model=DashboardData)
async def put_module_progress(
    module_id: uuid.UUID,
    payload: ModuleProgressRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    sessions: SessionFactory = Depends(get_session_factory),
) -> DashboardData:
    await update_module_progress(db, current_user.id, module_id, payload.progress)
    return await load_dashboard(sessions, current_user.id)


@router.post("/games/{game_id}/complete", response_model=DashboardData)
async def post_game_complete(
    game_id: uuid.UUID,
    payload: GameCompleteRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    sessions: SessionFactory = Depends(get_session_factory),
) -> DashboardData:
    await complete_game(db, current_user.id, game_id, payload.score)
    return await load_dashboard(sessions, current_user.id)


@router.put("/progress/region", response_model=ProgressOut)
async def put_region(
    payload: RegionUpdateRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> ProgressOut:
    progress = await set_region(db, current_user.id, payload.region)
    return ProgressOut.model_validate(progress)
