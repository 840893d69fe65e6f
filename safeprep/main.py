import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from safeprep.api.routes import (
    admin_settings,
    admin_stats,
    admin_videos,
    auth,
    contacts,
    dashboard,
    me,
    settings as user_settings,
    videos,
)
from safeprep.core.config import get_settings
from safeprep.core.errors import ApiError
from safeprep.db.seed import seed_if_needed
from safeprep.db.session import SessionLocal

settings = get_settings()
logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def handle_api_error(_, exc: ApiError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.on_event("startup")
async def on_startup() -> None:
    if settings.app_env == "production" and settings.jwt_secret == "change-me":
        raise RuntimeError("JWT_SECRET must be set in production")

    if settings.seed_data:
        try:
            async with SessionLocal() as db:
                await seed_if_needed(db)
        except SQLAlchemyError as exc:
            raise RuntimeError("Database schema is not ready. Run: alembic upgrade head") from exc
        logger.info("seed data checked")


app.include_router(auth.router)
app.include_router(me.router)
app.include_router(dashboard.router)
app.include_router(videos.router)
app.include_router(user_settings.router)
app.include_router(contacts.router)
app.include_router(admin_stats.router)
app.include_router(admin_settings.router)
app.include_router(admin_videos.router)
