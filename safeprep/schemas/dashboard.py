import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from safeprep.schemas.videos import VideoOut


class ProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    current_xp: int
    current_level: int
    completed_modules: int
    total_game_score: int
    region: str | None = None


class XpSummary(BaseModel):
    current_xp: int
    current_level: int
    level_floor_xp: int
    next_level_xp: int
    xp_to_next_level: int
    percent_to_next_level: float


class ModuleView(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    icon: str
    xp_reward: int
    difficulty: str
    hover_content: str | None = None
    order_index: int
    progress: int = 0
    is_completed: bool = False
    completed_at: datetime | None = None


class GameView(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    icon: str
    xp_reward: int
    difficulty: str
    hover_content: str | None = None
    game_url: str | None = None
    order_index: int
    score: int = 0
    is_completed: bool = False


class AlertOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    type: str
    severity: str
    message: str
    region: str | None = None
    icon: str
    created_at: datetime
    expires_at: datetime | None = None


class EarnedAchievement(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    icon: str
    xp_reward: int
    earned_at: datetime


class DashboardData(BaseModel):
    progress: ProgressOut
    xp: XpSummary
    learning_modules: list[ModuleView]
    safety_games: list[GameView]
    safety_alerts: list[AlertOut]
    video_tutorials: list[VideoOut]
    achievements: list[EarnedAchievement]


class ModuleProgressRequest(BaseModel):
    progress: int = Field(ge=0)


class GameCompleteRequest(BaseModel):
    score: int = Field(ge=0)


class RegionUpdateRequest(BaseModel):
    region: str | None = Field(default=None, max_length=120)
