import datetime

from pydantic import BaseModel


class AdminStats(BaseModel):
    total_users: int
    active_users: int
    schools_registered: int
    completed_drills: int
    average_xp: int


class RegionalStat(BaseModel):
    region: str
    users: int
    completion: int


class SchoolActivity(BaseModel):
    school: str
    users: int
    completion: int
    date: datetime.date


class AdminData(BaseModel):
    stats: AdminStats
    regional_stats: list[RegionalStat]
    recent_activity: list[SchoolActivity]
