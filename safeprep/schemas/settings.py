import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

Theme = Literal["light", "dark", "system"]
Language = Literal["en", "hi"]
PrivacyLevel = Literal["public", "friends", "private"]


class UserSettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    notifications_enabled: bool
    email_alerts: bool
    theme: Theme
    language: Language
    privacy_level: PrivacyLevel
    auto_save: bool
    sound_effects: bool
    created_at: datetime
    updated_at: datetime


class UserSettingsUpdate(BaseModel):
    notifications_enabled: bool | None = None
    email_alerts: bool | None = None
    theme: Theme | None = None
    language: Language | None = None
    privacy_level: PrivacyLevel | None = None
    auto_save: bool | None = None
    sound_effects: bool | None = None


DEFAULT_USER_SETTINGS = UserSettingsUpdate(
    notifications_enabled=True,
    email_alerts=True,
    theme="system",
    language="en",
    privacy_level="friends",
    auto_save=True,
    sound_effects=True,
)
