from datetime import datetime

from pydantic import BaseModel

DEFAULT_PREFERENCES = {
    "language": "nl",
    "theme": "light",
    "notifications_enabled": True,
    "email_notifications": True,
    "chat_notifications": True,
}


class PreferencesRead(BaseModel):
    id: str = ""
    user_id: str
    language: str = "nl"
    theme: str = "light"
    notifications_enabled: bool = True
    email_notifications: bool = True
    chat_notifications: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class PreferencesUpdate(BaseModel):
    language: str | None = None
    theme: str | None = None
    notifications_enabled: bool | None = None
    email_notifications: bool | None = None
    chat_notifications: bool | None = None
