from datetime import datetime

from pydantic import BaseModel


class SessionCreate(BaseModel):
    dealer_id: str


class SessionRead(BaseModel):
    id: str
    user_id: str
    session_start: datetime | None = None
    session_end: datetime | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    is_active: bool = True

    class Config:
        from_attributes = True


class ActiveSessionRead(SessionRead):
    dealer_name: str | None = None
    dealer_email: str | None = None
    dealer_profile_picture: str | None = None
