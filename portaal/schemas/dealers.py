from datetime import datetime
from typing import Literal

from pydantic import BaseModel

DealerRole = Literal["admin", "dealer", "manager"]
DealerStatus = Literal["active", "inactive"]


class DealerBase(BaseModel):
    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    role: DealerRole = "dealer"
    profile_picture: str | None = None
    notes: str | None = None


# ===========================================
# Create / Update
# (validação com mensagens amigáveis fica no service)
# ===========================================

class DealerCreate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    role: DealerRole | None = None
    profile_picture: str | None = None
    notes: str | None = None


class DealerUpdate(DealerCreate):
    status: DealerStatus | None = None
    is_active: bool | None = None


# ===========================================
# Read
# ===========================================

class DealerRead(DealerBase):
    id: str
    status: DealerStatus = "active"
    is_active: bool = True
    created_at: datetime | None = None
    registration_date: datetime | None = None
    last_login: datetime | None = None
    last_activity: datetime | None = None

    class Config:
        from_attributes = True


class DealerPresence(DealerRead):
    online: bool = False


class DealerStats(BaseModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    new_this_week: int = 0
    online_now: int = 0
