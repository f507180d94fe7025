from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from portaal.schemas.dealers import DealerRead


class MessageCreate(BaseModel):
    receiver_id: str
    message: str


class MessageRead(BaseModel):
    id: str
    sender_id: str
    receiver_id: str
    message: str
    timestamp: datetime | None = None
    read: bool = False

    class Config:
        from_attributes = True


class MarkReadRequest(BaseModel):
    ids: list[str]


class ConversationSummary(BaseModel):
    dealer: DealerRead
    last_message: MessageRead | None = None
    unread_count: int = 0


class MessageEvent(BaseModel):
    type: Literal["INSERT", "UPDATE"]
    message: MessageRead
