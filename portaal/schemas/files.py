from datetime import datetime
from typing import Literal

from pydantic import BaseModel

FileStatus = Literal["pending", "approved", "rejected"]
FileScope = Literal["all", "mine", "approved"]


class FileBase(BaseModel):
    user_id: str | None = None
    filename: str
    folder: str
    status: FileStatus = "pending"
    url: str


class FileCreate(FileBase):
    pass


class FileStatusUpdate(BaseModel):
    status: FileStatus


class FileRead(FileBase):
    id: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class FileView(FileRead):
    # ações que a UI pode oferecer; só arquivos pendentes podem ser revisados
    allowed_actions: list[str] = []
