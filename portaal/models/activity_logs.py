from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
import uuid
from portaal.db.base import Base
from portaal.utils.clock import utcnow

# Trilhas de auditoria: escritas best-effort, nunca lidas pela regra de negócio

class LoginLog(Base):
    __tablename__ = "login_logs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("dealers.id", ondelete="CASCADE"), nullable=False)
    ip_address = Column(String, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())


class DownloadLog(Base):
    __tablename__ = "download_logs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("dealers.id", ondelete="CASCADE"), nullable=False)
    file_id = Column(String, ForeignKey("files.id", ondelete="CASCADE"), nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())


class UploadLog(Base):
    __tablename__ = "upload_logs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("dealers.id", ondelete="CASCADE"), nullable=False)
    filename = Column(String, nullable=False)
    folder = Column(String, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())


class ChatLog(Base):
    __tablename__ = "chat_logs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("dealers.id", ondelete="CASCADE"), nullable=False)
    action = Column(String, nullable=False)  # message_sent/message_read/conversation_started
    details = Column(JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
