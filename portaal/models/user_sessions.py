from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
import uuid
from portaal.db.base import Base
from portaal.utils.clock import utcnow

class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    user_id = Column(String, ForeignKey("dealers.id", ondelete="CASCADE"), nullable=False, index=True)

    session_start = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    session_end = Column(DateTime(timezone=True), nullable=True)

    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
