from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
import uuid
from portaal.db.base import Base
from portaal.utils.clock import utcnow

class Message(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    sender_id = Column(String, ForeignKey("dealers.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(String, ForeignKey("dealers.id", ondelete="CASCADE"), nullable=False, index=True)

    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)

    timestamp = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
