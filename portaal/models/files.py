from sqlalchemy import Column, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
import uuid
from portaal.db.base import Base
from portaal.utils.clock import utcnow

class FileUpload(Base):
    __tablename__ = "files"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_files_status"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    user_id = Column(String, ForeignKey("dealers.id", ondelete="CASCADE"), nullable=True, index=True)

    filename = Column(String, nullable=False)
    folder = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending", index=True)  # pending/approved/rejected
    url = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
