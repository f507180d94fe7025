from sqlalchemy import Column, String, Boolean, DateTime, Text, CheckConstraint
from sqlalchemy.sql import func
import uuid
from portaal.db.base import Base
from portaal.utils.clock import utcnow

class Dealer(Base):
    __tablename__ = "dealers"
    __table_args__ = (
        CheckConstraint("role IN ('admin', 'dealer', 'manager')", name="ck_dealers_role"),
        CheckConstraint("status IN ('active', 'inactive')", name="ck_dealers_status"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Perfil
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    phone = Column(String, nullable=True)
    company = Column(String, nullable=True)
    role = Column(String, nullable=False, default="dealer", index=True)
    profile_picture = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    # Status
    status = Column(String, nullable=False, default="active", index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Auditoria / presença
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    registration_date = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    last_login = Column(DateTime(timezone=True), nullable=True)
    last_activity = Column(DateTime(timezone=True), nullable=True, index=True)
