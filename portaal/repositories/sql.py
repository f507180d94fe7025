# file: portaal/repositories/sql.py

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portaal.core.errors import DealerConflictError
from portaal.models.activity_logs import ChatLog, DownloadLog, LoginLog, UploadLog
from portaal.models.dealers import Dealer
from portaal.models.files import FileUpload
from portaal.models.messages import Message
from portaal.models.user_preferences import UserPreferences
from portaal.models.user_sessions import UserSession
from portaal.repositories.base import (
    SEARCH_LIMIT,
    ActivityLogRepository,
    DealerRepository,
    FileRepository,
    MessageRepository,
    PreferencesRepository,
    Repositories,
    SessionRepository,
)
from portaal.schemas.dealers import DealerRead, DealerStats
from portaal.schemas.files import FileRead
from portaal.schemas.messages import MessageRead
from portaal.schemas.preferences import DEFAULT_PREFERENCES, PreferencesRead
from portaal.schemas.sessions import ActiveSessionRead, SessionRead
from portaal.utils.clock import utcnow


class _SqlRepository:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


def _pair_filter(user_id: str, other_id: str):
    return or_(
        and_(Message.sender_id == user_id, Message.receiver_id == other_id),
        and_(Message.sender_id == other_id, Message.receiver_id == user_id),
    )


# ============================================================
# Dealers
# ============================================================

class SqlDealerRepository(_SqlRepository, DealerRepository):

    def list(self, include_inactive: bool = False) -> list[DealerRead]:
        query = self.db.query(Dealer)
        if not include_inactive:
            query = query.filter(Dealer.is_active.is_(True))
        rows = query.order_by(Dealer.registration_date.desc()).all()
        return [DealerRead.model_validate(r) for r in rows]

    def get(self, dealer_id: str) -> DealerRead | None:
        row = self.db.get(Dealer, dealer_id)
        return DealerRead.model_validate(row) if row else None

    def get_by_email(self, email: str) -> DealerRead | None:
        row = self.db.query(Dealer).filter(Dealer.email == email.lower()).first()
        return DealerRead.model_validate(row) if row else None

    def search(self, term: str, limit: int = SEARCH_LIMIT) -> list[DealerRead]:
        pattern = f"%{term.lower()}%"
        rows = (
            self.db.query(Dealer)
            .filter(
                or_(
                    func.lower(Dealer.name).like(pattern),
                    func.lower(Dealer.email).like(pattern),
                    func.lower(Dealer.company).like(pattern),
                ),
                Dealer.is_active.is_(True),
            )
            .order_by(Dealer.name)
            .limit(limit)
            .all()
        )
        return [DealerRead.model_validate(r) for r in rows]

    def create(self, data: dict[str, Any]) -> DealerRead:
        dealer = Dealer(**data)
        self.db.add(dealer)
        try:
            self._commit()
        except IntegrityError as e:
            raise DealerConflictError() from e
        self.db.refresh(dealer)
        return DealerRead.model_validate(dealer)

    def update(self, dealer_id: str, data: dict[str, Any]) -> DealerRead | None:
        dealer = self.db.get(Dealer, dealer_id)
        if dealer is None:
            return None
        for field, value in data.items():
            setattr(dealer, field, value)
        try:
            self._commit()
        except IntegrityError as e:
            raise DealerConflictError() from e
        self.db.refresh(dealer)
        return DealerRead.model_validate(dealer)

    def delete(self, dealer_id: str) -> bool:
        dealer = self.db.get(Dealer, dealer_id)
        if dealer is None:
            return False
        self.db.delete(dealer)
        self._commit()
        return True

    def list_online(self, since: datetime) -> list[DealerRead]:
        rows = (
            self.db.query(Dealer)
            .filter(Dealer.status == "active", Dealer.last_login >= since)
            .order_by(Dealer.last_login.desc())
            .all()
        )
        return [DealerRead.model_validate(r) for r in rows]

    def stats(self, new_since: datetime, online_since: datetime) -> DealerStats:
        def count(*criteria) -> int:
            stmt = select(func.count(Dealer.id))
            if criteria:
                stmt = stmt.where(*criteria)
            return self.db.scalar(stmt) or 0

        return DealerStats(
            total=count(),
            active=count(Dealer.is_active.is_(True)),
            inactive=count(Dealer.is_active.is_(False)),
            new_this_week=count(Dealer.registration_date >= new_since),
            online_now=count(Dealer.status == "active", Dealer.last_login > online_since),
        )


# ============================================================
# Files
# ============================================================

class SqlFileRepository(_SqlRepository, FileRepository):

    def list(self, status: str | None = None, user_id: str | None = None) -> list[FileRead]:
        query = self.db.query(FileUpload)
        if status is not None:
            query = query.filter(FileUpload.status == status)
        if user_id is not None:
            query = query.filter(FileUpload.user_id == user_id)
        rows = query.order_by(FileUpload.created_at.desc()).all()
        return [FileRead.model_validate(r) for r in rows]

    def get(self, file_id: str) -> FileRead | None:
        # populate_existing: outra sessão pode ter revisado o arquivo
        row = self.db.get(FileUpload, file_id, populate_existing=True)
        return FileRead.model_validate(row) if row else None

    def create(self, data: dict[str, Any]) -> FileRead:
        row = FileUpload(**data)
        self.db.add(row)
        self._commit()
        self.db.refresh(row)
        return FileRead.model_validate(row)

    def update_status(self, file_id: str, status: str, expected_status: str | None = None) -> FileRead | None:
        query = self.db.query(FileUpload).filter(FileUpload.id == file_id)
        if expected_status is not None:
            query = query.filter(FileUpload.status == expected_status)

        updated = query.update({"status": status}, synchronize_session=False)
        self._commit()
        if not updated:
            return None
        return self.get(file_id)


# ============================================================
# Messages
# ============================================================

class SqlMessageRepository(_SqlRepository, MessageRepository):

    def conversation(self, user_id: str, other_id: str) -> list[MessageRead]:
        rows = (
            self.db.query(Message)
            .filter(_pair_filter(user_id, other_id))
            .order_by(Message.timestamp.asc())
            .all()
        )
        return [MessageRead.model_validate(r) for r in rows]

    def last_message(self, user_id: str, other_id: str) -> MessageRead | None:
        row = (
            self.db.query(Message)
            .filter(_pair_filter(user_id, other_id))
            .order_by(Message.timestamp.desc())
            .first()
        )
        return MessageRead.model_validate(row) if row else None

    def unread_count(self, user_id: str, other_id: str) -> int:
        return (
            self.db.query(func.count(Message.id))
            .filter(
                Message.sender_id == other_id,
                Message.receiver_id == user_id,
                Message.read.is_(False),
            )
            .scalar()
            or 0
        )

    def create(self, sender_id: str, receiver_id: str, text: str) -> MessageRead:
        row = Message(sender_id=sender_id, receiver_id=receiver_id, message=text)
        self.db.add(row)
        self._commit()
        self.db.refresh(row)
        return MessageRead.model_validate(row)

    def _mark(self, rows: list[Message]) -> list[MessageRead]:
        for row in rows:
            row.read = True
        self._commit()
        return [MessageRead.model_validate(r) for r in rows]

    def mark_read(self, message_ids: list[str]) -> list[MessageRead]:
        rows = (
            self.db.query(Message)
            .filter(Message.id.in_(message_ids), Message.read.is_(False))
            .all()
        )
        return self._mark(rows)

    def mark_conversation_read(self, user_id: str, other_id: str) -> list[MessageRead]:
        rows = (
            self.db.query(Message)
            .filter(
                Message.sender_id == other_id,
                Message.receiver_id == user_id,
                Message.read.is_(False),
            )
            .all()
        )
        return self._mark(rows)


# ============================================================
# Sessions / Preferences / Logs
# ============================================================

class SqlSessionRepository(_SqlRepository, SessionRepository):

    def create(self, user_id: str, ip_address: str | None, user_agent: str | None) -> SessionRead:
        now = utcnow()
        (
            self.db.query(UserSession)
            .filter(UserSession.user_id == user_id, UserSession.is_active.is_(True))
            .update({"is_active": False, "session_end": now}, synchronize_session=False)
        )
        row = UserSession(user_id=user_id, ip_address=ip_address, user_agent=user_agent, is_active=True)
        self.db.add(row)
        self._commit()
        self.db.refresh(row)
        return SessionRead.model_validate(row)

    def get(self, session_id: str) -> SessionRead | None:
        row = self.db.get(UserSession, session_id)
        return SessionRead.model_validate(row) if row else None

    def end(self, session_id: str) -> None:
        row = self.db.get(UserSession, session_id)
        if row is None:
            return
        row.is_active = False
        row.session_end = utcnow()
        self._commit()

    def list_active(self) -> list[ActiveSessionRead]:
        rows = (
            self.db.query(UserSession, Dealer)
            .outerjoin(Dealer, Dealer.id == UserSession.user_id)
            .filter(UserSession.is_active.is_(True))
            .order_by(UserSession.session_start.desc())
            .all()
        )
        result = []
        for session, dealer in rows:
            item = ActiveSessionRead.model_validate(session)
            if dealer is not None:
                item.dealer_name = dealer.name
                item.dealer_email = dealer.email
                item.dealer_profile_picture = dealer.profile_picture
            result.append(item)
        return result


class SqlPreferencesRepository(_SqlRepository, PreferencesRepository):

    def _row(self, user_id: str) -> UserPreferences | None:
        return self.db.query(UserPreferences).filter(UserPreferences.user_id == user_id).first()

    def get(self, user_id: str) -> PreferencesRead | None:
        row = self._row(user_id)
        return PreferencesRead.model_validate(row) if row else None

    def create_default(self, user_id: str) -> PreferencesRead | None:
        row = UserPreferences(user_id=user_id, **DEFAULT_PREFERENCES)
        self.db.add(row)
        try:
            self._commit()
        except IntegrityError:
            # já existe (user_id único)
            return None
        self.db.refresh(row)
        return PreferencesRead.model_validate(row)

    def update(self, user_id: str, data: dict[str, Any]) -> PreferencesRead | None:
        row = self._row(user_id)
        if row is None:
            return None
        for field, value in data.items():
            setattr(row, field, value)
        row.updated_at = utcnow()
        self._commit()
        self.db.refresh(row)
        return PreferencesRead.model_validate(row)


class SqlActivityLogRepository(_SqlRepository, ActivityLogRepository):

    def _add(self, row):
        self.db.add(row)
        self._commit()

    def log_login(self, user_id: str, ip_address: str | None) -> None:
        self._add(LoginLog(user_id=user_id, ip_address=ip_address))

    def log_upload(self, user_id: str, filename: str, folder: str) -> None:
        self._add(UploadLog(user_id=user_id, filename=filename, folder=folder))

    def log_download(self, user_id: str, file_id: str) -> None:
        self._add(DownloadLog(user_id=user_id, file_id=file_id))

    def log_chat(self, user_id: str, action: str, details: dict[str, Any]) -> None:
        self._add(ChatLog(user_id=user_id, action=action, details=details))


class SqlRepositories(Repositories):
    demo = False

    def __init__(self, db: Session):
        self.db = db
        self.dealers = SqlDealerRepository(db)
        self.files = SqlFileRepository(db)
        self.messages = SqlMessageRepository(db)
        self.sessions = SqlSessionRepository(db)
        self.preferences = SqlPreferencesRepository(db)
        self.logs = SqlActivityLogRepository(db)

    def ping(self) -> None:
        self.db.execute(select(Dealer.id).limit(1))
