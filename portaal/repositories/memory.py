# file: portaal/repositories/memory.py

"""
Repositórios em memória: modo demo (sem banco) e testes.

Cada instância de `MemoryRepositories` tem o próprio estado; nada aqui é
singleton de módulo. Não há persistência nem reconciliação quando o banco
passa a ser configurado depois.
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from portaal.core.errors import DealerConflictError
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
from portaal.utils.clock import as_utc, utcnow

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _sort_key(value: datetime | None) -> datetime:
    value = as_utc(value)
    return value if value is not None else _EPOCH


def _copy(items):
    return [item.model_copy() for item in items]


class _MemoryStore:
    def __init__(self):
        self.lock = threading.RLock()
        self.dealers: dict[str, DealerRead] = {}
        self.files: dict[str, FileRead] = {}
        self.messages: dict[str, MessageRead] = {}
        self.sessions: dict[str, SessionRead] = {}
        self.preferences: dict[str, PreferencesRead] = {}
        self.login_logs: list[dict] = []
        self.upload_logs: list[dict] = []
        self.download_logs: list[dict] = []
        self.chat_logs: list[dict] = []


# ============================================================
# Dealers
# ============================================================

class MemoryDealerRepository(DealerRepository):
    def __init__(self, store: _MemoryStore):
        self.store = store

    def list(self, include_inactive: bool = False) -> list[DealerRead]:
        with self.store.lock:
            rows = [d for d in self.store.dealers.values() if include_inactive or d.is_active]
            rows.sort(key=lambda d: _sort_key(d.registration_date), reverse=True)
            return _copy(rows)

    def get(self, dealer_id: str) -> DealerRead | None:
        with self.store.lock:
            dealer = self.store.dealers.get(dealer_id)
            return dealer.model_copy() if dealer else None

    def get_by_email(self, email: str) -> DealerRead | None:
        with self.store.lock:
            for dealer in self.store.dealers.values():
                if dealer.email == email.lower():
                    return dealer.model_copy()
            return None

    def search(self, term: str, limit: int = SEARCH_LIMIT) -> list[DealerRead]:
        term = term.lower()
        with self.store.lock:
            rows = [
                d for d in self.store.dealers.values()
                if d.is_active and any(term in (v or "").lower() for v in (d.name, d.email, d.company))
            ]
            rows.sort(key=lambda d: d.name)
            return _copy(rows[:limit])

    def create(self, data: dict[str, Any]) -> DealerRead:
        now = utcnow()
        with self.store.lock:
            if self.get_by_email(data["email"]) is not None:
                raise DealerConflictError()
            payload = {"created_at": now, "registration_date": now, **data}
            dealer = DealerRead(id=data.get("id") or _new_id(), **{k: v for k, v in payload.items() if k != "id"})
            self.store.dealers[dealer.id] = dealer
            return dealer.model_copy()

    def update(self, dealer_id: str, data: dict[str, Any]) -> DealerRead | None:
        with self.store.lock:
            dealer = self.store.dealers.get(dealer_id)
            if dealer is None:
                return None
            email = data.get("email")
            if email is not None:
                existing = self.get_by_email(email)
                if existing is not None and existing.id != dealer_id:
                    raise DealerConflictError()
            updated = dealer.model_copy(update=data)
            self.store.dealers[dealer_id] = updated
            return updated.model_copy()

    def delete(self, dealer_id: str) -> bool:
        with self.store.lock:
            if self.store.dealers.pop(dealer_id, None) is None:
                return False
            # ON DELETE CASCADE
            for table in (self.store.files, self.store.sessions):
                for key in [k for k, v in table.items() if v.user_id == dealer_id]:
                    del table[key]
            for key in [
                k for k, m in self.store.messages.items()
                if dealer_id in (m.sender_id, m.receiver_id)
            ]:
                del self.store.messages[key]
            self.store.preferences.pop(dealer_id, None)
            return True

    def list_online(self, since: datetime) -> list[DealerRead]:
        since = as_utc(since)
        with self.store.lock:
            rows = [
                d for d in self.store.dealers.values()
                if d.status == "active" and d.last_login is not None and as_utc(d.last_login) >= since
            ]
            rows.sort(key=lambda d: _sort_key(d.last_login), reverse=True)
            return _copy(rows)

    def stats(self, new_since: datetime, online_since: datetime) -> DealerStats:
        new_since, online_since = as_utc(new_since), as_utc(online_since)
        with self.store.lock:
            dealers = list(self.store.dealers.values())
        return DealerStats(
            total=len(dealers),
            active=sum(1 for d in dealers if d.is_active),
            inactive=sum(1 for d in dealers if not d.is_active),
            new_this_week=sum(
                1 for d in dealers if d.registration_date and as_utc(d.registration_date) >= new_since
            ),
            online_now=sum(
                1 for d in dealers
                if d.status == "active" and d.last_login and as_utc(d.last_login) > online_since
            ),
        )


# ============================================================
# Files
# ============================================================

class MemoryFileRepository(FileRepository):
    def __init__(self, store: _MemoryStore):
        self.store = store

    def list(self, status: str | None = None, user_id: str | None = None) -> list[FileRead]:
        with self.store.lock:
            rows = [
                f for f in self.store.files.values()
                if (status is None or f.status == status) and (user_id is None or f.user_id == user_id)
            ]
            rows.sort(key=lambda f: _sort_key(f.created_at), reverse=True)
            return _copy(rows)

    def get(self, file_id: str) -> FileRead | None:
        with self.store.lock:
            row = self.store.files.get(file_id)
            return row.model_copy() if row else None

    def create(self, data: dict[str, Any]) -> FileRead:
        row = FileRead(id=data.get("id") or _new_id(), created_at=data.get("created_at") or utcnow(), **{
            k: v for k, v in data.items() if k not in ("id", "created_at")
        })
        with self.store.lock:
            self.store.files[row.id] = row
        return row.model_copy()

    def update_status(self, file_id: str, status: str, expected_status: str | None = None) -> FileRead | None:
        with self.store.lock:
            row = self.store.files.get(file_id)
            if row is None:
                return None
            if expected_status is not None and row.status != expected_status:
                return None
            updated = row.model_copy(update={"status": status})
            self.store.files[file_id] = updated
            return updated.model_copy()


# ============================================================
# Messages
# ============================================================

class MemoryMessageRepository(MessageRepository):
    def __init__(self, store: _MemoryStore):
        self.store = store

    def _pair(self, user_id: str, other_id: str) -> list[MessageRead]:
        pair = {(user_id, other_id), (other_id, user_id)}
        return [m for m in self.store.messages.values() if (m.sender_id, m.receiver_id) in pair]

    def conversation(self, user_id: str, other_id: str) -> list[MessageRead]:
        with self.store.lock:
            rows = self._pair(user_id, other_id)
            rows.sort(key=lambda m: _sort_key(m.timestamp))
            return _copy(rows)

    def last_message(self, user_id: str, other_id: str) -> MessageRead | None:
        with self.store.lock:
            rows = self._pair(user_id, other_id)
            if not rows:
                return None
            return max(rows, key=lambda m: _sort_key(m.timestamp)).model_copy()

    def unread_count(self, user_id: str, other_id: str) -> int:
        with self.store.lock:
            return sum(
                1 for m in self.store.messages.values()
                if m.sender_id == other_id and m.receiver_id == user_id and not m.read
            )

    def create(self, sender_id: str, receiver_id: str, text: str) -> MessageRead:
        row = MessageRead(
            id=_new_id(),
            sender_id=sender_id,
            receiver_id=receiver_id,
            message=text,
            timestamp=utcnow(),
            read=False,
        )
        with self.store.lock:
            self.store.messages[row.id] = row
        return row.model_copy()

    def _mark(self, rows: list[MessageRead]) -> list[MessageRead]:
        changed = []
        for row in rows:
            updated = row.model_copy(update={"read": True})
            self.store.messages[row.id] = updated
            changed.append(updated.model_copy())
        return changed

    def mark_read(self, message_ids: list[str]) -> list[MessageRead]:
        wanted = set(message_ids)
        with self.store.lock:
            rows = [m for m in self.store.messages.values() if m.id in wanted and not m.read]
            return self._mark(rows)

    def mark_conversation_read(self, user_id: str, other_id: str) -> list[MessageRead]:
        with self.store.lock:
            rows = [
                m for m in self.store.messages.values()
                if m.sender_id == other_id and m.receiver_id == user_id and not m.read
            ]
            return self._mark(rows)


# ============================================================
# Sessions / Preferences / Logs
# ============================================================

class MemorySessionRepository(SessionRepository):
    def __init__(self, store: _MemoryStore):
        self.store = store

    def create(self, user_id: str, ip_address: str | None, user_agent: str | None) -> SessionRead:
        now = utcnow()
        with self.store.lock:
            for key, session in list(self.store.sessions.items()):
                if session.user_id == user_id and session.is_active:
                    self.store.sessions[key] = session.model_copy(update={"is_active": False, "session_end": now})
            row = SessionRead(
                id=_new_id(),
                user_id=user_id,
                session_start=now,
                ip_address=ip_address,
                user_agent=user_agent,
                is_active=True,
            )
            self.store.sessions[row.id] = row
            return row.model_copy()

    def get(self, session_id: str) -> SessionRead | None:
        with self.store.lock:
            row = self.store.sessions.get(session_id)
            return row.model_copy() if row else None

    def end(self, session_id: str) -> None:
        with self.store.lock:
            row = self.store.sessions.get(session_id)
            if row is not None:
                self.store.sessions[session_id] = row.model_copy(
                    update={"is_active": False, "session_end": utcnow()}
                )

    def list_active(self) -> list[ActiveSessionRead]:
        with self.store.lock:
            rows = [s for s in self.store.sessions.values() if s.is_active]
            rows.sort(key=lambda s: _sort_key(s.session_start), reverse=True)
            result = []
            for session in rows:
                dealer = self.store.dealers.get(session.user_id)
                result.append(ActiveSessionRead(
                    **session.model_dump(),
                    dealer_name=dealer.name if dealer else None,
                    dealer_email=dealer.email if dealer else None,
                    dealer_profile_picture=dealer.profile_picture if dealer else None,
                ))
            return result


class MemoryPreferencesRepository(PreferencesRepository):
    def __init__(self, store: _MemoryStore):
        self.store = store

    def get(self, user_id: str) -> PreferencesRead | None:
        with self.store.lock:
            row = self.store.preferences.get(user_id)
            return row.model_copy() if row else None

    def create_default(self, user_id: str) -> PreferencesRead | None:
        now = utcnow()
        with self.store.lock:
            if user_id in self.store.preferences:
                return None
            row = PreferencesRead(id=_new_id(), user_id=user_id, created_at=now, updated_at=now, **DEFAULT_PREFERENCES)
            self.store.preferences[user_id] = row
            return row.model_copy()

    def update(self, user_id: str, data: dict[str, Any]) -> PreferencesRead | None:
        with self.store.lock:
            row = self.store.preferences.get(user_id)
            if row is None:
                return None
            updated = row.model_copy(update={**data, "updated_at": utcnow()})
            self.store.preferences[user_id] = updated
            return updated.model_copy()


class MemoryActivityLogRepository(ActivityLogRepository):
    def __init__(self, store: _MemoryStore):
        self.store = store

    def _append(self, table: list[dict], **row):
        with self.store.lock:
            table.append({"id": _new_id(), "timestamp": utcnow(), **row})

    def log_login(self, user_id: str, ip_address: str | None) -> None:
        self._append(self.store.login_logs, user_id=user_id, ip_address=ip_address)

    def log_upload(self, user_id: str, filename: str, folder: str) -> None:
        self._append(self.store.upload_logs, user_id=user_id, filename=filename, folder=folder)

    def log_download(self, user_id: str, file_id: str) -> None:
        self._append(self.store.download_logs, user_id=user_id, file_id=file_id)

    def log_chat(self, user_id: str, action: str, details: dict[str, Any]) -> None:
        self._append(self.store.chat_logs, user_id=user_id, action=action, details=details)


class MemoryRepositories(Repositories):
    def __init__(self, demo: bool = False):
        self.demo = demo
        self.store = _MemoryStore()
        self.dealers = MemoryDealerRepository(self.store)
        self.files = MemoryFileRepository(self.store)
        self.messages = MemoryMessageRepository(self.store)
        self.sessions = MemorySessionRepository(self.store)
        self.preferences = MemoryPreferencesRepository(self.store)
        self.logs = MemoryActivityLogRepository(self.store)

    def ping(self) -> None:
        return None


# ============================================================
# Dados de demonstração
# ============================================================

DEMO_ADMIN_ID = "demo-admin"
DEMO_DEALER_ID = "demo-dealer"
DEMO_MANAGER_ID = "demo-manager"


def build_demo_repositories() -> MemoryRepositories:
    """
    Pacote usado quando não há banco: três contas e cinco arquivos
    com status variados, para a UI continuar navegável.
    """
    repos = MemoryRepositories(demo=True)
    now = utcnow()

    for dealer_id, name, email, role, company in (
        (DEMO_ADMIN_ID, "Demo Beheerder", "admin@demo.local", "admin", "Dealer Portaal"),
        (DEMO_DEALER_ID, "Demo Dealer", "dealer@demo.local", "dealer", "Autohuis Demo"),
        (DEMO_MANAGER_ID, "Demo Manager", "manager@demo.local", "manager", "Autohuis Demo"),
    ):
        repos.dealers.create({
            "id": dealer_id,
            "name": name,
            "email": email,
            "role": role,
            "company": company,
            "status": "active",
            "is_active": True,
        })

    for offset_hours, owner, filename, folder, status in (
        (24, DEMO_DEALER_ID, "product-catalog.pdf", "Marketing Materials", "approved"),
        (12, DEMO_DEALER_ID, "price-list-2024.xlsx", "Price Lists", "pending"),
        (6, DEMO_MANAGER_ID, "technical-specs.pdf", "Documentation", "approved"),
        (3, DEMO_DEALER_ID, "installation-guide.pdf", "Documentation", "rejected"),
        (2, DEMO_ADMIN_ID, "warranty-info.pdf", "Legal", "pending"),
    ):
        text = filename.rsplit(".", 1)[-1].upper()
        repos.files.create({
            "user_id": owner,
            "filename": filename,
            "folder": folder,
            "status": status,
            "url": f"/placeholder.svg?height=200&width=200&text={text}",
            "created_at": now - timedelta(hours=offset_hours),
        })

    return repos
