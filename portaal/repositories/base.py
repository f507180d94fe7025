# file: portaal/repositories/base.py

"""
Contratos de repositório por entidade.

Duas implementações: SQLAlchemy (banco configurado) e memória
(modo demo / testes). Todas devolvem schemas pydantic, nunca linhas ORM.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from portaal.schemas.dealers import DealerRead, DealerStats
from portaal.schemas.files import FileRead
from portaal.schemas.messages import MessageRead
from portaal.schemas.preferences import PreferencesRead
from portaal.schemas.sessions import ActiveSessionRead, SessionRead

SEARCH_LIMIT = 20


class DealerRepository(ABC):
    @abstractmethod
    def list(self, include_inactive: bool = False) -> list[DealerRead]:
        """Mais recentes (registration_date) primeiro."""

    @abstractmethod
    def get(self, dealer_id: str) -> DealerRead | None: ...

    @abstractmethod
    def get_by_email(self, email: str) -> DealerRead | None: ...

    @abstractmethod
    def search(self, term: str, limit: int = SEARCH_LIMIT) -> list[DealerRead]:
        """Busca case-insensitive em name/email/company, só ativos."""

    @abstractmethod
    def create(self, data: dict[str, Any]) -> DealerRead:
        """Levanta DealerConflictError se o email já existir."""

    @abstractmethod
    def update(self, dealer_id: str, data: dict[str, Any]) -> DealerRead | None: ...

    @abstractmethod
    def delete(self, dealer_id: str) -> bool: ...

    @abstractmethod
    def list_online(self, since: datetime) -> list[DealerRead]:
        """Ativos com last_login >= since, last_login desc."""

    @abstractmethod
    def stats(self, new_since: datetime, online_since: datetime) -> DealerStats:
        """online_now conta ativos com last_login estritamente depois de online_since."""


class FileRepository(ABC):
    @abstractmethod
    def list(self, status: str | None = None, user_id: str | None = None) -> list[FileRead]:
        """Mais recentes primeiro; filtros opcionais."""

    @abstractmethod
    def get(self, file_id: str) -> FileRead | None: ...

    @abstractmethod
    def create(self, data: dict[str, Any]) -> FileRead: ...

    @abstractmethod
    def update_status(self, file_id: str, status: str, expected_status: str | None = None) -> FileRead | None:
        """
        Escrita condicional: com expected_status só altera se o status
        atual ainda for esse. None se nenhuma linha mudou.
        """


class MessageRepository(ABC):
    @abstractmethod
    def conversation(self, user_id: str, other_id: str) -> list[MessageRead]:
        """Histórico do par em ambas as direções, timestamp asc."""

    @abstractmethod
    def last_message(self, user_id: str, other_id: str) -> MessageRead | None: ...

    @abstractmethod
    def unread_count(self, user_id: str, other_id: str) -> int:
        """Não lidas enviadas por other_id para user_id."""

    @abstractmethod
    def create(self, sender_id: str, receiver_id: str, text: str) -> MessageRead: ...

    @abstractmethod
    def mark_read(self, message_ids: list[str]) -> list[MessageRead]:
        """Devolve apenas as mensagens que mudaram."""

    @abstractmethod
    def mark_conversation_read(self, user_id: str, other_id: str) -> list[MessageRead]: ...


class SessionRepository(ABC):
    @abstractmethod
    def create(self, user_id: str, ip_address: str | None, user_agent: str | None) -> SessionRead:
        """Encerra as sessões ativas do usuário e abre uma nova."""

    @abstractmethod
    def get(self, session_id: str) -> SessionRead | None: ...

    @abstractmethod
    def end(self, session_id: str) -> None: ...

    @abstractmethod
    def list_active(self) -> list[ActiveSessionRead]: ...


class PreferencesRepository(ABC):
    @abstractmethod
    def get(self, user_id: str) -> PreferencesRead | None: ...

    @abstractmethod
    def create_default(self, user_id: str) -> PreferencesRead | None:
        """None se já existir."""

    @abstractmethod
    def update(self, user_id: str, data: dict[str, Any]) -> PreferencesRead | None: ...


class ActivityLogRepository(ABC):
    @abstractmethod
    def log_login(self, user_id: str, ip_address: str | None) -> None: ...

    @abstractmethod
    def log_upload(self, user_id: str, filename: str, folder: str) -> None: ...

    @abstractmethod
    def log_download(self, user_id: str, file_id: str) -> None: ...

    @abstractmethod
    def log_chat(self, user_id: str, action: str, details: dict[str, Any]) -> None: ...


class Repositories(ABC):
    """
    Pacote de repositórios injetado nos services.
    `demo` indica que não há banco configurado.
    """

    dealers: DealerRepository
    files: FileRepository
    messages: MessageRepository
    sessions: SessionRepository
    preferences: PreferencesRepository
    logs: ActivityLogRepository
    demo: bool = False

    @abstractmethod
    def ping(self) -> None:
        """Levanta se as tabelas não estiverem acessíveis."""
