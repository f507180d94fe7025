# file: portaal/services/user_management_service.py

"""
Administração de contas: CRUD de dealers com validação, status,
estatísticas, preferências e sessões.

Regras de erro:
- leituras devolvem vazio/padrão em caso de falha
- escritas de dealer levantam PortaalError com mensagem para o usuário
- preferências padrão e logs são best-effort
"""

import logging
import re
from datetime import timedelta

from portaal.core.errors import (
    DealerConflictError,
    InvalidInputError,
    NotConfiguredError,
    NotFoundError,
    OperationFailedError,
    PortaalError,
    is_database_not_setup,
    translate_write_error,
)
from portaal.repositories.base import Repositories
from portaal.schemas.dealers import DealerCreate, DealerRead, DealerStats, DealerUpdate
from portaal.schemas.preferences import PreferencesRead, PreferencesUpdate
from portaal.schemas.sessions import ActiveSessionRead, SessionRead
from portaal.services.dealers_service import ONLINE_WINDOW, get_dealer, touch_last_login
from portaal.utils.clock import utcnow

logger = logging.getLogger("user_management")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NEW_DEALER_WINDOW = timedelta(days=7)

_OPTIONAL_TEXT_FIELDS = ("phone", "company", "profile_picture", "notes")


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _validate_email(email: str):
    if not EMAIL_RE.match(email):
        raise InvalidInputError("Please enter a valid email address")


# ============================================================
# Dealers
# ============================================================

def create_dealer(repos: Repositories, data: DealerCreate) -> DealerRead:
    if repos.demo:
        raise NotConfiguredError(
            "Database not configured. Please set up your database environment variables."
        )

    name = (data.name or "").strip()
    email = (data.email or "").strip()

    if not name:
        raise InvalidInputError("Name is required")
    if not email:
        raise InvalidInputError("Email is required")
    _validate_email(email)

    now = utcnow()
    payload = {
        "name": name,
        "email": email.lower(),
        "role": data.role or "dealer",
        "status": "active",
        "is_active": True,
        "registration_date": now,
    }
    for field in _OPTIONAL_TEXT_FIELDS:
        payload[field] = _clean_optional(getattr(data, field))

    # checagem prévia só para dar mensagem amigável; o índice único garante
    try:
        existing = repos.dealers.get_by_email(payload["email"])
    except Exception as e:
        if not is_database_not_setup(e):
            logger.error(f"❌ [UserMgmt] Falha validando email={payload['email']}: {e}")
            raise OperationFailedError("Failed to validate email address")
        existing = None

    if existing is not None:
        raise DealerConflictError()

    try:
        dealer = repos.dealers.create(payload)
    except Exception as e:
        logger.error(f"❌ [UserMgmt] Falha criando dealer email={payload['email']}: {e}")
        raise translate_write_error(e, "create dealer")

    logger.info(f"[UserMgmt] Dealer criado: id={dealer.id} email={dealer.email}")

    create_default_preferences(repos, dealer.id)
    return dealer


def update_dealer(repos: Repositories, dealer_id: str, updates: DealerUpdate) -> DealerRead:
    if repos.demo:
        raise NotConfiguredError()

    fields = updates.model_dump(exclude_unset=True)

    if "name" in fields and not (fields["name"] or "").strip():
        raise InvalidInputError("Name cannot be empty")
    if "email" in fields:
        if not (fields["email"] or "").strip():
            raise InvalidInputError("Email cannot be empty")
        _validate_email(fields["email"].strip())

    payload = {}
    for field, value in fields.items():
        if field == "name":
            payload["name"] = value.strip()
        elif field == "email":
            payload["email"] = value.strip().lower()
        elif field in _OPTIONAL_TEXT_FIELDS:
            payload[field] = _clean_optional(value)
        elif value is not None:
            payload[field] = value

    # status e is_active andam juntos
    if "status" in payload and "is_active" not in payload:
        payload["is_active"] = payload["status"] == "active"
    elif "is_active" in payload and "status" not in payload:
        payload["status"] = "active" if payload["is_active"] else "inactive"

    try:
        dealer = repos.dealers.update(dealer_id, payload)
    except Exception as e:
        logger.error(f"❌ [UserMgmt] Falha atualizando dealer={dealer_id}: {e}")
        raise translate_write_error(e, "update dealer")

    if dealer is None:
        raise NotFoundError("Dealer not found")

    logger.info(f"[UserMgmt] Dealer atualizado: id={dealer_id} campos={sorted(payload)}")
    return dealer


def delete_dealer(repos: Repositories, dealer_id: str):
    if repos.demo:
        raise NotConfiguredError()

    try:
        deleted = repos.dealers.delete(dealer_id)
    except Exception as e:
        logger.error(f"❌ [UserMgmt] Falha removendo dealer={dealer_id}: {e}")
        raise translate_write_error(e, "delete dealer")

    if not deleted:
        raise NotFoundError("Dealer not found")

    logger.info(f"[UserMgmt] Dealer removido: id={dealer_id}")


def toggle_dealer_status(repos: Repositories, dealer_id: str) -> DealerRead:
    if repos.demo:
        raise NotConfiguredError()

    try:
        current = repos.dealers.get(dealer_id)
        if current is None:
            raise NotFoundError("Dealer not found")

        is_active = not current.is_active
        dealer = repos.dealers.update(dealer_id, {
            "is_active": is_active,
            "status": "active" if is_active else "inactive",
        })
    except PortaalError:
        raise
    except Exception as e:
        logger.error(f"❌ [UserMgmt] Falha alterando status dealer={dealer_id}: {e}")
        raise translate_write_error(e, "update dealer status")

    logger.info(f"[UserMgmt] Status alterado: id={dealer_id} status={dealer.status}")
    return dealer


def search_dealers(repos: Repositories, query: str) -> list[DealerRead]:
    term = (query or "").strip()
    if not term:
        return []

    try:
        return repos.dealers.search(term)
    except Exception as e:
        logger.error(f"❌ [UserMgmt] Falha na busca '{term}': {e}")
        return []


def get_dealer_stats(repos: Repositories) -> DealerStats:
    now = utcnow()
    try:
        return repos.dealers.stats(
            new_since=now - NEW_DEALER_WINDOW,
            online_since=now - ONLINE_WINDOW,
        )
    except Exception as e:
        logger.error(f"❌ [UserMgmt] Falha calculando estatísticas: {e}")
        return DealerStats()


# ============================================================
# Preferências
# ============================================================

def create_default_preferences(repos: Repositories, user_id: str):
    """
    Best-effort; duplicidade é ignorada.
    """
    try:
        repos.preferences.create_default(user_id)
    except Exception as e:
        logger.warning(f"⚠️ [UserMgmt] Falha criando preferências padrão user={user_id}: {e}")


def get_user_preferences(repos: Repositories, user_id: str) -> PreferencesRead | None:
    try:
        prefs = repos.preferences.get(user_id)
    except Exception as e:
        logger.error(f"❌ [UserMgmt] Falha buscando preferências user={user_id}: {e}")
        return None

    if prefs is not None:
        return prefs

    create_default_preferences(repos, user_id)
    now = utcnow()
    return PreferencesRead(user_id=user_id, created_at=now, updated_at=now)


def update_user_preferences(repos: Repositories, user_id: str, updates: PreferencesUpdate) -> PreferencesRead:
    if repos.demo:
        raise NotConfiguredError()

    fields = {k: v for k, v in updates.model_dump(exclude_unset=True).items() if v is not None}

    try:
        prefs = repos.preferences.update(user_id, fields)
        if prefs is None:
            repos.preferences.create_default(user_id)
            prefs = repos.preferences.update(user_id, fields)
    except Exception as e:
        logger.error(f"❌ [UserMgmt] Falha atualizando preferências user={user_id}: {e}")
        raise translate_write_error(e, "update preferences")

    if prefs is None:
        raise NotFoundError("Preferences not found")
    return prefs


# ============================================================
# Sessões
# ============================================================

def create_session(
    repos: Repositories,
    user_id: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SessionRead:
    if repos.demo:
        raise NotConfiguredError()

    if get_dealer(repos, user_id) is None:
        raise NotFoundError("Dealer not found")

    try:
        session = repos.sessions.create(user_id, ip_address, user_agent)
    except Exception as e:
        logger.error(f"❌ [UserMgmt] Falha criando sessão user={user_id}: {e}")
        raise translate_write_error(e, "create session")

    try:
        repos.logs.log_login(user_id, ip_address)
    except Exception as e:
        logger.warning(f"⚠️ [UserMgmt] Falha registrando login user={user_id}: {e}")

    touch_last_login(repos, user_id)

    logger.info(f"[UserMgmt] Sessão iniciada: session={session.id} user={user_id}")
    return session


def end_session(repos: Repositories, session_id: str):
    try:
        repos.sessions.end(session_id)
    except Exception as e:
        logger.warning(f"⚠️ [UserMgmt] Falha encerrando sessão={session_id}: {e}")


def get_session(repos: Repositories, session_id: str) -> SessionRead | None:
    try:
        return repos.sessions.get(session_id)
    except Exception as e:
        logger.warning(f"⚠️ [UserMgmt] Falha buscando sessão={session_id}: {e}")
        return None


def get_active_sessions(repos: Repositories) -> list[ActiveSessionRead]:
    try:
        return repos.sessions.list_active()
    except Exception as e:
        logger.error(f"❌ [UserMgmt] Falha listando sessões ativas: {e}")
        return []

