# file: portaal/services/dealers_service.py

import logging
from datetime import datetime, timedelta

from portaal.core.errors import NotConfiguredError, NotFoundError, translate_write_error
from portaal.repositories.base import Repositories
from portaal.schemas.dealers import DealerPresence, DealerRead
from portaal.utils.clock import as_utc, utcnow

logger = logging.getLogger("dealers_service")

# Heurística de presença: login nos últimos 5 minutos
ONLINE_WINDOW = timedelta(minutes=5)


# ============================================================
# Presença
# ============================================================

def is_online(dealer: DealerRead, now: datetime | None = None) -> bool:
    """
    Online se last_login estiver estritamente dentro da janela.
    """
    if not dealer.last_login:
        return False
    now = as_utc(now) if now is not None else utcnow()
    return now - as_utc(dealer.last_login) < ONLINE_WINDOW


def with_presence(dealer: DealerRead, now: datetime | None = None) -> DealerPresence:
    return DealerPresence(**dealer.model_dump(), online=is_online(dealer, now))


def get_online_dealers(repos: Repositories, now: datetime | None = None) -> list[DealerRead]:
    now = as_utc(now) if now is not None else utcnow()
    try:
        dealers = repos.dealers.list_online(now - ONLINE_WINDOW)
    except Exception as e:
        logger.warning(f"⚠️ [Dealers] Falha buscando dealers online: {e}")
        return []

    # list_online usa >=; a borda exata da janela conta como offline
    return [d for d in dealers if is_online(d, now)]


def touch_last_login(repos: Repositories, dealer_id: str):
    """
    Best-effort: nunca propaga falha.
    """
    if repos.demo:
        return

    now = utcnow()
    try:
        repos.dealers.update(dealer_id, {"last_login": now, "last_activity": now})
    except Exception as e:
        logger.warning(f"⚠️ [Dealers] Falha atualizando last_login dealer={dealer_id}: {e}")


# ============================================================
# Leitura
# ============================================================

def list_dealers(repos: Repositories, include_inactive: bool = False) -> list[DealerRead]:
    try:
        return repos.dealers.list(include_inactive=include_inactive)
    except Exception as e:
        logger.error(f"❌ [Dealers] Falha listando dealers: {e}")
        return []


def get_dealer(repos: Repositories, dealer_id: str) -> DealerRead | None:
    try:
        return repos.dealers.get(dealer_id)
    except Exception as e:
        logger.warning(f"⚠️ [Dealers] Falha buscando dealer={dealer_id}: {e}")
        return None


# ============================================================
# Escrita
# ============================================================

def update_profile_picture(repos: Repositories, dealer_id: str, url: str) -> DealerRead:
    if repos.demo:
        raise NotConfiguredError()

    try:
        dealer = repos.dealers.update(dealer_id, {"profile_picture": url})
    except Exception as e:
        logger.error(f"❌ [Dealers] Falha atualizando foto dealer={dealer_id}: {e}")
        raise translate_write_error(e, "update profile picture")

    if dealer is None:
        raise NotFoundError("Dealer not found")

    logger.info(f"[Dealers] Foto atualizada dealer={dealer_id}")
    return dealer
