import logging
from fastapi import APIRouter, Request

from portaal.core.errors import is_database_not_setup
from portaal.schemas.status import SetupStatus

router = APIRouter()
logger = logging.getLogger("status_api")


@router.get("", response_model=SetupStatus)
def setup_status(request: Request):
    settings = request.app.state.settings
    provider = request.app.state.repositories

    ready = False
    with provider.open() as repos:
        try:
            repos.ping()
            ready = True
        except Exception as e:
            if is_database_not_setup(e):
                logger.warning(f"⚠️ [Status] Banco sem schema ou inacessível: {e}")
            else:
                logger.error(f"❌ [Status] Falha verificando banco: {e}")

    return SetupStatus(
        demo_mode=provider.demo,
        database_configured=settings.database_configured,
        database_ready=ready and not provider.demo,
        storage_configured=request.app.state.storage.configured,
        realtime_backend=request.app.state.notifier.name,
    )
