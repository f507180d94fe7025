from fastapi import APIRouter

from .status import router as status_router
from .sessions import router as sessions_router
from .dealers import router as dealers_router
from .files import router as files_router
from .chat import router as chat_router
from .presence import router as presence_router
from .preferences import router as preferences_router

api_router = APIRouter()

# ========== Configuração ==========================
api_router.include_router(status_router, prefix="/status", tags=["status"])

# ========== Identidade ============================
api_router.include_router(sessions_router, prefix="/sessions", tags=["sessions"])
api_router.include_router(preferences_router, prefix="/preferences", tags=["preferences"])

# ========== Dealers / presença ====================
api_router.include_router(dealers_router, prefix="/dealers", tags=["dealers"])
api_router.include_router(presence_router, prefix="/presence", tags=["presence"])

# ========== Arquivos ==============================
api_router.include_router(files_router, prefix="/files", tags=["files"])

# ========== Chat ==================================
api_router.include_router(chat_router, prefix="/chat", tags=["chat"])
