# file: portaal/services/files_service.py

import logging

from portaal.core.errors import InvalidTransitionError, NotFoundError, translate_write_error
from portaal.repositories.base import Repositories
from portaal.schemas.files import FileCreate, FileRead, FileView

logger = logging.getLogger("files_service")

# Ciclo de vida: pending → approved | rejected, uma única vez
ALLOWED_TRANSITIONS = {
    "pending": {"approved", "rejected"},
    "approved": set(),
    "rejected": set(),
}

REVIEW_ACTIONS = {"approve": "approved", "reject": "rejected"}


def allowed_actions(file: FileRead) -> list[str]:
    targets = ALLOWED_TRANSITIONS.get(file.status, set())
    return [action for action, status in REVIEW_ACTIONS.items() if status in targets]


def to_view(file: FileRead) -> FileView:
    return FileView(**file.model_dump(), allowed_actions=allowed_actions(file))


# ============================================================
# Leitura (3 escopos)
# ============================================================

def list_all_files(repos: Repositories) -> list[FileRead]:
    try:
        return repos.files.list()
    except Exception as e:
        logger.error(f"❌ [Files] Falha listando arquivos: {e}")
        return []


def list_user_files(repos: Repositories, user_id: str) -> list[FileRead]:
    try:
        return repos.files.list(user_id=user_id)
    except Exception as e:
        logger.error(f"❌ [Files] Falha listando arquivos user={user_id}: {e}")
        return []


def list_approved_files(repos: Repositories) -> list[FileRead]:
    try:
        return repos.files.list(status="approved")
    except Exception as e:
        logger.error(f"❌ [Files] Falha listando arquivos aprovados: {e}")
        return []


def get_file(repos: Repositories, file_id: str) -> FileRead | None:
    try:
        return repos.files.get(file_id)
    except Exception as e:
        logger.warning(f"⚠️ [Files] Falha buscando arquivo={file_id}: {e}")
        return None


# ============================================================
# Escrita
# ============================================================

def create_file(repos: Repositories, data: FileCreate) -> FileRead:
    try:
        file = repos.files.create(data.model_dump())
    except Exception as e:
        logger.error(f"❌ [Files] Falha registrando arquivo {data.filename}: {e}")
        raise translate_write_error(e, "create file")

    logger.info(f"[Files] Arquivo registrado id={file.id} status={file.status}")
    return file


def update_file_status(repos: Repositories, file_id: str, status: str) -> FileRead:
    current = get_file(repos, file_id)
    if current is None:
        raise NotFoundError("File not found")

    if status not in ALLOWED_TRANSITIONS.get(current.status, set()):
        raise InvalidTransitionError(
            f"Cannot change file status from {current.status} to {status}"
        )

    try:
        file = repos.files.update_status(file_id, status, expected_status=current.status)
    except Exception as e:
        logger.error(f"❌ [Files] Falha atualizando status arquivo={file_id}: {e}")
        raise translate_write_error(e, "update file status")

    if file is None:
        # outro admin revisou entre a leitura e a escrita
        latest = get_file(repos, file_id)
        if latest is None:
            raise NotFoundError("File not found")
        logger.warning(f"⚠️ [Files] Revisão concorrente arquivo={file_id}: já está {latest.status}")
        raise InvalidTransitionError(
            f"Cannot change file status from {latest.status} to {status}"
        )

    logger.info(f"[Files] Status alterado id={file_id} {current.status} → {status}")
    return file


def record_download(repos: Repositories, user_id: str, file_id: str):
    if repos.demo:
        return
    try:
        repos.logs.log_download(user_id, file_id)
    except Exception as e:
        logger.warning(f"⚠️ [Files] Falha registrando download user={user_id} file={file_id}: {e}")
