# file: portaal/services/upload_service.py

import logging
from dataclasses import dataclass

from portaal.repositories.base import Repositories
from portaal.schemas.files import FileCreate, FileRead
from portaal.services.files_service import create_file
from portaal.utils.storage_client import StorageClient

logger = logging.getLogger("upload_service")


@dataclass
class UploadItem:
    filename: str
    content: bytes
    mime: str | None = None


def handle_upload(
    repos: Repositories,
    storage: StorageClient,
    items: list[UploadItem],
    folder: str,
    user_id: str,
) -> list[FileRead]:
    """
    Para cada arquivo: PUT no storage, linha pendente, log de upload.
    Um arquivo com falha é logado e pulado; os demais seguem.
    """
    uploaded: list[FileRead] = []
    folder = folder.strip()

    for item in items:
        try:
            url = storage.upload_bytes(
                item.content,
                filename=item.filename,
                folder=folder,
                bucket=storage.settings.UPLOADS_BUCKET,
                mime=item.mime,
            )
            record = create_file(repos, FileCreate(
                user_id=user_id,
                filename=item.filename,
                folder=folder,
                status="pending",
                url=url,
            ))
            uploaded.append(record)
        except Exception as e:
            logger.error(f"❌ [Upload] Falha no arquivo {item.filename}: {e}")
            continue

        _log_upload(repos, user_id, item.filename, folder)

    logger.info(f"[Upload] {len(uploaded)}/{len(items)} arquivos enviados por user={user_id} pasta={folder}")
    return uploaded


def _log_upload(repos: Repositories, user_id: str, filename: str, folder: str):
    if repos.demo:
        return
    try:
        repos.logs.log_upload(user_id, filename, folder)
    except Exception as e:
        logger.warning(f"⚠️ [Upload] Falha registrando upload {filename}: {e}")
