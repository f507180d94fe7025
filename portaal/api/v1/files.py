# file: portaal/api/v1/files.py

import logging
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import RedirectResponse

from portaal.api.deps import Identity, get_identity, get_optional_identity, get_repositories, get_storage, require_admin
from portaal.repositories import Repositories
from portaal.schemas.files import FileScope, FileStatusUpdate, FileView
from portaal.services import files_service
from portaal.services.upload_service import UploadItem, handle_upload
from portaal.utils.storage_client import StorageClient

router = APIRouter()
logger = logging.getLogger("files_api")


@router.get("", response_model=list[FileView])
def list_files(
    scope: FileScope = Query("approved", description="all (admin), mine ou approved"),
    repos: Repositories = Depends(get_repositories),
    identity: Identity | None = Depends(get_optional_identity),
):
    if scope == "all":
        if identity is None or not identity.is_admin:
            raise HTTPException(status_code=403, detail="Admin role required")
        files = files_service.list_all_files(repos)
    elif scope == "mine":
        if identity is None:
            raise HTTPException(status_code=401, detail="Select a dealer first")
        files = files_service.list_user_files(repos, identity.dealer_id)
    else:
        files = files_service.list_approved_files(repos)

    # só admin revisa; para os demais nenhuma ação é oferecida
    views = [files_service.to_view(f) for f in files]
    if identity is None or not identity.is_admin:
        for view in views:
            view.allowed_actions = []
    return views


@router.post("/upload", response_model=list[FileView], status_code=status.HTTP_201_CREATED)
async def upload_files(
    files: list[UploadFile] = File(...),
    folder: str = Form(...),
    repos: Repositories = Depends(get_repositories),
    storage: StorageClient = Depends(get_storage),
    identity: Identity = Depends(get_identity),
):
    if not folder.strip():
        raise HTTPException(status_code=422, detail="Folder name is required")

    items = [
        UploadItem(filename=f.filename or "file", content=await f.read(), mime=f.content_type)
        for f in files
    ]
    logger.info(f"[FilesAPI] Upload de {len(items)} arquivo(s) user={identity.dealer_id} pasta={folder}")

    created = handle_upload(repos, storage, items, folder, identity.dealer_id)
    return [files_service.to_view(f) for f in created]


@router.patch("/{file_id}/status", response_model=FileView)
def update_status(
    file_id: str,
    payload: FileStatusUpdate,
    repos: Repositories = Depends(get_repositories),
    admin: Identity = Depends(require_admin),
):
    logger.info(f"[FilesAPI] admin={admin.dealer_id} file={file_id} → {payload.status}")
    file = files_service.update_file_status(repos, file_id, payload.status)
    return files_service.to_view(file)


@router.get("/{file_id}/download")
def download_file(
    file_id: str,
    repos: Repositories = Depends(get_repositories),
    identity: Identity = Depends(get_identity),
):
    file = files_service.get_file(repos, file_id)
    visible = file is not None and (
        file.status == "approved" or file.user_id == identity.dealer_id or identity.is_admin
    )
    if not visible:
        raise HTTPException(status_code=404, detail="File not found")

    files_service.record_download(repos, identity.dealer_id, file_id)
    return RedirectResponse(url=file.url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
