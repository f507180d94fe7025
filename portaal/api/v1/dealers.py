# file: portaal/api/v1/dealers.py

import logging
from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status

from portaal.api.deps import Identity, get_identity, get_repositories, get_storage, require_admin
from portaal.repositories import Repositories
from portaal.schemas.dealers import DealerCreate, DealerPresence, DealerRead, DealerStats, DealerUpdate
from portaal.services import dealers_service, user_management_service
from portaal.utils.clock import utcnow
from portaal.utils.storage_client import StorageClient

router = APIRouter()
logger = logging.getLogger("dealers_api")


@router.get("", response_model=list[DealerPresence])
def list_dealers(
    include_inactive: bool = Query(False),
    repos: Repositories = Depends(get_repositories),
):
    now = utcnow()
    dealers = dealers_service.list_dealers(repos, include_inactive=include_inactive)
    return [dealers_service.with_presence(d, now) for d in dealers]


@router.get("/search", response_model=list[DealerRead])
def search_dealers(
    q: str = Query("", description="Nome, email ou empresa"),
    repos: Repositories = Depends(get_repositories),
):
    return user_management_service.search_dealers(repos, q)


@router.get("/online", response_model=list[DealerRead])
def online_dealers(repos: Repositories = Depends(get_repositories)):
    return dealers_service.get_online_dealers(repos)


@router.get("/stats", response_model=DealerStats)
def dealer_stats(
    repos: Repositories = Depends(get_repositories),
    _admin: Identity = Depends(require_admin),
):
    return user_management_service.get_dealer_stats(repos)


@router.get("/{dealer_id}", response_model=DealerPresence)
def get_dealer(dealer_id: str, repos: Repositories = Depends(get_repositories)):
    dealer = dealers_service.get_dealer(repos, dealer_id)
    if dealer is None:
        raise HTTPException(status_code=404, detail="Dealer not found")
    return dealers_service.with_presence(dealer)


@router.post("", response_model=DealerRead, status_code=status.HTTP_201_CREATED)
def create_dealer(
    payload: DealerCreate,
    repos: Repositories = Depends(get_repositories),
    admin: Identity = Depends(require_admin),
):
    logger.info(f"[DealersAPI] Criação solicitada por admin={admin.dealer_id}")
    return user_management_service.create_dealer(repos, payload)


@router.patch("/{dealer_id}", response_model=DealerRead)
def update_dealer(
    dealer_id: str,
    payload: DealerUpdate,
    repos: Repositories = Depends(get_repositories),
    _admin: Identity = Depends(require_admin),
):
    return user_management_service.update_dealer(repos, dealer_id, payload)


@router.delete("/{dealer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_dealer(
    dealer_id: str,
    repos: Repositories = Depends(get_repositories),
    admin: Identity = Depends(require_admin),
):
    if dealer_id == admin.dealer_id:
        raise HTTPException(status_code=409, detail="You cannot delete your own account")
    user_management_service.delete_dealer(repos, dealer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{dealer_id}/toggle-status", response_model=DealerRead)
def toggle_status(
    dealer_id: str,
    repos: Repositories = Depends(get_repositories),
    _admin: Identity = Depends(require_admin),
):
    return user_management_service.toggle_dealer_status(repos, dealer_id)


@router.post("/{dealer_id}/avatar", response_model=DealerRead)
async def upload_avatar(
    dealer_id: str,
    file: UploadFile = File(...),
    repos: Repositories = Depends(get_repositories),
    storage: StorageClient = Depends(get_storage),
    identity: Identity = Depends(get_identity),
):
    if identity.dealer_id != dealer_id and not identity.is_admin:
        raise HTTPException(status_code=403, detail="You can only change your own profile picture")

    content = await file.read()
    url = storage.upload_bytes(
        content,
        filename=file.filename or "avatar",
        folder=dealer_id,
        bucket=storage.settings.AVATARS_BUCKET,
        mime=file.content_type,
    )
    return dealers_service.update_profile_picture(repos, dealer_id, url)
