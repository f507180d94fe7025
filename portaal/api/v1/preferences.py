from fastapi import APIRouter, Depends

from portaal.api.deps import Identity, get_identity, get_repositories
from portaal.repositories import Repositories
from portaal.schemas.preferences import PreferencesRead, PreferencesUpdate
from portaal.services import user_management_service

router = APIRouter()


@router.get("", response_model=PreferencesRead)
def read_preferences(
    repos: Repositories = Depends(get_repositories),
    identity: Identity = Depends(get_identity),
):
    prefs = user_management_service.get_user_preferences(repos, identity.dealer_id)
    # falha de leitura: devolve os padrões
    return prefs or PreferencesRead(user_id=identity.dealer_id)


@router.patch("", response_model=PreferencesRead)
def update_preferences(
    payload: PreferencesUpdate,
    repos: Repositories = Depends(get_repositories),
    identity: Identity = Depends(get_identity),
):
    return user_management_service.update_user_preferences(repos, identity.dealer_id, payload)
