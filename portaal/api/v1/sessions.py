# file: portaal/api/v1/sessions.py

import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from portaal.api.deps import Identity, get_identity, get_repositories, require_admin
from portaal.repositories import Repositories
from portaal.schemas.dealers import DealerPresence
from portaal.schemas.sessions import ActiveSessionRead, SessionCreate, SessionRead
from portaal.services import dealers_service, user_management_service

router = APIRouter()
logger = logging.getLogger("sessions_api")


@router.post("", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
def open_session(
    payload: SessionCreate,
    request: Request,
    repos: Repositories = Depends(get_repositories),
):
    """
    Troca de usuário sem autenticação: abre uma sessão para o dealer
    escolhido. O id devolvido vai no header X-Session-Id.
    """
    ip_address = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")

    return user_management_service.create_session(repos, payload.dealer_id, ip_address, user_agent)


@router.get("/me", response_model=DealerPresence)
def whoami(identity: Identity = Depends(get_identity)):
    return dealers_service.with_presence(identity.dealer)


@router.get("/active", response_model=list[ActiveSessionRead])
def active_sessions(
    repos: Repositories = Depends(get_repositories),
    _admin: Identity = Depends(require_admin),
):
    return user_management_service.get_active_sessions(repos)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def close_session(
    session_id: str,
    repos: Repositories = Depends(get_repositories),
    identity: Identity = Depends(get_identity),
):
    session = user_management_service.get_session(repos, session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    if session.user_id != identity.dealer_id and not identity.is_admin:
        raise HTTPException(status_code=403, detail="Not your session")

    user_management_service.end_session(repos, session_id)
    logger.info(f"[SessionsAPI] Sessão encerrada session={session_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
