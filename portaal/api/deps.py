# file: portaal/api/deps.py

from dataclasses import dataclass
from typing import Iterator

from fastapi import Depends, Header, HTTPException, Request, status

from portaal.repositories import Repositories, RepositoryProvider
from portaal.schemas.dealers import DealerRead
from portaal.services.dealers_service import get_dealer
from portaal.services.user_management_service import get_session
from portaal.utils.storage_client import StorageClient


@dataclass
class Identity:
    """
    Quem está usando o portal nesta requisição.
    Sem autenticação: vem de uma sessão aberta ou da troca de usuário.
    """
    dealer: DealerRead
    session_id: str | None = None

    @property
    def dealer_id(self) -> str:
        return self.dealer.id

    @property
    def is_admin(self) -> bool:
        return self.dealer.role == "admin"


def get_provider(request: Request) -> RepositoryProvider:
    return request.app.state.repositories


def get_repositories(provider: RepositoryProvider = Depends(get_provider)) -> Iterator[Repositories]:
    with provider.open() as repos:
        yield repos


def get_storage(request: Request) -> StorageClient:
    return request.app.state.storage


def resolve_identity(repos: Repositories, session_id: str | None, dealer_id: str | None) -> Identity | None:
    if session_id:
        session = get_session(repos, session_id)
        if session is None or not session.is_active:
            return None
        dealer = get_dealer(repos, session.user_id)
        return Identity(dealer=dealer, session_id=session.id) if dealer else None

    if dealer_id:
        dealer = get_dealer(repos, dealer_id)
        return Identity(dealer=dealer) if dealer else None

    return None


def get_optional_identity(
    x_session_id: str | None = Header(None),
    x_dealer_id: str | None = Header(None),
    repos: Repositories = Depends(get_repositories),
) -> Identity | None:
    if not x_session_id and not x_dealer_id:
        return None

    identity = resolve_identity(repos, x_session_id, x_dealer_id)
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown session or dealer")
    return identity


def get_identity(identity: Identity | None = Depends(get_optional_identity)) -> Identity:
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Select a dealer (X-Dealer-Id) or open a session (X-Session-Id)",
        )
    return identity


def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return identity
