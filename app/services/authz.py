from fastapi import Depends, Request
from sqlalchemy.orm import Session as DbSession

from app.database import get_db
from app.errors import AuthenticationError, AuthorizationError, NotFoundError
from app.models.publication import Publication
from app.repositories.clients import ClientRepository
from app.services.tokens import Identity, TokenService
from app.utils.constants import PublicationStatus, Role


def bearer_token(req: Request) -> str:
    header = req.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Not authenticated")
    return token.strip()


def get_current_identity(req: Request, db: DbSession = Depends(get_db)) -> Identity:
    tokens: TokenService = req.app.state.token_service
    identity = tokens.verify(bearer_token(req))

    if identity.role == Role.CLIENT:
        # deactivation applies to tokens issued before it
        client = ClientRepository(db).find_by_id(identity.client_id) if identity.client_id else None
        if client is None:
            raise AuthenticationError("Account no longer exists")
        if not client.is_active:
            raise AuthorizationError("Account is inactive. Contact the administrator.")
    return identity


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if identity.role != Role.ADMIN:
        raise AuthorizationError("Admin only")
    return identity


def require_client(identity: Identity = Depends(get_current_identity)) -> Identity:
    if identity.role != Role.CLIENT or identity.client_id is None:
        raise AuthorizationError("Client only")
    return identity


def ensure_can_view(identity: Identity, pub: Publication) -> None:
    """
    Admins see everything. A client sees its own PUBLISHED publications;
    another tenant's publication looks like it does not exist.
    """
    if identity.role == Role.ADMIN:
        return
    if pub.client_id != identity.client_id:
        raise NotFoundError("Publication not found")
    if pub.status != PublicationStatus.PUBLISHED:
        raise AuthorizationError("This publication is not available")


def ensure_can_list_client(identity: Identity, client_id: int) -> None:
    if identity.role != Role.ADMIN and identity.client_id != client_id:
        raise AuthorizationError("You can only view your own publications")
