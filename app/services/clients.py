from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy.orm import Session

from app.errors import NotFoundError
from app.models.client import Client
from app.repositories.clients import ClientRepository
from app.repositories.media import MediaRepository
from app.services.storage import LocalMediaStore
from app.services.tokens import Identity

logger = logging.getLogger(__name__)


def list_clients(db: Session) -> Sequence[Client]:
    return ClientRepository(db).list_all()


def get_client(db: Session, client_id: int) -> Client:
    client = ClientRepository(db).find_by_id(client_id)
    if client is None:
        raise NotFoundError("Client not found")
    return client


def get_own_client(db: Session, identity: Identity) -> Client:
    if identity.client_id is None:
        raise NotFoundError("No client account for this user")
    return get_client(db, identity.client_id)


def delete_client(db: Session, store: LocalMediaStore, client_id: int) -> int:
    """
    Hard delete: the tenant's login user, the tenant, and everything it owns.
    Returns how many media files were removed from disk.
    """
    client = get_client(db, client_id)
    filenames = MediaRepository(db).filenames_for_client(client.id)

    removed = store.remove_many(filenames)
    logger.info("Removed %d/%d media files of client %s", removed, len(filenames), client.id)

    # the user owns the client row; deleting it cascades all the way down
    db.delete(client.user)
    db.commit()
    logger.info("Client %s deleted", client_id)
    return removed
