from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.deps import get_media_store
from app.schemas.client import ClientOut
from app.services import clients as clients_service
from app.services.authz import get_current_identity, require_admin
from app.services.storage import LocalMediaStore
from app.services.tokens import Identity

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("", response_model=List[ClientOut])
def list_clients(db: Session = Depends(get_db), _: Identity = Depends(require_admin)):
    return clients_service.list_clients(db)


# declared before /{client_id} so "me" is not parsed as an id
@router.get("/me", response_model=ClientOut)
def my_client(db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    return clients_service.get_own_client(db, identity)


@router.get("/{client_id}", response_model=ClientOut)
def get_client(client_id: int, db: Session = Depends(get_db), _: Identity = Depends(require_admin)):
    return clients_service.get_client(db, client_id)


@router.delete("/{client_id}")
def delete_client(
    client_id: int,
    db: Session = Depends(get_db),
    store: LocalMediaStore = Depends(get_media_store),
    _: Identity = Depends(require_admin),
):
    removed = clients_service.delete_client(db, store, client_id)
    return {"message": "Client deleted", "media_files_removed": removed}
