from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.deps import get_lifecycle
from app.repositories.publications import PublicationRepository
from app.schemas.publication import PublicationCreate, PublicationOut, PublicationStatusUpdate, PublicationUpdate
from app.services.authz import ensure_can_list_client, ensure_can_view, get_current_identity, require_admin
from app.services.lifecycle import PublicationLifecycle
from app.services.state_machine import parse_status
from app.services.tokens import Identity

router = APIRouter(tags=["publications"])


@router.post("/clients/{client_id}/publications", response_model=PublicationOut, status_code=201)
def create_publication(
    client_id: int,
    payload: PublicationCreate,
    lifecycle: PublicationLifecycle = Depends(get_lifecycle),
    _: Identity = Depends(require_admin),
):
    return lifecycle.create(
        client_id,
        title=payload.title,
        content_type=payload.content_type,
        publish_date=payload.publish_date,
        status=payload.status,
    )


@router.get("/clients/{client_id}/publications", response_model=List[PublicationOut])
def list_client_publications(
    client_id: int,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    ensure_can_list_client(identity, client_id)
    return PublicationRepository(db).find_all_by_client(
        client_id,
        viewer_role=identity.role,
        status=parse_status(status) if status else None,
    )


# declared before /publications/{publication_id}
@router.get("/publications/admin", response_model=List[PublicationOut])
def list_all_publications(db: Session = Depends(get_db), _: Identity = Depends(require_admin)):
    return PublicationRepository(db).list_all()


@router.get("/publications/{publication_id}", response_model=PublicationOut)
def get_publication(
    publication_id: int,
    lifecycle: PublicationLifecycle = Depends(get_lifecycle),
    identity: Identity = Depends(get_current_identity),
):
    pub = lifecycle.get(publication_id)
    ensure_can_view(identity, pub)
    return pub


@router.put("/publications/{publication_id}", response_model=PublicationOut)
def update_publication(
    publication_id: int,
    payload: PublicationUpdate,
    lifecycle: PublicationLifecycle = Depends(get_lifecycle),
    _: Identity = Depends(require_admin),
):
    return lifecycle.update_fields(publication_id, payload.model_dump(exclude_unset=True))


@router.patch("/publications/{publication_id}/status", response_model=PublicationOut)
def update_publication_status(
    publication_id: int,
    payload: PublicationStatusUpdate,
    lifecycle: PublicationLifecycle = Depends(get_lifecycle),
    _: Identity = Depends(require_admin),
):
    return lifecycle.update_status(publication_id, payload.status)


@router.delete("/publications/{publication_id}")
def delete_publication(
    publication_id: int,
    lifecycle: PublicationLifecycle = Depends(get_lifecycle),
    _: Identity = Depends(require_admin),
):
    lifecycle.delete(publication_id)
    return {"message": "Publication deleted"}
