from __future__ import annotations

from sqlalchemy.orm import Session

from app.repositories.clients import ClientRepository
from app.repositories.publications import PublicationRepository
from app.repositories.users import UserRepository
from app.utils.constants import PublicationStatus

TOP_PUBLICATIONS = 5


def _zero_filled(counts: dict[str, int]) -> dict[str, int]:
    return {s.value: counts.get(s.value, 0) for s in PublicationStatus}


def admin_stats(db: Session) -> dict:
    pubs = PublicationRepository(db)
    clients = ClientRepository(db)
    return {
        "total_users": UserRepository(db).count_all(),
        "total_clients": clients.count_all(),
        "active_clients": clients.count_all(active_only=True),
        "total_publications": pubs.count_all(),
        "publications_by_status": _zero_filled(pubs.count_by_status()),
    }


def client_stats(db: Session, client_id: int) -> dict:
    pubs = PublicationRepository(db)
    return {
        "total_publications": pubs.count_all(client_id),
        "publications_by_status": _zero_filled(pubs.count_by_status(client_id)),
        "top_publications": list(pubs.top_by_engagement(client_id, limit=TOP_PUBLICATIONS)),
    }
