from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session, selectinload

from app.models.client import Client


class ClientRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, client_id: int) -> Optional[Client]:
        return self.db.get(Client, client_id)

    def find_by_user_id(self, user_id: int) -> Optional[Client]:
        return self.db.execute(select(Client).where(Client.user_id == user_id)).scalars().first()

    def list_all(self) -> Sequence[Client]:
        q = select(Client).options(selectinload(Client.user)).order_by(desc(Client.created_at), desc(Client.id))
        return self.db.execute(q).scalars().all()

    def set_active(self, client: Client, active: bool) -> Client:
        client.is_active = active
        self.db.commit()
        self.db.refresh(client)
        return client

    def delete(self, client: Client) -> None:
        self.db.delete(client)
        self.db.commit()

    def count_all(self, *, active_only: bool = False) -> int:
        q = select(func.count(Client.id))
        if active_only:
            q = q.where(Client.is_active.is_(True))
        return int(self.db.execute(q).scalar_one())
