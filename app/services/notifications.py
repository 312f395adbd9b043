"""
In-memory notification channel.

Connections join named groups; a broadcast fans a single ``{"event", "data"}``
message out to every member of a group. Sockets that fail to receive are
pruned. Delivery is best-effort and nothing is persisted, so a restart
drops every membership.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Protocol, Set

from app.services.tokens import Identity
from app.utils.constants import ADMIN_NOTIFICATIONS_GROUP, NEW_COMMENT_EVENT, Role

logger = logging.getLogger(__name__)


class Connection(Protocol):
    async def send_json(self, data: Any) -> None: ...


@dataclass(frozen=True)
class CommentEvent:
    comment_id: int
    publication_id: int
    commenter_name: str
    message: str
    timestamp: datetime

    def as_payload(self) -> dict:
        return {
            "comment_id": self.comment_id,
            "publication_id": self.publication_id,
            "commenter_name": self.commenter_name,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


class NotificationChannel:
    def __init__(self):
        # group -> connections
        self._groups: Dict[str, Set[Connection]] = {}
        self._lock = asyncio.Lock()

    async def join(self, group: str, connection: Connection) -> None:
        async with self._lock:
            self._groups.setdefault(group, set()).add(connection)
            size = len(self._groups[group])
        logger.info("Connection joined %s (%d members)", group, size)

    async def leave_all(self, connection: Connection) -> None:
        async with self._lock:
            for group in list(self._groups):
                self._groups[group].discard(connection)
                if not self._groups[group]:
                    del self._groups[group]

    async def group_size(self, group: str) -> int:
        async with self._lock:
            return len(self._groups.get(group, set()))

    async def broadcast(self, group: str, event: str, payload: dict) -> int:
        """Send to every member of ``group``. Returns how many sends succeeded."""
        async with self._lock:
            members = set(self._groups.get(group, set()))
        if not members:
            logger.debug("No members in %s; %s not delivered", group, event)
            return 0

        message = {"event": event, "data": payload}
        delivered = 0
        dead = []
        for conn in members:
            try:
                await conn.send_json(message)
                delivered += 1
            except Exception as e:
                logger.debug("Dropping connection from %s: %s", group, e)
                dead.append(conn)

        if dead:
            async with self._lock:
                for conn in dead:
                    if group in self._groups:
                        self._groups[group].discard(conn)
                if group in self._groups and not self._groups[group]:
                    del self._groups[group]
        return delivered

    async def join_admin_group(self, connection: Connection, identity: Optional[Identity]) -> bool:
        if identity is None or identity.role != Role.ADMIN:
            await connection.send_json({"event": "join_failure", "data": {"message": "Admin privileges required"}})
            logger.warning("Rejected admin notifications join (user=%s)", identity.user_id if identity else None)
            return False

        await self.join(ADMIN_NOTIFICATIONS_GROUP, connection)
        await connection.send_json({"event": "join_success", "data": {"group": ADMIN_NOTIFICATIONS_GROUP}})
        return True

    async def notify_comment(self, event: CommentEvent) -> int:
        # runs after the response is sent; a failure here must not surface anywhere
        try:
            return await self.broadcast(ADMIN_NOTIFICATIONS_GROUP, NEW_COMMENT_EVENT, event.as_payload())
        except Exception:
            logger.exception("Failed to broadcast comment %s", event.comment_id)
            return 0
