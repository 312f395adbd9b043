import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.errors import AuthenticationError
from app.services.notifications import NotificationChannel
from app.services.tokens import TokenService

logger = logging.getLogger(__name__)

router = APIRouter()

JOIN_ADMIN_EVENT = "join_admin_notifications"


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket):
    """
    Clients send {"event": "join_admin_notifications", "token": "<jwt>"}.
    Admin tokens get "join_success" and start receiving events; anything
    else gets "join_failure". The socket stays open either way.
    """
    channel: NotificationChannel = websocket.app.state.channel
    tokens: TokenService = websocket.app.state.token_service

    await websocket.accept()
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"event": "error", "data": {"message": "Expected a JSON message"}})
                continue

            if not isinstance(message, dict) or message.get("event") != JOIN_ADMIN_EVENT:
                continue

            try:
                identity = tokens.verify(message.get("token") or "")
            except AuthenticationError as e:
                logger.info("Admin notifications join with bad token: %s", e.message)
                identity = None
            await channel.join_admin_group(websocket, identity)
    except WebSocketDisconnect:
        pass
    finally:
        await channel.leave_all(websocket)
