"""In-memory registry of chat sockets, one per connected user."""
import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ChatConnectionManager:
    """
    Maps user ids to their open WebSocket.

    Delivery is best effort: ``send_to_user`` returns False when the user is
    offline or the send fails, and the caller leaves the message undelivered.
    """

    def __init__(self):
        self._connections: Dict[int, WebSocket] = {}
        self._lock = asyncio.Lock()

    async def register(self, user_id: int, websocket: WebSocket) -> None:
        async with self._lock:
            previous = self._connections.get(user_id)
            self._connections[user_id] = websocket
        if previous is not None and previous is not websocket:
            logger.info(f"Replacing chat connection for user {user_id}")
        logger.info(f"Chat connected: user {user_id}")

    async def unregister(self, user_id: int, websocket: Optional[WebSocket] = None) -> None:
        """Forget the user's socket; a newer socket for the same user is kept."""
        async with self._lock:
            current = self._connections.get(user_id)
            if current is None or (websocket is not None and current is not websocket):
                return
            del self._connections[user_id]
        logger.info(f"Chat disconnected: user {user_id}")

    def is_connected(self, user_id: int) -> bool:
        return user_id in self._connections

    async def send_to_user(self, user_id: int, payload: Dict[str, Any]) -> bool:
        websocket = self._connections.get(user_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json(payload)
            return True
        except Exception as e:
            logger.error(f"Error sending to user {user_id}: {e}")
            await self.unregister(user_id, websocket)
            return False

    @property
    def online_users(self) -> list[int]:
        return list(self._connections)


manager = ChatConnectionManager()
