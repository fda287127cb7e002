"""WebSocket relay for call sessions.

Observers of a session (the caller plus anyone watching) join the same
room. Raw user text is relayed to the other members of the room. The relay
is not authoritative: persisted session state comes only from the REST
endpoints.
"""

import logging
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Manages WebSocket connections grouped by session id.

    Each session can have several observers.
    """

    def __init__(self):
        """Initialize the connection manager."""
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, session_id: str, websocket: WebSocket) -> None:
        """
        Accept and register a new WebSocket connection.

        Args:
            session_id: Session the observer joins
            websocket: The WebSocket connection
        """
        await websocket.accept()
        self.active_connections.setdefault(session_id, []).append(websocket)
        logger.info(f"WebSocket joined session: {session_id}")

    def disconnect(self, session_id: str, websocket: WebSocket) -> None:
        """
        Remove a WebSocket connection from a session room.

        Args:
            session_id: Session identifier
            websocket: The connection to drop
        """
        room = self.active_connections.get(session_id)
        if not room:
            return
        if websocket in room:
            room.remove(websocket)
        if not room:
            del self.active_connections[session_id]
        logger.info(f"WebSocket left session: {session_id}")

    async def broadcast_to_session(
        self,
        session_id: str,
        payload: Dict[str, Any],
        exclude: Optional[WebSocket] = None,
    ) -> int:
        """
        Send a JSON payload to every observer of a session.

        Args:
            session_id: Session identifier
            payload: JSON-serializable message
            exclude: Connection that should not receive it (usually the sender)

        Returns:
            Number of observers the payload reached
        """
        delivered = 0
        for websocket in list(self.active_connections.get(session_id, [])):
            if websocket is exclude:
                continue
            try:
                await websocket.send_json(payload)
                delivered += 1
            except Exception as e:
                logger.error(f"Error relaying to session {session_id}: {e}")
                self.disconnect(session_id, websocket)
        return delivered

    async def send_error(self, websocket: WebSocket, error: str) -> None:
        """Send an error frame to a single connection."""
        await websocket.send_json({"type": "error", "content": error})

    def observer_count(self, session_id: str) -> int:
        return len(self.active_connections.get(session_id, []))

    def get_active_sessions(self) -> Set[str]:
        """Get the set of sessions with at least one observer."""
        return set(self.active_connections.keys())


# Global connection manager instance
manager = ConnectionManager()
