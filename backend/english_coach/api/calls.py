"""Call session API endpoints: start, process a message, end, relay."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel, Field

from ..core.clock import utcnow
from ..core.enums import CallChannel, SessionMode, Speaker
from ..core.errors import SessionNotFoundError
from ..db.models import Learner
from ..db.repositories import SqlLearnerStore, SqlSessionStore
from ..services.sessions import SessionManager, load_owned_session
from .auth import get_current_learner, learner_from_token
from .deps import get_learner_store, get_session_manager, get_session_store
from .websocket import manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/call", tags=["Calls"])


# ==============================================================================
# Pydantic Models
# ==============================================================================

class CallStart(BaseModel):
    """Start a new call session."""
    call_type: CallChannel = CallChannel.VOICE
    session_type: SessionMode = SessionMode.FREE_CONVERSATION


class CallMessage(BaseModel):
    """One learner utterance."""
    session_id: str = Field(min_length=1)
    message: str = Field(min_length=1)


class CallEnd(BaseModel):
    """End a call session."""
    session_id: str = Field(min_length=1)


# ==============================================================================
# Session Endpoints
# ==============================================================================

@router.post("/start", status_code=status.HTTP_201_CREATED)
async def start_call(
    request: CallStart,
    current_learner: Learner = Depends(get_current_learner),
    sessions: SessionManager = Depends(get_session_manager),
) -> dict[str, Any]:
    """Open a new session for the authenticated learner."""
    session_id = await sessions.start(
        owner_id=current_learner.id,
        channel=request.call_type,
        mode=request.session_type,
    )
    return {
        "session_id": session_id,
        "message": "Call session started",
        "call_type": request.call_type.value,
        "session_type": request.session_type.value,
        "websocket_url": f"/api/v1/call/ws/{session_id}",
    }


@router.post("/process")
async def process_message(
    request: CallMessage,
    current_learner: Learner = Depends(get_current_learner),
    sessions: SessionManager = Depends(get_session_manager),
) -> dict[str, Any]:
    """
    Send a learner message to the coach.

    Returns the coach reply and, when the reply carries a correction, the
    original and corrected text for immediate display.
    """
    outcome = await sessions.process_turn(
        session_id=request.session_id,
        caller_id=current_learner.id,
        user_text=request.message,
    )
    return {
        "response": outcome.reply,
        "has_correction": outcome.has_correction,
        "correction": outcome.correction,
        "error": outcome.error,
    }


@router.post("/end")
async def end_call(
    request: CallEnd,
    current_learner: Learner = Depends(get_current_learner),
    sessions: SessionManager = Depends(get_session_manager),
) -> dict[str, Any]:
    """Close the session and return its score and feedback."""
    summary = await sessions.end(request.session_id, current_learner.id)
    return {
        "message": "Call session ended",
        "session_id": summary.session_id,
        "duration": summary.duration_seconds,
        "mistakes_count": summary.mistakes_count,
        "overall_score": summary.overall_score,
        "feedback": summary.feedback,
    }


# ==============================================================================
# WebSocket Relay
# ==============================================================================

@router.websocket("/ws/{session_id}")
async def call_websocket(
    websocket: WebSocket,
    session_id: str,
    token: str = Query(...),
    learners: SqlLearnerStore = Depends(get_learner_store),
    sessions: SqlSessionStore = Depends(get_session_store),
):
    """
    Relay raw learner text to the other observers of a session.

    Only the session owner may join. Frames:
    ``{"type": "text-message", "message": "..."}`` is broadcast as
    ``{"type": "new-message", "speaker": "user", ...}``; anything else gets
    an error frame. Nothing received here is persisted.
    """
    try:
        learner = await learner_from_token(token, learners)
        await load_owned_session(sessions, session_id, learner.id)
    except (HTTPException, SessionNotFoundError):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(session_id, websocket)
    logger.info(f"Learner {learner.id} joined call {session_id}")

    try:
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                await manager.send_error(websocket, "Frames must be JSON")
                continue
            if not isinstance(data, dict):
                await manager.send_error(websocket, "Frames must be JSON objects")
                continue

            if data.get("type") != "text-message":
                await manager.send_error(websocket, f"Unsupported message type: {data.get('type')}")
                continue

            message = data.get("message")
            if not message:
                continue

            await manager.broadcast_to_session(
                session_id,
                {
                    "type": "new-message",
                    "speaker": Speaker.USER.value,
                    "message": message,
                    "timestamp": utcnow().isoformat(),
                },
                exclude=websocket,
            )

    except WebSocketDisconnect:
        logger.info(f"Learner {learner.id} left call {session_id}")
    finally:
        manager.disconnect(session_id, websocket)
