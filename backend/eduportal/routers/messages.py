"""Direct messages over REST and the ``/ws`` chat relay."""
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..auth.service import get_current_active_user, get_user_from_token
from ..database import get_db
from ..models import Message, MessageStatus, User
from ..schemas.misc import MarkMessagesRead, MessageCreate, MessageResponse
from ..services import chat_manager
from .common import forbid, get_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["Messages"])
ws_router = APIRouter(tags=["Messages"])


async def relay_message(db: Session, sender_id: int, recipient_id: int, content: str) -> Message:
    """Store a message and push it to the recipient if they are connected."""
    message = Message(from_user_id=sender_id, to_user_id=recipient_id, content=content)
    db.add(message)
    db.commit()
    db.refresh(message)

    if await chat_manager.send_to_user(recipient_id, {"type": "message", "message": message.to_payload()}):
        message.status = MessageStatus.delivered
        db.commit()
        db.refresh(message)
    return message


async def deliver_pending(db: Session, websocket: WebSocket, user_id: int) -> int:
    """Push every undelivered message addressed to the user."""
    pending = (
        db.query(Message)
        .filter(Message.to_user_id == user_id, Message.status == MessageStatus.sent)
        .order_by(Message.sent_at, Message.id)
        .all()
    )
    for message in pending:
        await websocket.send_json({"type": "message", "message": message.to_payload()})
        message.status = MessageStatus.delivered
    if pending:
        db.commit()
        logger.info(f"Delivered {len(pending)} pending message(s) to user {user_id}")
    return len(pending)


def _check_recipient(db: Session, sender: User, recipient_id: int) -> User:
    if recipient_id == sender.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot send a message to yourself")
    return get_or_404(db, User, recipient_id, "Recipient")


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    message_data: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    _check_recipient(db, current_user, message_data.to_user_id)
    return await relay_message(db, current_user.id, message_data.to_user_id, message_data.content)


@router.post("/read")
async def mark_messages_read(
    payload: MarkMessagesRead,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    if not payload.message_ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="message_ids must not be empty")

    messages = db.query(Message).filter(Message.id.in_(payload.message_ids)).all()
    if any(m.to_user_id != current_user.id for m in messages):
        raise forbid("You can only mark messages sent to you as read")

    for message in messages:
        message.status = MessageStatus.read
    db.commit()
    return {"updated": len(messages)}


@router.get("/{user_id}", response_model=list[MessageResponse])
async def conversation(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Messages exchanged between the current user and another user, oldest first."""
    get_or_404(db, User, user_id)
    return (
        db.query(Message)
        .filter(or_(
            and_(Message.from_user_id == current_user.id, Message.to_user_id == user_id),
            and_(Message.from_user_id == user_id, Message.to_user_id == current_user.id),
        ))
        .order_by(Message.sent_at, Message.id)
        .all()
    )


@ws_router.websocket("/ws")
async def chat_socket(websocket: WebSocket, db: Session = Depends(get_db)):
    """
    Chat relay.

    Client frames:
    - ``{"type": "auth", "token": <access token>}``
    - ``{"type": "message", "to_user_id": <id>, "content": <text>}``
    - ``{"type": "markAsRead", "message_id": <id>}``

    Server frames: ``authenticated``, ``message``, ``messageSent``, ``error``.
    """
    await websocket.accept()
    user = None
    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except ValueError as e:
                logger.warning(f"Ignoring malformed chat frame: {e}")
                continue
            if not isinstance(frame, dict):
                logger.warning("Ignoring chat frame that is not an object")
                continue

            frame_type = frame.get("type")

            if frame_type == "auth":
                authenticated = get_user_from_token(db, str(frame.get("token") or ""))
                if authenticated is None:
                    await websocket.send_json({"type": "error", "message": "Invalid or expired token"})
                    await websocket.close(code=4001)
                    return
                # One user per socket
                if user is not None and user.id != authenticated.id:
                    await chat_manager.unregister(user.id, websocket)
                user = authenticated
                await chat_manager.register(user.id, websocket)
                await websocket.send_json({"type": "authenticated", "user_id": user.id})
                await deliver_pending(db, websocket, user.id)

            elif user is None:
                await websocket.send_json({"type": "error", "message": "Not authenticated"})

            elif frame_type == "message":
                recipient_id = frame.get("to_user_id")
                content = str(frame.get("content") or "").strip()
                if not isinstance(recipient_id, int) or not content:
                    await websocket.send_json({"type": "error", "message": "to_user_id and content are required"})
                    continue
                if recipient_id == user.id or db.get(User, recipient_id) is None:
                    await websocket.send_json({"type": "error", "message": "Unknown recipient"})
                    continue
                message = await relay_message(db, user.id, recipient_id, content)
                await websocket.send_json({"type": "messageSent", "message_id": message.id})

            elif frame_type == "markAsRead":
                message = db.get(Message, frame.get("message_id")) if isinstance(frame.get("message_id"), int) else None
                if message is None or message.to_user_id != user.id:
                    await websocket.send_json({"type": "error", "message": "Unknown message"})
                    continue
                message.status = MessageStatus.read
                db.commit()

            else:
                await websocket.send_json({"type": "error", "message": f"Unknown frame type: {frame_type}"})
    except WebSocketDisconnect:
        pass
    finally:
        if user is not None:
            await chat_manager.unregister(user.id, websocket)
