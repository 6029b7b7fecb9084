"""
Live presence and message delivery over a WebSocket.

Clients exchange JSON frames of the form {"event": str, "data": ...}.

Client -> server:
- addUser      data = userId; marks the user online on this socket
- sendMessage  data = {senderId, receiverId, text}; forwarded if the receiver is online

Server -> client:
- getUsers     data = [{userId, socketId}, ...]; broadcast whenever presence changes
- getMessage   data = {senderId, text}; sent only to the receiver's socket

Presence is kept in process memory, so it only covers clients connected to
this worker.
"""

import json
import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


class PresenceRegistry:
    """Ordered list of online users and the socket each is reachable on."""

    def __init__(self):
        self._users: List[Dict[str, str]] = []

    def add(self, user_id: str, socket_id: str):
        entry = self.get(user_id)
        if entry is not None:
            # Reconnects rebind to the newest socket
            entry["socketId"] = socket_id
            return
        self._users.append({"userId": user_id, "socketId": socket_id})

    def remove(self, socket_id: str):
        self._users = [u for u in self._users if u["socketId"] != socket_id]

    def get(self, user_id: str) -> Optional[Dict[str, str]]:
        for user in self._users:
            if user["userId"] == user_id:
                return user
        return None

    def users(self) -> List[Dict[str, str]]:
        return [dict(u) for u in self._users]

    def clear(self):
        self._users = []

    def __len__(self):
        return len(self._users)


class ConnectionManager:
    def __init__(self):
        self.connections: Dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        socket_id = uuid.uuid4().hex
        self.connections[socket_id] = websocket
        return socket_id

    def disconnect(self, socket_id: str):
        self.connections.pop(socket_id, None)

    async def send(self, socket_id: str, event: str, data: Any) -> bool:
        websocket = self.connections.get(socket_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json({"event": event, "data": data})
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.info("Dropping socket %s on send: %s", socket_id, e)
            self.disconnect(socket_id)
            return False
        return True

    async def broadcast(self, event: str, data: Any):
        for socket_id, websocket in list(self.connections.items()):
            try:
                await websocket.send_json({"event": event, "data": data})
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.info("Dropping socket %s during broadcast: %s", socket_id, e)
                self.disconnect(socket_id)


presence = PresenceRegistry()
manager = ConnectionManager()


async def handle_event(socket_id: str, event: str, data: Any):
    if event == "addUser":
        if not isinstance(data, str) or not data:
            logger.info("addUser without a user id on socket %s", socket_id)
            return
        logger.info("User %s online on socket %s", data, socket_id)
        presence.add(data, socket_id)
        await manager.broadcast("getUsers", presence.users())

    elif event == "sendMessage":
        if not isinstance(data, dict):
            logger.info("Malformed sendMessage on socket %s", socket_id)
            return
        receiver = presence.get(data.get("receiverId"))
        if receiver is None:
            return
        await manager.send(
            receiver["socketId"],
            "getMessage",
            {"senderId": data.get("senderId"), "text": data.get("text")},
        )

    else:
        logger.info("Ignoring unknown event %r on socket %s", event, socket_id)


@router.websocket("/ws")
async def socket_endpoint(websocket: WebSocket):
    socket_id = await manager.connect(websocket)
    logger.info("A user connected: %s", socket_id)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                logger.info("Ignoring non-JSON frame on socket %s", socket_id)
                continue
            if not isinstance(frame, dict):
                continue
            await handle_event(socket_id, frame.get("event"), frame.get("data"))
    except WebSocketDisconnect:
        logger.info("A user disconnected: %s", socket_id)
    finally:
        manager.disconnect(socket_id)
        presence.remove(socket_id)
        await manager.broadcast("getUsers", presence.users())
