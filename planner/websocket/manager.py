from typing import Dict, List
from fastapi import WebSocket
import asyncio
import json

class ConnectionManager:
    """Open notification sockets per user id."""

    def __init__(self):
        # map user_id -> list of websockets
        self.active: Dict[str, List[WebSocket]] = {}
        self.lock = asyncio.Lock()

    async def connect(self, user_id: str, websocket: WebSocket):
        await websocket.accept()
        async with self.lock:
            conns = self.active.get(user_id, [])
            conns.append(websocket)
            self.active[user_id] = conns

    async def disconnect(self, user_id: str, websocket: WebSocket):
        async with self.lock:
            conns = self.active.get(user_id, [])
            if websocket in conns:
                conns.remove(websocket)
            if conns:
                self.active[user_id] = conns
            else:
                self.active.pop(user_id, None)

    async def send_personal_message(self, user_id, message: dict) -> int:
        """Send to every socket of a user; returns how many deliveries succeeded."""
        user_key = str(user_id)
        conns = self.active.get(user_key, [])
        data = json.dumps(message, default=str)
        delivered = 0
        for ws in list(conns):
            try:
                await ws.send_text(data)
                delivered += 1
            except Exception:
                # broken socket, drop it
                await self.disconnect(user_key, ws)
        return delivered

manager = ConnectionManager()
