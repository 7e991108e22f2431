"""
Console API - 仪表盘 / 通知 / 实时推送

- GET /api/dashboard: KPIs plus recent alerts and devices
- GET /api/notices: drain pending notices for the home
- WS /ws/feed?token=...: full console snapshot on connect and after every
  change, plus notices as they are posted
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ..client import SafeHomeClient
from ..errors import NotAuthenticated
from ..services import Session
from .deps import get_client, get_session


logger = logging.getLogger(__name__)

console_router = APIRouter(tags=["console"])

# Custom close code for a rejected feed token
WS_CLOSE_UNAUTHORIZED = 4401


@console_router.get("/api/dashboard")
async def dashboard(
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    view = client.open_view(session.home_id)
    try:
        return view.dashboard()
    finally:
        client.close_view(view)


@console_router.get("/api/notices")
async def drain_notices(
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    notices = client.notices.drain(session.home_id)
    return {"notices": [n.model_dump(mode="json") for n in notices]}


# =============================================================================
# WebSocket feed
# =============================================================================

@console_router.websocket("/ws/feed")
async def console_feed(websocket: WebSocket, token: str = ""):
    client: SafeHomeClient = websocket.app.state.client
    try:
        session = client.sessions.get(token)
    except NotAuthenticated:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return

    await websocket.accept()
    home_id = session.home_id
    queue: asyncio.Queue = asyncio.Queue()
    dirty = {"snapshot": False}

    # Coalesce bursts of pushes into one snapshot message
    def on_change(_what: str) -> None:
        if not dirty["snapshot"]:
            dirty["snapshot"] = True
            queue.put_nowait(("snapshot", None))

    def on_notice(notice_home: str, notice) -> None:
        if notice_home == home_id:
            queue.put_nowait(("notice", notice))

    async def watch_disconnect() -> None:
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            queue.put_nowait(("closed", None))

    view = client.open_view(home_id, on_change=on_change)
    remove_listener = client.notices.add_listener(on_notice)
    receiver = asyncio.create_task(watch_disconnect())
    logger.info("[FEED] %s connected for %s", session.uid, home_id)

    try:
        while True:
            kind, payload = await queue.get()
            if kind == "closed":
                break
            if kind == "snapshot":
                dirty["snapshot"] = False
                await websocket.send_json({"type": "snapshot", "data": view.snapshot()})
            else:
                await websocket.send_json({"type": "notice", "data": payload.model_dump(mode="json")})
    except WebSocketDisconnect:
        pass
    finally:
        receiver.cancel()
        remove_listener()
        client.close_view(view)
        logger.info("[FEED] %s disconnected from %s", session.uid, home_id)
