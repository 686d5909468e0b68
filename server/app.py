from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, WebSocket

from banker.exceptions import AdmissionError, RoomNotFoundError
from banker.protocol import Heartbeat
from banker.replication import HostSession
from server.database import close_db, create_tables, init_db, snapshot_writer
from server.registry import RoomRegistry
from server.schemas import CreateRoomRequest, CreateRoomResponse, PlayerSummary, RoomSummary
from server.settings import get_server_settings
from server.transport import WebSocketConnection

logger = logging.getLogger(__name__)

settings = get_server_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting Banker Pro room server")
    if settings.persist_snapshots:
        await init_db()
        await create_tables()

    yield

    logger.info("Shutting down, closing %d rooms", len(registry.codes()))
    await registry.close_all()
    if settings.persist_snapshots:
        await close_db()


app = FastAPI(
    title="Banker Pro Room Server",
    version="2.0.0",
    lifespan=lifespan,
)
registry = RoomRegistry(settings.rendezvous_prefix, settings.room_code_length)


def _get_room(code: str) -> HostSession:
    try:
        return registry.get(code)
    except RoomNotFoundError:
        raise HTTPException(status_code=404, detail="Room not found")


@app.post("/rooms", response_model=CreateRoomResponse)
async def create_room(req: CreateRoomRequest):
    rules = req.rules.to_rules() if req.rules else None
    try:
        session = await registry.create_room(req.host_name, rules=rules)
    except AdmissionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    host_id = session.state.players[0].id
    room_key = registry.rendezvous_id(session.room_code)

    if settings.persist_snapshots:
        writer = snapshot_writer(room_key)
        await writer(session.snapshot())
        session.add_listener(writer)

    return CreateRoomResponse(
        room_code=session.room_code,
        rendezvous_id=room_key,
        player_id=host_id,
        claim_token=session.issue_claim_token(host_id),
    )


@app.get("/rooms/{code}", response_model=RoomSummary)
async def get_room(code: str):
    session = _get_room(code)
    state = session.state
    current = state.get_current_player().id if state.players else None
    return RoomSummary(
        room_code=state.room_code,
        rendezvous_id=registry.rendezvous_id(state.room_code),
        phase=state.phase.value,
        current_player_id=current,
        connections=session.connection_count,
        players=[
            PlayerSummary(
                id=p.id,
                name=p.name,
                color=p.color,
                money=p.money,
                position=p.position,
                is_in_jail=p.is_in_jail,
            )
            for p in state.players
        ],
    )


@app.get("/rooms/{code}/snapshot")
async def get_snapshot(code: str):
    return _get_room(code).snapshot()


@app.delete("/rooms/{code}")
async def close_room(code: str):
    if not await registry.close(code):
        raise HTTPException(status_code=404, detail="Room not found")
    return {"closed": True}


@app.websocket("/ws/rooms/{code}")
async def ws_room(
    websocket: WebSocket,
    code: str,
    player_id: Optional[str] = None,
    claim_token: Optional[str] = None,
):
    await websocket.accept()
    try:
        session = registry.get(code)
    except RoomNotFoundError:
        await websocket.close(code=4404)
        return

    connection = WebSocketConnection(websocket)

    # Heartbeat keeps idle connections alive
    async def heartbeat():
        while True:
            await asyncio.sleep(settings.heartbeat_seconds)
            session.send_to(connection, Heartbeat())

    hb_task = asyncio.create_task(heartbeat())
    try:
        await session.serve(connection, player_id, claim_token)
    finally:
        hb_task.cancel()


@app.get("/")
async def root():
    return {"service": "banker-pro", "rooms": len(registry.codes())}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())
