"""FastAPI main application for Least Count game backend"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from .coordinator import GameCoordinator
from .rules import RuleConfig, rules_from_env
from .serialization import list_public_rooms
from .ws.server import ConnectionManager, GameWebSocketManager

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "info").upper())
logger = logging.getLogger(__name__)


def create_app(rules: Optional[RuleConfig] = None, coordinator: Optional[GameCoordinator] = None) -> FastAPI:
    rules = rules or rules_from_env()
    connection_manager = ConnectionManager()
    if coordinator is None:
        coordinator = GameCoordinator(listener=connection_manager, rules=rules)
    else:
        coordinator.listener = connection_manager
    game_manager = GameWebSocketManager(coordinator, connection_manager)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await coordinator.close()

    app = FastAPI(title="Least Count Game API", version="1.0.0", lifespan=lifespan)
    app.state.coordinator = coordinator

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {"message": "Least Count Game API", "version": "1.0.0"}

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "rooms": len(coordinator.registry.list_rooms()),
            "connections": len(connection_manager.active_connections),
        }

    @app.get("/rooms")
    async def rooms():
        return list_public_rooms(coordinator.registry.list_rooms())

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await game_manager.handle_websocket(websocket)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
