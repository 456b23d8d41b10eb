"""FastAPI main application for the Odd Trick game backend"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .serialization import get_public_room_info
from .settings import ServerSettings
from .ws.server import ConnectionManager, router

__version__ = "1.0.0"

logger = logging.getLogger(__name__)


def create_app(settings: Optional[ServerSettings] = None) -> FastAPI:
    settings = settings or ServerSettings.from_env()
    manager = ConnectionManager(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Odd Trick backend ready (outbox={settings.outbox_size}, redeal={settings.redeal_delay}s)")
        yield
        await manager.shutdown()
        logger.info("Odd Trick backend stopped")

    app = FastAPI(title="Odd Trick Card Game API", version=__version__, lifespan=lifespan)
    app.state.manager = manager
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {"message": "Odd Trick Card Game API", "version": __version__}

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", **manager.stats()}

    @app.get("/rooms/{room_id}")
    async def room_info(room_id: str):
        state = manager.registry.get_state(room_id)
        if state is None:
            raise HTTPException(status_code=404, detail=f"Room {room_id} not found")
        return get_public_room_info(state)

    app.include_router(router)
    return app


_settings = ServerSettings.from_env()
logging.basicConfig(level=_settings.log_level.upper())

app = create_app(_settings)
