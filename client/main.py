"""FastAPI WebSocket server for the UNO table client."""

import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import sentry_sdk
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from api_client import UnoApiClient
from config import config
from handlers import BACKGROUND_HANDLERS, HANDLERS, ConnectionContext
from logging_config import setup_logging
from routers.health import router as health_router, set_health_dependencies
from table import Table

# Initialize Sentry if configured
if config.SENTRY_DSN:
    sentry_sdk.init(
        dsn=config.SENTRY_DSN,
        environment=config.ENVIRONMENT,
        traces_sample_rate=0.1 if config.ENVIRONMENT == "production" else 1.0,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
    )
    logging.getLogger(__name__).info("Sentry error tracking initialized")

# Configure logging based on environment
setup_logging(
    level=config.LOG_LEVEL,
    environment=config.ENVIRONMENT,
)
logger = logging.getLogger(__name__)


# =============================================================================
# Table (initialized in lifespan)
# =============================================================================

_api_client: Optional[UnoApiClient] = None
_table: Optional[Table] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the game server client and the table; close both on shutdown."""
    global _api_client, _table

    _api_client = UnoApiClient(config.API_BASE_URL)
    _table = Table(_api_client, timing=config.timing, avatars=config.AVATARS)
    set_health_dependencies(table=_table)

    logger.info(
        f"UNO table started (environment={config.ENVIRONMENT}, "
        f"game server={config.API_BASE_URL})"
    )

    yield

    logger.info("Shutdown initiated...")
    await _table.close()
    await _api_client.close()
    set_health_dependencies(table=None)
    logger.info("Shutdown complete")


app = FastAPI(
    title="UNO Table",
    debug=config.DEBUG,
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(health_router)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()

    connection_id = str(uuid.uuid4())
    ctx = ConnectionContext(websocket=websocket, connection_id=connection_id)
    _table.connect(connection_id, websocket)
    logger.debug(f"WebSocket connected as {connection_id}")

    # Shared dependencies passed to every handler
    handler_deps = dict(table=_table)

    try:
        await websocket.send_json({
            "type": "game_state",
            "game_state": _table.controller.snapshot(),
        })
        while True:
            data = await websocket.receive_json()
            msg_type = data.get("type")
            handler = HANDLERS.get(msg_type)
            if handler and msg_type in BACKGROUND_HANDLERS:
                _table.spawn(handler(data, ctx, **handler_deps))
            elif handler:
                await handler(data, ctx, **handler_deps)
            else:
                logger.debug(f"Unknown message type from {connection_id}: {data.get('type')!r}")
    except WebSocketDisconnect:
        logger.debug(f"WebSocket {connection_id} disconnected")
    finally:
        _table.disconnect(connection_id)


# Serve the browser table if the web directory exists
web_path = os.path.join(os.path.dirname(__file__), "..", "web")
if os.path.exists(web_path):
    @app.get("/")
    async def serve_index():
        return FileResponse(os.path.join(web_path, "index.html"))

    # Mount static files for everything else (JS, CSS, avatars, etc.)
    app.mount("/", StaticFiles(directory=web_path), name="static")


def run():
    """Run the server using uvicorn."""
    import uvicorn

    logger.info(f"Starting UNO table on {config.HOST}:{config.PORT}")
    logger.info(f"Debug mode: {config.DEBUG}")

    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
