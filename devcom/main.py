"""
devcom/main.py
==============
Monitoring application for the device communication server.

Endpoints:
    GET  /health   project/version, configured protocol and database status
    WS   /logs     live stream of session, decoder, resolver and sink logs

Startup (lifespan):
    1. bind the log WebSocket manager to the running loop
    2. create the schema (init_db)

Run:
    uvicorn devcom.main:app --port 8000
"""

# Environment Configuration
from dotenv import load_dotenv

load_dotenv()

# FastAPI Core
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from contextlib import asynccontextmanager
import asyncio

from devcom.Core.config import settings
from devcom.Core import log_ws
from devcom.DB.database import check_db_connection, init_db


# ============================================================
# APPLICATION LIFESPAN MANAGEMENT
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    # ========================================
    # STARTUP: Configure WebSocket Event Loop
    # ========================================
    loop = asyncio.get_running_loop()
    log_ws.log_ws_manager.set_main_loop(loop)

    # ========================================
    # STARTUP: Database schema
    # ========================================
    init_db()

    config = settings.protocol_config()
    print(f"[STARTUP] {settings.PROJECT_NAME} {settings.PROJECT_VERSION} ready ({config.name} / {config.decoder.kind})")

    yield

    # ========================================
    # SHUTDOWN
    # ========================================
    log_ws.log_ws_manager.set_main_loop(None)
    print("[SHUTDOWN] Monitoring app stopped")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan,
)


# ============================================================
# ENDPOINTS
# ============================================================

@app.get("/health")
def health():
    config = settings.protocol_config()
    db_healthy = check_db_connection()
    return {
        "status": "ok" if db_healthy else "error",
        "project": settings.PROJECT_NAME,
        "version": settings.PROJECT_VERSION,
        "protocol": config.name,
        "decoder": config.decoder.kind,
        "database": "connected" if db_healthy else "disconnected",
    }


@app.websocket("/logs")
async def logs_websocket(ws: WebSocket):
    await log_ws.log_ws_manager.register(ws)
    try:
        while True:
            message = await ws.receive_text()
            await log_ws.log_ws_manager.handle_message(ws, message)
    except WebSocketDisconnect:
        pass
    finally:
        log_ws.log_ws_manager.unregister(ws)
