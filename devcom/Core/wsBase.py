"""
devcom/Core/wsBase.py
=====================
Base WebSocket connection manager.

Keeps the set of connected monitor clients and lets any thread (device
sessions run outside the event loop) schedule a JSON broadcast on the
FastAPI main loop.

Lifecycle:
    1. Instantiate manager
    2. set_main_loop() from the application lifespan
    3. register() / unregister() from the WebSocket endpoint
    4. broadcast() (async) or send_from_thread() (any thread)
"""

from fastapi import WebSocket
import asyncio
from typing import List, Optional, Dict, Any
import json
import threading


class WebSocketManager:
    """
    Thread-safe registry of WebSocket clients with broadcast helpers.

    Attributes:
        clients: Currently active WebSocket connections
        main_loop: Event loop used by send_from_thread()
    """

    def __init__(self):
        self.clients: List[WebSocket] = []
        self.main_loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock = threading.Lock()

    def set_main_loop(self, loop: Optional[asyncio.AbstractEventLoop]):
        """Bind the running loop (call from the lifespan handler, None on shutdown)."""
        self.main_loop = loop

    async def register(self, ws: WebSocket):
        with self._lock:
            if ws not in self.clients:
                self.clients.append(ws)
        try:
            await ws.accept()
            print(f"[WSBase] Client registered. Total clients: {len(self.clients)}")
        except Exception:
            self.unregister(ws)
            raise

    def unregister(self, ws: WebSocket):
        """Remove a client; calling it twice is harmless."""
        with self._lock:
            if ws in self.clients:
                self.clients.remove(ws)
                print(f"[WSBase] Client unregistered. Total clients: {len(self.clients)}")

    @property
    def has_clients(self) -> bool:
        with self._lock:
            return len(self.clients) > 0

    async def broadcast(self, message: Dict[str, Any]):
        """
        Send `message` as JSON to every client.

        Clients that fail to receive are unregistered; the others still get
        the message.
        """
        to_remove = []

        with self._lock:
            current_clients = list(self.clients)

        payload = json.dumps(message, default=str)
        for ws in current_clients:
            try:
                await ws.send_text(payload)
            except Exception:
                to_remove.append(ws)

        for ws in to_remove:
            self.unregister(ws)

    def send_from_thread(self, message: Dict[str, Any]) -> bool:
        """
        Schedule broadcast() on the main loop from a non-async context.

        Returns:
            bool: True when the broadcast was scheduled
        """
        if not self.has_clients:
            return False

        if self.main_loop is None or self.main_loop.is_closed():
            return False

        asyncio.run_coroutine_threadsafe(self.broadcast(message), self.main_loop)
        return True

    async def handle_message(self, ws: WebSocket, message: str):
        """Incoming client text; subclasses override."""
        print(f"[WSBase] Received message from client: {message}")
