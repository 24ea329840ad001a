"""
Log WebSocket Management Module
================================

Real-time log streaming for the device communication server. Session,
decoder, resolver and sink events are broadcast to every client connected
to the `/logs` WebSocket, and echoed to the console.

Message Format:
--------------
    {
        "msg_type": "log" | "error" | "warning",
        "message": "[SESSION] 10.0.0.5:5000 fix committed",
        "timestamp": "2026-01-01T10:30:00+00:00",
        "fields": {"device_id": "truck01", "latitude": 48.1173}
    }

`fields` carries named values (the decoded fix, the remote endpoint, the
rejected identifier) so monitor clients never have to parse the message
text.

Usage Example:
-------------
    from devcom.Core import log_ws

    log_ws.log_from_thread("[DECODER] fix decoded", "log", mobile_id="123", latitude=48.1)
    log_ws.log_from_thread("[RESOLVER] unknown device", "error", identifier="999")
"""

from datetime import datetime, timezone
from typing import Dict, Any

from fastapi import WebSocket

from .wsBase import WebSocketManager


def log_from_thread(message: str, msg_type: str = "log", **fields: Any):
    """
    Thread-safe entry point for broadcasting log messages.

    Args:
        message: The log message content
        msg_type: "log", "warning" or "error"
        **fields: Named values attached to the message

    The message is always printed; it is broadcast only when monitor
    clients are connected.
    """
    if fields:
        rendered = " ".join(f"{key}={value}" for key, value in fields.items())
        print(f"{message} | {rendered}")
    else:
        print(message)

    if log_ws_manager.has_clients:
        payload: Dict[str, Any] = {
            "msg_type": msg_type,
            "message": str(message),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "fields": fields,
        }
        log_ws_manager.send_from_thread(payload)


class LogWebSocketManager(WebSocketManager):
    """WebSocket manager for the `/logs` monitor stream."""

    async def handle_message(self, ws: WebSocket, message: str):
        # Monitor clients only listen; anything they send is echoed to the console.
        print(f"[LOG-WS] Received message from client: {message}")


log_ws_manager = LogWebSocketManager()
"""Global singleton used by every module that logs."""
