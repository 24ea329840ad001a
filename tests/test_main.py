from fastapi.testclient import TestClient

from devcom.main import app


def test_health():
    with TestClient(app) as client:
        response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "connected"
    assert body["protocol"] == "sipgear"
    assert body["decoder"] == "gprmc"


def test_log_stream_receives_broadcasts():
    from devcom.Core import log_ws

    with TestClient(app) as client:
        with client.websocket_connect("/logs") as ws:
            log_ws.log_from_thread("[TEST] hello", "warning", device_id="truck01")
            message = ws.receive_json()

    assert message["msg_type"] == "warning"
    assert message["message"] == "[TEST] hello"
    assert message["fields"] == {"device_id": "truck01"}
