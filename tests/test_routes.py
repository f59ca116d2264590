"""
HTTP and websocket route tests.

The app is built with a fake toolset so no network or model calls happen;
payload content is observed through a websocket listener.
"""

import pytest
from fastapi.testclient import TestClient

from config import Settings
from conftest import FakeToolset, make_product
from main import create_app
from models.products import SearchResult


@pytest.fixture
def client():
    results = [
        SearchResult(title="Sony WH-1000XM5", url="https://www.amazon.com/xm5"),
        SearchResult(title="Sony WH-1000XM5 Best Buy", url="https://www.bestbuy.com/xm5"),
    ]
    products = {r.url: make_product(r.title, amount, r.url) for r, amount in zip(results, [329.0, 349.0])}
    app = create_app(Settings(), toolset=FakeToolset(results=results, products=products))
    with TestClient(app) as test_client:
        yield test_client


PICKUP_EVENT = {
    "event_id": "evt-1",
    "event_type": "PICKUP_DETECTED",
    "confidence": 0.9,
    "frame_ref": "frame://1",
    "search_seed": {"visible_text": ["Sony", "WH-1000XM5"]},
}


class TestHttpRoutes:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["ok"] is True
        assert body["openai_available"] is False
        assert body["summary_strategy"] == "value_score"

    def test_pickup_accepted_and_snapshot(self, client):
        assert client.post("/sessions/s1/pickup", json=PICKUP_EVENT).json() == {"status": "accepted"}

        snapshot = client.get("/sessions/s1").json()
        assert len(snapshot["threads"]) == 1
        thread = snapshot["threads"][0]
        assert snapshot["active_thread_id"] == thread["thread_id"]
        assert thread["query"] == "Sony WH-1000XM5"
        assert thread["message_count"] == 3

    def test_invalid_pickup_rejected(self, client):
        response = client.post("/sessions/s1/pickup", json={"event_id": "x"})
        assert response.status_code == 400

    def test_detection_admission(self, client):
        detection = {"result": '{"pickup_detected": true, "confidence": 0.95, "visible_text": ["Sony"]}'}

        assert client.post("/sessions/s1/detections", json=detection).json() == {"status": "accepted"}
        assert client.post("/sessions/s1/detections", json=detection).json() == {
            "status": "ignored",
            "reason": "debounced",
        }
        assert client.post("/sessions/s2/detections", json={"result": "nope"}).json() == {
            "status": "ignored",
            "reason": "invalid_result",
        }

    def test_webhook_requires_session_id(self, client):
        assert client.post("/webhooks/pickup", json={"event": PICKUP_EVENT}).status_code == 400
        response = client.post("/webhooks/pickup", json={"session_id": "s1", "event": PICKUP_EVENT})
        assert response.json() == {"status": "accepted"}

    def test_question_and_buy_validation(self, client):
        assert client.post("/sessions/s1/question", json={"question": "  "}).status_code == 400
        assert client.post("/sessions/s1/buy", json={}).status_code == 400
        assert client.post("/sessions/s1/question", json={"question": "headphones"}).json() == {"status": "accepted"}
        assert client.post("/sessions/s1/buy", json={"product_id": "sku-1"}).json() == {"status": "accepted"}

    def test_end_session(self, client):
        client.post("/sessions/s1/pickup", json=PICKUP_EVENT)

        assert client.post("/sessions/s1/end").json() == {"status": "ended"}
        assert client.get("/sessions/s1").status_code == 404


class TestWebSocket:
    def test_listener_receives_ordered_payloads(self, client):
        with client.websocket_connect("/ws?sessionId=s1") as ws:
            # round trip so the socket is registered before the pickup lands
            ws.send_json({"type": "noop"})
            assert ws.receive_json()["type"] == "error"
            client.post("/sessions/s1/pickup", json=PICKUP_EVENT)
            received = [ws.receive_json() for _ in range(3)]

        assert [payload["type"] for payload in received] == ["Info", "ResearchResults", "ShoppingSummary"]
        assert len({payload["thread_id"] for payload in received}) == 1
        assert received[2]["valueScore"] == "buy"

    def test_inbound_question_command(self, client):
        with client.websocket_connect("/ws?sessionId=s1") as ws:
            ws.send_json({"type": "question.ask", "question": "sony headphones", "request_id": "r1"})
            received = [ws.receive_json() for _ in range(4)]

        assert [payload["type"] for payload in received] == ["Info", "ResearchResults", "ShoppingSummary", "command.ack"]
        assert received[3]["request_id"] == "r1"

    def test_unknown_command_reports_error(self, client):
        with client.websocket_connect("/ws?sessionId=s1") as ws:
            ws.send_json({"type": "dance", "request_id": "r2"})
            error = ws.receive_json()

        assert error == {"type": "error", "request_id": "r2", "detail": "Unsupported message type."}
