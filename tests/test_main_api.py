from fastapi.testclient import TestClient
from _fake_backend import FakeBackend, make_pipeline

from lark_assist import __version__
from lark_assist.main import create_app


def _client(backend: FakeBackend) -> TestClient:
    return TestClient(create_app(lambda: make_pipeline(backend)))


def test_process_command_endpoint():
    backend = FakeBackend()
    with _client(backend) as client:
        resp = client.post("/api/commands", json={"transcript": "  read miranda rights in spanish "})

    assert resp.status_code == 200
    body = resp.json()
    assert body["action"] == "miranda"
    assert body["executed"] is True
    assert body["metadata"] == {"language": "spanish"}
    assert body["resolution_tier"] == "offline"
    assert "error" not in body


def test_startup_checks_api_configuration():
    backend = FakeBackend()
    with _client(backend):
        pass
    assert backend.count("/config", "GET") == 1


def test_failed_command_reported_in_body():
    backend = FakeBackend(healthy=False)
    with _client(backend) as client:
        body = client.post("/api/commands", json={"transcript": "what are the rules for a traffic stop"}).json()

    assert body["executed"] is False
    assert body["error"] == "No internet connection. Only basic commands are available."


def test_invalid_bodies_rejected():
    with _client(FakeBackend()) as client:
        assert client.post("/api/commands", json={"transcript": "   "}).status_code == 422
        assert client.post("/api/commands", json={"transcript": 5}).status_code == 422
        assert client.post("/api/commands", json={"transcript": "x", "voice": "alloy"}).status_code == 422
        assert client.post("/api/commands", json={"transcript": "x" * 2001}).status_code == 422


def test_health_and_analytics():
    with _client(FakeBackend()) as client:
        client.post("/api/commands", json={"transcript": "what is RS 14:67"})
        health = client.get("/api/health").json()
        analytics = client.get("/api/analytics").json()

    assert health == {"status": "ok", "offline": False, "in_progress": False, "version": __version__}
    assert analytics["commands"]["total"] == 1
    assert analytics["commands"]["by_type"] == {"statute": 1}
    assert analytics["cache"]["entries"] == 1
