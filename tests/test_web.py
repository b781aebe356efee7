"""
Test FastHTML Web Adapter

JSON API responses, failure responses and the SSE event stream.
"""

import json

import pytest
from starlette.testclient import TestClient

from clicksphere.adapters.fasthtml import create_app, event_stream
from clicksphere.app.configuration import ApplicationConfig, Environment
from clicksphere.core.counter import ChangeEvent
from clicksphere.persistence import MemoryCounterStore
from clicksphere.realtime.hub import BroadcastHub


def signals_of(chunk: str) -> dict:
    """Pull the JSON signals object out of a Datastar patch-signals event."""
    return json.loads(chunk[chunk.index("{"):chunk.rindex("}") + 1])


@pytest.fixture
def config():
    config = ApplicationConfig.for_environment(Environment.TESTING)
    config.web.secret_key = "test-secret"
    return config


@pytest.fixture
def client(config):
    app = create_app(config, store=MemoryCounterStore())
    with TestClient(app) as client:
        yield client


def test_count_starts_at_zero(client):
    response = client.get("/api/count")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["value"] == 0
    assert body["totalIncrements"] == 0
    assert "lastUpdatedAt" in body


def test_increment_and_reset(client):
    client.post("/api/increment")
    response = client.post("/api/increment")

    body = response.json()
    assert body["value"] == 2
    assert body["totalIncrements"] == 2
    assert body["message"] == "Counter incremented successfully"

    body = client.post("/api/reset").json()
    assert body["value"] == 0
    assert body["totalIncrements"] == 2
    assert body["message"] == "Counter reset successfully"


def test_stats(client):
    client.post("/api/increment")

    body = client.get("/api/stats").json()

    assert body["success"] is True
    assert body["stats"]["value"] == 1
    assert body["stats"]["daysSinceCreated"] == 0
    assert body["stats"]["averageClicksPerDay"] == 1
    assert "createdAt" in body["stats"]


def test_store_failure_returns_server_error(config, unavailable_store):
    app = create_app(config, store=unavailable_store)
    with TestClient(app) as client:
        for method, path, error in [
            ("get", "/api/count", "Failed to fetch counter"),
            ("post", "/api/increment", "Failed to increment counter"),
            ("post", "/api/reset", "Failed to reset counter"),
            ("get", "/api/stats", "Failed to fetch statistics"),
        ]:
            response = getattr(client, method)(path)
            assert response.status_code == 500
            assert response.json() == {"success": False, "error": error}


def test_unknown_route_returns_json_404(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Page not found"}


def test_notify_rebroadcasts_from_open_connection(config):
    hub = BroadcastHub()
    app = create_app(config, store=MemoryCounterStore(), hub=hub)
    sender = hub.connect("sender")
    listener = hub.connect("listener")
    hub.register(sender)
    hub.register(listener)

    with TestClient(app) as client:
        client.post("/api/increment")
        listener._queue.get_nowait()
        sender._queue.get_nowait()

        sent = {"value": 7, "lastUpdatedAt": "2026-02-03T04:05:06.123Z", "isReset": False}
        response = client.post("/api/notify?connection_id=sender", json=sent)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        event = listener._queue.get_nowait()
        assert event.to_wire() == sent
        assert client.get("/api/count").json()["value"] == 1


def test_notify_from_unknown_connection_is_rejected(client):
    response = client.post("/api/notify?connection_id=ghost", json={"value": 7})

    assert response.status_code == 409
    assert response.json()["success"] is False


def test_notify_with_malformed_body_is_rejected(client):
    response = client.post("/api/notify?connection_id=ghost", json={"value": "lots"})
    assert response.status_code == 422

    response = client.post(
        "/api/notify?connection_id=ghost",
        content=b"not json",
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 422

    response = client.post(
        "/api/notify?connection_id=ghost",
        content=b"\xff\xfe{",
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 422
    assert response.json() == {"success": False, "error": "Invalid notification"}


def test_online_count(config):
    hub = BroadcastHub()
    app = create_app(config, store=MemoryCounterStore(), hub=hub)
    hub.register(hub.connect())

    with TestClient(app) as client:
        assert client.get("/api/online").json() == {"success": True, "online": 1}


@pytest.mark.asyncio
async def test_event_stream_registers_relays_and_unregisters():
    hub = BroadcastHub(heartbeat_interval=0.05)
    connection = hub.connect()
    stream = event_stream(hub, connection)

    first = await stream.__anext__()
    assert hub.is_open(connection.id)
    assert signals_of(first) == {"connectionId": connection.id}

    hub.broadcast(ChangeEvent(value=3, total_increments=3, is_reset=False))
    signals = signals_of(await stream.__anext__())
    assert signals["value"] == 3
    assert signals["totalIncrements"] == 3
    assert signals["isReset"] is False

    assert await stream.__anext__() == ": heartbeat\n\n"

    await stream.aclose()
    assert not hub.is_open(connection.id)


class TrackingStore(MemoryCounterStore):
    """Memory store that records lifespan calls"""

    def __init__(self):
        super().__init__()
        self.calls = []

    async def start(self, retries=0, delay=0.0):
        self.calls.append(("start", retries, delay))
        await super().start(retries=retries, delay=delay)

    async def close(self):
        self.calls.append(("close",))
        await super().close()


def test_lifespan_starts_and_closes_store(config):
    config.store.connect_retries = 2
    config.store.connect_delay = 0.5
    store = TrackingStore()
    app = create_app(config, store=store)

    with TestClient(app) as client:
        assert store.calls == [("start", 2, 0.5)]
        assert client.get("/api/count").status_code == 200

    assert store.calls == [("start", 2, 0.5), ("close",)]
