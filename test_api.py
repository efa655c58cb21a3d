"""
Tests for the HTTP surface.

Tests cover:
- POST /invoke/{command} for every command
- Error taxonomy mapped to status codes
- Health checks, metrics and request ids
"""

import json

import pytest
from fastapi.testclient import TestClient

from msgledger.errors import HostError
from msgledger.main import app
from msgledger.storage import Base, engine, get_host


def invoke(client, command: str, *args: str):
    """Helper to call a ledger command."""
    return client.post(f"/invoke/{command}", json={"args": list(args)})


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh ledger tables for each test."""
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seeded_client(client):
    """Client with one Messenger and one Message."""
    assert invoke(client, "createMessenger", "o1", "Alice").status_code == 200
    assert invoke(client, "createMessage", "m1", "hello", "3", "o1").status_code == 200
    return client


class TestWriteCommands:
    """Test commands that change the ledger."""

    def test_create_messenger(self, client):
        response = invoke(client, "createMessenger", "o1", "Alice")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_duplicate_messenger(self, client):
        invoke(client, "createMessenger", "o1", "Alice")

        response = invoke(client, "createMessenger", "o1", "Alice")

        assert response.status_code == 409
        assert response.json()["detail"] == "This messenger already exists - o1"

    def test_message_for_unknown_messenger(self, client):
        response = invoke(client, "createMessage", "m1", "hello", "3", "o404")

        assert response.status_code == 404
        assert "o404" in response.json()["detail"]

    def test_message_with_recipient(self, client):
        invoke(client, "createMessenger", "o1", "Alice")

        response = invoke(client, "createMessage", "m1", "hello", "3", "o1", "o2")

        assert response.status_code == 200

    def test_non_numeric_priority(self, client):
        invoke(client, "createMessenger", "o1", "Alice")

        response = invoke(client, "createMessage", "m1", "hello", "high", "o1")

        assert response.status_code == 422
        assert response.json()["detail"] == "3rd argument must be a numeric string"

    def test_empty_argument(self, client):
        response = invoke(client, "createMessenger", "o1", "")

        assert response.status_code == 422
        assert response.json()["detail"] == "Argument 1 must be a non-empty string"

    def test_wrong_argument_count(self, client):
        response = invoke(client, "createMessenger", "o1")

        assert response.status_code == 422
        assert response.json()["detail"] == "Incorrect number of arguments. Expecting 2"

    def test_delete_unauthorized(self, seeded_client):
        response = invoke(seeded_client, "deleteMessage", "m1", "acme")

        assert response.status_code == 403
        assert invoke(seeded_client, "read", "m1").content != b""

    def test_delete_unknown(self, client):
        response = invoke(client, "deleteMessage", "m404", "acme")

        assert response.status_code == 404

    def test_generic_write_and_read(self, client):
        assert invoke(client, "write", "abc", "raw value").status_code == 200

        response = invoke(client, "read", "abc")

        assert response.status_code == 200
        assert response.content == b"raw value"
        assert response.headers["content-type"] == "application/octet-stream"


class TestQueryCommands:
    """Test commands returning JSON payloads."""

    def test_range_query(self, seeded_client):
        response = invoke(seeded_client, "rangeQuery", "m0", "m9999999999999999999")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert [entry["Key"] for entry in response.json()] == ["m1"]

    def test_history(self, seeded_client):
        response = invoke(seeded_client, "history", "m1")

        assert response.status_code == 200
        trail = response.json()
        assert len(trail) == 1
        assert trail[0]["value"]["text"] == "hello"

    def test_read_all_without_body(self, seeded_client):
        response = seeded_client.post("/invoke/readAll")

        assert response.status_code == 200
        everything = response.json()
        assert [m["id"] for m in everything["messengers"]] == ["o1"]
        assert [m["id"] for m in everything["messages"]] == ["m1"]

    def test_unknown_command(self, client):
        response = invoke(client, "transferMessage", "m1", "o2")

        assert response.status_code == 422
        assert "transferMessage" in response.json()["detail"]


class TestServiceRoutes:
    """Test health, metrics and request ids."""

    def test_live(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_ready(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_without_tables(self, client):
        Base.metadata.drop_all(bind=engine)

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"

    def test_request_id_header(self, client):
        response = client.get("/health/live")

        assert response.headers["X-Request-ID"]

    def test_metrics_count_invocations(self, client):
        invoke(client, "createMessenger", "o1", "Alice")
        invoke(client, "createMessenger", "o1", "Alice")

        response = client.get("/metrics")

        assert response.status_code == 200
        body = response.text
        assert 'ledger_invocations_total{command="createMessenger",result="ok"}' in body
        assert 'ledger_invocations_total{command="createMessenger",result="conflict"}' in body

    def test_payload_is_json(self, seeded_client):
        response = invoke(seeded_client, "read", "o1")

        assert json.loads(response.content)["username"] == "alice"

    def test_metrics_label_route_template(self, client):
        """Request metrics use the route template, not the concrete command path."""
        invoke(client, "readAll")
        invoke(client, "noSuchCommand")

        body = client.get("/metrics").text

        assert 'path="/invoke/{command}"' in body
        assert 'path="/invoke/readAll"' not in body
        assert 'path="/invoke/noSuchCommand"' not in body


class UnreachableHost:
    """Host whose every primitive fails."""

    def get(self, key):
        raise HostError(f"Failed to get state for {key}")

    def put(self, key, value):
        raise HostError(f"Failed to put state for {key}")

    def delete(self, key):
        raise HostError(f"Failed to delete state for {key}")

    def range_scan(self, start_key, end_key):
        raise HostError(f"Failed to open range [{start_key}, {end_key})")

    def history_scan(self, key):
        raise HostError(f"Failed to open history of {key}")


class TestHostFailures:
    """Test ledger host failures at the HTTP boundary."""

    @pytest.fixture
    def failing_client(self, client):
        app.dependency_overrides[get_host] = UnreachableHost
        yield client
        app.dependency_overrides.pop(get_host, None)

    def test_range_query_host_error(self, failing_client):
        response = invoke(failing_client, "rangeQuery", "m0", "m9")

        assert response.status_code == 502
        assert response.json() == {"detail": "Failed to open range [m0, m9)"}

    def test_read_all_host_error(self, failing_client):
        response = failing_client.post("/invoke/readAll")

        assert response.status_code == 502
        assert "Failed to open range" in response.json()["detail"]

    def test_write_host_error(self, failing_client):
        response = invoke(failing_client, "write", "abc", "1")

        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to put state for abc"
