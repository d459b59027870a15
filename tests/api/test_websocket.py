"""Tests for the realtime change feed."""

from __future__ import annotations

from fastapi.testclient import TestClient

from app.services.broadcast import BroadcastHub


class TestChangeFeed:
    def test_snapshot_on_connect(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            message = ws.receive_json()

        assert message["type"] == "database_loaded"
        assert set(message["database"]["sponsorship_programs"]) == {"CH", "YSP", "ICCSP", "OTM_GA"}
        assert message["data"] == message["database"]

    def test_mutation_is_pushed(self, client: TestClient, scenario_student: dict) -> None:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            client.post("/api/programs/CH/students", json=scenario_student)
            event = ws.receive_json()

        assert event["type"] == "student_added"
        assert event["program"] == "CH"
        assert event["entity_id"] == 1
        assert event["data"]["full_name"] == "A"
        program = event["database"]["sponsorship_programs"]["CH"]
        assert program["metadata"]["monthly_costs_ugx"] == 310000.0

    def test_rejected_mutation_is_not_pushed(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            client.post("/api/registry/CH/sponsors", json={"full_name": "Ghost", "sponsor": "S"})
            client.post("/api/events", json={"title": "Visit"})
            event = ws.receive_json()

        assert event["type"] == "event_added"

    def test_disconnect_unsubscribes(self, client: TestClient, hub: BroadcastHub) -> None:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            assert hub.subscriber_count == 1
            ws.send_text("ping")
        client.post("/api/events", json={"title": "after close"})
        assert hub.subscriber_count == 0
