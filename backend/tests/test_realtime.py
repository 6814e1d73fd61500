import asyncio
import json

from eventhub.core.security import create_access_token
from eventhub.services.realtime import Connection, RealtimeHub


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def test_join_and_leave_broadcast_viewer_counts(client):
    with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
        first.send_json({"event": "joinEvent", "data": "room-1"})
        message = first.receive_json()
        assert message["event"] == "viewerUpdate"
        assert message["data"]["room"] == "room-1"
        assert message["data"]["viewerCount"] == 1
        assert "timestamp" in message["data"]

        second.send_json({"event": "joinEvent", "data": "room-1"})
        assert first.receive_json()["data"]["viewerCount"] == 2
        assert second.receive_json()["data"]["viewerCount"] == 2

        first.send_json({"event": "leaveEvent", "data": "room-1"})
        update = second.receive_json()
        assert update["event"] == "viewerUpdate"
        assert update["data"]["viewerCount"] == 1


def test_malformed_signals_are_ignored(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        ws.send_json({"event": "dance", "data": "room-1"})
        ws.send_json({"event": "joinEvent", "data": "room-1"})

        message = ws.receive_json()
        assert message["event"] == "viewerUpdate"
        assert message["data"]["viewerCount"] == 1


def test_binary_frames_are_ignored(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_bytes(b"\x00\x01")
        ws.send_json({"event": "joinEvent", "data": "room-1"})

        message = ws.receive_json()
        assert message["event"] == "viewerUpdate"
        assert message["data"]["viewerCount"] == 1


def test_reading_event_refreshes_room_with_viewer_count(client, event_payload):
    with client.websocket_connect("/ws") as ws:
        created = client.post("/events", json=event_payload, headers=auth_headers("alice")).json()
        announced = ws.receive_json()
        assert announced["event"] == "eventUpdated"
        assert announced["data"]["id"] == created["id"]

        ws.send_json({"event": "joinEvent", "data": created["id"]})
        assert ws.receive_json()["event"] == "viewerUpdate"

        response = client.get(f"/events/{created['id']}")
        assert response.json()["currentViewers"] == 1

        pushed = ws.receive_json()
        assert pushed["event"] == "eventUpdated"
        assert pushed["data"]["currentViewers"] == 1
        assert pushed["data"]["attendees"] == ["alice"]


def test_membership_changes_reach_room_and_deletes_reach_everyone(client, event_payload):
    created = client.post("/events", json=event_payload, headers=auth_headers("alice")).json()

    with client.websocket_connect("/ws") as viewer:
        viewer.send_json({"event": "joinEvent", "data": created["id"]})
        viewer.receive_json()

        client.post(f"/events/{created['id']}/join", headers=auth_headers("bob"))
        joined = viewer.receive_json()
        assert joined["event"] == "eventUpdated"
        assert joined["data"]["attendees"] == ["alice", "bob"]

        client.put(f"/events/{created['id']}", json={"category": "social"}, headers=auth_headers("alice"))
        assert viewer.receive_json()["data"]["category"] == "social"

        client.delete(f"/events/{created['id']}", headers=auth_headers("alice"))
        assert viewer.receive_json() == {"event": "eventDeleted", "data": created["id"]}


class FakeWebSocket:
    def __init__(self):
        self.sent = []

    async def send_text(self, text):
        self.sent.append(text)


def test_disconnect_drops_presence_without_rebroadcast():
    hub = RealtimeHub()
    stayer = hub.connect(FakeWebSocket())
    leaver = hub.connect(FakeWebSocket())

    asyncio.run(hub.join_room("room-1", stayer))
    asyncio.run(hub.join_room("room-1", leaver))
    asyncio.run(hub.join_room("room-2", leaver))
    assert hub.viewer_count("room-1") == 2

    hub.disconnect(leaver)

    assert hub.viewer_count("room-1") == 1
    assert hub.viewer_count("room-2") == 0
    assert hub.channel.connection_count == 1
    counts = [json.loads(stayer.queue.get_nowait())["data"]["viewerCount"] for _ in range(stayer.queue.qsize())]
    assert counts == [1, 2]


def test_publish_to_empty_room_is_noop():
    hub = RealtimeHub()
    connection = hub.connect(FakeWebSocket())

    asyncio.run(hub.publish_to_room("nobody-here", "eventUpdated", {"id": "x"}))

    assert connection.queue.empty()


def test_connection_pump_sends_in_order():
    async def scenario():
        connection = Connection(FakeWebSocket())
        connection.deliver("one")
        connection.deliver("two")
        task = asyncio.create_task(connection.pump())
        await asyncio.sleep(0)
        task.cancel()
        return connection.websocket.sent

    assert asyncio.run(scenario()) == ["one", "two"]


def test_full_outbox_drops_newest_messages():
    connection = Connection(FakeWebSocket(), maxsize=2)

    assert connection.deliver("one")
    assert connection.deliver("two")
    assert not connection.deliver("three")

    assert [connection.queue.get_nowait() for _ in range(connection.queue.qsize())] == ["one", "two"]
