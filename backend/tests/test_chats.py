"""Tests for direct and group chats, messaging and message notifications."""
from tests.conftest import create_test_profile


def _setup(client):
    for fid in (100, 200, 300):
        create_test_profile(client, fid)


def _direct(client, fid=100, other=200):
    return client.post("/api/chats/", json={"fid": fid, "participant_fids": [other], "type": "direct"})


class TestCreateChat:

    def test_direct_chat(self, client):
        _setup(client)
        resp = _direct(client)
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["type"] == "direct"
        assert sorted(p["fid"] for p in data["participants"]) == [100, 200]

    def test_direct_chat_is_reused(self, client):
        _setup(client)
        first = _direct(client).json()
        second = _direct(client, fid=200, other=100).json()
        assert first["id"] == second["id"]

    def test_direct_chat_needs_exactly_one_other(self, client):
        _setup(client)
        resp = client.post("/api/chats/", json={"fid": 100, "participant_fids": [200, 300], "type": "direct"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Direct chats require exactly one other participant"

    def test_direct_chat_unknown_target(self, client):
        _setup(client)
        resp = _direct(client, other=999)
        assert resp.status_code == 404

    def test_group_chat_skips_unknown_fids(self, client):
        _setup(client)
        resp = client.post("/api/chats/", json={
            "fid": 100, "participant_fids": [200, 300, 999], "type": "group", "name": "Squad",
        })
        assert resp.status_code == 201
        data = resp.json()
        assert data["name"] == "Squad"
        assert len(data["participants"]) == 3
        admins = [p["fid"] for p in data["participants"] if p["is_admin"]]
        assert admins == [100]

    def test_group_chat_needs_participants(self, client):
        _setup(client)
        resp = client.post("/api/chats/", json={"fid": 100, "participant_fids": [999], "type": "group"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "No valid participants found"


class TestMessages:

    def test_send_and_list(self, client, neynar):
        _setup(client)
        chat = _direct(client).json()
        for text in ("gg", "rematch?"):
            resp = client.post(f"/api/chats/{chat['id']}/messages", json={"fid": 100, "content": text})
            assert resp.status_code == 201
        messages = client.get(f"/api/chats/{chat['id']}/messages", params={"fid": 200}).json()
        assert [m["content"] for m in messages] == ["gg", "rematch?"]
        assert messages[0]["sender_fid"] == 100

    def test_message_notifies_others(self, client, neynar):
        _setup(client)
        chat = _direct(client).json()
        client.post(f"/api/chats/{chat['id']}/messages", json={"fid": 100, "content": "x" * 150})
        sent = neynar.published[-1]
        assert sent["target_fids"] == [200]
        assert sent["notification"].title == "💬 New message from Gamer 100"
        assert len(sent["notification"].body) == 100
        assert sent["notification"].body.endswith("...")
        assert sent["notification"].target_url.endswith(f"/messages/{chat['id']}")

    def test_muted_recipient_not_notified(self, client, neynar):
        _setup(client)
        chat = _direct(client).json()
        client.put("/api/notifications/preferences", json={"fid": 200, "messages_enabled": False})
        client.post(f"/api/chats/{chat['id']}/messages", json={"fid": 100, "content": "hello"})
        assert neynar.published == []

    def test_non_member_cannot_post_or_read(self, client):
        _setup(client)
        chat = _direct(client).json()
        resp = client.post(f"/api/chats/{chat['id']}/messages", json={"fid": 300, "content": "hi"})
        assert resp.status_code == 403
        assert resp.json()["error"] == "You are not a participant in this chat"
        assert client.get(f"/api/chats/{chat['id']}/messages", params={"fid": 300}).status_code == 403
        assert client.get(f"/api/chats/{chat['id']}", params={"fid": 300}).status_code == 403

    def test_empty_message_rejected(self, client):
        _setup(client)
        chat = _direct(client).json()
        resp = client.post(f"/api/chats/{chat['id']}/messages", json={"fid": 100, "content": ""})
        assert resp.status_code == 400

    def test_reply_must_exist(self, client):
        _setup(client)
        chat = _direct(client).json()
        resp = client.post(f"/api/chats/{chat['id']}/messages", json={
            "fid": 100, "content": "re", "reply_to": "missing",
        })
        assert resp.status_code == 400

    def test_limit(self, client):
        _setup(client)
        chat = _direct(client).json()
        for i in range(5):
            client.post(f"/api/chats/{chat['id']}/messages", json={"fid": 100, "content": f"m{i}"})
        messages = client.get(f"/api/chats/{chat['id']}/messages", params={"fid": 100, "limit": 2}).json()
        assert [m["content"] for m in messages] == ["m3", "m4"]

    def test_unknown_chat(self, client):
        _setup(client)
        resp = client.post("/api/chats/missing/messages", json={"fid": 100, "content": "hi"})
        assert resp.status_code == 404


class TestLeaveChat:

    def test_leave(self, client):
        _setup(client)
        chat = _direct(client).json()
        resp = client.post(f"/api/chats/{chat['id']}/leave", json={"fid": 200})
        assert resp.status_code == 200
        assert client.get("/api/chats/", params={"fid": 200}).json() == []
        detail = client.get(f"/api/chats/{chat['id']}", params={"fid": 100}).json()
        assert [p["fid"] for p in detail["participants"]] == [100]

    def test_leave_twice(self, client):
        _setup(client)
        chat = _direct(client).json()
        client.post(f"/api/chats/{chat['id']}/leave", json={"fid": 200})
        resp = client.post(f"/api/chats/{chat['id']}/leave", json={"fid": 200})
        assert resp.status_code == 404
        assert resp.json()["error"] == "User is not a member of this chat"
