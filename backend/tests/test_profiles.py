"""Tests for profile upsert and lookups."""
from tests.conftest import create_test_profile


class TestProfiles:

    def test_create_then_update_by_fid(self, client):
        first = create_test_profile(client, 100, "alice")
        resp = client.post("/api/profiles/", json={"fid": 100, "username": "alice2", "bio": "gg"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == first["id"]
        assert data["username"] == "alice2"
        assert data["display_name"] == "Alice"
        assert data["bio"] == "gg"

    def test_get_profile(self, client):
        create_test_profile(client, 100, "alice")
        resp = client.get("/api/profiles/100")
        assert resp.status_code == 200
        assert resp.json()["username"] == "alice"

    def test_get_profile_not_found(self, client):
        resp = client.get("/api/profiles/404")
        assert resp.status_code == 404
        assert resp.json() == {"error": "User profile not found"}

    def test_patch_profile(self, client):
        create_test_profile(client, 100, "alice")
        resp = client.patch("/api/profiles/100", json={"display_name": "Ace"})
        assert resp.json()["display_name"] == "Ace"
        assert resp.json()["username"] == "alice"

    def test_list_profiles(self, client):
        for fid in (300, 100, 200):
            create_test_profile(client, fid)
        data = client.get("/api/profiles/", params={"limit": 2}).json()
        assert [p["fid"] for p in data] == [100, 200]

    def test_unknown_route_uses_error_envelope(self, client):
        resp = client.get("/api/nothing-here")
        assert resp.status_code == 404
        assert "error" in resp.json()

    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}
