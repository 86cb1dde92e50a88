"""Tests for Farcaster lookup routes and the mutual-followers cache."""
from gamelink.services.farcaster_service import MutualFollowersCache, get_mutual_followers


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestMutualFollowersCache:

    def test_expiry(self):
        clock = FakeClock()
        cache = MutualFollowersCache(ttl_seconds=300, clock=clock)
        cache.set(1, ["a"])
        clock.now = 299
        assert cache.get(1) == ["a"]
        clock.now = 300
        assert cache.get(1) is None

    def test_invalidate(self):
        cache = MutualFollowersCache(ttl_seconds=300)
        cache.set(1, ["a"])
        cache.set(2, ["b"])
        cache.invalidate(1)
        assert cache.get(1) is None
        assert cache.get(2) == ["b"]
        cache.invalidate()
        assert cache.get(2) is None


class TestMutualFollowers:

    def test_intersection(self, neynar):
        for fid in (2, 3, 4):
            neynar.add_user(fid)
        neynar.followers[1] = [2, 3, 4]
        neynar.following[1] = [3, 4, 5]
        users = get_mutual_followers(neynar, 1, cache=MutualFollowersCache(60))
        assert [u.fid for u in users] == [3, 4]

    def test_cached(self, neynar):
        cache = MutualFollowersCache(60)
        get_mutual_followers(neynar, 1, cache=cache)
        get_mutual_followers(neynar, 1, cache=cache)
        assert neynar.graph_calls == 2
        get_mutual_followers(neynar, 1, use_cache=False, cache=cache)
        assert neynar.graph_calls == 4


class TestRoutes:

    def test_get_user(self, client, neynar):
        neynar.add_user(7, "seven")
        resp = client.get("/api/farcaster/user/7")
        assert resp.status_code == 200
        assert resp.json()["username"] == "seven"

    def test_get_user_not_found(self, client):
        resp = client.get("/api/farcaster/user/7")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Farcaster user not found"

    def test_bulk(self, client, neynar):
        neynar.add_user(1)
        neynar.add_user(2)
        resp = client.post("/api/farcaster/users/bulk", json={"fids": [1, 2, 2, 3]})
        assert resp.json()["count"] == 2

    def test_bulk_requires_fids(self, client):
        assert client.post("/api/farcaster/users/bulk", json={"fids": []}).status_code == 400

    def test_mutual_followers_route(self, client, neynar):
        neynar.add_user(3)
        neynar.followers[1] = [3]
        neynar.following[1] = [3]
        data = client.get("/api/farcaster/mutual-followers", params={"fid": 1}).json()
        assert data["count"] == 1
        assert data["use_cache"] is True
        client.get("/api/farcaster/mutual-followers", params={"fid": 1})
        assert neynar.graph_calls == 2
        data = client.get("/api/farcaster/mutual-followers", params={"fid": 1, "refresh": True}).json()
        assert data["use_cache"] is False
        assert neynar.graph_calls == 4

    def test_neynar_failure_maps_to_502(self, client, neynar, monkeypatch):
        from gamelink.clients.neynar import NeynarError

        def broken(fid):
            raise NeynarError("rate limited", status_code=429)

        monkeypatch.setattr(neynar, "fetch_user", broken)
        resp = client.get("/api/farcaster/user/7")
        assert resp.status_code == 502
        assert resp.json()["error"] == "Farcaster data is temporarily unavailable"
