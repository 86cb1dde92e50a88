"""Tests for the Neynar HTTP client using httpx's mock transport."""
import json

import httpx
import pytest

from gamelink.clients.neynar import NeynarClient, NeynarError, NotificationPayload


def _user(fid):
    return {
        "fid": fid,
        "username": f"user{fid}",
        "display_name": f"User {fid}",
        "pfp_url": f"https://img.example/{fid}.png",
        "profile": {"bio": {"text": "gm"}},
        "follower_count": 10,
        "following_count": 5,
        "power_badge": fid == 1,
    }


def _client(handler, **kwargs):
    return NeynarClient(
        api_key="test-key",
        base_url="https://neynar.test",
        backoff_seconds=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestUsers:

    def test_bulk_users_parsed(self):
        seen = []

        def handler(request):
            seen.append(request)
            fids = [int(f) for f in request.url.params["fids"].split(",")]
            return httpx.Response(200, json={"users": [_user(f) for f in fids]})

        users = _client(handler).fetch_bulk_users([1, 2])
        assert [u.fid for u in users] == [1, 2]
        assert users[0].bio == "gm"
        assert users[0].is_verified is True
        assert users[1].is_verified is False
        assert seen[0].headers["x-api-key"] == "test-key"
        assert seen[0].url.path == "/v2/farcaster/user/bulk"

    def test_bulk_users_chunked(self):
        calls = []

        def handler(request):
            fids = request.url.params["fids"].split(",")
            calls.append(len(fids))
            return httpx.Response(200, json={"users": []})

        _client(handler).fetch_bulk_users(list(range(1, 251)))
        assert calls == [100, 100, 50]

    def test_fetch_user_missing(self):
        client = _client(lambda request: httpx.Response(200, json={"users": []}))
        assert client.fetch_user(42) is None


class TestRetries:

    def test_rate_limit_retried(self):
        responses = iter([httpx.Response(429), httpx.Response(429), httpx.Response(200, json={"users": [_user(7)]})])
        client = _client(lambda request: next(responses))
        assert client.fetch_user(7).fid == 7

    def test_rate_limit_gives_up(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(429)

        with pytest.raises(NeynarError) as exc:
            _client(handler, max_retries=2).fetch_user(7)
        assert exc.value.status_code == 429
        assert len(attempts) == 3

    def test_server_error_not_retried(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(500, text="oops")

        with pytest.raises(NeynarError) as exc:
            _client(handler).fetch_user(7)
        assert exc.value.status_code == 500
        assert len(attempts) == 1

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        with pytest.raises(NeynarError):
            _client(handler).fetch_user(7)

    def test_missing_api_key(self):
        client = NeynarClient(api_key="", transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        with pytest.raises(NeynarError):
            client.fetch_user(1)


class TestGraph:

    def test_followers_paged(self):
        pages = {
            None: {"users": [{"user": {"fid": 2}}, {"user": {"fid": 3}}], "next": {"cursor": "c1"}},
            "c1": {"users": [{"user": {"fid": 4}}], "next": {"cursor": None}},
        }

        def handler(request):
            assert request.url.path == "/v2/farcaster/followers"
            return httpx.Response(200, json=pages[request.url.params.get("cursor")])

        assert _client(handler).fetch_followers(1) == [2, 3, 4]

    def test_max_results(self):
        def handler(request):
            return httpx.Response(200, json={"users": [{"fid": 9}, {"fid": 10}], "next": {"cursor": "again"}})

        assert _client(handler).fetch_following(1, max_results=3) == [9, 10, 9]


class TestPublish:

    def test_publish_body(self):
        captured = {}

        def handler(request):
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"notification_deliveries": []})

        payload = NotificationPayload(title="Hi", body="There", target_url="https://app/x", uuid="u-1")
        _client(handler).publish_frame_notifications([1, 2], payload, filters={"following_fid": 1})
        assert captured["path"] == "/v2/farcaster/frame/notifications/"
        assert captured["body"] == {
            "target_fids": [1, 2],
            "filters": {"following_fid": 1},
            "notification": {"title": "Hi", "body": "There", "target_url": "https://app/x", "uuid": "u-1"},
        }
