"""
RelayForwarder: action -> exactly one upstream call, auth precedence, envelope statuses.
"""
import base64
import json

import httpx
import pytest

from parkaccess.services.backend import BackendConfig
from parkaccess.services.relay import RelayForwarder

from tests.fakes import BASE_URL, SERVICE_KEY


class Recorder:
    """Upstream double that records requests and answers with a fixed response."""

    def __init__(self, response=None, exc=None):
        self.requests = []
        self._response = response or httpx.Response(200, json={"ok": True})
        self._exc = exc

    def __call__(self, request):
        self.requests.append(request)
        if self._exc is not None:
            raise self._exc
        return self._response


def forwarder_with(recorder, *, base_url=BASE_URL, key=SERVICE_KEY):
    client = httpx.Client(transport=httpx.MockTransport(recorder))
    return RelayForwarder(BackendConfig(base_url=base_url, api_key=key), http_client=client)


MAPPING = [
    ({"action": "signUp", "email": "a@b.gr", "password": "secret1"}, "POST", "/auth/v1/signup", ""),
    ({"action": "signIn", "email": "a@b.gr", "password": "secret1"}, "POST", "/auth/v1/token", "grant_type=password"),
    ({"action": "signInWithPassword", "email": "a@b.gr", "password": "secret1"}, "POST", "/auth/v1/token", "grant_type=password"),
    ({"action": "signOut"}, "POST", "/auth/v1/logout", ""),
    ({"action": "getUser"}, "GET", "/auth/v1/user", ""),
    ({"action": "select", "table": "parking_spots", "query": "status=eq.approved"}, "GET", "/rest/v1/parking_spots", "status=eq.approved"),
    ({"action": "insert", "table": "parking_spots", "data": {"latitude": 1}}, "POST", "/rest/v1/parking_spots", ""),
    ({"action": "update", "table": "parking_spots", "data": {"status": "rejected"}, "query": "id=eq.7"}, "PATCH", "/rest/v1/parking_spots", "id=eq.7"),
    ({"action": "delete", "table": "parking_spots", "query": "id=eq.7"}, "DELETE", "/rest/v1/parking_spots", "id=eq.7"),
    ({"action": "storage", "bucket": "spot-images", "path": "spots/a.jpg"}, "GET", "/storage/v1/object/spot-images/spots/a.jpg", ""),
    ({"action": "upload", "bucket": "spot-images", "path": "spots/a.jpg", "content_base64": "AAEC", "content_type": "image/jpeg"}, "POST", "/storage/v1/object/spot-images/spots/a.jpg", ""),
]


class TestActionMapping:
    @pytest.mark.parametrize("payload,method,path,query", MAPPING, ids=[m[0]["action"] for m in MAPPING])
    def test_one_upstream_call_per_action(self, payload, method, path, query):
        recorder = Recorder()
        status, body = forwarder_with(recorder).forward(payload)
        assert status == 200
        assert body == {"status": 200, "data": {"ok": True}}
        assert len(recorder.requests) == 1
        sent = recorder.requests[0]
        assert sent.method == method
        assert sent.url.path == path
        assert sent.url.query.decode() == query
        assert sent.headers["apikey"] == SERVICE_KEY

    def test_insert_and_update_ask_for_the_rows_back(self):
        for payload in (MAPPING[6][0], MAPPING[7][0]):
            recorder = Recorder()
            forwarder_with(recorder).forward(payload)
            assert recorder.requests[0].headers["prefer"] == "return=representation"
            assert json.loads(recorder.requests[0].content) == payload["data"]

    def test_upload_sends_decoded_bytes_without_overwrite(self):
        recorder = Recorder()
        forwarder_with(recorder).forward(MAPPING[10][0])
        sent = recorder.requests[0]
        assert sent.content == base64.b64decode("AAEC")
        assert sent.headers["content-type"] == "image/jpeg"
        assert sent.headers["x-upsert"] == "false"
        assert sent.headers["cache-control"] == "max-age=3600"


class TestAuthPrecedence:
    def test_caller_token_wins_over_service_key(self):
        recorder = Recorder()
        forwarder_with(recorder).forward({"action": "select", "table": "parking_spots", "token": "user-jwt"})
        assert recorder.requests[0].headers["authorization"] == "Bearer user-jwt"

    def test_service_key_without_token(self):
        recorder = Recorder()
        forwarder_with(recorder).forward({"action": "getUser"})
        assert recorder.requests[0].headers["authorization"] == f"Bearer {SERVICE_KEY}"

    @pytest.mark.parametrize("tag", ["signUp", "signIn"])
    def test_identity_calls_always_use_service_key(self, tag):
        recorder = Recorder()
        forwarder_with(recorder).forward({"action": tag, "email": "a@b.gr", "password": "secret1", "token": "stale"})
        assert recorder.requests[0].headers["authorization"] == f"Bearer {SERVICE_KEY}"


class TestEnvelope:
    def test_upstream_failure_is_carried_inside_200(self):
        recorder = Recorder(httpx.Response(409, json={"message": "duplicate key value"}))
        status, body = forwarder_with(recorder).forward({"action": "insert", "table": "parking_spots", "data": {}})
        assert status == 200
        assert body == {"status": 409, "data": {"message": "duplicate key value"}}

    def test_empty_upstream_body_is_null(self):
        recorder = Recorder(httpx.Response(204))
        status, body = forwarder_with(recorder).forward({"action": "delete", "table": "parking_spots", "query": "id=eq.1"})
        assert (status, body) == (200, {"status": 204, "data": None})

    def test_binary_object_comes_back_base64(self):
        recorder = Recorder(httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"}))
        _, body = forwarder_with(recorder).forward({"action": "storage", "bucket": "spot-images", "path": "spots/a.png"})
        assert body["data"] == {"content_type": "image/png", "content_base64": base64.b64encode(b"\x89PNG").decode()}

    @pytest.mark.parametrize("payload", [{"action": "drop"}, {"action": None}, {}])
    def test_unknown_action_is_400_with_no_upstream_call(self, payload):
        recorder = Recorder()
        status, body = forwarder_with(recorder).forward(payload)
        assert (status, body) == (400, {"error": "Invalid action"})
        assert recorder.requests == []

    def test_malformed_known_action_is_500(self):
        recorder = Recorder()
        status, body = forwarder_with(recorder).forward({"action": "delete", "table": "parking_spots"})
        assert status == 500
        assert "error" in body
        assert recorder.requests == []

    def test_transport_error_is_500(self):
        recorder = Recorder(exc=httpx.ConnectError("connection refused"))
        status, body = forwarder_with(recorder).forward({"action": "getUser"})
        assert status == 500
        assert "connection refused" in body["error"]

    def test_unconfigured_relay_is_500(self):
        recorder = Recorder()
        status, body = forwarder_with(recorder, base_url="", key="").forward({"action": "getUser"})
        assert status == 500
        assert "not configured" in body["error"]
        assert recorder.requests == []
