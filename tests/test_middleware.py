"""
Tests for the WSGI authentication middleware
"""

import io
import json
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
import requests

from opsauth.signing import OpsRequestAuth, Signer, SigningRequest
from opsauth.verification import AuthenticationMiddleware, FailureKind
from opsauth.verification.middleware import extract_headers, read_body, request_path


def make_environ(method="GET", path="/nodes", body=b"", headers=None, script_name=""):
    environ = {
        "REQUEST_METHOD": method,
        "SCRIPT_NAME": script_name,
        "PATH_INFO": path,
        "QUERY_STRING": "",
        "CONTENT_LENGTH": str(len(body)) if body else "",
        "wsgi.input": io.BytesIO(body),
    }
    for name, value in (headers or {}).items():
        environ["HTTP_" + name.upper().replace("-", "_")] = value
    return environ


def downstream_app(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [environ["opsauth.user_id"].encode("utf-8"), environ["wsgi.input"].read()]


class TestEnvironHelpers:
    """Test WSGI environ helpers"""

    def test_extract_headers(self):
        environ = make_environ(headers={"X-Ops-Userid": "alice"})
        environ["CONTENT_TYPE"] = "application/json"
        headers = dict(extract_headers(environ))
        assert headers["X-Ops-Userid"] == "alice"
        assert headers["Content-Type"] == "application/json"

    def test_read_body_restores_stream(self):
        environ = make_environ(body=b"payload")
        assert read_body(environ) == b"payload"
        assert environ["wsgi.input"].read() == b"payload"

    def test_read_body_bad_length(self):
        environ = make_environ(body=b"payload")
        environ["CONTENT_LENGTH"] = "abc"
        assert read_body(environ) == b""

    def test_request_path(self):
        assert request_path(make_environ(path="/nodes", script_name="/api")) == "/api/nodes"
        assert request_path(make_environ(path="")) == "/"


class TestAuthenticationMiddleware:
    """Test request authentication in front of a WSGI app"""

    @pytest.fixture
    def headers(self, private_key):
        request = SigningRequest(
            method="POST", path="/nodes", user_id="alice",
            body=b'{"name":"web1"}', version="1.3",
        )
        return Signer(private_key).sign_request(request)

    @pytest.fixture
    def middleware(self, public_key_pem):
        keys = {"alice": public_key_pem}
        return AuthenticationMiddleware(downstream_app, keys.get)

    def test_authenticated_request_passes_through(self, middleware, headers):
        start_response = Mock()
        environ = make_environ("POST", "/nodes", b'{"name":"web1"}', headers)

        body = b"".join(middleware(environ, start_response))

        start_response.assert_called_once_with("200 OK", [("Content-Type", "text/plain")])
        assert body == b'alice{"name":"web1"}'
        assert environ["opsauth.result"].ok

    def test_tampered_request_rejected(self, middleware, headers):
        start_response = Mock()
        environ = make_environ("POST", "/nodes", b'{"name":"evil"}', headers)

        body = b"".join(middleware(environ, start_response))

        status, response_headers = start_response.call_args[0]
        assert status == "401 Unauthorized"
        assert ("Content-Type", "application/json") in response_headers
        assert json.loads(body) == {"error": "Authentication failed"}
        assert "opsauth.user_id" not in environ

    def test_failures_indistinguishable(self, middleware, headers):
        """Unknown user, missing header and bad signature look the same"""
        bodies = []
        for environ in (
            make_environ("POST", "/nodes", b"", {}),
            make_environ("POST", "/nodes", b"", dict(headers, **{"X-Ops-Userid": "bob"})),
            make_environ("GET", "/nodes", b'{"name":"web1"}', headers),
        ):
            start_response = Mock()
            bodies.append((b"".join(middleware(environ, start_response)), start_response.call_args[0]))
        assert bodies[0] == bodies[1] == bodies[2]

    def test_missing_user_id(self, middleware):
        result = middleware.authenticate(make_environ())
        assert result.failure == FailureKind.MISSING_HEADER

    def test_unknown_user(self, middleware, headers):
        result = middleware.authenticate(make_environ("POST", "/nodes", b"", dict(headers, **{"X-Ops-Userid": "bob"})))
        assert result.failure == FailureKind.INVALID_SIGNATURE
        assert result.user_id == "bob"

    def test_on_result_callback(self, public_key_pem, headers):
        on_result = Mock()
        middleware = AuthenticationMiddleware(
            downstream_app, lambda user_id: public_key_pem, on_result=on_result
        )
        environ = make_environ("POST", "/nodes", b'{"name":"web1"}', headers)
        middleware(environ, Mock())

        result, seen_environ = on_result.call_args[0]
        assert result.ok
        assert seen_environ is environ

    def test_expired_request(self, public_key_pem, headers):
        middleware = AuthenticationMiddleware(downstream_app, lambda user_id: public_key_pem)
        later = datetime(2099, 1, 1, tzinfo=timezone.utc)
        with patch("opsauth.verification.verifier._utc_now", return_value=later):
            result = middleware.authenticate(make_environ("POST", "/nodes", b'{"name":"web1"}', headers))
        assert result.failure == FailureKind.EXPIRED_SIGNATURE


class TestEncodedPaths:
    """Test that paths signed by the requests hook verify after WSGI decoding"""

    @pytest.fixture
    def prepared(self, private_key_pem):
        return requests.Request(
            "GET", "http://chef.example.com/nodes/my%20node", auth=OpsRequestAuth("alice", private_key_pem)
        ).prepare()

    @pytest.fixture
    def middleware(self, public_key_pem):
        return AuthenticationMiddleware(downstream_app, lambda user_id: public_key_pem)

    def test_decoded_path_info(self, prepared, middleware):
        assert prepared.path_url == "/nodes/my%20node"
        environ = make_environ("GET", "/nodes/my node", b"", dict(prepared.headers))
        assert middleware.authenticate(environ).ok

    def test_raw_uri_preferred(self, prepared, middleware):
        environ = make_environ("GET", "/nodes/my node", b"", dict(prepared.headers))
        environ["RAW_URI"] = "/nodes/my%20node?x=1"
        assert request_path(environ) == "/nodes/my%20node"
        assert middleware.authenticate(environ).ok

    def test_request_uri(self):
        environ = make_environ(path="/a b")
        environ["REQUEST_URI"] = "/a%20b"
        assert request_path(environ) == "/a%20b"

    def test_requote_keeps_reserved_characters(self):
        assert request_path(make_environ(path="/nodes/a:b@c,d")) == "/nodes/a:b@c,d"
        assert request_path(make_environ(path="/nodes/100%")) == "/nodes/100%25"
