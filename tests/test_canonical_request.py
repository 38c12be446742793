"""
Tests for canonical request construction and path normalization
"""

import base64
import hashlib
from datetime import datetime, timezone

import pytest

from opsauth.exceptions import UnsupportedVersionError
from opsauth.signing import (
    CanonicalRequestBuilder,
    SigningRequest,
    build_canonical_request,
    normalize_path,
)

EMPTY_SHA1 = "2jmj7l5rSw0yVb/vlWAYkK/YBwk="
EMPTY_SHA256 = "47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU="
TIMESTAMP = "2024-01-01T00:00:00Z"


def b64_sha1(text):
    return base64.b64encode(hashlib.sha1(text.encode("utf-8")).digest()).decode("ascii")


class TestNormalizePath:
    """Test path normalization"""

    @pytest.mark.parametrize("raw,expected", [
        ("/nodes", "/nodes"),
        ("/nodes/", "/nodes"),
        ("//nodes///web1//", "/nodes/web1"),
        ("/nodes?q=1", "/nodes"),
        ("/nodes#frag", "/nodes"),
        ("/", "/"),
        ("//", "/"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_path(raw) == expected


class TestCanonicalStrings:
    """Test exact canonical strings per version"""

    def test_version_1_0(self):
        result = build_canonical_request("get", "/nodes", b"", TIMESTAMP, "alice", "1.0")
        assert result == "\n".join([
            "Method:GET",
            f"Hashed Path:{b64_sha1('/nodes')}",
            f"X-Ops-Content-Hash:{EMPTY_SHA1}",
            f"X-Ops-Timestamp:{TIMESTAMP}",
            "X-Ops-UserId:alice",
        ])

    def test_version_1_1_hashes_user_id(self):
        result = build_canonical_request("GET", "/nodes", b"", TIMESTAMP, "alice", "1.1")
        assert result == "\n".join([
            "Method:GET",
            f"Hashed Path:{b64_sha1('/nodes')}",
            f"X-Ops-Content-Hash:{EMPTY_SHA1}",
            f"X-Ops-Timestamp:{TIMESTAMP}",
            f"X-Ops-UserId:{b64_sha1('alice')}",
        ])

    def test_version_1_3(self):
        result = build_canonical_request("POST", "/nodes/", b"", TIMESTAMP, "alice", "1.3", "1")
        assert result == "\n".join([
            "Method:POST",
            "Path:/nodes",
            f"X-Ops-Content-Hash:{EMPTY_SHA256}",
            "X-Ops-Sign:version=1.3",
            f"X-Ops-Timestamp:{TIMESTAMP}",
            "X-Ops-UserId:alice",
            "X-Ops-Server-API-Version:1",
        ])

    def test_no_trailing_newline(self):
        result = build_canonical_request("GET", "/", b"", TIMESTAMP, "alice", "1.0")
        assert not result.endswith("\n")

    def test_equivalent_paths_canonicalize_identically(self):
        a = build_canonical_request("GET", "/nodes/", b"", TIMESTAMP, "alice", "1.1")
        b = build_canonical_request("GET", "//nodes?x=1", b"", TIMESTAMP, "alice", "1.1")
        assert a == b

    def test_datetime_timestamp_formatted(self):
        when = datetime(2024, 1, 1, tzinfo=timezone.utc)
        result = build_canonical_request("GET", "/", b"", when, "alice", "1.0")
        assert f"X-Ops-Timestamp:{TIMESTAMP}" in result.split("\n")

    def test_unknown_version(self):
        with pytest.raises(UnsupportedVersionError):
            build_canonical_request("GET", "/", b"", TIMESTAMP, "alice", "1.2")


class TestCanonicalRequestBuilder:
    """Test the builder API"""

    def test_from_request_matches_function(self):
        request = SigningRequest(
            method="PUT",
            path="/roles/web",
            user_id="bob",
            body=b'{"a":1}',
            timestamp=TIMESTAMP,
            version="1.3",
        )
        builder = CanonicalRequestBuilder("1.3")
        expected = build_canonical_request("PUT", "/roles/web", b'{"a":1}', TIMESTAMP, "bob", "1.3")
        assert builder.from_request(request) == expected

    def test_from_request_requires_timestamp(self):
        request = SigningRequest(method="GET", path="/", user_id="bob")
        with pytest.raises(ValueError):
            CanonicalRequestBuilder("1.1").from_request(request)

    def test_prepare_path(self):
        assert CanonicalRequestBuilder("1.3").prepare_path("/a//b/") == "/a/b"
        assert CanonicalRequestBuilder("1.0").prepare_path("/a//b/") == b64_sha1("/a/b")

    def test_request_validation(self):
        with pytest.raises(ValueError):
            SigningRequest(method="", path="/", user_id="bob")
        with pytest.raises(ValueError):
            SigningRequest(method="GET", path="/", user_id="")
