"""
Tests for protocol version rules and lookup
"""

import pytest

from opsauth.exceptions import UnsupportedVersionError
from opsauth.signing import (
    VERSION_RULES,
    CanonicalField,
    DigestAlgorithm,
    ProtocolVersion,
    resolve_version,
    supported_versions,
)


class TestResolveVersion:
    """Test version lookup"""

    @pytest.mark.parametrize("version,algorithm", [
        ("1.0", DigestAlgorithm.SHA1),
        ("1.1", DigestAlgorithm.SHA1),
        ("1.3", DigestAlgorithm.SHA256),
    ])
    def test_known_versions(self, version, algorithm):
        """Each registered version resolves to its digest algorithm"""
        rules = resolve_version(version)
        assert rules.version == ProtocolVersion(version)
        assert rules.digest_algorithm == algorithm

    def test_accepts_enum_member(self):
        assert resolve_version(ProtocolVersion.V1_3) is VERSION_RULES[ProtocolVersion.V1_3]

    @pytest.mark.parametrize("version", ["1.2", "2.0", "", None, "1.1 "])
    def test_unknown_versions_rejected(self, version):
        """Unknown versions never fall back to a default"""
        with pytest.raises(UnsupportedVersionError) as exc_info:
            resolve_version(version)
        assert exc_info.value.error_code == "UNSUPPORTED_VERSION"

    def test_supported_versions(self):
        assert supported_versions() == ("1.0", "1.1", "1.3")


class TestVersionRules:
    """Test the per-version strategy fields"""

    def test_v1_fields_hash_path(self):
        for version in ("1.0", "1.1"):
            rules = resolve_version(version)
            assert rules.hashes_path
            assert rules.fields == (
                CanonicalField.METHOD,
                CanonicalField.HASHED_PATH,
                CanonicalField.CONTENT_HASH,
                CanonicalField.TIMESTAMP,
                CanonicalField.USER_ID,
            )

    def test_only_v1_1_hashes_user_id(self):
        assert not resolve_version("1.0").hash_user_id
        assert resolve_version("1.1").hash_user_id
        assert not resolve_version("1.3").hash_user_id

    def test_v1_3_fields(self):
        rules = resolve_version("1.3")
        assert not rules.hashes_path
        assert rules.fields[-1] == CanonicalField.SERVER_API_VERSION
        assert CanonicalField.SIGN in rules.fields

    def test_sign_header_value(self):
        assert resolve_version("1.1").sign_header_value == "algorithm=sha1;version=1.1;"
        assert resolve_version("1.3").sign_header_value == "algorithm=sha256;version=1.3;"

    def test_rules_table_is_read_only(self):
        with pytest.raises(TypeError):
            VERSION_RULES["9.9"] = VERSION_RULES[ProtocolVersion.V1_0]
