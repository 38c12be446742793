"""
Protocol version rules

Each supported protocol version is bound to a fixed strategy: the order of
canonical fields, the digest algorithm, and the path normalization rule.
Lookup is strict; an unknown version never falls back to a default.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Tuple, Union

from ..exceptions import UnsupportedVersionError
from .types import CanonicalField, DigestAlgorithm, ProtocolVersion
from .utils import normalize_path


@dataclass(frozen=True)
class VersionRules:
    """
    Canonicalization strategy for one protocol version

    Attributes:
        version: Protocol version these rules apply to
        digest_algorithm: Algorithm for content hashes and the signing digest
        fields: Canonical fields in the order they are emitted
        hash_user_id: Whether the user id is hashed before inclusion
        normalize_path: Path normalization applied before hashing
    """
    version: ProtocolVersion
    digest_algorithm: DigestAlgorithm
    fields: Tuple[CanonicalField, ...]
    hash_user_id: bool = False
    normalize_path: Callable[[str], str] = normalize_path

    @property
    def hashes_path(self) -> bool:
        return CanonicalField.HASHED_PATH in self.fields

    @property
    def sign_header_value(self) -> str:
        """X-Ops-Sign header value announcing this version"""
        return f"algorithm={self.digest_algorithm.value};version={self.version.value};"


_V1_FIELDS = (
    CanonicalField.METHOD,
    CanonicalField.HASHED_PATH,
    CanonicalField.CONTENT_HASH,
    CanonicalField.TIMESTAMP,
    CanonicalField.USER_ID,
)

VERSION_RULES: Mapping[ProtocolVersion, VersionRules] = MappingProxyType({
    ProtocolVersion.V1_0: VersionRules(
        version=ProtocolVersion.V1_0,
        digest_algorithm=DigestAlgorithm.SHA1,
        fields=_V1_FIELDS,
    ),
    ProtocolVersion.V1_1: VersionRules(
        version=ProtocolVersion.V1_1,
        digest_algorithm=DigestAlgorithm.SHA1,
        fields=_V1_FIELDS,
        hash_user_id=True,
    ),
    ProtocolVersion.V1_3: VersionRules(
        version=ProtocolVersion.V1_3,
        digest_algorithm=DigestAlgorithm.SHA256,
        fields=(
            CanonicalField.METHOD,
            CanonicalField.PATH,
            CanonicalField.CONTENT_HASH,
            CanonicalField.SIGN,
            CanonicalField.TIMESTAMP,
            CanonicalField.USER_ID,
            CanonicalField.SERVER_API_VERSION,
        ),
    ),
})


def resolve_version(version: Union[str, ProtocolVersion]) -> VersionRules:
    """
    Look up the rules for a protocol version.

    Args:
        version: Version identifier such as "1.1"

    Returns:
        VersionRules: Rules bound to that version

    Raises:
        UnsupportedVersionError: If the version has no registered rules
    """
    try:
        key = ProtocolVersion(version)
    except ValueError:
        raise UnsupportedVersionError(version) from None
    return VERSION_RULES[key]


def supported_versions() -> Tuple[str, ...]:
    """Version identifiers accepted by resolve_version"""
    return tuple(v.value for v in VERSION_RULES)
