"""
Canonical request construction for the X-Ops signed-header protocol

The canonical string is a newline-joined list of ``Label:value`` lines in the
order fixed by the protocol version. It depends only on its inputs and the
version rules, so signer and verifier always derive the same string from the
same request.
"""

from typing import Dict, Optional, Union

from .types import (
    CanonicalField,
    ProtocolVersion,
    SigningRequest,
    Timestamp,
    DEFAULT_SERVER_API_VERSION,
)
from .versions import VersionRules, resolve_version
from .digester import content_hash as compute_content_hash, hash_text
from .utils import format_timestamp


class CanonicalRequestBuilder:
    """
    Canonical string builder bound to one protocol version
    """

    def __init__(self, rules: Union[VersionRules, str, ProtocolVersion]):
        """
        Initialize the builder.

        Args:
            rules: Version rules, or a version identifier to resolve

        Raises:
            UnsupportedVersionError: If a version identifier is unknown
        """
        if not isinstance(rules, VersionRules):
            rules = resolve_version(rules)
        self.rules = rules

    def prepare_path(self, path: str) -> str:
        """
        Normalize a path and hash it when the version requires.

        Args:
            path: Raw request path

        Returns:
            str: Value for the path line of the canonical string
        """
        canonical_path = self.rules.normalize_path(path)
        if self.rules.hashes_path:
            return hash_text(canonical_path, self.rules.digest_algorithm)
        return canonical_path

    def prepare_user_id(self, user_id: str) -> str:
        """User id as it appears in the canonical string"""
        if self.rules.hash_user_id:
            return hash_text(user_id, self.rules.digest_algorithm)
        return user_id

    def build(
        self,
        method: str,
        hashed_path: str,
        content_hash: str,
        timestamp: Timestamp,
        user_id: str,
        server_api_version: str = DEFAULT_SERVER_API_VERSION
    ) -> str:
        """
        Build the canonical string from already prepared fields.

        Args:
            method: HTTP method
            hashed_path: Output of prepare_path
            content_hash: Base64 body digest
            timestamp: Request timestamp
            user_id: Raw user id (hashed here when the version requires)
            server_api_version: Server API version (1.3 only)

        Returns:
            str: Canonical string
        """
        values: Dict[CanonicalField, str] = {
            CanonicalField.METHOD: method.upper(),
            CanonicalField.HASHED_PATH: hashed_path,
            CanonicalField.PATH: hashed_path,
            CanonicalField.CONTENT_HASH: content_hash,
            CanonicalField.SIGN: f"version={self.rules.version.value}",
            CanonicalField.TIMESTAMP: format_timestamp(timestamp),
            CanonicalField.USER_ID: self.prepare_user_id(user_id),
            CanonicalField.SERVER_API_VERSION: server_api_version,
        }
        return '\n'.join(f"{field.value}:{values[field]}" for field in self.rules.fields)

    def from_request(
        self,
        request: SigningRequest,
        timestamp: Optional[Timestamp] = None,
        content_hash: Optional[str] = None
    ) -> str:
        """
        Run the full canonicalization pipeline for a signing request.

        Args:
            request: Request to canonicalize
            timestamp: Overrides request.timestamp
            content_hash: Precomputed body hash, to avoid hashing a stream twice

        Returns:
            str: Canonical string
        """
        effective_timestamp = timestamp if timestamp is not None else request.timestamp
        if effective_timestamp is None:
            raise ValueError("A timestamp is required to canonicalize a request")

        if content_hash is None:
            content_hash = compute_content_hash(request.body, self.rules.digest_algorithm)

        return self.build(
            request.method,
            self.prepare_path(request.path),
            content_hash,
            effective_timestamp,
            request.user_id,
            request.server_api_version
        )


def build_canonical_request(
    method: str,
    path: str,
    body,
    timestamp: Timestamp,
    user_id: str,
    version: Union[str, ProtocolVersion],
    server_api_version: str = DEFAULT_SERVER_API_VERSION
) -> str:
    """
    Canonical string for raw request fields.

    Args:
        method: HTTP method
        path: Raw request path
        body: Request body (bytes, text, stream or None)
        timestamp: Request timestamp
        user_id: User id
        version: Protocol version
        server_api_version: Server API version (1.3 only)

    Returns:
        str: Canonical string
    """
    builder = CanonicalRequestBuilder(version)
    return builder.build(
        method,
        builder.prepare_path(path),
        compute_content_hash(body, builder.rules.digest_algorithm),
        timestamp,
        user_id,
        server_api_version
    )
