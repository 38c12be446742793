"""
opsauth - Request Signing Module

Signed-header request authentication: canonicalization, digesting, RSA
signing and chunked signature headers for protocol versions 1.0, 1.1 and 1.3.
"""

from .types import (
    SigningRequest,
    Digest,
    DigestAlgorithm,
    ProtocolVersion,
    CanonicalField,
    ChunkedHeaderSet,
    SIGN_HEADER,
    USER_ID_HEADER,
    TIMESTAMP_HEADER,
    CONTENT_HASH_HEADER,
    SERVER_API_VERSION_HEADER,
    AUTHORIZATION_HEADER_PREFIX,
    MAX_CHUNK_LENGTH,
    DEFAULT_PROTOCOL_VERSION,
    DEFAULT_SERVER_API_VERSION,
)

from .versions import (
    VersionRules,
    VERSION_RULES,
    resolve_version,
    supported_versions,
)

from .digester import (
    digest,
    digest_stream,
    content_hash,
)

from .canonical_request import (
    CanonicalRequestBuilder,
    build_canonical_request,
)

from .header_codec import HeaderCodec

from .signer import (
    Signer,
    create_signer,
    sign,
    sign_request,
)

from .utils import (
    format_timestamp,
    parse_timestamp,
    generate_timestamp,
    normalize_path,
)

from .integration import (
    OpsRequestAuth,
    create_signing_session,
    sign_prepared_request,
)

# Public API exports
__all__ = [
    # Core signing functionality
    'Signer',
    'create_signer',
    'sign',
    'sign_request',
    'CanonicalRequestBuilder',
    'build_canonical_request',
    'HeaderCodec',
    # Types
    'SigningRequest',
    'Digest',
    'DigestAlgorithm',
    'ProtocolVersion',
    'CanonicalField',
    'ChunkedHeaderSet',
    # Header names and defaults
    'SIGN_HEADER',
    'USER_ID_HEADER',
    'TIMESTAMP_HEADER',
    'CONTENT_HASH_HEADER',
    'SERVER_API_VERSION_HEADER',
    'AUTHORIZATION_HEADER_PREFIX',
    'MAX_CHUNK_LENGTH',
    'DEFAULT_PROTOCOL_VERSION',
    'DEFAULT_SERVER_API_VERSION',
    # Versions
    'VersionRules',
    'VERSION_RULES',
    'resolve_version',
    'supported_versions',
    # Digests
    'digest',
    'digest_stream',
    'content_hash',
    # Utilities
    'format_timestamp',
    'parse_timestamp',
    'generate_timestamp',
    'normalize_path',
    # HTTP Integration
    'OpsRequestAuth',
    'create_signing_session',
    'sign_prepared_request',
]
