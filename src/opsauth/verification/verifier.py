"""
Signature verification engine for the X-Ops signed-header protocol

This module rebuilds the canonical string of an incoming request from its
headers, checks timestamp freshness, and validates the chunked RSA signature
against the caller's public key.
"""

import base64
import binascii
import hmac
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Type

from ..crypto.rsa import PublicKeyMaterial, load_public_key, verify_digest
from ..exceptions import (
    ConfigError,
    ExpiredSignatureError,
    InvalidKeyError,
    InvalidSignatureError,
    MalformedHeaderSetError,
    MissingHeaderError,
    OpsAuthError,
    UnsupportedVersionError,
)
from ..signing.canonical_request import CanonicalRequestBuilder
from ..signing.digester import content_hash as compute_content_hash, digest
from ..signing.header_codec import HeaderCodec, collect
from ..signing.types import (
    AUTHORIZATION_HEADER_PREFIX,
    CONTENT_HASH_HEADER,
    DEFAULT_SERVER_API_VERSION,
    SERVER_API_VERSION_HEADER,
    SIGN_HEADER,
    TIMESTAMP_HEADER,
    USER_ID_HEADER,
    CanonicalField,
)
from ..signing.utils import (
    HeaderSource,
    find_header_case_insensitive,
    parse_sign_header,
    parse_timestamp,
)
from ..signing.versions import resolve_version
from .types import FailureKind, IncomingRequest, VerificationResult

# Fifteen minutes either side of the verifier's clock
DEFAULT_ALLOWED_SKEW_SECONDS = 900

_FAILURE_KINDS: Dict[Type[OpsAuthError], FailureKind] = {
    UnsupportedVersionError: FailureKind.UNSUPPORTED_VERSION,
    MissingHeaderError: FailureKind.MISSING_HEADER,
    MalformedHeaderSetError: FailureKind.MALFORMED_HEADER_SET,
    ExpiredSignatureError: FailureKind.EXPIRED_SIGNATURE,
    InvalidSignatureError: FailureKind.INVALID_SIGNATURE,
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _require_header(headers: HeaderSource, name: str) -> str:
    value = find_header_case_insensitive(headers, name)
    if value is None or not value.strip():
        raise MissingHeaderError(name)
    return value.strip()


class Verifier:
    """
    Signed-header request verifier

    Each call to verify() is a single pass over one request; the instance
    keeps no per-request state and can be shared across threads.
    """

    def __init__(
        self,
        public_key: PublicKeyMaterial,
        allowed_skew_seconds: int = DEFAULT_ALLOWED_SKEW_SECONDS,
        logger: Optional[logging.Logger] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the verifier.

        Args:
            public_key: PEM text/bytes, certificate, or loaded RSA key
            allowed_skew_seconds: Accepted distance, in seconds, between the
                request timestamp and the verifier clock (both directions)
            logger: Logger for diagnostics; the module logger when None
            clock: Returns the current aware UTC time

        Raises:
            InvalidKeyError: If the public key cannot be used
            ConfigError: If allowed_skew_seconds is negative
        """
        if allowed_skew_seconds < 0:
            raise ConfigError(
                "Allowed skew must not be negative",
                "INVALID_SKEW",
                {"allowed_skew_seconds": allowed_skew_seconds}
            )

        self._public_key = load_public_key(public_key)
        self.allowed_skew_seconds = allowed_skew_seconds
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.clock = clock or _utc_now
        self.codec = HeaderCodec()

    def verify(self, request: IncomingRequest, headers: HeaderSource) -> VerificationResult:
        """
        Authenticate a request from its signed headers.

        Args:
            request: Received request
            headers: Request headers as a mapping or (name, value) pairs

        Returns:
            VerificationResult: Success, or the failure kind
        """
        user_id = find_header_case_insensitive(headers, USER_ID_HEADER)
        sign_header = find_header_case_insensitive(headers, SIGN_HEADER)
        version = parse_sign_header(sign_header).get('version') if sign_header else None

        try:
            self._verify(request, headers)
        except OpsAuthError as e:
            failure = _FAILURE_KINDS.get(type(e), FailureKind.INVALID_SIGNATURE)
            self.logger.info(
                f"Authentication failed for user {user_id!r} "
                f"(protocol {version!r}): {failure.value}"
            )
            return VerificationResult.failed(failure, user_id=user_id, version=version)

        self.logger.debug(f"Authenticated user {user_id!r} with protocol {version}")
        return VerificationResult.success(user_id, version)

    def _verify(self, request: IncomingRequest, headers: HeaderSource) -> None:
        # 1. Required headers
        sign_header = _require_header(headers, SIGN_HEADER)
        user_id = _require_header(headers, USER_ID_HEADER)
        timestamp_header = _require_header(headers, TIMESTAMP_HEADER)
        content_hash_header = _require_header(headers, CONTENT_HASH_HEADER)

        chunks = collect(headers)
        if not chunks:
            raise MissingHeaderError(f"{AUTHORIZATION_HEADER_PREFIX}1")

        sign_params = parse_sign_header(sign_header)
        rules = resolve_version(sign_params.get('version'))

        declared_algorithm = sign_params.get('algorithm')
        if declared_algorithm and declared_algorithm.lower() != rules.digest_algorithm.value:
            raise InvalidSignatureError()

        # 2. Freshness
        try:
            timestamp = parse_timestamp(timestamp_header)
        except (ValueError, OverflowError):
            raise InvalidSignatureError() from None
        self._check_freshness(timestamp)

        # 3. Canonical string from what was actually received
        body_hash = compute_content_hash(request.body, rules.digest_algorithm)
        if not hmac.compare_digest(body_hash.encode("utf-8"), content_hash_header.encode("utf-8")):
            raise InvalidSignatureError()

        server_api_version = DEFAULT_SERVER_API_VERSION
        if CanonicalField.SERVER_API_VERSION in rules.fields:
            server_api_version = (
                find_header_case_insensitive(headers, SERVER_API_VERSION_HEADER)
                or DEFAULT_SERVER_API_VERSION
            ).strip()

        builder = CanonicalRequestBuilder(rules)
        canonical_string = builder.build(
            request.method,
            builder.prepare_path(request.path),
            body_hash,
            timestamp,
            user_id,
            server_api_version
        )

        # 4. Signature chunks
        signature_b64 = self.codec.decode(chunks)
        try:
            signature = base64.b64decode(signature_b64, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidSignatureError() from None

        # 5. Cryptographic check
        expected_digest = digest(canonical_string.encode('utf-8'), rules.digest_algorithm)
        if not verify_digest(self._public_key, expected_digest, signature):
            raise InvalidSignatureError()

    def _check_freshness(self, timestamp: datetime) -> None:
        now = parse_timestamp(self.clock())
        skew = abs((now - timestamp).total_seconds())
        if skew > self.allowed_skew_seconds:
            raise ExpiredSignatureError(details={"skew_seconds": int(skew)})


def create_verifier(
    public_key: PublicKeyMaterial,
    allowed_skew_seconds: int = DEFAULT_ALLOWED_SKEW_SECONDS,
    logger: Optional[logging.Logger] = None
) -> Verifier:
    """
    Create a new verifier.

    Args:
        public_key: RSA public key material
        allowed_skew_seconds: Symmetric timestamp window in seconds
        logger: Optional logger

    Returns:
        Verifier: Configured verifier instance
    """
    return Verifier(public_key, allowed_skew_seconds=allowed_skew_seconds, logger=logger)


def authenticate_request(
    request: IncomingRequest,
    headers: HeaderSource,
    public_key: PublicKeyMaterial,
    allowed_skew_seconds: int = DEFAULT_ALLOWED_SKEW_SECONDS,
    clock: Optional[Callable[[], datetime]] = None,
    logger: Optional[logging.Logger] = None
) -> VerificationResult:
    """
    Validate an incoming request's authentication headers.

    A public key that cannot be loaded is reported as an invalid signature,
    so the outcome never depends on the caller's key handling.

    Args:
        request: Received request
        headers: Request headers
        public_key: Public key of the claimed user
        allowed_skew_seconds: Symmetric timestamp window in seconds
        clock: Optional clock override
        logger: Optional logger

    Returns:
        VerificationResult: Verification outcome
    """
    log = logger if logger is not None else logging.getLogger(__name__)
    try:
        verifier = Verifier(public_key, allowed_skew_seconds, logger=log, clock=clock)
    except InvalidKeyError as e:
        log.warning(f"Public key rejected for verification: {e.error_code}")
        return VerificationResult.failed(
            FailureKind.INVALID_SIGNATURE,
            user_id=find_header_case_insensitive(headers, USER_ID_HEADER)
        )
    return verifier.verify(request, headers)
