"""
Request signer for the X-Ops signed-header protocol

The signer canonicalizes a request under its protocol version, signs the
digest of the canonical string with an RSA private key, and returns the
complete set of authentication headers to attach to the outgoing request.
"""

import base64
import logging
from typing import Callable, Optional, Union

from ..crypto.rsa import PrivateKeyMaterial, load_private_key, sign_digest
from ..exceptions import OpsAuthError
from .canonical_request import CanonicalRequestBuilder
from .digester import content_hash as compute_content_hash, digest
from .header_codec import HeaderCodec
from .types import (
    CONTENT_HASH_HEADER,
    DEFAULT_PROTOCOL_VERSION,
    SERVER_API_VERSION_HEADER,
    SIGN_HEADER,
    TIMESTAMP_HEADER,
    USER_ID_HEADER,
    CanonicalField,
    HeaderDict,
    ProtocolVersion,
    SigningRequest,
)
from .utils import format_timestamp, generate_timestamp
from .versions import VersionRules, resolve_version


class Signer:
    """
    RSA request signer

    Holds only the loaded private key and immutable settings, so one instance
    can sign requests from many threads.
    """

    def __init__(
        self,
        private_key: PrivateKeyMaterial,
        default_version: Union[str, ProtocolVersion] = DEFAULT_PROTOCOL_VERSION,
        logger: Optional[logging.Logger] = None,
        timestamp_generator: Optional[Callable] = None
    ):
        """
        Initialize the signer.

        Args:
            private_key: PEM text/bytes or a loaded RSA private key
            default_version: Version used when a call does not name one
            logger: Logger for diagnostics; the module logger when None
            timestamp_generator: Clock used for requests without a timestamp

        Raises:
            InvalidKeyError: If the private key cannot be used
            UnsupportedVersionError: If default_version is unknown
        """
        self._private_key = load_private_key(private_key)
        self.default_rules = resolve_version(default_version)
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.timestamp_generator = timestamp_generator or generate_timestamp
        self.codec = HeaderCodec()

    def _rules_for(self, version: Optional[Union[str, ProtocolVersion]]) -> VersionRules:
        if version is None:
            return self.default_rules
        return resolve_version(version)

    def sign(self, canonical_string: str, version: Optional[Union[str, ProtocolVersion]] = None) -> str:
        """
        Sign a canonical string.

        Args:
            canonical_string: Output of CanonicalRequestBuilder
            version: Protocol version selecting the digest algorithm

        Returns:
            str: Base64-encoded signature
        """
        rules = self._rules_for(version)
        signing_digest = digest(canonical_string.encode('utf-8'), rules.digest_algorithm)
        signature = sign_digest(self._private_key, signing_digest)
        return base64.b64encode(signature).decode('ascii')

    def sign_request(
        self,
        request: SigningRequest,
        version: Optional[Union[str, ProtocolVersion]] = None
    ) -> HeaderDict:
        """
        Produce the authentication headers for a request.

        Args:
            request: Request to sign
            version: Overrides request.version

        Returns:
            HeaderDict: Headers to attach to the outgoing request

        Raises:
            UnsupportedVersionError: If the protocol version is unknown
            OpsAuthError: If signing fails for any other reason
        """
        rules = resolve_version(version if version is not None else request.version)

        try:
            timestamp = format_timestamp(
                request.timestamp if request.timestamp is not None else self.timestamp_generator()
            )
            body_hash = compute_content_hash(request.body, rules.digest_algorithm)

            builder = CanonicalRequestBuilder(rules)
            canonical_string = builder.from_request(request, timestamp=timestamp, content_hash=body_hash)
            signature_b64 = self.sign(canonical_string, rules.version)

            headers = {
                SIGN_HEADER: rules.sign_header_value,
                USER_ID_HEADER: request.user_id,
                TIMESTAMP_HEADER: timestamp,
                CONTENT_HASH_HEADER: body_hash,
            }
            if CanonicalField.SERVER_API_VERSION in rules.fields:
                headers[SERVER_API_VERSION_HEADER] = request.server_api_version

            headers.update(self.codec.to_headers(signature_b64))

        except OpsAuthError:
            raise
        except Exception as e:
            raise OpsAuthError(
                f"Request signing failed: {e}",
                "SIGNING_FAILED",
                {"original_error": type(e).__name__}
            ) from e

        self.logger.debug(
            f"Signed {request.method.upper()} request for user {request.user_id} "
            f"with protocol {rules.version.value}"
        )
        return headers


def create_signer(
    private_key: PrivateKeyMaterial,
    default_version: Union[str, ProtocolVersion] = DEFAULT_PROTOCOL_VERSION,
    logger: Optional[logging.Logger] = None
) -> Signer:
    """
    Create a new request signer.

    Args:
        private_key: RSA private key material
        default_version: Protocol version used when none is given per call
        logger: Optional logger

    Returns:
        Signer: Configured signer instance
    """
    return Signer(private_key, default_version=default_version, logger=logger)


def sign(
    canonical_string: str,
    private_key: PrivateKeyMaterial,
    version: Union[str, ProtocolVersion] = DEFAULT_PROTOCOL_VERSION
) -> str:
    """
    Sign a canonical string with the given key.

    Returns:
        str: Base64-encoded signature
    """
    return Signer(private_key, default_version=version).sign(canonical_string)


def sign_request(
    request: SigningRequest,
    private_key: PrivateKeyMaterial,
    version: Optional[Union[str, ProtocolVersion]] = None
) -> HeaderDict:
    """
    Sign a request with the given key.

    Args:
        request: Request to sign
        private_key: RSA private key material
        version: Overrides request.version

    Returns:
        HeaderDict: Authentication headers for the request
    """
    return Signer(private_key).sign_request(request, version)
