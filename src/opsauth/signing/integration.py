"""
HTTP client integration for request signing

This module plugs the signer into the requests library so outgoing requests
are signed automatically, either per request through an auth hook or for a
whole session.
"""

import logging
from typing import Optional, Union

import requests
from requests.auth import AuthBase
from requests.models import PreparedRequest

from ..crypto.rsa import PrivateKeyMaterial
from ..exceptions import OpsAuthError
from .signer import Signer
from .versions import resolve_version
from .types import (
    DEFAULT_PROTOCOL_VERSION,
    DEFAULT_SERVER_API_VERSION,
    ProtocolVersion,
    SigningRequest,
)

logger = logging.getLogger(__name__)


def _signable_body(body):
    if body is None or isinstance(body, (bytes, str)) or hasattr(body, 'read'):
        return body
    raise OpsAuthError(
        f"Cannot sign request body of type {type(body).__name__}",
        "UNSIGNABLE_BODY",
        {"body_type": type(body).__name__}
    )


def sign_prepared_request(
    prepared_request: PreparedRequest,
    signer: Signer,
    user_id: str,
    version: Optional[Union[str, ProtocolVersion]] = None,
    server_api_version: str = DEFAULT_SERVER_API_VERSION
) -> PreparedRequest:
    """
    Add authentication headers to a prepared request.

    Args:
        prepared_request: Request prepared by requests
        signer: Signer holding the private key
        user_id: Identity to sign as
        version: Protocol version; the signer's default when None
        server_api_version: Server API version (1.3 only)

    Returns:
        PreparedRequest: The same request with headers added

    Raises:
        OpsAuthError: If the request cannot be signed
    """
    rules = resolve_version(version) if version is not None else signer.default_rules

    # Send exactly the bytes that were hashed
    if isinstance(prepared_request.body, str):
        prepared_request.body = prepared_request.body.encode("utf-8")

    request = SigningRequest(
        method=prepared_request.method,
        path=prepared_request.path_url,
        user_id=user_id,
        body=_signable_body(prepared_request.body),
        version=rules.version.value,
        server_api_version=server_api_version
    )

    headers = signer.sign_request(request)
    prepared_request.headers.update(headers)

    logger.debug(f"Signed {prepared_request.method} request to {prepared_request.path_url}")
    return prepared_request


class OpsRequestAuth(AuthBase):
    """
    requests auth hook that signs every request it is attached to

    Example:
        auth = OpsRequestAuth("alice", private_key_pem, version="1.3")
        requests.get("https://api.example.com/nodes", auth=auth)
    """

    def __init__(
        self,
        user_id: str,
        private_key: PrivateKeyMaterial,
        version: Union[str, ProtocolVersion] = DEFAULT_PROTOCOL_VERSION,
        server_api_version: str = DEFAULT_SERVER_API_VERSION,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the auth hook.

        Args:
            user_id: Identity to sign as
            private_key: RSA private key material
            version: Protocol version to sign with
            server_api_version: Server API version (1.3 only)
            logger: Optional logger passed to the signer

        Raises:
            InvalidKeyError: If the private key cannot be used
            UnsupportedVersionError: If the version is unknown
        """
        if not user_id:
            raise ValueError("User ID cannot be empty")

        self.user_id = user_id
        self.server_api_version = server_api_version
        self.signer = Signer(private_key, default_version=version, logger=logger)

    def __call__(self, prepared_request: PreparedRequest) -> PreparedRequest:
        return sign_prepared_request(
            prepared_request,
            self.signer,
            self.user_id,
            server_api_version=self.server_api_version
        )


def create_signing_session(
    user_id: str,
    private_key: PrivateKeyMaterial,
    version: Union[str, ProtocolVersion] = DEFAULT_PROTOCOL_VERSION,
    session: Optional[requests.Session] = None,
    server_api_version: str = DEFAULT_SERVER_API_VERSION
) -> requests.Session:
    """
    Create a requests session that signs every request.

    Args:
        user_id: Identity to sign as
        private_key: RSA private key material
        version: Protocol version to sign with
        session: Existing session to configure; a new one when None
        server_api_version: Server API version (1.3 only)

    Returns:
        requests.Session: Session with the auth hook installed
    """
    session = session or requests.Session()
    session.auth = OpsRequestAuth(
        user_id,
        private_key,
        version=version,
        server_api_version=server_api_version
    )
    logger.info(f"Configured request signing for user {user_id}")
    return session
