"""
opsauth
Signed-header request authentication (X-Ops protocol) with RSA keys
"""

import logging

from .version import __version__
from .exceptions import (
    OpsAuthError,
    UnsupportedVersionError,
    InvalidKeyError,
    MalformedHeaderSetError,
    MissingHeaderError,
    ExpiredSignatureError,
    InvalidSignatureError,
    ConfigError,
)
from .signing import (
    Signer,
    SigningRequest,
    ProtocolVersion,
    DigestAlgorithm,
    CanonicalRequestBuilder,
    HeaderCodec,
    create_signer,
    sign,
    sign_request,
    resolve_version,
    supported_versions,
    OpsRequestAuth,
    create_signing_session,
)
from .verification import (
    Verifier,
    IncomingRequest,
    VerificationResult,
    FailureKind,
    create_verifier,
    authenticate_request,
    AuthenticationMiddleware,
)
from .config import AuthConfig, load_config, configure_logging

# Silent unless the application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    '__version__',
    # Exceptions
    'OpsAuthError',
    'UnsupportedVersionError',
    'InvalidKeyError',
    'MalformedHeaderSetError',
    'MissingHeaderError',
    'ExpiredSignatureError',
    'InvalidSignatureError',
    'ConfigError',
    # Signing
    'Signer',
    'SigningRequest',
    'ProtocolVersion',
    'DigestAlgorithm',
    'CanonicalRequestBuilder',
    'HeaderCodec',
    'create_signer',
    'sign',
    'sign_request',
    'resolve_version',
    'supported_versions',
    'OpsRequestAuth',
    'create_signing_session',
    # Verification
    'Verifier',
    'IncomingRequest',
    'VerificationResult',
    'FailureKind',
    'create_verifier',
    'authenticate_request',
    'AuthenticationMiddleware',
    # Configuration
    'AuthConfig',
    'load_config',
    'configure_logging',
]
