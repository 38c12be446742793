"""
opsauth - Signature Verification Module

Verification of signed-header requests, plus WSGI middleware that answers
every authentication failure with the same 401 response.
"""

from .types import (
    IncomingRequest,
    VerificationResult,
    VerificationStatus,
    FailureKind,
    PUBLIC_FAILURE_MESSAGE,
)

from .verifier import (
    Verifier,
    create_verifier,
    authenticate_request,
    DEFAULT_ALLOWED_SKEW_SECONDS,
)

from .middleware import (
    AuthenticationMiddleware,
    KeyResolver,
)

__all__ = [
    # Core verification
    'Verifier',
    'create_verifier',
    'authenticate_request',
    'DEFAULT_ALLOWED_SKEW_SECONDS',
    # Types
    'IncomingRequest',
    'VerificationResult',
    'VerificationStatus',
    'FailureKind',
    'PUBLIC_FAILURE_MESSAGE',
    # Middleware
    'AuthenticationMiddleware',
    'KeyResolver',
]
