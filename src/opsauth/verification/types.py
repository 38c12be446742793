"""
Type definitions for signature verification functionality

This module provides the incoming-request type, the verification outcome, and
the failure kinds a verification can end in.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..signing.types import RequestBody


PUBLIC_FAILURE_MESSAGE = "Authentication failed"


class VerificationStatus(str, Enum):
    """Verification result status"""
    VALID = "valid"
    INVALID = "invalid"


class FailureKind(str, Enum):
    """Internal reason a verification failed"""
    UNSUPPORTED_VERSION = "UNSUPPORTED_VERSION"
    MISSING_HEADER = "MISSING_HEADER"
    MALFORMED_HEADER_SET = "MALFORMED_HEADER_SET"
    EXPIRED_SIGNATURE = "EXPIRED_SIGNATURE"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"


@dataclass(frozen=True)
class IncomingRequest:
    """
    Received request to be authenticated

    Attributes:
        method: HTTP method as received
        path: Request path; a query string, if present, is ignored
        body: Request body as bytes, text or a binary stream
    """
    method: str
    path: str
    body: RequestBody = b""

    def __post_init__(self):
        """Validate request after initialization"""
        if not self.method:
            raise ValueError("Request method cannot be empty")
        if not self.path:
            raise ValueError("Request path cannot be empty")


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of a single verification

    ``failure`` is for server-side diagnostics only. Anything returned to the
    client should use ``public_message``, which is the same for every failure.

    Attributes:
        status: VALID or INVALID
        failure: Failure kind when status is INVALID
        user_id: User id claimed by the request headers, if present
        version: Protocol version claimed by the request headers, if present
    """
    status: VerificationStatus
    failure: Optional[FailureKind] = None
    user_id: Optional[str] = None
    version: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == VerificationStatus.VALID

    def __bool__(self) -> bool:
        return self.ok

    @property
    def public_message(self) -> Optional[str]:
        """Caller-visible message; never reveals the failure kind"""
        return None if self.ok else PUBLIC_FAILURE_MESSAGE

    @classmethod
    def success(cls, user_id: str, version: str) -> 'VerificationResult':
        return cls(status=VerificationStatus.VALID, user_id=user_id, version=version)

    @classmethod
    def failed(
        cls,
        failure: FailureKind,
        user_id: Optional[str] = None,
        version: Optional[str] = None
    ) -> 'VerificationResult':
        return cls(status=VerificationStatus.INVALID, failure=failure, user_id=user_id, version=version)
