"""
Type definitions for request signing functionality

This module provides the data classes, enums and header constants shared by
the signing and verification sides of the X-Ops signed-header protocol.
"""

import hashlib
import base64
from datetime import datetime
from typing import Dict, Optional, Union, IO
from dataclasses import dataclass
from enum import Enum


# Header names carried on the wire
SIGN_HEADER = "X-Ops-Sign"
USER_ID_HEADER = "X-Ops-Userid"
TIMESTAMP_HEADER = "X-Ops-Timestamp"
CONTENT_HASH_HEADER = "X-Ops-Content-Hash"
SERVER_API_VERSION_HEADER = "X-Ops-Server-API-Version"
AUTHORIZATION_HEADER_PREFIX = "X-Ops-Authorization-"

# Signature chunks never exceed this many characters
MAX_CHUNK_LENGTH = 60

DEFAULT_PROTOCOL_VERSION = "1.1"
DEFAULT_SERVER_API_VERSION = "0"


class ProtocolVersion(str, Enum):
    """Protocol versions with registered canonicalization rules"""
    V1_0 = "1.0"
    V1_1 = "1.1"
    V1_3 = "1.3"


class DigestAlgorithm(str, Enum):
    """Digest algorithms selectable by protocol version"""
    SHA1 = "sha1"
    SHA256 = "sha256"

    @property
    def digest_size(self) -> int:
        return hashlib.new(self.value).digest_size


class CanonicalField(str, Enum):
    """Labelled lines that may appear in a canonical string"""
    METHOD = "Method"
    HASHED_PATH = "Hashed Path"
    PATH = "Path"
    CONTENT_HASH = "X-Ops-Content-Hash"
    SIGN = "X-Ops-Sign"
    TIMESTAMP = "X-Ops-Timestamp"
    USER_ID = "X-Ops-UserId"
    SERVER_API_VERSION = "X-Ops-Server-API-Version"


@dataclass(frozen=True)
class Digest:
    """
    Fixed-length digest of a byte sequence

    Attributes:
        algorithm: Algorithm that produced the digest
        value: Raw digest bytes
    """
    algorithm: DigestAlgorithm
    value: bytes

    def __post_init__(self):
        if len(self.value) != self.algorithm.digest_size:
            raise ValueError(
                f"{self.algorithm.value} digest must be {self.algorithm.digest_size} bytes"
            )

    def b64(self) -> str:
        """Base64 text form used in headers and canonical strings"""
        return base64.b64encode(self.value).decode('ascii')


RequestBody = Union[bytes, str, IO[bytes], None]
Timestamp = Union[datetime, str]


@dataclass(frozen=True)
class SigningRequest:
    """
    Outgoing request to be signed

    Attributes:
        method: HTTP method (upper-cased during canonicalization)
        path: Request path; a query string, if present, is ignored
        user_id: Identity the request is signed as
        body: Request body as bytes, text or a binary stream
        timestamp: Signing time; the current time is used when None
        version: Protocol version to sign with
        server_api_version: Value of X-Ops-Server-API-Version (version 1.3 only)
    """
    method: str
    path: str
    user_id: str
    body: RequestBody = b""
    timestamp: Optional[Timestamp] = None
    version: str = DEFAULT_PROTOCOL_VERSION
    server_api_version: str = DEFAULT_SERVER_API_VERSION

    def __post_init__(self):
        """Validate request after initialization"""
        if not self.method:
            raise ValueError("Request method cannot be empty")
        if not self.path:
            raise ValueError("Request path cannot be empty")
        if not self.user_id:
            raise ValueError("User ID cannot be empty")


# Chunk index (1-based) -> header value
ChunkedHeaderSet = Dict[int, str]
HeaderDict = Dict[str, str]
