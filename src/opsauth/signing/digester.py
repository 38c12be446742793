"""
Digest calculation for request signing

Pure hashing helpers used for content hashes, hashed paths and user ids, and
the digest that is ultimately signed.
"""

import hashlib
from typing import IO

from ..exceptions import OpsAuthError
from .types import Digest, DigestAlgorithm, RequestBody


# Block size when hashing streamed bodies
STREAM_BLOCK_SIZE = 64 * 1024


def _hasher(algorithm: DigestAlgorithm):
    if algorithm == DigestAlgorithm.SHA1:
        return hashlib.sha1()
    if algorithm == DigestAlgorithm.SHA256:
        return hashlib.sha256()
    raise OpsAuthError(
        f"Unsupported digest algorithm: {algorithm}",
        "UNSUPPORTED_DIGEST_ALGORITHM",
        {"algorithm": str(algorithm)}
    )


def digest(data: bytes, algorithm: DigestAlgorithm) -> Digest:
    """
    Hash a byte sequence.

    Args:
        data: Bytes to hash; text is encoded as UTF-8
        algorithm: Digest algorithm to use

    Returns:
        Digest: Algorithm tag and raw digest bytes
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    hasher = _hasher(algorithm)
    hasher.update(data)
    return Digest(algorithm=algorithm, value=hasher.digest())


def digest_stream(stream: IO[bytes], algorithm: DigestAlgorithm) -> Digest:
    """
    Hash a binary stream in fixed-size blocks.

    The stream is rewound to where it started when it is seekable, so the
    same object can still be sent as the request body afterwards.

    Args:
        stream: Readable binary file-like object
        algorithm: Digest algorithm to use

    Returns:
        Digest: Digest of the remaining stream content
    """
    hasher = _hasher(algorithm)
    start = stream.tell() if stream.seekable() else None

    while True:
        block = stream.read(STREAM_BLOCK_SIZE)
        if not block:
            break
        if isinstance(block, str):
            block = block.encode('utf-8')
        hasher.update(block)

    if start is not None:
        stream.seek(start)
    return Digest(algorithm=algorithm, value=hasher.digest())


def content_hash(body: RequestBody, algorithm: DigestAlgorithm) -> str:
    """
    Base64 digest of a request body, as carried in X-Ops-Content-Hash.

    Args:
        body: Bytes, text, binary stream or None (hashed as empty)
        algorithm: Digest algorithm to use

    Returns:
        str: Base64-encoded digest
    """
    if body is None:
        body = b""
    if hasattr(body, 'read'):
        return digest_stream(body, algorithm).b64()
    return digest(body, algorithm).b64()


def hash_text(text: str, algorithm: DigestAlgorithm) -> str:
    """Base64 digest of UTF-8 text"""
    return digest(text.encode('utf-8'), algorithm).b64()
