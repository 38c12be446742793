"""
Chunked signature header encoding

A base64 signature is too long for a single conservative header value, so it
is split into numbered ``X-Ops-Authorization-<n>`` headers of at most 60
characters. Reassembly goes through an explicit index -> value mapping so
gaps and duplicates are reported instead of silently misassembled.
"""

import re
from typing import Dict

from ..exceptions import MalformedHeaderSetError
from .types import (
    AUTHORIZATION_HEADER_PREFIX,
    MAX_CHUNK_LENGTH,
    ChunkedHeaderSet,
    HeaderDict,
)
from .utils import HeaderSource, iter_headers


_INDEX_PATTERN = re.compile(r'^[0-9]{1,3}$')

# Far above the chunk count of any RSA signature (16384 bits -> 46 chunks)
MAX_CHUNK_INDEX = 128


def encode(signature_b64: str, chunk_length: int = MAX_CHUNK_LENGTH) -> ChunkedHeaderSet:
    """
    Split a base64 signature into 1-based chunks.

    Args:
        signature_b64: Base64 signature text
        chunk_length: Maximum characters per chunk

    Returns:
        ChunkedHeaderSet: Ordered mapping of chunk index to chunk value
    """
    if not signature_b64:
        raise ValueError("Signature cannot be empty")
    if chunk_length <= 0 or chunk_length > MAX_CHUNK_LENGTH:
        raise ValueError(f"Chunk length must be between 1 and {MAX_CHUNK_LENGTH}")

    return {
        index: signature_b64[offset:offset + chunk_length]
        for index, offset in enumerate(range(0, len(signature_b64), chunk_length), start=1)
    }


def decode(chunks: ChunkedHeaderSet) -> str:
    """
    Reassemble a base64 signature from its chunks.

    Args:
        chunks: Mapping of chunk index to chunk value

    Returns:
        str: Concatenation of the chunks in ascending index order

    Raises:
        MalformedHeaderSetError: If the indices are not exactly 1..n or a
            chunk is empty or longer than the chunk limit
    """
    if not chunks:
        raise MalformedHeaderSetError("No signature chunks present")

    indices = sorted(chunks)
    expected = list(range(1, len(indices) + 1))
    if indices != expected:
        missing = [index for index in expected if index not in chunks]
        raise MalformedHeaderSetError(
            "Signature chunk indices must be contiguous starting at 1",
            {"indices": indices, "missing": missing}
        )

    for index in indices:
        value = chunks[index]
        if not value or len(value) > MAX_CHUNK_LENGTH:
            raise MalformedHeaderSetError(
                f"Signature chunk {index} has invalid length",
                {"index": index, "length": len(value or "")}
            )

    return ''.join(chunks[index] for index in indices)


def to_headers(chunks: ChunkedHeaderSet, prefix: str = AUTHORIZATION_HEADER_PREFIX) -> HeaderDict:
    """Name each chunk with the header prefix and its index"""
    return {f"{prefix}{index}": value for index, value in sorted(chunks.items())}


def collect(headers: HeaderSource, prefix: str = AUTHORIZATION_HEADER_PREFIX) -> ChunkedHeaderSet:
    """
    Gather signature chunks from a header collection.

    Header names are matched case-insensitively. A sequence of (name, value)
    pairs is accepted so that repeated headers can be detected.

    Args:
        headers: Mapping or sequence of (name, value) pairs
        prefix: Chunk header name prefix

    Returns:
        ChunkedHeaderSet: Chunks keyed by index (may be empty)

    Raises:
        MalformedHeaderSetError: If an index is not a decimal number between
            1 and MAX_CHUNK_INDEX or appears more than once
    """
    prefix_lower = prefix.lower()
    chunks: Dict[int, str] = {}

    for name, value in iter_headers(headers):
        name_lower = name.lower().strip()
        if not name_lower.startswith(prefix_lower):
            continue

        suffix = name_lower[len(prefix_lower):]
        if not _INDEX_PATTERN.match(suffix) or not 1 <= int(suffix) <= MAX_CHUNK_INDEX:
            raise MalformedHeaderSetError(
                f"Invalid signature chunk header: {name}",
                {"header": name}
            )

        index = int(suffix)
        if index in chunks:
            raise MalformedHeaderSetError(
                f"Duplicate signature chunk index: {index}",
                {"index": index}
            )
        chunks[index] = value.strip()

    return chunks


class HeaderCodec:
    """
    Encoder/decoder for chunked signature headers with a fixed prefix
    """

    def __init__(self, prefix: str = AUTHORIZATION_HEADER_PREFIX, chunk_length: int = MAX_CHUNK_LENGTH):
        self.prefix = prefix
        self.chunk_length = chunk_length

    def encode(self, signature_b64: str) -> ChunkedHeaderSet:
        return encode(signature_b64, self.chunk_length)

    def decode(self, chunks: ChunkedHeaderSet) -> str:
        return decode(chunks)

    def to_headers(self, signature_b64: str) -> HeaderDict:
        """Encode a signature straight to named headers"""
        return to_headers(self.encode(signature_b64), self.prefix)

    def from_headers(self, headers: HeaderSource) -> str:
        """Collect and decode the signature from named headers"""
        return decode(collect(headers, self.prefix))
