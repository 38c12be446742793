"""
Utility functions for request signing

Timestamp rendering and parsing, path normalization, and header lookup
helpers used by both the signing and verification sides.
"""

import re
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Tuple, Union

from .types import Timestamp


ISO8601_FORMAT = '%Y-%m-%dT%H:%M:%SZ'

HeaderSource = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def generate_timestamp() -> datetime:
    """
    Current time in UTC, truncated to whole seconds.

    Returns:
        datetime: Timezone-aware UTC datetime
    """
    return datetime.now(timezone.utc).replace(microsecond=0)


def parse_timestamp(value: Timestamp) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive datetimes and offset-less strings are taken to be UTC.

    Args:
        value: datetime or ISO-8601 string such as ``2024-01-01T00:00:00Z``

    Returns:
        datetime: Timezone-aware UTC datetime

    Raises:
        ValueError: If the value is not a parseable timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Timestamp must be datetime or str, got {type(value)}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as e:
        # Offsets can push datetime.min/max outside the representable range
        raise ValueError(f"Timestamp out of range: {value}") from e


def format_timestamp(value: Timestamp) -> str:
    """
    Render a timestamp in the canonical ``YYYY-MM-DDTHH:MM:SSZ`` form.

    Args:
        value: datetime or ISO-8601 string

    Returns:
        str: UTC timestamp with second precision
    """
    return parse_timestamp(value).strftime(ISO8601_FORMAT)


def normalize_path(path: str) -> str:
    """
    Normalize a request path for canonicalization.

    Drops any query string or fragment, collapses repeated slashes and removes
    a trailing slash unless the path is the root.

    Args:
        path: Raw request path

    Returns:
        str: Normalized path
    """
    path = path.split('?', 1)[0].split('#', 1)[0]
    path = re.sub(r'/+', '/', path)
    if len(path) > 1:
        path = path.rstrip('/')
    return path or '/'


def iter_headers(headers: HeaderSource) -> Iterable[Tuple[str, str]]:
    """Yield (name, value) pairs from a mapping or a sequence of pairs"""
    if hasattr(headers, 'items'):
        return list(headers.items())
    return list(headers)


def find_header_case_insensitive(headers: HeaderSource, target_name: str) -> Optional[str]:
    """Find header with case-insensitive lookup"""
    target_lower = target_name.lower()
    for key, value in iter_headers(headers):
        if key.lower() == target_lower:
            return value
    return None


def parse_sign_header(value: str) -> dict:
    """
    Parse an X-Ops-Sign value such as ``algorithm=sha1;version=1.1;``.

    Args:
        value: Header value

    Returns:
        dict: Lower-cased parameter names mapped to their values
    """
    params = {}
    for part in value.split(';'):
        if '=' not in part:
            continue
        name, _, param_value = part.partition('=')
        params[name.strip().lower()] = param_value.strip()
    return params
