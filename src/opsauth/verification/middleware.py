"""
Verification middleware for incoming HTTP requests

WSGI middleware that authenticates every request with the signed-header
protocol before handing it to the wrapped application. All failures produce
the same 401 response so clients cannot tell which check rejected them.
"""

import io
import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

from ..crypto.rsa import PublicKeyMaterial
from ..signing.types import USER_ID_HEADER
from ..signing.utils import find_header_case_insensitive
from .types import FailureKind, IncomingRequest, VerificationResult, PUBLIC_FAILURE_MESSAGE
from .verifier import DEFAULT_ALLOWED_SKEW_SECONDS, authenticate_request

# Looks up the public key registered for a user id; None when unknown
KeyResolver = Callable[[str], Optional[PublicKeyMaterial]]

ENVIRON_USER_ID = "opsauth.user_id"
ENVIRON_RESULT = "opsauth.result"

# Characters left unescaped when re-quoting a decoded path (RFC 3986 pchar)
PATH_SAFE_CHARACTERS = "/!$&'()*+,;=:@~"


def extract_headers(environ: Dict[str, Any]) -> List[Tuple[str, str]]:
    """
    Rebuild (name, value) header pairs from a WSGI environ.

    Args:
        environ: WSGI environment

    Returns:
        list: Header pairs with dashed, title-cased names
    """
    headers = []
    for key, value in environ.items():
        if key.startswith('HTTP_'):
            name = key[5:].replace('_', '-').title()
            headers.append((name, value))
        elif key in ('CONTENT_TYPE', 'CONTENT_LENGTH') and value:
            headers.append((key.replace('_', '-').title(), value))
    return headers


def read_body(environ: Dict[str, Any]) -> bytes:
    """
    Read the request body and put a rewound copy back into the environ.

    Args:
        environ: WSGI environment

    Returns:
        bytes: Request body (empty when there is none)
    """
    try:
        length = int(environ.get('CONTENT_LENGTH') or 0)
    except ValueError:
        length = 0

    stream = environ.get('wsgi.input')
    body = stream.read(length) if stream is not None and length > 0 else b""
    environ['wsgi.input'] = io.BytesIO(body)
    return body


def request_path(environ: Dict[str, Any]) -> str:
    """
    Request path as the client sent it, still percent-encoded.

    PATH_INFO arrives decoded, so the raw request URI is preferred when the
    server exposes one; otherwise script name and path info are re-quoted.

    Args:
        environ: WSGI environment

    Returns:
        str: Encoded path without the query string
    """
    for key in ('RAW_URI', 'REQUEST_URI'):
        raw = environ.get(key)
        if raw and raw.startswith('/'):
            return raw.split('?', 1)[0]

    path = environ.get('SCRIPT_NAME', '') + environ.get('PATH_INFO', '')
    # PEP 3333 carries the undecoded bytes as latin-1 text
    try:
        raw_bytes = path.encode('latin-1')
    except UnicodeEncodeError:
        raw_bytes = path.encode('utf-8')
    return quote(raw_bytes, safe=PATH_SAFE_CHARACTERS) or '/'


class AuthenticationMiddleware:
    """Middleware that rejects requests without a valid signed-header set"""

    def __init__(
        self,
        app: Callable,
        key_resolver: KeyResolver,
        allowed_skew_seconds: int = DEFAULT_ALLOWED_SKEW_SECONDS,
        logger: Optional[logging.Logger] = None,
        on_result: Optional[Callable[[VerificationResult, Dict[str, Any]], None]] = None
    ):
        """
        Initialize the middleware.

        Args:
            app: Wrapped WSGI application
            key_resolver: Returns the public key for a user id, or None
            allowed_skew_seconds: Symmetric timestamp window in seconds
            logger: Logger for diagnostics; the module logger when None
            on_result: Optional callback invoked with every result
        """
        self.app = app
        self.key_resolver = key_resolver
        self.allowed_skew_seconds = allowed_skew_seconds
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.on_result = on_result

    def __call__(self, environ: Dict[str, Any], start_response: Callable) -> Iterable[bytes]:
        result = self.authenticate(environ)

        if self.on_result:
            self.on_result(result, environ)

        if not result.ok:
            return self._unauthorized(start_response)

        environ[ENVIRON_USER_ID] = result.user_id
        environ[ENVIRON_RESULT] = result
        return self.app(environ, start_response)

    def authenticate(self, environ: Dict[str, Any]) -> VerificationResult:
        """
        Authenticate the request described by a WSGI environ.

        Args:
            environ: WSGI environment

        Returns:
            VerificationResult: Verification outcome
        """
        headers = extract_headers(environ)
        body = read_body(environ)

        user_id = find_header_case_insensitive(headers, USER_ID_HEADER)
        if not user_id:
            return VerificationResult.failed(FailureKind.MISSING_HEADER)

        public_key = self.key_resolver(user_id)
        if public_key is None:
            self.logger.info(f"No public key registered for user {user_id!r}")
            return VerificationResult.failed(FailureKind.INVALID_SIGNATURE, user_id=user_id)

        request = IncomingRequest(
            method=environ.get('REQUEST_METHOD', 'GET'),
            path=request_path(environ),
            body=body
        )
        return authenticate_request(
            request,
            headers,
            public_key,
            allowed_skew_seconds=self.allowed_skew_seconds,
            logger=self.logger
        )

    def _unauthorized(self, start_response: Callable) -> List[bytes]:
        payload = json.dumps({"error": PUBLIC_FAILURE_MESSAGE}).encode('utf-8')
        start_response('401 Unauthorized', [
            ('Content-Type', 'application/json'),
            ('Content-Length', str(len(payload))),
        ])
        return [payload]
