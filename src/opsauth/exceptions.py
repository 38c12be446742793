"""
Exception classes for the opsauth signing library
"""

from typing import Optional, Dict, Any


class OpsAuthError(Exception):
    """Base exception for all opsauth errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        return f"{self.message} (code: {self.error_code})"


class UnsupportedVersionError(OpsAuthError):
    """Exception raised for protocol versions with no registered rules"""

    def __init__(self, version: Any):
        super().__init__(
            f"Unsupported protocol version: {version!r}",
            "UNSUPPORTED_VERSION",
            {"version": str(version)}
        )
        self.version = version


class InvalidKeyError(OpsAuthError):
    """Exception raised for malformed keys or keys of an unsupported type or size"""
    pass


class MalformedHeaderSetError(OpsAuthError):
    """Exception raised when chunked signature headers cannot be reassembled"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "MALFORMED_HEADER_SET", details)


class MissingHeaderError(OpsAuthError):
    """Exception raised when a required authentication header is absent"""

    def __init__(self, header_name: str):
        super().__init__(
            f"Required header missing: {header_name}",
            "MISSING_HEADER",
            {"header": header_name}
        )
        self.header_name = header_name


class ExpiredSignatureError(OpsAuthError):
    """Exception raised when the request timestamp is outside the allowed skew"""

    def __init__(self, message: str = "Request timestamp outside allowed skew", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "EXPIRED_SIGNATURE", details)


class InvalidSignatureError(OpsAuthError):
    """Exception raised when the signature does not match the request"""

    def __init__(self, message: str = "Signature verification failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INVALID_SIGNATURE", details)


class ConfigError(OpsAuthError):
    """Exception raised for configuration loading and validation errors"""
    pass
