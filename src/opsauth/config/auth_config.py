"""
Configuration management for signing and verification

Loads protocol, freshness and logging settings from JSON (string, file or
dictionary), validates them, and builds configured signers and verifiers.
"""

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..crypto.rsa import PrivateKeyMaterial, PublicKeyMaterial
from ..exceptions import ConfigError, UnsupportedVersionError
from ..signing.signer import Signer
from ..signing.types import DEFAULT_PROTOCOL_VERSION, DEFAULT_SERVER_API_VERSION
from ..signing.versions import resolve_version
from ..verification.verifier import DEFAULT_ALLOWED_SKEW_SECONDS, Verifier

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

DEFAULT_CONFIG_PATHS = (
    Path("opsauth.json"),
    Path("config/opsauth.json"),
    Path.home() / ".opsauth" / "config.json",
)


@dataclass(frozen=True)
class AuthConfig:
    """
    Settings shared by signing and verification

    Attributes:
        protocol_version: Version used when signing
        allowed_skew_seconds: Symmetric timestamp window for verification
        server_api_version: X-Ops-Server-API-Version value (version 1.3)
        log_level: Level applied by configure_logging
    """
    protocol_version: str = DEFAULT_PROTOCOL_VERSION
    allowed_skew_seconds: int = DEFAULT_ALLOWED_SKEW_SECONDS
    server_api_version: str = DEFAULT_SERVER_API_VERSION
    log_level: str = "WARNING"

    def __post_init__(self):
        """Validate configuration values"""
        try:
            resolve_version(self.protocol_version)
        except UnsupportedVersionError as e:
            raise ConfigError(e.message, "INVALID_PROTOCOL_VERSION", e.details) from e

        if isinstance(self.allowed_skew_seconds, bool) or not isinstance(self.allowed_skew_seconds, int):
            raise ConfigError("allowed_skew_seconds must be an integer", "INVALID_SKEW")
        if self.allowed_skew_seconds < 0:
            raise ConfigError("allowed_skew_seconds must not be negative", "INVALID_SKEW")

        if not isinstance(self.server_api_version, str) or not self.server_api_version:
            raise ConfigError("server_api_version must be a non-empty string", "INVALID_SERVER_API_VERSION")

        if str(self.log_level).upper() not in VALID_LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {self.log_level}", "INVALID_LOG_LEVEL")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuthConfig':
        """Build configuration from a dictionary, rejecting unknown keys"""
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object", "INVALID_FORMAT")

        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}",
                "UNKNOWN_KEYS",
                {"keys": sorted(unknown)}
            )
        return cls(**data)

    @classmethod
    def from_json(cls, json_string: str) -> 'AuthConfig':
        """Load configuration from a JSON string"""
        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> 'AuthConfig':
        """Load configuration from a JSON file"""
        try:
            with open(Path(file_path), 'r', encoding='utf-8') as f:
                json_string = f.read()
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}", "FILE_ERROR") from e
        return cls.from_json(json_string)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def signer(self, private_key: PrivateKeyMaterial, logger: Optional[logging.Logger] = None) -> Signer:
        """Signer using this configuration's protocol version"""
        return Signer(private_key, default_version=self.protocol_version, logger=logger)

    def verifier(self, public_key: PublicKeyMaterial, logger: Optional[logging.Logger] = None) -> Verifier:
        """Verifier using this configuration's skew window"""
        return Verifier(public_key, allowed_skew_seconds=self.allowed_skew_seconds, logger=logger)


def load_config(file_path: Optional[Union[str, Path]] = None) -> AuthConfig:
    """
    Load configuration from a file, the first default location that exists,
    or built-in defaults when neither is available.

    Args:
        file_path: Explicit configuration file (must exist when given)

    Returns:
        AuthConfig: Loaded configuration
    """
    if file_path is not None:
        return AuthConfig.from_file(file_path)

    for path in DEFAULT_CONFIG_PATHS:
        if path.exists():
            return AuthConfig.from_file(path)

    return AuthConfig()


def configure_logging(level: Union[str, int] = "WARNING") -> None:
    """
    Send opsauth log records to stderr at the given level.

    Args:
        level: Logging level name or number
    """
    package_logger = logging.getLogger("opsauth")
    package_logger.setLevel(level.upper() if isinstance(level, str) else level)

    if not any(isinstance(h, logging.StreamHandler) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s %(name)s %(levelname)s %(message)s'))
        package_logger.addHandler(handler)
