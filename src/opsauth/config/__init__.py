"""
Configuration module for opsauth

Provides configuration loading, validation and logging setup.
"""

from .auth_config import (
    AuthConfig,
    DEFAULT_CONFIG_PATHS,
    configure_logging,
    load_config,
)

__all__ = [
    'AuthConfig',
    'DEFAULT_CONFIG_PATHS',
    'configure_logging',
    'load_config',
]
