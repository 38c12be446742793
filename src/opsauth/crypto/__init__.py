"""
Cryptographic operations for opsauth

RSA key loading plus PKCS#1 v1.5 signing and verification of digests.
"""

from .rsa import (
    MIN_RSA_KEY_SIZE,
    load_private_key,
    load_public_key,
    sign_digest,
    verify_digest,
    generate_private_key,
    private_key_to_pem,
    public_key_to_pem,
)

__all__ = [
    'MIN_RSA_KEY_SIZE',
    'load_private_key',
    'load_public_key',
    'sign_digest',
    'verify_digest',
    'generate_private_key',
    'private_key_to_pem',
    'public_key_to_pem',
]
