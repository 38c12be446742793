"""
RSA key loading and digest signing

This module wraps the cryptography package for the asymmetric half of the
protocol: loading PEM key material, signing a precomputed digest with
PKCS#1 v1.5, and verifying such a signature.
"""

from typing import Union

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from ..exceptions import InvalidKeyError
from ..signing.types import Digest, DigestAlgorithm

# Smallest modulus accepted for signing or verification
MIN_RSA_KEY_SIZE = 2048

PrivateKeyMaterial = Union[str, bytes, rsa.RSAPrivateKey]
PublicKeyMaterial = Union[str, bytes, rsa.RSAPublicKey, rsa.RSAPrivateKey, x509.Certificate]


def _hash_for(algorithm: DigestAlgorithm) -> hashes.HashAlgorithm:
    if algorithm == DigestAlgorithm.SHA1:
        return hashes.SHA1()
    return hashes.SHA256()


def _to_bytes(material: Union[str, bytes]) -> bytes:
    if isinstance(material, str):
        return material.encode('ascii')
    return bytes(material)


def _check_key_size(key_size: int) -> None:
    if key_size < MIN_RSA_KEY_SIZE:
        raise InvalidKeyError(
            f"RSA key must be at least {MIN_RSA_KEY_SIZE} bits, got {key_size}",
            "KEY_TOO_SMALL",
            {"key_size": key_size}
        )


def load_private_key(material: PrivateKeyMaterial) -> rsa.RSAPrivateKey:
    """
    Load an RSA private key.

    Args:
        material: PEM text, PEM bytes or an RSAPrivateKey

    Returns:
        rsa.RSAPrivateKey: Loaded key

    Raises:
        InvalidKeyError: If the material is malformed, not an RSA private
            key, or below the minimum key size
    """
    if isinstance(material, rsa.RSAPrivateKey):
        key = material
    elif isinstance(material, (str, bytes, bytearray)):
        try:
            key = serialization.load_pem_private_key(_to_bytes(material), password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise InvalidKeyError(
                "Private key could not be loaded",
                "MALFORMED_PRIVATE_KEY",
                {"reason": type(e).__name__}
            ) from e
    else:
        raise InvalidKeyError(
            f"Unsupported private key type: {type(material).__name__}",
            "UNSUPPORTED_KEY_TYPE"
        )

    if not isinstance(key, rsa.RSAPrivateKey):
        raise InvalidKeyError(
            f"Private key must be RSA, got {type(key).__name__}",
            "UNSUPPORTED_KEY_TYPE"
        )

    _check_key_size(key.key_size)
    return key


def load_public_key(material: PublicKeyMaterial) -> rsa.RSAPublicKey:
    """
    Load an RSA public key.

    Args:
        material: PEM public key or certificate (text or bytes), an
            RSAPublicKey, an RSAPrivateKey, or an x509 Certificate

    Returns:
        rsa.RSAPublicKey: Loaded key

    Raises:
        InvalidKeyError: If the material is malformed, not RSA, or below the
            minimum key size
    """
    if isinstance(material, rsa.RSAPublicKey):
        key = material
    elif isinstance(material, rsa.RSAPrivateKey):
        key = material.public_key()
    elif isinstance(material, x509.Certificate):
        key = material.public_key()
    elif isinstance(material, (str, bytes, bytearray)):
        try:
            data = _to_bytes(material)
            if b'BEGIN CERTIFICATE' in data:
                key = x509.load_pem_x509_certificate(data).public_key()
            else:
                key = serialization.load_pem_public_key(data)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise InvalidKeyError(
                "Public key could not be loaded",
                "MALFORMED_PUBLIC_KEY",
                {"reason": type(e).__name__}
            ) from e
    else:
        raise InvalidKeyError(
            f"Unsupported public key type: {type(material).__name__}",
            "UNSUPPORTED_KEY_TYPE"
        )

    if not isinstance(key, rsa.RSAPublicKey):
        raise InvalidKeyError(
            f"Public key must be RSA, got {type(key).__name__}",
            "UNSUPPORTED_KEY_TYPE"
        )

    _check_key_size(key.key_size)
    return key


def sign_digest(private_key: rsa.RSAPrivateKey, digest: Digest) -> bytes:
    """
    Sign a precomputed digest with RSA PKCS#1 v1.5.

    Args:
        private_key: Loaded RSA private key
        digest: Digest to sign

    Returns:
        bytes: Raw signature
    """
    return private_key.sign(
        digest.value,
        padding.PKCS1v15(),
        Prehashed(_hash_for(digest.algorithm))
    )


def verify_digest(public_key: rsa.RSAPublicKey, digest: Digest, signature: bytes) -> bool:
    """
    Verify an RSA PKCS#1 v1.5 signature over a precomputed digest.

    Args:
        public_key: Loaded RSA public key
        digest: Digest the signature should cover
        signature: Raw signature bytes

    Returns:
        bool: True if the signature is valid
    """
    try:
        public_key.verify(
            signature,
            digest.value,
            padding.PKCS1v15(),
            Prehashed(_hash_for(digest.algorithm))
        )
        return True
    except InvalidSignature:
        return False


def generate_private_key(key_size: int = MIN_RSA_KEY_SIZE) -> rsa.RSAPrivateKey:
    """Generate an RSA private key (for tests and local tooling)"""
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def private_key_to_pem(private_key: rsa.RSAPrivateKey) -> str:
    """Serialize a private key as unencrypted PKCS#8 PEM"""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    ).decode('ascii')


def public_key_to_pem(public_key: rsa.RSAPublicKey) -> str:
    """Serialize a public key as SubjectPublicKeyInfo PEM"""
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    ).decode('ascii')
