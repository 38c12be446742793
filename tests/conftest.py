"""
Shared fixtures for the opsauth test suite
"""

from datetime import datetime, timezone

import pytest

from opsauth.crypto.rsa import (
    generate_private_key,
    private_key_to_pem,
    public_key_to_pem,
)


@pytest.fixture(scope="session")
def private_key():
    """2048-bit RSA key shared by the whole session (generation is slow)"""
    return generate_private_key(2048)


@pytest.fixture(scope="session")
def private_key_pem(private_key):
    return private_key_to_pem(private_key)


@pytest.fixture(scope="session")
def public_key_pem(private_key):
    return public_key_to_pem(private_key.public_key())


@pytest.fixture(scope="session")
def other_public_key_pem():
    """Public key that does not match private_key"""
    return public_key_to_pem(generate_private_key(2048).public_key())


@pytest.fixture(scope="session")
def weak_private_key():
    """RSA key below the minimum accepted size"""
    from cryptography.hazmat.primitives.asymmetric import rsa
    return rsa.generate_private_key(public_exponent=65537, key_size=1024)


@pytest.fixture
def fixed_time():
    return datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock(fixed_time):
    return lambda: fixed_time
