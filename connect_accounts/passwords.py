"""
Password hashing with scrypt.

Hashes are written as ``$s0$<params>$<salt>$<key>``, where ``params`` packs
``log2(N) << 16 | r << 8 | p`` in hex and salt and key are base64. The work
factor a hash was made with is read back from the hash itself, so raising
``SCRYPT_N`` does not invalidate existing passwords.
"""

from base64 import b64encode, b64decode
from typing import Optional, Tuple
import binascii
import hashlib
import hmac
import logging
import secrets

from . import config

logger = logging.getLogger(__name__)

PREFIX = '$s0$'
SALT_BYTES = 16
KEY_BYTES = 32

MAX_MEMORY = 256 * 1024 * 1024
"""Largest ``128 * r * N`` accepted from a stored hash."""

MAX_P = 16


def _derive(password: str, salt: bytes, n: int, r: int, p: int) -> bytes:
    # OpenSSL needs 128 * r * (N + p + 2) bytes; leave some headroom.
    maxmem = 128 * r * (n + p + 2) + 1024 * 1024
    return hashlib.scrypt(password.encode('utf-8'), salt=salt, n=n, r=r,
                          p=p, maxmem=maxmem, dklen=KEY_BYTES)


def _pack_params(n: int, r: int, p: int) -> str:
    return '%x' % ((n.bit_length() - 1) << 16 | r << 8 | p)


def _unpack_params(params: str) -> Tuple[int, int, int]:
    packed = int(params, 16)
    log_n, r, p = packed >> 16, packed >> 8 & 0xff, packed & 0xff
    if log_n > 32 or 128 * r * 2 ** log_n > MAX_MEMORY or p > MAX_P:
        raise ValueError(f'Work factor {params} is out of bounds')
    return 2 ** log_n, r, p


def hash_password(password: str, n: Optional[int] = None,
                  r: Optional[int] = None, p: Optional[int] = None) -> str:
    """
    Generate a salted scrypt hash of a password.

    Parameters
    ----------
    password : str
        Plaintext. Length and content are not checked here.
    n, r, p : int
        scrypt cost parameters. Default to ``SCRYPT_N``, ``SCRYPT_R`` and
        ``SCRYPT_P`` from the config. ``n`` must be a power of two.

    Returns
    -------
    str

    """
    n = config.SCRYPT_N if n is None else n
    r = config.SCRYPT_R if r is None else r
    p = config.SCRYPT_P if p is None else p
    salt = secrets.token_bytes(SALT_BYTES)
    derived = _derive(password, salt, n, r, p)
    return (f"{PREFIX}{_pack_params(n, r, p)}"
            f"${b64encode(salt).decode('ascii')}"
            f"${b64encode(derived).decode('ascii')}")


def check_password(password: str, encrypted: str) -> bool:
    """Check a password against a hash made by :func:`hash_password`."""
    if not isinstance(password, str) or not isinstance(encrypted, str):
        return False
    if not encrypted.startswith(PREFIX):
        logger.debug('Stored hash has an unknown format')
        return False
    try:
        params, salt, derived = encrypted[len(PREFIX):].split('$')
        n, r, p = _unpack_params(params)
        expected = b64decode(derived, validate=True)
        actual = _derive(password, b64decode(salt, validate=True), n, r, p)
    except (ValueError, OverflowError, MemoryError, binascii.Error) as e:
        logger.debug('Could not check password against stored hash: %s', e)
        return False
    return hmac.compare_digest(actual, expected)
