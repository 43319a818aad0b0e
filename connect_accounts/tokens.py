"""Single-use token values and their issuance clock."""

from datetime import datetime
from typing import Optional
import secrets

from pytz import UTC

from . import config

MIN_TOKEN_BYTES = 32


def now() -> int:
    """Get the current epoch/unix time."""
    return int(round(datetime.now(tz=UTC).timestamp()))


def generate_token(nbytes: Optional[int] = None) -> str:
    """
    Generate an opaque, URL-safe token.

    The bytes come from :mod:`secrets`, which draws on the operating system
    CSPRNG and is safe to share between threads. Uniqueness is not checked;
    with at least 256 bits of entropy a collision is not a practical concern.

    Parameters
    ----------
    nbytes : int
        Bytes of entropy; defaults to ``TOKEN_BYTES`` from the config.

    Returns
    -------
    str
        Base64url text without padding or separators.

    """
    if nbytes is None:
        nbytes = config.TOKEN_BYTES
    if nbytes < MIN_TOKEN_BYTES:
        raise ValueError(f'Tokens need at least {MIN_TOKEN_BYTES} bytes')
    return secrets.token_urlsafe(nbytes)


def expired(issued: Optional[int], ttl: Optional[int],
            at: Optional[int] = None) -> bool:
    """Determine whether a token issued at ``issued`` is past ``ttl``."""
    if not ttl or issued is None:
        return False
    if at is None:
        at = now()
    return at - issued > ttl
