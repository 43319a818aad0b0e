"""
Trust levels and the transitions between them.

An account starts out :attr:`TrustLevel.UNVERIFIED`. Consuming an email
verification token raises it to :attr:`TrustLevel.VERIFIED`; promotion to
:attr:`TrustLevel.ADMIN` is an administrative decision made by the caller.
Trust is never lowered automatically.

The raw "set trust" primitive in :class:`.manager.AccountManager` accepts any
integer. Whoever calls it is responsible for only escalating.
"""

from enum import IntEnum


class TrustLevel(IntEnum):
    """Tiers gating what an account may do."""

    UNVERIFIED = 0
    VERIFIED = 1
    ADMIN = 2


def authorize(trust: int, required: int) -> bool:
    """Determine whether an account with ``trust`` meets ``required``."""
    return trust >= required


def is_escalation(current: int, new: int) -> bool:
    """A change from ``current`` to ``new`` that does not lower trust."""
    return new >= current


def after_email_verification(current: int) -> int:
    """Trust an account should hold once its email address is confirmed."""
    if current >= TrustLevel.VERIFIED:
        return current
    return int(TrustLevel.VERIFIED)
