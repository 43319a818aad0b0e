"""Data types shared by the account system."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .trust import TrustLevel


class TokenKind(Enum):
    """Purpose of a single-use token.

    The value is the label of the relationship joining the token to its
    account in the graph store.
    """

    EMAIL_VERIFY = 'EMAIL_TOKEN'
    PASSWORD_RESET = 'RESET_TOKEN'

    @property
    def relationship(self) -> str:
        return self.value


class Account(BaseModel):
    """A registered user.

    Changing attributes on this object has no effect on the store; use the
    ``change_*`` methods of :class:`.manager.AccountManager`.
    """

    email: str
    """Unique, stored exactly as registered."""

    credential_hash: str = Field(repr=False)
    """Output of :func:`.passwords.hash_password`."""

    trust: int = int(TrustLevel.UNVERIFIED)
    """See :class:`.trust.TrustLevel` for meaningful values."""

    default_collection: Optional[int] = None
    """Reference to the collection created alongside the account."""


class PasswordReset(BaseModel):
    """Outcome of consuming a password reset token."""

    email: str

    password: str = Field(repr=False)
    """The new plaintext password. Deliver it once; never store or log it."""
