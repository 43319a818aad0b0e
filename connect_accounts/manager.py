"""
Registration, authentication and token workflows for user accounts.

Emails must be unique, but the graph store has no uniqueness constraint to
lean on. Registration (and email changes, which are the same kind of
check-then-write) therefore run under a single process-wide lock. Nothing
else is serialized: concurrent property changes on one account race, and
the last write wins.

Callers are expected to authorize requests before calling in. In particular
:meth:`AccountManager.change_password` does not ask for the current password,
and :meth:`AccountManager.change_trust` accepts any level.
"""

from typing import Optional
import logging
import threading

from . import config, passwords, tokens, trust
from .domain import Account, PasswordReset, TokenKind
from .exceptions import NoSuchAccount, StoreFailure
from .store import IdentityStore, CREDENTIAL_HASH, EMAIL, TRUST
from .trust import TrustLevel

logger = logging.getLogger(__name__)

_uniqueness_lock = threading.Lock()


class AccountManager(object):
    """Entry point for everything the routes do with accounts."""

    def __init__(self, store: IdentityStore,
                 token_ttl: Optional[int] = None) -> None:
        """
        Parameters
        ----------
        store : :class:`.IdentityStore`
        token_ttl : int
            Seconds a verification or reset token stays usable. Defaults to
            ``TOKEN_TTL`` from the config; 0 means tokens never expire.

        """
        self.store = store
        self.token_ttl = config.TOKEN_TTL if token_ttl is None else token_ttl

    @classmethod
    def from_config(cls) -> 'AccountManager':
        return cls(IdentityStore.from_config())

    def find_account(self, email: str) -> Optional[Account]:
        """Get the account for ``email``, or None."""
        return self.store.find_account_by_email(email)

    def authenticate(self, email: Optional[str],
                     password: Optional[str]) -> bool:
        """
        Check an email and password.

        Unknown addresses and wrong passwords both return False. The email
        lookup comes first so unknown addresses never pay for a hash; the
        difference in timing is accepted.
        """
        if email is None or password is None:
            return False
        account = self.store.find_account_by_email(email)
        if account is None:
            return False
        return passwords.check_password(password, account.credential_hash)

    def register(self, email: str, password: str,
                 trust_level: int = TrustLevel.UNVERIFIED) -> Optional[Account]:
        """
        Create an account.

        Returns
        -------
        :class:`.Account` or None
            None if ``email`` is already registered.

        """
        with _uniqueness_lock:
            if self.store.email_exists(email):
                logger.debug('Email %s is already registered', email[:10])
                return None
            credential_hash = passwords.hash_password(password)
            account = self.store.create_account(email, credential_hash,
                                                trust_level)
        logger.info('Registered %s with trust %i', email[:10], trust_level)
        return account

    def delete_account(self, email: str) -> bool:
        """Delete an account and everything attached to it."""
        return self.store.delete_account(email)

    def _request_token(self, kind: TokenKind, email: str) -> str:
        token = self.store.attach_token(kind, email)
        if token is None:
            raise NoSuchAccount(f'No account for {email}')
        return token

    def request_email_verification(self, email: str) -> str:
        """Mint a token that confirms ownership of ``email`` when consumed."""
        return self._request_token(TokenKind.EMAIL_VERIFY, email)

    def request_password_reset(self, email: str) -> str:
        """Mint a token that resets the password for ``email``."""
        return self._request_token(TokenKind.PASSWORD_RESET, email)

    def consume_email_verification(self, token: str) -> Optional[str]:
        """
        Use a verification token and mark its account as verified.

        The token is gone once this returns or raises. If raising trust
        fails, the error propagates and the account stays at its old level.
        """
        email = self.store.consume_token(TokenKind.EMAIL_VERIFY, token,
                                         max_age=self.token_ttl)
        if email is None:
            return None
        try:
            account = self.store.find_account_by_email(email)
            current = account.trust if account else TrustLevel.UNVERIFIED
            verified = trust.after_email_verification(current)
            if verified != current:
                self.store.set_account_property(email, TRUST, verified)
        except StoreFailure:
            logger.error('Verification token for %s consumed, but trust '
                         'was not raised', email[:10])
            raise
        return email

    def consume_password_reset(self, token: str) -> Optional[PasswordReset]:
        """
        Use a reset token and give its account a new random password.

        Returns
        -------
        :class:`.PasswordReset` or None
            Holds the new plaintext password, which is not kept anywhere.

        """
        email = self.store.consume_token(TokenKind.PASSWORD_RESET, token,
                                         max_age=self.token_ttl)
        if email is None:
            return None
        password = tokens.generate_token()
        self.store.set_account_property(email, CREDENTIAL_HASH,
                                        passwords.hash_password(password))
        logger.info('Password reset for %s', email[:10])
        return PasswordReset(email=email, password=password)

    def change_trust(self, email: str, trust_level: int) -> None:
        """Set the trust level of an account, whatever it was before."""
        account = self.store.find_account_by_email(email)
        if account is not None \
                and not trust.is_escalation(account.trust, trust_level):
            logger.warning('Trust of %s lowered from %i to %i', email[:10],
                           account.trust, trust_level)
        if not self.store.set_account_property(email, TRUST, int(trust_level)):
            raise NoSuchAccount(f'No account for {email}')

    def change_email(self, email: str, new_email: str) -> bool:
        """
        Move an account to a new email address.

        An address shared by several accounts counts as unknown, and none
        of them is moved.

        Returns
        -------
        bool
            False if ``new_email`` already belongs to an account.

        """
        with _uniqueness_lock:
            if self.store.find_account_by_email(email) is None:
                raise NoSuchAccount(f'No account for {email}')
            if email != new_email and self.store.email_exists(new_email):
                logger.debug('Email %s is already registered', new_email[:10])
                return False
            self.store.set_account_property(email, EMAIL, new_email)
        return True

    def change_password(self, email: str, password: str) -> None:
        """Replace the password of an account."""
        credential_hash = passwords.hash_password(password)
        if not self.store.set_account_property(email, CREDENTIAL_HASH,
                                               credential_hash):
            raise NoSuchAccount(f'No account for {email}')
