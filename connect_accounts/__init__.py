"""
User accounts for Connect.

This package keeps track of who can log in: it registers accounts with
unique email addresses, hashes and checks passwords, manages the trust level
of each account, and issues the single-use tokens sent out to verify an email
address or reset a password.

Accounts and tokens are kept in a property graph (see :mod:`.graph`), shared
with the rest of the application. Routes talk to
:class:`.manager.AccountManager` and never to the store directly.

Quick start
-----------

.. code-block:: python

   from connect_accounts import AccountManager, TrustLevel

   accounts = AccountManager.from_config()
   accounts.store.graph.create_all()

   accounts.register('someone@example.com', 'secret')
   token = accounts.request_email_verification('someone@example.com')
   # ... email the token, then when it comes back:
   accounts.consume_email_verification(token)
   assert accounts.find_account('someone@example.com').trust \
       == TrustLevel.VERIFIED

"""

from .domain import Account, PasswordReset, TokenKind
from .exceptions import StoreFailure, ConstraintViolation, NoSuchAccount
from .manager import AccountManager
from .store import IdentityStore
from .trust import TrustLevel
