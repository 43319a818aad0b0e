"""Testing helpers."""

from unittest import mock

from .. import config
from ..graph.tests.util import temporary_store
from ..manager import AccountManager
from ..store import IdentityStore


def fast_hashing():
    """Patch the scrypt work factor down to something quick."""
    return mock.patch.multiple(config, SCRYPT_N=16, SCRYPT_R=8, SCRYPT_P=1)


class SetUpAccountsMixin(object):
    """Mixin providing ``self.store`` and ``self.accounts`` on a fresh db."""

    token_ttl = 0

    def setUp(self):
        """Create the store and the manager."""
        self._hashing = fast_hashing()
        self._hashing.start()
        self._store_context = temporary_store()
        self.graph = self._store_context.__enter__()
        self.store = IdentityStore(self.graph)
        self.accounts = AccountManager(self.store, token_ttl=self.token_ttl)

    def tearDown(self):
        """Throw the store away."""
        self._store_context.__exit__(None, None, None)
        self._hashing.stop()
