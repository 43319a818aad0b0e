"""Tests for :mod:`connect_accounts.manager`."""

from unittest import TestCase, mock
import shutil
import tempfile

from .. import config, passwords, tokens
from ..domain import PasswordReset
from ..exceptions import NoSuchAccount, StoreFailure
from ..manager import AccountManager
from ..trust import TrustLevel
from .util import SetUpAccountsMixin


class TestRegister(SetUpAccountsMixin, TestCase):
    """Tests for :meth:`.AccountManager.register`."""

    def test_register_new_email(self):
        """A new account is stored with a hash of its password."""
        account = self.accounts.register('first@last.iv', 'thepassword',
                                         TrustLevel.VERIFIED)
        self.assertIsNotNone(account)
        found = self.accounts.find_account('first@last.iv')
        self.assertEqual(found.trust, TrustLevel.VERIFIED)
        self.assertNotEqual(found.credential_hash, 'thepassword')
        self.assertTrue(passwords.check_password('thepassword',
                                                 found.credential_hash))

    def test_default_trust(self):
        """New accounts start unverified."""
        self.accounts.register('first@last.iv', 'thepassword')
        self.assertEqual(self.accounts.find_account('first@last.iv').trust,
                         TrustLevel.UNVERIFIED)

    def test_register_taken_email(self):
        """Registering the same email twice is a conflict."""
        self.assertIsNotNone(
            self.accounts.register('first@last.iv', 'thepassword'))
        self.assertIsNone(self.accounts.register('first@last.iv', 'other'))
        self.assertTrue(
            self.accounts.authenticate('first@last.iv', 'thepassword'))

    def test_conflict_does_not_hash(self):
        """Nothing is hashed when the email is taken."""
        self.accounts.register('first@last.iv', 'thepassword')
        with mock.patch(f'{passwords.__name__}.hash_password') as mock_hash:
            self.accounts.register('first@last.iv', 'thepassword')
        mock_hash.assert_not_called()


class TestAuthenticate(SetUpAccountsMixin, TestCase):
    """Tests for :meth:`.AccountManager.authenticate`."""

    def setUp(self):
        """Register an account."""
        super(TestAuthenticate, self).setUp()
        self.accounts.register('first@last.iv', 'thepassword')

    def test_correct_password(self):
        self.assertTrue(
            self.accounts.authenticate('first@last.iv', 'thepassword'))

    def test_wrong_password(self):
        self.assertFalse(
            self.accounts.authenticate('first@last.iv', 'thepasswort'))

    def test_unknown_email(self):
        """An unknown email fails without touching the hasher."""
        with mock.patch(f'{passwords.__name__}.check_password') as mock_check:
            self.assertFalse(
                self.accounts.authenticate('no@one.iv', 'thepassword'))
        mock_check.assert_not_called()

    def test_missing_credentials(self):
        self.assertFalse(self.accounts.authenticate(None, 'thepassword'))
        self.assertFalse(self.accounts.authenticate('first@last.iv', None))


class TestEmailVerification(SetUpAccountsMixin, TestCase):
    """Tests for the email verification token workflow."""

    def setUp(self):
        """Register an account."""
        super(TestEmailVerification, self).setUp()
        self.accounts.register('first@last.iv', 'thepassword')

    def test_verify_once(self):
        """The token works exactly once and verifies the account."""
        token = self.accounts.request_email_verification('first@last.iv')
        self.assertEqual(self.accounts.consume_email_verification(token),
                         'first@last.iv')
        self.assertEqual(self.accounts.find_account('first@last.iv').trust,
                         TrustLevel.VERIFIED)
        self.assertIsNone(self.accounts.consume_email_verification(token))

    def test_admin_is_not_demoted(self):
        """Verifying an admin's email leaves them admin."""
        self.accounts.change_trust('first@last.iv', TrustLevel.ADMIN)
        token = self.accounts.request_email_verification('first@last.iv')
        self.accounts.consume_email_verification(token)
        self.assertEqual(self.accounts.find_account('first@last.iv').trust,
                         TrustLevel.ADMIN)

    def test_unknown_email(self):
        """Tokens cannot be requested for unknown emails."""
        with self.assertRaises(NoSuchAccount):
            self.accounts.request_email_verification('no@one.iv')

    def test_unknown_token(self):
        self.assertIsNone(self.accounts.consume_email_verification('nope'))

    def test_reset_token_does_not_verify(self):
        """Token kinds are not interchangeable."""
        token = self.accounts.request_password_reset('first@last.iv')
        self.assertIsNone(self.accounts.consume_email_verification(token))
        self.assertEqual(self.accounts.find_account('first@last.iv').trust,
                         TrustLevel.UNVERIFIED)

    def test_escalation_fails(self):
        """If trust cannot be raised the error surfaces; the token is gone."""
        token = self.accounts.request_email_verification('first@last.iv')
        with mock.patch.object(self.store, 'set_account_property',
                               side_effect=StoreFailure('down')):
            with self.assertRaises(StoreFailure):
                self.accounts.consume_email_verification(token)
        self.assertIsNone(self.accounts.consume_email_verification(token))
        self.assertEqual(self.accounts.find_account('first@last.iv').trust,
                         TrustLevel.UNVERIFIED)


class TestTokenExpiry(SetUpAccountsMixin, TestCase):
    """Tokens expire after the configured lifetime."""

    token_ttl = 3600

    def setUp(self):
        """Register an account."""
        super(TestTokenExpiry, self).setUp()
        self.accounts.register('first@last.iv', 'thepassword')

    def test_expired_verification_token(self):
        with mock.patch(f'{tokens.__name__}.now', return_value=10000):
            token = self.accounts.request_email_verification('first@last.iv')
        with mock.patch(f'{tokens.__name__}.now', return_value=13601):
            self.assertIsNone(self.accounts.consume_email_verification(token))
        self.assertEqual(self.accounts.find_account('first@last.iv').trust,
                         TrustLevel.UNVERIFIED)

    def test_fresh_reset_token(self):
        with mock.patch(f'{tokens.__name__}.now', return_value=10000):
            token = self.accounts.request_password_reset('first@last.iv')
        with mock.patch(f'{tokens.__name__}.now', return_value=13600):
            self.assertIsNotNone(self.accounts.consume_password_reset(token))

    @mock.patch(f'{AccountManager.__module__}.config')
    def test_ttl_from_config(self, mock_config):
        """Without an explicit TTL the config decides."""
        mock_config.TOKEN_TTL = 42
        self.assertEqual(AccountManager(self.store).token_ttl, 42)


class TestPasswordReset(SetUpAccountsMixin, TestCase):
    """Tests for the password reset token workflow."""

    def setUp(self):
        """Register an account."""
        super(TestPasswordReset, self).setUp()
        self.accounts.register('first@last.iv', 'thepassword')

    def test_reset(self):
        """The new password works and the old one does not."""
        token = self.accounts.request_password_reset('first@last.iv')
        reset = self.accounts.consume_password_reset(token)
        self.assertIsInstance(reset, PasswordReset)
        self.assertEqual(reset.email, 'first@last.iv')
        self.assertTrue(
            self.accounts.authenticate('first@last.iv', reset.password))
        self.assertFalse(
            self.accounts.authenticate('first@last.iv', 'thepassword'))
        self.assertNotEqual(
            self.accounts.find_account('first@last.iv').credential_hash,
            reset.password
        )

    def test_reset_once(self):
        token = self.accounts.request_password_reset('first@last.iv')
        self.assertIsNotNone(self.accounts.consume_password_reset(token))
        self.assertIsNone(self.accounts.consume_password_reset(token))

    def test_password_not_in_repr(self):
        token = self.accounts.request_password_reset('first@last.iv')
        reset = self.accounts.consume_password_reset(token)
        self.assertNotIn(reset.password, repr(reset))

    def test_unknown_email(self):
        with self.assertRaises(NoSuchAccount):
            self.accounts.request_password_reset('no@one.iv')


class TestDeleteAccount(SetUpAccountsMixin, TestCase):
    """Tests for :meth:`.AccountManager.delete_account`."""

    def test_delete(self):
        """The account and its outstanding tokens are gone."""
        self.accounts.register('first@last.iv', 'thepassword')
        verify = self.accounts.request_email_verification('first@last.iv')
        reset = self.accounts.request_password_reset('first@last.iv')
        self.assertTrue(self.accounts.delete_account('first@last.iv'))
        self.assertIsNone(self.accounts.find_account('first@last.iv'))
        self.assertIsNone(self.accounts.consume_email_verification(verify))
        self.assertIsNone(self.accounts.consume_password_reset(reset))

    def test_delete_twice(self):
        self.assertTrue(self.accounts.delete_account('no@one.iv'))
        self.assertTrue(self.accounts.delete_account('no@one.iv'))

    def test_register_after_delete(self):
        """A deleted email can be registered again."""
        self.accounts.register('first@last.iv', 'thepassword')
        self.accounts.delete_account('first@last.iv')
        self.assertIsNotNone(self.accounts.register('first@last.iv', 'new'))


class TestChanges(SetUpAccountsMixin, TestCase):
    """Tests for the direct property changes."""

    def setUp(self):
        """Register an account."""
        super(TestChanges, self).setUp()
        self.accounts.register('first@last.iv', 'thepassword')

    def test_change_trust(self):
        self.accounts.change_trust('first@last.iv', TrustLevel.ADMIN)
        self.assertEqual(self.accounts.find_account('first@last.iv').trust,
                         TrustLevel.ADMIN)

    def test_trust_can_be_lowered(self):
        """The primitive accepts demotion; it is only logged."""
        self.accounts.change_trust('first@last.iv', TrustLevel.ADMIN)
        with self.assertLogs('connect_accounts.manager', 'WARNING'):
            self.accounts.change_trust('first@last.iv', TrustLevel.UNVERIFIED)
        self.assertEqual(self.accounts.find_account('first@last.iv').trust,
                         TrustLevel.UNVERIFIED)

    def test_change_password(self):
        self.accounts.change_password('first@last.iv', 'newpassword')
        self.assertTrue(
            self.accounts.authenticate('first@last.iv', 'newpassword'))
        self.assertFalse(
            self.accounts.authenticate('first@last.iv', 'thepassword'))

    def test_change_email(self):
        self.assertTrue(
            self.accounts.change_email('first@last.iv', 'new@last.iv'))
        self.assertIsNone(self.accounts.find_account('first@last.iv'))
        self.assertTrue(
            self.accounts.authenticate('new@last.iv', 'thepassword'))

    def test_change_email_to_taken_address(self):
        """Two accounts never end up sharing an email."""
        self.accounts.register('other@last.iv', 'otherpassword')
        self.assertFalse(
            self.accounts.change_email('first@last.iv', 'other@last.iv'))
        self.assertTrue(
            self.accounts.authenticate('first@last.iv', 'thepassword'))
        self.assertTrue(
            self.accounts.authenticate('other@last.iv', 'otherpassword'))

    def test_change_email_to_itself(self):
        self.assertTrue(
            self.accounts.change_email('first@last.iv', 'first@last.iv'))

    def test_change_email_of_duplicate_accounts(self):
        """Accounts sharing an address are left where they are."""
        self.store.create_account('first@last.iv', 'otherhash', 0)
        with self.assertRaises(NoSuchAccount):
            self.accounts.change_email('first@last.iv', 'new@last.iv')
        self.assertFalse(self.store.email_exists('new@last.iv'))
        self.assertTrue(self.store.email_exists('first@last.iv'))

    def test_unknown_account(self):
        """Changes to accounts that do not exist are reported."""
        with self.assertRaises(NoSuchAccount):
            self.accounts.change_trust('no@one.iv', TrustLevel.ADMIN)
        with self.assertRaises(NoSuchAccount):
            self.accounts.change_password('no@one.iv', 'thepassword')
        with self.assertRaises(NoSuchAccount):
            self.accounts.change_email('no@one.iv', 'new@one.iv')


class TestFromConfig(TestCase):
    """The whole stack can be built from the config."""

    def test_from_config(self):
        db_path = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, db_path)
        uri = f'sqlite:///{db_path}/test.db'
        with mock.patch.multiple(config, STORE_URI=uri, TOKEN_TTL=99):
            accounts = AccountManager.from_config()
        self.addCleanup(accounts.store.graph.dispose)
        self.assertEqual(accounts.token_ttl, 99)
        self.assertEqual(str(accounts.store.graph.engine.url), uri)
        self.assertTrue(accounts.store.graph.is_available())
