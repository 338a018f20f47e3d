"""Tests for :mod:`paperportal.auth.sessions`."""

from unittest import TestCase, mock
from datetime import timedelta

from ... import domain
from ...services import accounts
from ...services.exceptions import NoSuchAccount
from ...tests.util import temporary_app
from ...util import now
from .. import sessions
from ..exceptions import InvalidToken, MissingToken, ReusedToken


def _account(**kwargs):
    values = dict(
        account_id='1',
        email='author@example.org',
        fullname='Some Author',
        role=domain.Role.AUTHOR,
        password_hash='hash',
        verified=True
    )
    values.update(kwargs)
    return domain.Account(**values)


class TestTokenAuthority(TestCase):
    """The authority mints tokens and stores the refresh token."""

    def setUp(self):
        self.authority = sessions.TokenAuthority('foosecret', 'barsecret')

    @mock.patch(f'{sessions.__name__}.accounts')
    def test_issue_pair(self, mock_accounts):
        """Issuing a pair stores the new refresh token on the account."""
        mock_accounts.get_account_by_id.return_value = _account()
        pair = self.authority.issue_pair('1')
        self.assertIsInstance(pair, domain.TokenPair)
        self.assertNotEqual(pair.access_token, pair.refresh_token)
        self.assertEqual(pair.access_expires, 900)
        self.assertEqual(pair.refresh_expires, 864000)
        mock_accounts.set_refresh_token.assert_called_once_with(
            '1', pair.refresh_token
        )

    @mock.patch(f'{sessions.__name__}.accounts')
    def test_issue_pair_no_account(self, mock_accounts):
        """There is no such account."""
        mock_accounts.get_account_by_id.side_effect = NoSuchAccount
        with self.assertRaises(NoSuchAccount):
            self.authority.issue_pair('1')
        self.assertEqual(mock_accounts.set_refresh_token.call_count, 0)

    @mock.patch(f'{sessions.__name__}.accounts')
    def test_authenticate(self, mock_accounts):
        """An access token resolves to a sanitized account."""
        mock_accounts.get_account_by_id.return_value = \
            _account(refresh_token='foo')
        pair = self.authority.issue_pair('1')
        account = self.authority.authenticate(pair.access_token)
        self.assertEqual(account.account_id, '1')
        self.assertIsNone(account.password_hash)
        self.assertIsNone(account.refresh_token)

    @mock.patch(f'{sessions.__name__}.accounts')
    def test_authenticate_with_refresh_token(self, mock_accounts):
        """Refresh tokens are signed with a different secret."""
        mock_accounts.get_account_by_id.return_value = _account()
        pair = self.authority.issue_pair('1')
        with self.assertRaises(InvalidToken):
            self.authority.authenticate(pair.refresh_token)

    def test_authenticate_missing(self):
        """No token was presented."""
        with self.assertRaises(MissingToken):
            self.authority.authenticate(None)
        with self.assertRaises(MissingToken):
            self.authority.refresh('')

    @mock.patch(f'{sessions.__name__}.now')
    @mock.patch(f'{sessions.__name__}.accounts')
    def test_authenticate_expired(self, mock_accounts, mock_now):
        """An expired access token is rejected."""
        mock_now.return_value = now() - timedelta(seconds=1000)
        mock_accounts.get_account_by_id.return_value = _account()
        pair = self.authority.issue_pair('1')
        with self.assertRaises(InvalidToken):
            self.authority.authenticate(pair.access_token)

    @mock.patch(f'{sessions.__name__}.accounts')
    def test_authenticate_deleted_account(self, mock_accounts):
        """The account was deleted after the token was issued."""
        mock_accounts.get_account_by_id.return_value = _account()
        pair = self.authority.issue_pair('1')
        mock_accounts.get_account_by_id.side_effect = NoSuchAccount
        with self.assertRaises(NoSuchAccount):
            self.authority.authenticate(pair.access_token)

    @mock.patch(f'{sessions.__name__}.accounts')
    def test_refresh_superseded(self, mock_accounts):
        """A refresh token that is not the stored one is refused."""
        mock_accounts.get_account_by_id.return_value = _account()
        pair = self.authority.issue_pair('1')
        mock_accounts.get_account_by_id.return_value = \
            _account(refresh_token='something-newer')
        with self.assertRaises(ReusedToken):
            self.authority.refresh(pair.refresh_token)
        self.assertEqual(mock_accounts.swap_refresh_token.call_count, 0)

    @mock.patch(f'{sessions.__name__}.accounts')
    def test_refresh_lost_race(self, mock_accounts):
        """The stored token changed between the read and the write."""
        mock_accounts.get_account_by_id.return_value = _account()
        pair = self.authority.issue_pair('1')
        mock_accounts.get_account_by_id.return_value = \
            _account(refresh_token=pair.refresh_token)
        mock_accounts.swap_refresh_token.return_value = False
        with self.assertRaises(ReusedToken):
            self.authority.refresh(pair.refresh_token)

    @mock.patch(f'{sessions.__name__}.accounts')
    def test_logout(self, mock_accounts):
        """Logging out clears the stored refresh token."""
        self.authority.logout('1')
        mock_accounts.set_refresh_token.assert_called_once_with('1', None)


class TestRotation(TestCase):
    """Refresh tokens rotate against the document store."""

    def setUp(self):
        self._ctx = temporary_app()
        self.app = self._ctx.__enter__()
        self.account = accounts.create_account(_account(account_id=None))

    def tearDown(self):
        self._ctx.__exit__(None, None, None)

    def test_rotation(self):
        """Each refresh token can be used exactly once."""
        first = sessions.issue_pair(self.account.account_id)
        second = sessions.refresh(first.refresh_token)
        self.assertNotEqual(first.refresh_token, second.refresh_token)

        with self.assertRaises(ReusedToken):
            sessions.refresh(first.refresh_token)

        third = sessions.refresh(second.refresh_token)
        with self.assertRaises(ReusedToken):
            sessions.refresh(second.refresh_token)
        self.assertEqual(
            accounts.get_account_by_id(self.account.account_id).refresh_token,
            third.refresh_token
        )

    def test_second_login(self):
        """Issuing a new pair ends the previous session."""
        first = sessions.issue_pair(self.account.account_id)
        sessions.issue_pair(self.account.account_id)
        with self.assertRaises(ReusedToken):
            sessions.refresh(first.refresh_token)

    def test_concurrent_refresh(self):
        """Two refreshes that read the same stored token: only one wins."""
        pair = sessions.issue_pair(self.account.account_id)
        stale = accounts.get_account_by_id(self.account.account_id)

        winner = sessions.refresh(pair.refresh_token)

        # The second caller read the account before the first one wrote.
        with mock.patch.object(sessions.accounts, 'get_account_by_id',
                               return_value=stale):
            with self.assertRaises(ReusedToken):
                sessions.refresh(pair.refresh_token)

        self.assertEqual(
            accounts.get_account_by_id(self.account.account_id).refresh_token,
            winner.refresh_token
        )

    def test_logout(self):
        """Logging out invalidates the refresh token, and is idempotent."""
        pair = sessions.issue_pair(self.account.account_id)
        sessions.logout(self.account.account_id)
        sessions.logout(self.account.account_id)
        with self.assertRaises(ReusedToken):
            sessions.refresh(pair.refresh_token)

    def test_deleted_account(self):
        """A token for an unknown account is refused."""
        pair = sessions.issue_pair(self.account.account_id)
        with mock.patch.object(sessions.accounts, 'get_account_by_id',
                               side_effect=NoSuchAccount):
            with self.assertRaises(NoSuchAccount):
                sessions.authenticate(pair.access_token)
