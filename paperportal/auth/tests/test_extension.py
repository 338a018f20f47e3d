"""Tests for :class:`paperportal.auth.Auth`."""

from unittest import TestCase, mock

from flask import Flask, request
from werkzeug.exceptions import NotFound, Unauthorized

from ... import domain
from ...services.exceptions import NoSuchAccount
from .. import Auth, sessions
from ..exceptions import InvalidToken


class TestAuthExtension(TestCase):
    """The extension attaches the authenticated account to the request."""

    def setUp(self):
        self.app = Flask('test')
        self.app.config['ACCESS_TOKEN_SECRET'] = 'foosecret'
        self.app.config['REFRESH_TOKEN_SECRET'] = 'barsecret'
        self.auth = Auth(self.app)
        self.account = domain.Account(account_id='1',
                                      email='someone@example.org',
                                      fullname='Someone',
                                      role=domain.Role.AUTHOR)

    @mock.patch(f'{sessions.__name__}.TokenAuthority.authenticate')
    def test_cookie(self, mock_authenticate):
        """The token is read from the access token cookie."""
        mock_authenticate.return_value = self.account
        headers = {'Cookie': 'accessToken=footoken'}
        with self.app.test_request_context(headers=headers):
            self.auth.load_session()
            self.assertEqual(request.auth, self.account)
        mock_authenticate.assert_called_once_with('footoken')

    @mock.patch(f'{sessions.__name__}.TokenAuthority.authenticate')
    def test_bearer(self, mock_authenticate):
        """The token is read from a bearer header."""
        mock_authenticate.return_value = self.account
        headers = {'Authorization': 'Bearer footoken'}
        with self.app.test_request_context(headers=headers):
            self.auth.load_session()
            self.assertEqual(request.auth, self.account)
        mock_authenticate.assert_called_once_with('footoken')

    def test_no_token(self):
        """No token is present."""
        with self.app.test_request_context():
            self.auth.load_session()
            self.assertIsNone(request.auth)

    @mock.patch(f'{sessions.__name__}.TokenAuthority.authenticate')
    def test_invalid_token(self, mock_authenticate):
        """The token is not valid."""
        mock_authenticate.side_effect = InvalidToken
        headers = {'Authorization': 'Bearer footoken'}
        with self.app.test_request_context(headers=headers):
            self.auth.load_session()
            self.assertIsInstance(request.auth, Unauthorized)

    @mock.patch(f'{sessions.__name__}.TokenAuthority.authenticate')
    def test_deleted_account(self, mock_authenticate):
        """The account no longer exists."""
        mock_authenticate.side_effect = NoSuchAccount
        headers = {'Authorization': 'Bearer footoken'}
        with self.app.test_request_context(headers=headers):
            self.auth.load_session()
            self.assertIsInstance(request.auth, NotFound)
