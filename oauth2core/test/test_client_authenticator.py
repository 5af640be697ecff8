import unittest

import basicauth
from mock import Mock

from oauth2core.client_authenticator import ClientAuthenticator, \
    request_body, http_basic_auth, constant_time_compare
from oauth2core.datatype import Client
from oauth2core.error import OAuthInvalidError, OAuthClientError, \
    ClientNotFoundError
from oauth2core.store import ClientStore


class ClientAuthenticatorTestCase(unittest.TestCase):
    def setUp(self):
        self.client = Client(identifier="abc", secret="xyz")

        self.client_store_mock = Mock(spec=ClientStore)
        self.client_store_mock.fetch_by_client_id.return_value = self.client

        self.source_mock = Mock()

        self.authenticator = ClientAuthenticator(
            client_store=self.client_store_mock, source=self.source_mock)

    def test_by_identifier(self):
        client = self.authenticator.by_identifier("abc")

        self.client_store_mock.fetch_by_client_id.assert_called_with("abc")
        self.assertIs(client, self.client)

    def test_by_identifier_missing(self):
        with self.assertRaises(OAuthInvalidError) as expected:
            self.authenticator.by_identifier(None)

        self.assertEqual(expected.exception.error, "invalid_request")
        self.assertFalse(self.client_store_mock.fetch_by_client_id.called)

    def test_by_identifier_unknown_client(self):
        self.client_store_mock.fetch_by_client_id.side_effect = \
            ClientNotFoundError

        with self.assertRaises(OAuthClientError) as expected:
            self.authenticator.by_identifier("abc")

        self.assertEqual(expected.exception.error, "invalid_client")

    def test_by_identifier_secret(self):
        form = {"client_id": ["abc"], "client_secret": ["xyz"]}
        self.source_mock.return_value = ("abc", "xyz")

        client = self.authenticator.by_identifier_secret(form)

        self.source_mock.assert_called_with(form=form, headers={})
        self.assertIs(client, self.client)

    def test_by_identifier_secret_passes_headers(self):
        headers = {"Authorization": "Basic abc"}
        self.source_mock.return_value = ("abc", "xyz")

        self.authenticator.by_identifier_secret({}, headers=headers)

        self.source_mock.assert_called_with(form={}, headers=headers)

    def test_by_identifier_secret_wrong_secret(self):
        self.source_mock.return_value = ("abc", "wrong")

        with self.assertRaises(OAuthClientError) as expected:
            self.authenticator.by_identifier_secret({})

        self.assertEqual(expected.exception.error, "invalid_client")

    def test_by_identifier_secret_custom_comparison(self):
        secret_matches_mock = Mock(return_value=True)
        authenticator = ClientAuthenticator(
            client_store=self.client_store_mock, source=self.source_mock,
            secret_matches=secret_matches_mock)
        self.source_mock.return_value = ("abc", "plain")

        client = authenticator.by_identifier_secret({})

        secret_matches_mock.assert_called_with("xyz", "plain")
        self.assertIs(client, self.client)

    def test_default_source(self):
        authenticator = ClientAuthenticator(client_store=self.client_store_mock)

        self.assertIs(authenticator.source, request_body)
        self.assertIs(authenticator.secret_matches, constant_time_compare)


class ConstantTimeCompareTestCase(unittest.TestCase):
    def test_constant_time_compare(self):
        self.assertTrue(constant_time_compare("xyz", "xyz"))
        self.assertFalse(constant_time_compare("xyz", "xy"))
        self.assertFalse(constant_time_compare("xyz", "abc"))


class RequestBodyTestCase(unittest.TestCase):
    def test_request_body(self):
        form = {"client_id": ["abc"], "client_secret": ["xyz"]}

        self.assertEqual(request_body(form, {}), ("abc", "xyz"))

    def test_request_body_no_client_id(self):
        with self.assertRaises(OAuthInvalidError) as expected:
            request_body({"client_secret": ["xyz"]}, {})

        self.assertEqual(expected.exception.error, "invalid_request")
        self.assertEqual(expected.exception.explanation,
                         "Missing client identifier")

    def test_request_body_no_client_secret(self):
        with self.assertRaises(OAuthInvalidError) as expected:
            request_body({"client_id": ["abc"], "client_secret": []}, {})

        self.assertEqual(expected.exception.error, "invalid_request")
        self.assertEqual(expected.exception.explanation,
                         "Missing client credentials")


class HttpBasicAuthTestCase(unittest.TestCase):
    def test_http_basic_auth(self):
        headers = {"authorization": basicauth.encode("abc", "xyz")}

        self.assertEqual(http_basic_auth({}, headers), ("abc", "xyz"))

    def test_http_basic_auth_header_case(self):
        headers = {"Authorization": basicauth.encode("abc", "xyz")}

        self.assertEqual(http_basic_auth({}, headers), ("abc", "xyz"))

    def test_http_basic_auth_missing_header(self):
        with self.assertRaises(OAuthInvalidError) as expected:
            http_basic_auth({"client_id": ["abc"]}, {})

        self.assertEqual(expected.exception.error, "invalid_request")
        self.assertEqual(expected.exception.explanation,
                         "Missing authorization header")

    def test_http_basic_auth_invalid_header(self):
        with self.assertRaises(OAuthInvalidError) as expected:
            http_basic_auth({}, {"Authorization": "Bearer abc def"})

        self.assertEqual(expected.exception.error, "invalid_request")
        self.assertEqual(expected.exception.explanation,
                         "Invalid value of authorization header")


if __name__ == "__main__":
    unittest.main()
