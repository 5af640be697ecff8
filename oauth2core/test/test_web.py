import unittest
from urllib.parse import urlparse, parse_qs

from mock import patch

from oauth2core.datatype import Client
from oauth2core.error import OAuthInvalidError, ServerError, \
    TypeAlreadyHandledError
from oauth2core.web import Request, AuthorizeRequest, AccessRequest, \
    AuthorizeResponse, AccessResponse, error_body, bearer_token


def mock_time():
    return 1000


class RequestTestCase(unittest.TestCase):
    @patch("time.time", mock_time)
    def test_initialization(self):
        request = Request()

        self.assertEqual(request.requested_at, 1000)
        self.assertEqual(request.client.identifier, "")
        self.assertEqual(request.scopes, [])
        self.assertEqual(request.granted_scopes, [])
        self.assertEqual(request.form, {})
        self.assertIsNone(request.session)

    def test_form_param(self):
        request = Request()
        request.form = {"foo": ["bar", "baz"], "empty": []}

        self.assertEqual(request.form_param("foo"), "bar")
        self.assertIsNone(request.form_param("empty"))
        self.assertEqual(request.form_param("na", "default"), "default")

        request.set_form_param("foo", "buz")
        self.assertEqual(request.form["foo"], ["buz"])

    def test_grant_scope_twice(self):
        """
        Request.grant_scope should not add a scope that has been granted before
        """
        request = Request()

        request.grant_scope("read")
        request.grant_scope("read")
        request.grant_scope("write")

        self.assertEqual(request.granted_scopes, ["read", "write"])
        self.assertTrue(request.has_granted_scope("write"))
        self.assertFalse(request.has_granted_scope("delete"))

    def test_merge(self):
        """
        Request.merge should append scopes and take over timestamp, client, session and form
        """
        client = Client(identifier="abc", secret="xyz")
        session = {"user": "foo"}

        source = Request()
        source.requested_at = 500
        source.client = client
        source.scopes = ["read", "write"]
        source.granted_scopes = ["read"]
        source.form = {"foo": ["bar"], "baz": ["buz"]}
        source.session = session

        target = Request()
        target.requested_at = 1000
        target.scopes = ["read"]
        target.granted_scopes = ["read"]
        target.form = {"foo": ["old"], "keep": ["me"]}

        target.merge(source)

        self.assertEqual(target.scopes, ["read", "read", "write"])
        self.assertEqual(target.granted_scopes, ["read", "read"])
        self.assertEqual(target.requested_at, 500)
        self.assertIs(target.client, client)
        self.assertIs(target.session, session)
        self.assertEqual(target.form, {"foo": ["bar"], "baz": ["buz"],
                                       "keep": ["me"]})

    def test_merge_does_not_alias_form(self):
        source = Request()
        source.form = {"foo": ["bar"]}

        target = Request()
        target.merge(source)
        target.form["foo"].append("baz")

        self.assertEqual(source.form, {"foo": ["bar"]})


class AuthorizeRequestTestCase(unittest.TestCase):
    def test_did_handle_all_response_types(self):
        request = AuthorizeRequest()
        request.response_types = ["code", "token"]

        request.set_response_type_handled("code")
        self.assertFalse(request.did_handle_all_response_types())

        request.set_response_type_handled("token")
        self.assertTrue(request.did_handle_all_response_types())
        self.assertTrue(request.is_response_type_handled("token"))
        self.assertEqual(request.handled_response_types, ["code", "token"])

    def test_set_response_type_handled_twice(self):
        request = AuthorizeRequest()
        request.set_response_type_handled("token")

        with self.assertRaises(TypeAlreadyHandledError):
            request.set_response_type_handled("token")

        self.assertEqual(request.handled_response_types, ["token"])


class AccessRequestTestCase(unittest.TestCase):
    def test_did_handle_all_grant_types(self):
        request = AccessRequest()
        request.grant_types = ["password"]

        self.assertFalse(request.did_handle_all_grant_types())
        self.assertFalse(request.is_grant_type_handled("password"))

        request.set_grant_type_handled("password")
        self.assertTrue(request.did_handle_all_grant_types())

        with self.assertRaises(TypeAlreadyHandledError):
            request.set_grant_type_handled("password")


class AuthorizeResponseTestCase(unittest.TestCase):
    def test_fragment_keeps_order(self):
        response = AuthorizeResponse()
        response.add_fragment("b", "1")
        response.add_fragment("a", "2")

        self.assertEqual(list(response.fragment.keys()), ["b", "a"])

    def test_redirect_location_fragment(self):
        response = AuthorizeResponse()
        response.add_fragment("access_token", "abc")
        response.add_fragment("state", "x y")
        response.add_fragment("scope", "read+write")

        location = response.redirect_location("https://callback")

        self.assertEqual(location, "https://callback#access_token=abc"
                                   "&state=x+y&scope=read+write")

    def test_redirect_location_state_with_plus(self):
        """
        AuthorizeResponse.redirect_location should let a client read back the exact state it sent
        """
        response = AuthorizeResponse()
        response.add_fragment("access_token", "abc")
        response.add_fragment("state", "a+b c&d=e")
        response.add_fragment("scope", "read+write")
        response.add_query("state", "a+b")

        location = response.redirect_location("https://callback")
        query = urlparse(location).query
        fragment = urlparse(location).fragment

        self.assertEqual(parse_qs(query)["state"], ["a+b"])
        self.assertEqual(parse_qs(fragment)["state"], ["a+b c&d=e"])
        self.assertIn("&scope=read+write", fragment)
        self.assertEqual(parse_qs(fragment)["scope"], ["read write"])

    def test_redirect_location_query(self):
        response = AuthorizeResponse()
        response.add_query("code", "abc")
        response.add_query("state", "xyz")

        self.assertEqual(response.redirect_location("https://callback"),
                         "https://callback?code=abc&state=xyz")
        self.assertEqual(response.redirect_location("https://callback?a=b"),
                         "https://callback?a=b&code=abc&state=xyz")

    def test_redirect_location_empty(self):
        response = AuthorizeResponse()

        self.assertEqual(response.redirect_location("https://callback"),
                         "https://callback")


class AccessResponseTestCase(unittest.TestCase):
    def test_to_json(self):
        response = AccessResponse()
        response.set_access_token("abc")
        response.set_token_type("bearer")
        response.set_extra("expires_in", 3600)

        self.assertEqual(response.access_token, "abc")
        self.assertEqual(response.to_json(), {"access_token": "abc",
                                              "token_type": "bearer",
                                              "expires_in": 3600})


class ErrorBodyTestCase(unittest.TestCase):
    def test_error_body(self):
        error = OAuthInvalidError(error="invalid_grant",
                                  explanation="Invalid code")

        self.assertEqual(error_body(error),
                         {"error": "invalid_grant",
                          "error_description": "Invalid code"})

    def test_error_body_with_uri(self):
        error = OAuthInvalidError(error="invalid_scope",
                                  error_uri="http://docs")

        self.assertEqual(error_body(error),
                         {"error": "invalid_scope", "error_uri": "http://docs"})

    def test_error_body_server_error(self):
        body = error_body(ServerError())

        self.assertEqual(body["error"], "server_error")
        self.assertEqual(body["error_description"],
                         "The authorization server encountered an unexpected "
                         "condition")


class BearerTokenTestCase(unittest.TestCase):
    def test_bearer_token(self):
        self.assertEqual(bearer_token("Bearer abc.def"), "abc.def")
        self.assertEqual(bearer_token("bearer abc"), "abc")
        self.assertIsNone(bearer_token(None))
        self.assertIsNone(bearer_token("Basic abc"))
        self.assertIsNone(bearer_token("Bearer "))
        self.assertIsNone(bearer_token("Bearer"))


if __name__ == "__main__":
    unittest.main()
