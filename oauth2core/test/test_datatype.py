import unittest

from oauth2core.datatype import Client, split_arguments, exact, encode_scopes


class ClientTestCase(unittest.TestCase):
    def test_redirect_uri(self):
        client = Client(identifier="abc", secret="xyz",
                        redirect_uris=["http://callback",
                                       "http://another.callback"])

        self.assertEqual(client.redirect_uri, "http://callback")
        self.assertTrue(client.has_redirect_uri("http://another.callback"))
        self.assertFalse(client.has_redirect_uri("http://unknown"))

    def test_redirect_uri_none_registered(self):
        client = Client(identifier="abc", secret="xyz")

        self.assertIsNone(client.redirect_uri)

    def test_grant_type_supported(self):
        client = Client(identifier="abc", secret="xyz",
                        grant_types=["test_grant"])

        self.assertTrue(client.grant_type_supported("test_grant"))
        self.assertFalse(client.grant_type_supported("unknown_grant"))

    def test_response_type_supported(self):
        client = Client(identifier="abc", secret="xyz",
                        response_types=["code"])

        self.assertTrue(client.response_type_supported("code"))
        self.assertFalse(client.response_type_supported("token"))

    def test_has_scope(self):
        client = Client(identifier="abc", secret="xyz", scopes=["read"])

        self.assertTrue(client.has_scope("read"))
        self.assertFalse(client.has_scope("write"))

    def test_lists_are_copied(self):
        grant_types = ["implicit"]

        client = Client(identifier="abc", secret="xyz",
                        grant_types=grant_types)
        grant_types.append("password")

        self.assertEqual(client.grant_types, ["implicit"])


class ArgumentsTestCase(unittest.TestCase):
    def test_split_arguments(self):
        self.assertEqual(split_arguments("code  token"), ["code", "token"])
        self.assertEqual(split_arguments("read,write", ","),
                         ["read", "write"])
        self.assertEqual(split_arguments(None), [])
        self.assertEqual(split_arguments(""), [])

    def test_exact(self):
        self.assertTrue(exact(["token"], "token"))
        self.assertFalse(exact(["code", "token"], "token"))
        self.assertFalse(exact([], "token"))

    def test_encode_scopes(self):
        self.assertEqual(encode_scopes(["read", "write"]), "read write")
        self.assertEqual(encode_scopes(["read", "write"], "+"), "read+write")
        self.assertEqual(encode_scopes([]), "")


if __name__ == "__main__":
    unittest.main()
