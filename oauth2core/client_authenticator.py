"""
Authentication of clients at the token endpoint.

A source reads the credentials of a client from a request. Two sources are
available: :func:`request_body` (the default) and :func:`http_basic_auth`.
"""
import hmac
import logging

import basicauth
from basicauth import DecodeError

from oauth2core.error import OAuthInvalidError, OAuthClientError, \
    ClientNotFoundError

logger = logging.getLogger(__name__)


def constant_time_compare(stored_secret, presented_secret):
    """
    Compares a stored client secret with the secret presented by a client.

    Replace it with a function that checks ``presented_secret`` against a
    hash if your client store keeps hashed secrets.
    """
    return hmac.compare_digest(stored_secret.encode("utf-8"),
                               presented_secret.encode("utf-8"))


class ClientAuthenticator(object):
    def __init__(self, client_store, source=None, secret_matches=None):
        """
        Constructor.

        :param client_store: An instance of
                             :class:`oauth2core.store.ClientStore`.
        :param source: A callable that returns a tuple
                       (<client_id>, <client_secret>). Defaults to
                       :func:`oauth2core.client_authenticator.request_body`.
        :param secret_matches: A callable that compares the stored secret of
                               a client with the presented one. Defaults to
                               :func:`constant_time_compare`.
        """
        self.client_store = client_store
        self.source = source
        self.secret_matches = secret_matches

        if self.source is None:
            self.source = request_body

        if self.secret_matches is None:
            self.secret_matches = constant_time_compare

    def by_identifier(self, client_id):
        """
        Looks up a client by its identifier.

        :param client_id: The identifier sent by the client.

        :return: An instance of :class:`oauth2core.datatype.Client`.
        :raises: :class:`oauth2core.error.OAuthInvalidError` if the
                 identifier is missing,
                 :class:`oauth2core.error.OAuthClientError` if the client is
                 unknown.
        """
        if client_id is None:
            raise OAuthInvalidError(error="invalid_request",
                                    explanation="Missing client_id parameter")

        try:
            return self.client_store.fetch_by_client_id(client_id)
        except ClientNotFoundError:
            raise OAuthClientError(explanation="No client found")

    def by_identifier_secret(self, form, headers=None):
        """
        Authenticates a client by its identifier and secret (aka password).

        :param form: The form parameters of the request, each name mapped to
                     a ``list`` of values.
        :param headers: The HTTP headers of the request. (optional)

        :return: An instance of :class:`oauth2core.datatype.Client`.
        :raises: :class:`oauth2core.error.OAuthClientError`
        """
        client_id, client_secret = self.source(form=form,
                                               headers=headers or {})

        client = self.by_identifier(client_id)

        if not self.secret_matches(client.secret, client_secret):
            logger.warning("Invalid credentials for client %s", client_id)
            raise OAuthClientError(explanation="Invalid client credentials")

        return client


def _first(form, name):
    values = form.get(name)
    if not values:
        return None
    return values[0]


def request_body(form, headers):
    """
    Extracts the credentials of a client from the body of a request.

    :return: A tuple of the format `(<CLIENT ID>, <CLIENT SECRET>)`
    """
    client_id = _first(form, "client_id")
    if client_id is None:
        raise OAuthInvalidError(error="invalid_request",
                                explanation="Missing client identifier")

    client_secret = _first(form, "client_secret")
    if client_secret is None:
        raise OAuthInvalidError(error="invalid_request",
                                explanation="Missing client credentials")

    return client_id, client_secret


def http_basic_auth(form, headers):
    """
    Extracts the credentials of a client using HTTP Basic Auth.

    :return: A tuple of the format `(<CLIENT ID>, <CLIENT SECRET>)`
    """
    auth_header = None
    for name, value in headers.items():
        if name.lower() == "authorization":
            auth_header = value

    if auth_header is None:
        raise OAuthInvalidError(error="invalid_request",
                                explanation="Missing authorization header")

    try:
        return basicauth.decode(auth_header)
    except DecodeError:
        raise OAuthInvalidError(
            error="invalid_request",
            explanation="Invalid value of authorization header")
