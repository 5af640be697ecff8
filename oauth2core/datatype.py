# -*- coding: utf-8 -*-
"""
Definitions of types used by grants.
"""


def split_arguments(value, separator=" "):
    """
    Splits a space-delimited request parameter like ``response_type`` or
    ``scope`` into a list. Empty entries are dropped.

    :param value: The raw parameter value or ``None``.
    :param separator: The delimiter. Defaults to " " (whitespace).
    :return: A ``list`` of strings.
    """
    if not value:
        return []

    return [item for item in value.split(separator) if item != ""]


def exact(arguments, value):
    """
    Checks that a list of arguments consists of exactly ``value``.

    ``["token"]`` is exactly "token", ``["code", "token"]`` is not.
    """
    return len(arguments) == 1 and arguments[0] == value


def encode_scopes(scopes, separator=" "):
    """
    Creates a string out of a list of scopes.

    :param scopes: A list of scopes
    :param separator: String used to join the scopes.
    :return: Scopes as a string
    """
    return separator.join(scopes)


class Client(object):
    """
    Representation of a client application.

    :param identifier: Identifier of the client.
    :param secret: The (hashed) secret of the client. Opaque to the grants.
    :param redirect_uris: A ``list`` of URIs registered for the client.
    :param response_types: A ``list`` of response types the client may
                           request at the authorization endpoint.
    :param grant_types: A ``list`` of grant types the client may use.
    :param scopes: A ``list`` of scopes the client may request.
    """
    def __init__(self, identifier, secret, redirect_uris=None,
                 response_types=None, grant_types=None, scopes=None):
        self.identifier = identifier
        self.secret = secret

        self.redirect_uris = list(redirect_uris or [])
        self.response_types = list(response_types or [])
        self.grant_types = list(grant_types or [])
        self.scopes = list(scopes or [])

    @property
    def redirect_uri(self):
        """
        The default redirect URI, i.e. the first one registered.
        """
        if len(self.redirect_uris) == 0:
            return None
        return self.redirect_uris[0]

    def has_redirect_uri(self, uri):
        """
        Checks if a uri is associated with the client.

        :param uri: The uri to be checked.

        :return: Boolean
        """
        return uri in self.redirect_uris

    def response_type_supported(self, response_type):
        """
        Checks if the client is allowed to request the given response type.

        :param response_type: A response type like "code" or "token".

        :return: Boolean
        """
        return response_type in self.response_types

    def grant_type_supported(self, grant_type):
        """
        Checks if the client is authorized to receive tokens for the given
        grant.

        :param grant_type: The type of the grant.

        :return: Boolean
        """
        return grant_type in self.grant_types

    def has_scope(self, scope):
        return scope in self.scopes
