"""
Classes that carry the state of a single authorization or token request
through the grant handlers and collect what the handlers produce.

Instances are created per call and must not be shared between calls.
"""

import time
from urllib.parse import quote_plus

from oauth2core.datatype import Client
from oauth2core.error import TypeAlreadyHandledError


def encode_params(params):
    """
    Form-encodes key/value pairs for a redirect URI.

    Every value is quoted, ``+`` included, so that it decodes to what the
    handler set. The only exception is ``scope``: its value has been joined
    with ``+`` already and the separator is kept literally.
    """
    pairs = []
    for key, value in params.items():
        safe = "+" if key == "scope" else ""
        pairs.append(quote_plus(key) + "=" + quote_plus(str(value), safe=safe))
    return "&".join(pairs)


class UserAuthenticator(object):
    """
    Verifies the credentials of a resource owner.

    Used by :class:`oauth2core.grant.ResourceOwnerGrantHandler`.
    """
    def authenticate(self, username, password):
        """
        Authenticates a user by her credentials.

        :param username: The name of the user as sent by the client.
        :param password: The password of the user as sent by the client.
        :return: Arbitrary data that identifies the user. It is not inspected
                 by the grant.
        :raises: :class:`oauth2core.error.UserNotAuthenticated` if the user
                 could not be authenticated.
        """
        raise NotImplementedError


class Request(object):
    """
    Contains the data of the current request as seen by the grant handlers.

    ``session`` belongs to the host application. It is carried along and
    stored with issued tokens but never inspected.
    """
    def __init__(self):
        self.requested_at = int(time.time())
        self.client = Client(identifier="", secret="")
        self.scopes = []
        self.granted_scopes = []
        self.form = {}
        self.session = None

    def form_param(self, name, default=None):
        """
        Returns the first value of a form parameter identified by its name.
        """
        try:
            return self.form[name][0]
        except (KeyError, IndexError):
            return default

    def set_form_param(self, name, value):
        self.form[name] = [value]

    def grant_scope(self, scope):
        """
        Marks a scope as granted. Granting a scope twice has no effect.
        """
        if scope not in self.granted_scopes:
            self.granted_scopes.append(scope)

    def has_granted_scope(self, scope):
        return scope in self.granted_scopes

    def merge(self, request):
        """
        Folds the data of another request into this one.

        Scopes and granted scopes of ``request`` are appended. Timestamp,
        client and session are taken over. Form entries of ``request``
        replace the entries with the same name.

        :param request: An instance of :class:`oauth2core.web.Request`.
        """
        for scope in request.scopes:
            self.scopes.append(scope)

        for scope in request.granted_scopes:
            self.granted_scopes.append(scope)

        self.requested_at = request.requested_at
        self.client = request.client
        self.session = request.session

        for name, values in request.form.items():
            self.form[name] = list(values)


class AuthorizeRequest(Request):
    """
    A request to the authorization endpoint.
    """
    def __init__(self):
        self.response_types = []
        self.redirect_uri = None
        self.state = None
        self.handled_response_types = []

        super(AuthorizeRequest, self).__init__()

    def set_response_type_handled(self, response_type):
        """
        :raises: :class:`oauth2core.error.TypeAlreadyHandledError` if another
                 handler marked ``response_type`` before.
        """
        if response_type in self.handled_response_types:
            raise TypeAlreadyHandledError(response_type)
        self.handled_response_types.append(response_type)

    def is_response_type_handled(self, response_type):
        return response_type in self.handled_response_types

    def did_handle_all_response_types(self):
        for response_type in self.response_types:
            if response_type not in self.handled_response_types:
                return False
        return True


class AccessRequest(Request):
    """
    A request to the token endpoint.
    """
    def __init__(self):
        self.grant_types = []
        self.handled_grant_types = []

        super(AccessRequest, self).__init__()

    def set_grant_type_handled(self, grant_type):
        if grant_type in self.handled_grant_types:
            raise TypeAlreadyHandledError(grant_type)
        self.handled_grant_types.append(grant_type)

    def is_grant_type_handled(self, grant_type):
        return grant_type in self.handled_grant_types

    def did_handle_all_grant_types(self):
        for grant_type in self.grant_types:
            if grant_type not in self.handled_grant_types:
                return False
        return True


class AuthorizeResponse(object):
    """
    Collects the data returned by the authorization endpoint.

    Key/value pairs end up either in the fragment or in the query of the URI
    the user agent is redirected to. Keys keep the order they were added in.
    """
    def __init__(self):
        self.fragment = {}
        self.query = {}

    def add_fragment(self, key, value):
        self.fragment[key] = value

    def add_query(self, key, value):
        self.query[key] = value

    def redirect_location(self, redirect_uri):
        """
        Builds the URI to redirect the user agent to.

        :param redirect_uri: The redirect URI of the client.
        :return: ``redirect_uri`` with query and fragment appended.
        """
        location = redirect_uri

        if self.query:
            if "?" in redirect_uri:
                location += "&"
            else:
                location += "?"
            location += encode_params(self.query)

        if self.fragment:
            location += "#" + encode_params(self.fragment)

        return location


class AccessResponse(object):
    """
    Collects the data returned by the token endpoint in the response body.
    """
    def __init__(self):
        self.body = {}

    @property
    def access_token(self):
        return self.body.get("access_token")

    def set_access_token(self, token):
        self.body["access_token"] = token

    def set_token_type(self, token_type):
        self.body["token_type"] = token_type

    def set_extra(self, key, value):
        self.body[key] = value

    def to_json(self):
        return dict(self.body)


def error_body(error):
    """
    Formats an error the way it is returned to a client.

    :param error: An instance of :class:`oauth2core.error.OAuthBaseError`.
    :return: A ``dict`` with the keys ``error`` and, if available,
             ``error_description`` and ``error_uri``.
    """
    body = {"error": error.error}

    if error.explanation is not None:
        body["error_description"] = error.explanation

    if error.error_uri is not None:
        body["error_uri"] = error.error_uri

    return body


def bearer_token(authorization):
    """
    Extracts a bearer token from the value of an ``Authorization`` header.

    :param authorization: The header value or ``None``.
    :return: The token or ``None`` if the header does not carry a bearer
             token.
    """
    if authorization is None:
        return None

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    token = parts[1].strip()
    if token == "":
        return None
    return token
