"""
Store adapters to persist and retrieve data during the OAuth 2.0 process or
for later use.
This module provides base classes that can be extended to implement your own
solution specific to your needs.

Tokens are always stored under their signature, never under the raw token.
"""
import copy

from oauth2core.web import Request


class TokenSession(object):
    """
    The data stored together with the signature of a token or code.

    It holds enough of a :class:`oauth2core.web.Request` to rebuild it when
    the token is presented again. Credentials and token material sent in the
    form are never part of it.
    """

    excluded_form_fields = ("password", "client_secret", "code",
                            "refresh_token", "access_token")

    def __init__(self, signature, requested_at, client_id, scopes=None,
                 granted_scopes=None, form=None, session=None):
        self.signature = signature
        self.requested_at = requested_at
        self.client_id = client_id
        self.scopes = list(scopes or [])
        self.granted_scopes = list(granted_scopes or [])
        self.form = copy.deepcopy(form or {})
        self.session = session

    @classmethod
    def from_request(cls, signature, request):
        """
        :param signature: The signature of the token.
        :param request: An instance of :class:`oauth2core.web.Request`.
        :return: A new :class:`TokenSession` that shares no lists or dicts
                 with ``request``. Form fields listed in
                 ``excluded_form_fields`` are left out.
        """
        form = dict((name, values) for name, values in request.form.items()
                    if name not in cls.excluded_form_fields)

        return cls(signature=signature,
                   requested_at=request.requested_at,
                   client_id=request.client.identifier,
                   scopes=request.scopes,
                   granted_scopes=request.granted_scopes,
                   form=form,
                   session=request.session)

    def to_request(self, client):
        """
        Rebuilds a request from the stored data.

        :param client: The :class:`oauth2core.datatype.Client` identified by
                       ``client_id``.
        """
        request = Request()
        request.requested_at = self.requested_at
        request.client = client
        request.scopes = list(self.scopes)
        request.granted_scopes = list(self.granted_scopes)
        request.form = copy.deepcopy(self.form)
        request.session = self.session

        return request

    def to_json(self):
        return {"signature": self.signature,
                "requested_at": self.requested_at,
                "client_id": self.client_id,
                "scopes": list(self.scopes),
                "granted_scopes": list(self.granted_scopes),
                "form": copy.deepcopy(self.form),
                "session": self.session}


class AccessTokenStore(object):
    """
    Base class for persisting an access token after it has been generated.

    Used by every grant.
    """
    def create_access_token_session(self, signature, request):
        """
        Stores the signature of an access token and the request it was
        issued for.

        :param signature: The signature of the access token.
        :param request: An instance of :class:`oauth2core.web.Request`.
        :raises: :class:`oauth2core.error.TokenAlreadyExists`
        """
        raise NotImplementedError

    def get_access_token_session(self, signature):
        """
        Returns the request an access token was issued for.

        :param signature: The signature of the access token.
        :return: An instance of :class:`oauth2core.web.Request`.
        :raises: :class:`oauth2core.error.TokenNotFound`
        """
        raise NotImplementedError

    def delete_access_token_session(self, signature):
        """
        :raises: :class:`oauth2core.error.TokenNotFound`
        """
        raise NotImplementedError


class AuthorizeCodeStore(object):
    """
    Base class for writing and retrieving an authorization code during the
    Authorization Code Grant flow.
    """
    def create_authorize_code_session(self, signature, request):
        raise NotImplementedError

    def get_authorize_code_session(self, signature):
        raise NotImplementedError

    def delete_authorize_code_session(self, signature):
        raise NotImplementedError


class RefreshTokenStore(object):
    """
    Base class for writing and retrieving refresh tokens.
    """
    def create_refresh_token_session(self, signature, request):
        raise NotImplementedError

    def get_refresh_token_session(self, signature):
        raise NotImplementedError

    def delete_refresh_token_session(self, signature):
        raise NotImplementedError


class ClientStore(object):
    """
    Base class for handling OAuth2 clients.
    """
    def fetch_by_client_id(self, client_id):
        """
        Retrieve a client by its identifier.

        :param client_id: Identifier of a client app.
        :return: An instance of :class:`oauth2core.datatype.Client`.
        :raises: :class:`oauth2core.error.ClientNotFoundError`
        """
        raise NotImplementedError
