"""
==================
python-oauth2-core
==================

python-oauth2-core is the protocol core of an
`OAuth 2.0 <http://tools.ietf.org/html/rfc6749>`_ authorization server.
It decides which grant handles a request, checks the request against the
capabilities of the client, issues tokens and builds the data of the
response. HTTP, persistence and user interaction stay with the host
application.

Usage
=====

Example::

    import oauth2core
    import oauth2core.error
    import oauth2core.grant
    import oauth2core.store.memory
    import oauth2core.strategy
    import oauth2core.tokengenerator
    import oauth2core.web

    # Create an in-memory storage to store your client apps.
    client_store = oauth2core.store.memory.ClientStore()
    # Add a client
    client_store.add_client(client_id="abc", client_secret="xyz",
                            redirect_uris=["http://localhost/callback"],
                            response_types=["token"],
                            grant_types=["implicit", "client_credentials"])

    # Create an in-memory storage to store issued tokens.
    token_store = oauth2core.store.memory.TokenStore(client_store)

    # Sign opaque tokens with HMAC-SHA256
    strategy = oauth2core.strategy.HMACStrategy(
        oauth2core.tokengenerator.HMACTokenGenerator(
            secret="a secret that is at least 32 bytes long"))

    provider = oauth2core.Provider(client_store=client_store)

    # Add grants you want to support
    provider.add_grant(oauth2core.grant.ImplicitGrantHandler(
        token_strategy=strategy, access_token_store=token_store))
    provider.add_grant(oauth2core.grant.ClientCredentialsGrantHandler(
        token_strategy=strategy, access_token_store=token_store))

    # Somewhere in the request handler of your web framework
    request = provider.new_authorize_request(query_params)
    response = oauth2core.web.AuthorizeResponse()
    try:
        provider.handle_authorize_request(request, response)
        location = response.redirect_location(request.redirect_uri)
    except oauth2core.error.OAuthBaseError as err:
        body = oauth2core.web.error_body(err)

"""
import logging

from oauth2core.client_authenticator import ClientAuthenticator
from oauth2core.datatype import split_arguments
from oauth2core.error import OAuthInvalidError, OAuthClientError, \
    ClientNotFoundError, UnsupportedGrantError, RequestCancelled, \
    ServerError, TypeAlreadyHandledError
from oauth2core.web import AuthorizeRequest, AccessRequest

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


class Provider(object):
    """
    Dispatches requests to the registered grant handlers.

    Handlers are offered a request in the order they have been added. The
    provider itself keeps no per-request state and can serve concurrent
    requests.

    :param client_store: An object that implements methods defined by
                         :class:`oauth2core.store.ClientStore`. Needed by
                         :meth:`new_authorize_request` and
                         :meth:`new_access_request`.
    :param client_authenticator: Authenticates clients at the token endpoint.
                                 Defaults to a
                                 :class:`oauth2core.client_authenticator.ClientAuthenticator`
                                 that reads credentials from the request body.
    :param scope_separator: Separator of values in the scope parameter.
                            Defaults to " " (whitespace).
    """
    def __init__(self, client_store=None, client_authenticator=None,
                 scope_separator=" "):
        self.authorize_handlers = []
        self.token_handlers = []
        self.request_validators = []

        self.client_store = client_store
        self.client_authenticator = client_authenticator
        self.scope_separator = scope_separator

        if self.client_authenticator is None and client_store is not None:
            self.client_authenticator = ClientAuthenticator(
                client_store=client_store)

    def add_grant(self, grant):
        """
        Adds a grant handler that the provider should support.

        The handler is registered with the authorization endpoint if it
        implements ``handle_authorize_request`` and with the token endpoint if
        it implements ``handle_token_request``.

        :param grant: An instance of a handler from :mod:`oauth2core.grant`.
        """
        registered = False

        if hasattr(grant, "handle_authorize_request"):
            self.add_authorize_handler(grant)
            registered = True

        if hasattr(grant, "handle_token_request"):
            self.add_token_handler(grant)
            registered = True

        if not registered:
            raise TypeError("{0} handles neither authorize nor token "
                            "requests".format(type(grant).__name__))

    def add_authorize_handler(self, handler):
        """
        :raises: ValueError if a handler for the same ``response_type`` is
                 registered already.
        """
        self._check_unique(self.authorize_handlers, handler, "response_type")
        self.authorize_handlers.append(handler)

    def add_token_handler(self, handler):
        """
        :raises: ValueError if a handler for the same ``grant_type`` is
                 registered already.
        """
        self._check_unique(self.token_handlers, handler, "grant_type")
        self.token_handlers.append(handler)

    def add_validator(self, validator):
        """
        Adds a validator of already issued access tokens, e.g.
        :class:`oauth2core.validator.CoreValidator`.
        """
        self.request_validators.append(validator)

    def new_authorize_request(self, params, session=None):
        """
        Creates a request for the authorization endpoint.

        :param params: The query parameters of the request, each name mapped
                       to a ``list`` of values.
        :param session: Opaque data of the host application.

        :return: An instance of :class:`oauth2core.web.AuthorizeRequest`.
        :raises: :class:`oauth2core.error.OAuthBaseError`
        """
        request = AuthorizeRequest()
        request.form = dict((name, list(values))
                            for name, values in params.items())
        request.session = session

        client_id = request.form_param("client_id")
        if client_id is None:
            raise OAuthInvalidError(error="invalid_request",
                                    explanation="Missing client_id parameter")

        try:
            request.client = self.client_store.fetch_by_client_id(client_id)
        except ClientNotFoundError:
            raise OAuthClientError(explanation="No client registered")

        redirect_uri = request.form_param("redirect_uri")
        if redirect_uri is not None:
            if not request.client.has_redirect_uri(redirect_uri):
                raise OAuthInvalidError(
                    error="invalid_request",
                    explanation="redirect_uri is not registered for this "
                                "client")
            request.redirect_uri = redirect_uri
        else:
            # redirect_uri is an optional param.
            # If not supplied, we use the first one registered as default.
            request.redirect_uri = request.client.redirect_uri

        request.response_types = split_arguments(
            request.form_param("response_type"))
        request.scopes = split_arguments(request.form_param("scope"),
                                         self.scope_separator)
        request.state = request.form_param("state")

        return request

    def new_access_request(self, form, headers=None, session=None):
        """
        Creates a request for the token endpoint and authenticates the
        client.

        :param form: The form-encoded body of the request, each name mapped
                     to a ``list`` of values.
        :param headers: The HTTP headers of the request. (optional)
        :param session: Opaque data of the host application.

        :return: An instance of :class:`oauth2core.web.AccessRequest`.
        :raises: :class:`oauth2core.error.OAuthBaseError`
        """
        request = AccessRequest()
        request.form = dict((name, list(values))
                            for name, values in form.items())
        request.session = session

        request.grant_types = split_arguments(request.form_param("grant_type"))
        if len(request.grant_types) == 0:
            raise OAuthInvalidError(error="invalid_request",
                                    explanation="Missing grant_type parameter")

        request.client = self.client_authenticator.by_identifier_secret(
            form=request.form, headers=headers)

        request.scopes = split_arguments(request.form_param("scope"),
                                         self.scope_separator)

        return request

    def handle_authorize_request(self, request, response, cancel=None):
        """
        Passes a request to the authorization endpoint through all registered
        handlers.

        :param request: An instance of
                        :class:`oauth2core.web.AuthorizeRequest`.
        :param response: An instance of
                         :class:`oauth2core.web.AuthorizeResponse`.
        :param cancel: An object with an ``is_set()`` method, e.g. a
                       ``threading.Event``. Checked before each handler.

        :raises: :class:`oauth2core.error.OAuthBaseError`,
                 :class:`oauth2core.error.RequestCancelled`
        """
        if len(request.response_types) == 0:
            raise OAuthInvalidError(error="invalid_request",
                                    explanation="Missing response_type "
                                                "parameter")

        for handler in self.authorize_handlers:
            self._check_cancelled(cancel)

            response_type = getattr(handler, "response_type", None)
            if (response_type is not None
                    and request.is_response_type_handled(response_type)):
                self._already_handled(response_type)

            try:
                handler.handle_authorize_request(request, response)
            except TypeAlreadyHandledError as err:
                self._already_handled(str(err))

        if not request.did_handle_all_response_types():
            logger.debug("Unhandled response types %s",
                         request.response_types)
            raise UnsupportedGrantError(
                error="unsupported_response_type",
                explanation="Response type not supported")

        logger.debug("Handled authorize request of client %s",
                     request.client.identifier)

    def handle_token_request(self, request, response, cancel=None):
        """
        Passes a request to the token endpoint through all registered
        handlers.

        :param request: An instance of :class:`oauth2core.web.AccessRequest`.
        :param response: An instance of
                         :class:`oauth2core.web.AccessResponse`.
        :param cancel: An object with an ``is_set()`` method. Checked before
                       each handler.

        :raises: :class:`oauth2core.error.OAuthBaseError`,
                 :class:`oauth2core.error.RequestCancelled`
        """
        if len(request.grant_types) == 0:
            raise OAuthInvalidError(error="invalid_request",
                                    explanation="Missing grant_type parameter")

        for handler in self.token_handlers:
            self._check_cancelled(cancel)

            grant_type = getattr(handler, "grant_type", None)
            if (grant_type is not None
                    and request.is_grant_type_handled(grant_type)):
                self._already_handled(grant_type)

            try:
                handler.handle_token_request(request, response)
            except TypeAlreadyHandledError as err:
                self._already_handled(str(err))

        if not request.did_handle_all_grant_types():
            logger.debug("Unhandled grant types %s", request.grant_types)
            raise UnsupportedGrantError(
                error="unsupported_grant_type",
                explanation="Grant type not supported")

        logger.debug("Handled token request of client %s",
                     request.client.identifier)

    def validate_request(self, token, request, scopes=None, cancel=None):
        """
        Checks an access token presented to a resource server.

        The first validator that accepts the token ends the pass.

        :param token: The access token or ``None``.
        :param request: An instance of :class:`oauth2core.web.Request`. The
                        request the token was issued for is merged into it.
        :param scopes: Scopes the token must have been granted. (optional)
        :param cancel: An object with an ``is_set()`` method. (optional)

        :raises: :class:`oauth2core.error.OAuthBaseError`
        """
        for validator in self.request_validators:
            self._check_cancelled(cancel)
            if validator.validate_request(token, request, scopes=scopes):
                return

        raise OAuthInvalidError(error="invalid_request",
                                explanation="No access token could be "
                                            "validated")

    def _check_cancelled(self, cancel):
        if cancel is not None and cancel.is_set():
            raise RequestCancelled

    def _check_unique(self, handlers, handler, attribute):
        value = getattr(handler, attribute, None)
        if value is None:
            return

        for registered in handlers:
            if getattr(registered, attribute, None) == value:
                raise ValueError("A handler for {0} {1} is registered "
                                 "already".format(attribute, value))

    def _already_handled(self, handled_type):
        logger.error("More than one handler took care of %s", handled_type)
        raise ServerError()
