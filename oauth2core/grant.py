"""
Grants are the heart of OAuth 2.0. Each Grant defines one way for a client to
retrieve an authorization. They are defined in
`Section 4 <http://tools.ietf.org/html/rfc6749#section-4>`_ of RFC
6749.

Every handler in this module owns exactly one response type or grant type.
:class:`oauth2core.Provider` offers each request to all registered handlers.
A handler either

* declines by returning without touching the request, because the request
  does not declare the type it owns,
* raises an :class:`oauth2core.error.OAuthBaseError`, which aborts the whole
  request, or
* issues its token or code, writes it to the response and marks its type as
  handled.

Handlers keep no state between requests. Tokens are minted only after every
check has passed.
"""
import logging
import time

from oauth2core.datatype import exact, encode_scopes
from oauth2core.error import OAuthBaseError, OAuthInvalidError, \
    ServerError, TokenError, TokenNotFound, UserNotAuthenticated
from oauth2core.validator import response_type_allowed, grant_type_allowed, \
    scopes_allowed, redirect_uri_allowed

logger = logging.getLogger(__name__)


def generate_token(generate, request, kind):
    """
    Calls a ``generate_*`` method of a token strategy.

    :return: A tuple ``(token, signature)``.
    :raises: :class:`oauth2core.error.ServerError` on any failure.
    """
    try:
        return generate(request)
    except Exception:
        logger.exception("Could not generate %s", kind)
        raise ServerError()


def validate_token(validate, token, kind):
    """
    Calls a ``validate_*`` method of a token strategy with a token presented
    by a client.

    :return: The signature of the token.
    :raises: :class:`oauth2core.error.OAuthInvalidError` if the token is
             malformed or invalid.
    """
    try:
        return validate(token)
    except TokenError as err:
        logger.warning("Rejected %s: %s", kind, err)
        raise OAuthInvalidError(error="invalid_grant",
                                explanation="Invalid " + kind)
    except Exception:
        logger.exception("Could not validate %s", kind)
        raise ServerError()


def store_session(create, signature, request, kind):
    try:
        create(signature, request)
    except Exception:
        logger.exception("Could not store %s session", kind)
        raise ServerError()


def load_session(get, signature, kind):
    try:
        return get(signature)
    except TokenNotFound:
        raise OAuthInvalidError(error="invalid_grant",
                                explanation="Unknown " + kind)
    except Exception:
        logger.exception("Could not read %s session", kind)
        raise ServerError()


def revoke_session(delete, signature, kind):
    try:
        delete(signature)
    except TokenNotFound:
        # Another request redeemed the same token in the meantime.
        raise OAuthInvalidError(error="invalid_grant",
                                explanation="Unknown " + kind)
    except Exception:
        logger.exception("Could not revoke %s session", kind)
        raise ServerError()


def discard_session(delete, signature, kind):
    """
    Removes a session that was stored for a request that failed afterwards.
    Failures are logged only, the original error is what the client sees.
    """
    try:
        delete(signature)
    except Exception:
        logger.exception("Could not discard %s session", kind)


def check_scopes(client, scopes):
    if not scopes_allowed(client, scopes):
        raise OAuthInvalidError(
            error="invalid_scope",
            explanation="The client is not allowed to request the scopes " +
                        encode_scopes(scopes))


def check_redirect_uri(request):
    if (request.redirect_uri is not None
            and not redirect_uri_allowed(request.client,
                                         request.redirect_uri)):
        raise OAuthInvalidError(
            error="invalid_request",
            explanation="redirect_uri is not registered for this client")


def check_same_client(stored_request, request, kind):
    if stored_request.client.identifier != request.client.identifier:
        logger.warning("Client %s presented %s issued to client %s",
                       request.client.identifier, kind,
                       stored_request.client.identifier)
        raise OAuthInvalidError(
            error="invalid_grant",
            explanation="The " + kind + " was issued to another client")


def is_expired(requested_at, lifespan):
    if lifespan is None:
        return False
    return requested_at + lifespan < int(time.time())


class AccessTokenMixin(object):
    """
    Issuing of access tokens (and refresh tokens) at the token endpoint.

    Used by all grants that return a token in the response body.
    """
    def __init__(self, token_strategy, access_token_store,
                 refresh_token_store=None, access_token_lifespan=3600,
                 **kwargs):
        self.token_strategy = token_strategy
        self.access_token_store = access_token_store
        self.refresh_token_store = refresh_token_store
        self.access_token_lifespan = access_token_lifespan

        super(AccessTokenMixin, self).__init__(**kwargs)

    def refresh_token_allowed(self, request):
        """
        A refresh token is issued if a store for refresh tokens is configured
        and the client may use the refresh token grant.
        """
        return (self.refresh_token_store is not None
                and grant_type_allowed(request.client, "refresh_token"))

    def issue_access_token(self, request, response, refresh_token=False,
                           before_response=None):
        """
        Mints an access token and optionally a refresh token, stores both and
        writes them to the response.

        If anything fails after the access token has been stored, the sessions
        stored so far are deleted again and the error is raised.

        :param request: An instance of :class:`oauth2core.web.AccessRequest`.
        :param response: An instance of
                         :class:`oauth2core.web.AccessResponse`.
        :param refresh_token: Whether a refresh token should be issued too.
        :param before_response: A callable without arguments that runs after
                                all sessions have been stored and before the
                                response is written. (optional)
        """
        token, signature = generate_token(
            self.token_strategy.generate_access_token, request, "access token")

        if refresh_token:
            refresh, refresh_signature = generate_token(
                self.token_strategy.generate_refresh_token, request,
                "refresh token")

        store_session(self.access_token_store.create_access_token_session,
                      signature, request, "access token")

        refresh_stored = False
        try:
            if refresh_token:
                store_session(
                    self.refresh_token_store.create_refresh_token_session,
                    refresh_signature, request, "refresh token")
                refresh_stored = True

            if before_response is not None:
                before_response()
        except OAuthBaseError:
            discard_session(
                self.access_token_store.delete_access_token_session,
                signature, "access token")
            if refresh_stored:
                discard_session(
                    self.refresh_token_store.delete_refresh_token_session,
                    refresh_signature, "refresh token")
            raise

        response.set_access_token(token)
        response.set_token_type("bearer")
        response.set_extra("expires_in", self.access_token_lifespan)
        response.set_extra("scope", encode_scopes(request.granted_scopes))

        if refresh_token:
            response.set_extra("refresh_token", refresh)


class ImplicitGrantHandler(object):
    """
    Implementation of the Implicit Grant auth flow.

    See http://tools.ietf.org/html/rfc6749#section-4.2

    Register an instance of this class with :class:`oauth2core.Provider`
    like this::

        provider.add_grant(ImplicitGrantHandler(
            token_strategy=strategy, access_token_store=token_store))
    """

    response_type = "token"
    grant_type = "implicit"

    def __init__(self, token_strategy, access_token_store,
                 access_token_lifespan=3600, scope_separator="+"):
        self.token_strategy = token_strategy
        self.access_token_store = access_token_store
        self.access_token_lifespan = access_token_lifespan
        self.scope_separator = scope_separator

    def handle_authorize_request(self, request, response):
        if not exact(request.response_types, self.response_type):
            return

        client = request.client

        if not response_type_allowed(client, self.response_type):
            raise OAuthInvalidError(
                error="invalid_grant",
                explanation="The client is not allowed to use response type "
                            "token")

        if not grant_type_allowed(client, self.grant_type):
            raise OAuthInvalidError(
                error="invalid_grant",
                explanation="The client is not allowed to use the implicit "
                            "grant")

        check_scopes(client, request.scopes)
        check_redirect_uri(request)

        # No check for a secure transport. The implicit flow sends no client
        # secret, see https://tools.ietf.org/html/rfc6819#section-4.4.2
        self.issue_implicit_access_token(request, response)

    def issue_implicit_access_token(self, request, response):
        token, signature = generate_token(
            self.token_strategy.generate_access_token, request, "access token")

        store_session(self.access_token_store.create_access_token_session,
                      signature, request, "access token")

        state = request.state if request.state is not None else ""

        response.add_fragment("access_token", token)
        response.add_fragment("expires_in", str(self.access_token_lifespan))
        response.add_fragment("token_type", "bearer")
        response.add_fragment("state", state)
        response.add_fragment("scope", encode_scopes(request.granted_scopes,
                                                     self.scope_separator))
        request.set_response_type_handled(self.response_type)


class AuthorizationCodeGrantHandler(AccessTokenMixin):
    """
    Implementation of the Authorization Code Grant auth flow.

    This is a three-legged OAuth process. The handler takes part in both
    steps: it issues the code at the authorization endpoint and exchanges it
    for an access token at the token endpoint.

    See http://tools.ietf.org/html/rfc6749#section-4.1
    """

    response_type = "code"
    grant_type = "authorization_code"

    def __init__(self, auth_code_store, authorize_code_lifespan=600,
                 scope_separator="+", **kwargs):
        self.auth_code_store = auth_code_store
        self.authorize_code_lifespan = authorize_code_lifespan
        self.scope_separator = scope_separator

        super(AuthorizationCodeGrantHandler, self).__init__(**kwargs)

    def handle_authorize_request(self, request, response):
        """
        Issues a new authorization code and adds it to the query of the
        redirect.
        """
        if not exact(request.response_types, self.response_type):
            return

        client = request.client

        if not response_type_allowed(client, self.response_type):
            raise OAuthInvalidError(
                error="invalid_grant",
                explanation="The client is not allowed to use response type "
                            "code")

        if not grant_type_allowed(client, self.grant_type):
            raise OAuthInvalidError(
                error="invalid_grant",
                explanation="The client is not allowed to use the "
                            "authorization code grant")

        check_scopes(client, request.scopes)
        check_redirect_uri(request)

        code, signature = generate_token(
            self.token_strategy.generate_authorize_code, request,
            "authorization code")

        store_session(self.auth_code_store.create_authorize_code_session,
                      signature, request, "authorization code")

        state = request.state if request.state is not None else ""

        response.add_query("code", code)
        response.add_query("state", state)
        response.add_query("scope", encode_scopes(request.granted_scopes,
                                                  self.scope_separator))
        request.set_response_type_handled(self.response_type)

    def handle_token_request(self, request, response):
        """
        Exchanges an authorization code for an access token.

        The code is deleted before the access token is issued so that it can
        be redeemed only once.
        """
        if not exact(request.grant_types, self.grant_type):
            return

        if not grant_type_allowed(request.client, self.grant_type):
            raise OAuthInvalidError(
                error="invalid_grant",
                explanation="The client is not allowed to use the "
                            "authorization code grant")

        code = request.form_param("code")
        if code is None:
            raise OAuthInvalidError(error="invalid_request",
                                    explanation="Missing code parameter")

        signature = validate_token(self.token_strategy.validate_authorize_code,
                                   code, "authorization code")

        stored_request = load_session(
            self.auth_code_store.get_authorize_code_session, signature,
            "authorization code")

        if is_expired(stored_request.requested_at,
                      self.authorize_code_lifespan):
            raise OAuthInvalidError(error="invalid_grant",
                                    explanation="Authorization code has "
                                                "expired")

        check_same_client(stored_request, request, "authorization code")

        redirect_uri = stored_request.form_param("redirect_uri")
        if (redirect_uri is not None
                and redirect_uri != request.form_param("redirect_uri")):
            raise OAuthInvalidError(error="invalid_grant",
                                    explanation="Invalid redirect_uri "
                                                "parameter")

        revoke_session(self.auth_code_store.delete_authorize_code_session,
                       signature, "authorization code")

        request.session = stored_request.session
        for scope in stored_request.granted_scopes:
            request.grant_scope(scope)

        self.issue_access_token(request, response,
                                refresh_token=self.refresh_token_allowed(
                                    request))
        request.set_grant_type_handled(self.grant_type)


class ClientCredentialsGrantHandler(AccessTokenMixin):
    """
    Implementation of the Client Credentials Grant auth flow.

    This is a two-legged OAuth process. The client has been authenticated
    before the request reaches the handler. Every requested scope must be
    registered for the client and is granted right away.

    See http://tools.ietf.org/html/rfc6749#section-4.4
    """

    grant_type = "client_credentials"

    def handle_token_request(self, request, response):
        if not exact(request.grant_types, self.grant_type):
            return

        client = request.client

        if not grant_type_allowed(client, self.grant_type):
            raise OAuthInvalidError(
                error="invalid_grant",
                explanation="The client is not allowed to use the client "
                            "credentials grant")

        check_scopes(client, request.scopes)

        for scope in request.scopes:
            request.grant_scope(scope)

        # No refresh token, see http://tools.ietf.org/html/rfc6749#section-4.4.3
        self.issue_access_token(request, response)
        request.set_grant_type_handled(self.grant_type)


class ResourceOwnerGrantHandler(AccessTokenMixin):
    """
    Implementation of the Resource Owner Password Credentials Grant auth flow.

    In this Grant a user provides a user name and a password.
    An access token is issued if the ``user_authenticator`` was able to verify
    the user by her credentials.

    See http://tools.ietf.org/html/rfc6749#section-4.3
    """

    grant_type = "password"

    def __init__(self, user_authenticator, **kwargs):
        self.user_authenticator = user_authenticator

        super(ResourceOwnerGrantHandler, self).__init__(**kwargs)

    def handle_token_request(self, request, response):
        if not exact(request.grant_types, self.grant_type):
            return

        client = request.client

        if not grant_type_allowed(client, self.grant_type):
            raise OAuthInvalidError(
                error="invalid_grant",
                explanation="The client is not allowed to use the resource "
                            "owner password credentials grant")

        username = request.form_param("username")
        password = request.form_param("password")

        if username is None or password is None:
            raise OAuthInvalidError(error="invalid_request",
                                    explanation="Missing username or password "
                                                "parameter")

        check_scopes(client, request.scopes)

        try:
            self.user_authenticator.authenticate(username, password)
        except UserNotAuthenticated:
            logger.warning("Could not authenticate resource owner for "
                           "client %s", client.identifier)
            raise OAuthInvalidError(error="invalid_grant",
                                    explanation="Could not authenticate user")
        except Exception:
            logger.exception("User authenticator failed")
            raise ServerError()

        for scope in request.scopes:
            request.grant_scope(scope)

        self.issue_access_token(request, response,
                                refresh_token=self.refresh_token_allowed(
                                    request))
        request.set_grant_type_handled(self.grant_type)


class RefreshTokenGrantHandler(AccessTokenMixin):
    """
    Handles requests for refresh tokens as defined in
    http://tools.ietf.org/html/rfc6749#section-6.

    The request the refresh token was issued for is merged into the current
    request, so the new access token carries the same client, scopes and
    session. With ``rotate_refresh_token`` enabled (the default) a new refresh
    token is issued and the presented one is revoked once the new tokens have
    been stored. If it was revoked by a concurrent request in the meantime,
    the new tokens are discarded and ``invalid_grant`` is raised.

    :param refresh_token_lifespan: Seconds a refresh token stays valid.
                                   ``None`` means it never expires.
    """

    grant_type = "refresh_token"

    def __init__(self, refresh_token_store, refresh_token_lifespan=None,
                 rotate_refresh_token=True, **kwargs):
        self.refresh_token_lifespan = refresh_token_lifespan
        self.rotate_refresh_token = rotate_refresh_token

        super(RefreshTokenGrantHandler, self).__init__(
            refresh_token_store=refresh_token_store, **kwargs)

    def handle_token_request(self, request, response):
        if not exact(request.grant_types, self.grant_type):
            return

        if not grant_type_allowed(request.client, self.grant_type):
            raise OAuthInvalidError(
                error="invalid_grant",
                explanation="The client is not allowed to use the refresh "
                            "token grant")

        refresh_token = request.form_param("refresh_token")
        if refresh_token is None:
            raise OAuthInvalidError(
                error="invalid_request",
                explanation="Missing refresh_token parameter")

        signature = validate_token(self.token_strategy.validate_refresh_token,
                                   refresh_token, "refresh token")

        stored_request = load_session(
            self.refresh_token_store.get_refresh_token_session, signature,
            "refresh token")

        if is_expired(stored_request.requested_at,
                      self.refresh_token_lifespan):
            raise OAuthInvalidError(error="invalid_grant",
                                    explanation="Refresh token has expired")

        check_same_client(stored_request, request, "refresh token")

        requested_scopes = list(request.scopes)
        for scope in requested_scopes:
            if scope not in stored_request.granted_scopes:
                raise OAuthInvalidError(
                    error="invalid_scope",
                    explanation="Scope " + scope + " exceeds the scopes "
                                "originally granted")

        requested_at = request.requested_at
        request.merge(stored_request)
        # The lifetime of the new access token starts with this request.
        request.requested_at = requested_at

        if requested_scopes:
            request.granted_scopes = [scope for scope in request.granted_scopes
                                      if scope in requested_scopes]

        before_response = None
        if self.rotate_refresh_token:
            def before_response():
                revoke_session(
                    self.refresh_token_store.delete_refresh_token_session,
                    signature, "refresh token")

        self.issue_access_token(request, response,
                                refresh_token=self.rotate_refresh_token,
                                before_response=before_response)
        request.set_grant_type_handled(self.grant_type)
