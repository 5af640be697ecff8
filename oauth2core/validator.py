"""
Checks of a request against the capabilities of its client, and validation
of access tokens presented to a resource server.
"""
import logging
import time

from oauth2core.error import OAuthInvalidError, ServerError, TokenError, \
    TokenNotFound

logger = logging.getLogger(__name__)


def response_type_allowed(client, response_type):
    return client.response_type_supported(response_type)


def grant_type_allowed(client, grant_type):
    return client.grant_type_supported(grant_type)


def scopes_allowed(client, scopes):
    """
    Checks that every scope in ``scopes`` is registered for ``client``.
    """
    for scope in scopes:
        if not client.has_scope(scope):
            return False
    return True


def redirect_uri_allowed(client, redirect_uri):
    return client.has_redirect_uri(redirect_uri)


class CoreValidator(object):
    """
    Validates access tokens that have been issued by one of the grants.

    Register it with :meth:`oauth2core.Provider.add_validator`.

    :param token_strategy: The strategy that issued the access tokens.
    :param access_token_store: An instance of
                               :class:`oauth2core.store.AccessTokenStore`.
    :param access_token_lifespan: Seconds an access token stays valid.
    """
    def __init__(self, token_strategy, access_token_store,
                 access_token_lifespan=3600):
        self.token_strategy = token_strategy
        self.access_token_store = access_token_store
        self.access_token_lifespan = access_token_lifespan

    def validate_request(self, token, request, scopes=None):
        """
        Checks an access token and merges the request it was issued for into
        ``request``.

        :param token: The access token presented by the client or ``None``.
        :param request: An instance of :class:`oauth2core.web.Request`.
        :param scopes: A ``list`` of scopes the token must have been granted.
                       (optional)
        :return: ``False`` if there is no token to validate, ``True`` if the
                 token is valid.
        :raises: :class:`oauth2core.error.OAuthInvalidError`
        """
        if token is None:
            return False

        try:
            signature = self.token_strategy.validate_access_token(token)
        except TokenError as err:
            logger.warning("Rejected access token: %s", err)
            raise OAuthInvalidError(error="invalid_grant",
                                    explanation="Invalid access token")

        try:
            stored_request = self.access_token_store.\
                get_access_token_session(signature)
        except TokenNotFound:
            raise OAuthInvalidError(error="invalid_grant",
                                    explanation="Unknown access token")
        except Exception:
            logger.exception("Could not read access token session")
            raise ServerError()

        expires_at = stored_request.requested_at + self.access_token_lifespan
        if expires_at < int(time.time()):
            raise OAuthInvalidError(error="invalid_grant",
                                    explanation="Access token has expired")

        for scope in scopes or []:
            if scope not in stored_request.granted_scopes:
                raise OAuthInvalidError(
                    error="invalid_scope",
                    explanation="Access token was not granted scope " + scope)

        request.merge(stored_request)

        return True
