"""
Errors raised during the OAuth 2.0 flow.
"""


class ClientNotFoundError(Exception):
    """
    Error raised by an implementation of :class:`oauth2core.store.ClientStore`
    if a client does not exist.
    """
    pass


class TokenNotFound(Exception):
    """
    Error raised by a token store if no session is stored under a signature.
    """
    pass


class TokenAlreadyExists(Exception):
    """
    Error raised by a token store if a session is already stored under a
    signature.
    """
    pass


class UserNotAuthenticated(Exception):
    """
    Raised by a :class:`oauth2core.web.UserAuthenticator` if a user could not
    be authenticated.
    """
    pass


class RequestCancelled(Exception):
    """
    Raised by :class:`oauth2core.Provider` if the cancellation signal passed
    in by the host was set before the next handler could run.
    """
    pass


class TypeAlreadyHandledError(Exception):
    """
    Raised when a second handler marks a response type or grant type as
    handled that another handler already took care of.
    """
    pass


class TokenError(Exception):
    """
    Base class of errors raised while validating token material.
    """
    pass


class MalformedTokenError(TokenError):
    """
    The token does not have the structure the generator expects.
    """
    pass


class TokenSignatureError(TokenError):
    """
    The token is well-formed but its signature or signing method could not
    be verified.
    """
    pass


class InvalidTokenError(TokenError):
    """
    The token is cryptographically sound but not acceptable otherwise.
    """
    pass


class TokenExpiredError(InvalidTokenError):
    pass


class TokenGenerationError(Exception):
    """
    A token could not be minted, e.g. because the random source failed or
    claims were missing.
    """
    pass


class OAuthBaseError(Exception):
    """
    Base class used by all OAuth 2.0 errors.

    :param error: Identifier of the error.
    :param error_uri: Set this to delivery an URL to your documentation that
                      describes the error. (optional)
    :param explanation: Short message that describes the error. (optional)
    """
    def __init__(self, error, error_uri=None, explanation=None):
        self.error = error
        self.error_uri = error_uri
        self.explanation = explanation

        super(OAuthBaseError, self).__init__(error)


class OAuthClientError(OAuthBaseError):
    """
    Indicates an error during recognition of a client.
    """
    def __init__(self, error="invalid_client", **kwargs):
        super(OAuthClientError, self).__init__(error, **kwargs)


class OAuthInvalidError(OAuthBaseError):
    """
    Indicates an error during validation of a request.
    """
    pass


class UnsupportedGrantError(OAuthBaseError):
    """
    No registered handler took care of a response type or grant type
    declared by a request.
    """
    pass


class ServerError(OAuthBaseError):
    """
    A collaborator or the token machinery failed unexpectedly.

    The explanation is always the same generic text. Details of the failure
    are logged where the error is raised.
    """
    def __init__(self, error="server_error",
                 explanation="The authorization server encountered an "
                             "unexpected condition", **kwargs):
        super(ServerError, self).__init__(error, explanation=explanation,
                                          **kwargs)
