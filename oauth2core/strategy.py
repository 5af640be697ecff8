"""
Strategies decide which kind of token material the grants hand out for
access tokens, refresh tokens and authorization codes.

Every strategy offers the same methods, for each kind of token:

* ``generate_<kind>(request)`` returns ``(token, signature)``
* ``validate_<kind>(token)`` returns the signature of a valid token
* ``<kind>_signature(token)`` returns the signature without validation
"""

import time
import uuid

from oauth2core.datatype import encode_scopes


class JWTClaims(object):
    """
    Claims of a JSON Web Token issued as access token.

    :param subject: Value of the ``sub`` claim.
    :param extra: A ``dict`` of additional claims.
    """
    def __init__(self, subject=None, extra=None):
        self.subject = subject
        self.extra = dict(extra or {})

    def to_map(self):
        claims = dict(self.extra)

        if self.subject is not None:
            claims["sub"] = self.subject

        return claims


class JWTSession(object):
    """
    Session to use with :class:`JWTStrategy`.

    The host application puts it into ``Request.session``. The strategy reads
    claims and header fields from it when issuing an access token.

    :param claims: An instance of :class:`JWTClaims`.
    :param headers: A ``dict`` of additional header fields, e.g. ``kid``.
    """
    def __init__(self, claims=None, headers=None):
        self.claims = claims if claims is not None else JWTClaims()
        self.headers = dict(headers or {})


class HMACStrategy(object):
    """
    Issues opaque HMAC-signed tokens for every kind of token.

    :param generator: An instance of
                      :class:`oauth2core.tokengenerator.HMACTokenGenerator`.
    """
    def __init__(self, generator):
        self.generator = generator

    def generate_access_token(self, request):
        return self.generator.generate()

    def validate_access_token(self, token):
        return self.generator.validate(token)

    def access_token_signature(self, token):
        return self.generator.signature(token)

    def generate_refresh_token(self, request):
        return self.generator.generate()

    def validate_refresh_token(self, token):
        return self.generator.validate(token)

    def refresh_token_signature(self, token):
        return self.generator.signature(token)

    def generate_authorize_code(self, request):
        return self.generator.generate()

    def validate_authorize_code(self, token):
        return self.generator.validate(token)

    def authorize_code_signature(self, token):
        return self.generator.signature(token)


class JWTStrategy(object):
    """
    Issues access tokens as RS256 signed JSON Web Tokens. Refresh tokens and
    authorization codes are issued by ``hmac_strategy``.

    :param jwt_generator: An instance of
                          :class:`oauth2core.tokengenerator.RS256JWTGenerator`.
    :param hmac_strategy: An instance of :class:`HMACStrategy`.
    :param access_token_lifespan: Seconds until an access token expires. Sets
                                  the ``exp`` claim.
    :param issuer: Value of the ``iss`` claim. (optional)
    """
    def __init__(self, jwt_generator, hmac_strategy, access_token_lifespan=3600,
                 issuer=None):
        self.jwt_generator = jwt_generator
        self.hmac_strategy = hmac_strategy
        self.access_token_lifespan = access_token_lifespan
        self.issuer = issuer

    def generate_access_token(self, request):
        claims, header = self._claims_and_header(request)

        return self.jwt_generator.generate(claims, header)

    def validate_access_token(self, token):
        return self.jwt_generator.validate(token)

    def access_token_signature(self, token):
        return self.jwt_generator.signature(token)

    def generate_refresh_token(self, request):
        return self.hmac_strategy.generate_refresh_token(request)

    def validate_refresh_token(self, token):
        return self.hmac_strategy.validate_refresh_token(token)

    def refresh_token_signature(self, token):
        return self.hmac_strategy.refresh_token_signature(token)

    def generate_authorize_code(self, request):
        return self.hmac_strategy.generate_authorize_code(request)

    def validate_authorize_code(self, token):
        return self.hmac_strategy.validate_authorize_code(token)

    def authorize_code_signature(self, token):
        return self.hmac_strategy.authorize_code_signature(token)

    def _claims_and_header(self, request):
        session = request.session
        if not isinstance(session, JWTSession):
            session = JWTSession()

        claims = session.claims.to_map()

        issued_at = int(time.time())
        claims["iat"] = issued_at
        claims["exp"] = issued_at + self.access_token_lifespan
        claims["jti"] = str(uuid.uuid4())
        claims["client_id"] = request.client.identifier
        claims["scope"] = encode_scopes(request.granted_scopes)

        if self.issuer is not None:
            claims["iss"] = self.issuer

        return claims, dict(session.headers)
