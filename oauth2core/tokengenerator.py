"""
Provides the algorithms to generate and validate access tokens, refresh
tokens and authorization codes.

Every generator returns a token together with its signature. Only the
signature is meant to be persisted. A presented token is always checked by
the generator, never by comparing it to a stored value.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
import secrets

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa

from oauth2core.error import MalformedTokenError, TokenSignatureError, \
    InvalidTokenError, TokenExpiredError, TokenGenerationError

logger = logging.getLogger(__name__)


def b64_encode(data):
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64_decode(value):
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode((value + padding).encode("ascii"))


def to_map(value):
    """
    Turns claims or a header into a ``dict``. Accepts any mapping or an
    object that implements ``to_map()``.
    """
    if hasattr(value, "to_map"):
        return value.to_map()
    return dict(value)


class TokenGenerator(object):
    """
    Base class of every token generator.
    """

    separator = "."

    def validate(self, token):
        """
        Validates a token.

        :param token: The token as presented by a client.
        :return: The signature of the token.
        :raises: :class:`oauth2core.error.MalformedTokenError`,
                 :class:`oauth2core.error.TokenSignatureError` or
                 :class:`oauth2core.error.InvalidTokenError`.
        """
        raise NotImplementedError

    def signature(self, token):
        """
        Extracts the signature of a token without validating it.
        """
        raise NotImplementedError

    def hash(self, data):
        """
        Hashes ``data`` with the digest the generator signs with.

        :param data: ``bytes`` to hash.
        :return: The digest as ``bytes``.
        """
        return hashlib.sha256(data).digest()

    @property
    def signing_method_length(self):
        return hashlib.sha256().digest_size


class HMACTokenGenerator(TokenGenerator):
    """
    Create opaque tokens signed with HMAC-SHA256.

    A token consists of a random key and the HMAC of that key, both base64url
    encoded and joined by a dot::

        <key>.<signature>

    :param secret: The secret used to sign keys. Needs at least 32 bytes.
    :param entropy: Number of random bytes of each key.
    """

    minimum_secret_length = 32

    def __init__(self, secret, entropy=32):
        if isinstance(secret, str):
            secret = secret.encode("utf-8")

        if len(secret) < self.minimum_secret_length:
            raise ValueError("Secret must be at least {0} bytes long".format(
                self.minimum_secret_length))

        if entropy < 32:
            raise ValueError("Entropy must be at least 32 bytes")

        self.secret = secret
        self.entropy = entropy

    def generate(self):
        """
        :return: A tuple ``(token, signature)``.
        :raises: :class:`oauth2core.error.TokenGenerationError` if the random
                 source failed.
        """
        try:
            key = secrets.token_bytes(self.entropy)
        except (OSError, NotImplementedError) as err:
            raise TokenGenerationError(
                "Could not read from random source: {0}".format(err))

        encoded_key = b64_encode(key)
        signature = b64_encode(self._sign(key))

        return encoded_key + self.separator + signature, signature

    def validate(self, token):
        encoded_key, signature = self._split(token)

        try:
            key = b64_decode(encoded_key)
        except (binascii.Error, ValueError):
            raise MalformedTokenError("Key of token is not base64url encoded")

        expected = b64_encode(self._sign(key))

        if b64_encode(key) != encoded_key or not hmac.compare_digest(
                expected.encode("ascii"), signature.encode("ascii")):
            logger.warning("Rejected token with invalid HMAC signature")
            raise TokenSignatureError("Token signature mismatch")

        return signature

    def signature(self, token):
        return self._split(token)[1]

    def _sign(self, key):
        return hmac.new(self.secret, key, hashlib.sha256).digest()

    def _split(self, token):
        if not isinstance(token, str):
            raise MalformedTokenError("Token must be a string")

        parts = token.split(self.separator)

        if len(parts) != 2 or parts[0] == "" or parts[1] == "":
            raise MalformedTokenError("Key and signature must both be set")

        try:
            parts[1].encode("ascii")
        except UnicodeEncodeError:
            raise MalformedTokenError("Signature is not base64url encoded")

        return parts[0], parts[1]


class RS256JWTGenerator(TokenGenerator):
    """
    Create self-contained JSON Web Tokens signed with RS256.

    :param private_key: An RSA private key of at least 2048 bits as loaded by
                        ``cryptography``. The public key used for verification
                        is derived from it.
    """

    algorithm = "RS256"
    minimum_key_size = 2048

    def __init__(self, private_key):
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise TypeError("private_key must be an RSA private key")

        if private_key.key_size < self.minimum_key_size:
            raise ValueError("RSA key must have at least {0} bits".format(
                self.minimum_key_size))

        self.private_key = private_key
        self.public_key = private_key.public_key()

    def generate(self, claims, header):
        """
        Signs a new token.

        :param claims: The payload of the token.
        :param header: Additional header fields. ``alg`` and ``typ`` are set
                       by the generator and cannot be overridden.
        :return: A tuple ``(token, signature)``.
        :raises: :class:`oauth2core.error.TokenGenerationError`
        """
        if claims is None or header is None:
            raise TokenGenerationError("Either claims or header is missing")

        headers = dict((key, value) for key, value in to_map(header).items()
                       if key not in ("alg", "typ"))

        try:
            token = jwt.encode(to_map(claims), self.private_key,
                               algorithm=self.algorithm, headers=headers)
        except (jwt.PyJWTError, TypeError, ValueError) as err:
            raise TokenGenerationError("Could not sign token: {0}".format(err))

        return token, self.signature(token)

    def decode(self, token):
        """
        Verifies a token and returns its claims.

        Header and payload are checked before any cryptographic operation
        and raise :class:`oauth2core.error.MalformedTokenError`. Tokens that
        declare another algorithm than RS256 are rejected. Any defect of the
        signature segment raises
        :class:`oauth2core.error.TokenSignatureError`.

        :return: The claims as a ``dict``.
        """
        header_segment, payload_segment, signature_segment = self._split(token)

        header = self._json_segment(header_segment, "header")

        if header.get("alg") != self.algorithm:
            logger.warning("Rejected token with signing method %s",
                           header.get("alg"))
            raise TokenSignatureError(
                "Unexpected signing method: {0}".format(header.get("alg")))

        self._json_segment(payload_segment, "payload")

        if not self._is_canonical(signature_segment):
            logger.warning("Rejected token with undecodable RSA signature")
            raise TokenSignatureError("Signature is not base64url encoded")

        try:
            return jwt.decode(token, self.public_key,
                              algorithms=[self.algorithm],
                              options={"verify_aud": False})
        except jwt.InvalidSignatureError as err:
            logger.warning("Rejected token with invalid RSA signature")
            raise TokenSignatureError(str(err))
        except jwt.ExpiredSignatureError as err:
            raise TokenExpiredError(str(err))
        except jwt.DecodeError as err:
            # Header and payload have been parsed already.
            raise TokenSignatureError(str(err))
        except jwt.InvalidTokenError as err:
            raise InvalidTokenError(str(err))

    def validate(self, token):
        self.decode(token)

        return self.signature(token)

    def signature(self, token):
        return self._split(token)[2]

    def _split(self, token):
        if not isinstance(token, str):
            raise MalformedTokenError("Token must be a string")

        parts = token.split(self.separator)

        if len(parts) != 3:
            raise MalformedTokenError(
                "Header, body and signature must all be set")

        return parts

    def _json_segment(self, segment, name):
        try:
            value = json.loads(b64_decode(segment).decode("utf-8"))
        except (binascii.Error, ValueError) as err:
            raise MalformedTokenError("Could not parse {0}: {1}".format(
                name, err))

        if not isinstance(value, dict):
            raise MalformedTokenError(
                "The {0} must be a JSON object".format(name))

        return value

    def _is_canonical(self, segment):
        """
        Checks that ``segment`` is the exact base64url encoding of some
        bytes. Foreign characters and altered padding bits fail the check.
        """
        try:
            return b64_encode(b64_decode(segment)) == segment
        except (binascii.Error, ValueError):
            return False
