"""
Read or write data from or to local memory.

Though not very valuable in a production setup, these store adapters are
great for testing purposes.
"""
import threading

from oauth2core.datatype import Client
from oauth2core.error import ClientNotFoundError, TokenNotFound, \
    TokenAlreadyExists, UserNotAuthenticated
from oauth2core.store import AccessTokenStore, AuthorizeCodeStore, \
    RefreshTokenStore, ClientStore as ClientStoreBase, TokenSession
from oauth2core.web import UserAuthenticator


class ClientStore(ClientStoreBase):
    """
    Stores clients in memory.
    """
    def __init__(self):
        self.clients = {}

    def add_client(self, client_id, client_secret, redirect_uris=None,
                   response_types=None, grant_types=None, scopes=None):
        """
        Add a client app.

        :param client_id: Identifier of the client app.
        :param client_secret: Secret the client app uses for authentication
                              against the OAuth 2.0 provider.
        :param redirect_uris: A ``list`` of URIs to redirect to.
        :param response_types: A ``list`` of allowed response types.
        :param grant_types: A ``list`` of allowed grant types.
        :param scopes: A ``list`` of scopes the client may request.

        """
        self.clients[client_id] = Client(identifier=client_id,
                                         secret=client_secret,
                                         redirect_uris=redirect_uris,
                                         response_types=response_types,
                                         grant_types=grant_types,
                                         scopes=scopes)

        return True

    def fetch_by_client_id(self, client_id):
        """
        Retrieve a client by its identifier.

        :param client_id: Identifier of a client app.
        :return: An instance of :class:`oauth2core.datatype.Client`.
        :raises: ClientNotFoundError

        """
        if client_id not in self.clients:
            raise ClientNotFoundError

        return self.clients[client_id]


class TokenStore(AccessTokenStore, AuthorizeCodeStore, RefreshTokenStore):
    """
    Stores token sessions in memory.

    :param client_store: Used to rebuild the client of a stored request.
    """
    def __init__(self, client_store):
        self.client_store = client_store

        self.access_tokens = {}
        self.authorize_codes = {}
        self.refresh_tokens = {}

        self._lock = threading.Lock()

    def create_access_token_session(self, signature, request):
        self._create(self.access_tokens, signature, request)

    def get_access_token_session(self, signature):
        return self._get(self.access_tokens, signature)

    def delete_access_token_session(self, signature):
        self._delete(self.access_tokens, signature)

    def create_authorize_code_session(self, signature, request):
        self._create(self.authorize_codes, signature, request)

    def get_authorize_code_session(self, signature):
        return self._get(self.authorize_codes, signature)

    def delete_authorize_code_session(self, signature):
        self._delete(self.authorize_codes, signature)

    def create_refresh_token_session(self, signature, request):
        self._create(self.refresh_tokens, signature, request)

    def get_refresh_token_session(self, signature):
        return self._get(self.refresh_tokens, signature)

    def delete_refresh_token_session(self, signature):
        self._delete(self.refresh_tokens, signature)

    def _create(self, sessions, signature, request):
        token_session = TokenSession.from_request(signature, request)

        with self._lock:
            if signature in sessions:
                raise TokenAlreadyExists
            sessions[signature] = token_session

    def _get(self, sessions, signature):
        with self._lock:
            if signature not in sessions:
                raise TokenNotFound
            token_session = sessions[signature]

        client = self.client_store.fetch_by_client_id(token_session.client_id)

        return token_session.to_request(client)

    def _delete(self, sessions, signature):
        with self._lock:
            if signature not in sessions:
                raise TokenNotFound
            del sessions[signature]


class UserStore(UserAuthenticator):
    """
    Authenticates resource owners against usernames and passwords kept in
    memory.
    """
    def __init__(self):
        self.users = {}

    def add_user(self, username, password):
        self.users[username] = password

        return True

    def authenticate(self, username, password):
        if username not in self.users or self.users[username] != password:
            raise UserNotAuthenticated

        return username
