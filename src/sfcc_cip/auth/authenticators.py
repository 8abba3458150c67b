import logging
from typing import Dict

from sfcc_cip.common.http import HttpHeader
from sfcc_cip.auth.oauth import ClientCredentialsTokenSource

logger = logging.getLogger(__name__)


class AuthProvider:
    def add_headers(self, request_headers: Dict[str, str]):
        pass


# Private API: this is an evolving interface and it will change in the future.
# Please must not depend on it in your applications.
class AccessTokenAuthProvider(AuthProvider):
    def __init__(self, access_token: str):
        self.__authorization_header_value = "Bearer {}".format(access_token)

    def add_headers(self, request_headers: Dict[str, str]):
        request_headers[HttpHeader.AUTHORIZATION.value] = (
            self.__authorization_header_value
        )


class ClientCredentialsAuthProvider(AuthProvider):
    """Adds a bearer token obtained through the client-credentials exchange.

    The token is fetched on first use and refreshed once it is past its expiry minus
    the safety margin; a still-valid token never triggers a token request.
    """

    def __init__(self, token_source: ClientCredentialsTokenSource):
        self.token_source = token_source

    def add_headers(self, request_headers: Dict[str, str]):
        token = self.token_source.get_token()
        request_headers[HttpHeader.AUTHORIZATION.value] = "Bearer {}".format(
            token.access_token
        )
