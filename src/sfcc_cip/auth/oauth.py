import base64
import json
import logging
import threading
from typing import Callable, Optional, Tuple
from urllib.parse import urlencode

from sfcc_cip.auth.common import CIP_TOKEN_URL
from sfcc_cip.auth.token import Token, utc_now
from sfcc_cip.common.http import HttpMethod, HttpHeader, OAuthResponse
from sfcc_cip.exc import AuthenticationError

logger = logging.getLogger(__name__)


def basic_auth_header(client_id: str, client_secret: str) -> str:
    credentials = "{}:{}".format(client_id, client_secret).encode("utf-8")
    return "Basic " + base64.b64encode(credentials).decode("ascii")


def get_token(
    http_client,
    instance: str,
    client_id: str,
    client_secret: str,
    token_url: Optional[str] = None,
) -> Tuple[str, int]:
    """
    Exchange client credentials for an access token.

    Args:
        http_client: UnifiedHttpClient used for the token request
        instance: CIP instance the token is scoped to
        client_id: OAuth client id
        client_secret: OAuth client secret
        token_url: Override of the token endpoint, defaults to the Account Manager URL

    Returns:
        (access_token, expires_in_seconds); expires_in falls back to 3600 when absent

    Raises:
        AuthenticationError: If the endpoint rejects the request or omits the token
    """
    url = token_url or CIP_TOKEN_URL.format(instance=instance)
    headers = {
        HttpHeader.CONTENT_TYPE.value: "application/x-www-form-urlencoded",
        HttpHeader.AUTHORIZATION.value: basic_auth_header(client_id, client_secret),
    }
    data = urlencode({"grant_type": "client_credentials"})

    response = http_client.request(
        method=HttpMethod.POST, url=url, headers=headers, body=data
    )
    body = response.data.decode("utf-8") if response.data else ""
    if not 200 <= response.status < 300:
        raise AuthenticationError(
            "Failed to get access token: {} {}".format(response.status, body),
            {"http-code": response.status, "body": body},
        )

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise AuthenticationError(
            "Failed to get access token: invalid JSON response",
            {"http-code": response.status, "body": body},
        ) from e

    known = {k: v for k, v in payload.items() if k in OAuthResponse.__dataclass_fields__}
    oauth_response = OAuthResponse(**known)
    if not oauth_response.access_token:
        raise AuthenticationError(
            "No access token in response", {"http-code": response.status}
        )

    return (
        oauth_response.access_token,
        int(oauth_response.expires_in or Token.DEFAULT_EXPIRES_IN),
    )


class ClientCredentialsTokenSource:
    """
    A token source that uses client credentials to get a token from the token endpoint.
    It will refresh the token if it is absent or expired.

    Attributes:
        instance (str): The CIP instance the token is scoped to.
        client_id (str): The client ID.
        client_secret (str): The client secret.
    """

    def __init__(
        self,
        instance: str,
        client_id: str,
        client_secret: str,
        http_client,
        token_url: Optional[str] = None,
        clock: Callable = utc_now,
    ):
        self.instance = instance
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.token: Optional[Token] = None
        self._http_client = http_client
        self._clock = clock
        self._lock = threading.Lock()

    def get_token(self) -> Token:
        with self._lock:
            if self.token is None or self.token.is_expired(self._clock()):
                self.token = self.refresh()
            return self.token

    def refresh(self) -> Token:
        logger.info("Refreshing OAuth token using client credentials flow")
        issued_at = self._clock()
        access_token, expires_in = get_token(
            self._http_client,
            self.instance,
            self.client_id,
            self.client_secret,
            token_url=self.token_url,
        )
        return Token.from_expires_in(access_token, expires_in, issued_at=issued_at)
