from sfcc_cip.auth.authenticators import (
    AuthProvider,
    AccessTokenAuthProvider,
    ClientCredentialsAuthProvider,
)
from sfcc_cip.auth.common import ClientContext
from sfcc_cip.auth.oauth import ClientCredentialsTokenSource
from sfcc_cip.exc import ConfigurationError


def get_auth_provider(cfg: ClientContext, http_client) -> AuthProvider:
    if cfg.access_token is not None:
        return AccessTokenAuthProvider(cfg.access_token)
    elif cfg.client_id and cfg.client_secret:
        return ClientCredentialsAuthProvider(
            ClientCredentialsTokenSource(
                cfg.instance,
                cfg.client_id,
                cfg.client_secret,
                http_client,
                token_url=cfg.token_url,
            )
        )
    else:
        raise ConfigurationError(
            "No valid authentication settings!",
            {"missing": ["client_id", "client_secret"]},
        )
