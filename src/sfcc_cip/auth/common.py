import logging
import os
from typing import List, Optional, Dict

from sfcc_cip.exc import ConfigurationError

logger = logging.getLogger(__name__)

CIP_SERVER_URL = "https://jdbc.analytics.commercecloud.salesforce.com/{instance}"
CIP_TOKEN_URL = (
    "https://account.demandware.com/dwsso/oauth2/access_token"
    "?scope=SALESFORCE_COMMERCE_API:{instance}"
)

ENV_CLIENT_ID = "SFCC_CLIENT_ID"
ENV_CLIENT_SECRET = "SFCC_CLIENT_SECRET"
ENV_INSTANCE = "SFCC_CIP_INSTANCE"
ENV_DEBUG = "SFCC_DEBUG"


class ClientContext:
    def __init__(
        self,
        instance: str,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        access_token: Optional[str] = None,
        server_url: Optional[str] = None,
        token_url: Optional[str] = None,
        # HTTP client configuration parameters
        tls_no_verify: bool = False,
        socket_timeout: Optional[float] = None,
        pool_connections: Optional[int] = None,
        pool_maxsize: Optional[int] = None,
        user_agent: Optional[str] = None,
    ):
        self.instance = instance
        self.client_id = client_id
        self.client_secret = client_secret
        self.access_token = access_token
        self.server_url = server_url or CIP_SERVER_URL.format(instance=instance)
        self.token_url = token_url or CIP_TOKEN_URL.format(instance=instance)

        # HTTP client configuration
        self.tls_no_verify = tls_no_verify
        self.socket_timeout = socket_timeout
        self.pool_connections = pool_connections or 10
        self.pool_maxsize = pool_maxsize or 1
        self.user_agent = user_agent


def get_auth_config(
    environ: Optional[Dict[str, str]] = None,
    provided: Optional[Dict[str, Optional[str]]] = None,
    required: Optional[List[str]] = None,
) -> Dict[str, Optional[str]]:
    """Resolve client credentials and instance.

    Values in `provided` win; each value left empty is read from its own environment
    variable. Raises ConfigurationError naming the variable of every `required` value
    (all three by default) that is still absent or empty.
    """
    environ = os.environ if environ is None else environ
    provided = provided or {}
    names = {
        "client_id": ENV_CLIENT_ID,
        "client_secret": ENV_CLIENT_SECRET,
        "instance": ENV_INSTANCE,
    }
    required = list(names) if required is None else required
    config = {key: provided.get(key) or environ.get(var) for key, var in names.items()}
    missing = [names[key] for key, value in config.items() if key in required and not value]
    if missing:
        raise ConfigurationError(
            "Required environment variables: {}".format(", ".join(missing)),
            {"missing": missing},
        )
    return config


def is_debug_enabled(environ: Optional[Dict[str, str]] = None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get(ENV_DEBUG, "").strip().lower() in ("1", "true", "yes")
