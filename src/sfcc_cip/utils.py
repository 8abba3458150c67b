import logging
import re
from typing import Optional

from sfcc_cip.auth.common import ClientContext, get_auth_config

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def build_client_context(
    instance: Optional[str],
    version: str,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
    **kwargs,
) -> ClientContext:
    """Build ClientContext from connection arguments, filling gaps from the environment.

    A static `access_token` kwarg replaces the client-credentials exchange.
    """
    from sfcc_cip import USER_AGENT_NAME

    access_token = kwargs.get("access_token")
    config = get_auth_config(
        provided={
            "instance": instance,
            "client_id": client_id,
            "client_secret": client_secret,
        },
        # a static token needs no client credentials
        required=["instance"] if access_token is not None else None,
    )
    instance = config["instance"]
    client_id = config["client_id"]
    client_secret = config["client_secret"]

    user_agent_entry = kwargs.get("user_agent_entry")
    if user_agent_entry:
        user_agent = "{}/{} ({})".format(USER_AGENT_NAME, version, user_agent_entry)
    else:
        user_agent = "{}/{}".format(USER_AGENT_NAME, version)

    return ClientContext(
        instance=instance,
        client_id=client_id,
        client_secret=client_secret,
        access_token=access_token,
        server_url=kwargs.get("_server_url"),
        token_url=kwargs.get("_token_url"),
        tls_no_verify=kwargs.get("_tls_no_verify", False),
        socket_timeout=kwargs.get("_socket_timeout"),
        pool_connections=kwargs.get("pool_connections"),
        pool_maxsize=kwargs.get("pool_maxsize"),
        user_agent=user_agent,
    )


def collapse_whitespace(sql: str) -> str:
    return _WHITESPACE.sub(" ", sql).strip()
