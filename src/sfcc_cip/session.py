import logging
from typing import Dict, Optional

from sfcc_cip.auth.auth import get_auth_provider
from sfcc_cip.auth.common import ClientContext
from sfcc_cip.exc import DatabaseError, RequestError, SessionStateError
from sfcc_cip.backend.avatica.backend import AvaticaClient
from sfcc_cip.common.unified_http_client import UnifiedHttpClient

logger = logging.getLogger(__name__)


class Session:
    def __init__(
        self,
        client_context: ClientContext,
        http_client: UnifiedHttpClient,
        connection_properties: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> None:
        """
        Create a session to a CIP instance.

        This class handles all session-related behavior and communication with the backend.
        """

        self.is_open = False
        self.instance = client_context.instance
        self.connection_properties = connection_properties or {}

        # Use the provided HTTP client (created in Connection)
        self.http_client = http_client

        self.auth_provider = get_auth_provider(client_context, self.http_client)

        self.backend = AvaticaClient(
            self.instance,
            self.auth_provider,
            self.http_client,
            server_url=client_context.server_url,
            logger=kwargs.get("_logger"),
        )

    def open(self):
        self.backend.open_connection(self.connection_properties)
        self.is_open = True
        logger.info("Successfully opened session %s", self.connection_id)

    @property
    def connection_id(self) -> Optional[str]:
        return self.backend.connection_id

    def close(self) -> None:
        """Close the underlying session."""
        logger.info("Closing session %s", self.connection_id)
        if not self.is_open:
            logger.debug("Session appears to have been closed already")
            return

        try:
            self.backend.close_connection()
        except SessionStateError:
            logger.info("Session was closed by a prior request")
        except RequestError as e:
            logger.warning("Attempt to close session failed in transport: %s", e)
        except DatabaseError as e:
            logger.warning(
                "Attempt to close session raised an exception at the server: %s", e
            )
        except Exception as e:
            logger.error("Attempt to close session raised a local exception: %s", e)

        self.is_open = False
