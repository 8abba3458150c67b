import json
import logging

logger = logging.getLogger(__name__)

### PEP-249 Mandated ###
# https://peps.python.org/pep-0249/#exceptions
class Error(Exception):
    """Base class for DB-API2.0 exceptions.
    `message`: An optional user-friendly error message. It should be short, actionable and stable
    `context`: Optional extra context about the error. MUST be JSON serializable
    """

    def __init__(self, message=None, context=None, *args, **kwargs):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.context = context or {}

    def __str__(self):
        return self.message

    def message_with_context(self):
        return self.message + ": " + json.dumps(self.context, default=str)


class Warning(Exception):
    pass


class InterfaceError(Error):
    pass


class DatabaseError(Error):
    pass


class InternalError(DatabaseError):
    pass


class OperationalError(DatabaseError):
    pass


class ProgrammingError(DatabaseError):
    pass


class IntegrityError(DatabaseError):
    pass


class DataError(DatabaseError):
    pass


class NotSupportedError(DatabaseError):
    pass


### Custom error classes ###
class ConfigurationError(InterfaceError):
    """Thrown before any network call when required settings are absent.
    Its context will have the following keys:
    "missing": The names of the settings (or environment variables) that were not provided
    """

    pass


class SessionStateError(ProgrammingError):
    """Thrown if an operation is called in the wrong connection state, for example
    executing before open_connection() or opening twice. No request is sent.
    Its context will have the following keys:
    "operation": The client operation that was rejected
    """

    pass


class InvalidServerResponseError(OperationalError):
    """Thrown if the response envelope cannot be decoded or names an unknown message kind"""

    pass


class ServerOperationError(DatabaseError):
    """Thrown if the server answered with an ErrorResponse, for example there was a syntax
    error.
    Its context will have the following keys:
    "sql-state": The SQLSTATE reported by the server
    "error-code": The vendor error code reported by the server
    "severity": The severity name reported by the server
    "exceptions": Server side stack traces (if available)
    """

    def __init__(self, message=None, context=None, *args, **kwargs):
        super().__init__(message, context, *args, **kwargs)
        self.sql_state = self.context.get("sql-state")
        self.error_code = self.context.get("error-code")


class RequestError(OperationalError):
    """Thrown if there was a error during request to the server.
    Its context will have the following keys:
    "method": The wire message kind that failed
    "http-code": HTTP response code to the request (if available)
    "reason": HTTP reason phrase (if available)
    "body": Response body text (if available)
    "original-exception": The Python level original exception
    """

    pass


class AuthenticationError(OperationalError):
    """Thrown if the token endpoint refuses the client credentials or answers without a token"""

    pass
