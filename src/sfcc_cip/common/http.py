from enum import Enum
from dataclasses import dataclass


# Enums for HTTP Methods
class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"


# HTTP request headers
class HttpHeader(str, Enum):
    CONTENT_TYPE = "Content-Type"
    AUTHORIZATION = "Authorization"
    CLIENT_VERSION = "X-Client-Version"
    INSTANCE_ID = "InstanceId"
    SESSION_ID = "x-session-id"


# Dataclass for OAuthHTTP Response
@dataclass
class OAuthResponse:
    token_type: str = ""
    expires_in: int = 0
    scope: str = ""
    access_token: str = ""
    refresh_token: str = ""
