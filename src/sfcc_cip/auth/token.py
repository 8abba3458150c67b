"""
Token class for authentication tokens with expiry handling.
"""

from datetime import datetime, timezone, timedelta
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class Token:
    """
    Represents an OAuth access token with expiry information.

    The stored expiry already has the safety margin subtracted, so a token is usable
    for exactly as long as `is_valid` says.
    """

    # Seconds subtracted from the server reported lifetime before caching
    SAFETY_MARGIN = 60

    # Lifetime assumed when the token endpoint omits expires_in
    DEFAULT_EXPIRES_IN = 3600

    def __init__(
        self,
        access_token: str,
        token_type: str = "Bearer",
        expiry: Optional[datetime] = None,
    ):
        """
        Initialize a Token object.

        Args:
            access_token: The access token string
            token_type: The token type (usually "Bearer")
            expiry: Instant after which the token must be refreshed, must be provided

        Raises:
            ValueError: If no expiry is provided
        """
        self.access_token = access_token
        self.token_type = token_type or "Bearer"

        if expiry is None:
            raise ValueError("Token expiry must be provided")

        if expiry.tzinfo is None:
            self.expiry = expiry.replace(tzinfo=timezone.utc)
        else:
            self.expiry = expiry

    @classmethod
    def from_expires_in(
        cls,
        access_token: str,
        expires_in: Optional[int],
        token_type: str = "Bearer",
        issued_at: Optional[datetime] = None,
    ) -> "Token":
        """Build a token from the relative lifetime returned by the token endpoint."""
        issued_at = issued_at or utc_now()
        lifetime = expires_in if expires_in else cls.DEFAULT_EXPIRES_IN
        expiry = issued_at + timedelta(seconds=lifetime - cls.SAFETY_MARGIN)
        return cls(access_token, token_type, expiry)

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        now = now or utc_now()
        return now < self.expiry

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return not self.is_valid(now)

    def __str__(self) -> str:
        """Return the token as a string in the format used for Authorization headers."""
        return f"{self.token_type} {self.access_token}"
