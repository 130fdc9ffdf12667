"""Keycloak-specific exceptions for error handling."""
from __future__ import annotations
from typing import Optional


class KeycloakError(Exception):
    """Base exception for all Keycloak operations."""
    pass


class KeycloakAPIError(KeycloakError):
    """HTTP error from the Keycloak REST API.

    Attributes:
        status_code: HTTP status code (0 when no response was received)
        message: Static call description plus server status and detail
        endpoint: API endpoint that failed
        body: Raw response body, if any
        error_type: "invalid_grant" for rejected credentials, otherwise "unknown"
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        endpoint: str,
        body: Optional[str] = None,
        error_type: str = "unknown",
    ):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        self.body = body
        self.error_type = error_type
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class KeycloakConnectionError(KeycloakAPIError):
    """Transport failure: the request never produced an HTTP response."""

    def __init__(self, message: str, endpoint: str):
        super().__init__(0, message, endpoint)


class TokenValidationError(KeycloakError):
    """Exception raised when JWT token validation fails."""
    pass
