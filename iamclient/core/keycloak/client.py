"""Low-level HTTP client for the Keycloak REST API.

Handles URL construction, request dispatch, and error normalization.
Every call is an independent request: no session, token or response state
is kept between calls.
"""
from __future__ import annotations
import logging
import os
from typing import Any, Optional, Tuple
from urllib.parse import quote, quote_plus

import requests

from .exceptions import KeycloakAPIError, KeycloakConnectionError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 5

OPENID_CONNECT = "protocol/openid-connect"
TOKEN_ENDPOINT = f"{OPENID_CONNECT}/token"
LOGOUT_ENDPOINT = f"{OPENID_CONNECT}/logout"

# Fields Keycloak uses to describe an error in a JSON response body
_ERROR_FIELDS = ("error", "error_description", "errorMessage")


class KeycloakClient:
    """HTTP client for the Keycloak REST API.

    Features:
    - Realm, admin-realm and admin URL builders
    - Bearer and client Basic authentication per request
    - Centralized error handling (one static description per call)

    Usage:
        client = KeycloakClient("http://keycloak:8080")
        resp = client.get(
            client.admin_realm_url("demo", "users"),
            "could not get users",
            token=access_token,
        )
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: float = REQUEST_TIMEOUT,
        verify: bool = True,
        legacy_wildfly: bool = False,
    ):
        """Initialize Keycloak client.

        Args:
            base_url: Keycloak base URL (defaults to KEYCLOAK_URL env var)
            timeout: Per-request timeout in seconds
            verify: Verify TLS certificates
            legacy_wildfly: Prefix paths with /auth (WildFly-based servers)
        """
        self.base_url = (base_url or os.environ.get("KEYCLOAK_URL", "http://localhost:8080")).rstrip("/")
        self.timeout = timeout
        self.verify = verify
        self.base_path = "/auth" if legacy_wildfly else ""

    @classmethod
    def from_settings(cls, settings) -> "KeycloakClient":
        """Build a client from a ClientSettings instance."""
        return cls(
            settings.server_url,
            timeout=settings.timeout,
            verify=settings.verify_ssl,
            legacy_wildfly=settings.legacy_wildfly,
        )

    # ─────────────────────────────────────────────────────────────────────
    # URL construction
    # ─────────────────────────────────────────────────────────────────────
    def _make_url(self, *segments: Any) -> str:
        path = "/".join(quote(str(segment), safe="/") for segment in segments)
        return f"{self.base_url}{self.base_path}/{path}"

    def realm_url(self, realm: str, *path: Any) -> str:
        """Return {base}/realms/{realm}/{path...}."""
        return self._make_url("realms", realm, *path)

    def admin_realm_url(self, realm: str, *path: Any) -> str:
        """Return {base}/admin/realms/{realm}/{path...}."""
        return self._make_url("admin", "realms", realm, *path)

    def admin_url(self, *path: Any) -> str:
        """Return {base}/admin/{path...}."""
        return self._make_url("admin", *path)

    # ─────────────────────────────────────────────────────────────────────
    # HTTP verbs
    # ─────────────────────────────────────────────────────────────────────
    def get(
        self,
        url: str,
        error_message: str,
        *,
        token: Optional[str] = None,
        auth: Optional[Tuple[str, str]] = None,
        params: Optional[dict] = None,
    ) -> requests.Response:
        """Execute GET request.

        Args:
            url: Absolute endpoint URL
            error_message: Static description used when the call fails
            token: Bearer token
            auth: (client_id, client_secret) for Basic authentication
            params: Query parameters

        Returns:
            Response object

        Raises:
            KeycloakAPIError: On HTTP error or transport failure
        """
        return self._send(
            "GET", requests.get, url, error_message,
            headers=self._headers(token), auth=self._basic_auth(auth), params=params,
        )

    def post(
        self,
        url: str,
        error_message: str,
        *,
        token: Optional[str] = None,
        auth: Optional[Tuple[str, str]] = None,
        json: Any = None,
        data: Any = None,
    ) -> requests.Response:
        """Execute POST request with a JSON payload or form data.

        Raises:
            KeycloakAPIError: On HTTP error or transport failure
        """
        return self._send(
            "POST", requests.post, url, error_message,
            headers=self._headers(token), auth=self._basic_auth(auth), json=json, data=data,
        )

    def put(
        self,
        url: str,
        error_message: str,
        *,
        token: Optional[str] = None,
        json: Any = None,
    ) -> requests.Response:
        """Execute PUT request with a JSON payload.

        Raises:
            KeycloakAPIError: On HTTP error or transport failure
        """
        return self._send(
            "PUT", requests.put, url, error_message,
            headers=self._headers(token), json=json,
        )

    def delete(
        self,
        url: str,
        error_message: str,
        *,
        token: Optional[str] = None,
        json: Any = None,
    ) -> requests.Response:
        """Execute DELETE request. Role-mapping removals carry a JSON body.

        Raises:
            KeycloakAPIError: On HTTP error or transport failure
        """
        return self._send(
            "DELETE", requests.delete, url, error_message,
            headers=self._headers(token), json=json,
        )

    def _send(self, method: str, send, url: str, error_message: str, **kwargs) -> requests.Response:
        logger.debug("Keycloak request: %s %s", method, url)
        try:
            resp = send(url, timeout=self.timeout, verify=self.verify, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Keycloak request failed: %s %s (%s)", method, url, exc)
            raise KeycloakConnectionError(f"{error_message}: {exc}", url) from exc
        check_for_error(resp, error_message, url)
        return resp

    @staticmethod
    def _headers(token: Optional[str]) -> dict:
        if token is None:
            return {}
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _basic_auth(auth: Optional[Tuple[str, str]]) -> Optional[Tuple[str, str]]:
        # Client credentials are form-url-encoded before Basic encoding (RFC 6749 §2.3.1)
        if auth is None:
            return None
        client_id, client_secret = auth
        return quote_plus(client_id), quote_plus(client_secret)


# ─────────────────────────────────────────────────────────────────────────────
# Response helpers
# ─────────────────────────────────────────────────────────────────────────────
def check_for_error(resp: requests.Response, error_message: str, endpoint: Optional[str] = None) -> None:
    """Centralized error handling for HTTP responses.

    Args:
        resp: Response object to check
        error_message: Static description of the failed call
        endpoint: Requested URL (defaults to resp.url)

    Raises:
        KeycloakAPIError: If response status indicates error
    """
    if resp.status_code < 400:
        return

    endpoint = endpoint or resp.url
    detail, error_code = _error_detail(resp)
    status = f"{resp.status_code} {resp.reason or ''}".strip()
    message = f"{error_message}: {status}"
    if detail:
        message = f"{message}: {detail}"

    logger.warning("Keycloak returned %s for %s", resp.status_code, endpoint)
    raise KeycloakAPIError(
        resp.status_code,
        message,
        endpoint,
        body=resp.text,
        error_type="invalid_grant" if error_code == "invalid_grant" else "unknown",
    )


def _error_detail(resp: requests.Response) -> Tuple[str, Optional[str]]:
    """Extract the server's error description and error code from a JSON body."""
    try:
        payload = resp.json()
    except ValueError:
        return "", None
    if not isinstance(payload, dict):
        return "", None
    parts = [str(payload[key]) for key in _ERROR_FIELDS if payload.get(key)]
    return ": ".join(parts), payload.get("error")


def decode_json(resp: requests.Response, error_message: str) -> Any:
    """Return the decoded JSON body, or None for an empty body.

    Raises:
        KeycloakAPIError: If a non-empty body is not valid JSON
    """
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as exc:
        logger.warning("Keycloak returned a non-JSON body for %s", resp.url)
        raise KeycloakAPIError(
            resp.status_code,
            f"{error_message}: invalid JSON response",
            resp.url,
            body=resp.text,
        ) from exc


def get_id(resp: requests.Response) -> str:
    """Return the created resource's ID from the Location header."""
    location = resp.headers.get("Location", "")
    if not location:
        return ""
    return location.rstrip("/").split("/")[-1]
