"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 5.0


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("Failed to read /run/secrets/%s: %s", secret_name, e)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.info("Loaded %s from environment (fallback)", env_var)
            return secret_value

    return None


def _env_flag(var_name: str, default: bool) -> bool:
    value = os.environ.get(var_name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes")


def _env_timeout(var_name: str) -> float:
    value = os.environ.get(var_name)
    if not value:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(value)
    except ValueError:
        raise ValueError(f"Environment variable {var_name} must be a number of seconds, got '{value}'")
    if timeout <= 0:
        raise ValueError(f"Environment variable {var_name} must be positive, got '{value}'")
    return timeout


@dataclass
class ClientSettings:
    """Keycloak client configuration container."""
    server_url: str = DEFAULT_SERVER_URL
    realm: str = "master"

    # OIDC client
    client_id: str = ""
    client_secret: str = ""

    # Admin credentials
    admin_username: str = "admin"
    admin_password: str = ""
    admin_realm: str = "master"

    # Transport
    timeout: float = DEFAULT_TIMEOUT
    verify_ssl: bool = True
    legacy_wildfly: bool = False


def load_settings() -> ClientSettings:
    """Load client settings from the environment and /run/secrets."""
    server_url = os.environ.get("KEYCLOAK_URL", DEFAULT_SERVER_URL).rstrip("/")
    realm = os.environ.get("KEYCLOAK_REALM", "master")

    client_secret = _load_secret_from_file("oidc_client_secret", "OIDC_CLIENT_SECRET") or ""
    admin_password = _load_secret_from_file("keycloak_admin_password", "KEYCLOAK_ADMIN_PASSWORD") or ""

    settings = ClientSettings(
        server_url=server_url,
        realm=realm,
        client_id=os.environ.get("OIDC_CLIENT_ID", ""),
        client_secret=client_secret,
        admin_username=os.environ.get("KEYCLOAK_ADMIN", "admin"),
        admin_password=admin_password,
        admin_realm=os.environ.get("KEYCLOAK_ADMIN_REALM", "master"),
        timeout=_env_timeout("KEYCLOAK_REQUEST_TIMEOUT"),
        verify_ssl=_env_flag("KEYCLOAK_VERIFY_SSL", True),
        legacy_wildfly=_env_flag("KEYCLOAK_LEGACY_WILDFLY", False),
    )

    logger.info("Keycloak settings: url=%s; realm=%s; client_id=%s", server_url, realm, settings.client_id or "-")
    if not settings.verify_ssl:
        logger.warning("TLS certificate verification disabled (KEYCLOAK_VERIFY_SSL=false)")

    return settings

