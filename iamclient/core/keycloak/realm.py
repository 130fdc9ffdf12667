"""Keycloak realm, server info and client lookup operations."""
from __future__ import annotations
from typing import Any, Dict, List, Optional

from .client import KeycloakClient, decode_json, get_id
from .exceptions import KeycloakAPIError
from .models import Client, RealmRepresentation


class RealmService:
    """Service for managing Keycloak realms."""

    def __init__(self, client: KeycloakClient):
        """Initialize realm service.

        Args:
            client: Keycloak HTTP client
        """
        self.client = client

    def get_server_info(self, token: str) -> Dict[str, Any]:
        """Return the server's info document (versions, providers, themes)."""
        resp = self.client.get(self.client.admin_url("serverinfo"), "could not get server info", token=token)
        return decode_json(resp, "could not get server info") or {}

    def get_realms(self, token: str) -> List[RealmRepresentation]:
        """Return every realm visible to the token."""
        resp = self.client.get(self.client.admin_url("realms"), "could not get realms", token=token)
        return RealmRepresentation.from_list(decode_json(resp, "could not get realms"))

    def get_realm(self, token: str, realm: str) -> RealmRepresentation:
        """Return a realm's representation.

        Args:
            token: Admin access token
            realm: Realm name
        """
        resp = self.client.get(self.client.admin_realm_url(realm), "could not get realm", token=token)
        return RealmRepresentation.from_dict(decode_json(resp, "could not get realm"))

    def create_realm(self, token: str, realm: RealmRepresentation) -> str:
        """Create a realm and return its name as reported by the Location header."""
        resp = self.client.post(
            self.client.admin_url("realms"),
            "could not create realm",
            token=token,
            json=realm.to_dict(),
        )
        return get_id(resp)

    def update_realm(self, token: str, realm: RealmRepresentation) -> None:
        """Update the realm named by realm.realm."""
        error_message = "could not update realm"
        if not realm.realm:
            raise KeycloakAPIError(400, f"{error_message}: realm name shall not be empty", "")

        self.client.put(
            self.client.admin_realm_url(realm.realm),
            error_message,
            token=token,
            json=realm.to_dict(),
        )

    def delete_realm(self, token: str, realm: str) -> None:
        """Delete a realm."""
        self.client.delete(self.client.admin_realm_url(realm), "could not delete realm", token=token)

    def clear_realm_cache(self, token: str, realm: str) -> None:
        self.client.post(
            self.client.admin_realm_url(realm, "clear-realm-cache"),
            "could not clear realm cache",
            token=token,
        )

    def clear_user_cache(self, token: str, realm: str) -> None:
        self.client.post(
            self.client.admin_realm_url(realm, "clear-user-cache"),
            "could not clear user cache",
            token=token,
        )

    def clear_keys_cache(self, token: str, realm: str) -> None:
        self.client.post(
            self.client.admin_realm_url(realm, "clear-keys-cache"),
            "could not clear keys cache",
            token=token,
        )

    def get_clients(self, token: str, realm: str, client_id: Optional[str] = None) -> List[Client]:
        """Return the realm's clients, optionally filtered by clientId.

        Args:
            token: Admin access token
            realm: Realm name
            client_id: Public client ID to match (e.g., realm-management)

        Returns:
            List of client representations
        """
        params = {"clientId": client_id} if client_id else None
        resp = self.client.get(
            self.client.admin_realm_url(realm, "clients"),
            "could not get clients",
            token=token,
            params=params,
        )
        return Client.from_list(decode_json(resp, "could not get clients"))

    def get_client(self, token: str, realm: str, id_of_client: str) -> Client:
        """Return a client by its internal ID."""
        resp = self.client.get(
            self.client.admin_realm_url(realm, "clients", id_of_client),
            "could not get client",
            token=token,
        )
        return Client.from_dict(decode_json(resp, "could not get client"))
