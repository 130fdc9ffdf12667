"""Keycloak session management operations."""
from __future__ import annotations
from typing import List, Optional

from .client import KeycloakClient, decode_json
from .models import UserSessionRepresentation
from .params import GetUsersByRoleParams, get_query_params
from .users import UserService


class SessionService:
    """Service for inspecting and ending Keycloak user sessions."""

    def __init__(self, client: KeycloakClient):
        """Initialize session service.

        Args:
            client: Keycloak HTTP client
        """
        self.client = client

    def get_user_sessions(self, token: str, realm: str, user_id: str) -> List[UserSessionRepresentation]:
        """Get all active sessions for a user."""
        return UserService(self.client).get_user_sessions(token, realm, user_id)

    def get_user_offline_sessions_for_client(
        self,
        token: str,
        realm: str,
        user_id: str,
        id_of_client: str,
    ) -> List[UserSessionRepresentation]:
        return UserService(self.client).get_user_offline_sessions_for_client(token, realm, user_id, id_of_client)

    def get_client_user_sessions(
        self,
        token: str,
        realm: str,
        id_of_client: str,
        params: Optional[GetUsersByRoleParams] = None,
    ) -> List[UserSessionRepresentation]:
        """Return the user sessions of a client, paged by first/max."""
        resp = self.client.get(
            self.client.admin_realm_url(realm, "clients", id_of_client, "user-sessions"),
            "could not get client user sessions",
            token=token,
            params=get_query_params(params),
        )
        return UserSessionRepresentation.from_list(decode_json(resp, "could not get client user sessions"))

    def logout_all_sessions(self, token: str, realm: str, user_id: str) -> None:
        """Revoke all active sessions for a user.

        Args:
            token: Admin access token
            realm: Realm name
            user_id: User ID
        """
        self.client.post(
            self.client.admin_realm_url(realm, "users", user_id, "logout"),
            "could not logout",
            token=token,
        )

    def logout_user_session(self, token: str, realm: str, session_id: str) -> None:
        """End a single session by its ID."""
        self.client.delete(
            self.client.admin_realm_url(realm, "sessions", session_id),
            "could not logout user session",
            token=token,
        )
