"""Keycloak user management operations."""
from __future__ import annotations
import warnings
from typing import List, Optional

from .client import KeycloakClient, decode_json, get_id
from .exceptions import KeycloakAPIError
from .models import (
    FederatedIdentityRepresentation,
    Group,
    Role,
    SetPasswordRequest,
    User,
    UserSessionRepresentation,
)
from .params import GetGroupsParams, GetUsersByRoleParams, GetUsersParams, get_query_params


def _roles_payload(roles: List[Role]) -> list:
    return [role.to_dict() for role in roles]


class UserService:
    """Service for managing Keycloak users."""

    def __init__(self, client: KeycloakClient):
        """Initialize user service.

        Args:
            client: Keycloak HTTP client
        """
        self.client = client

    def create_user(self, token: str, realm: str, user: User) -> str:
        """Create a user and return its ID.

        Only the basic attributes are accepted on creation; role mappings,
        group membership and passwords need follow-up calls.

        Args:
            token: Admin access token
            realm: Realm name
            user: User representation

        Returns:
            ID of the new user
        """
        resp = self.client.post(
            self.client.admin_realm_url(realm, "users"),
            "could not create user",
            token=token,
            json=user.to_dict(),
        )
        return get_id(resp)

    def delete_user(self, token: str, realm: str, user_id: str) -> None:
        self.client.delete(
            self.client.admin_realm_url(realm, "users", user_id),
            "could not delete user",
            token=token,
        )

    def get_user_by_id(self, token: str, realm: str, user_id: str) -> User:
        """Fetch a user by ID.

        Raises:
            KeycloakAPIError: 400 without sending a request when user_id is empty
        """
        error_message = "could not get user by id"
        if not user_id:
            raise KeycloakAPIError(400, f"{error_message}: userID shall not be empty", "")

        resp = self.client.get(
            self.client.admin_realm_url(realm, "users", user_id),
            error_message,
            token=token,
        )
        return User.from_dict(decode_json(resp, "could not get user by id"))

    def get_user_count(self, token: str, realm: str, params: Optional[GetUsersParams] = None) -> int:
        """Return the number of users matching params."""
        resp = self.client.get(
            self.client.admin_realm_url(realm, "users", "count"),
            "could not get user count",
            token=token,
            params=get_query_params(params),
        )
        return int(decode_json(resp, "could not get user count"))

    def get_user_groups(
        self,
        token: str,
        realm: str,
        user_id: str,
        params: Optional[GetGroupsParams] = None,
    ) -> List[Group]:
        resp = self.client.get(
            self.client.admin_realm_url(realm, "users", user_id, "groups"),
            "could not get user groups",
            token=token,
            params=get_query_params(params),
        )
        return Group.from_list(decode_json(resp, "could not get user groups"))

    def get_users(self, token: str, realm: str, params: Optional[GetUsersParams] = None) -> List[User]:
        """Return users matching params (search, paging, exact filters)."""
        resp = self.client.get(
            self.client.admin_realm_url(realm, "users"),
            "could not get users",
            token=token,
            params=get_query_params(params),
        )
        return User.from_list(decode_json(resp, "could not get users"))

    def get_users_by_role_name(
        self,
        token: str,
        realm: str,
        role_name: str,
        params: Optional[GetUsersByRoleParams] = None,
    ) -> List[User]:
        """Return users holding the realm role."""
        resp = self.client.get(
            self.client.admin_realm_url(realm, "roles", role_name, "users"),
            "could not get users by role name",
            token=token,
            params=get_query_params(params),
        )
        return User.from_list(decode_json(resp, "could not get users by role name"))

    def get_users_by_client_role_name(
        self,
        token: str,
        realm: str,
        id_of_client: str,
        role_name: str,
        params: Optional[GetUsersByRoleParams] = None,
    ) -> List[User]:
        """Return users holding the client role."""
        resp = self.client.get(
            self.client.admin_realm_url(realm, "clients", id_of_client, "roles", role_name, "users"),
            "could not get users by client role name",
            token=token,
            params=get_query_params(params),
        )
        return User.from_list(decode_json(resp, "could not get users by client role name"))

    def set_password(self, token: str, user_id: str, realm: str, password: str, temporary: bool) -> None:
        """Reset a user's password. Requires manage-users.

        Args:
            token: Admin access token
            user_id: User ID
            realm: Realm name
            password: New password
            temporary: Require a password change on next login
        """
        body = SetPasswordRequest(type="password", temporary=temporary, value=password)
        self.client.put(
            self.client.admin_realm_url(realm, "users", user_id, "reset-password"),
            "could not set password",
            token=token,
            json=body.to_dict(),
        )

    def update_user(self, token: str, realm: str, user: User) -> None:
        """Replace the user identified by user.id.

        Raises:
            KeycloakAPIError: 400 without sending a request when user.id is empty
        """
        error_message = "could not update user"
        if not user.id:
            raise KeycloakAPIError(400, f"{error_message}: userID shall not be empty", "")

        self.client.put(
            self.client.admin_realm_url(realm, "users", user.id),
            error_message,
            token=token,
            json=user.to_dict(),
        )

    def add_user_to_group(self, token: str, realm: str, user_id: str, group_id: str) -> None:
        self.client.put(
            self.client.admin_realm_url(realm, "users", user_id, "groups", group_id),
            "could not add user to group",
            token=token,
        )

    def delete_user_from_group(self, token: str, realm: str, user_id: str, group_id: str) -> None:
        self.client.delete(
            self.client.admin_realm_url(realm, "users", user_id, "groups", group_id),
            "could not delete user from group",
            token=token,
        )

    def get_user_sessions(self, token: str, realm: str, user_id: str) -> List[UserSessionRepresentation]:
        """Return the user's active sessions."""
        resp = self.client.get(
            self.client.admin_realm_url(realm, "users", user_id, "sessions"),
            "could not get user sessions",
            token=token,
        )
        return UserSessionRepresentation.from_list(decode_json(resp, "could not get user sessions"))

    def get_user_offline_sessions_for_client(
        self,
        token: str,
        realm: str,
        user_id: str,
        id_of_client: str,
    ) -> List[UserSessionRepresentation]:
        """Return the user's offline sessions for one client."""
        resp = self.client.get(
            self.client.admin_realm_url(realm, "users", user_id, "offline-sessions", id_of_client),
            "could not get user offline sessions for client",
            token=token,
        )
        payload = decode_json(resp, "could not get user offline sessions for client")
        return UserSessionRepresentation.from_list(payload)

    # ─────────────────────────────────────────────────────────────────────
    # Client role mappings
    # ─────────────────────────────────────────────────────────────────────
    def add_client_roles_to_user(
        self,
        token: str,
        realm: str,
        id_of_client: str,
        user_id: str,
        roles: List[Role],
    ) -> None:
        """Add client-level role mappings."""
        self.client.post(
            self.client.admin_realm_url(realm, "users", user_id, "role-mappings", "clients", id_of_client),
            "could not add client role to user",
            token=token,
            json=_roles_payload(roles),
        )

    def add_client_role_to_user(
        self,
        token: str,
        realm: str,
        id_of_client: str,
        user_id: str,
        roles: List[Role],
    ) -> None:
        """Deprecated alias of add_client_roles_to_user."""
        warnings.warn(
            "add_client_role_to_user is deprecated, use add_client_roles_to_user",
            DeprecationWarning,
            stacklevel=2,
        )
        self.add_client_roles_to_user(token, realm, id_of_client, user_id, roles)

    def delete_client_roles_from_user(
        self,
        token: str,
        realm: str,
        id_of_client: str,
        user_id: str,
        roles: List[Role],
    ) -> None:
        """Remove client-level role mappings."""
        self.client.delete(
            self.client.admin_realm_url(realm, "users", user_id, "role-mappings", "clients", id_of_client),
            "could not delete client role from user",
            token=token,
            json=_roles_payload(roles),
        )

    def delete_client_role_from_user(
        self,
        token: str,
        realm: str,
        id_of_client: str,
        user_id: str,
        roles: List[Role],
    ) -> None:
        """Deprecated alias of delete_client_roles_from_user."""
        warnings.warn(
            "delete_client_role_from_user is deprecated, use delete_client_roles_from_user",
            DeprecationWarning,
            stacklevel=2,
        )
        self.delete_client_roles_from_user(token, realm, id_of_client, user_id, roles)

    # ─────────────────────────────────────────────────────────────────────
    # Federated identities
    # ─────────────────────────────────────────────────────────────────────
    def get_user_federated_identities(
        self,
        token: str,
        realm: str,
        user_id: str,
    ) -> List[FederatedIdentityRepresentation]:
        """Return the identity provider links of a user."""
        resp = self.client.get(
            self.client.admin_realm_url(realm, "users", user_id, "federated-identity"),
            "could not get user federated identities",
            token=token,
        )
        payload = decode_json(resp, "could not get user federated identities")
        return FederatedIdentityRepresentation.from_list(payload)

    def create_user_federated_identity(
        self,
        token: str,
        realm: str,
        user_id: str,
        provider_id: str,
        federated_identity: FederatedIdentityRepresentation,
    ) -> None:
        """Link a user to an identity provider account."""
        self.client.post(
            self.client.admin_realm_url(realm, "users", user_id, "federated-identity", provider_id),
            "could not create user federated identity",
            token=token,
            json=federated_identity.to_dict(),
        )

    def delete_user_federated_identity(self, token: str, realm: str, user_id: str, provider_id: str) -> None:
        self.client.delete(
            self.client.admin_realm_url(realm, "users", user_id, "federated-identity", provider_id),
            "could not delete user federated identity",
            token=token,
        )
