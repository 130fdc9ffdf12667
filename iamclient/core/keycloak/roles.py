"""Keycloak role management operations (realm roles, client roles, mappings)."""
from __future__ import annotations
from typing import List, Optional

from .client import KeycloakClient, decode_json, get_id
from .models import Role
from .params import GetRoleParams, get_query_params


class RoleService:
    """Service for managing Keycloak roles and role mappings."""

    def __init__(self, client: KeycloakClient):
        """Initialize role service.

        Args:
            client: Keycloak HTTP client
        """
        self.client = client

    def _list(self, token: str, url: str, error_message: str, params: Optional[dict] = None) -> List[Role]:
        resp = self.client.get(url, error_message, token=token, params=params)
        return Role.from_list(decode_json(resp, error_message))

    def _add(self, token: str, url: str, error_message: str, roles: List[Role]) -> None:
        self.client.post(url, error_message, token=token, json=[role.to_dict() for role in roles])

    def _remove(self, token: str, url: str, error_message: str, roles: List[Role]) -> None:
        self.client.delete(url, error_message, token=token, json=[role.to_dict() for role in roles])

    # ─────────────────────────────────────────────────────────────────────
    # Realm roles
    # ─────────────────────────────────────────────────────────────────────
    def create_realm_role(self, token: str, realm: str, role: Role) -> str:
        """Create a realm-level role.

        Args:
            token: Admin access token
            realm: Realm name
            role: Role representation (name is required)

        Returns:
            Name of the created role, taken from the Location header
        """
        resp = self.client.post(
            self.client.admin_realm_url(realm, "roles"),
            "could not create realm role",
            token=token,
            json=role.to_dict(),
        )
        return get_id(resp)

    def get_realm_role(self, token: str, realm: str, role_name: str) -> Role:
        resp = self.client.get(
            self.client.admin_realm_url(realm, "roles", role_name),
            "could not get realm role",
            token=token,
        )
        return Role.from_dict(decode_json(resp, "could not get realm role"))

    def get_realm_role_by_id(self, token: str, realm: str, role_id: str) -> Role:
        resp = self.client.get(
            self.client.admin_realm_url(realm, "roles-by-id", role_id),
            "could not get realm role",
            token=token,
        )
        return Role.from_dict(decode_json(resp, "could not get realm role"))

    def get_realm_roles(self, token: str, realm: str, params: Optional[GetRoleParams] = None) -> List[Role]:
        """Return the realm's roles, filtered and paged by params."""
        return self._list(
            token,
            self.client.admin_realm_url(realm, "roles"),
            "could not get realm roles",
            get_query_params(params),
        )

    def get_realm_roles_by_user_id(self, token: str, realm: str, user_id: str) -> List[Role]:
        """Return the realm roles directly mapped to a user."""
        return self._list(
            token,
            self.client.admin_realm_url(realm, "users", user_id, "role-mappings", "realm"),
            "could not get realm roles by user id",
        )

    def get_realm_roles_by_group_id(self, token: str, realm: str, group_id: str) -> List[Role]:
        """Return the realm roles directly mapped to a group."""
        return self._list(
            token,
            self.client.admin_realm_url(realm, "groups", group_id, "role-mappings", "realm"),
            "could not get realm roles by group id",
        )

    def update_realm_role(self, token: str, realm: str, role_name: str, role: Role) -> None:
        self.client.put(
            self.client.admin_realm_url(realm, "roles", role_name),
            "could not update realm role",
            token=token,
            json=role.to_dict(),
        )

    def update_realm_role_by_id(self, token: str, realm: str, role_id: str, role: Role) -> None:
        self.client.put(
            self.client.admin_realm_url(realm, "roles-by-id", role_id),
            "could not update realm role",
            token=token,
            json=role.to_dict(),
        )

    def delete_realm_role(self, token: str, realm: str, role_name: str) -> None:
        self.client.delete(
            self.client.admin_realm_url(realm, "roles", role_name),
            "could not delete realm role",
            token=token,
        )

    def add_realm_role_to_user(self, token: str, realm: str, user_id: str, roles: List[Role]) -> None:
        """Add realm-level role mappings to a user."""
        self._add(
            token,
            self.client.admin_realm_url(realm, "users", user_id, "role-mappings", "realm"),
            "could not add realm role to user",
            roles,
        )

    def delete_realm_role_from_user(self, token: str, realm: str, user_id: str, roles: List[Role]) -> None:
        """Remove realm-level role mappings from a user."""
        self._remove(
            token,
            self.client.admin_realm_url(realm, "users", user_id, "role-mappings", "realm"),
            "could not delete realm role from user",
            roles,
        )

    def add_realm_role_to_group(self, token: str, realm: str, group_id: str, roles: List[Role]) -> None:
        self._add(
            token,
            self.client.admin_realm_url(realm, "groups", group_id, "role-mappings", "realm"),
            "could not add realm role to group",
            roles,
        )

    def delete_realm_role_from_group(self, token: str, realm: str, group_id: str, roles: List[Role]) -> None:
        self._remove(
            token,
            self.client.admin_realm_url(realm, "groups", group_id, "role-mappings", "realm"),
            "could not delete realm role from group",
            roles,
        )

    def add_realm_role_composite(self, token: str, realm: str, role_name: str, roles: List[Role]) -> None:
        """Add roles to a composite realm role."""
        self._add(
            token,
            self.client.admin_realm_url(realm, "roles", role_name, "composites"),
            "could not add realm role composite",
            roles,
        )

    def delete_realm_role_composite(self, token: str, realm: str, role_name: str, roles: List[Role]) -> None:
        self._remove(
            token,
            self.client.admin_realm_url(realm, "roles", role_name, "composites"),
            "could not delete realm role composite",
            roles,
        )

    def get_composite_realm_roles(self, token: str, realm: str, role_name: str) -> List[Role]:
        """Return the roles composed into a realm role."""
        return self._list(
            token,
            self.client.admin_realm_url(realm, "roles", role_name, "composites"),
            "could not get composite realm roles by role",
        )

    def get_composite_roles_by_role_id(self, token: str, realm: str, role_id: str) -> List[Role]:
        """Return all (realm and client) roles composed into a role."""
        return self._list(
            token,
            self.client.admin_realm_url(realm, "roles-by-id", role_id, "composites"),
            "could not get composite client roles by role id",
        )

    def get_composite_realm_roles_by_role_id(self, token: str, realm: str, role_id: str) -> List[Role]:
        """Return the realm roles composed into a role."""
        return self._list(
            token,
            self.client.admin_realm_url(realm, "roles-by-id", role_id, "composites", "realm"),
            "could not get composite client roles by role id",
        )

    def get_composite_realm_roles_by_user_id(self, token: str, realm: str, user_id: str) -> List[Role]:
        """Return the user's effective realm roles, composites expanded."""
        return self._list(
            token,
            self.client.admin_realm_url(realm, "users", user_id, "role-mappings", "realm", "composite"),
            "could not get composite client roles by user id",
        )

    def get_composite_realm_roles_by_group_id(self, token: str, realm: str, group_id: str) -> List[Role]:
        """Return the group's effective realm roles, composites expanded."""
        return self._list(
            token,
            self.client.admin_realm_url(realm, "groups", group_id, "role-mappings", "realm", "composite"),
            "could not get composite client roles by user id",
        )

    def get_available_realm_roles_by_user_id(self, token: str, realm: str, user_id: str) -> List[Role]:
        """Return realm roles that can still be mapped to the user."""
        return self._list(
            token,
            self.client.admin_realm_url(realm, "users", user_id, "role-mappings", "realm", "available"),
            "could not get available client roles by user id",
        )

    def get_available_realm_roles_by_group_id(self, token: str, realm: str, group_id: str) -> List[Role]:
        """Return realm roles that can still be mapped to the group."""
        return self._list(
            token,
            self.client.admin_realm_url(realm, "groups", group_id, "role-mappings", "realm", "available"),
            "could not get available client roles by user id",
        )

    # ─────────────────────────────────────────────────────────────────────
    # Client roles
    # ─────────────────────────────────────────────────────────────────────
    def create_client_role(self, token: str, realm: str, id_of_client: str, role: Role) -> str:
        """Create a role on a client and return its name."""
        resp = self.client.post(
            self.client.admin_realm_url(realm, "clients", id_of_client, "roles"),
            "could not create client role",
            token=token,
            json=role.to_dict(),
        )
        return get_id(resp)

    def get_client_role(self, token: str, realm: str, id_of_client: str, role_name: str) -> Role:
        resp = self.client.get(
            self.client.admin_realm_url(realm, "clients", id_of_client, "roles", role_name),
            "could not get client role",
            token=token,
        )
        return Role.from_dict(decode_json(resp, "could not get client role"))

    def get_client_roles(
        self,
        token: str,
        realm: str,
        id_of_client: str,
        params: Optional[GetRoleParams] = None,
    ) -> List[Role]:
        return self._list(
            token,
            self.client.admin_realm_url(realm, "clients", id_of_client, "roles"),
            "could not get client roles",
            get_query_params(params),
        )

    def delete_client_role(self, token: str, realm: str, id_of_client: str, role_name: str) -> None:
        self.client.delete(
            self.client.admin_realm_url(realm, "clients", id_of_client, "roles", role_name),
            "could not delete client role",
            token=token,
        )

    def get_client_roles_by_user_id(self, token: str, realm: str, id_of_client: str, user_id: str) -> List[Role]:
        """Return the client's roles directly mapped to a user."""
        return self._list(
            token,
            self.client.admin_realm_url(realm, "users", user_id, "role-mappings", "clients", id_of_client),
            "could not get client roles by user id",
        )

    def add_client_roles_to_group(
        self,
        token: str,
        realm: str,
        id_of_client: str,
        group_id: str,
        roles: List[Role],
    ) -> None:
        self._add(
            token,
            self.client.admin_realm_url(realm, "groups", group_id, "role-mappings", "clients", id_of_client),
            "could not add client roles to group",
            roles,
        )

    def delete_client_roles_from_group(
        self,
        token: str,
        realm: str,
        id_of_client: str,
        group_id: str,
        roles: List[Role],
    ) -> None:
        self._remove(
            token,
            self.client.admin_realm_url(realm, "groups", group_id, "role-mappings", "clients", id_of_client),
            "could not delete client roles from group",
            roles,
        )
