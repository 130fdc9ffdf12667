"""Keycloak group management operations."""
from __future__ import annotations
from typing import List, Optional

from .client import KeycloakClient, decode_json, get_id
from .exceptions import KeycloakAPIError
from .models import Group, User
from .params import GetGroupsParams, GetUsersParams, get_query_params


class GroupService:
    """Service for managing Keycloak groups."""

    def __init__(self, client: KeycloakClient):
        """Initialize group service.

        Args:
            client: Keycloak HTTP client
        """
        self.client = client

    def create_group(self, token: str, realm: str, group: Group) -> str:
        """Create a top-level group and return its ID."""
        resp = self.client.post(
            self.client.admin_realm_url(realm, "groups"),
            "could not create group",
            token=token,
            json=group.to_dict(),
        )
        return get_id(resp)

    def create_child_group(self, token: str, realm: str, parent_id: str, group: Group) -> str:
        """Create a sub-group under parent_id and return its ID."""
        resp = self.client.post(
            self.client.admin_realm_url(realm, "groups", parent_id, "children"),
            "could not create child group",
            token=token,
            json=group.to_dict(),
        )
        return get_id(resp)

    def update_group(self, token: str, realm: str, group: Group) -> None:
        """Replace the group identified by group.id."""
        error_message = "could not update group"
        if not group.id:
            raise KeycloakAPIError(400, f"{error_message}: groupID shall not be empty", "")

        self.client.put(
            self.client.admin_realm_url(realm, "groups", group.id),
            error_message,
            token=token,
            json=group.to_dict(),
        )

    def delete_group(self, token: str, realm: str, group_id: str) -> None:
        self.client.delete(
            self.client.admin_realm_url(realm, "groups", group_id),
            "could not delete group",
            token=token,
        )

    def get_group(self, token: str, realm: str, group_id: str) -> Group:
        resp = self.client.get(
            self.client.admin_realm_url(realm, "groups", group_id),
            "could not get group",
            token=token,
        )
        return Group.from_dict(decode_json(resp, "could not get group"))

    def get_group_by_path(self, token: str, realm: str, group_path: str) -> Group:
        """Retrieve a group by its path (e.g., '/engineering/backend').

        Args:
            token: Admin access token
            realm: Realm name
            group_path: Group path, with or without the leading /

        Returns:
            Group representation
        """
        resp = self.client.get(
            self.client.admin_realm_url(realm, "group-by-path", group_path.lstrip("/")),
            "could not get group by path",
            token=token,
        )
        return Group.from_dict(decode_json(resp, "could not get group by path"))

    def get_groups(self, token: str, realm: str, params: Optional[GetGroupsParams] = None) -> List[Group]:
        """Return top-level groups (with their sub-groups unless brief)."""
        resp = self.client.get(
            self.client.admin_realm_url(realm, "groups"),
            "could not get groups",
            token=token,
            params=get_query_params(params),
        )
        return Group.from_list(decode_json(resp, "could not get groups"))

    def get_groups_count(self, token: str, realm: str, params: Optional[GetGroupsParams] = None) -> int:
        """Return the number of groups matching params."""
        resp = self.client.get(
            self.client.admin_realm_url(realm, "groups", "count"),
            "could not get groups count",
            token=token,
            params=get_query_params(params),
        )
        return int((decode_json(resp, "could not get groups count") or {}).get("count", 0))

    def get_group_members(
        self,
        token: str,
        realm: str,
        group_id: str,
        params: Optional[GetUsersParams] = None,
    ) -> List[User]:
        """Retrieve the members of a group.

        Only first, max and brief_representation are honored by the server.
        """
        resp = self.client.get(
            self.client.admin_realm_url(realm, "groups", group_id, "members"),
            "could not get group members",
            token=token,
            params=get_query_params(params),
        )
        return User.from_list(decode_json(resp, "could not get group members"))
