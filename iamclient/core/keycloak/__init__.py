"""Keycloak REST API client library.

This package maps Keycloak's REST endpoints one-to-one onto Python methods.

Architecture:
- client.py: HTTP dispatch, URL construction and error normalization
- oidc.py: OpenID Connect tokens, userinfo, introspection, logout, UMA
- realm.py: Realms, server info and client lookup
- users.py: Users, passwords, group membership, federated identities
- roles.py: Realm and client roles, composites, role mappings
- groups.py: Groups and group members
- sessions.py: User sessions
- models.py: Typed representations of server payloads
- params.py: Query and form option structs
- exceptions.py: Typed exceptions for error handling

Usage:
    from iamclient.core.keycloak import KeycloakClient, OIDCService, UserService, GetUsersParams

    client = KeycloakClient("http://keycloak:8080")
    token = OIDCService(client).login_admin("admin", "password")

    users = UserService(client).get_users(
        token.access_token, "demo", GetUsersParams(username="alice", exact=True)
    )
"""
from .client import (
    KeycloakClient,
    REQUEST_TIMEOUT,
    check_for_error,
    get_id,
)
from .exceptions import (
    KeycloakError,
    KeycloakAPIError,
    KeycloakConnectionError,
    TokenValidationError,
)
from .models import (
    JWT,
    CertResponse,
    CertResponseKey,
    Client,
    CompositesRepresentation,
    CredentialRepresentation,
    FederatedIdentityRepresentation,
    Group,
    IntrospectTokenResult,
    IssuerResponse,
    RealmRepresentation,
    RequestingPartyPermission,
    RequestingPartyPermissionDecision,
    ResourcePermission,
    Role,
    SetPasswordRequest,
    User,
    UserInfo,
    UserSessionRepresentation,
)
from .params import (
    GetGroupsParams,
    GetRoleParams,
    GetUsersByRoleParams,
    GetUsersParams,
    RequestingPartyTokenOptions,
    TokenOptions,
    get_query_params,
)
from .oidc import OIDCService
from .realm import RealmService
from .users import UserService
from .roles import RoleService
from .groups import GroupService
from .sessions import SessionService

__all__ = [
    # Client
    "KeycloakClient",
    "REQUEST_TIMEOUT",
    "check_for_error",
    "get_id",

    # Exceptions
    "KeycloakError",
    "KeycloakAPIError",
    "KeycloakConnectionError",
    "TokenValidationError",

    # Services
    "OIDCService",
    "RealmService",
    "UserService",
    "RoleService",
    "GroupService",
    "SessionService",

    # Models
    "JWT",
    "CertResponse",
    "CertResponseKey",
    "Client",
    "CompositesRepresentation",
    "CredentialRepresentation",
    "FederatedIdentityRepresentation",
    "Group",
    "IntrospectTokenResult",
    "IssuerResponse",
    "RealmRepresentation",
    "RequestingPartyPermission",
    "RequestingPartyPermissionDecision",
    "ResourcePermission",
    "Role",
    "SetPasswordRequest",
    "User",
    "UserInfo",
    "UserSessionRepresentation",

    # Options
    "GetGroupsParams",
    "GetRoleParams",
    "GetUsersByRoleParams",
    "GetUsersParams",
    "RequestingPartyTokenOptions",
    "TokenOptions",
    "get_query_params",
]
