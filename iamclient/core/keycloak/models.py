"""Typed representations of Keycloak JSON payloads.

Each dataclass mirrors the server's schema verbatim. Every field is optional:
None means "absent from the payload" and is omitted again by to_dict().
"""
from __future__ import annotations
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


def _field(json: Optional[str] = None, model: Optional[str] = None) -> Any:
    """Declare an optional field, with its JSON name and nested model when they differ."""
    return field(default=None, metadata={"json": json, "model": model})


class Representation:
    """Mapping between a dataclass and its JSON form.

    Admin API representations use camelCase names (_camel_case = True); OIDC
    payloads use snake_case. A field's "json" metadata overrides both.
    """

    _camel_case = False

    @classmethod
    def _json_name(cls, f) -> str:
        name = f.metadata.get("json")
        if name:
            return name
        if cls._camel_case:
            first, *rest = f.name.split("_")
            return first + "".join(part.title() for part in rest)
        return f.name

    @classmethod
    def from_dict(cls, data: Optional[dict]):
        """Build an instance from a decoded JSON object. Unknown keys are ignored."""
        if data is None:
            return None
        kwargs = {}
        for f in fields(cls):
            key = cls._json_name(f)
            if key not in data:
                continue
            value = data[key]
            model = f.metadata.get("model")
            if model and value is not None:
                model_cls = globals()[model]
                if isinstance(value, list):
                    value = [model_cls.from_dict(item) for item in value]
                else:
                    value = model_cls.from_dict(value)
            kwargs[f.name] = value
        return cls(**kwargs)

    @classmethod
    def from_list(cls, data: Optional[list]) -> list:
        """Build a list of instances from a decoded JSON array."""
        return [cls.from_dict(item) for item in data or []]

    def to_dict(self) -> dict:
        """Return the JSON form, omitting absent fields."""
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, Representation):
                value = value.to_dict()
            elif isinstance(value, list):
                value = [item.to_dict() if isinstance(item, Representation) else item for item in value]
            out[self._json_name(f)] = value
        return out


# ─────────────────────────────────────────────────────────────────────────────
# OpenID Connect / UMA
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class JWT(Representation):
    """Token endpoint response."""
    access_token: Optional[str] = _field()
    id_token: Optional[str] = _field()
    expires_in: Optional[int] = _field()
    refresh_expires_in: Optional[int] = _field()
    refresh_token: Optional[str] = _field()
    token_type: Optional[str] = _field()
    not_before_policy: Optional[int] = _field(json="not-before-policy")
    session_state: Optional[str] = _field()
    scope: Optional[str] = _field()


@dataclass
class UserInfo(Representation):
    """Standard claims returned by the userinfo endpoint."""
    sub: Optional[str] = _field()
    email_verified: Optional[bool] = _field()
    address: Optional[Dict[str, Any]] = _field()
    preferred_username: Optional[str] = _field()
    email: Optional[str] = _field()
    name: Optional[str] = _field()
    given_name: Optional[str] = _field()
    family_name: Optional[str] = _field()
    middle_name: Optional[str] = _field()
    nickname: Optional[str] = _field()
    picture: Optional[str] = _field()
    website: Optional[str] = _field()
    gender: Optional[str] = _field()
    birthdate: Optional[str] = _field()
    zoneinfo: Optional[str] = _field()
    locale: Optional[str] = _field()
    phone_number: Optional[str] = _field()
    phone_number_verified: Optional[bool] = _field()
    updated_at: Optional[int] = _field()


@dataclass
class ResourcePermission(Representation):
    rsid: Optional[str] = _field()
    rsname: Optional[str] = _field()
    resource_id: Optional[str] = _field()
    scopes: Optional[List[str]] = _field()
    resource_scopes: Optional[List[str]] = _field()


@dataclass
class IntrospectTokenResult(Representation):
    """Token introspection response (RFC 7662 plus Keycloak permissions)."""
    permissions: Optional[List[ResourcePermission]] = _field(model="ResourcePermission")
    exp: Optional[int] = _field()
    nbf: Optional[int] = _field()
    iat: Optional[int] = _field()
    aud: Optional[Any] = _field()
    active: Optional[bool] = _field()
    auth_time: Optional[int] = _field()
    jti: Optional[str] = _field()
    type: Optional[str] = _field(json="typ")
    sub: Optional[str] = _field()
    username: Optional[str] = _field()
    client_id: Optional[str] = _field()
    scope: Optional[str] = _field()
    session_state: Optional[str] = _field()
    iss: Optional[str] = _field()


@dataclass
class RequestingPartyPermission(Representation):
    claims: Optional[Dict[str, Any]] = _field()
    resource_id: Optional[str] = _field(json="rsid")
    resource_name: Optional[str] = _field(json="rsname")
    scopes: Optional[List[str]] = _field()


@dataclass
class RequestingPartyPermissionDecision(Representation):
    result: Optional[bool] = _field()


@dataclass
class IssuerResponse(Representation):
    realm: Optional[str] = _field()
    public_key: Optional[str] = _field()
    token_service: Optional[str] = _field(json="token-service")
    account_service: Optional[str] = _field(json="account-service")
    tokens_not_before: Optional[int] = _field(json="tokens-not-before")


@dataclass
class CertResponseKey(Representation):
    """A single JSON Web Key."""
    kid: Optional[str] = _field()
    kty: Optional[str] = _field()
    alg: Optional[str] = _field()
    use: Optional[str] = _field()
    n: Optional[str] = _field()
    e: Optional[str] = _field()
    x5c: Optional[List[str]] = _field()
    x5t: Optional[str] = _field()
    x5t_s256: Optional[str] = _field(json="x5t#S256")
    crv: Optional[str] = _field()
    x: Optional[str] = _field()
    y: Optional[str] = _field()


@dataclass
class CertResponse(Representation):
    keys: Optional[List[CertResponseKey]] = _field(model="CertResponseKey")


# ─────────────────────────────────────────────────────────────────────────────
# Admin API
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class CredentialRepresentation(Representation):
    _camel_case = True

    id: Optional[str] = _field()
    type: Optional[str] = _field()
    value: Optional[str] = _field()
    temporary: Optional[bool] = _field()
    created_date: Optional[int] = _field()
    user_label: Optional[str] = _field()
    secret_data: Optional[str] = _field()
    credential_data: Optional[str] = _field()
    priority: Optional[int] = _field()


@dataclass
class User(Representation):
    _camel_case = True

    id: Optional[str] = _field()
    created_timestamp: Optional[int] = _field()
    username: Optional[str] = _field()
    enabled: Optional[bool] = _field()
    totp: Optional[bool] = _field()
    email_verified: Optional[bool] = _field()
    first_name: Optional[str] = _field()
    last_name: Optional[str] = _field()
    email: Optional[str] = _field()
    federation_link: Optional[str] = _field()
    attributes: Optional[Dict[str, List[str]]] = _field()
    disableable_credential_types: Optional[List[str]] = _field()
    required_actions: Optional[List[str]] = _field()
    access: Optional[Dict[str, bool]] = _field()
    client_roles: Optional[Dict[str, List[str]]] = _field()
    realm_roles: Optional[List[str]] = _field()
    groups: Optional[List[str]] = _field()
    service_account_client_id: Optional[str] = _field()
    credentials: Optional[List[CredentialRepresentation]] = _field(model="CredentialRepresentation")


@dataclass
class CompositesRepresentation(Representation):
    client: Optional[Dict[str, List[str]]] = _field()
    realm: Optional[List[str]] = _field()


@dataclass
class Role(Representation):
    _camel_case = True

    id: Optional[str] = _field()
    name: Optional[str] = _field()
    scope_param_required: Optional[bool] = _field()
    composite: Optional[bool] = _field()
    composites: Optional[CompositesRepresentation] = _field(model="CompositesRepresentation")
    client_role: Optional[bool] = _field()
    container_id: Optional[str] = _field()
    description: Optional[str] = _field()
    attributes: Optional[Dict[str, List[str]]] = _field()


@dataclass
class Group(Representation):
    _camel_case = True

    id: Optional[str] = _field()
    name: Optional[str] = _field()
    path: Optional[str] = _field()
    sub_groups: Optional[List["Group"]] = _field(model="Group")
    sub_group_count: Optional[int] = _field()
    parent_id: Optional[str] = _field()
    attributes: Optional[Dict[str, List[str]]] = _field()
    access: Optional[Dict[str, bool]] = _field()
    client_roles: Optional[Dict[str, List[str]]] = _field()
    realm_roles: Optional[List[str]] = _field()


@dataclass
class UserSessionRepresentation(Representation):
    _camel_case = True

    clients: Optional[Dict[str, str]] = _field()
    id: Optional[str] = _field()
    ip_address: Optional[str] = _field()
    last_access: Optional[int] = _field()
    start: Optional[int] = _field()
    user_id: Optional[str] = _field()
    username: Optional[str] = _field()
    remember_me: Optional[bool] = _field()


@dataclass
class FederatedIdentityRepresentation(Representation):
    _camel_case = True

    identity_provider: Optional[str] = _field()
    user_id: Optional[str] = _field()
    user_name: Optional[str] = _field()


@dataclass
class SetPasswordRequest(Representation):
    type: Optional[str] = _field()
    temporary: Optional[bool] = _field()
    value: Optional[str] = _field()


@dataclass
class RealmRepresentation(Representation):
    _camel_case = True

    id: Optional[str] = _field()
    realm: Optional[str] = _field()
    display_name: Optional[str] = _field()
    enabled: Optional[bool] = _field()
    ssl_required: Optional[str] = _field()
    registration_allowed: Optional[bool] = _field()
    login_with_email_allowed: Optional[bool] = _field()
    duplicate_emails_allowed: Optional[bool] = _field()
    reset_password_allowed: Optional[bool] = _field()
    edit_username_allowed: Optional[bool] = _field()
    brute_force_protected: Optional[bool] = _field()
    access_token_lifespan: Optional[int] = _field()
    sso_session_idle_timeout: Optional[int] = _field()
    sso_session_max_lifespan: Optional[int] = _field()
    default_roles: Optional[List[str]] = _field()
    attributes: Optional[Dict[str, str]] = _field()


@dataclass
class Client(Representation):
    _camel_case = True

    id: Optional[str] = _field()
    client_id: Optional[str] = _field()
    name: Optional[str] = _field()
    enabled: Optional[bool] = _field()
    public_client: Optional[bool] = _field()
    secret: Optional[str] = _field()
    service_accounts_enabled: Optional[bool] = _field()
    redirect_uris: Optional[List[str]] = _field()
    web_origins: Optional[List[str]] = _field()
    protocol: Optional[str] = _field()
    attributes: Optional[Dict[str, str]] = _field()
