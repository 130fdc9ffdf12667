"""Option structs for query strings and token-endpoint form bodies."""
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

from .models import Representation, _field

UMA_TICKET_GRANT = "urn:ietf:params:oauth:grant-type:uma-ticket"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def get_query_params(params: Optional[Representation]) -> Dict[str, str]:
    """Convert an option struct into query parameters, dropping unset fields."""
    if params is None:
        return {}
    return {key: _stringify(value) for key, value in params.to_dict().items()}


# ─────────────────────────────────────────────────────────────────────────────
# Token endpoint
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class TokenOptions(Representation):
    """Form parameters for the token endpoint.

    scopes and response_types are lists joined with spaces into scope and
    response_type; response_type falls back to "token".
    """
    client_id: Optional[str] = _field()
    client_secret: Optional[str] = _field()
    grant_type: Optional[str] = _field()
    refresh_token: Optional[str] = _field()
    scopes: Optional[List[str]] = _field()
    scope: Optional[str] = _field()
    response_types: Optional[List[str]] = _field()
    response_type: Optional[str] = _field()
    permission: Optional[str] = _field()
    username: Optional[str] = _field()
    password: Optional[str] = _field()
    totp: Optional[str] = _field()
    code: Optional[str] = _field()
    redirect_uri: Optional[str] = _field()
    client_assertion_type: Optional[str] = _field()
    client_assertion: Optional[str] = _field()
    subject_token: Optional[str] = _field()
    requested_subject: Optional[str] = _field()
    audience: Optional[str] = _field()
    requested_token_type: Optional[str] = _field()
    subject_issuer: Optional[str] = _field()

    def form_data(self) -> Dict[str, str]:
        data = {
            key: _stringify(value)
            for key, value in self.to_dict().items()
            if key not in ("scopes", "response_types")
        }
        if self.scopes:
            data["scope"] = " ".join(self.scopes)
        if self.response_types:
            data["response_type"] = " ".join(self.response_types)
        if not data.get("response_type"):
            data["response_type"] = "token"
        return data


@dataclass
class RequestingPartyTokenOptions(Representation):
    """Form parameters for UMA requesting party token requests.

    permissions are sent as repeated "permission" fields, in order.
    """
    grant_type: Optional[str] = _field()
    ticket: Optional[str] = _field()
    claim_token: Optional[str] = _field()
    claim_token_format: Optional[str] = _field()
    rpt: Optional[str] = _field()
    permissions: Optional[List[str]] = _field()
    audience: Optional[str] = _field()
    response_include_resource_name: Optional[bool] = _field()
    response_mode: Optional[str] = _field()
    response_permissions_limit: Optional[int] = _field()
    submit_request: Optional[bool] = _field()

    def with_response_mode(self, mode: str) -> "RequestingPartyTokenOptions":
        """Return a copy with response_mode set; the caller's options stay untouched."""
        return replace(self, response_mode=mode)

    def form_data(self) -> List[Tuple[str, str]]:
        data = {
            key: _stringify(value)
            for key, value in self.to_dict().items()
            if key != "permissions"
        }
        data.setdefault("grant_type", UMA_TICKET_GRANT)
        pairs = list(data.items())
        pairs.extend(("permission", permission) for permission in self.permissions or [])
        return pairs


# ─────────────────────────────────────────────────────────────────────────────
# Admin API query parameters
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class GetUsersParams(Representation):
    _camel_case = True

    brief_representation: Optional[bool] = _field()
    email: Optional[str] = _field()
    email_verified: Optional[bool] = _field()
    enabled: Optional[bool] = _field()
    exact: Optional[bool] = _field()
    first: Optional[int] = _field()
    first_name: Optional[str] = _field()
    idp_alias: Optional[str] = _field()
    idp_user_id: Optional[str] = _field()
    last_name: Optional[str] = _field()
    max: Optional[int] = _field()
    q: Optional[str] = _field()
    search: Optional[str] = _field()
    username: Optional[str] = _field()


@dataclass
class GetGroupsParams(Representation):
    _camel_case = True

    brief_representation: Optional[bool] = _field()
    exact: Optional[bool] = _field()
    first: Optional[int] = _field()
    max: Optional[int] = _field()
    q: Optional[str] = _field()
    search: Optional[str] = _field()


@dataclass
class GetRoleParams(Representation):
    _camel_case = True

    first: Optional[int] = _field()
    max: Optional[int] = _field()
    search: Optional[str] = _field()
    brief_representation: Optional[bool] = _field()


@dataclass
class GetUsersByRoleParams(Representation):
    first: Optional[int] = _field()
    max: Optional[int] = _field()
