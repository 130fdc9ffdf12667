"""Unit tests for iamclient.core.keycloak.client (URLs, dispatch, error wrapping)."""
import pytest
import requests

from iamclient.config import ClientSettings
from iamclient.core.keycloak import (
    KeycloakAPIError,
    KeycloakClient,
    KeycloakConnectionError,
    get_id,
)
from iamclient.core.keycloak.client import REQUEST_TIMEOUT, decode_json


# ============================================================================
# URL construction
# ============================================================================

def test_realm_and_admin_urls(kc_client):
    assert kc_client.realm_url("demo", "protocol/openid-connect", "token") == (
        "http://kc.test/realms/demo/protocol/openid-connect/token"
    )
    assert kc_client.admin_realm_url("demo", "users", "u-1") == "http://kc.test/admin/realms/demo/users/u-1"
    assert kc_client.admin_url("serverinfo") == "http://kc.test/admin/serverinfo"


def test_legacy_wildfly_prefixes_auth():
    client = KeycloakClient("http://kc.test/", legacy_wildfly=True)
    assert client.realm_url("demo") == "http://kc.test/auth/realms/demo"
    assert client.admin_realm_url("demo", "roles") == "http://kc.test/auth/admin/realms/demo/roles"


def test_path_segments_are_percent_encoded(kc_client):
    assert kc_client.admin_realm_url("demo", "roles", "read only") == (
        "http://kc.test/admin/realms/demo/roles/read%20only"
    )


def test_base_url_defaults_to_env(monkeypatch):
    monkeypatch.setenv("KEYCLOAK_URL", "https://sso.example.com/")
    assert KeycloakClient().base_url == "https://sso.example.com"


def test_from_settings():
    settings = ClientSettings(server_url="https://sso", timeout=12.5, verify_ssl=False, legacy_wildfly=True)
    client = KeycloakClient.from_settings(settings)
    assert client.base_url == "https://sso"
    assert client.timeout == 12.5
    assert client.verify is False
    assert client.base_path == "/auth"


# ============================================================================
# Dispatch
# ============================================================================

def test_bearer_token_header(kc_http, kc_client):
    kc_http.respond([])
    kc_client.get(kc_client.admin_url("realms"), "could not get realms", token="abc")

    call = kc_http.last
    assert call.method == "GET"
    assert call.headers == {"Authorization": "Bearer abc"}
    assert call.kwargs["timeout"] == REQUEST_TIMEOUT
    assert call.kwargs["verify"] is True


def test_no_authorization_header_without_token(kc_http, kc_client):
    kc_client.post(kc_client.realm_url("demo"), "could not post", data={"a": "b"})
    assert "Authorization" not in kc_http.last.headers
    assert kc_http.last.auth is None


def test_basic_auth_credentials_are_form_encoded(kc_http, kc_client):
    kc_client.post(kc_client.realm_url("demo"), "could not post", auth=("my client", "s&cret"))
    assert kc_http.last.auth == ("my+client", "s%26cret")


def test_delete_carries_json_body(kc_http, kc_client):
    kc_client.delete(kc_client.admin_url("x"), "could not delete", token="t", json=[{"name": "r"}])
    assert kc_http.last.method == "DELETE"
    assert kc_http.last.json == [{"name": "r"}]


# ============================================================================
# Error normalization
# ============================================================================

def test_http_error_is_wrapped_with_static_description(kc_http, kc_client):
    kc_http.respond({"errorMessage": "User exists with same username"}, status_code=409)

    with pytest.raises(KeycloakAPIError) as exc_info:
        kc_client.post(kc_client.admin_realm_url("demo", "users"), "could not create user", token="t", json={})

    err = exc_info.value
    assert err.status_code == 409
    assert err.message == "could not create user: 409 Conflict: User exists with same username"
    assert err.endpoint == "http://kc.test/admin/realms/demo/users"
    assert err.body == '{"errorMessage": "User exists with same username"}'
    assert err.error_type == "unknown"
    assert str(err).startswith("[409] http://kc.test/admin/realms/demo/users: could not create user")


def test_invalid_grant_is_classified(kc_http, kc_client):
    kc_http.respond({"error": "invalid_grant", "error_description": "Invalid user credentials"}, status_code=401)

    with pytest.raises(KeycloakAPIError) as exc_info:
        kc_client.post(kc_client.realm_url("demo", "protocol/openid-connect/token"), "could not get token")

    assert exc_info.value.error_type == "invalid_grant"
    assert exc_info.value.message == "could not get token: 401 Unauthorized: invalid_grant: Invalid user credentials"


def test_non_json_error_body_keeps_status_only(kc_http, kc_client):
    kc_http.respond("<html>Bad Gateway</html>", status_code=502)

    with pytest.raises(KeycloakAPIError) as exc_info:
        kc_client.get(kc_client.admin_url("serverinfo"), "could not get server info", token="t")

    assert exc_info.value.message == "could not get server info: 502 Bad Gateway"
    assert exc_info.value.body == "<html>Bad Gateway</html>"


def test_transport_failure_raises_connection_error(kc_http, kc_client):
    kc_http.fail(requests.ConnectionError("connection refused"))

    with pytest.raises(KeycloakConnectionError) as exc_info:
        kc_client.get(kc_client.admin_url("realms"), "could not get realms", token="t")

    err = exc_info.value
    assert err.status_code == 0
    assert err.message == "could not get realms: connection refused"
    assert isinstance(err.__cause__, requests.ConnectionError)


def test_success_statuses_pass_through(kc_http, kc_client):
    kc_http.respond(status_code=201, headers={"Location": "http://kc.test/admin/realms/demo/users/abc-123"})
    resp = kc_client.post(kc_client.admin_realm_url("demo", "users"), "could not create user", json={})
    assert resp.status_code == 201


# ============================================================================
# Response helpers
# ============================================================================

def test_get_id_from_location(kc_http, kc_client):
    kc_http.respond(status_code=201, headers={"Location": "http://kc.test/admin/realms/demo/groups/g-42/"})
    resp = kc_client.post(kc_client.admin_realm_url("demo", "groups"), "could not create group", json={})
    assert get_id(resp) == "g-42"


def test_get_id_without_location(kc_http, kc_client):
    resp = kc_client.post(kc_client.admin_realm_url("demo", "groups"), "could not create group", json={})
    assert get_id(resp) == ""


def test_decode_json_empty_body(kc_http, kc_client):
    resp = kc_client.put(kc_client.admin_realm_url("demo", "users", "u"), "could not update user", json={})
    assert decode_json(resp, "could not update user") is None


def test_non_json_success_body_is_wrapped(kc_http, kc_client):
    kc_http.respond("<html>proxy login</html>", status_code=200)
    resp = kc_client.get(kc_client.admin_realm_url("demo", "users"), "could not get users", token="t")

    with pytest.raises(KeycloakAPIError) as exc_info:
        decode_json(resp, "could not get users")

    err = exc_info.value
    assert err.status_code == 200
    assert err.message == "could not get users: invalid JSON response"
    assert err.endpoint == "http://kc.test/admin/realms/demo/users"
    assert err.body == "<html>proxy login</html>"
