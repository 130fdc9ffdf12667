"""Unit tests for iamclient.core.keycloak.oidc (tokens, userinfo, introspection, UMA)."""
import json
import time

import jwt
import pytest
from jwt.algorithms import RSAAlgorithm

from iamclient.core.keycloak import (
    JWT,
    KeycloakAPIError,
    OIDCService,
    RequestingPartyTokenOptions,
    TokenOptions,
    TokenValidationError,
)

TOKEN_URL = "http://kc.test/realms/demo/protocol/openid-connect/token"
TOKEN_RESPONSE = {
    "access_token": "access-1",
    "refresh_token": "refresh-1",
    "id_token": "id-1",
    "expires_in": 300,
    "refresh_expires_in": 1800,
    "token_type": "Bearer",
    "scope": "openid profile",
}


@pytest.fixture
def oidc(kc_client):
    return OIDCService(kc_client)


# ============================================================================
# Token endpoint
# ============================================================================

def test_login_uses_basic_auth_and_password_grant(kc_http, oidc):
    kc_http.respond(TOKEN_RESPONSE)

    token = oidc.login("app", "secret", "demo", "alice", "pw")

    assert isinstance(token, JWT)
    assert token.access_token == "access-1"
    assert token.expires_in == 300
    call = kc_http.last
    assert call.method == "POST"
    assert call.url == TOKEN_URL
    assert call.auth == ("app", "secret")
    assert call.data["grant_type"] == "password"
    assert call.data["username"] == "alice"
    assert call.data["password"] == "pw"
    assert call.data["scope"] == "openid"


def test_get_token_without_secret_sends_no_basic_auth(kc_http, oidc):
    kc_http.respond(TOKEN_RESPONSE)
    oidc.get_token("demo", TokenOptions(client_id="public-app", grant_type="password", username="u", password="p"))
    assert kc_http.last.auth is None
    assert kc_http.last.data["client_id"] == "public-app"


def test_login_otp_sends_totp(kc_http, oidc):
    kc_http.respond(TOKEN_RESPONSE)
    oidc.login_otp("app", "secret", "demo", "alice", "pw", "123456")
    assert kc_http.last.data["totp"] == "123456"


def test_login_admin_uses_admin_cli(kc_http, oidc):
    kc_http.respond(TOKEN_RESPONSE)

    oidc.login_admin("admin", "pw", "master")

    call = kc_http.last
    assert call.url == "http://kc.test/realms/master/protocol/openid-connect/token"
    assert call.auth is None
    assert call.data["client_id"] == "admin-cli"
    assert call.data["grant_type"] == "password"


def test_login_client_joins_scopes(kc_http, oidc):
    kc_http.respond(TOKEN_RESPONSE)
    oidc.login_client("svc", "secret", "demo", scopes=["openid", "offline_access"])
    assert kc_http.last.data["grant_type"] == "client_credentials"
    assert kc_http.last.data["scope"] == "openid offline_access"


def test_refresh_token(kc_http, oidc):
    kc_http.respond(TOKEN_RESPONSE)
    oidc.refresh_token("refresh-1", "app", "secret", "demo")
    assert kc_http.last.data["grant_type"] == "refresh_token"
    assert kc_http.last.data["refresh_token"] == "refresh-1"


def test_token_exchange_with_impersonation(kc_http, oidc):
    kc_http.respond(TOKEN_RESPONSE)

    oidc.login_client_token_exchange("app", "subject-token", "secret", "demo", "target-app", "user-7")

    data = kc_http.last.data
    assert data["grant_type"] == "urn:ietf:params:oauth:grant-type:token-exchange"
    assert data["subject_token"] == "subject-token"
    assert data["requested_token_type"] == "urn:ietf:params:oauth:token-type:refresh_token"
    assert data["audience"] == "target-app"
    assert data["requested_subject"] == "user-7"


def test_token_exchange_without_user_omits_requested_subject(kc_http, oidc):
    kc_http.respond(TOKEN_RESPONSE)
    oidc.login_client_token_exchange("app", "subject-token", "secret", "demo", "target-app")
    assert "requested_subject" not in kc_http.last.data


def test_login_client_signed_jwt_builds_assertion(kc_http, oidc):
    secret = "a-shared-secret-that-is-long-enough-for-hs256"
    kc_http.respond(TOKEN_RESPONSE)

    oidc.login_client_signed_jwt("svc", "demo", secret, algorithm="HS256", expires_in=30)

    data = kc_http.last.data
    assert kc_http.last.auth is None
    assert data["client_assertion_type"] == "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"
    claims = jwt.decode(
        data["client_assertion"], secret, algorithms=["HS256"], audience="http://kc.test/realms/demo"
    )
    assert claims["iss"] == claims["sub"] == "svc"
    assert claims["exp"] - claims["iat"] == 30
    assert claims["jti"]


def test_wrong_credentials_raise_invalid_grant(kc_http, oidc):
    kc_http.respond({"error": "invalid_grant", "error_description": "Invalid user credentials"}, status_code=401)

    with pytest.raises(KeycloakAPIError) as exc_info:
        oidc.login("app", "secret", "demo", "alice", "wrong")

    assert exc_info.value.status_code == 401
    assert exc_info.value.error_type == "invalid_grant"
    assert exc_info.value.message.startswith("could not get token: 401")


# ============================================================================
# Userinfo, introspection, logout, revocation
# ============================================================================

def test_get_user_info(kc_http, oidc):
    kc_http.respond({"sub": "u-1", "preferred_username": "alice", "email_verified": True, "custom": "x"})

    info = oidc.get_user_info("access-1", "demo")

    assert info.sub == "u-1"
    assert info.preferred_username == "alice"
    assert kc_http.last.url == "http://kc.test/realms/demo/protocol/openid-connect/userinfo"
    assert kc_http.last.headers["Authorization"] == "Bearer access-1"


def test_get_raw_user_info_keeps_custom_claims(kc_http, oidc):
    kc_http.respond({"sub": "u-1", "custom": "x"})
    assert oidc.get_raw_user_info("access-1", "demo") == {"sub": "u-1", "custom": "x"}


def test_get_user_info_error(kc_http, oidc):
    kc_http.respond({"error": "invalid_token"}, status_code=401)
    with pytest.raises(KeycloakAPIError) as exc_info:
        oidc.get_user_info("expired", "demo")
    assert exc_info.value.message == "could not get user info: 401 Unauthorized: invalid_token"


def test_introspect_token(kc_http, oidc):
    kc_http.respond({
        "active": True,
        "permissions": [{"rsid": "r1", "rsname": "Default Resource"}],
    })

    result = oidc.introspect_token("rpt", "app", "secret", "demo")

    assert result.active is True
    assert len(result.permissions) == 1
    assert result.permissions[0].rsname == "Default Resource"
    call = kc_http.last
    assert call.url == "http://kc.test/realms/demo/protocol/openid-connect/token/introspect"
    assert call.auth == ("app", "secret")
    assert call.data == {"token_type_hint": "requesting_party_token", "token": "rpt"}


def test_logout(kc_http, oidc):
    oidc.logout("app", "secret", "demo", "refresh-1")

    call = kc_http.last
    assert call.url == "http://kc.test/realms/demo/protocol/openid-connect/logout"
    assert call.auth == ("app", "secret")
    assert call.data == {"client_id": "app", "refresh_token": "refresh-1"}


def test_logout_public_client_uses_bearer(kc_http, oidc):
    oidc.logout_public_client("spa", "demo", "access-1", "refresh-1")
    assert kc_http.last.headers["Authorization"] == "Bearer access-1"
    assert kc_http.last.auth is None


def test_revoke_token(kc_http, oidc):
    oidc.revoke_token("demo", "app", "secret", "refresh-1")

    call = kc_http.last
    assert call.url == "http://kc.test/realms/demo/protocol/openid-connect/revoke"
    assert call.data == {"client_id": "app", "client_secret": "secret", "token": "refresh-1"}


def test_get_issuer(kc_http, oidc):
    kc_http.respond({"realm": "demo", "public_key": "MIIB", "token-service": "http://kc.test/t"})
    issuer = oidc.get_issuer("demo")
    assert issuer.realm == "demo"
    assert issuer.token_service == "http://kc.test/t"
    assert kc_http.last.url == "http://kc.test/realms/demo"


# ============================================================================
# Local token verification
# ============================================================================

@pytest.fixture
def signed_token(rsa_key_pair):
    def _make(claims_override=None, kid="k1"):
        now = int(time.time())
        claims = {"sub": "u-1", "iat": now, "exp": now + 300, "aud": "account"}
        claims.update(claims_override or {})
        return jwt.encode(claims, rsa_key_pair["private_key"], algorithm="RS256", headers={"kid": kid})
    return _make


@pytest.fixture
def certs_payload(rsa_key_pair):
    jwk = json.loads(RSAAlgorithm.to_jwk(rsa_key_pair["public_key"]))
    jwk.update({"kid": "k1", "alg": "RS256", "use": "sig"})
    return {"keys": [jwk]}


def test_decode_access_token(kc_http, oidc, signed_token, certs_payload):
    kc_http.respond(certs_payload)

    claims = oidc.decode_access_token(signed_token(), "demo")

    assert claims["sub"] == "u-1"
    assert kc_http.last.url == "http://kc.test/realms/demo/protocol/openid-connect/certs"


def test_decode_access_token_checks_audience_when_given(kc_http, oidc, signed_token, certs_payload):
    kc_http.respond(certs_payload)
    with pytest.raises(TokenValidationError, match="Invalid audience"):
        oidc.decode_access_token(signed_token(), "demo", audience="other-api")


def test_decode_access_token_expired(kc_http, oidc, signed_token, certs_payload):
    kc_http.respond(certs_payload)
    token = signed_token({"iat": 1000, "exp": 2000})
    with pytest.raises(TokenValidationError, match="expired"):
        oidc.decode_access_token(token, "demo")


def test_decode_access_token_unknown_kid(kc_http, oidc, signed_token, certs_payload):
    kc_http.respond(certs_payload)
    with pytest.raises(TokenValidationError, match="No signing key"):
        oidc.decode_access_token(signed_token(kid="rotated"), "demo")


def test_decode_access_token_malformed_sends_no_request(kc_http, oidc):
    with pytest.raises(TokenValidationError, match="malformed"):
        oidc.decode_access_token("not-a-jwt", "demo")
    assert kc_http.calls == []


# ============================================================================
# UMA
# ============================================================================

def test_get_requesting_party_token(kc_http, oidc):
    kc_http.respond(TOKEN_RESPONSE)

    rpt = oidc.get_requesting_party_token(
        "access-1",
        "demo",
        RequestingPartyTokenOptions(audience="app", permissions=["Default Resource"]),
    )

    assert rpt.access_token == "access-1"
    call = kc_http.last
    assert call.url == TOKEN_URL
    assert call.headers["Authorization"] == "Bearer access-1"
    assert ("grant_type", "urn:ietf:params:oauth:grant-type:uma-ticket") in call.data
    assert ("permission", "Default Resource") in call.data


def test_get_requesting_party_token_denied(kc_http, oidc):
    kc_http.respond({"error": "access_denied", "error_description": "not_authorized"}, status_code=403)
    with pytest.raises(KeycloakAPIError) as exc_info:
        oidc.get_requesting_party_token(
            "access-1", "demo", RequestingPartyTokenOptions(audience="app", permissions=["Fake Resource"])
        )
    assert exc_info.value.message == (
        "could not get requesting party token: 403 Forbidden: access_denied: not_authorized"
    )


def test_get_requesting_party_permissions(kc_http, oidc):
    kc_http.respond([{"rsid": "r1", "rsname": "Default Resource", "scopes": ["view"]}])
    options = RequestingPartyTokenOptions(audience="app")

    permissions = oidc.get_requesting_party_permissions("access-1", "demo", options)

    assert permissions[0].resource_id == "r1"
    assert permissions[0].resource_name == "Default Resource"
    assert ("response_mode", "permissions") in kc_http.last.data
    assert options.response_mode is None


def test_get_requesting_party_permission_decision(kc_http, oidc):
    kc_http.respond({"result": True})
    decision = oidc.get_requesting_party_permission_decision(
        "access-1", "demo", RequestingPartyTokenOptions(audience="app", permissions=["doc#read"])
    )
    assert decision.result is True
    assert ("response_mode", "decision") in kc_http.last.data


def test_evaluate_permission(kc_http, oidc):
    kc_http.respond(TOKEN_RESPONSE)

    oidc.evaluate_permission("access-1", "demo", "api", "decision", ["doc#read", "doc#write"])

    data = kc_http.last.data
    assert ("audience", "api") in data
    assert ("response_mode", "decision") in data
    assert [value for key, value in data if key == "permission"] == ["doc#read", "doc#write"]
