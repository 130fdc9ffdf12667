"""OpenID Connect and UMA operations: tokens, userinfo, introspection, logout."""
from __future__ import annotations
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

import jwt
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidAudienceError,
    InvalidSignatureError,
    InvalidTokenError,
    PyJWKError,
)

from .client import KeycloakClient, OPENID_CONNECT, TOKEN_ENDPOINT, LOGOUT_ENDPOINT, decode_json
from .exceptions import TokenValidationError
from .models import (
    JWT,
    CertResponse,
    IntrospectTokenResult,
    IssuerResponse,
    RequestingPartyPermission,
    RequestingPartyPermissionDecision,
    UserInfo,
)
from .params import TokenOptions, RequestingPartyTokenOptions, UMA_TICKET_GRANT

logger = logging.getLogger(__name__)

TOKEN_EXCHANGE_GRANT = "urn:ietf:params:oauth:grant-type:token-exchange"
REFRESH_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:refresh_token"
CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


class OIDCService:
    """Service for OpenID Connect and UMA authorization endpoints."""

    def __init__(self, client: KeycloakClient):
        """Initialize OIDC service.

        Args:
            client: Keycloak HTTP client
        """
        self.client = client

    # ─────────────────────────────────────────────────────────────────────
    # Token endpoint
    # ─────────────────────────────────────────────────────────────────────
    def get_token(self, realm: str, options: TokenOptions) -> JWT:
        """Request a token with arbitrary token-endpoint options.

        The client authenticates with HTTP Basic when a client secret is set.

        Args:
            realm: Realm name
            options: Token request parameters

        Returns:
            Token response
        """
        auth = None
        if options.client_secret:
            auth = (options.client_id or "", options.client_secret)
        resp = self.client.post(
            self.client.realm_url(realm, TOKEN_ENDPOINT),
            "could not get token",
            auth=auth,
            data=options.form_data(),
        )
        return JWT.from_dict(decode_json(resp, "could not get token"))

    def login(self, client_id: str, client_secret: str, realm: str, username: str, password: str) -> JWT:
        """Resource owner password grant with the openid scope."""
        return self.get_token(realm, TokenOptions(
            client_id=client_id,
            client_secret=client_secret,
            grant_type="password",
            username=username,
            password=password,
            scope="openid",
        ))

    def login_otp(
        self,
        client_id: str,
        client_secret: str,
        realm: str,
        username: str,
        password: str,
        totp: str,
    ) -> JWT:
        """Password grant with a one-time password."""
        return self.get_token(realm, TokenOptions(
            client_id=client_id,
            client_secret=client_secret,
            grant_type="password",
            username=username,
            password=password,
            totp=totp,
            scope="openid",
        ))

    def login_client(
        self,
        client_id: str,
        client_secret: str,
        realm: str,
        scopes: Optional[List[str]] = None,
    ) -> JWT:
        """Client credentials grant."""
        return self.get_token(realm, TokenOptions(
            client_id=client_id,
            client_secret=client_secret,
            grant_type="client_credentials",
            scopes=scopes,
        ))

    def login_admin(self, username: str, password: str, realm: str = "master") -> JWT:
        """Obtain an admin token via direct access grant on the admin-cli client."""
        return self.get_token(realm, TokenOptions(
            client_id="admin-cli",
            grant_type="password",
            username=username,
            password=password,
        ))

    def login_client_token_exchange(
        self,
        client_id: str,
        token: str,
        client_secret: str,
        realm: str,
        target_client: str,
        user_id: str = "",
    ) -> JWT:
        """Exchange a token for a refresh token aimed at target_client.

        When user_id is given the exchanged token impersonates that user.
        """
        options = TokenOptions(
            client_id=client_id,
            client_secret=client_secret,
            grant_type=TOKEN_EXCHANGE_GRANT,
            subject_token=token,
            requested_token_type=REFRESH_TOKEN_TYPE,
            audience=target_client,
        )
        if user_id:
            options.requested_subject = user_id
        return self.get_token(realm, options)

    def login_client_signed_jwt(
        self,
        client_id: str,
        realm: str,
        key: Any,
        algorithm: str = "RS256",
        expires_in: int = 60,
    ) -> JWT:
        """Client credentials grant authenticated with a signed JWT assertion.

        Args:
            client_id: Client ID (issuer and subject of the assertion)
            realm: Realm name (the realm URL is the assertion audience)
            key: Private key or shared secret accepted by PyJWT for the algorithm
            algorithm: Signing algorithm
            expires_in: Assertion lifetime in seconds

        Returns:
            Token response
        """
        now = int(time.time())
        assertion = jwt.encode(
            {
                "iss": client_id,
                "sub": client_id,
                "aud": self.client.realm_url(realm),
                "jti": str(uuid.uuid4()),
                "iat": now,
                "exp": now + expires_in,
            },
            key,
            algorithm=algorithm,
        )
        return self.get_token(realm, TokenOptions(
            client_id=client_id,
            grant_type="client_credentials",
            client_assertion_type=CLIENT_ASSERTION_TYPE,
            client_assertion=assertion,
        ))

    def refresh_token(self, refresh_token: str, client_id: str, client_secret: str, realm: str) -> JWT:
        """Refresh token grant."""
        return self.get_token(realm, TokenOptions(
            client_id=client_id,
            client_secret=client_secret,
            grant_type="refresh_token",
            refresh_token=refresh_token,
        ))

    # ─────────────────────────────────────────────────────────────────────
    # Userinfo, introspection, logout, revocation
    # ─────────────────────────────────────────────────────────────────────
    def get_user_info(self, access_token: str, realm: str) -> UserInfo:
        """Return the standard claims of the token's subject."""
        return UserInfo.from_dict(self.get_raw_user_info(access_token, realm))

    def get_raw_user_info(self, access_token: str, realm: str) -> Dict[str, Any]:
        """Return the userinfo response as a dict, custom claims included."""
        resp = self.client.get(
            self.client.realm_url(realm, OPENID_CONNECT, "userinfo"),
            "could not get user info",
            token=access_token,
        )
        return decode_json(resp, "could not get user info") or {}

    def introspect_token(self, token: str, client_id: str, client_secret: str, realm: str) -> IntrospectTokenResult:
        """Introspect a (requesting party) token using the client's credentials."""
        resp = self.client.post(
            self.client.realm_url(realm, TOKEN_ENDPOINT, "introspect"),
            "could not introspect requesting party token",
            auth=(client_id, client_secret),
            data={"token_type_hint": "requesting_party_token", "token": token},
        )
        return IntrospectTokenResult.from_dict(
            decode_json(resp, "could not introspect requesting party token")
        )

    def logout(self, client_id: str, client_secret: str, realm: str, refresh_token: str) -> None:
        """End the session bound to refresh_token (confidential client)."""
        self.client.post(
            self.client.realm_url(realm, LOGOUT_ENDPOINT),
            "could not logout",
            auth=(client_id, client_secret),
            data={"client_id": client_id, "refresh_token": refresh_token},
        )

    def logout_public_client(self, client_id: str, realm: str, access_token: str, refresh_token: str) -> None:
        """End the session bound to refresh_token (public client, bearer authenticated)."""
        self.client.post(
            self.client.realm_url(realm, LOGOUT_ENDPOINT),
            "could not logout public client",
            token=access_token,
            data={"client_id": client_id, "refresh_token": refresh_token},
        )

    def revoke_token(self, realm: str, client_id: str, client_secret: str, refresh_token: str) -> None:
        """Revoke a refresh token."""
        self.client.post(
            self.client.realm_url(realm, OPENID_CONNECT, "revoke"),
            "could not revoke token",
            data={"client_id": client_id, "client_secret": client_secret, "token": refresh_token},
        )

    # ─────────────────────────────────────────────────────────────────────
    # Realm keys and local token verification
    # ─────────────────────────────────────────────────────────────────────
    def get_issuer(self, realm: str) -> IssuerResponse:
        """Return the realm's public issuer description."""
        resp = self.client.get(self.client.realm_url(realm), "could not get issuer")
        return IssuerResponse.from_dict(decode_json(resp, "could not get issuer"))

    def get_certs(self, realm: str) -> CertResponse:
        """Return the realm's JSON Web Key Set."""
        resp = self.client.get(
            self.client.realm_url(realm, OPENID_CONNECT, "certs"),
            "could not get certs",
        )
        return CertResponse.from_dict(decode_json(resp, "could not get certs"))

    def decode_access_token(self, access_token: str, realm: str, audience: Optional[str] = None) -> Dict[str, Any]:
        """Verify an access token against the realm's current keys and return its claims.

        The signing key is selected by the token's kid; the realm's keys are
        fetched on every call. Audience is only checked when given.

        Raises:
            TokenValidationError: If the token is malformed, expired, or its
                signature does not match
        """
        try:
            header = jwt.get_unverified_header(access_token)
        except DecodeError as e:
            raise TokenValidationError(f"Token decode error (malformed JWT): {e}") from e

        kid = header.get("kid")
        certs = self.get_certs(realm)
        cert = next((key for key in certs.keys or [] if key.kid == kid), None)
        if cert is None:
            raise TokenValidationError(f"No signing key found for kid '{kid}' in realm '{realm}'")

        algorithm = cert.alg or header.get("alg")
        try:
            signing_key = jwt.PyJWK(cert.to_dict(), algorithm=algorithm)
            claims = jwt.decode(
                access_token,
                signing_key.key,
                algorithms=[algorithm],
                audience=audience,
                options={"verify_aud": audience is not None},
            )
        except ExpiredSignatureError as e:
            raise TokenValidationError("Token expired (exp claim)") from e
        except InvalidAudienceError as e:
            raise TokenValidationError(f"Invalid audience: {e}") from e
        except InvalidSignatureError as e:
            raise TokenValidationError("Invalid signature (token tampered or wrong key)") from e
        except (InvalidTokenError, PyJWKError) as e:
            raise TokenValidationError(f"Token validation failed: {e}") from e

        logger.debug("Access token verified for subject %s", claims.get("sub"))
        return claims

    # ─────────────────────────────────────────────────────────────────────
    # UMA (requesting party tokens)
    # ─────────────────────────────────────────────────────────────────────
    def _requesting_party(self, token: str, realm: str, options: RequestingPartyTokenOptions) -> Any:
        resp = self.client.post(
            self.client.realm_url(realm, TOKEN_ENDPOINT),
            "could not get requesting party token",
            token=token,
            data=options.form_data(),
        )
        return decode_json(resp, "could not get requesting party token")

    def get_requesting_party_token(self, token: str, realm: str, options: RequestingPartyTokenOptions) -> JWT:
        """Exchange a user token for a requesting party token (RPT)."""
        return JWT.from_dict(self._requesting_party(token, realm, options))

    def get_requesting_party_permissions(
        self,
        token: str,
        realm: str,
        options: RequestingPartyTokenOptions,
    ) -> List[RequestingPartyPermission]:
        """Return the permissions the server grants instead of an RPT."""
        payload = self._requesting_party(token, realm, options.with_response_mode("permissions"))
        return RequestingPartyPermission.from_list(payload)

    def get_requesting_party_permission_decision(
        self,
        token: str,
        realm: str,
        options: RequestingPartyTokenOptions,
    ) -> RequestingPartyPermissionDecision:
        """Return only the server's allow/deny decision for the requested permissions."""
        payload = self._requesting_party(token, realm, options.with_response_mode("decision"))
        return RequestingPartyPermissionDecision.from_dict(payload)

    def evaluate_permission(
        self,
        user_token: str,
        realm: str,
        audience: str,
        response_mode: str,
        permissions: List[str],
    ) -> JWT:
        """Evaluate permissions for a resource server with the UMA ticket grant.

        Args:
            user_token: The user's access token
            realm: Realm name
            audience: Client ID of the resource server
            response_mode: "decision", "permissions", or "" for a full RPT
            permissions: Permission strings such as "resource#scope"

        Returns:
            Token response
        """
        options = RequestingPartyTokenOptions(
            grant_type=UMA_TICKET_GRANT,
            audience=audience,
            response_mode=response_mode or None,
            permissions=permissions,
        )
        return self.get_requesting_party_token(user_token, realm, options)
