"""Command-line access to the Keycloak REST API.

This module serves as a CLI wrapper around iamclient.core.keycloak services.
Results are printed as JSON on stdout; progress and errors go to stderr.
"""
from __future__ import annotations
import argparse
import json
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from iamclient.config import load_settings
from iamclient.core.keycloak import (
    GetGroupsParams,
    GetUsersParams,
    GroupService,
    KeycloakClient,
    KeycloakError,
    OIDCService,
    RequestingPartyTokenOptions,
    RoleService,
    SessionService,
    TokenOptions,
    User,
    UserService,
)


def _emit(payload) -> None:
    if isinstance(payload, list):
        payload = [item.to_dict() if hasattr(item, "to_dict") else item for item in payload]
    elif hasattr(payload, "to_dict"):
        payload = payload.to_dict()
    print(json.dumps(payload, indent=2, sort_keys=True))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Keycloak REST API helper")
    parser.add_argument("--kc-url", default=os.environ.get("KEYCLOAK_URL", "http://localhost:8080"))
    parser.add_argument("--realm", default=os.environ.get("KEYCLOAK_REALM", "master"))
    parser.add_argument("--auth-realm", default=os.environ.get("KEYCLOAK_ADMIN_REALM", "master"))
    parser.add_argument("--admin-user", default=os.environ.get("KEYCLOAK_ADMIN", "admin"))
    parser.add_argument("--admin-pass", default=os.environ.get("KEYCLOAK_ADMIN_PASSWORD"))
    parser.add_argument("--client-id", default=os.environ.get("OIDC_CLIENT_ID"))
    parser.add_argument("--client-secret", default=os.environ.get("OIDC_CLIENT_SECRET"))
    parser.add_argument("--legacy-wildfly", action="store_true", help="Prefix paths with /auth")

    sub = parser.add_subparsers(dest="cmd")

    st = sub.add_parser("token", help="Request a token (password grant when --username is set)")
    st.add_argument("--username")
    st.add_argument("--password")
    st.add_argument("--totp")
    st.add_argument("--scope", action="append", dest="scopes")

    su = sub.add_parser("userinfo")
    su.add_argument("--access-token", required=True)

    si = sub.add_parser("introspect")
    si.add_argument("--token", required=True)

    sus = sub.add_parser("users")
    sus.add_argument("--search")
    sus.add_argument("--username")
    sus.add_argument("--exact", action="store_true")
    sus.add_argument("--first", type=int)
    sus.add_argument("--max", type=int)

    sub.add_parser("user-count")

    sc = sub.add_parser("create-user")
    sc.add_argument("--username", required=True)
    sc.add_argument("--email")
    sc.add_argument("--first")
    sc.add_argument("--last")
    sc.add_argument("--password")
    sc.add_argument("--temporary", action="store_true")

    sd = sub.add_parser("delete-user")
    sd.add_argument("--user-id", required=True)

    sp = sub.add_parser("set-password")
    sp.add_argument("--user-id", required=True)
    sp.add_argument("--password", required=True)
    sp.add_argument("--temporary", action="store_true")

    sub.add_parser("realm-roles")

    sg = sub.add_parser("grant-role")
    sg.add_argument("--user-id", required=True)
    sg.add_argument("--role", required=True)

    sgr = sub.add_parser("groups")
    sgr.add_argument("--search")

    ss = sub.add_parser("sessions")
    ss.add_argument("--user-id", required=True)

    sl = sub.add_parser("logout-user")
    sl.add_argument("--user-id", required=True)

    se = sub.add_parser("evaluate", help="Evaluate UMA permissions for a resource server")
    se.add_argument("--access-token", required=True)
    se.add_argument("--audience", required=True)
    se.add_argument("--permission", action="append", dest="permissions", required=True)
    se.add_argument("--mode", default="decision", choices=["decision", "permissions", ""])

    return parser


def _admin_token(oidc: OIDCService, args, parser: argparse.ArgumentParser) -> str:
    if not args.admin_pass:
        parser.error("Admin password required (--admin-pass or KEYCLOAK_ADMIN_PASSWORD)")
    print(f"[kcadmin] Authenticating as '{args.admin_user}' on realm '{args.auth_realm}'", file=sys.stderr)
    return oidc.login_admin(args.admin_user, args.admin_pass, args.auth_realm).access_token


def run(args, parser: argparse.ArgumentParser) -> None:
    try:
        settings = load_settings()
    except ValueError as e:
        parser.error(str(e))
    client = KeycloakClient(
        args.kc_url,
        timeout=settings.timeout,
        verify=settings.verify_ssl,
        legacy_wildfly=args.legacy_wildfly or settings.legacy_wildfly,
    )
    oidc = OIDCService(client)
    realm = args.realm

    # OIDC commands authenticate as the client or the end user
    if args.cmd == "token":
        if not args.client_id:
            parser.error("Command requires --client-id")
        if args.username:
            jwt = oidc.get_token(realm, TokenOptions(
                client_id=args.client_id,
                client_secret=args.client_secret,
                grant_type="password",
                username=args.username,
                password=args.password or "",
                totp=args.totp,
                scopes=args.scopes or ["openid"],
            ))
        else:
            jwt = oidc.login_client(args.client_id, args.client_secret or "", realm, scopes=args.scopes)
        _emit(jwt)
        return
    if args.cmd == "userinfo":
        _emit(oidc.get_raw_user_info(args.access_token, realm))
        return
    if args.cmd == "introspect":
        if not args.client_id or not args.client_secret:
            parser.error("Command requires --client-id and --client-secret")
        _emit(oidc.introspect_token(args.token, args.client_id, args.client_secret, realm))
        return
    if args.cmd == "evaluate":
        options = RequestingPartyTokenOptions(audience=args.audience, permissions=args.permissions)
        if args.mode == "decision":
            _emit(oidc.get_requesting_party_permission_decision(args.access_token, realm, options))
        elif args.mode == "permissions":
            _emit(oidc.get_requesting_party_permissions(args.access_token, realm, options))
        else:
            _emit(oidc.evaluate_permission(args.access_token, realm, args.audience, "", args.permissions))
        return

    # Admin commands
    token = _admin_token(oidc, args, parser)
    users = UserService(client)

    if args.cmd == "users":
        params = GetUsersParams(
            search=args.search,
            username=args.username,
            exact=True if args.exact else None,
            first=args.first,
            max=args.max,
        )
        _emit(users.get_users(token, realm, params))
    elif args.cmd == "user-count":
        _emit(users.get_user_count(token, realm))
    elif args.cmd == "create-user":
        user = User(
            username=args.username,
            email=args.email,
            first_name=args.first,
            last_name=args.last,
            enabled=True,
        )
        user_id = users.create_user(token, realm, user)
        print(f"[kcadmin] User '{args.username}' created (id={user_id})", file=sys.stderr)
        if args.password:
            users.set_password(token, user_id, realm, args.password, args.temporary)
            print(f"[kcadmin] Password set for '{args.username}'", file=sys.stderr)
        _emit({"id": user_id})
    elif args.cmd == "delete-user":
        users.delete_user(token, realm, args.user_id)
        print(f"[kcadmin] User '{args.user_id}' deleted", file=sys.stderr)
    elif args.cmd == "set-password":
        users.set_password(token, args.user_id, realm, args.password, args.temporary)
        print(f"[kcadmin] Password set for '{args.user_id}'", file=sys.stderr)
    elif args.cmd == "realm-roles":
        _emit(RoleService(client).get_realm_roles(token, realm))
    elif args.cmd == "grant-role":
        roles = RoleService(client)
        role = roles.get_realm_role(token, realm, args.role)
        roles.add_realm_role_to_user(token, realm, args.user_id, [role])
        print(f"[kcadmin] Granted role '{args.role}' to '{args.user_id}'", file=sys.stderr)
    elif args.cmd == "groups":
        _emit(GroupService(client).get_groups(token, realm, GetGroupsParams(search=args.search)))
    elif args.cmd == "sessions":
        _emit(SessionService(client).get_user_sessions(token, realm, args.user_id))
    elif args.cmd == "logout-user":
        SessionService(client).logout_all_sessions(token, realm, args.user_id)
        print(f"[kcadmin] Sessions of '{args.user_id}' revoked", file=sys.stderr)
    else:
        parser.print_help()


def main() -> None:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        return

    try:
        run(args, parser)
    except KeycloakError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
