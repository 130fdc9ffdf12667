"""HTTP client binding to the Keycloak REST API.

To use the Keycloak services:
    from iamclient.core.keycloak import KeycloakClient, OIDCService, UserService

To load settings from the environment:
    from iamclient.config import load_settings
"""
