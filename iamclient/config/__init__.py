"""Configuration module for the Keycloak client."""
from .settings import ClientSettings, load_settings

__all__ = ["ClientSettings", "load_settings"]
