"""Configuration module for the RBAC management client."""
from .settings import ClientConfig, load_settings

__all__ = ["ClientConfig", "load_settings"]
