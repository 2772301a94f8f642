"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("Failed to read /run/secrets/%s: %s", secret_name, e)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.info("Loaded %s from environment (fallback)", env_var)
            return secret_value

    return None


def _env_bool(var_name: str, default: str) -> bool:
    return os.environ.get(var_name, default).strip().lower() == "true"


@dataclass
class ClientConfig:
    """Cluster management client configuration."""
    demo_mode: bool
    password: str

    mgmt_url: str = "http://127.0.0.1:8091"
    username: str = "Administrator"
    request_timeout: float = 5
    verify_tls: bool = True
    default_domain: str = "local"


def load_settings() -> ClientConfig:
    """Load client settings from environment and /run/secrets."""
    demo_mode = _env_bool("DEMO_MODE", "false")

    password = _load_secret_from_file("cluster_password", "CLUSTER_PASSWORD")
    if not password:
        if not demo_mode:
            raise RuntimeError("CLUSTER_PASSWORD not found in /run/secrets or environment")
        password = "password"
        logger.warning("[demo-mode] Using default cluster password. Do not deploy with these defaults.")

    timeout_raw = os.environ.get("CLUSTER_REQUEST_TIMEOUT", "5")
    try:
        request_timeout = float(timeout_raw)
    except ValueError:
        raise RuntimeError(f"CLUSTER_REQUEST_TIMEOUT must be a number of seconds, got '{timeout_raw}'") from None

    config = ClientConfig(
        demo_mode=demo_mode,
        password=password,
        mgmt_url=os.environ.get("CLUSTER_MGMT_URL", "http://127.0.0.1:8091").rstrip("/"),
        username=os.environ.get("CLUSTER_USERNAME", "Administrator"),
        request_timeout=request_timeout,
        verify_tls=_env_bool("CLUSTER_VERIFY_TLS", "true"),
        default_domain=os.environ.get("RBAC_DEFAULT_DOMAIN", "local").strip() or "local",
    )

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    logger.info("Mode=%s; mgmt_url=%s; username=%s", mode_label, config.mgmt_url, config.username)
    return config
