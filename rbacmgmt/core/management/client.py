"""Low-level HTTP transport for the cluster management API.

Holds the cluster connection details and executes raw requests. Status codes
are not interpreted here; callers map them to domain errors.
"""
from __future__ import annotations
import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Dict

import requests
from requests.auth import HTTPBasicAuth

from .exceptions import TransportError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 5
MGMT = "MGMT"


@dataclass
class HttpRequest:
    """A single request against one of the cluster services."""

    method: str
    path: str
    body: Optional[str] = None
    content_type: Optional[str] = None
    timeout: Optional[float] = None
    service_type: str = MGMT


@dataclass
class HttpResponse:
    """Raw response: status code and undecoded text body."""

    status_code: int
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    url: str = ""


class ManagementClient:
    """Connection details and HTTP session for a cluster.

    Usage:
        client = ManagementClient("http://127.0.0.1:8091", "Administrator", "password")
        resp = client.send(HttpRequest("GET", "/settings/rbac/roles"))
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT,
        verify: bool = True,
        endpoints: Optional[Dict[str, str]] = None,
    ):
        """Initialize the management client.

        Args:
            base_url: Management endpoint (defaults to CLUSTER_MGMT_URL env var)
            username: Basic-auth username
            password: Basic-auth password
            timeout: Default request timeout in seconds
            verify: Verify TLS certificates
            endpoints: Extra service-type to base URL mappings
        """
        self.base_url = (base_url or os.environ.get("CLUSTER_MGMT_URL", "http://127.0.0.1:8091")).rstrip("/")
        self.timeout = timeout
        self.verify = verify
        self.endpoints = {MGMT: self.base_url}
        for service_type, url in (endpoints or {}).items():
            self.endpoints[service_type] = url.rstrip("/")
        self._session = requests.Session()
        if username:
            self._session.auth = HTTPBasicAuth(username, password or "")

    def service_url(self, service_type: str) -> str:
        """Return the base URL serving ``service_type``.

        Raises:
            TransportError: If no endpoint is known for the service
        """
        try:
            return self.endpoints[service_type]
        except KeyError:
            raise TransportError(f"no endpoint available for service '{service_type}'") from None

    def send(self, spec: HttpRequest) -> HttpResponse:
        """Execute a request synchronously.

        Args:
            spec: Request description

        Returns:
            HttpResponse with the raw status and body

        Raises:
            TransportError: On connection failure or timeout
        """
        url = f"{self.service_url(spec.service_type)}{spec.path}"
        headers = {}
        if spec.content_type:
            headers["Content-Type"] = spec.content_type
        timeout = spec.timeout if spec.timeout is not None else self.timeout

        logger.debug("%s %s (timeout=%s)", spec.method, url, timeout)
        try:
            resp = self._session.request(
                spec.method,
                url,
                data=spec.body,
                headers=headers,
                timeout=timeout,
                verify=self.verify,
            )
        except requests.Timeout as e:
            raise TransportError(f"{spec.method} {url} timed out after {timeout}s") from e
        except requests.RequestException as e:
            raise TransportError(f"{spec.method} {url} failed: {e}") from e

        return HttpResponse(
            status_code=resp.status_code,
            body=resp.text,
            headers=dict(resp.headers),
            url=resp.url,
        )

    def close(self) -> None:
        self._session.close()


class HttpExecutor:
    """Awaitable transport running ManagementClient requests off the event loop."""

    def __init__(self, client: ManagementClient):
        self.client = client

    async def request(self, spec: HttpRequest) -> HttpResponse:
        return await asyncio.to_thread(self.client.send, spec)

    def close(self) -> None:
        self.client.close()


def create_client_from_config(config) -> ManagementClient:
    """Create a ManagementClient from a ClientConfig."""
    return ManagementClient(
        config.mgmt_url,
        config.username,
        config.password,
        timeout=config.request_timeout,
        verify=config.verify_tls,
    )
