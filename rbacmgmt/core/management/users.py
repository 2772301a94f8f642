"""User, group and role management operations."""
from __future__ import annotations
import json
import logging
from typing import Optional, List
from urllib.parse import quote, urlencode

from .client import HttpExecutor, HttpRequest, HttpResponse, MGMT, create_client_from_config
from .exceptions import (
    OperationFailedError,
    UserNotFoundError,
    GroupNotFoundError,
    make_http_error,
)
from .models import Group, RoleAndDescription, User, UserAndMetadata
from .promise import Callback, wrap_async

logger = logging.getLogger(__name__)

DEFAULT_DOMAIN = "local"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _segment(value: str) -> str:
    return quote(value, safe="")


def _form_encode(payload: dict) -> str:
    """Form-encode a payload, joining list values with commas."""
    fields = {
        key: ",".join(value) if isinstance(value, list) else value
        for key, value in payload.items()
    }
    return urlencode(fields)


class UserManager:
    """Manage users, groups and roles of a cluster.

    Every operation starts immediately and returns an awaitable task. Pass
    ``callback=`` to receive ``(err, result)`` instead.

    Usage:
        manager = UserManager(HttpExecutor(ManagementClient(url, "Administrator", "password")))
        user = await manager.get_user("alice")
        manager.drop_user("bob", callback=lambda err, ok: ...)
    """

    def __init__(self, transport, default_domain: str = DEFAULT_DOMAIN):
        """Initialize the user manager.

        Args:
            transport: Object exposing ``async request(HttpRequest) -> HttpResponse``
            default_domain: Domain used when a user operation names none
        """
        self._http = transport
        self.default_domain = default_domain

    @classmethod
    def from_config(cls, config) -> "UserManager":
        """Build a manager backed by the default HTTP transport."""
        return cls(HttpExecutor(create_client_from_config(config)), default_domain=config.default_domain)

    def close(self) -> None:
        """Release the transport's connections, if it holds any."""
        close = getattr(self._http, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "UserManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def _request(
        self,
        method: str,
        path: str,
        timeout: Optional[float] = None,
        body: Optional[str] = None,
    ) -> HttpResponse:
        spec = HttpRequest(
            method=method,
            path=path,
            body=body,
            content_type=FORM_CONTENT_TYPE if body is not None else None,
            timeout=timeout,
            service_type=MGMT,
        )
        logger.debug("RBAC request %s %s", method, path)
        return await self._http.request(spec)

    @staticmethod
    def _check(res: HttpResponse, action: str, not_found=None) -> None:
        if res.status_code == 200:
            return
        baseerr = make_http_error(res)
        logger.warning("%s (status=%s)", action, res.status_code)
        if res.status_code == 404 and not_found is not None:
            raise not_found(baseerr) from baseerr
        raise OperationFailedError(action, baseerr) from baseerr

    def _domain(self, domain_name: Optional[str]) -> str:
        return domain_name or self.default_domain

    # ─────────────────────────────────────────────────────────────────────
    # Users
    # ─────────────────────────────────────────────────────────────────────

    def get_user(
        self,
        username: str,
        *,
        domain_name: Optional[str] = None,
        timeout: Optional[float] = None,
        callback: Optional[Callback] = None,
    ):
        """Fetch a user with its metadata.

        Args:
            username: Username to fetch
            domain_name: User domain (default: "local")
            timeout: Per-call timeout forwarded to the transport
            callback: Optional completion handler ``(err, UserAndMetadata)``

        Returns:
            Awaitable resolving to UserAndMetadata

        Raises:
            UserNotFoundError: If the user does not exist
            OperationFailedError: On any other non-200 status
        """

        async def _get_user() -> UserAndMetadata:
            domain = self._domain(domain_name)
            res = await self._request("GET", f"/settings/rbac/users/{_segment(domain)}/{_segment(username)}", timeout)
            self._check(res, "failed to get the user", UserNotFoundError)
            return UserAndMetadata.from_data(json.loads(res.body))

        return wrap_async(_get_user, callback)

    def get_all_users(
        self,
        *,
        domain_name: Optional[str] = None,
        timeout: Optional[float] = None,
        callback: Optional[Callback] = None,
    ):
        """List every user of a domain.

        Returns:
            Awaitable resolving to a list of UserAndMetadata
        """

        async def _get_all_users() -> List[UserAndMetadata]:
            domain = self._domain(domain_name)
            res = await self._request("GET", f"/settings/rbac/users/{_segment(domain)}", timeout)
            self._check(res, "failed to get users")
            return [UserAndMetadata.from_data(user_data) for user_data in json.loads(res.body)]

        return wrap_async(_get_all_users, callback)

    def upsert_user(
        self,
        user: User,
        *,
        domain_name: Optional[str] = None,
        timeout: Optional[float] = None,
        callback: Optional[Callback] = None,
    ):
        """Create or replace a user.

        Args:
            user: User to write (roles are not part of the payload)
            domain_name: User domain (default: "local")
            timeout: Per-call timeout forwarded to the transport
            callback: Optional completion handler ``(err, True)``

        Returns:
            Awaitable resolving to True
        """

        async def _upsert_user() -> bool:
            domain = self._domain(domain_name)
            body = _form_encode(User.to_data(user))
            res = await self._request(
                "PUT",
                f"/settings/rbac/users/{_segment(domain)}/{_segment(user.username)}",
                timeout,
                body,
            )
            self._check(res, "failed to upsert user")
            logger.info("Upserted user '%s' in domain '%s'", user.username, domain)
            return True

        return wrap_async(_upsert_user, callback)

    def drop_user(
        self,
        username: str,
        *,
        domain_name: Optional[str] = None,
        timeout: Optional[float] = None,
        callback: Optional[Callback] = None,
    ):
        """Delete a user.

        Returns:
            Awaitable resolving to True

        Raises:
            UserNotFoundError: If the user does not exist
            OperationFailedError: On any other non-200 status
        """

        async def _drop_user() -> bool:
            domain = self._domain(domain_name)
            res = await self._request("DELETE", f"/settings/rbac/users/{_segment(domain)}/{_segment(username)}", timeout)
            self._check(res, "failed to drop the user", UserNotFoundError)
            logger.info("Dropped user '%s' from domain '%s'", username, domain)
            return True

        return wrap_async(_drop_user, callback)

    # ─────────────────────────────────────────────────────────────────────
    # Roles
    # ─────────────────────────────────────────────────────────────────────

    def get_roles(self, *, timeout: Optional[float] = None, callback: Optional[Callback] = None):
        """List the role catalog.

        Returns:
            Awaitable resolving to a list of RoleAndDescription
        """

        async def _get_roles() -> List[RoleAndDescription]:
            res = await self._request("GET", "/settings/rbac/roles", timeout)
            self._check(res, "failed to get roles")
            return [RoleAndDescription.from_data(role_data) for role_data in json.loads(res.body)]

        return wrap_async(_get_roles, callback)

    # ─────────────────────────────────────────────────────────────────────
    # Groups
    # ─────────────────────────────────────────────────────────────────────

    def get_group(self, group_name: str, *, timeout: Optional[float] = None, callback: Optional[Callback] = None):
        """Fetch a group.

        Returns:
            Awaitable resolving to Group

        Raises:
            GroupNotFoundError: If the group does not exist
            OperationFailedError: On any other non-200 status
        """

        async def _get_group() -> Group:
            res = await self._request("GET", f"/settings/rbac/groups/{_segment(group_name)}", timeout)
            self._check(res, "failed to get the group", GroupNotFoundError)
            return Group.from_data(json.loads(res.body))

        return wrap_async(_get_group, callback)

    def get_all_groups(self, *, timeout: Optional[float] = None, callback: Optional[Callback] = None):
        """List every group.

        Returns:
            Awaitable resolving to a list of Group
        """

        async def _get_all_groups() -> List[Group]:
            res = await self._request("GET", "/settings/rbac/groups", timeout)
            self._check(res, "failed to get groups")
            return [Group.from_data(group_data) for group_data in json.loads(res.body)]

        return wrap_async(_get_all_groups, callback)

    def upsert_group(self, group: Group, *, timeout: Optional[float] = None, callback: Optional[Callback] = None):
        """Create or replace a group.

        Roles may be Role instances or canonical ``name[bucket]`` strings;
        they are sent comma-joined.

        Returns:
            Awaitable resolving to True
        """

        async def _upsert_group() -> bool:
            body = _form_encode(Group.to_data(group))
            res = await self._request("PUT", f"/settings/rbac/groups/{_segment(group.name)}", timeout, body)
            self._check(res, "failed to upsert group")
            logger.info("Upserted group '%s'", group.name)
            return True

        return wrap_async(_upsert_group, callback)

    def drop_group(self, group_name: str, *, timeout: Optional[float] = None, callback: Optional[Callback] = None):
        """Delete a group.

        Returns:
            Awaitable resolving to True

        Raises:
            GroupNotFoundError: If the group does not exist
            OperationFailedError: On any other non-200 status
        """

        async def _drop_group() -> bool:
            res = await self._request("DELETE", f"/settings/rbac/groups/{_segment(group_name)}", timeout)
            self._check(res, "failed to drop the group", GroupNotFoundError)
            logger.info("Dropped group '%s'", group_name)
            return True

        return wrap_async(_drop_group, callback)
