"""Cluster management API client library.

This package provides a typed, testable interface to the cluster RBAC
administration API.

Architecture:
- client.py: HTTP transport and cluster connection details
- models.py: Users, groups, roles and role origins
- promise.py: Awaitable / callback dual-mode execution
- users.py: UserManager operations (users, groups, roles)
- exceptions.py: Typed exceptions for error handling

Usage:
    from rbacmgmt.core.management import ManagementClient, HttpExecutor, UserManager

    client = ManagementClient("http://127.0.0.1:8091", "Administrator", "password")
    manager = UserManager(HttpExecutor(client))

    user = await manager.get_user("alice")
    manager.get_roles(callback=lambda err, roles: print(err or roles))
"""
from .client import (
    ManagementClient,
    HttpExecutor,
    HttpRequest,
    HttpResponse,
    create_client_from_config,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    ManagementError,
    HttpError,
    TransportError,
    NotFoundError,
    UserNotFoundError,
    GroupNotFoundError,
    OperationFailedError,
    make_http_error,
)
from .models import (
    Origin,
    Role,
    RoleAndDescription,
    RoleAndOrigin,
    User,
    UserAndMetadata,
    Group,
)
from .promise import wrap_async
from .users import UserManager, DEFAULT_DOMAIN

__all__ = [
    # Client
    "ManagementClient",
    "HttpExecutor",
    "HttpRequest",
    "HttpResponse",
    "create_client_from_config",
    "REQUEST_TIMEOUT",

    # Exceptions
    "ManagementError",
    "HttpError",
    "TransportError",
    "NotFoundError",
    "UserNotFoundError",
    "GroupNotFoundError",
    "OperationFailedError",
    "make_http_error",

    # Models
    "Origin",
    "Role",
    "RoleAndDescription",
    "RoleAndOrigin",
    "User",
    "UserAndMetadata",
    "Group",

    # Operations
    "wrap_async",
    "UserManager",
    "DEFAULT_DOMAIN",
]
