"""RBAC domain model: users, groups, roles and role origins.

Each entity maps a management API record (``from_data``) and, where the
entity can be written back, produces the mutation payload (``to_data``).
Instances are rebuilt from every response and never shared between calls.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union, Iterable

logger = logging.getLogger(__name__)

_ROLE_STR_RE = re.compile(r"^(?P<name>[^\[\]]+)\[(?P<bucket>[^\[\]]+)\]$")


@dataclass
class Origin:
    """Provenance of a role grant ("user" for direct grants, "group" for inherited ones)."""

    type: str = ""
    name: Optional[str] = None

    @classmethod
    def from_data(cls, data: dict) -> "Origin":
        return cls(type=data.get("type", ""), name=data.get("name"))


@dataclass
class Role:
    """A role, optionally scoped to a bucket."""

    name: str = ""
    bucket: Optional[str] = None

    @classmethod
    def from_data(cls, data: dict) -> "Role":
        return cls(name=data.get("role", ""), bucket=data.get("bucket_name"))

    @staticmethod
    def to_str(role: Union["Role", str]) -> str:
        """Return the canonical ``name`` / ``name[bucket]`` form of a role.

        Args:
            role: Role instance or an already canonical role string

        Returns:
            Canonical role string
        """
        if isinstance(role, str):
            return role
        if role.bucket:
            return f"{role.name}[{role.bucket}]"
        return role.name

    @classmethod
    def from_str(cls, value: str) -> "Role":
        """Parse the canonical ``name`` / ``name[bucket]`` form."""
        match = _ROLE_STR_RE.match(value)
        if match:
            return cls(name=match.group("name"), bucket=match.group("bucket"))
        return cls(name=value)

    def __str__(self) -> str:
        return Role.to_str(self)


@dataclass
class RoleAndDescription(Role):
    """Role catalog entry with its display name and description."""

    display_name: str = ""
    description: str = ""

    @classmethod
    def from_data(cls, data: dict) -> "RoleAndDescription":
        role = Role.from_data(data)
        return cls(
            name=role.name,
            bucket=role.bucket,
            display_name=data.get("name", ""),
            description=data.get("description", data.get("desc", "")),
        )


@dataclass
class RoleAndOrigin(Role):
    """Role together with the origins that granted it."""

    origins: list[Origin] = field(default_factory=list)

    @classmethod
    def from_data(cls, data: dict) -> "RoleAndOrigin":
        role = Role.from_data(data)
        return cls(
            name=role.name,
            bucket=role.bucket,
            origins=[Origin.from_data(origin) for origin in data.get("origins") or []],
        )

    def has_user_origin(self) -> bool:
        """Return True when the role was granted directly to the user.

        A role without any origin is an implicit direct grant.
        """
        if not self.origins:
            return True
        return any(origin.type == "user" for origin in self.origins)


def _user_roles(roles_data: Iterable[dict]) -> list[Role]:
    # Group-inherited roles are only visible through effective roles
    return [
        Role.from_data(role_data)
        for role_data in roles_data
        if RoleAndOrigin.from_data(role_data).has_user_origin()
    ]


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.warning("Ignoring unparseable password_change_date %r", value)
        return None


@dataclass
class User:
    """A cluster user as written by upsert operations.

    ``password`` is write-only: it is never populated from the server.
    """

    username: str = ""
    display_name: str = ""
    groups: list[str] = field(default_factory=list)
    roles: list[Role] = field(default_factory=list)
    password: str = ""

    @classmethod
    def from_data(cls, data: dict) -> "User":
        return cls(
            username=data.get("id", ""),
            display_name=data.get("name", ""),
            groups=list(data.get("groups") or []),
            roles=_user_roles(data.get("roles") or []),
        )

    @staticmethod
    def to_data(user: "User") -> dict:
        """Build the mutation payload for a user.

        Username travels in the request path and roles are not part of this
        payload, so neither is emitted.
        """
        payload = {"name": user.display_name}
        if user.groups:
            payload["groups"] = list(user.groups)
        if user.password:
            payload["password"] = user.password
        return payload


@dataclass
class UserAndMetadata(User):
    """A user as returned by the server, with domain and effective role data."""

    domain: str = ""
    effective_roles: list[Role] = field(default_factory=list)
    effective_roles_and_origins: list[RoleAndOrigin] = field(default_factory=list)
    password_changed: Optional[datetime] = None
    external_groups: list[str] = field(default_factory=list)

    @classmethod
    def from_data(cls, data: dict) -> "UserAndMetadata":
        roles_data = data.get("roles") or []
        return cls(
            username=data.get("id", ""),
            display_name=data.get("name", ""),
            groups=list(data.get("groups") or []),
            roles=_user_roles(roles_data),
            domain=data.get("domain", ""),
            effective_roles=[Role.from_data(role_data) for role_data in roles_data],
            effective_roles_and_origins=[RoleAndOrigin.from_data(role_data) for role_data in roles_data],
            password_changed=_parse_timestamp(data.get("password_change_date")),
            external_groups=list(data.get("external_groups") or []),
        )

    def user(self) -> User:
        """Return the plain User view (directly granted roles only)."""
        return User(
            username=self.username,
            display_name=self.display_name,
            groups=list(self.groups),
            roles=[Role(name=role.name, bucket=role.bucket) for role in self.roles],
        )


@dataclass
class Group:
    """A server-side group and the roles its members inherit."""

    name: str = ""
    description: str = ""
    roles: list[Union[Role, str]] = field(default_factory=list)
    ldap_group_reference: Optional[str] = None

    @classmethod
    def from_data(cls, data: dict) -> "Group":
        return cls(
            name=data.get("id", ""),
            description=data.get("description", ""),
            roles=[Role.from_data(role_data) for role_data in data.get("roles") or []],
            ldap_group_reference=data.get("ldap_group_ref"),
        )

    @staticmethod
    def to_data(group: "Group") -> dict:
        """Build the mutation payload for a group.

        Roles may be given as Role instances or canonical strings.
        """
        payload = {
            "description": group.description or "",
            "roles": [Role.to_str(role) for role in group.roles or []],
        }
        if group.ldap_group_reference:
            payload["ldap_group_ref"] = group.ldap_group_reference
        return payload
