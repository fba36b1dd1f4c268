"""
Meeting Permissions Module

Role-based permission table for the meeting features. The meeting core never
checks permissions itself; callers (the HTTP layer) gate each operation
before invoking it.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable


class Role(Enum):
    """User roles of the cooperative application"""
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class Permission(Enum):
    """Meeting permissions"""
    VIEW_MEETINGS = "meetings.view"
    CREATE_MEETING = "meetings.create"
    EDIT_MEETING = "meetings.edit"
    DELETE_MEETING = "meetings.delete"
    VOTE = "meetings.vote"


ROLE_PERMISSIONS: Dict[Permission, FrozenSet[Role]] = {
    Permission.VIEW_MEETINGS: frozenset({Role.ADMIN, Role.MEMBER}),
    Permission.CREATE_MEETING: frozenset({Role.ADMIN}),
    Permission.EDIT_MEETING: frozenset({Role.ADMIN}),
    Permission.DELETE_MEETING: frozenset({Role.ADMIN}),
    Permission.VOTE: frozenset({Role.ADMIN, Role.MEMBER}),
}


def parse_role(value: str) -> Role:
    """Parse a role name; raises ValueError for unknown roles"""
    return Role(value.strip().lower())


def has_permission(role: Role, permission: Permission) -> bool:
    """Check if a role has a specific permission"""
    return role in ROLE_PERMISSIONS.get(permission, frozenset())


def has_any_permission(role: Role, permissions: Iterable[Permission]) -> bool:
    """Check if a role has any of the specified permissions"""
    return any(has_permission(role, p) for p in permissions)


def has_all_permissions(role: Role, permissions: Iterable[Permission]) -> bool:
    """Check if a role has all of the specified permissions"""
    return all(has_permission(role, p) for p in permissions)
