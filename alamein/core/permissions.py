"""
Role-based permission table.
"""

from typing import Dict, FrozenSet, Union

from .enums import Capability, UserRole


_STUDENT = frozenset({
    Capability.VIEW_COURSES,
    Capability.ENROLL_SELF,
    Capability.VIEW_OWN_RECORD,
})

_FACULTY = _STUDENT | {
    Capability.MANAGE_COURSES,
    Capability.SUBMIT_GRADES,
    Capability.VIEW_STUDENTS,
}

_ADMIN_STAFF = _FACULTY | {
    Capability.MANAGE_STUDENTS,
    Capability.MANAGE_FACULTY,
    Capability.VIEW_REPORTS,
    Capability.VIEW_ANY_USER,
}

ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.STUDENT: _STUDENT,
    UserRole.FACULTY: frozenset(_FACULTY),
    UserRole.ADMIN_STAFF: frozenset(_ADMIN_STAFF),
    UserRole.SYSTEM_ADMIN: frozenset(Capability),
}


def _as_capability(capability: Union[Capability, str]) -> Capability:
    if isinstance(capability, Capability):
        return capability
    try:
        return Capability(capability.lower())
    except ValueError:
        return Capability[capability.upper()]


def has_capability(role: UserRole, capability: Union[Capability, str]) -> bool:
    """
    Check whether a role grants a capability.

    ``capability`` may be a Capability member or its name/value
    (``"manage_users"`` or ``"MANAGE_USERS"``). Unknown names are denied.
    """
    try:
        wanted = _as_capability(capability)
    except (KeyError, AttributeError):
        return False
    return wanted in ROLE_CAPABILITIES.get(role, frozenset())


def capabilities_for(role: UserRole) -> FrozenSet[Capability]:
    return ROLE_CAPABILITIES.get(role, frozenset())


def is_admin(role: UserRole) -> bool:
    """Administrative roles are the ones allowed to look up any user."""
    return has_capability(role, Capability.VIEW_ANY_USER)
