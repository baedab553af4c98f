"""Fixed role -> permission table used by the authorization dependencies."""

from collections.abc import Iterable

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "admin": frozenset(
        {
            "view_users",
            "create_users",
            "update_users",
            "delete_users",
            "view_reservations",
            "manage_reservations",
            "view_settings",
            "update_settings",
            "view_logs",
            "manage_admins",
        }
    ),
    "manager": frozenset(
        {
            "view_users",
            "view_reservations",
            "manage_reservations",
            "view_settings",
        }
    ),
    "user": frozenset(
        {
            "view_profile",
            "update_profile",
            "create_reservations",
            "view_own_reservations",
        }
    ),
}


def permissions_for(role: str) -> frozenset[str]:
    """Permissions granted to a role; unknown roles get none."""
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permissions(role: str, required: Iterable[str]) -> bool:
    """True iff the role holds every required permission."""
    granted = permissions_for(role)
    return all(perm in granted for perm in required)
