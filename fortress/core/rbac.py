"""Role-based access control: static role -> permission table."""

from fortress.domain.models.transaction import Role

# =============================================================================
# Permission Constants
# =============================================================================

TRANSACTION_CREATE = "transaction:create"
TRANSACTION_READ_OWN = "transaction:read:own"
TRANSACTION_READ_ALL = "transaction:read:all"
TRANSACTION_APPROVE = "transaction:approve"
TRANSACTION_REJECT = "transaction:reject"
AUDIT_READ = "audit:read"
PROFILE_READ_OWN = "profile:read:own"
PROFILE_READ_ALL = "profile:read:all"
USER_MANAGE = "user:manage"

ROLE_PERMISSIONS: dict[Role, frozenset[str]] = {
    Role.STANDARD: frozenset({TRANSACTION_CREATE, TRANSACTION_READ_OWN, PROFILE_READ_OWN}),
    Role.REVIEWER: frozenset(
        {
            TRANSACTION_CREATE,
            TRANSACTION_READ_OWN,
            TRANSACTION_READ_ALL,
            TRANSACTION_APPROVE,
            TRANSACTION_REJECT,
            AUDIT_READ,
            PROFILE_READ_OWN,
            PROFILE_READ_ALL,
            USER_MANAGE,
        }
    ),
    Role.AUDITOR: frozenset({TRANSACTION_READ_ALL, AUDIT_READ, PROFILE_READ_ALL}),
}


def has_permission(role: Role | str, permission: str) -> bool:
    """Check if a role has a specific permission. Unknown roles have none."""
    try:
        role = Role(role)
    except ValueError:
        return False
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def has_any_permission(role: Role | str, permissions: list[str]) -> bool:
    return any(has_permission(role, p) for p in permissions)


def has_all_permissions(role: Role | str, permissions: list[str]) -> bool:
    return all(has_permission(role, p) for p in permissions)


def get_permissions(role: Role | str) -> list[str]:
    """Get all permissions for a role, sorted."""
    try:
        return sorted(ROLE_PERMISSIONS[Role(role)])
    except (KeyError, ValueError):
        return []
