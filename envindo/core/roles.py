from enum import Enum
from typing import Dict, FrozenSet


class Role(str, Enum):
    SUPERADMIN = "superadmin"
    ADMIN_KEUANGAN = "admin_keuangan"
    USER = "user"


# An empty set means "any authenticated identity".
ANY_AUTHENTICATED: FrozenSet[Role] = frozenset()
ADMIN_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN_KEUANGAN, Role.SUPERADMIN})
SUPERADMIN_ONLY: FrozenSet[Role] = frozenset({Role.SUPERADMIN})


# Required role set per route group. Routers look their policy up here
# instead of passing role lists around.
ROUTE_POLICY: Dict[str, FrozenSet[Role]] = {
    "user": ANY_AUTHENTICATED,
    "dashboard/user": ANY_AUTHENTICATED,
    "dashboard/admin": ADMIN_ROLES,
    "dashboard/superadmin": SUPERADMIN_ONLY,
    "services": ANY_AUTHENTICATED,
    "transactions": ANY_AUTHENTICATED,
    "transactions/status": ADMIN_ROLES,
    "waste-collection": ANY_AUTHENTICATED,
    "waste-collection/operate": ADMIN_ROLES,
    "invoices": ANY_AUTHENTICATED,
    "invoices/manage": ADMIN_ROLES,
    "documents": ANY_AUTHENTICATED,
    "manifests": ANY_AUTHENTICATED,
    "manifests/approve": SUPERADMIN_ONLY,
    "manifests/finish": ADMIN_ROLES,
    "admin": ADMIN_ROLES,
    "superadmin": SUPERADMIN_ONLY,
}


def allow(required_roles: FrozenSet[Role], actual_role: Role) -> bool:
    """Role-set membership check. There is no implicit hierarchy: a superadmin
    only passes a route that lists ``Role.SUPERADMIN`` explicitly."""
    if not required_roles:
        return True
    return actual_role in required_roles


def is_admin(role: Role) -> bool:
    return role in ADMIN_ROLES
