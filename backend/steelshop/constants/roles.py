"""Central role and access rule definitions.

Roles are a closed set; any role string outside ALL_ROLES is treated as unknown
and denied everywhere. Access rules are the single declarative table consulted
for both page navigation and API endpoints (endpoints name the page resource
they belong to).
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List

SUPERADMIN = 'superadmin'
CLERK = 'clerk'
SUPERVISOR = 'supervisor'
CUTTER = 'cutter'
DELIVERY = 'delivery'
GUEST = 'guest'

ALL_ROLES = (SUPERADMIN, CLERK, SUPERVISOR, CUTTER, DELIVERY, GUEST)

# Newly registered identities wait here until a superadmin assigns a role.
DEFAULT_ROLE = GUEST

ROLE_DISPLAY_NAMES: Dict[str, str] = {
    SUPERADMIN: 'Superadmin',
    CLERK: 'Office Clerk',
    SUPERVISOR: 'Production Supervisor',
    CUTTER: 'Steel Cutter',
    DELIVERY: 'Delivery Staff',
    GUEST: 'Guest',
}


@dataclass(frozen=True)
class AccessRule:
    resource_path: str
    allowed_roles: FrozenSet[str] = field(default_factory=frozenset)
    require_auth: bool = True


AUTH_PATH = '/auth'

ACCESS_RULES: List[AccessRule] = [
    AccessRule(AUTH_PATH, frozenset(), require_auth=False),
    AccessRule('/', frozenset()),
    AccessRule('/guest', frozenset({GUEST})),
    AccessRule('/superadmin', frozenset({SUPERADMIN})),
    AccessRule('/new-job-order', frozenset({SUPERADMIN, CLERK, SUPERVISOR})),
    AccessRule('/job-order/:id', frozenset({SUPERADMIN, CLERK, SUPERVISOR, CUTTER, DELIVERY})),
    AccessRule('/customer/:id', frozenset({SUPERADMIN, CLERK, SUPERVISOR})),
    AccessRule('/production', frozenset({SUPERADMIN, SUPERVISOR, CUTTER})),
    AccessRule('/payroll', frozenset({SUPERADMIN, CLERK})),
]

RULES_BY_PATH: Dict[str, AccessRule] = {r.resource_path: r for r in ACCESS_RULES}

# Where each role lands after sign-in; roles not listed stay on the main dashboard.
LANDING_PATHS: Dict[str, str] = {
    GUEST: '/guest',
    SUPERADMIN: '/superadmin',
}

__all__ = [
    'SUPERADMIN', 'CLERK', 'SUPERVISOR', 'CUTTER', 'DELIVERY', 'GUEST',
    'ALL_ROLES', 'DEFAULT_ROLE', 'ROLE_DISPLAY_NAMES', 'AccessRule', 'AUTH_PATH',
    'ACCESS_RULES', 'RULES_BY_PATH', 'LANDING_PATHS',
]
