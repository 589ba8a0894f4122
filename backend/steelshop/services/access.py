"""Access control evaluation.

Pure decision logic over the declarative rule table in `constants.roles`. Nothing
here touches Flask or the database except the last-superadmin guard, which takes
an explicit session.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional

from sqlalchemy import func, select

from steelshop.constants.roles import (
    ALL_ROLES, AUTH_PATH, ACCESS_RULES, LANDING_PATHS, SUPERADMIN, AccessRule,
)
from steelshop.errors import AccessDenied, UnknownRole, ValidationError


class Decision(str, Enum):
    ADMIT = 'admit'
    REDIRECT_TO_AUTH = 'redirect_to_auth'
    DENY = 'deny'
    # Principal resolution still in flight; caller must wait, not render
    PENDING = 'pending'


@dataclass(frozen=True)
class Principal:
    identity: Optional[str]
    role: str


class ResolutionState(str, Enum):
    PENDING = 'pending'
    PRESENT = 'present'
    ABSENT = 'absent'


@dataclass(frozen=True)
class PrincipalResolution:
    state: ResolutionState
    principal: Optional[Principal] = None

    @classmethod
    def pending(cls):
        return cls(ResolutionState.PENDING)

    @classmethod
    def absent(cls):
        return cls(ResolutionState.ABSENT)

    @classmethod
    def present(cls, principal: Principal):
        return cls(ResolutionState.PRESENT, principal)


@dataclass(frozen=True)
class NavigationOutcome:
    path: str
    decision: Decision
    rule: AccessRule
    redirect: Optional[str] = None

    def to_json(self):
        body = {'path': self.path, 'decision': self.decision.value}
        if self.redirect:
            body['redirect'] = self.redirect
        return body


def is_known_role(role: Optional[str]) -> bool:
    return role in ALL_ROLES


def evaluate(principal: Optional[Principal], required_roles: Iterable[str] = (), require_auth: bool = True) -> Decision:
    """Decide admission for one request.

    An empty `required_roles` admits any authenticated principal. A role outside
    the known set is always denied, whatever the whitelist says.
    """
    required = frozenset(required_roles)
    if principal is None:
        if require_auth:
            return Decision.REDIRECT_TO_AUTH
        return Decision.DENY if required else Decision.ADMIT
    if not is_known_role(principal.role):
        return Decision.DENY
    if required and principal.role not in required:
        return Decision.DENY
    return Decision.ADMIT


def evaluate_resolution(resolution: PrincipalResolution, required_roles: Iterable[str] = (), require_auth: bool = True) -> Decision:
    if resolution.state is ResolutionState.PENDING:
        return Decision.PENDING
    principal = resolution.principal if resolution.state is ResolutionState.PRESENT else None
    return evaluate(principal, required_roles, require_auth)


def _segments(path: str):
    return [s for s in path.strip().split('/') if s]


def _matches(pattern: str, path: str) -> bool:
    pat, got = _segments(pattern), _segments(path)
    if len(pat) != len(got):
        return False
    return all(p.startswith(':') or p == g for p, g in zip(pat, got))


def rule_for(path: str) -> Optional[AccessRule]:
    """Return the rule for a concrete path ('/job-order/JO-7' matches '/job-order/:id')."""
    path = path.split('?', 1)[0]
    for rule in ACCESS_RULES:
        if _matches(rule.resource_path, path):
            return rule
    return None


def evaluate_rule(resolution: PrincipalResolution, rule: AccessRule) -> Decision:
    return evaluate_resolution(resolution, rule.allowed_roles, rule.require_auth)


def evaluate_navigation(resolution: PrincipalResolution, path: str, auth_path: str = AUTH_PATH) -> Optional[NavigationOutcome]:
    rule = rule_for(path)
    if rule is None:
        return None
    decision = evaluate_rule(resolution, rule)
    redirect = auth_path if decision is Decision.REDIRECT_TO_AUTH else None
    return NavigationOutcome(path=path, decision=decision, rule=rule, redirect=redirect)


def landing_path_for(role: str) -> str:
    return LANDING_PATHS.get(role, '/')


def get_user_stats(principals: Iterable) -> Dict[str, int]:
    """Count principals per role. Every known role appears (zero if unused).

    Accepts Principal objects or anything with a `role` attribute (User rows).
    """
    stats: Dict[str, int] = {r: 0 for r in ALL_ROLES}
    for p in principals:
        stats[p.role] = stats.get(p.role, 0) + 1
    return stats


def assert_role_known(role: Optional[str]) -> str:
    if not is_known_role(role):
        raise ValidationError(f'Unknown role {role!r}')
    return role


def can_assign_role(acting: Optional[Principal], target_role: str) -> bool:
    return acting is not None and acting.role == SUPERADMIN and is_known_role(target_role)


def assert_can_assign_role(acting: Optional[Principal], target_role: str):
    if acting is not None and not is_known_role(acting.role):
        raise UnknownRole(acting.role)
    assert_role_known(target_role)
    if not can_assign_role(acting, target_role):
        raise AccessDenied('Only a superadmin may assign roles')


def count_active_superadmins(session) -> int:
    from steelshop.models.user import User
    stmt = select(func.count(User.id)).where(User.role == SUPERADMIN, User.is_active.is_(True))
    return int(session.execute(stmt).scalar_one())


def assert_not_removing_last_superadmin(session, target_user, new_role: Optional[str] = None):
    """Refuse a role change or deletion that leaves no active superadmin.

    new_role=None means the user is being removed altogether.
    """
    if target_user.role != SUPERADMIN or not target_user.is_active:
        return
    if new_role == SUPERADMIN:
        return
    if count_active_superadmins(session) <= 1:
        raise ValidationError('Cannot remove the last superadmin')


__all__ = [
    'Decision', 'Principal', 'ResolutionState', 'PrincipalResolution', 'NavigationOutcome',
    'is_known_role', 'evaluate', 'evaluate_resolution', 'rule_for', 'evaluate_rule', 'evaluate_navigation',
    'landing_path_for', 'get_user_stats', 'assert_role_known', 'can_assign_role', 'assert_can_assign_role',
    'count_active_superadmins', 'assert_not_removing_last_superadmin',
]
