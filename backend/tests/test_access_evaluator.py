import pytest
from steelshop.constants.roles import ALL_ROLES, ACCESS_RULES, GUEST, SUPERADMIN, CLERK, CUTTER
from steelshop.errors import AccessDenied, UnknownRole, ValidationError
from steelshop.services.access import (
    Decision, Principal, PrincipalResolution, evaluate, evaluate_resolution, evaluate_navigation,
    rule_for, landing_path_for, get_user_stats, assert_can_assign_role, can_assign_role,
)


@pytest.mark.parametrize('role', ALL_ROLES)
def test_empty_whitelist_admits_any_authenticated_role(role):
    assert evaluate(Principal('1', role), ()) is Decision.ADMIT


@pytest.mark.parametrize('rule', [r for r in ACCESS_RULES if r.allowed_roles])
def test_role_outside_whitelist_is_denied(rule):
    for role in ALL_ROLES:
        decision = evaluate(Principal('1', role), rule.allowed_roles, rule.require_auth)
        if role in rule.allowed_roles:
            assert decision is Decision.ADMIT
        else:
            assert decision is Decision.DENY


@pytest.mark.parametrize('rule', [r for r in ACCESS_RULES if r.require_auth])
def test_absent_principal_redirects_regardless_of_roles(rule):
    assert evaluate(None, rule.allowed_roles, True) is Decision.REDIRECT_TO_AUTH


def test_absent_principal_on_public_resource():
    assert evaluate(None, (), require_auth=False) is Decision.ADMIT
    assert evaluate(None, {CLERK}, require_auth=False) is Decision.DENY


def test_unknown_role_denied_even_without_whitelist():
    assert evaluate(Principal('1', 'janitor'), ()) is Decision.DENY
    assert evaluate(Principal('1', 'janitor'), {CLERK}) is Decision.DENY


def test_pending_resolution_never_admits():
    pending = PrincipalResolution.pending()
    assert evaluate_resolution(pending, ()) is Decision.PENDING
    assert evaluate_resolution(pending, {SUPERADMIN}) is Decision.PENDING


def test_rule_for_matches_parameterized_paths():
    assert rule_for('/job-order/JO-7').resource_path == '/job-order/:id'
    assert rule_for('/customer/12?tab=orders').resource_path == '/customer/:id'
    assert rule_for('/production').resource_path == '/production'
    assert rule_for('/job-order') is None
    assert rule_for('/nowhere') is None


def test_evaluate_navigation_outcomes():
    cutter = PrincipalResolution.present(Principal('5', CUTTER))
    assert evaluate_navigation(cutter, '/production').decision is Decision.ADMIT
    assert evaluate_navigation(cutter, '/payroll').decision is Decision.DENY
    absent = evaluate_navigation(PrincipalResolution.absent(), '/payroll', '/login')
    assert absent.decision is Decision.REDIRECT_TO_AUTH
    assert absent.to_json() == {'path': '/payroll', 'decision': 'redirect_to_auth', 'redirect': '/login'}
    assert evaluate_navigation(cutter, '/unknown') is None


def test_landing_paths():
    assert landing_path_for(GUEST) == '/guest'
    assert landing_path_for(SUPERADMIN) == '/superadmin'
    assert landing_path_for(CLERK) == '/'


@pytest.mark.parametrize('roles', [
    [],
    [GUEST],
    [SUPERADMIN, CLERK, CLERK, CUTTER],
    list(ALL_ROLES) * 3 + ['unknown'],
])
def test_user_stats_sum_equals_total(roles):
    stats = get_user_stats([Principal(str(i), r) for i, r in enumerate(roles)])
    assert sum(stats.values()) == len(roles)
    for role in ALL_ROLES:
        assert role in stats


def test_only_superadmin_assigns_roles():
    admin = Principal('1', SUPERADMIN)
    assert can_assign_role(admin, CLERK)
    assert not can_assign_role(Principal('2', CLERK), CLERK)
    with pytest.raises(AccessDenied):
        assert_can_assign_role(Principal('2', CLERK), CUTTER)
    with pytest.raises(ValidationError):
        assert_can_assign_role(admin, 'janitor')
    with pytest.raises(UnknownRole):
        assert_can_assign_role(Principal('3', 'janitor'), CLERK)
