from functools import wraps

from flask import current_app, g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from sqlalchemy import select

from steelshop import get_db
from steelshop.constants.roles import RULES_BY_PATH
from steelshop.errors import AccessDenied, AuthRequired
from steelshop.services.access import Decision, Principal, PrincipalResolution, evaluate_rule


def resolve_principal() -> PrincipalResolution:
    """Resolve the caller from the bearer token, re-reading the role from the user store.

    Memoized per request on flask.g; never across requests, so role changes apply immediately.
    """
    if 'principal_resolution' in g:
        return g.principal_resolution
    from steelshop.models.user import User
    verify_jwt_in_request(optional=True)
    ident = get_jwt_identity()
    resolution = PrincipalResolution.absent()
    if ident is not None:
        try:
            user_id = int(ident)
        except (TypeError, ValueError):
            user_id = None
        user = None
        if user_id is not None:
            user = get_db().execute(select(User).where(User.id == user_id)).scalar_one_or_none()
        if user is not None and user.is_active:
            resolution = PrincipalResolution.present(Principal(identity=str(user.id), role=user.role))
    g.principal_resolution = resolution
    return resolution


def current_principal():
    return resolve_principal().principal


def require_access(resource_path: str):
    """Gate a view with the access rule registered for `resource_path`."""
    rule = RULES_BY_PATH[resource_path]

    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            resolution = resolve_principal()
            decision = evaluate_rule(resolution, rule)
            if decision is Decision.REDIRECT_TO_AUTH:
                raise AuthRequired()
            if decision is not Decision.ADMIT:
                role = resolution.principal.role if resolution.principal else None
                current_app.logger.info('Access denied: role=%s resource=%s', role, resource_path)
                raise AccessDenied()
            return fn(*args, **kwargs)
        wrapper.required_access = rule
        return wrapper
    return outer
