from flask import Blueprint, request, abort, current_app
from steelshop.errors import AuthRequired
from steelshop.decorators.auth import resolve_principal
from steelshop.services.access import Decision, ResolutionState, evaluate_navigation, landing_path_for

nav_bp = Blueprint('nav', __name__)


@nav_bp.get('/check')
def check_path():
    """Evaluate a page path for the caller. Always 200 for a known path; the body carries the decision."""
    path = request.args.get('path')
    if not path:
        abort(400, description='path required')
    outcome = evaluate_navigation(resolve_principal(), path, current_app.config['AUTH_REDIRECT_PATH'])
    if outcome is None:
        abort(404, description=f'No access rule for {path}')
    if outcome.decision is Decision.DENY:
        current_app.logger.info('Navigation denied: path=%s', path)
    return outcome.to_json()


@nav_bp.get('/landing')
def landing():
    resolution = resolve_principal()
    if resolution.state is not ResolutionState.PRESENT:
        raise AuthRequired()
    return {'path': landing_path_for(resolution.principal.role)}
