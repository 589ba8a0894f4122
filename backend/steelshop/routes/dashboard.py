from flask import Blueprint
from steelshop import get_db
from steelshop.decorators.auth import require_access, current_principal
from steelshop.services.dashboard import stats_for_role

dash_bp = Blueprint('dashboard', __name__)


@dash_bp.get('/stats')
@require_access('/')
def dashboard_stats():
    principal = current_principal()
    return stats_for_role(get_db(), principal.role, int(principal.identity))
