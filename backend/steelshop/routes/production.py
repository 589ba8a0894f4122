from flask import Blueprint
from sqlalchemy import case, select
from steelshop import get_db
from steelshop.decorators.auth import require_access
from steelshop.models.job_order import JobOrder
from steelshop.routes.job_orders import order_json

prod_bp = Blueprint('production', __name__)

SHOP_FLOOR_STATUSES = (JobOrder.STATUS_PENDING, JobOrder.STATUS_CUTTING, JobOrder.STATUS_WEIGHING)

_PRIORITY_RANK = case(
    (JobOrder.priority == JobOrder.PRIORITY_URGENT, 0),
    (JobOrder.priority == JobOrder.PRIORITY_HIGH, 1),
    (JobOrder.priority == JobOrder.PRIORITY_NORMAL, 2),
    else_=3,
)


@prod_bp.get('/queue')
@require_access('/production')
def production_queue():
    """Shop-floor work queue: urgent first, then oldest first."""
    session = get_db()
    stmt = (
        select(JobOrder)
        .where(JobOrder.status.in_(SHOP_FLOOR_STATUSES))
        .order_by(_PRIORITY_RANK, JobOrder.created_at.asc(), JobOrder.id.asc())
    )
    rows = session.execute(stmt).scalars().all()
    completed = session.execute(
        select(JobOrder.id).where(JobOrder.status == JobOrder.STATUS_COMPLETED)
    ).scalars().all()
    queue = [order_json(o) for o in rows]
    return {
        'data': queue,
        'priority_queue': [o for o in queue if o['priority'] in (JobOrder.PRIORITY_URGENT, JobOrder.PRIORITY_HIGH)],
        'stats': {
            'total': len(rows),
            'queued': sum(1 for o in rows if o.status == JobOrder.STATUS_PENDING),
            'active': sum(1 for o in rows if o.status in (JobOrder.STATUS_CUTTING, JobOrder.STATUS_WEIGHING)),
            'completed': len(completed),
        },
    }
