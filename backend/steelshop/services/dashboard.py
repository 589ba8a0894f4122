"""Role-specific dashboard tiles built from job order status counts."""
from __future__ import annotations
from typing import Dict, Optional

from sqlalchemy import func, select

from steelshop.constants.roles import CLERK, CUTTER, DELIVERY, GUEST, SUPERADMIN, SUPERVISOR
from steelshop.models.job_order import JobOrder
from steelshop.models.user import User
from steelshop.services.access import get_user_stats


def status_counts(session) -> Dict[str, int]:
    counts = {s: 0 for s in JobOrder.ALL_STATUSES}
    rows = session.execute(select(JobOrder.status, func.count(JobOrder.id)).group_by(JobOrder.status)).all()
    for status, n in rows:
        counts[status] = int(n)
    return counts


def _active_cutters(session) -> int:
    stmt = select(func.count(func.distinct(JobOrder.assigned_cutter_id))).where(
        JobOrder.status == JobOrder.STATUS_CUTTING, JobOrder.assigned_cutter_id.is_not(None)
    )
    return int(session.execute(stmt).scalar_one())


def _my_tasks(session, user_id: Optional[int]) -> int:
    if user_id is None:
        return 0
    stmt = select(func.count(JobOrder.id)).where(
        JobOrder.status == JobOrder.STATUS_CUTTING, JobOrder.assigned_cutter_id == user_id
    )
    return int(session.execute(stmt).scalar_one())


def stats_for_role(session, role: str, user_id: Optional[int] = None) -> dict:
    counts = status_counts(session)
    if role == CLERK:
        tiles = {
            'pending': counts[JobOrder.STATUS_PENDING],
            'ready_for_invoice': counts[JobOrder.STATUS_READY],
            'total': sum(counts.values()),
            'completed': counts[JobOrder.STATUS_COMPLETED],
        }
    elif role == SUPERVISOR:
        tiles = {
            'queue': counts[JobOrder.STATUS_PENDING],
            'cutting': counts[JobOrder.STATUS_CUTTING],
            'active_cutters': _active_cutters(session),
        }
    elif role == CUTTER:
        tiles = {
            'my_tasks': _my_tasks(session, user_id),
            'cutting': counts[JobOrder.STATUS_CUTTING],
        }
    elif role == DELIVERY:
        tiles = {
            'ready_to_ship': counts[JobOrder.STATUS_READY],
            'out_for_delivery': counts[JobOrder.STATUS_SHIPPED],
        }
    elif role == SUPERADMIN:
        users = session.execute(select(User).where(User.is_active.is_(True))).scalars().all()
        tiles = dict(counts, total=sum(counts.values()), users=get_user_stats(users))
    else:
        # guest: waiting for role assignment
        tiles = {}
    return {'role': role, 'status_counts': counts, 'tiles': tiles, 'awaiting_role': role == GUEST}


__all__ = ['status_counts', 'stats_for_role']
