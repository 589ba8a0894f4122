"""Job order lifecycle: status order, progress mapping and role-gated transitions.

pending -> cutting -> weighing -> ready -> shipped -> completed

Strictly linear; no skipping, no regression, no same-state "updates", and
completed is terminal. Each edge names the roles allowed to drive it. All
operations take an immutable JobOrderSnapshot and hand back a new one, so a
rejected transition can never leave a half-applied change behind.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional

from steelshop.constants.roles import CUTTER, DELIVERY, SUPERADMIN, SUPERVISOR
from steelshop.errors import InvalidTransition, ValidationError
from steelshop.models.job_order import JobOrder, JobOrderSnapshot
from steelshop.utils.fsm import TransitionValidator

STATUS_ORDER = JobOrder.ALL_STATUSES

PROGRESS: Dict[str, int] = {
    JobOrder.STATUS_PENDING: 10,
    JobOrder.STATUS_CUTTING: 40,
    JobOrder.STATUS_WEIGHING: 70,
    JobOrder.STATUS_READY: 85,
    JobOrder.STATUS_SHIPPED: 95,
    JobOrder.STATUS_COMPLETED: 100,
}

_SHOP_FLOOR = {SUPERADMIN, SUPERVISOR, CUTTER}
_DISPATCH = {SUPERADMIN, DELIVERY}

EDGE_ROLES = {
    (JobOrder.STATUS_PENDING, JobOrder.STATUS_CUTTING): _SHOP_FLOOR,
    (JobOrder.STATUS_CUTTING, JobOrder.STATUS_WEIGHING): _SHOP_FLOOR,
    (JobOrder.STATUS_WEIGHING, JobOrder.STATUS_READY): _SHOP_FLOOR,
    (JobOrder.STATUS_READY, JobOrder.STATUS_SHIPPED): _DISPATCH,
    (JobOrder.STATUS_SHIPPED, JobOrder.STATUS_COMPLETED): _DISPATCH,
}

JOB_ORDER_FSM = TransitionValidator.linear(STATUS_ORDER, edge_roles=EDGE_ROLES)


def _check_progress_monotonic():
    values = [PROGRESS[s] for s in STATUS_ORDER]
    if any(b <= a for a, b in zip(values, values[1:])):
        raise RuntimeError('Progress mapping must strictly increase along the status order')


_check_progress_monotonic()


@dataclass(frozen=True)
class TransitionResult:
    order: JobOrderSnapshot
    error: Optional[InvalidTransition] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> JobOrderSnapshot:
        if self.error is not None:
            raise self.error
        return self.order


def progress_of(status: str) -> int:
    try:
        return PROGRESS[status]
    except KeyError:
        raise ValidationError(f'Unknown status {status!r}') from None


def check_transition(current: str, target: str, acting_role: Optional[str]) -> Optional[str]:
    return JOB_ORDER_FSM.check(current, target, acting_role)


def can_transition(current: str, target: str, acting_role: Optional[str]) -> bool:
    return JOB_ORDER_FSM.can_transition(current, target, acting_role)


def allowed_targets(current: str, acting_role: Optional[str]) -> List[str]:
    return JOB_ORDER_FSM.allowed_targets(current, acting_role)


def apply_transition(order: JobOrderSnapshot, target: str, acting_role: Optional[str], now: Optional[datetime] = None) -> TransitionResult:
    reason = check_transition(order.status, target, acting_role)
    if reason is not None:
        return TransitionResult(order=order, error=InvalidTransition(order.status, target, reason))
    changes = {'status': target}
    if target == JobOrder.STATUS_COMPLETED:
        changes['completed_quantity'] = order.quantity
        changes['completed_at'] = now or datetime.now(timezone.utc)
    return TransitionResult(order=replace(order, **changes))


def production_progress(order) -> float:
    """Cut pieces as a percentage of ordered quantity (production floor view)."""
    if not order.quantity:
        return 0.0
    return round(order.completed_quantity / order.quantity * 100, 1)


def record_cut_progress(order: JobOrderSnapshot, completed_quantity) -> JobOrderSnapshot:
    if order.status != JobOrder.STATUS_CUTTING:
        raise ValidationError('Cut progress can only be recorded while cutting')
    try:
        value = int(completed_quantity)
    except (TypeError, ValueError):
        raise ValidationError('completed_quantity must be int') from None
    if value < 0 or value > order.quantity:
        raise ValidationError(f'completed_quantity must be between 0 and {order.quantity}')
    return replace(order, completed_quantity=value)


__all__ = [
    'STATUS_ORDER', 'PROGRESS', 'EDGE_ROLES', 'JOB_ORDER_FSM', 'TransitionResult',
    'progress_of', 'check_transition', 'can_transition', 'allowed_targets',
    'apply_transition', 'production_progress', 'record_cut_progress',
]
