"""Job order persistence behind a small get/list/save capability.

The lifecycle core only ever sees JobOrderSnapshot values; swapping the SQL
implementation for another store needs no change there.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy import select

from steelshop.models.job_order import JobOrder, JobOrderSnapshot


class JobOrderRepository(ABC):
    @abstractmethod
    def get(self, order_id: int) -> Optional[JobOrderSnapshot]:
        raise NotImplementedError

    @abstractmethod
    def list(self, status: Optional[str] = None, customer_id: Optional[int] = None) -> List[JobOrderSnapshot]:
        raise NotImplementedError

    @abstractmethod
    def save(self, snapshot: JobOrderSnapshot) -> JobOrderSnapshot:
        raise NotImplementedError


class SqlJobOrderRepository(JobOrderRepository):
    """Writes go through the given session; committing stays with the caller."""

    def __init__(self, session):
        self.session = session

    def get_row(self, order_id: int) -> Optional[JobOrder]:
        return self.session.execute(select(JobOrder).where(JobOrder.id == order_id)).scalar_one_or_none()

    def get(self, order_id: int) -> Optional[JobOrderSnapshot]:
        row = self.get_row(order_id)
        return row.to_snapshot() if row else None

    def list(self, status: Optional[str] = None, customer_id: Optional[int] = None) -> List[JobOrderSnapshot]:
        stmt = select(JobOrder)
        if status is not None:
            stmt = stmt.where(JobOrder.status == status)
        if customer_id is not None:
            stmt = stmt.where(JobOrder.customer_id == customer_id)
        return [r.to_snapshot() for r in self.session.execute(stmt.order_by(JobOrder.id.asc())).scalars()]

    def save(self, snapshot: JobOrderSnapshot) -> JobOrderSnapshot:
        if snapshot.id is None:
            row = JobOrder()
            row.apply_snapshot(snapshot)
            self.session.add(row)
        else:
            row = self.get_row(snapshot.id)
            if row is None:
                raise LookupError(f'Job order {snapshot.id} not found')
            row.apply_snapshot(snapshot)
        self.session.flush()
        return row.to_snapshot()


__all__ = ['JobOrderRepository', 'SqlJobOrderRepository']
