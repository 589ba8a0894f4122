from __future__ import annotations
from dataclasses import dataclass, fields
from datetime import date, datetime
from typing import Optional

from sqlalchemy import CheckConstraint, Date, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .user import Base


class JobOrder(Base):
    __tablename__ = 'job_orders'
    # Lifecycle status constants (strictly linear, see services.lifecycle)
    STATUS_PENDING = 'pending'
    STATUS_CUTTING = 'cutting'
    STATUS_WEIGHING = 'weighing'
    STATUS_READY = 'ready'
    STATUS_SHIPPED = 'shipped'
    STATUS_COMPLETED = 'completed'
    ALL_STATUSES = (
        STATUS_PENDING,
        STATUS_CUTTING,
        STATUS_WEIGHING,
        STATUS_READY,
        STATUS_SHIPPED,
        STATUS_COMPLETED,
    )
    # Priority is an independent axis; it never constrains status changes
    PRIORITY_LOW = 'low'
    PRIORITY_NORMAL = 'normal'
    PRIORITY_HIGH = 'high'
    PRIORITY_URGENT = 'urgent'
    ALL_PRIORITIES = (PRIORITY_LOW, PRIORITY_NORMAL, PRIORITY_HIGH, PRIORITY_URGENT)

    STEEL_TYPES = (
        'Carbon Steel',
        'Stainless Steel',
        'Aluminum',
        'Galvanized Steel',
        'Cold Rolled Steel',
        'Hot Rolled Steel',
        'Mild Steel',
        'Tool Steel',
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    po_number: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey('customers.id'), nullable=False, index=True)
    steel_type: Mapped[str] = mapped_column(String(64), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    width: Mapped[float] = mapped_column(Float, nullable=False)
    length: Mapped[float] = mapped_column(Float, nullable=False)
    thickness: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_PENDING, index=True)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default=PRIORITY_NORMAL, index=True)
    weight: Mapped[Optional[float]] = mapped_column(Float)
    price_cents: Mapped[Optional[int]] = mapped_column(Integer)
    delivery_date: Mapped[Optional[date]] = mapped_column(Date)
    special_instructions: Mapped[Optional[str]] = mapped_column(Text)
    assigned_cutter_id: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True, index=True)
    completed_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_job_orders_quantity_positive'),
        CheckConstraint('width > 0 AND length > 0 AND thickness > 0', name='ck_job_orders_dimensions_positive'),
        CheckConstraint('completed_quantity >= 0 AND completed_quantity <= quantity', name='ck_job_orders_completed_quantity'),
    )

    def to_snapshot(self) -> 'JobOrderSnapshot':
        return JobOrderSnapshot(**{f.name: getattr(self, f.name) for f in fields(JobOrderSnapshot)})

    def apply_snapshot(self, snap: 'JobOrderSnapshot'):
        """Copy every mutable snapshot field back onto the row (id and created_at are fixed)."""
        for f in fields(JobOrderSnapshot):
            if f.name in ('id', 'created_at'):
                continue
            setattr(self, f.name, getattr(snap, f.name))


@dataclass(frozen=True)
class JobOrderSnapshot:
    """Immutable view of a job order handed to the lifecycle core."""
    id: Optional[int]
    po_number: str
    customer_id: int
    steel_type: str
    quantity: int
    width: float
    length: float
    thickness: float
    status: str = JobOrder.STATUS_PENDING
    priority: str = JobOrder.PRIORITY_NORMAL
    weight: Optional[float] = None
    price_cents: Optional[int] = None
    delivery_date: Optional[date] = None
    special_instructions: Optional[str] = None
    assigned_cutter_id: Optional[int] = None
    completed_quantity: int = 0
    completed_at: Optional[datetime] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
