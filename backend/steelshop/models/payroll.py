from __future__ import annotations
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .user import Base


class Employee(Base):
    __tablename__ = 'employees'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    name_en: Mapped[Optional[str]] = mapped_column(String(128))
    position: Mapped[str] = mapped_column(String(128), nullable=False)
    position_en: Mapped[Optional[str]] = mapped_column(String(128))
    start_date: Mapped[Optional[date]] = mapped_column(Date)
    bank_account: Mapped[Optional[str]] = mapped_column(String(64))
    bank_name: Mapped[Optional[str]] = mapped_column(String(64))
    base_salary_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    # Only ever changed through services.payroll.apply_adjustment
    current_salary_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SalaryAdjustment(Base):
    """Append-only signed salary delta. Rows are never updated or deleted."""
    __tablename__ = 'salary_adjustments'
    TYPE_INCREASE = 'increase'
    TYPE_DECREASE = 'decrease'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey('employees.id'), nullable=False, index=True)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    created_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def type(self) -> str:
        return self.TYPE_INCREASE if self.amount_cents >= 0 else self.TYPE_DECREASE
