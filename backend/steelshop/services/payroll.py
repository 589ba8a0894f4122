"""Payroll operations: salary adjustments and on-demand payslips.

Amounts are integer cents throughout. Payslips are projections recomputed on
every request and never stored.
"""
from __future__ import annotations
import calendar
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from steelshop.errors import ValidationError
from steelshop.models.payroll import Employee, SalaryAdjustment

SOCIAL_SECURITY_RATE = Decimal('0.05')
SOCIAL_SECURITY_CAP_CENTS = 75000
TAX_RATE = Decimal('0.05')
PROVIDENT_FUND_RATE = Decimal('0.03')
MONTHS_PER_YEAR = 12


def _pct(amount_cents: int, rate: Decimal) -> int:
    return int((Decimal(amount_cents) * rate).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def parse_cents(value, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} must be int')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field_name} must be int') from None


def apply_adjustment(session, employee: Employee, amount_cents, reason: Optional[str], actor_id: Optional[int] = None) -> SalaryAdjustment:
    """Append an adjustment and move the employee's salary by the same delta.

    Both writes happen in the caller's transaction; nothing is flushed if validation fails.
    """
    amount = parse_cents(amount_cents, 'amount_cents')
    if not reason or not str(reason).strip():
        raise ValidationError('reason required')
    new_salary = employee.current_salary_cents + amount
    if new_salary < 0:
        raise ValidationError('Adjustment would make salary negative')
    adj = SalaryAdjustment(employee_id=employee.id, amount_cents=amount, reason=str(reason).strip(), created_by=actor_id)
    employee.current_salary_cents = new_salary
    session.add(adj)
    session.flush()
    return adj


def employee_overview(employees: Iterable[Employee]) -> dict:
    employees = list(employees)
    return {
        'count': len(employees),
        'total_monthly_salary_cents': sum(e.current_salary_cents for e in employees),
    }


def month_due_date(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def build_payslip(employee: Employee, month: int, year: int, overtime_cents: int = 0, bonus_cents: int = 0, absence_cents: int = 0) -> dict:
    if not 1 <= month <= 12:
        raise ValidationError('month must be 1-12')
    if not 1 <= year <= 9999:
        raise ValidationError('year must be 1-9999')
    for name, val in (('overtime_cents', overtime_cents), ('bonus_cents', bonus_cents), ('absence_cents', absence_cents)):
        if val < 0:
            raise ValidationError(f'{name} cannot be negative')
    income = [
        {'description': 'Base Salary', 'amount_cents': employee.current_salary_cents},
        {'description': 'Overtime', 'amount_cents': overtime_cents},
        {'description': 'Bonus', 'amount_cents': bonus_cents},
    ]
    gross = sum(i['amount_cents'] for i in income)
    social_security = min(_pct(gross, SOCIAL_SECURITY_RATE), SOCIAL_SECURITY_CAP_CENTS)
    tax = _pct(gross, TAX_RATE)
    deductions = [
        {'description': 'Social Security', 'amount_cents': social_security},
        {'description': 'Tax', 'amount_cents': tax},
        {'description': 'Absence', 'amount_cents': absence_cents},
    ]
    total_deductions = sum(d['amount_cents'] for d in deductions)
    net = gross - total_deductions
    return {
        'employee': {
            'id': employee.id,
            'employee_code': employee.employee_code,
            'name': employee.name,
            'name_en': employee.name_en,
            'position': employee.position,
            'position_en': employee.position_en,
            'bank_account': employee.bank_account,
            'bank_name': employee.bank_name,
        },
        'month': calendar.month_name[month],
        'year': str(year),
        'due_date': month_due_date(year, month).isoformat(),
        'income': income,
        'deductions': deductions,
        'gross_income_cents': gross,
        'total_deductions_cents': total_deductions,
        'net_income_cents': net,
        # Annualized projections of the current month
        'accumulated_salary_cents': net * MONTHS_PER_YEAR,
        'accumulated_tax_cents': tax * MONTHS_PER_YEAR,
        'accumulated_social_security_cents': social_security * MONTHS_PER_YEAR,
        'accumulated_provident_fund_cents': _pct(gross, PROVIDENT_FUND_RATE) * MONTHS_PER_YEAR,
    }


__all__ = [
    'apply_adjustment', 'employee_overview', 'build_payslip', 'month_due_date', 'parse_cents',
    'SOCIAL_SECURITY_CAP_CENTS',
]
