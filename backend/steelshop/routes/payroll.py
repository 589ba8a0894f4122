from datetime import date
from flask import Blueprint, request, abort, current_app
from sqlalchemy import select
from steelshop import get_db
from steelshop.decorators.auth import require_access, current_principal
from steelshop.models.payroll import Employee, SalaryAdjustment
from steelshop.services.payroll import apply_adjustment, build_payslip, employee_overview
from steelshop.utils.listing import apply_filters, apply_pagination, list_response, latest_of
from steelshop.utils.validation import non_negative_int, optional_text, parse_date, positive_int, require_text

payroll_bp = Blueprint('payroll', __name__)


def _employee_json(e: Employee):
    return {
        'id': e.id,
        'employee_code': e.employee_code,
        'name': e.name,
        'name_en': e.name_en,
        'position': e.position,
        'position_en': e.position_en,
        'start_date': e.start_date.isoformat() if e.start_date else None,
        'bank_account': e.bank_account,
        'bank_name': e.bank_name,
        'base_salary_cents': e.base_salary_cents,
        'current_salary_cents': e.current_salary_cents,
    }


def _adjustment_json(a: SalaryAdjustment):
    return {
        'id': a.id,
        'employee_id': a.employee_id,
        'amount_cents': a.amount_cents,
        'type': a.type,
        'reason': a.reason,
        'created_by': a.created_by,
        'created_at': a.created_at.isoformat() if a.created_at else None,
    }


def _employee_or_404(session, employee_id: int) -> Employee:
    e = session.execute(select(Employee).where(Employee.id == employee_id)).scalar_one_or_none()
    if not e:
        abort(404)
    return e


def _query_cents(name: str) -> int:
    raw = request.args.get(name)
    return 0 if raw in (None, '') else non_negative_int(raw, name)


@payroll_bp.get('/employees')
@require_access('/payroll')
def list_employees():
    session = get_db()
    employees = session.execute(select(Employee).order_by(Employee.employee_code.asc())).scalars().all()
    return {'data': [_employee_json(e) for e in employees], 'overview': employee_overview(employees)}


@payroll_bp.post('/employees')
@require_access('/payroll')
def create_employee():
    session = get_db()
    data = request.json or {}
    code = require_text(data, 'employee_code')
    if session.execute(select(Employee).where(Employee.employee_code == code)).scalar_one_or_none():
        abort(409, description='employee_code already exists')
    salary = non_negative_int(data.get('base_salary_cents'), 'base_salary_cents')
    e = Employee(
        employee_code=code,
        name=require_text(data, 'name'),
        name_en=optional_text(data, 'name_en'),
        position=require_text(data, 'position'),
        position_en=optional_text(data, 'position_en'),
        start_date=parse_date(data.get('start_date'), 'start_date'),
        bank_account=optional_text(data, 'bank_account'),
        bank_name=optional_text(data, 'bank_name'),
        base_salary_cents=salary,
        current_salary_cents=salary,
    )
    session.add(e)
    session.commit()
    return _employee_json(e), 201


@payroll_bp.get('/employees/<int:employee_id>')
@require_access('/payroll')
def get_employee(employee_id: int):
    session = get_db()
    e = _employee_or_404(session, employee_id)
    body = _employee_json(e)
    history = session.execute(
        select(SalaryAdjustment)
        .where(SalaryAdjustment.employee_id == e.id)
        .order_by(SalaryAdjustment.created_at.desc(), SalaryAdjustment.id.desc())
    ).scalars().all()
    body['adjustments'] = [_adjustment_json(a) for a in history]
    return body


@payroll_bp.get('/employees/<int:employee_id>/payslip')
@require_access('/payroll')
def get_payslip(employee_id: int):
    """Payslip for one month, recomputed from the current salary on every call."""
    session = get_db()
    e = _employee_or_404(session, employee_id)
    today = date.today()
    try:
        month = int(request.args.get('month', today.month))
        year = int(request.args.get('year', today.year))
    except ValueError:
        abort(400, description='month/year must be int')
    return build_payslip(
        e, month, year,
        overtime_cents=_query_cents('overtime_cents'),
        bonus_cents=_query_cents('bonus_cents'),
        absence_cents=_query_cents('absence_cents'),
    )


@payroll_bp.get('/adjustments')
@require_access('/payroll')
def list_adjustments():
    session = get_db()
    stmt = apply_filters(select(SalaryAdjustment), {
        'employee_id': {'op': lambda s, v: s.where(SalaryAdjustment.employee_id == v), 'coerce': int},
    }, request.args)
    stmt = stmt.order_by(SalaryAdjustment.created_at.desc(), SalaryAdjustment.id.desc())
    rows, total, limit, offset = apply_pagination(stmt, session)
    return list_response([_adjustment_json(a) for a in rows], total, limit, offset, latest_of(rows, 'created_at'))


@payroll_bp.post('/adjustments')
@require_access('/payroll')
def create_adjustment():
    session = get_db()
    data = request.json or {}
    if data.get('employee_id') is None:
        abort(400, description='employee_id required')
    e = _employee_or_404(session, positive_int(data['employee_id'], 'employee_id'))
    adj = apply_adjustment(session, e, data.get('amount_cents'), data.get('reason'), int(current_principal().identity))
    session.commit()
    current_app.logger.info('Salary adjusted: employee=%s delta=%s', e.id, adj.amount_cents)
    return {'adjustment': _adjustment_json(adj), 'employee': _employee_json(e)}, 201
