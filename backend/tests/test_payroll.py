import pytest
from steelshop import get_db
from steelshop.errors import ValidationError
from steelshop.services.payroll import apply_adjustment, build_payslip, employee_overview, SOCIAL_SECURITY_CAP_CENTS
from test_utils_seed import ensure_employee, user_headers


def test_adjustment_round_trip_restores_salary():
    session = get_db()
    emp = ensure_employee(salary_cents=2500000)
    apply_adjustment(session, emp, 1000, 'raise')
    apply_adjustment(session, emp, -1000, 'correction')
    session.commit()
    assert emp.current_salary_cents == 2500000


def test_adjustment_validation():
    session = get_db()
    emp = ensure_employee(salary_cents=500)
    with pytest.raises(ValidationError):
        apply_adjustment(session, emp, 100, '')
    with pytest.raises(ValidationError):
        apply_adjustment(session, emp, 'ten', 'bad amount')
    with pytest.raises(ValidationError):
        apply_adjustment(session, emp, -501, 'too much')
    session.rollback()
    assert emp.current_salary_cents == 500


def test_payslip_math():
    emp = ensure_employee(salary_cents=3000000)
    slip = build_payslip(emp, 2, 2024, overtime_cents=200000, bonus_cents=100000, absence_cents=50000)
    gross = 3300000
    assert slip['gross_income_cents'] == gross
    ss = min(gross * 5 // 100, SOCIAL_SECURITY_CAP_CENTS)
    tax = gross * 5 // 100
    assert [d['amount_cents'] for d in slip['deductions']] == [ss, tax, 50000]
    assert slip['net_income_cents'] == gross - ss - tax - 50000
    assert slip['due_date'] == '2024-02-29'
    assert slip['month'] == 'February'
    assert slip['year'] == '2024'
    assert slip['accumulated_salary_cents'] == slip['net_income_cents'] * 12


def test_social_security_is_capped():
    slip = build_payslip(ensure_employee(salary_cents=100000000), 1, 2025)
    assert slip['deductions'][0]['amount_cents'] == SOCIAL_SECURITY_CAP_CENTS


def test_payslip_rejects_bad_month():
    with pytest.raises(ValidationError):
        build_payslip(ensure_employee(), 13, 2025)
    with pytest.raises(ValidationError):
        build_payslip(ensure_employee(), 1, 0)


def test_employee_overview():
    a = ensure_employee(salary_cents=100)
    b = ensure_employee(salary_cents=250)
    assert employee_overview([a, b]) == {'count': 2, 'total_monthly_salary_cents': 350}


def test_payroll_endpoints_require_clerk_or_superadmin(client):
    _, headers = user_headers(client, 'cutter')
    assert client.get('/payroll/employees', headers=headers).status_code == 403
    assert client.get('/payroll/employees').status_code == 401


def test_adjustment_endpoint_and_history(client):
    _, headers = user_headers(client, 'clerk')
    emp = ensure_employee(salary_cents=2000000)
    r1 = client.post('/payroll/adjustments', json={'employee_id': emp.id, 'amount_cents': 150000, 'reason': 'promotion'}, headers=headers)
    assert r1.status_code == 201, r1.get_json()
    assert r1.get_json()['employee']['current_salary_cents'] == 2150000
    assert r1.get_json()['adjustment']['type'] == 'increase'
    r2 = client.post('/payroll/adjustments', json={'employee_id': emp.id, 'amount_cents': -150000, 'reason': 'revert'}, headers=headers)
    assert r2.status_code == 201
    assert r2.get_json()['adjustment']['type'] == 'decrease'
    detail = client.get(f'/payroll/employees/{emp.id}', headers=headers).get_json()
    assert detail['current_salary_cents'] == 2000000
    assert [a['reason'] for a in detail['adjustments']] == ['revert', 'promotion']
    listing = client.get(f'/payroll/adjustments?employee_id={emp.id}', headers=headers).get_json()
    assert listing['pagination']['total'] == 2
    assert listing['data'][0]['reason'] == 'revert'


def test_adjustment_endpoint_rejects_negative_salary(client):
    _, headers = user_headers(client, 'superadmin')
    emp = ensure_employee(salary_cents=1000)
    resp = client.post('/payroll/adjustments', json={'employee_id': emp.id, 'amount_cents': -5000, 'reason': 'cut'}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()['error']['status'] == 400
    body = client.get(f'/payroll/employees/{emp.id}', headers=headers).get_json()
    assert body['current_salary_cents'] == 1000
    assert body['adjustments'] == []


def test_create_employee_and_payslip(client):
    _, headers = user_headers(client, 'clerk')
    resp = client.post('/payroll/employees', json={
        'employee_code': 'EMP-HTTP-1', 'name': 'Niran', 'position': 'Cutter', 'base_salary_cents': 1800000,
    }, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    emp_id = resp.get_json()['id']
    dup = client.post('/payroll/employees', json={
        'employee_code': 'EMP-HTTP-1', 'name': 'Other', 'position': 'Cutter', 'base_salary_cents': 1,
    }, headers=headers)
    assert dup.status_code == 409
    slip = client.get(f'/payroll/employees/{emp_id}/payslip?month=3&year=2025&bonus_cents=20000', headers=headers)
    assert slip.status_code == 200
    body = slip.get_json()
    assert body['gross_income_cents'] == 1820000
    assert body['due_date'] == '2025-03-31'
    bad = client.get(f'/payroll/employees/{emp_id}/payslip?month=0&year=2025', headers=headers)
    assert bad.status_code == 400
    year_zero = client.get(f'/payroll/employees/{emp_id}/payslip?month=1&year=0', headers=headers)
    assert year_zero.status_code == 400
    assert year_zero.get_json()['error']['status'] == 400


def test_list_employees_overview(client):
    _, headers = user_headers(client, 'clerk')
    ensure_employee()
    body = client.get('/payroll/employees', headers=headers).get_json()
    assert body['overview']['count'] == len(body['data'])
    assert body['overview']['total_monthly_salary_cents'] == sum(e['current_salary_cents'] for e in body['data'])


def test_adjustment_endpoint_rejects_fractional_employee_id(client):
    _, headers = user_headers(client, 'clerk')
    emp = ensure_employee(salary_cents=300000)
    resp = client.post('/payroll/adjustments', json={'employee_id': emp.id + 0.9, 'amount_cents': 100, 'reason': 'raise'}, headers=headers)
    assert resp.status_code == 400
    assert 'employee_id' in resp.get_json()['error']['detail']
    assert client.get(f'/payroll/employees/{emp.id}', headers=headers).get_json()['current_salary_cents'] == 300000
