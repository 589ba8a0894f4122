"""Test seeding utilities to reduce duplication.

These helpers create users with a given role, log them in, and insert the
customers, job orders and employees the endpoint tests work against.
"""
import uuid
from typing import Dict, Optional
from steelshop import get_db
from steelshop.models.user import User


def unique_email(prefix: str = 'user') -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


def ensure_user(email: str, role: str = 'guest', password: str = 'pw', is_active: bool = True) -> User:
    session = get_db()
    u = session.query(User).filter_by(email=email).one_or_none()
    if not u:
        u = User(full_name=email.split('@')[0], email=email, password_hash='', role=role, is_active=is_active)
        u.set_password(password)
        session.add(u); session.commit(); session.refresh(u)
    return u


def login(client, email: str, password: str = 'pw') -> Dict[str, str]:
    resp = client.post('/iam/auth/login', json={'email': email, 'password': password})
    assert resp.status_code == 200, resp.get_json()
    return {'Authorization': f"Bearer {resp.get_json()['access_token']}"}


def user_headers(client, role: str, prefix: Optional[str] = None):
    """Create a fresh user with `role` and return (user, auth headers)."""
    user = ensure_user(unique_email(prefix or role), role=role)
    return user, login(client, user.email)


def ensure_customer(name: str = 'ACME Steel Buyers', **kwargs):
    from steelshop.models.customer import Customer  # lazy import to avoid test import cycles
    session = get_db()
    c = Customer(name=name, **kwargs)
    session.add(c); session.commit(); session.refresh(c)
    return c


def create_job_order(customer_id: int, status: str = 'pending', priority: str = 'normal', quantity: int = 10, **kwargs):
    """Insert a job order directly (non-idempotent), bypassing the lifecycle for setup."""
    from steelshop.models.job_order import JobOrder
    session = get_db()
    o = JobOrder(
        po_number=kwargs.pop('po_number', f"PO-{uuid.uuid4().hex[:6]}"),
        customer_id=customer_id,
        steel_type=kwargs.pop('steel_type', 'Carbon Steel'),
        quantity=quantity,
        width=kwargs.pop('width', 100.0),
        length=kwargs.pop('length', 200.0),
        thickness=kwargs.pop('thickness', 5.0),
        status=status,
        priority=priority,
        **kwargs,
    )
    session.add(o); session.commit(); session.refresh(o)
    return o


def ensure_employee(code: Optional[str] = None, salary_cents: int = 2500000, **kwargs):
    from steelshop.models.payroll import Employee
    session = get_db()
    e = Employee(
        employee_code=code or f"EMP-{uuid.uuid4().hex[:6]}",
        name=kwargs.pop('name', 'Test Employee'),
        position=kwargs.pop('position', 'Steel Cutter'),
        base_salary_cents=salary_cents,
        current_salary_cents=salary_cents,
        **kwargs,
    )
    session.add(e); session.commit(); session.refresh(e)
    return e


__all__ = [
    'unique_email', 'ensure_user', 'login', 'user_headers', 'ensure_customer', 'create_job_order', 'ensure_employee',
]
