#!/usr/bin/env python
"""Idempotent seed script for the initial superadmin and demo data.

Usage:
    python backend/scripts/seed_demo.py                # seed normally
    python backend/scripts/seed_demo.py --show-users   # print role -> user counts (after ensuring seed)
    python backend/scripts/seed_demo.py --dry-run      # run logic then rollback (no DB changes)
    python backend/scripts/seed_demo.py --no-demo      # superadmin only
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from steelshop import create_app, get_db  # type: ignore
from steelshop.constants.roles import SUPERADMIN
from steelshop.models.user import Base, User
from steelshop.models.customer import Customer
from steelshop.models.payroll import Employee
from steelshop.services.access import get_user_stats

DEMO_EMPLOYEES = [
    # code, name, position, monthly salary (cents)
    ('EMP001', 'Somchai Jaidee', 'Production Supervisor', 3500000),
    ('EMP002', 'Malee Srisuk', 'Office Clerk', 2200000),
    ('EMP003', 'Prasit Thongdee', 'Steel Cutter', 1800000),
    ('EMP004', 'Wichai Boonmee', 'Delivery Driver', 1600000),
]

DEMO_CUSTOMERS = [
    ('ABC Construction Co.', 'orders@abc-construction.example', '02-111-2222', 'Credit 30 days'),
    ('Siam Fabrication Ltd.', 'purchasing@siamfab.example', '02-333-4444', 'Cash'),
]


def ensure_initial_admin(session):
    admin_email = os.getenv('SEED_ADMIN_EMAIL', 'admin@example.com')
    existing_admin = session.execute(select(User).where(User.email == admin_email)).scalar_one_or_none()
    if existing_admin:
        return 0
    user = User(email=admin_email, full_name='Superadmin', role=SUPERADMIN)
    user.set_password(os.getenv('SEED_ADMIN_PASSWORD', 'ChangeMe123!'))
    session.add(user)
    session.flush()
    print(f"[INFO] Created initial superadmin {admin_email} with temporary password.")
    return 1


def ensure_demo_employees(session):
    existing = set(session.execute(select(Employee.employee_code)).scalars().all())
    created = 0
    for code, name, position, salary in DEMO_EMPLOYEES:
        if code in existing:
            continue
        session.add(Employee(employee_code=code, name=name, position=position,
                             base_salary_cents=salary, current_salary_cents=salary))
        created += 1
    return created


def ensure_demo_customers(session):
    existing = set(session.execute(select(Customer.name)).scalars().all())
    created = 0
    for name, email, phone, payment in DEMO_CUSTOMERS:
        if name in existing:
            continue
        session.add(Customer(name=name, email=email, phone=phone, payment_method=payment))
        created += 1
    return created


def print_user_summary(session):
    stats = get_user_stats(session.execute(select(User)).scalars().all())
    name_w = max(len(r) for r in stats)
    print(f"{'Role'.ljust(name_w)} | Users")
    print('-' * (name_w + 10))
    for role, cnt in stats.items():
        print(f"{role.ljust(name_w)} | {str(cnt).rjust(5)}")


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Seed the initial superadmin and demo data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_demo.py\n  dry run: seed_demo.py --dry-run\n  show users: seed_demo.py --show-users\n""")
    )
    p.add_argument('--show-users', action='store_true', help='Print user counts per role after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--no-demo', action='store_true', help='Only ensure the superadmin account')
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM users LIMIT 1'))
        except Exception:
            # Auto-create schema for bootstrap; in real env prefer alembic upgrade
            session.rollback()
            import steelshop.models.job_order  # noqa: F401
            Base.metadata.create_all(session.get_bind())
        finally:
            session.commit()

    with app.app_context():
        session = get_db()
        created_u = ensure_initial_admin(session)
        created_e = created_c = 0
        if not args.no_demo:
            created_e = ensure_demo_employees(session)
            created_c = ensure_demo_customers(session)
        session.flush()
        if args.show_users:
            print_user_summary(session)
        if args.dry_run:
            session.rollback()
            print(f"[DRY-RUN] (rolled back) Users: {created_u}, Employees: {created_e}, Customers: {created_c}")
        else:
            session.commit()
            print(f"[DONE] Users created: {created_u}, Employees created: {created_e}, Customers created: {created_c}")


if __name__ == '__main__':
    main()
