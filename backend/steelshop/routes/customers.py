from flask import Blueprint, request, abort
from sqlalchemy import select, func
from steelshop import get_db
from steelshop.decorators.auth import require_access
from steelshop.models.customer import Customer
from steelshop.models.job_order import JobOrder
from steelshop.routes.job_orders import order_json
from steelshop.utils.listing import apply_filters, apply_multi_sort, apply_pagination, item_response, latest_of, list_response
from steelshop.utils.validation import non_negative_int, optional_text, require_text

cust_bp = Blueprint('customers', __name__)

RECENT_ORDERS_LIMIT = 5
TEXT_FIELDS = ('email', 'phone', 'address', 'payment_method', 'notes')


def _customer_json(c: Customer):
    return {
        'id': c.id,
        'name': c.name,
        'email': c.email,
        'phone': c.phone,
        'address': c.address,
        'payment_method': c.payment_method,
        'credit_limit_cents': c.credit_limit_cents,
        'notes': c.notes,
        'created_at': c.created_at.isoformat() if c.created_at else None,
    }


def customer_stats(orders):
    total_spent = sum(o.price_cents or 0 for o in orders)
    return {
        'total_orders': len(orders),
        'active_orders': sum(1 for o in orders if o.status != JobOrder.STATUS_COMPLETED),
        'total_spent_cents': total_spent,
        'average_order_value_cents': total_spent // len(orders) if orders else 0,
    }


def _get_or_404(session, customer_id: int) -> Customer:
    c = session.execute(select(Customer).where(Customer.id == customer_id)).scalar_one_or_none()
    if not c:
        abort(404)
    return c


@cust_bp.get('')
@require_access('/customer/:id')
def list_customers():
    session = get_db()
    stmt = apply_filters(select(Customer), {
        'name': {'op': lambda s, v: s.where(func.lower(Customer.name).like(f'%{v.lower()}%'))},
    }, request.args)
    allowed = {'name': Customer.name, 'created_at': Customer.created_at, 'id': Customer.id}
    stmt = apply_multi_sort(stmt, request.args.get('sort'), allowed, Customer.id)
    rows, total, limit, offset = apply_pagination(stmt, session)
    return list_response([_customer_json(c) for c in rows], total, limit, offset, latest_of(rows))


@cust_bp.post('')
@require_access('/customer/:id')
def create_customer():
    session = get_db()
    data = request.json or {}
    c = Customer(name=require_text(data, 'name'))
    for key in TEXT_FIELDS:
        setattr(c, key, optional_text(data, key))
    if data.get('credit_limit_cents') is not None:
        c.credit_limit_cents = non_negative_int(data['credit_limit_cents'], 'credit_limit_cents')
    session.add(c)
    session.commit()
    return _customer_json(c), 201


@cust_bp.get('/<int:customer_id>')
@require_access('/customer/:id')
def get_customer(customer_id: int):
    session = get_db()
    c = _get_or_404(session, customer_id)
    orders = session.execute(
        select(JobOrder).where(JobOrder.customer_id == c.id).order_by(JobOrder.created_at.desc(), JobOrder.id.desc())
    ).scalars().all()
    body = _customer_json(c)
    body['stats'] = customer_stats(orders)
    body['recent_orders'] = [order_json(o) for o in orders[:RECENT_ORDERS_LIMIT]]
    return item_response(body, latest_of([c] + list(orders)))


@cust_bp.put('/<int:customer_id>')
@require_access('/customer/:id')
def update_customer(customer_id: int):
    session = get_db()
    c = _get_or_404(session, customer_id)
    data = request.json or {}
    if 'name' in data:
        c.name = require_text(data, 'name')
    for key in TEXT_FIELDS:
        if key in data:
            setattr(c, key, optional_text(data, key))
    if 'credit_limit_cents' in data:
        c.credit_limit_cents = non_negative_int(data['credit_limit_cents'], 'credit_limit_cents')
    session.commit()
    return _customer_json(c)
