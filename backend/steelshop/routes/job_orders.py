from __future__ import annotations
from dataclasses import replace
from flask import Blueprint, request, abort, current_app
from sqlalchemy import select
from steelshop import get_db
from steelshop.constants.roles import CUTTER
from steelshop.decorators.auth import require_access, current_principal
from steelshop.models.customer import Customer
from steelshop.models.job_order import JobOrder, JobOrderSnapshot
from steelshop.models.user import User
from steelshop.repositories.job_orders import SqlJobOrderRepository
from steelshop.services.lifecycle import (
    allowed_targets, apply_transition, production_progress, progress_of, record_cut_progress,
)
from steelshop.utils.listing import apply_filters, apply_multi_sort, apply_pagination, item_response, latest_of, list_response
from steelshop.utils.validation import (
    non_negative_int, optional_text, parse_date, positive_int, positive_number, require_text, validate_choice,
)

jo_bp = Blueprint('job_orders', __name__)

EDITABLE_FIELDS = ('priority', 'weight', 'price_cents', 'delivery_date', 'special_instructions', 'assigned_cutter_id')


def order_json(o, role=None):
    """Shared JSON shape for rows and snapshots (both expose the same field names)."""
    body = {
        'id': o.id,
        'po_number': o.po_number,
        'customer_id': o.customer_id,
        'steel_type': o.steel_type,
        'quantity': o.quantity,
        'width': o.width,
        'length': o.length,
        'thickness': o.thickness,
        'status': o.status,
        'priority': o.priority,
        'weight': o.weight,
        'price_cents': o.price_cents,
        'delivery_date': o.delivery_date.isoformat() if o.delivery_date else None,
        'special_instructions': o.special_instructions,
        'assigned_cutter_id': o.assigned_cutter_id,
        'completed_quantity': o.completed_quantity,
        'completed_at': o.completed_at.isoformat() if o.completed_at else None,
        'created_at': o.created_at.isoformat() if o.created_at else None,
        'progress': progress_of(o.status),
        'production_progress': production_progress(o),
    }
    if role is not None:
        body['allowed_transitions'] = allowed_targets(o.status, role)
    return body


def _snapshot_or_404(repo: SqlJobOrderRepository, order_id: int) -> JobOrderSnapshot:
    snap = repo.get(order_id)
    if snap is None:
        abort(404)
    return snap


def _resolve_customer(session, data: dict) -> Customer:
    if data.get('customer_id') is not None:
        cid = positive_int(data['customer_id'], 'customer_id')
        customer = session.execute(select(Customer).where(Customer.id == cid)).scalar_one_or_none()
        if not customer:
            abort(400, description='customer not found')
        return customer
    name = require_text(data, 'customer_name', 'customer_id or customer_name')
    customer = Customer(
        name=name,
        email=optional_text(data, 'customer_email'),
        phone=optional_text(data, 'customer_phone'),
        address=optional_text(data, 'customer_address'),
    )
    session.add(customer)
    session.flush()
    return customer


def _validate_cutter(session, value):
    if value is None:
        return None
    uid = positive_int(value, 'assigned_cutter_id')
    user = session.execute(select(User).where(User.id == uid)).scalar_one_or_none()
    if not user or not user.is_active or user.role != CUTTER:
        abort(400, description='assigned_cutter_id must reference an active cutter')
    return uid


def _optional(data: dict, key: str, fn):
    val = data.get(key)
    return None if val is None else fn(val, key)


@jo_bp.get('')
@require_access('/job-order/:id')
def list_job_orders():
    session = get_db()
    stmt = select(JobOrder)
    stmt = apply_filters(stmt, {
        'status': {'op': lambda s, v: s.where(JobOrder.status == v), 'validate': lambda v: v in JobOrder.ALL_STATUSES},
        'priority': {'op': lambda s, v: s.where(JobOrder.priority == v), 'validate': lambda v: v in JobOrder.ALL_PRIORITIES},
        'customer_id': {'op': lambda s, v: s.where(JobOrder.customer_id == v), 'coerce': int},
    }, request.args)
    allowed = {
        'po_number': JobOrder.po_number,
        'status': JobOrder.status,
        'priority': JobOrder.priority,
        'delivery_date': JobOrder.delivery_date,
        'created_at': JobOrder.created_at,
        'updated_at': JobOrder.updated_at,
        'id': JobOrder.id,
    }
    stmt = apply_multi_sort(stmt, request.args.get('sort'), allowed, JobOrder.id)
    rows, total, limit, offset = apply_pagination(stmt, session)
    return list_response([order_json(o) for o in rows], total, limit, offset, latest_of(rows))


@jo_bp.post('')
@require_access('/new-job-order')
def create_job_order():
    session = get_db()
    data = request.json or {}
    po_number = require_text(data, 'po_number')
    steel_type = validate_choice(data.get('steel_type'), JobOrder.STEEL_TYPES, 'steel_type')
    quantity = positive_int(data.get('quantity'), 'quantity')
    width = positive_number(data.get('width'), 'width')
    length = positive_number(data.get('length'), 'length')
    thickness = positive_number(data.get('thickness'), 'thickness')
    priority = validate_choice(data.get('priority') or JobOrder.PRIORITY_NORMAL, JobOrder.ALL_PRIORITIES, 'priority')
    customer = _resolve_customer(session, data)
    snap = JobOrderSnapshot(
        id=None,
        po_number=po_number,
        customer_id=customer.id,
        steel_type=steel_type,
        quantity=quantity,
        width=width,
        length=length,
        thickness=thickness,
        priority=priority,
        weight=_optional(data, 'weight', positive_number),
        price_cents=_optional(data, 'price_cents', non_negative_int),
        delivery_date=parse_date(data.get('delivery_date'), 'delivery_date'),
        special_instructions=optional_text(data, 'special_instructions'),
        created_by=int(current_principal().identity),
    )
    saved = SqlJobOrderRepository(session).save(snap)
    session.commit()
    current_app.logger.info('Job order created: id=%s po=%s', saved.id, saved.po_number)
    return order_json(saved, current_principal().role), 201


@jo_bp.get('/<int:order_id>')
@require_access('/job-order/:id')
def get_job_order(order_id: int):
    repo = SqlJobOrderRepository(get_db())
    row = repo.get_row(order_id)
    if not row:
        abort(404)
    return item_response(order_json(row, current_principal().role), row.updated_at)


@jo_bp.put('/<int:order_id>')
@require_access('/new-job-order')
def update_job_order(order_id: int):
    session = get_db()
    repo = SqlJobOrderRepository(session)
    snap = _snapshot_or_404(repo, order_id)
    data = request.json or {}
    if 'status' in data:
        abort(400, description='status changes go through /transition')
    unknown = set(data) - set(EDITABLE_FIELDS)
    if unknown:
        abort(400, description=f'Unknown fields: {sorted(unknown)}')
    changes = {}
    if 'priority' in data:
        changes['priority'] = validate_choice(data['priority'], JobOrder.ALL_PRIORITIES, 'priority')
    if 'weight' in data:
        changes['weight'] = _optional(data, 'weight', positive_number)
    if 'price_cents' in data:
        changes['price_cents'] = _optional(data, 'price_cents', non_negative_int)
    if 'delivery_date' in data:
        changes['delivery_date'] = parse_date(data['delivery_date'], 'delivery_date')
    if 'special_instructions' in data:
        changes['special_instructions'] = optional_text(data, 'special_instructions')
    if 'assigned_cutter_id' in data:
        changes['assigned_cutter_id'] = _validate_cutter(session, data['assigned_cutter_id'])
    saved = repo.save(replace(snap, **changes))
    session.commit()
    return order_json(saved, current_principal().role)


@jo_bp.post('/<int:order_id>/transition')
@require_access('/job-order/:id')
def transition_job_order(order_id: int):
    session = get_db()
    repo = SqlJobOrderRepository(session)
    snap = _snapshot_or_404(repo, order_id)
    data = request.json or {}
    target = data.get('status')
    if not target:
        abort(400, description='status required')
    if not isinstance(target, str):
        abort(400, description='status must be string')
    principal = current_principal()
    result = apply_transition(snap, target, principal.role)
    if not result.ok:
        current_app.logger.info(
            'Transition rejected: order=%s %s -> %s role=%s reason=%s',
            order_id, snap.status, target, principal.role, result.error.reason,
        )
        raise result.error
    saved = repo.save(result.order)
    session.commit()
    current_app.logger.info('Job order %s moved %s -> %s', order_id, snap.status, saved.status)
    return order_json(saved, principal.role)


@jo_bp.post('/<int:order_id>/progress')
@require_access('/production')
def record_progress(order_id: int):
    session = get_db()
    repo = SqlJobOrderRepository(session)
    snap = _snapshot_or_404(repo, order_id)
    data = request.json or {}
    saved = repo.save(record_cut_progress(snap, data.get('completed_quantity')))
    session.commit()
    return order_json(saved, current_principal().role)
