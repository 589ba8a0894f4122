from flask import Blueprint, request, abort, current_app
from flask_jwt_extended import create_access_token
from sqlalchemy import select
from steelshop.models.user import User
from steelshop import get_db
from steelshop.constants.roles import ALL_ROLES, DEFAULT_ROLE, ROLE_DISPLAY_NAMES
from steelshop.decorators.auth import require_access, current_principal
from steelshop.services.access import (
    assert_can_assign_role, assert_not_removing_last_superadmin, get_user_stats, landing_path_for,
)
from steelshop.utils.listing import apply_pagination, apply_filters, list_response, latest_of
from steelshop.utils.validation import require_text, optional_text

iam_bp = Blueprint('iam', __name__)

MIN_PASSWORD_LENGTH = 6


def _user_json(u: User):
    return {
        'id': u.id,
        'email': u.email,
        'full_name': u.full_name,
        'role': u.role,
        'role_display_name': ROLE_DISPLAY_NAMES.get(u.role, u.role),
        'is_active': u.is_active,
        'created_at': u.created_at.isoformat() if u.created_at else None,
    }


def _get_user_or_404(session, user_id: int) -> User:
    user = session.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if not user:
        abort(404)
    return user


@iam_bp.post('/auth/signup')
def signup():
    data = request.json or {}
    email = require_text(data, 'email').lower()
    password = data.get('password') or ''
    if not isinstance(password, str):
        abort(400, description='password must be string')
    if len(password) < MIN_PASSWORD_LENGTH:
        abort(400, description=f'password must be at least {MIN_PASSWORD_LENGTH} characters')
    session = get_db()
    if session.execute(select(User).where(User.email == email)).scalar_one_or_none():
        abort(409, description='email already registered')
    # New identities always start as guest until a superadmin assigns a role
    user = User(email=email, full_name=optional_text(data, 'full_name'), role=DEFAULT_ROLE)
    user.set_password(password)
    session.add(user)
    session.commit()
    current_app.logger.info('User signed up: id=%s', user.id)
    return _user_json(user), 201


@iam_bp.post('/auth/login')
def login():
    data = request.json or {}
    email = require_text(data, 'email').lower()
    password = data.get('password')
    if not password:
        abort(400, description='email & password required')
    if not isinstance(password, str):
        abort(400, description='password must be string')
    session = get_db()
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if not user or not user.is_active or not user.verify_password(password):
        abort(401, description='invalid credentials')
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(user.id), additional_claims={'role': user.role})
    return {'access_token': token, 'role': user.role, 'landing_path': landing_path_for(user.role)}


@iam_bp.get('/auth/me')
@require_access('/')
def me():
    session = get_db()
    user = _get_user_or_404(session, int(current_principal().identity))
    body = _user_json(user)
    body['landing_path'] = landing_path_for(user.role)
    return body


@iam_bp.get('/users')
@require_access('/superadmin')
def list_users():
    session = get_db()
    stmt = select(User)
    stmt = apply_filters(stmt, {
        'role': {'op': lambda s, v: s.where(User.role == v), 'validate': lambda v: v in ALL_ROLES},
    }, request.args)
    rows, total, limit, offset = apply_pagination(stmt.order_by(User.id.asc()), session)
    return list_response([_user_json(u) for u in rows], total, limit, offset, latest_of(rows))


@iam_bp.get('/users/stats')
@require_access('/superadmin')
def user_stats():
    session = get_db()
    users = session.execute(select(User).where(User.is_active.is_(True))).scalars().all()
    return {'roles': get_user_stats(users), 'total': len(users)}


@iam_bp.put('/users/<int:user_id>/role')
@require_access('/superadmin')
def set_user_role(user_id: int):
    session = get_db()
    user = _get_user_or_404(session, user_id)
    data = request.json or {}
    new_role = data.get('role')
    assert_can_assign_role(current_principal(), new_role)
    assert_not_removing_last_superadmin(session, user, new_role)
    old_role = user.role
    user.role = new_role
    session.commit()
    current_app.logger.info('Role changed: user=%s %s -> %s', user.id, old_role, new_role)
    return _user_json(user)


@iam_bp.delete('/users/<int:user_id>')
@require_access('/superadmin')
def delete_user(user_id: int):
    session = get_db()
    user = _get_user_or_404(session, user_id)
    if str(user.id) == current_principal().identity:
        abort(400, description='cannot delete yourself')
    assert_not_removing_last_superadmin(session, user)
    session.delete(user)
    session.commit()
    current_app.logger.info('User deleted: id=%s', user_id)
    return {'status': 'deleted'}
