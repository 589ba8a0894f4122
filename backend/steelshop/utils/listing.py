"""List endpoint helpers: pagination, multi-field sort, query filters and
ETag / Last-Modified conditional responses.

List payload shape:
    {"data": [...], "pagination": {"total", "limit", "offset", "returned"}}
"""
from __future__ import annotations
import hashlib
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from flask import abort, make_response, request

DEFAULT_LIMIT = 50
MAX_LIMIT = 200
TIMESTAMP_TOLERANCE = timedelta(seconds=1)


def normalize_pagination(limit_raw, offset_raw) -> Tuple[int, int]:
    try:
        limit = int(limit_raw) if limit_raw is not None else DEFAULT_LIMIT
        offset = int(offset_raw) if offset_raw is not None else 0
    except ValueError:
        raise ValueError('limit/offset must be int')
    return max(1, min(limit, MAX_LIMIT)), max(0, offset)


def apply_pagination(stmt, session):
    """Return (rows, total, limit, offset) for a select() statement using request args."""
    from sqlalchemy import func, select
    try:
        limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        abort(400, description=str(e))
    total = session.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()
    rows = session.execute(stmt.offset(offset).limit(limit)).scalars().all()
    return rows, int(total), limit, offset


def apply_multi_sort(stmt, sort_expr: Optional[str], allowed: Dict[str, Any], tie_breaker):
    """'-priority,created_at' -> ORDER BY priority DESC, created_at ASC, <tie_breaker> ASC."""
    clauses = []
    for raw in (sort_expr or '').split(','):
        token = raw.strip()
        if not token:
            continue
        desc = token.startswith('-')
        key = token.lstrip('-')
        col = allowed.get(key)
        if col is None:
            abort(400, description=f'Invalid sort field {key}')
        clauses.append(col.desc() if desc else col.asc())
    clauses.append(tie_breaker.asc())
    return stmt.order_by(*clauses)


def apply_filters(stmt, specs: Dict[str, Dict[str, Any]], params):
    """specs: {param: {'op': fn(stmt, value) -> stmt, 'coerce': fn, 'validate': fn}}"""
    for name, meta in specs.items():
        val = params.get(name)
        if val is None or val == '':
            continue
        if 'coerce' in meta:
            try:
                val = meta['coerce'](val)
            except (TypeError, ValueError):
                abort(400, description=f'{name} invalid')
        if 'validate' in meta and not meta['validate'](val):
            abort(400, description=f'{name} invalid')
        stmt = meta['op'](stmt, val)
    return stmt


def canonicalize_timestamp(dt: datetime) -> datetime:
    """UTC-aware, whole seconds."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0)


def iso_z(dt: datetime) -> str:
    return canonicalize_timestamp(dt).isoformat().replace('+00:00', 'Z')


def http_date(dt: datetime) -> str:
    return format_datetime(canonicalize_timestamp(dt), usegmt=True)


def compute_etag(ids: Iterable[Any], total: int, limit: int, offset: int, latest: str = '') -> str:
    seed = f"{list(ids)}|{total}|{limit}|{offset}|{latest}"
    return hashlib.sha256(seed.encode()).hexdigest()[:32]


def _validator_headers(resp, etag: str, latest_ts: Optional[datetime]):
    resp.headers['ETag'] = etag
    if latest_ts is not None:
        resp.headers['Last-Modified'] = http_date(latest_ts)
        resp.headers['X-Last-Modified-ISO'] = iso_z(latest_ts)
    return resp


def _parse_if_modified_since(raw: str) -> Optional[datetime]:
    try:
        return canonicalize_timestamp(datetime.fromisoformat(raw.replace('Z', '+00:00')))
    except ValueError:
        pass
    try:
        return canonicalize_timestamp(parsedate_to_datetime(raw))
    except (TypeError, ValueError):
        return None


def not_modified(etag: str, latest_ts: Optional[datetime]):
    """Return a 304 response when the request's validators still match, else None.

    If-None-Match wins over If-Modified-Since.
    """
    inm = request.headers.get('If-None-Match')
    if inm:
        if inm.strip('"') == etag:
            return _validator_headers(make_response('', 304), etag, latest_ts)
        return None
    ims = request.headers.get('If-Modified-Since')
    if ims and latest_ts is not None:
        ims_dt = _parse_if_modified_since(ims)
        if ims_dt and canonicalize_timestamp(latest_ts) <= ims_dt + TIMESTAMP_TOLERANCE:
            return _validator_headers(make_response('', 304), etag, latest_ts)
    return None


def list_response(rows: list, total: int, limit: int, offset: int, latest_ts: Optional[datetime] = None):
    etag = compute_etag([r.get('id') for r in rows], total, limit, offset, iso_z(latest_ts) if latest_ts else '')
    cond = not_modified(etag, latest_ts)
    if cond is not None:
        return cond
    body = {
        'data': rows,
        'pagination': {'total': total, 'limit': limit, 'offset': offset, 'returned': len(rows)},
    }
    return _validator_headers(make_response(body), etag, latest_ts)


def item_response(body: dict, latest_ts: Optional[datetime] = None):
    etag = compute_etag([body.get('id')], 1, 1, 0, iso_z(latest_ts) if latest_ts else '')
    cond = not_modified(etag, latest_ts)
    if cond is not None:
        return cond
    return _validator_headers(make_response(body), etag, latest_ts)


def latest_of(rows, attr: str = 'updated_at') -> Optional[datetime]:
    stamps = [getattr(r, attr) for r in rows if getattr(r, attr, None) is not None]
    return max((canonicalize_timestamp(s) for s in stamps), default=None)


__all__ = [
    'DEFAULT_LIMIT', 'MAX_LIMIT', 'normalize_pagination', 'apply_pagination', 'apply_multi_sort', 'apply_filters',
    'canonicalize_timestamp', 'iso_z', 'http_date', 'compute_etag', 'not_modified', 'list_response',
    'item_response', 'latest_of',
]
