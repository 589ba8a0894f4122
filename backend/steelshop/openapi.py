"""Deterministic OpenAPI document generated from the registered routes.

Each operation carries `x-required-roles` read from the access rule its view is
gated with (an empty list means any authenticated user). The JobOrder schema
carries `x-transitions`, the edge -> roles table of the lifecycle.
"""
import re
from typing import Any, Dict

from steelshop.constants.roles import ALL_ROLES
from steelshop.models.job_order import JobOrder
from steelshop.services.lifecycle import EDGE_ROLES, PROGRESS

__all__ = ["build_openapi_spec"]

_SKIP_ENDPOINTS = {'static', 'openapi_spec', 'docs_index'}
_PARAM_RE = re.compile(r'<(?:[a-z]+:)?([a-zA-Z_]+)>')

# Views answering through utils.listing.list_response
CACHED_LIST_ENDPOINTS = {
    'iam.list_users',
    'job_orders.list_job_orders',
    'customers.list_customers',
    'payroll.list_adjustments',
}


def _caching_headers() -> Dict[str, Any]:
    return {
        'ETag': {'schema': {'type': 'string'}},
        'Last-Modified': {'schema': {'type': 'string'}},
        'X-Last-Modified-ISO': {'schema': {'type': 'string', 'format': 'date-time'}},
    }


def _schemas() -> Dict[str, Any]:
    return {
        'Error': {
            'type': 'object',
            'properties': {
                'error': {
                    'type': 'object',
                    'properties': {
                        'status': {'type': 'integer'},
                        'title': {'type': 'string'},
                        'detail': {'type': 'string'},
                    },
                },
                'redirect': {'type': 'string'},
            },
        },
        'JobOrder': {
            'type': 'object',
            'properties': {
                'id': {'type': 'integer'},
                'po_number': {'type': 'string'},
                'status': {'type': 'string', 'enum': list(JobOrder.ALL_STATUSES)},
                'priority': {'type': 'string', 'enum': list(JobOrder.ALL_PRIORITIES)},
                'steel_type': {'type': 'string', 'enum': list(JobOrder.STEEL_TYPES)},
                'progress': {'type': 'integer'},
            },
            'x-transitions': [
                {'from': src, 'to': dst, 'roles': sorted(roles)}
                for (src, dst), roles in EDGE_ROLES.items()
            ],
            'x-progress': dict(PROGRESS),
        },
        'Role': {'type': 'string', 'enum': list(ALL_ROLES)},
    }


def _operation(app, rule, method: str) -> Dict[str, Any]:
    view = app.view_functions[rule.endpoint]
    access = getattr(view, 'required_access', None)
    doc = (view.__doc__ or '').strip().splitlines()
    op: Dict[str, Any] = {
        'operationId': rule.endpoint.replace('.', '_') + ('' if method == 'get' else f'_{method}'),
        'summary': doc[0] if doc else rule.endpoint.split('.')[-1].replace('_', ' '),
        'tags': [rule.endpoint.split('.')[0]] if '.' in rule.endpoint else ['system'],
        'responses': {
            '200': {'description': 'OK'},
            'default': {'description': 'Error', 'content': {'application/json': {'schema': {'$ref': '#/components/schemas/Error'}}}},
        },
    }
    params = [
        {'name': name, 'in': 'path', 'required': True, 'schema': {'type': 'integer'}}
        for name in _PARAM_RE.findall(rule.rule)
    ]
    if rule.endpoint in CACHED_LIST_ENDPOINTS:
        params += [
            {'name': 'limit', 'in': 'query', 'schema': {'type': 'integer', 'minimum': 1, 'maximum': 200}},
            {'name': 'offset', 'in': 'query', 'schema': {'type': 'integer', 'minimum': 0}},
        ]
        op['responses']['200']['headers'] = _caching_headers()
        op['responses']['304'] = {'description': 'Not Modified'}
    if params:
        op['parameters'] = params
    if access is not None:
        op['security'] = [{'bearerAuth': []}]
        op['x-access-resource'] = access.resource_path
        op['x-required-roles'] = sorted(access.allowed_roles)
    return op


def build_openapi_spec(app) -> Dict[str, Any]:
    paths: Dict[str, Any] = {}
    for rule in sorted(app.url_map.iter_rules(), key=lambda r: (r.rule, r.endpoint)):
        if rule.endpoint in _SKIP_ENDPOINTS:
            continue
        path = _PARAM_RE.sub(r'{\1}', rule.rule)
        for method in sorted(m.lower() for m in rule.methods - {'HEAD', 'OPTIONS'}):
            paths.setdefault(path, {})[method] = _operation(app, rule, method)
    return {
        'openapi': '3.0.3',
        'info': {'title': 'Steel Shop Workflow API', 'version': '1.0.0'},
        'paths': paths,
        'components': {
            'schemas': _schemas(),
            'securitySchemes': {'bearerAuth': {'type': 'http', 'scheme': 'bearer', 'bearerFormat': 'JWT'}},
        },
    }
