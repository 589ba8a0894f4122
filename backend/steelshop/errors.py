"""Domain error kinds.

None of these are fatal; each maps to an HTTP status so the app-level error
handler can render the standard error payload. Status transitions hand
InvalidTransition back inside a TransitionResult instead of raising it.
"""
from __future__ import annotations
from typing import Optional


class DomainError(Exception):
    status_code = 400
    title = 'Bad Request'

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(DomainError):
    pass


class AuthRequired(DomainError):
    status_code = 401
    title = 'Unauthorized'

    def __init__(self, detail: str = 'Authentication required'):
        super().__init__(detail)


class AccessDenied(DomainError):
    status_code = 403
    title = 'Forbidden'

    def __init__(self, detail: str = 'Access denied'):
        super().__init__(detail)


class UnknownRole(AccessDenied):
    def __init__(self, role: Optional[str]):
        super().__init__(f'Unknown role {role!r}')
        self.role = role


class InvalidTransition(DomainError):
    """Rejected status change. `reason` is one of the lifecycle rejection codes."""

    ROLE_NOT_PERMITTED = 'role_not_permitted'

    def __init__(self, current: str, target: str, reason: str):
        super().__init__(f'Invalid status transition {current} -> {target} ({reason})')
        self.current = current
        self.target = target
        self.reason = reason
        if reason == self.ROLE_NOT_PERMITTED:
            self.status_code = 403
            self.title = 'Forbidden'


__all__ = ['DomainError', 'ValidationError', 'AuthRequired', 'AccessDenied', 'UnknownRole', 'InvalidTransition']
