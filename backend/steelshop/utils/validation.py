"""Reusable request-payload validation helpers.

Each helper returns the cleaned value (to allow inline use) or raises
ValidationError, which the app error handler renders as a 400.
"""
from __future__ import annotations
from datetime import date
from typing import Iterable, Optional

from steelshop.errors import ValidationError


def validate_choice(value, allowed: Iterable[str], field_name: str = 'status') -> str:
    if value not in tuple(allowed):
        raise ValidationError(f"{field_name} invalid")
    return value


def require_text(data: dict, field_name: str, label: Optional[str] = None) -> str:
    val = data.get(field_name)
    if not isinstance(val, str) or not val.strip():
        raise ValidationError(f"{label or field_name} required")
    return val.strip()


def optional_text(data: dict, field_name: str) -> Optional[str]:
    val = data.get(field_name)
    if val is None:
        return None
    if not isinstance(val, str):
        raise ValidationError(f"{field_name} must be string")
    return val.strip() or None


def positive_int(value, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be int")
    try:
        num = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be int") from None
    if isinstance(value, float) and value != num:
        raise ValidationError(f"{field_name} must be int")
    if num <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    return num


def positive_number(value, field_name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        num = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number") from None
    if not num > 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    return num


def non_negative_int(value, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be int")
    try:
        num = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be int") from None
    if num < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return num


def parse_date(value, field_name: str) -> Optional[date]:
    if value in (None, ''):
        return None
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD") from None


__all__ = [
    'validate_choice', 'require_text', 'optional_text', 'positive_int',
    'positive_number', 'non_negative_int', 'parse_date',
]
