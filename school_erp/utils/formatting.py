"""Helpers for building JSON responses from ORM rows."""
from datetime import date, datetime
from typing import Any, Optional


def iso(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def sid(value: Optional[Any]) -> Optional[str]:
    return str(value) if value is not None else None


def user_summary(user) -> Optional[dict]:
    if user is None:
        return None
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "phone": user.phone,
    }
