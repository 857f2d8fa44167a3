"""Shared validation utilities"""

import re
from datetime import datetime
from typing import Optional

from .errors import ValidationError

# Firebase UIDs, Firestore document ids and uuid4 strings all fit this shape
ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_\-.:]{0,127}$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_id(value, field: str = "id") -> str:
    """
    Validate an opaque identifier (user, facility, court or booking id).

    Raises:
        ValidationError: If the id is empty, too long or contains unsupported characters
    """
    if not isinstance(value, str) or not ID_PATTERN.match(value):
        raise ValidationError(f"Malformed {field}", {"field": field})
    return value


def validate_price_cents(price, field: str = "price") -> int:
    """
    Validate a price expressed in integer cents.

    Raises:
        ValidationError: If the price is not a positive integer
    """
    # bool is a subclass of int, reject it explicitly
    if isinstance(price, bool) or not isinstance(price, int):
        raise ValidationError(f"{field} must be an integer number of cents", {"field": field})
    if price <= 0:
        raise ValidationError(f"{field} must be greater than 0", {"field": field})
    return price


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValidationError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format", {"field": "email"})

    return email


def validate_slot(date: str, start_time: str, end_time: str) -> None:
    """Validate a YYYY-MM-DD date and an HH:MM start/end pair"""
    try:
        datetime.strptime(date, "%Y-%m-%d")
        start = datetime.strptime(start_time, "%H:%M")
        end = datetime.strptime(end_time, "%H:%M")
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid booking slot: {e}", {"field": "slot"}) from e

    if end <= start:
        raise ValidationError("end_time must be after start_time", {"field": "end_time"})
