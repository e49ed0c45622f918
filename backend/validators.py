import html
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import pycountry

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_uuid(value: Optional[str]) -> bool:
    try:
        uuid.UUID(str(value))
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def digits_only(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """Escape HTML special characters and trim. ``None`` passes through."""
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(value, quote=True).strip()


def validate_email(email: Optional[str]) -> str:
    normalized = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(normalized):
        raise ValueError("Invalid email address")
    return normalized


def validate_phone(phone: Optional[str]) -> str:
    """Brazilian phone: area code plus 8 or 9 digits. Returns digits only."""
    digits = digits_only(phone)
    if len(digits) not in (10, 11):
        raise ValueError("Phone must have 10 or 11 digits")
    return digits


def validate_zip_code(zip_code: Optional[str]) -> str:
    digits = digits_only(zip_code)
    if len(digits) != 8:
        raise ValueError("Zip code (CEP) must have 8 digits")
    return digits


def validate_state(state: Optional[str]) -> str:
    code = (state or "").strip().upper()
    if len(code) != 2 or pycountry.subdivisions.get(code=f"BR-{code}") is None:
        raise ValueError("State must be a valid two-letter UF")
    return code


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a database timestamp; naive values are taken as UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
