# homeservice_admin/utils/formatters.py
import re
from decimal import Decimal, InvalidOperation
from typing import Optional
from ..config import Config

DURATION_PATTERN = re.compile(r'^(\d{1,2}):([0-5]\d)$')

def format_fee(amount: Optional[Decimal]) -> str:
    """Format a service fee for display"""
    if amount is None:
        return "-"
    return f"${amount:,.2f}"

def parse_fee(text: str) -> Decimal:
    """Parse a fee typed by the admin"""
    try:
        amount = Decimal(text.strip().lstrip('$').replace(',', ''))
    except InvalidOperation:
        raise ValueError("Fee must be a number, e.g. 250 or 99.50")
    if not amount.is_finite() or amount < 0:
        raise ValueError("Fee can not be negative")
    return amount

def parse_duration(text: str) -> str:
    """Validate an estimated duration in HH:MM form"""
    match = DURATION_PATTERN.match(text.strip())
    if not match:
        raise ValueError("Duration must look like HH:MM, e.g. 01:30")
    hours, minutes = match.groups()
    return f"{int(hours):02d}:{minutes}"

def resolve_icon_url(icon: Optional[str]) -> Optional[str]:
    """Absolute URL of an icon; relative paths live under the file host"""
    if not icon:
        return None
    if icon.startswith('http'):
        return icon
    return f"{Config.API_FILE_URL}/{icon.lstrip('/')}"

def truncate(text: Optional[str], limit: int = 60) -> str:
    if not text:
        return ""
    return text if len(text) <= limit else text[:limit - 1] + "…"
