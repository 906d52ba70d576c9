"""Display helpers using Swiss German (de-CH) conventions and CHF."""

from datetime import datetime
from typing import Optional

CURRENCY = "CHF"
GROUP_SEPARATOR = "’"


def _group(text: str) -> str:
    # "1,234.5" -> "1’234.5"
    return text.replace(",", GROUP_SEPARATOR)


def number_format(value: float, max_fraction_digits: int = 2) -> str:
    """Formats a number with at most the given fraction digits, e.g. 1’234.5."""
    text = f"{value:,.{max_fraction_digits}f}"
    if max_fraction_digits > 0:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return _group(text)


def currency_format(value: float) -> str:
    """Formats an amount as e.g. CHF 1’234.50 or CHF -12.30."""
    text = _group(f"{abs(value):,.2f}")
    sign = "-" if value < 0 and text != "0.00" else ""
    return f"{CURRENCY} {sign}{text}"


def date_format(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.strftime("%d.%m.%Y, %H:%M")
