"""
Text utility functions.
"""
from typing import Optional


def clean_optional_text(text: Optional[str]) -> Optional[str]:
    """
    Trim text; blank text becomes None.

    Args:
        text: The text to clean

    Returns:
        Trimmed text, or None if nothing is left
    """
    if text is None:
        return None
    stripped = text.strip()
    return stripped or None


def parse_optional_year(raw: Optional[str], field_name: str) -> Optional[int]:
    """
    Parse a year coming from a form field.

    Args:
        raw: Raw form value ("" or None means absent)
        field_name: Field name used in the error message

    Returns:
        The year as int, or None when the field is empty

    Raises:
        ValueError: If the value is not a whole number
    """
    if raw is None:
        return None
    value = str(raw).strip()
    if not value:
        return None
    try:
        number = float(value)
    except ValueError:
        raise ValueError(f"{field_name} is invalid: {raw!r}")
    if not number.is_integer():
        raise ValueError(f"{field_name} is invalid: {raw!r}")
    return int(number)
