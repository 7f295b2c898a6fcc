"""
Utility functions for logging, text handling and value formatting.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, Union


def init_logger(
    name: str = "catalog",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = None
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def humanize_key(key: str) -> str:
    """
    Turn an attribute key into a display label.

    "priceMin" -> "Price Min", "price_min" -> "Price min".
    """
    if not key:
        return ""
    label = re.sub(r"([A-Z])", r" \1", key).replace("_", " ").strip()
    return label[:1].upper() + label[1:]


def to_number(text: Any) -> Optional[Union[int, float]]:
    """Parse a number, returning an int when the value is integral."""
    if text is None or isinstance(text, bool):
        return None
    if isinstance(text, (int, float)):
        return text
    s = str(text).strip()
    if not s:
        return None
    try:
        value = float(s)
    except ValueError:
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return int(value) if value.is_integer() and "." not in s and "e" not in s.lower() else value


def toggle_member(values: Sequence[str], value: str) -> List[str]:
    """
    Set-toggle a value in an ordered sequence.

    Removes the value if present, otherwise appends it. Order of the
    remaining members is preserved, so toggling twice is an identity.
    """
    current = list(values)
    if value in current:
        return [x for x in current if x != value]
    return current + [value]


def format_param_value(value: Any) -> str:
    """Render a scalar as a querystring value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
