"""
validation.py - Format checks shared by Claim, Update and the admin tool.

All checks run before any storage access. Failures raise SyncException
carrying a FORMAT_ERROR.
"""

import re
from typing import Any

from .errors import SyncException, format_error

MAX_INT31 = 2**31 - 1

UID_PATTERN = re.compile(r"[A-Za-z0-9_]{1,255}")
PASSCODE_PATTERN = re.compile(r"[\x21-\x7e]{1,64}")
ISBN_PATTERN = re.compile(r"[0-9]{13}")


def normalize_uid(uid: Any) -> str:
    """Check a dataset identifier and fold it to lowercase."""
    if not isinstance(uid, str) or not UID_PATTERN.fullmatch(uid):
        raise SyncException(format_error("Invalid dataset name"))
    return uid.lower()


def check_passcode(passcode: Any) -> str:
    """Passcodes are 1-64 printable, non-whitespace ASCII characters."""
    if not isinstance(passcode, str) or not PASSCODE_PATTERN.fullmatch(passcode):
        raise SyncException(format_error("Invalid passcode"))
    return passcode


def isbn13_checksum_ok(isbn: str) -> bool:
    """
    Standard ISBN-13 check: digits weighted 1,3,1,3,... from the left must
    sum to a multiple of 10.
    """
    total = sum(int(digit) * (3 if i % 2 else 1) for i, digit in enumerate(isbn))
    return total % 10 == 0


def check_isbn(isbn: Any) -> str:
    if not isinstance(isbn, str) or not ISBN_PATTERN.fullmatch(isbn):
        raise SyncException(format_error("ISBN format incorrect", isbn=isbn))
    if not isbn13_checksum_ok(isbn):
        raise SyncException(format_error("ISBN check digit incorrect", isbn=isbn))
    return isbn


def check_int31(name: str, value: Any) -> int:
    """Integers in [0, 2^31 - 1]. Booleans are not accepted as integers."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise SyncException(format_error(f"Wrong type for {name}", field=name))
    if not 0 <= value <= MAX_INT31:
        raise SyncException(
            format_error(f"{name.capitalize()} out of range", field=name, value=value)
        )
    return value


def check_cancel_flag(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if not isinstance(value, int) or value not in (0, 1):
        raise SyncException(format_error("Cancel flag out of range", value=value))
    return value
