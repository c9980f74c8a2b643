# order_hub/services/gtin.py
"""
GTIN structural validation.

Accepts GTIN-8 (EAN-8), GTIN-12 (UPC-A), GTIN-13 (EAN-13) and GTIN-14 codes.
A code is a GTIN when it is all digits, has one of those lengths and carries
a valid GS1 check digit. Anything else is left to the barcode fallback.
"""
from __future__ import annotations
import re
from typing import Optional

GTIN_LENGTHS = (8, 12, 13, 14)

_DIGITS = re.compile(r"^\d+$")


def gs1_check_digit(payload: str) -> int:
    """
    GS1 mod-10 check digit for the digits preceding it.

    Weights alternate 3, 1, 3, ... starting from the rightmost payload digit,
    which makes one routine valid for every GTIN length.
    """
    total = sum(int(d) * (3 if i % 2 == 0 else 1) for i, d in enumerate(reversed(payload)))
    return (10 - (total % 10)) % 10


def is_valid_gtin(code: str) -> bool:
    if len(code) not in GTIN_LENGTHS or not _DIGITS.match(code):
        return False
    return int(code[-1]) == gs1_check_digit(code[:-1])


def parse_gtin(code: Optional[str]) -> Optional[str]:
    """Return the normalized GTIN, or None when `code` is not one."""
    code = (code or "").strip()
    if not code:
        return None
    return code if is_valid_gtin(code) else None
