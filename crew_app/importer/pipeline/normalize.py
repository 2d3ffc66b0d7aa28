"""
Field normalization helpers (phone numbers, timestamps).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

import phonenumbers
from phonenumbers import NumberParseException

_NON_DIGIT = re.compile(r"\D+")
_INTERNATIONAL = re.compile(r"^\+\d{8,15}$")
_COUNTRY_PREFIX = re.compile(r"^\+(\d{1,3})")

SQL_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class NormalizedPhone:
    """
    Phone number ready for submission.

    Attributes:
        e164: International form when recognised, otherwise the trimmed input.
        country_code: Dialling prefix without ``+``; ``None`` when undetermined.
    """

    e164: str
    country_code: str | None

    @property
    def is_parsed(self) -> bool:
        return self.country_code is not None


def normalize_phone(raw: object | None) -> NormalizedPhone | None:
    """
    Normalize a raw phone cell.

    - ``+`` followed by 8-15 digits is already international; the country code
      comes from libphonenumber metadata, falling back to the first (up to
      three) digits after ``+``.
    - 10 digits: domestic number, ``+1`` prepended.
    - 11 digits starting with ``1``: ``+`` prepended.
    - Anything else passes through unchanged with no country code.
    """

    if raw is None:
        return None
    token = str(raw).strip()
    if not token:
        return None

    if _INTERNATIONAL.match(token):
        return NormalizedPhone(e164=token, country_code=_country_code(token))

    digits = _NON_DIGIT.sub("", token)
    if len(digits) == 10:
        return NormalizedPhone(e164=f"+1{digits}", country_code="1")
    if len(digits) == 11 and digits.startswith("1"):
        return NormalizedPhone(e164=f"+{digits}", country_code="1")

    return NormalizedPhone(e164=token, country_code=None)


def _country_code(token: str) -> str | None:
    try:
        parsed = phonenumbers.parse(token, None)
    except NumberParseException:
        parsed = None
    if parsed is not None and parsed.country_code:
        return str(parsed.country_code)
    prefix = _COUNTRY_PREFIX.match(token)
    return prefix.group(1) if prefix else None


def sql_timestamp(moment: datetime | None = None) -> str:
    """Render ``moment`` (default: now, local time) as ``YYYY-MM-DD HH:MM:SS``."""

    return (moment or datetime.now()).strftime(SQL_TIMESTAMP_FORMAT)
