"""Header alias resolution shared by every crew upload contract.

Uploads come from hand-edited spreadsheets, so the same logical column shows
up as ``Cell Phone``, ``cell_phone`` or ``Cell-Phone ``. Each logical field is
declared once as a :class:`FieldSpec` with its acceptable header spellings in
precedence order; :func:`resolve_field` does the lookup against a raw row.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Sequence, Tuple

_NON_ALNUM = re.compile(r"[^a-z0-9]")


class HeaderMatch(str, Enum):
    """How header names are compared against aliases."""

    LENIENT = "lenient"  # case and surrounding whitespace
    COMPACT = "compact"  # additionally ignores punctuation and inner spacing


@dataclass(frozen=True)
class FieldSpec:
    """Metadata describing a logical upload field."""

    name: str
    description: str
    required: bool = False
    aliases: Tuple[str, ...] = ()

    def headers(self) -> Tuple[str, ...]:
        """Return the acceptable header spellings in precedence order."""

        return self.aliases or (self.name,)

    @property
    def label(self) -> str:
        """Header name shown to operators in error messages."""

        return self.headers()[0]


def normalize_header(header: object, match: HeaderMatch = HeaderMatch.LENIENT) -> str:
    """Normalize a header (or alias) for comparison."""

    token = str(header if header is not None else "").lstrip("\ufeff").strip().lower()
    if match is HeaderMatch.COMPACT:
        return _NON_ALNUM.sub("", token)
    return token


def _cell_text(value: object | None) -> str:
    if value is None:
        return ""
    return str(value).strip()


def resolve_field(row: Mapping[str, object | None], spec: FieldSpec, match: HeaderMatch = HeaderMatch.LENIENT) -> str:
    """
    Return the trimmed cell value for ``spec`` or an empty string.

    Aliases are tried in order; an alias whose cell is empty is skipped in
    favour of a later alias.
    """

    header_map: dict[str, str] = {}
    for header in row.keys():
        header_map.setdefault(normalize_header(header, match), header)

    for alias in spec.headers():
        header = header_map.get(normalize_header(alias, match))
        if header is None:
            continue
        value = row.get(header)
        if value is None or value == "":
            continue
        return _cell_text(value)
    return ""


def missing_headers(
    headers: Iterable[str],
    specs: Sequence[FieldSpec],
    match: HeaderMatch = HeaderMatch.LENIENT,
) -> Tuple[str, ...]:
    """Return labels of required specs with no matching column among ``headers``."""

    present = {normalize_header(header, match) for header in headers}
    missing: list[str] = []
    for spec in specs:
        if not spec.required:
            continue
        if not any(normalize_header(alias, match) in present for alias in spec.headers()):
            missing.append(spec.label)
    return tuple(missing)
