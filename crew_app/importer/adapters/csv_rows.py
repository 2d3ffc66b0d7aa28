"""CSV adapter for crew roster uploads.

Turns CSV text into read-only rows keyed by the original header text. Header
matching against field aliases happens later, in the pipeline, so this adapter
only sanitizes header names and skips blank lines.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from types import MappingProxyType
from typing import IO, Iterator, Mapping, Sequence


class CSVAdapterError(Exception):
    """An uploaded roster could not be read as CSV."""


class CSVHeaderError(CSVAdapterError):
    """Raised when the CSV has no usable header row."""

    def __init__(self, message: str = "CSV header row is missing or empty.", *, duplicates: Sequence[str] = ()) -> None:
        if duplicates:
            message = f"{message} Duplicate columns detected: {', '.join(sorted(duplicates))}."
        super().__init__(message)
        self.duplicates = tuple(duplicates)


class CSVParseError(CSVAdapterError):
    """The upload is not decodable text or is not well-formed CSV."""


@dataclass(frozen=True)
class CrewCSVHeader:
    raw_headers: tuple[str, ...]


@dataclass
class CrewCSVStatistics:
    """Row counters updated while ``iter_rows`` is consumed."""

    rows_processed: int = 0
    rows_skipped_blank: int = 0


def _clean_header(header: str | None) -> str:
    # spreadsheet exports prepend a BOM to the first column
    return (header or "").lstrip("\ufeff").strip()


def _row_is_blank(row: Mapping[str, object | None]) -> bool:
    return not any(str(value).strip() for value in row.values() if value is not None)


class CrewCSVAdapter:
    """CSV reader yielding immutable crew upload rows."""

    def __init__(self, file_obj: IO[str], *, skip_blank_rows: bool = True) -> None:
        self._source = file_obj
        self.skip_blank_rows = skip_blank_rows
        self._header: CrewCSVHeader | None = None
        self.statistics = CrewCSVStatistics()

    @property
    def header(self) -> CrewCSVHeader | None:
        return self._header

    def _open_reader(self) -> csv.DictReader:
        if self._source.seekable():
            self._source.seek(0)
        reader = csv.DictReader(self._source)
        if not reader.fieldnames or not any(_clean_header(name) for name in reader.fieldnames):
            raise CSVHeaderError()

        headers = tuple(_clean_header(name) for name in reader.fieldnames)
        named = [header for header in headers if header]
        duplicates = sorted({header for header in named if named.count(header) > 1})
        if duplicates:
            raise CSVHeaderError("CSV header validation failed.", duplicates=duplicates)

        reader.fieldnames = list(headers)
        self._header = CrewCSVHeader(raw_headers=headers)
        return reader

    def iter_rows(self) -> Iterator[Mapping[str, object | None]]:
        reader: csv.DictReader | None = None
        try:
            reader = self._open_reader()
            for raw_row in reader:
                row = {key: value for key, value in raw_row.items() if key}
                if self.skip_blank_rows and _row_is_blank(row):
                    self.statistics.rows_skipped_blank += 1
                    continue
                self.statistics.rows_processed += 1
                yield MappingProxyType(row)
        except UnicodeDecodeError as exc:
            raise CSVParseError("CSV upload must be UTF-8 encoded text.") from exc
        except csv.Error as exc:
            line = reader.line_num if reader is not None else 1
            raise CSVParseError(f"CSV could not be parsed at line {line}: {exc}") from exc

    def read_rows(self) -> list[Mapping[str, object | None]]:
        return list(self.iter_rows())
