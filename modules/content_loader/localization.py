"""Localization tables and the per-load request session.

``Localization.csv`` holds one row per key and one column per locale::

    key,en,de
    ember/name,Ember,Glut

A :class:`LocalizationTable` maps each key to a provider bound to its row; a
provider answers ``provider("en") -> "Ember"``.  Package code never touches
the table directly: it goes through a :class:`LocalizationSession` which
memoizes providers and remembers which keys were used or missing so the load
can report unused and missing strings once, at the very end.
"""
from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from .diagnostics import DiagnosticKind, LoadReport, format_key_list
from .registry import LocalizationProvider
from plugins import PLUGIN_MANAGER

KEY_COLUMN = "key"


def _row_provider(row: Mapping[str, str]) -> LocalizationProvider:
    values = dict(row)

    def provide(column: str) -> Optional[str]:
        return values.get(column)

    return provide


class LocalizationTable:
    """Immutable mapping from localization key to row provider."""

    def __init__(self, columns: Sequence[str] = (), rows: Optional[Mapping[str, Mapping[str, str]]] = None) -> None:
        self.columns: Tuple[str, ...] = tuple(columns)
        self._rows: Dict[str, Dict[str, str]] = {key: dict(row) for key, row in (rows or {}).items()}
        self._providers: Dict[str, LocalizationProvider] = {
            key: _row_provider(row) for key, row in self._rows.items()
        }

    def __contains__(self, key: object) -> bool:
        return key in self._providers

    def __iter__(self) -> Iterator[str]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def get(self, key: str) -> Optional[LocalizationProvider]:
        return self._providers.get(key)

    def keys(self) -> Tuple[str, ...]:
        return tuple(self._providers)


def load_localization_table(path: Path, report: LoadReport) -> LocalizationTable:
    """Parse the CSV file at ``path``; absent files yield an empty table."""

    if not path.is_file():
        report.warn(
            DiagnosticKind.MISSING_OPTIONAL_INPUT,
            "Failed to find localization file",
            subject=str(path),
        )
        return LocalizationTable()

    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.reader(handle)
        header = next(reader, None)
        if header is None:
            report.warn(DiagnosticKind.MALFORMED_RECORD, "Localization file has no header row", subject=str(path))
            return LocalizationTable()
        columns = [column.strip() for column in header]
        rows: Dict[str, Dict[str, str]] = {}
        seen_rows = 0
        for line_number, values in enumerate(reader, start=2):
            if not any(value.strip() for value in values):
                continue
            seen_rows += 1
            record = dict(zip(columns, values))
            key = record.get(KEY_COLUMN, "").strip()
            if not key:
                report.warn(
                    DiagnosticKind.MALFORMED_RECORD,
                    f"Row {line_number} has no '{KEY_COLUMN}' value; skipping",
                    subject=str(path),
                )
                continue
            if key in rows:
                report.warn(
                    DiagnosticKind.MALFORMED_RECORD,
                    f"Row {line_number} repeats key '{key}'; keeping the first definition",
                    subject=str(path),
                )
                continue
            record[KEY_COLUMN] = key
            rows[key] = record

    if seen_rows == 0:
        report.warn(DiagnosticKind.MISSING_OPTIONAL_INPUT, "Localization file is empty", subject=str(path))
    table = LocalizationTable(columns, rows)
    report.context["localization_keys"] = len(table)
    report.note("Loaded %d localization keys from %s", len(table), path.name)
    return table


@dataclass(frozen=True)
class LocalizationDiagnostics:
    unused: Tuple[str, ...]
    missing: Tuple[str, ...]


class LocalizationSession:
    """Memoized, usage-tracking access to one table for the length of a load."""

    def __init__(self, table: LocalizationTable) -> None:
        self.table = table
        self._providers: Dict[str, Optional[LocalizationProvider]] = {}
        self._used: Set[str] = set()
        self._missing: List[str] = []
        self._result: Optional[LocalizationDiagnostics] = None

    def request(self, key: str) -> Optional[LocalizationProvider]:
        """Return the provider for ``key`` or ``None`` when the table lacks it."""

        if key in self._providers:
            return self._providers[key]
        provider = self.table.get(key)
        self._providers[key] = provider
        if provider is None:
            self._missing.append(key)
        else:
            self._used.add(key)
        return provider

    __call__ = request

    @property
    def used(self) -> frozenset:
        return frozenset(self._used)

    @property
    def missing(self) -> Tuple[str, ...]:
        return tuple(self._missing)

    @property
    def finalized(self) -> bool:
        return self._result is not None

    def finalize(self, report: Optional[LoadReport] = None) -> LocalizationDiagnostics:
        """Diff the table against the requested keys and report the outcome once."""

        if self._result is not None:
            return self._result
        unused = tuple(key for key in self.table if key not in self._used)
        self._result = LocalizationDiagnostics(unused=unused, missing=tuple(self._missing))
        if report is not None:
            if unused:
                report.warn(
                    DiagnosticKind.UNRESOLVED_REFERENCE,
                    f"{len(unused)} localization key(s) were never used: {format_key_list(unused)}",
                    subject="localization",
                )
            if self._missing:
                report.warn(
                    DiagnosticKind.UNRESOLVED_REFERENCE,
                    f"{len(self._missing)} localization key(s) were requested but missing: "
                    f"{format_key_list(self._missing)}",
                    subject="localization",
                )
            report.context["localization"] = {"unused": list(unused), "missing": list(self._missing)}
        return self._result


PLUGIN_MANAGER.expose("load_localization_table", load_localization_table)
PLUGIN_MANAGER.expose("LocalizationSession", LocalizationSession)

__all__ = [
    "KEY_COLUMN",
    "LocalizationDiagnostics",
    "LocalizationSession",
    "LocalizationTable",
    "load_localization_table",
]
