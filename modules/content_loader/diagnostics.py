"""Diagnostics collected while a content package is resolved.

Every stage of the pipeline reports problems into one :class:`LoadReport`
instead of raising.  The report logs each entry once when it is added and
keeps it around so callers (the facade, the CLI, tests) can inspect the
outcome of a load after the fact.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from plugins import PLUGIN_MANAGER

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


class DiagnosticKind(str, Enum):
    """Failure taxonomy shared by all pipeline stages."""

    MISSING_OPTIONAL_INPUT = "missing-optional-input"
    MALFORMED_RECORD = "malformed-record"
    UNRESOLVED_REFERENCE = "unresolved-reference"
    MISSING_REQUIRED_REFERENCE = "missing-required-reference"
    INTERNAL_INCONSISTENCY = "internal-inconsistency"
    HOST_FAILURE = "host-failure"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    severity: Severity
    message: str
    subject: Optional[str] = None

    def format(self) -> str:
        if self.subject:
            return f"[{self.kind.value}] {self.subject}: {self.message}"
        return f"[{self.kind.value}] {self.message}"


@dataclass
class LoadReport:
    """Container collecting diagnostics and summary context for one load."""

    package: str = ""
    diagnostics: List[Diagnostic] = field(default_factory=list)
    context: Dict[str, Any] = field(default_factory=dict)
    logger: logging.Logger = field(default=logger, repr=False, compare=False)

    def add(self, diagnostic: Diagnostic) -> Diagnostic:
        self.diagnostics.append(diagnostic)
        level = logging.ERROR if diagnostic.severity is Severity.ERROR else logging.WARNING
        self.logger.log(level, "%s", diagnostic.format())
        return diagnostic

    def warn(self, kind: DiagnosticKind, message: str, subject: Optional[str] = None) -> Diagnostic:
        return self.add(Diagnostic(kind, Severity.WARNING, message, subject))

    def error(self, kind: DiagnosticKind, message: str, subject: Optional[str] = None) -> Diagnostic:
        return self.add(Diagnostic(kind, Severity.ERROR, message, subject))

    def note(self, message: str, *args: Any) -> None:
        """Log an informational line without recording a diagnostic."""

        self.logger.info(message, *args)

    def merge(self, other: "LoadReport") -> None:
        self.diagnostics.extend(other.diagnostics)
        for key, value in other.context.items():
            existing = self.context.get(key)
            if isinstance(existing, dict) and isinstance(value, dict):
                existing.update(value)
            else:
                self.context[key] = value

    def of_kind(self, *kinds: DiagnosticKind) -> Tuple[Diagnostic, ...]:
        return tuple(entry for entry in self.diagnostics if entry.kind in kinds)

    @property
    def warnings(self) -> Tuple[Diagnostic, ...]:
        return tuple(entry for entry in self.diagnostics if entry.severity is Severity.WARNING)

    @property
    def errors(self) -> Tuple[Diagnostic, ...]:
        return tuple(entry for entry in self.diagnostics if entry.severity is Severity.ERROR)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def format_errors(self) -> str:
        return " ".join(entry.format() for entry in self.errors)

    def summary(self) -> Dict[str, Any]:
        """Return a JSON friendly snapshot of the report."""

        return {
            "package": self.package,
            "context": dict(self.context),
            "diagnostics": [
                {
                    "kind": entry.kind.value,
                    "severity": entry.severity.value,
                    "subject": entry.subject,
                    "message": entry.message,
                }
                for entry in self.diagnostics
            ],
        }


def format_key_list(keys: Iterable[str]) -> str:
    return ", ".join(keys)


PLUGIN_MANAGER.expose("LoadReport", LoadReport)
PLUGIN_MANAGER.expose("DiagnosticKind", DiagnosticKind)

__all__ = ["Diagnostic", "DiagnosticKind", "LoadReport", "Severity", "format_key_list"]
