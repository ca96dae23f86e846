"""Run-scoped collection of errors and warnings.

Every recorded diagnostic is also sent to the module logger so the CLI
can decide how much of it reaches the user.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterator

logger = logging.getLogger(__name__)


class Severity(enum.Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    message: str

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.message}"


class Diagnostics:
    """Ordered list of diagnostics produced during one generation run."""

    def __init__(self) -> None:
        self._items: list[Diagnostic] = []

    def error(self, message: str) -> None:
        self._items.append(Diagnostic(Severity.ERROR, message))
        logger.error(message)

    def warning(self, message: str) -> None:
        self._items.append(Diagnostic(Severity.WARNING, message))
        logger.warning(message)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.WARNING]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)
