"""Exception types raised by the generator.

SchemaError aborts a run. InferenceError is raised per route and turned
into a diagnostic by the pipeline. AssemblyError signals a broken internal
invariant and is never caught by the core.
"""

from __future__ import annotations


class BurritoError(Exception):
    """Base class for all generator errors."""


class SchemaError(BurritoError):
    """The input schema is malformed or fails validation."""

    def __init__(self, violations: list[str] | str) -> None:
        if isinstance(violations, str):
            violations = [violations]
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))


class InferenceError(BurritoError):
    """A type could not be derived for a single route."""


class AssemblyError(BurritoError):
    """The code model references something that was never built."""
