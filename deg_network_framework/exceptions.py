"""
Error types raised by the network analysis components.

All errors derive from NetworkAnalysisError so callers can catch the whole
family; the configuration, pathway and mapping errors also derive from the
builtin type they most resemble.
"""

from typing import Any, Iterable, List, Optional


class NetworkAnalysisError(Exception):
    """Base class for errors raised by the framework."""


class EmptyInputError(NetworkAnalysisError):
    """Raised when a seed or anchor set is empty and strict mode is enabled."""

    def __init__(self, what: str):
        self.what = what
        super().__init__(f"Empty input: no {what} supplied")


class InvalidConfigurationError(NetworkAnalysisError, ValueError):
    """Raised for an unrecognized or out-of-range configuration value."""

    def __init__(self, parameter: str, value: Any, allowed: Optional[Iterable[Any]] = None):
        self.parameter = parameter
        self.value = value
        self.allowed = list(allowed) if allowed is not None else None
        message = f"Invalid value for {parameter}: {value!r}"
        if self.allowed:
            message += f" (expected one of: {', '.join(str(a) for a in self.allowed)})"
        super().__init__(message)


class InvalidPathwayError(NetworkAnalysisError, ValueError):
    """Raised when a pathway has a degenerate (empty) gene set."""

    def __init__(self, pathway_id: str, reason: str = "empty gene set"):
        self.pathway_id = pathway_id
        self.reason = reason
        super().__init__(f"Invalid pathway {pathway_id}: {reason}")


class MappingError(NetworkAnalysisError, KeyError):
    """Raised when input references identifiers absent from their universe."""

    def __init__(self, missing_ids: Iterable[str], universe: str = "foundation"):
        self.missing_ids: List[str] = sorted(missing_ids)
        self.universe = universe
        shown = ", ".join(self.missing_ids[:10])
        if len(self.missing_ids) > 10:
            shown += f", ... ({len(self.missing_ids)} total)"
        super().__init__(f"{len(self.missing_ids)} id(s) not found in {universe}: {shown}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]
