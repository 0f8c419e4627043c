"""
Loadpath faults - Core types.

Defines:
- Severity: how loudly a fault should be reported
- FaultDomain: the area of the engine a fault comes from
- Fault: the structured exception every loadpath error derives from
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """Fault severity, ordered from least to most serious."""
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"     # The operation cannot continue


class FaultDomain:
    """
    Named area of the engine where a fault originates.

    Domains compare equal by name, and also to their plain string name, so
    ``fault.domain == "scan"`` works.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description

    @property
    def value(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain({self.name!r})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            other = other.name
        return self.name == other

    def __hash__(self) -> int:
        return hash(self.name)


FaultDomain.CONFIG = FaultDomain("config", "Invalid arguments and configuration")
FaultDomain.SCAN = FaultDomain("scan", "Origin traversal errors")
FaultDomain.RESOLUTION = FaultDomain("resolution", "Resource and type resolution errors")


# Per-domain severity and retry semantics
DOMAIN_DEFAULTS = {
    FaultDomain.CONFIG: {"severity": Severity.FATAL, "retryable": False},
    FaultDomain.SCAN: {"severity": Severity.WARN, "retryable": True},
    FaultDomain.RESOLUTION: {"severity": Severity.ERROR, "retryable": False},
}

_FALLBACK_DEFAULTS = {"severity": Severity.ERROR, "retryable": False}


# ============================================================================
# Fault
# ============================================================================

class Fault(Exception):
    """
    Structured loadpath error.

    Every fault has a stable ``code``, a readable ``message``, a
    :class:`FaultDomain`, a :class:`Severity`, a ``retryable`` flag and a
    free-form ``metadata`` dict. ``code``, ``message`` and ``domain`` may be
    given as class attributes by subclasses instead of constructor arguments.

    Faults are raised for caller mistakes and collected as values for
    isolated scan failures (see :attr:`PathScanner.faults`).

    Example:
        ```python
        class LockedOrigin(Fault):
            code = "ORIGIN_LOCKED"
            message = "Origin is locked by another process"
            domain = FaultDomain.SCAN
        ```
    """

    def __init__(
        self,
        code: str | None = None,
        message: str | None = None,
        *,
        domain: FaultDomain | None = None,
        severity: Optional[Severity] = None,
        retryable: Optional[bool] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        for attribute, given in (("code", code), ("message", message), ("domain", domain)):
            if given is not None:
                setattr(self, attribute, given)
            elif getattr(self, attribute, None) is None:
                raise TypeError(f"{type(self).__name__} requires '{attribute}'")

        super().__init__(self.message)

        defaults = DOMAIN_DEFAULTS.get(self.domain, _FALLBACK_DEFAULTS)
        self.severity = Severity(severity) if severity else defaults["severity"]
        self.retryable = defaults["retryable"] if retryable is None else retryable
        self.metadata = dict(metadata) if metadata else {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, domain={self.domain}, "
            f"severity={self.severity.value})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form, for structured logs and JSON output."""
        return {
            "code": self.code,
            "message": self.message,
            "domain": str(self.domain),
            "severity": self.severity.value,
            "retryable": self.retryable,
            "metadata": dict(self.metadata),
        }
