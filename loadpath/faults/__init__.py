"""
Loadpath faults - Structured error values for the discovery engine.

Programmer errors (empty filter arguments, malformed configuration) are
raised immediately. Isolated traversal failures are captured as fault
values on the scanner and never abort a scan.

Core exports:
- Fault: Base fault class
- FaultDomain: Domain enumeration
- Severity: Severity levels
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
    DOMAIN_DEFAULTS,
)

from .domains import (
    ConfigFault,
    InvalidArgumentFault,
    ConfigInvalidFault,
    ScanFault,
    OriginUnreadableFault,
    ResolutionFault,
    ResourceNotFoundFault,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",
    "DOMAIN_DEFAULTS",

    # Domain faults
    "ConfigFault",
    "InvalidArgumentFault",
    "ConfigInvalidFault",
    "ScanFault",
    "OriginUnreadableFault",
    "ResolutionFault",
    "ResourceNotFoundFault",
]
