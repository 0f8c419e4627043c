"""
Loadpath faults - Domain fault types.

Each domain has a base class that pins its :class:`FaultDomain`; severity
and retry semantics come from :data:`DOMAIN_DEFAULTS`.
"""

from typing import Any, Dict

from .core import Fault, FaultDomain


def _details(extra: Dict[str, Any], **fields: Any) -> Dict[str, Any]:
    return {**fields, **(extra.get("metadata") or {})}


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Invalid caller arguments or configuration."""
    domain = FaultDomain.CONFIG


class InvalidArgumentFault(ConfigFault, ValueError):
    """A required argument is None, empty or of the wrong kind."""

    def __init__(self, argument: str, reason: str, **kwargs):
        super().__init__(
            "INVALID_ARGUMENT",
            f"Invalid argument '{argument}': {reason}",
            metadata=_details(kwargs, argument=argument, reason=reason),
        )


class ConfigInvalidFault(ConfigFault):
    """A configuration file or value has the wrong shape."""

    def __init__(self, key: str, reason: str, **kwargs):
        super().__init__(
            "CONFIG_INVALID",
            f"Configuration key '{key}' is invalid: {reason}",
            metadata=_details(kwargs, key=key, reason=reason),
        )


# ============================================================================
# SCAN Faults
# ============================================================================

class ScanFault(Fault):
    """Failure while traversing an origin."""
    domain = FaultDomain.SCAN


class OriginUnreadableFault(ScanFault):
    """An origin location could not be listed or opened."""

    def __init__(self, path: str, reason: str, **kwargs):
        super().__init__(
            "ORIGIN_UNREADABLE",
            f"Origin '{path}' could not be read: {reason}",
            metadata=_details(kwargs, path=path, reason=reason),
        )


# ============================================================================
# RESOLUTION Faults
# ============================================================================

class ResolutionFault(Fault):
    """Failure while resolving a resource or type."""
    domain = FaultDomain.RESOLUTION


class ResourceNotFoundFault(ResolutionFault):
    """A resource could not be located through its loading context."""

    def __init__(self, resource: str, **kwargs):
        super().__init__(
            "RESOURCE_NOT_FOUND",
            f"Resource '{resource}' could not be located",
            metadata=_details(kwargs, resource=resource),
        )
