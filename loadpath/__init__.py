"""
loadpath - Runtime resource discovery across load paths.

Scans the origins of a loading context hierarchy (directories and ZIP
archives, following archive manifest ``Class-Path`` references), filters the
resources it finds and exposes them through a queryable snapshot that can
import matching modules and select them by tag.

Complete integration of:
- Records: resource and typed resource metadata
- Contexts: origin hierarchies and importlib-backed resolution
- Filters: package, tag and manifest filters, AND-composed
- Scanner: de-duplicating directory and archive traversal
- Reflection: immutable query facade over a scan
- Faults: structured error values
"""

__version__ = "0.3.0"

from .faults import (
    Fault,
    FaultDomain,
    Severity,
    InvalidArgumentFault,
    ConfigInvalidFault,
    OriginUnreadableFault,
    ResourceNotFoundFault,
)
from .records import (
    ResourceRecord,
    TypedRecord,
    TYPE_SUFFIX,
    NESTED_MARKER,
)
from .tags import tag, tags_of, has_tag
from .context import LoadingContext, ImportContext
from .manifest import Manifest, MANIFEST_NAME, CLASS_PATH
from .filters import (
    Filter,
    FunctionFilter,
    ManifestFilter,
    PackageFilter,
    PackageMode,
    TagFilter,
    TagMode,
)
from .scanner import PathScanner, ScanStats
from .reflection import Reflection, ReflectionBuilder
from .config import ConfigLoader, ScanConfig

__all__ = [
    # Faults
    "Fault",
    "FaultDomain",
    "Severity",
    "InvalidArgumentFault",
    "ConfigInvalidFault",
    "OriginUnreadableFault",
    "ResourceNotFoundFault",

    # Records
    "ResourceRecord",
    "TypedRecord",
    "TYPE_SUFFIX",
    "NESTED_MARKER",

    # Tags
    "tag",
    "tags_of",
    "has_tag",

    # Contexts
    "LoadingContext",
    "ImportContext",

    # Archives
    "Manifest",
    "MANIFEST_NAME",
    "CLASS_PATH",

    # Filters
    "Filter",
    "FunctionFilter",
    "ManifestFilter",
    "PackageFilter",
    "PackageMode",
    "TagFilter",
    "TagMode",

    # Scanning
    "PathScanner",
    "ScanStats",
    "Reflection",
    "ReflectionBuilder",

    # Config
    "ConfigLoader",
    "ScanConfig",
]
