"""
Path Scanner.

Walks every origin location reachable from a loading context (directories
and archives, including the archives listed in archive manifests), applies
the registered filters and records the accepted resource names per context.
"""

import logging
import os
import time
import zipfile
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Callable, Dict, List, Set, Union

from .faults import InvalidArgumentFault, OriginUnreadableFault
from .filters import Filter
from .manifest import MANIFEST_NAME, Manifest
from .records import PATH_SEPARATOR, ResourceRecord

logger = logging.getLogger("loadpath.scanner")


@dataclass
class ScanStats:
    """Counters collected during one scan."""

    origins_scanned: int = 0
    directories_scanned: int = 0
    archives_scanned: int = 0
    resources_accepted: int = 0
    resources_rejected: int = 0
    failures: int = 0
    scan_time: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PathScanner:
    """
    Scan the origins of a loading context hierarchy.

    Features:
    - Root-first traversal of the context chain
    - Recursive directory walking
    - Archive scanning, following manifest ``Class-Path`` references
    - Global de-duplication: a file is scanned once per run, whichever
      context reaches it first owns its resources
    - Failure isolation: an unreadable origin is skipped and reported in
      :attr:`faults`

    Example:
        ```python
        scanner = PathScanner.of(context).filter(ManifestFilter())
        for record in scanner.resources():
            print(record.name)
        ```
    """

    def __init__(self, context: Any):
        if context is None:
            raise InvalidArgumentFault("context", "loading context cannot be None")

        self._context = context
        self._filters: List[Filter] = []
        self._visited: Set[Path] = set()
        self._accepted: Dict[Any, Dict[str, None]] = {}
        self._faults: List[OriginUnreadableFault] = []
        self._stats = ScanStats()

    @classmethod
    def of(cls, context: Any) -> "PathScanner":
        return cls(context)

    def filter(self, filter_or_factory: Union[Filter, Callable[[], Filter]]) -> "PathScanner":
        """
        Register a filter.

        Args:
            filter_or_factory: A Filter instance, or a zero-argument factory
                returning one

        Returns:
            This PathScanner instance
        """
        if filter_or_factory is None:
            raise InvalidArgumentFault("filter", "filter cannot be None")

        candidate = filter_or_factory
        if not isinstance(candidate, Filter):
            if not callable(candidate):
                raise InvalidArgumentFault("filter", f"expected a Filter, got {type(candidate).__name__}")
            candidate = candidate()
            if not isinstance(candidate, Filter):
                raise InvalidArgumentFault("filter", "filter factory did not return a Filter")

        self._filters.append(candidate)
        return self

    @property
    def filters(self) -> List[Filter]:
        return list(self._filters)

    @property
    def faults(self) -> List[OriginUnreadableFault]:
        """Failures isolated during scanning, in the order they occurred."""
        return list(self._faults)

    @property
    def stats(self) -> ScanStats:
        return ScanStats(**self._stats.to_dict())

    def run(self) -> "PathScanner":
        """
        Scan every origin of the context hierarchy.

        Calling run() again is harmless: every origin is already visited.
        """
        start_time = time.time()

        for path, context in self._origin_entries().items():
            self._scan(path, context)

        self._stats.scan_time += time.time() - start_time
        logger.debug(
            f"Scan of {self._context!r} finished: {self._stats.resources_accepted} accepted, "
            f"{self._stats.resources_rejected} rejected, {self._stats.failures} failures "
            f"in {self._stats.scan_time:.3f}s"
        )
        return self

    def accepted(self) -> Dict[Any, List[str]]:
        """Fresh copy of the accepted names, per context, root-first."""
        self.run()
        return {context: list(names) for context, names in self._accepted.items()}

    def resources(self) -> List[ResourceRecord]:
        """Accepted resources as records, in scan order."""
        return [
            ResourceRecord.create(name, context)
            for context, names in self.accepted().items()
            for name in names
        ]

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _origin_entries(self) -> Dict[Path, Any]:
        """Map each local origin to the first context (root-first) declaring it."""
        entries: Dict[Path, Any] = {}
        for context in self._context.hierarchy():
            for path in context.local_origins():
                entries.setdefault(_identity(path), context)
        return entries

    def _scan(self, path: Path, context: Any) -> None:
        identity = _identity(path)
        if identity in self._visited:
            return
        self._visited.add(identity)

        try:
            if not identity.exists():
                return
            is_dir = identity.is_dir()
        except OSError as e:
            self._fail(identity, e)
            return

        self._stats.origins_scanned += 1
        if is_dir:
            self._scan_directory(identity, context, "", set())
        else:
            self._scan_archive(identity, context)

    def _scan_directory(self, directory: Path, context: Any, prefix: str, walked: Set[Path]) -> None:
        real = Path(os.path.realpath(directory))
        if real in walked:
            return
        walked.add(real)
        self._stats.directories_scanned += 1

        try:
            entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
        except OSError as e:
            self._fail(directory, e)
            return

        for entry in entries:
            resource_name = prefix + entry.name

            try:
                is_dir = entry.is_dir()
            except OSError as e:
                self._fail(Path(entry.path), e)
                continue

            if is_dir:
                self._scan_directory(Path(entry.path), context, resource_name + PATH_SEPARATOR, walked)
            else:
                self._record(context, resource_name)

    def _scan_archive(self, path: Path, context: Any) -> None:
        """
        Scan an archive and the origins listed in its manifest.

        The archive is fully read and closed before its ``Class-Path``
        references are scanned; referenced resources come first.
        """
        try:
            with zipfile.ZipFile(path) as archive:
                manifest = Manifest.read(archive)
                names = [
                    info.filename
                    for info in archive.infolist()
                    if not info.is_dir() and info.filename != MANIFEST_NAME
                ]
        except Exception as e:
            # Not an archive, an unreadable one, or corrupt entry data
            self._fail(path, e)
            return

        self._stats.archives_scanned += 1

        if manifest is not None:
            for reference in manifest.class_path(path):
                self._scan(reference, context)

        for name in names:
            self._record(context, name)

    def _record(self, context: Any, resource_name: str) -> None:
        if not all(f.accept(context, resource_name) for f in self._filters):
            self._stats.resources_rejected += 1
            return

        names = self._accepted.setdefault(context, {})
        if resource_name not in names:
            names[resource_name] = None
            self._stats.resources_accepted += 1

    def _fail(self, path: Path, error: Exception) -> None:
        fault = OriginUnreadableFault(str(path), f"{type(error).__name__}: {error}")
        self._faults.append(fault)
        self._stats.failures += 1
        logger.debug(str(fault))


def _identity(path: Path) -> Path:
    """Canonical identity of a file, used for de-duplication."""
    return Path(os.path.realpath(os.path.abspath(path)))
