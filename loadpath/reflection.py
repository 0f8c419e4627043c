"""
Reflection - entry point of the discovery API.

Use :meth:`Reflection.of` to configure a scan of a loading context, then
query the resulting snapshot:

    ```python
    reflection = (
        Reflection.of(ImportContext.from_sys_path())
        .filter(ManifestFilter())
        .filter(PackageFilter.with_subpackages("myapp"))
        .scan()
    )

    components = reflection.annotated_types_recursively("component", "myapp")
    ```

A Reflection object is an immutable snapshot. Every query returns a new
container; mutating it never affects the snapshot.
"""

from typing import Any, Callable, Hashable, Iterable, Iterator, List, Optional, Set, Union

from .faults import InvalidArgumentFault
from .filters import Filter
from .records import ResourceRecord, TypedRecord
from .scanner import PathScanner
from .tags import has_tag


class Reflection:
    """Queryable snapshot of the resources gathered by a scan."""

    def __init__(self, resources: Iterable[ResourceRecord]):
        self._resources = tuple(dict.fromkeys(resources))

    @staticmethod
    def of(context: Any) -> "ReflectionBuilder":
        """
        Args:
            context: The loading context the scan starts from

        Returns:
            A ReflectionBuilder used to configure the scan
        """
        return ReflectionBuilder(context)

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[ResourceRecord]:
        return iter(self._resources)

    def __repr__(self) -> str:
        return f"<Reflection resources={len(self._resources)}>"

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def resources(self) -> List[ResourceRecord]:
        """All the gathered resources."""
        return list(self._resources)

    def simple_resources(self) -> List[ResourceRecord]:
        """The resources that are not typed records."""
        return [res for res in self._resources if not isinstance(res, TypedRecord)]

    def types(self, package: Optional[str] = None) -> List[TypedRecord]:
        """
        Args:
            package: Restrict to this exact package if given

        Returns:
            The typed records, optionally of a single package
        """
        types = [res for res in self._resources if isinstance(res, TypedRecord)]
        if package is None:
            return types
        return [t for t in types if t.package_name == package]

    def types_recursively(self, prefix: str) -> List[TypedRecord]:
        """The typed records whose package name starts with ``prefix``."""
        return [t for t in self.types() if t.package_name.startswith(prefix)]

    def top_level_types(self, package: Optional[str] = None) -> List[TypedRecord]:
        """Typed records that are not nested types."""
        return [t for t in self.types(package) if t.is_top_level]

    def top_level_types_recursively(self, prefix: str) -> List[TypedRecord]:
        return [t for t in self.types_recursively(prefix) if t.is_top_level]

    # ------------------------------------------------------------------
    # Materialized types
    # ------------------------------------------------------------------

    def load(self, package: Optional[str] = None) -> Set[Any]:
        """
        Resolve the typed records into live objects.

        Records that cannot be resolved are silently dropped.
        """
        return _materialize(self.types(package))

    def load_recursively(self, prefix: str) -> Set[Any]:
        return _materialize(self.types_recursively(prefix))

    def annotated_types(self, tag: Hashable, package: Optional[str] = None) -> Set[Any]:
        """
        Args:
            tag: Tag that must be declared on the returned objects
            package: Restrict to this exact package if given

        Returns:
            Live objects carrying ``tag``
        """
        return {target for target in self.load(package) if has_tag(target, tag)}

    def annotated_types_recursively(self, tag: Hashable, prefix: str) -> Set[Any]:
        """
        Args:
            tag: Tag that must be declared on the returned objects
            prefix: Prefix of all the targeted packages

        Returns:
            Live objects carrying ``tag`` whose package starts with ``prefix``
        """
        return {target for target in self.load_recursively(prefix) if has_tag(target, tag)}


def _materialize(records: Iterable[TypedRecord]) -> Set[Any]:
    loaded = set()
    for record in records:
        target = record.load()
        if target is not None:
            loaded.add(target)
    return loaded


class ReflectionBuilder:
    """
    Configuration object for a :class:`Reflection` scan.

    Args:
        context: The mandatory loading context
    """

    def __init__(self, context: Any):
        if context is None:
            raise InvalidArgumentFault("context", "loading context cannot be None")

        self._context = context
        self._filters: List[Union[Filter, Callable[[], Filter]]] = []

    def filter(self, filter_or_factory: Union[Filter, Callable[[], Filter]]) -> "ReflectionBuilder":
        """
        Args:
            filter_or_factory: A filter (or filter factory) applied to the
                scanned resources

        Returns:
            This ReflectionBuilder instance
        """
        if filter_or_factory is None:
            raise InvalidArgumentFault("filter", "filter cannot be None")

        self._filters.append(filter_or_factory)
        return self

    def scanner(self) -> PathScanner:
        """Build the configured, not yet run, PathScanner."""
        scanner = PathScanner.of(self._context)
        for f in self._filters:
            scanner.filter(f)
        return scanner

    def scan(self) -> Reflection:
        """Run a scan and return the resulting Reflection snapshot."""
        return Reflection(self.scanner().resources())
