"""
Resource filters.

A filter decides, from a loading context and a complete resource name,
whether the scanner keeps a resource. Filters are pure and composed with
AND semantics by the scanner: a resource is kept only if every registered
filter accepts it.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Hashable

from .faults import InvalidArgumentFault
from .manifest import MANIFEST_NAME
from .records import NAMESPACE_SEPARATOR, PATH_SEPARATOR, ResourceRecord, TypedRecord
from .tags import has_tag


class Filter(ABC):
    """Predicate over ``(context, resource_name)``."""

    @abstractmethod
    def accept(self, context: Any, resource_name: str) -> bool:
        """
        Args:
            context: The loading context the resource is attached to
            resource_name: Complete slash-delimited resource name

        Returns:
            True if the resource matches the filter's criteria
        """


class FunctionFilter(Filter):
    """Adapts a plain ``callable(context, resource_name) -> bool``."""

    def __init__(self, predicate: Callable[[Any, str], bool]):
        if not callable(predicate):
            raise InvalidArgumentFault("predicate", "must be callable")
        self._predicate = predicate

    def accept(self, context: Any, resource_name: str) -> bool:
        return bool(self._predicate(context, resource_name))


class ManifestFilter(Filter):
    """Accept any resource except archive manifests."""

    def accept(self, context: Any, resource_name: str) -> bool:
        return resource_name != MANIFEST_NAME


class PackageMode(str, Enum):
    STRICT = "strict"
    SUBPACKAGES = "subpackages"


class PackageFilter(Filter):
    """
    Accept only the resources of a given package.

    The package of a resource is its path up to the last separator, in
    dotted notation. The empty package name designates the root package.

    Example:
        ```python
        PackageFilter.of("com.example")               # com/example/x only
        PackageFilter.with_subpackages("com.example") # com/example/** too
        ```
    """

    def __init__(self, package_name: str, mode: PackageMode = PackageMode.STRICT):
        if package_name is None:
            raise InvalidArgumentFault(
                "package_name",
                'cannot be None, use an empty string ("") for the root package',
            )

        self.package_name = package_name
        self.mode = PackageMode(mode)

    @classmethod
    def of(cls, package_name: str) -> "PackageFilter":
        return cls(package_name, PackageMode.STRICT)

    @classmethod
    def with_subpackages(cls, package_name: str) -> "PackageFilter":
        return cls(package_name, PackageMode.SUBPACKAGES)

    def allow_subpackages(self) -> "PackageFilter":
        """Return a copy of this filter that also accepts subpackages."""
        return PackageFilter(self.package_name, PackageMode.SUBPACKAGES)

    def accept(self, context: Any, resource_name: str) -> bool:
        last_separator = resource_name.rfind(PATH_SEPARATOR)

        if not self.package_name:
            return last_separator == -1
        if last_separator == -1:
            return False

        resource_package = resource_name[:last_separator].replace(PATH_SEPARATOR, NAMESPACE_SEPARATOR)

        if self.mode is PackageMode.STRICT:
            return resource_package == self.package_name
        return resource_package.startswith(self.package_name)

    def __repr__(self) -> str:
        return f"PackageFilter({self.package_name!r}, {self.mode.value})"


class TagMode(str, Enum):
    ANY = "any"
    ALL = "all"


class TagFilter(Filter):
    """
    Accept only typed resources whose resolved object carries given tags.

    PLEASE NOTE that this filter resolves every typed candidate through its
    context, which for :class:`~loadpath.context.ImportContext` means
    importing it.
    """

    def __init__(self, *tags: Hashable, mode: TagMode = TagMode.ANY):
        if not tags:
            raise InvalidArgumentFault("tags", "filtered tag list cannot be empty")

        self.tags = frozenset(tags)
        self.mode = TagMode(mode)

    @classmethod
    def any(cls, *tags: Hashable) -> "TagFilter":
        return cls(*tags, mode=TagMode.ANY)

    @classmethod
    def all(cls, *tags: Hashable) -> "TagFilter":
        return cls(*tags, mode=TagMode.ALL)

    def accept(self, context: Any, resource_name: str) -> bool:
        record = ResourceRecord.create(resource_name, context)
        if not isinstance(record, TypedRecord):
            return False

        target = record.load()
        if target is None:
            return False

        if self.mode is TagMode.ALL:
            return all(has_tag(target, marker) for marker in self.tags)
        return any(has_tag(target, marker) for marker in self.tags)

    def __repr__(self) -> str:
        return f"TagFilter({sorted(map(repr, self.tags))}, {self.mode.value})"
