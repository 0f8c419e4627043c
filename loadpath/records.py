"""
Resource records - the data model of a completed scan.

A :class:`ResourceRecord` identifies one discovered artifact by its
slash-delimited name and the loading context that owns it. Records whose
name ends with :data:`TYPE_SUFFIX` are :class:`TypedRecord` instances and
can be resolved into live objects through their owner.
"""

import logging
from typing import Any, Optional

from .faults import ResourceNotFoundFault

logger = logging.getLogger("loadpath.records")

TYPE_SUFFIX = ".py"
NESTED_MARKER = "$"
PATH_SEPARATOR = "/"
NAMESPACE_SEPARATOR = "."


class ResourceRecord:
    """
    Immutable metadata for a single discovered resource.

    Two records are equal when they share the same name and the very same
    owner; the same name under two different contexts yields two distinct
    records.
    """

    __slots__ = ("_name", "_owner")

    def __init__(self, name: str, owner: Any):
        self._name = name
        self._owner = owner

    @staticmethod
    def create(name: str, owner: Any) -> "ResourceRecord":
        """
        Build the right record type for ``name``.

        Args:
            name: Complete slash-delimited resource name
            owner: Loading context the resource is bound to

        Returns:
            A TypedRecord for type files, a plain ResourceRecord otherwise
        """
        if name.endswith(TYPE_SUFFIX):
            return TypedRecord(name, owner)
        return ResourceRecord(name, owner)

    @property
    def name(self) -> str:
        return self._name

    @property
    def owner(self) -> Any:
        return self._owner

    def location(self):
        """
        Locate this resource through its owner.

        Returns:
            A ``pathlib.Path`` for directory origins or a ``zipfile.Path``
            for archive origins

        Raises:
            ResourceNotFoundFault: If the owner cannot locate the resource
        """
        found = self._owner.locate(self._name)
        if found is None:
            raise ResourceNotFoundFault(self._name)
        return found

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceRecord):
            return NotImplemented
        return self._name == other._name and self._owner is other._owner

    def __hash__(self) -> int:
        return hash((self._name, id(self._owner)))

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._name!r})"


class TypedRecord(ResourceRecord):
    """
    Record of a resource recognized as a loadable type.

    The dotted type name, package name and simple name are derived once from
    the resource name. Nothing is imported until :meth:`load` is called, and
    ``load`` never caches: every call goes back through the owner.
    """

    __slots__ = ("_type_name", "_package_name")

    def __init__(self, name: str, owner: Any):
        super().__init__(name, owner)

        self._type_name = name[:-len(TYPE_SUFFIX)].replace(PATH_SEPARATOR, NAMESPACE_SEPARATOR)
        last_separator = self._type_name.rfind(NAMESPACE_SEPARATOR)
        self._package_name = self._type_name[:last_separator] if last_separator != -1 else ""

    @property
    def type_name(self) -> str:
        """Fully qualified dotted name."""
        return self._type_name

    @property
    def package_name(self) -> str:
        """Dotted package the type lives in, empty for the root package."""
        return self._package_name

    @property
    def simple_name(self) -> str:
        """Name without its package (or enclosing type, for nested types)."""
        last_marker = self._type_name.rfind(NESTED_MARKER)
        if last_marker != -1:
            return self._type_name[last_marker + 1:]
        if not self._package_name:
            return self._type_name
        return self._type_name[len(self._package_name) + 1:]

    @property
    def is_top_level(self) -> bool:
        return NESTED_MARKER not in self._type_name

    def load(self) -> Optional[Any]:
        """
        Resolve this type through its owning context.

        Returns:
            The live object, or None if it cannot be resolved for any reason
        """
        try:
            return self._owner.resolve(self._type_name)
        except (Exception, SystemExit) as e:
            # Modules may call sys.exit() at import time
            logger.debug(f"Could not resolve {self._type_name}: {e!r}")
            return None

    def __str__(self) -> str:
        return self._type_name
