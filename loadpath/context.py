"""
Loading contexts - the roots a scan starts from.

A loading context owns an ordered list of origin locations (directories or
archives) and may have a parent. Scans walk the chain root-first. Contexts
also resolve dotted type names into live objects; the base class resolves
nothing and :class:`ImportContext` resolves through :mod:`importlib`.
"""

import importlib
import logging
import os
import sys
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Union
from urllib.parse import urlsplit
from urllib.request import url2pathname

from .records import NESTED_MARKER

logger = logging.getLogger("loadpath.context")

Origin = Union[str, os.PathLike]


def to_local_path(origin: Origin) -> Optional[Path]:
    """
    Convert an origin to a local path.

    Plain paths and ``file:`` URLs are local. Any other URL scheme is not,
    and yields None. Single-letter schemes are treated as Windows drives.
    """
    if isinstance(origin, os.PathLike):
        return Path(origin)

    url = urlsplit(str(origin))
    if not url.scheme or len(url.scheme) == 1:
        return Path(str(origin))
    if url.scheme == "file":
        return Path(url2pathname(url.path))
    return None


class LoadingContext:
    """
    A named set of origin locations with an optional parent.

    Args:
        origins: Directories, archives or ``file:`` URLs, in search order
        parent: Parent context, scanned before this one
        name: Display name (defaults to the class name)
    """

    def __init__(
        self,
        origins: Iterable[Origin] = (),
        parent: Optional["LoadingContext"] = None,
        name: Optional[str] = None,
    ):
        self.origins = tuple(origins)
        self.parent = parent
        self.name = name or self.__class__.__name__

    def hierarchy(self) -> List["LoadingContext"]:
        """Return the context chain, root first, ending with this context."""
        chain = []
        current: Optional[LoadingContext] = self
        while current is not None:
            chain.append(current)
            current = current.parent
        chain.reverse()
        return chain

    def local_origins(self) -> List[Path]:
        """Origins of this context (not its parents) that are local paths."""
        paths = []
        for origin in self.origins:
            path = to_local_path(origin)
            if path is None:
                logger.debug(f"{self.name}: ignoring non-local origin {origin!r}")
                continue
            paths.append(path)
        return paths

    def resolve(self, type_name: str) -> Optional[Any]:
        """Resolve a dotted type name. The base context resolves nothing."""
        return None

    def locate(self, resource_name: str):
        """
        Find a resource by name, parents first.

        Returns:
            ``pathlib.Path`` or ``zipfile.Path``, or None if not found
        """
        for context in self.hierarchy():
            for origin in context.local_origins():
                found = _locate_in(origin, resource_name)
                if found is not None:
                    return found
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name!r} origins={len(self.origins)}>"


def _locate_in(origin: Path, resource_name: str):
    if origin.is_dir():
        candidate = origin / resource_name
        return candidate if candidate.is_file() else None

    if origin.is_file() and zipfile.is_zipfile(origin):
        candidate = zipfile.Path(origin, at=resource_name)
        return candidate if candidate.exists() else None

    return None


class ImportContext(LoadingContext):
    """
    Loading context that resolves type names with :mod:`importlib`.

    Resolution rules:
        - ``pkg.mod`` imports the module
        - ``pkg.__init__`` imports the package ``pkg``
        - ``pkg.mod$Outer$Inner`` imports ``pkg.mod`` then walks attributes

    While a name is imported, the local origins of the whole hierarchy that
    are not already on ``sys.path`` are prepended to it.
    """

    @classmethod
    def from_sys_path(cls, parent: Optional[LoadingContext] = None) -> "ImportContext":
        """Context over the interpreter's current ``sys.path``."""
        return cls([entry or os.getcwd() for entry in sys.path], parent=parent, name="sys.path")

    def resolve(self, type_name: str) -> Optional[Any]:
        module_name, *nested = type_name.split(NESTED_MARKER)
        if module_name.endswith(".__init__"):
            module_name = module_name[:-len(".__init__")]
        elif module_name == "__init__":
            return None

        with self._search_path():
            try:
                target = importlib.import_module(module_name)
            except ImportError as e:
                logger.debug(f"{self.name}: cannot import {module_name}: {e}")
                return None

        for attribute in nested:
            target = getattr(target, attribute, None)
            if target is None:
                return None

        return target

    @contextmanager
    def _search_path(self) -> Iterator[None]:
        present = set(sys.path)
        extra = []
        for context in self.hierarchy():
            for origin in context.local_origins():
                entry = str(origin)
                if entry not in present:
                    present.add(entry)
                    extra.append(entry)

        if not extra:
            yield
            return

        sys.path[:0] = extra
        importlib.invalidate_caches()
        try:
            yield
        finally:
            # Only undo our own entries; the import may edit sys.path too
            for entry in extra:
                if entry in sys.path:
                    sys.path.remove(entry)
