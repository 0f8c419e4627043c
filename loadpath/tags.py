"""
Declarative tags for discoverable objects.

A tag is any hashable marker (usually a string such as ``"component"``)
listed in an object's own ``__tags__`` attribute. Classes and functions are
tagged with the :func:`tag` decorator; modules declare a module-level tuple::

    __tags__ = ("component",)

Tags are not inherited: a subclass of a tagged class carries only the tags
applied to the subclass itself.
"""

from typing import Any, Callable, FrozenSet, Hashable, TypeVar

from .faults import InvalidArgumentFault

T = TypeVar("T")

TAGS_ATTRIBUTE = "__tags__"


def tags_of(obj: Any) -> FrozenSet[Hashable]:
    """Return the tags declared directly on ``obj`` (empty if none)."""
    namespace = getattr(obj, "__dict__", None)
    if namespace is None:
        return frozenset()

    declared = namespace.get(TAGS_ATTRIBUTE, ())
    if isinstance(declared, str):
        declared = (declared,)

    try:
        return frozenset(declared)
    except TypeError:
        return frozenset()


def has_tag(obj: Any, marker: Hashable) -> bool:
    """Whether ``marker`` is declared directly on ``obj``."""
    return marker in tags_of(obj)


def tag(*markers: Hashable) -> Callable[[T], T]:
    """
    Decorator attaching one or more tags to a class or function.

    Args:
        *markers: Tag markers to add. Existing tags declared on the same
            object are kept.

    Returns:
        Decorator function

    Example:
        ```python
        @tag("component", "http")
        class UserController:
            ...
        ```
    """
    if not markers:
        raise InvalidArgumentFault("markers", "at least one tag is required")

    def decorator(obj: T) -> T:
        setattr(obj, TAGS_ATTRIBUTE, tags_of(obj) | frozenset(markers))
        return obj

    return decorator
