"""Recursive validation of nested objects and collections.

A value is cascaded into unless it is a scalar: ``None``, a number (including
``bool``), text, bytes, or an enum member. Sequences are visited by index,
mappings by value in insertion order, and other collections in iteration
order. Each element is cascaded with the same rules, so nested collections
recurse and scalar elements are skipped; any other value is validated as an
object through the same entry point as a top-level validation.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping, Sequence
from enum import Enum
from numbers import Number
from typing import Any, Callable, Set

from .results import ValidationOutcome

logger = logging.getLogger(__name__)

SCALAR_TYPES = (str, bytes, bytearray, memoryview, Number, Enum)

ObjectValidator = Callable[[Any, ValidationOutcome, Set[int]], None]


def should_cascade(value: Any) -> bool:
    """True if the value is an object or collection worth validating."""
    return value is not None and not isinstance(value, SCALAR_TYPES)


class CascadeEngine:
    """Walks a value and hands every nested object to ``validate_object``.

    ``validate_object(obj, outcome, path)`` is the metadata-driven validation
    of a single object. ``path`` holds the ids of the objects and collections
    on the current recursion path; with ``detect_cycles`` on, a value already
    on the path is skipped instead of recursing forever. Objects shared by
    several branches are still validated at each occurrence.
    """

    def __init__(self, validate_object: ObjectValidator, detect_cycles: bool = True):
        self.validate_object = validate_object
        self.detect_cycles = detect_cycles

    def cascade(self, value: Any, outcome: ValidationOutcome, path: Set[int]) -> None:
        """Validate everything reachable through ``value`` into ``outcome``."""
        if not should_cascade(value):
            return

        if self.detect_cycles and id(value) in path:
            logger.debug(f"Skipping {type(value).__name__} already on the cascade path")
            return

        if not isinstance(value, Collection):
            self.validate_object(value, outcome, path)
            return

        path.add(id(value))
        try:
            for element in iter_elements(value):
                self.cascade(element, outcome, path)
        finally:
            path.discard(id(value))


def iter_elements(collection: Collection) -> Any:
    """Elements of a collection in cascade order."""
    if isinstance(collection, Mapping):
        return iter(collection.values())
    if isinstance(collection, Sequence):
        return (collection[i] for i in range(len(collection)))
    return iter(collection)
