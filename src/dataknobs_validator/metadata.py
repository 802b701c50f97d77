"""Per-type constraint metadata, scanned once and cached for the process.

A type is scanned the first time an instance of it is validated. The scan
collects every declared field, including private ones, together with the
constraints declared on it, and the resulting ``TypeMetadata`` is reused for
every later instance of that type.

Constraints are discovered from three places, merged per field in this order:

1. ``typing.Annotated`` hints, walking the MRO from the base classes down
2. dataclass field metadata under the ``"constraints"`` key
3. a class-level ``__constraints__`` mapping of field name to constraints

Types that cannot be annotated (third party classes, for example) can have
constraints declared on the cache itself before their first scan.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import sys
import threading
from dataclasses import dataclass
from types import MemberDescriptorType
from typing import Annotated, Any, ClassVar, Dict, Iterable, Mapping, get_args, get_origin, get_type_hints

from .constraints import CONSTRAINTS_METADATA_KEY, Constraint
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_ABSENT = object()


@dataclass(frozen=True)
class FieldRead:
    """Result of reading a field off an instance.

    ``ok`` is False when the value could not be read at all, in which case the
    field's checks are skipped rather than failing the pass.
    """

    ok: bool
    value: Any = None

    @classmethod
    def found(cls, value: Any) -> FieldRead:
        return cls(True, value)

    @classmethod
    def unreadable(cls) -> FieldRead:
        return cls(False, None)


@dataclass(frozen=True)
class FieldDescriptor:
    """A declared field of a type and the constraints attached to it."""

    name: str
    constraints: tuple[Constraint, ...] = ()
    declared: bool = True

    def read(self, instance: Any) -> FieldRead:
        """Read this field's current value from an instance.

        A declared field that was never assigned (a plain annotation or an
        empty slot) reads as ``None``. A missing undeclared field, or any other
        failure (a raising property or descriptor, a restricted
        ``__getattr__``), yields an unreadable result.
        """
        try:
            return FieldRead.found(getattr(instance, self.name))
        except AttributeError as e:
            if self.declared and _unassigned(instance, self.name):
                return FieldRead.found(None)
            logger.debug(f"Field '{self.name}' not readable on {type(instance).__name__}: {e}")
            return FieldRead.unreadable()
        except Exception as e:
            logger.debug(f"Field '{self.name}' unreadable on {type(instance).__name__}: {e}")
            return FieldRead.unreadable()

    def write(self, instance: Any, value: Any) -> bool:
        """Assign a value to this field.

        Returns:
            True if the value was stored, False if the instance refused it
        """
        try:
            setattr(instance, self.name, value)
            return True
        except Exception as e:
            logger.debug(f"Field '{self.name}' not writable on {type(instance).__name__}: {e}")
            return False

    @property
    def constrained(self) -> bool:
        return bool(self.constraints)


def _unassigned(instance: Any, name: str) -> bool:
    """Whether a failed read means the name simply holds no value yet."""
    static = inspect.getattr_static(instance, name, _ABSENT)
    return static is _ABSENT or isinstance(static, MemberDescriptorType)


@dataclass(frozen=True)
class TypeMetadata:
    """Immutable, ordered field table for one type."""

    type: type
    fields: tuple[FieldDescriptor, ...] = ()

    def descriptor(self, name: str) -> FieldDescriptor | None:
        """Look up a field descriptor by name."""
        for descriptor in self.fields:
            if descriptor.name == name:
                return descriptor
        return None

    @property
    def constrained_fields(self) -> tuple[FieldDescriptor, ...]:
        return tuple(d for d in self.fields if d.constraints)

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self):
        return iter(self.fields)


class MetadataCache:
    """Thread-safe, scan-once cache of ``TypeMetadata`` keyed by type.

    The get-or-scan step runs under a lock, so even under concurrent first
    lookups every type is scanned at most once. There is no eviction; entries
    live as long as the cache.

    Example:
        ```python
        cache = MetadataCache()
        metadata = cache.get(User)
        for descriptor in metadata.constrained_fields:
            print(descriptor.name, descriptor.constraints)
        ```
    """

    def __init__(self, name: str = "metadata"):
        """Initialize the cache.

        Args:
            name: Cache name for logging
        """
        self._name = name
        self._cache: Dict[type, TypeMetadata] = {}
        self._declared: Dict[type, Dict[str, tuple[Constraint, ...]]] = {}
        self._lock = threading.RLock()
        self._cache_hits = 0
        self._cache_misses = 0

    @property
    def name(self) -> str:
        return self._name

    def get(self, cls: type) -> TypeMetadata:
        """Get the metadata for a type, scanning it on first use.

        Args:
            cls: Type to look up

        Returns:
            The cached TypeMetadata for ``cls``
        """
        cached = self._cache.get(cls)
        if cached is not None:
            with self._lock:
                self._cache_hits += 1
            return cached

        with self._lock:
            cached = self._cache.get(cls)
            if cached is not None:
                self._cache_hits += 1
                return cached

            self._cache_misses += 1
            metadata = scan_type(cls, self._declared.get(cls))
            self._cache[cls] = metadata
            logger.debug(
                f"Scanned {cls.__qualname__} for {self._name}: "
                f"{len(metadata.fields)} fields, {len(metadata.constrained_fields)} constrained"
            )
            return metadata

    def declare(self, cls: type, constraints: Mapping[str, Iterable[Constraint]]) -> None:
        """Declare constraints for a type that cannot carry them itself.

        Must happen before the type's first scan; cached metadata is never
        changed after the fact.

        Args:
            cls: Type to declare constraints for
            constraints: Mapping of field name to constraints

        Raises:
            ConfigurationError: If the type was already scanned
        """
        with self._lock:
            if cls in self._cache:
                raise ConfigurationError(
                    f"Cannot declare constraints for {cls.__qualname__} after it was scanned",
                    context={"type": cls.__qualname__, "cache": self._name},
                )
            declared = self._declared.setdefault(cls, {})
            for field_name, field_constraints in constraints.items():
                declared[field_name] = declared.get(field_name, ()) + tuple(field_constraints)

    def is_cached(self, cls: type) -> bool:
        with self._lock:
            return cls in self._cache

    def clear(self) -> None:
        """Drop all cached metadata and declarations."""
        with self._lock:
            self._cache.clear()
            self._declared.clear()
            self._cache_hits = 0
            self._cache_misses = 0

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with size, hits, misses and hit rate
        """
        with self._lock:
            total = self._cache_hits + self._cache_misses
            return {
                "size": len(self._cache),
                "hits": self._cache_hits,
                "misses": self._cache_misses,
                "hit_rate": self._cache_hits / total if total > 0 else 0.0,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


def scan_type(
    cls: type,
    declared: Mapping[str, tuple[Constraint, ...]] | None = None,
) -> TypeMetadata:
    """Build the field table for a type. Never raises.

    Args:
        cls: Type to scan
        declared: Extra constraints declared outside the type

    Returns:
        TypeMetadata for ``cls``; empty if nothing is declared
    """
    fields: Dict[str, list[Constraint]] = {}

    try:
        for name, hint in _type_hints(cls).items():
            if _is_class_var(hint):
                continue
            fields.setdefault(name, []).extend(_annotated_constraints(hint))

        if dataclasses.is_dataclass(cls):
            for f in dataclasses.fields(cls):
                fields.setdefault(f.name, []).extend(
                    _as_constraints(f.metadata.get(CONSTRAINTS_METADATA_KEY, ()))
                )

        for name, extra in _class_constraints(cls).items():
            fields.setdefault(name, []).extend(_as_constraints(extra))
    except Exception as e:
        logger.warning(f"Could not fully scan {getattr(cls, '__qualname__', cls)!r}: {e}")

    for name, extra in (declared or {}).items():
        fields.setdefault(name, []).extend(extra)

    return TypeMetadata(
        type=cls,
        fields=tuple(FieldDescriptor(name, tuple(c)) for name, c in fields.items()),
    )


def _type_hints(cls: type) -> Dict[str, Any]:
    """Type hints with ``Annotated`` extras, base classes first.

    If the hints cannot be resolved as a whole (an unresolvable forward
    reference, say), each class in the MRO is resolved on its own. A class
    that still fails contributes its raw annotations, whose unresolved strings
    carry no constraints.
    """
    try:
        return get_type_hints(cls, include_extras=True)
    except Exception as e:
        logger.debug(f"Resolving annotations per class for {cls.__qualname__}: {e}")

    hints: Dict[str, Any] = {}
    for klass in reversed(getattr(cls, "__mro__", (cls,))):
        if klass is object:
            continue
        try:
            hints.update(get_type_hints(klass, include_extras=True))
            continue
        except Exception as e:
            logger.debug(f"Unresolvable annotations on {klass.__qualname__}: {e}")
        try:
            hints.update(_raw_annotations(klass))
        except Exception as e:
            logger.debug(f"Skipping annotations of {klass.__qualname__}: {e}")
    return hints


def _raw_annotations(klass: type) -> Dict[str, Any]:
    if sys.version_info >= (3, 14):
        import annotationlib

        return annotationlib.get_annotations(klass, format=annotationlib.Format.FORWARDREF)
    return inspect.get_annotations(klass)


def _is_class_var(hint: Any) -> bool:
    if isinstance(hint, str):
        return hint.startswith(("ClassVar", "typing.ClassVar"))
    return hint is ClassVar or get_origin(hint) is ClassVar


def _annotated_constraints(hint: Any) -> list[Constraint]:
    if get_origin(hint) is not Annotated:
        return []
    return [extra for extra in get_args(hint)[1:] if isinstance(extra, Constraint)]


def _class_constraints(cls: type) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for klass in reversed(getattr(cls, "__mro__", (cls,))):
        own = vars(klass).get("__constraints__")
        if isinstance(own, Mapping):
            merged.update(own)
    return merged


def _as_constraints(value: Any) -> list[Constraint]:
    if isinstance(value, Constraint):
        return [value]
    return [c for c in value if isinstance(c, Constraint)]
