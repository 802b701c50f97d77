"""Tests for the per-type metadata cache."""

import threading
from dataclasses import dataclass
from typing import Annotated, ClassVar
from unittest import mock

import pytest

from dataknobs_validator import (
    ConfigurationError,
    Email,
    FieldDescriptor,
    MetadataCache,
    NotNull,
    Size,
    ValidatorContext,
    ValidatorEngine,
    constrained,
)
from dataknobs_validator import metadata as metadata_module


@dataclass
class Profile:
    name: Annotated[str, NotNull()] = None
    email: Annotated[str, Email(), NotNull()] = None
    password: str = constrained(Size(8, 20), default=None)
    nickname: str = None
    counter: ClassVar[int] = 0


class Base:
    identifier: Annotated[str, NotNull()]


class Derived(Base):
    __constraints__ = {"label": [Size(1, 5)], "identifier": Size(2, 4)}

    label: str

    def __init__(self, identifier=None, label=None):
        if identifier is not None:
            self.identifier = identifier
        self.label = label


class ThirdParty:
    def __init__(self, code=None):
        self.code = code


class Unresolvable:
    ok: Annotated[str, NotNull()]
    broken: "DoesNotExist"  # noqa: F821


class ResolvedBase:
    ident: Annotated[str, NotNull()]


class BrokenChild(ResolvedBase):
    other: "DoesNotExist"  # noqa: F821
    size: Annotated[str, Size(1, 3)]


class RaisingProperty:
    @property
    def value(self):
        raise RuntimeError("boom")


class Lazy:
    __constraints__ = {"computed": [NotNull()]}

    @property
    def computed(self):
        return self._cache


class Slotted:
    __slots__ = ("code",)
    __constraints__ = {"code": [NotNull()]}


class TestScan:
    """Test constraint discovery."""

    def test_annotated_and_field_metadata(self):
        metadata = MetadataCache().get(Profile)

        assert [d.name for d in metadata] == ["name", "email", "password", "nickname"]
        assert metadata.descriptor("name").constraints == (NotNull(),)
        assert metadata.descriptor("email").constraints == (Email(), NotNull())
        assert metadata.descriptor("password").constraints == (Size(8, 20),)
        assert metadata.descriptor("nickname").constraints == ()
        assert metadata.descriptor("counter") is None

    def test_constrained_fields(self):
        metadata = MetadataCache().get(Profile)
        assert [d.name for d in metadata.constrained_fields] == ["name", "email", "password"]

    def test_inherited_and_class_level_declarations(self):
        metadata = MetadataCache().get(Derived)

        assert metadata.descriptor("identifier").constraints == (NotNull(), Size(2, 4))
        assert metadata.descriptor("label").constraints == (Size(1, 5),)

    def test_type_without_declarations(self):
        metadata = MetadataCache().get(ThirdParty)
        assert len(metadata) == 0
        assert metadata.constrained_fields == ()

    def test_unresolvable_hint_keeps_other_fields(self):
        metadata = MetadataCache().get(Unresolvable)
        assert metadata.descriptor("ok").constraints == (NotNull(),)
        assert metadata.descriptor("broken").constraints == ()

    def test_unresolvable_subclass_keeps_base_constraints(self):
        metadata = MetadataCache().get(BrokenChild)
        assert metadata.descriptor("ident").constraints == (NotNull(),)
        assert metadata.descriptor("size").constraints == (Size(1, 3),)
        assert metadata.descriptor("other").constraints == ()


class TestDeclare:
    """Test declaring constraints outside the type."""

    def test_declare_before_scan(self):
        cache = MetadataCache()
        cache.declare(ThirdParty, {"code": [NotNull(), Size(3, 3)]})

        metadata = cache.get(ThirdParty)
        assert metadata.descriptor("code").constraints == (NotNull(), Size(3, 3))

    def test_declare_after_scan_rejected(self):
        cache = MetadataCache()
        cache.get(ThirdParty)

        with pytest.raises(ConfigurationError) as exc_info:
            cache.declare(ThirdParty, {"code": [NotNull()]})
        assert exc_info.value.context["type"] == "ThirdParty"

    def test_clear_drops_declarations(self):
        cache = MetadataCache()
        cache.declare(ThirdParty, {"code": [NotNull()]})
        cache.get(ThirdParty)
        cache.clear()

        assert not cache.is_cached(ThirdParty)
        assert cache.get(ThirdParty).descriptor("code") is None


class TestCaching:
    """Test scan-once behaviour and statistics."""

    def test_same_metadata_returned(self):
        cache = MetadataCache()
        assert cache.get(Profile) is cache.get(Profile)

    def test_stats(self):
        cache = MetadataCache()
        cache.get(Profile)
        cache.get(Profile)
        cache.get(Profile)
        cache.get(Derived)

        stats = cache.get_cache_stats()
        assert stats["size"] == 2
        assert stats["hits"] == 2
        assert stats["misses"] == 2
        assert stats["hit_rate"] == 0.5
        assert len(cache) == 2

    def test_concurrent_first_lookup_scans_once(self):
        cache = MetadataCache()
        barrier = threading.Barrier(16)
        results = []

        def lookup():
            barrier.wait()
            results.append(cache.get(Profile))

        with mock.patch.object(
            metadata_module, "scan_type", wraps=metadata_module.scan_type
        ) as scan:
            threads = [threading.Thread(target=lookup) for _ in range(16)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        assert scan.call_count == 1
        assert len(results) == 16
        assert all(result is results[0] for result in results)
        assert cache.get_cache_stats()["misses"] == 1


class TestFieldDescriptor:
    """Test reading and writing field values."""

    def test_read_assigned_value(self):
        read = FieldDescriptor("name").read(Profile(name="Ann"))
        assert read.ok
        assert read.value == "Ann"

    def test_declared_but_unassigned_reads_none(self):
        read = FieldDescriptor("identifier").read(Derived())
        assert read.ok
        assert read.value is None

    def test_undeclared_missing_is_unreadable(self):
        read = FieldDescriptor("missing", declared=False).read(ThirdParty())
        assert not read.ok

    def test_raising_property_is_unreadable(self):
        read = FieldDescriptor("value").read(RaisingProperty())
        assert not read.ok

    def test_property_raising_attribute_error_is_unreadable(self):
        read = FieldDescriptor("computed").read(Lazy())
        assert not read.ok

    def test_empty_slot_reads_none(self):
        read = FieldDescriptor("code").read(Slotted())
        assert read.ok
        assert read.value is None

    def test_failing_getter_is_not_a_null_violation(self):
        assert ValidatorEngine(ValidatorContext()).validate(Lazy()).valid
        outcome = ValidatorEngine(ValidatorContext()).validate(Slotted())
        assert outcome.messages() == ["Field 'code' cannot be null"]

    def test_write(self):
        target = ThirdParty()
        assert FieldDescriptor("code").write(target, "abc")
        assert target.code == "abc"
        assert not FieldDescriptor("value").write(RaisingProperty(), 1)
