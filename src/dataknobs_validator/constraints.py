"""Constraint declarations attached to the fields of validated types.

Declarations are immutable values. Each one belongs to a closed set of kinds
(``ConstraintKind``) and knows how to test a single field value, reporting
whether the value passed, violated the constraint, or was outside the
constraint's scope (for example a ``Size`` check against a number).

Constraints are attached to fields with ``typing.Annotated``, dataclass field
metadata, or a class-level ``__constraints__`` mapping:

    ```python
    from dataclasses import dataclass
    from typing import Annotated

    from dataknobs_validator import Email, NotNull, Size, constrained

    @dataclass
    class User:
        name: Annotated[str, NotNull(message="Name cannot be null!")] = None
        email: Annotated[str, Email()] = None
        password: str = constrained(Size(8, 20), default=None)
    ```
"""

from __future__ import annotations

import dataclasses
import math
import re
import sys
from abc import ABC, abstractmethod
from decimal import Decimal
from enum import Enum
from numbers import Real
from re import Pattern as RegexPattern
from typing import Any, ClassVar, cast

CONSTRAINTS_METADATA_KEY = "constraints"

# Shape used when strict email checking is enabled without a custom regex
DEFAULT_EMAIL_REGEX = r"^[\w.-]+@[\w.-]+\.[a-zA-Z]{2,}$"


class ConstraintKind(Enum):
    """Closed set of supported constraint kinds."""

    NOT_NULL = "not_null"
    EMAIL = "email"
    SIZE = "size"
    MIN = "min"
    MAX = "max"
    PATTERN = "pattern"


class CheckStatus(Enum):
    """Result of testing one value against one constraint."""

    PASSED = "passed"
    VIOLATED = "violated"
    SKIPPED = "skipped"


def is_text(value: Any) -> bool:
    return isinstance(value, str)


def is_numeric(value: Any) -> bool:
    """Real numbers and decimals, excluding booleans."""
    return isinstance(value, (Real, Decimal)) and not isinstance(value, bool)


def integral(value: Any) -> Any:
    """Reduce a real number to integral precision by truncating toward zero.

    Infinities are returned unchanged so they still compare correctly.
    """
    if isinstance(value, int) or _is_infinite(value):
        return value
    return math.trunc(value)


def _is_infinite(value: Any) -> bool:
    if isinstance(value, Decimal):
        return value.is_infinite()
    try:
        return math.isinf(value)
    except (TypeError, ValueError, OverflowError):
        return False


def _is_nan(value: Any) -> bool:
    if isinstance(value, Decimal):
        return value.is_nan()
    try:
        return math.isnan(value)
    except (TypeError, ValueError):
        return False


def _compile(regex: str | RegexPattern, kind: str) -> RegexPattern:
    if isinstance(regex, RegexPattern):
        return regex
    try:
        return re.compile(regex)
    except re.error as e:
        raise ValueError(f"Invalid {kind} regex {regex!r}: {e}") from e


class Constraint(ABC):
    """Base class for all constraint declarations.

    Subclasses are frozen dataclasses that define ``message_key`` and
    ``message`` fields in addition to their own parameters.
    """

    kind: ClassVar[ConstraintKind]
    message_key: str
    message: str

    @abstractmethod
    def check(self, value: Any, email_regex: RegexPattern | None = None) -> CheckStatus:
        """Test a field value against this constraint.

        Args:
            value: Current field value
            email_regex: Strict email pattern configured for the validation
                context, consulted only by ``Email``

        Returns:
            CheckStatus describing the outcome
        """

    @abstractmethod
    def default_reason(self) -> str:
        """Canned text used when no message can be resolved."""

    def message_args(self) -> tuple[Any, ...]:
        """Interpolation arguments that follow the field name."""
        return ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to a configuration dictionary (see ``ConstraintFactory``)."""
        data: dict[str, Any] = {"type": self.kind.value}
        for f in dataclasses.fields(self):  # type: ignore[arg-type]
            if f.init:
                data[f.name] = getattr(self, f.name)
        return data


@dataclasses.dataclass(frozen=True)
class NotNull(Constraint):
    """Field must be present.

    ``None`` is always absent. Empty text is treated as absent too unless
    ``allow_empty`` is set.
    """

    kind: ClassVar[ConstraintKind] = ConstraintKind.NOT_NULL

    message: str = ""
    message_key: str = "error.notNull"
    allow_empty: bool = False

    def check(self, value: Any, email_regex: RegexPattern | None = None) -> CheckStatus:
        if value is None:
            return CheckStatus.VIOLATED
        if not self.allow_empty and is_text(value) and len(value) == 0:
            return CheckStatus.VIOLATED
        return CheckStatus.PASSED

    def default_reason(self) -> str:
        return "cannot be null"


@dataclasses.dataclass(frozen=True)
class Email(Constraint):
    """Text field must look like an email address.

    By default the check is pragmatic: the value must contain ``@`` and ``.``.
    A ``regex`` on the declaration, or a strict pattern configured on the
    validation context, switches to full-match checking.
    """

    kind: ClassVar[ConstraintKind] = ConstraintKind.EMAIL

    message: str = ""
    message_key: str = "error.invalidEmail"
    regex: str = ""
    _compiled: RegexPattern | None = dataclasses.field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.regex:
            object.__setattr__(self, "_compiled", _compile(self.regex, "email"))

    def check(self, value: Any, email_regex: RegexPattern | None = None) -> CheckStatus:
        if not is_text(value):
            return CheckStatus.SKIPPED
        pattern = self._compiled or email_regex
        if pattern is not None:
            ok = pattern.fullmatch(value) is not None
        else:
            ok = "@" in value and "." in value
        return CheckStatus.PASSED if ok else CheckStatus.VIOLATED

    def default_reason(self) -> str:
        return "invalid email format"


@dataclasses.dataclass(frozen=True)
class Size(Constraint):
    """Text length must fall within ``[min, max]`` inclusive."""

    kind: ClassVar[ConstraintKind] = ConstraintKind.SIZE

    min: int = 0
    max: int = sys.maxsize
    message: str = ""
    message_key: str = "error.size"

    def __post_init__(self) -> None:
        if self.min < 0:
            raise ValueError(f"min size cannot be negative: {self.min}")
        if self.max < 0:
            raise ValueError(f"max size cannot be negative: {self.max}")
        if self.min > self.max:
            raise ValueError(f"min size ({self.min}) cannot be greater than max ({self.max})")

    def check(self, value: Any, email_regex: RegexPattern | None = None) -> CheckStatus:
        if not is_text(value):
            return CheckStatus.SKIPPED
        length = len(value)
        if length < self.min or length > self.max:
            return CheckStatus.VIOLATED
        return CheckStatus.PASSED

    def default_reason(self) -> str:
        return f"length must be between {self.min} and {self.max}"

    def message_args(self) -> tuple[Any, ...]:
        return (self.min, self.max)


class _Bound(Constraint):
    """Shared behaviour of ``Min`` and ``Max``."""

    value: int

    def _validate_bound(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"{type(self).__name__} bound must be an integer, got {self.value!r}")

    def check(self, value: Any, email_regex: RegexPattern | None = None) -> CheckStatus:
        if not is_numeric(value):
            return CheckStatus.SKIPPED
        if _is_nan(value):
            return CheckStatus.VIOLATED
        return CheckStatus.VIOLATED if self._out_of_bounds(integral(value)) else CheckStatus.PASSED

    @abstractmethod
    def _out_of_bounds(self, number: Any) -> bool:
        pass

    def message_args(self) -> tuple[Any, ...]:
        return (self.value,)


@dataclasses.dataclass(frozen=True)
class Min(_Bound):
    """Numeric value must be greater than or equal to ``value``."""

    kind: ClassVar[ConstraintKind] = ConstraintKind.MIN

    value: int
    message: str = ""
    message_key: str = "error.min"

    def __post_init__(self) -> None:
        self._validate_bound()

    def _out_of_bounds(self, number: Any) -> bool:
        return number < self.value

    def default_reason(self) -> str:
        return f"must be >= {self.value}"


@dataclasses.dataclass(frozen=True)
class Max(_Bound):
    """Numeric value must be less than or equal to ``value``."""

    kind: ClassVar[ConstraintKind] = ConstraintKind.MAX

    value: int
    message: str = ""
    message_key: str = "error.max"

    def __post_init__(self) -> None:
        self._validate_bound()

    def _out_of_bounds(self, number: Any) -> bool:
        return number > self.value

    def default_reason(self) -> str:
        return f"must be <= {self.value}"


@dataclasses.dataclass(frozen=True)
class Pattern(Constraint):
    """Text value must match ``regex`` in full."""

    kind: ClassVar[ConstraintKind] = ConstraintKind.PATTERN

    regex: str
    message: str = ""
    message_key: str = "error.pattern"
    _compiled: RegexPattern | None = dataclasses.field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", _compile(self.regex, "pattern"))

    def check(self, value: Any, email_regex: RegexPattern | None = None) -> CheckStatus:
        if not is_text(value):
            return CheckStatus.SKIPPED
        if cast(RegexPattern, self._compiled).fullmatch(value) is None:
            return CheckStatus.VIOLATED
        return CheckStatus.PASSED

    def default_reason(self) -> str:
        return f"must match regex '{self.regex}'"

    def message_args(self) -> tuple[Any, ...]:
        return (self.regex,)


CONSTRAINT_TYPES: dict[ConstraintKind, type[Constraint]] = {
    ConstraintKind.NOT_NULL: NotNull,
    ConstraintKind.EMAIL: Email,
    ConstraintKind.SIZE: Size,
    ConstraintKind.MIN: Min,
    ConstraintKind.MAX: Max,
    ConstraintKind.PATTERN: Pattern,
}


def constrained(*constraints: Constraint, **field_kwargs: Any) -> Any:
    """Dataclass ``field()`` carrying constraint declarations in its metadata.

    Args:
        *constraints: Declarations for the field
        **field_kwargs: Passed through to ``dataclasses.field``

    Returns:
        A dataclass field specifier
    """
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[CONSTRAINTS_METADATA_KEY] = tuple(constraints)
    return dataclasses.field(metadata=metadata, **field_kwargs)
