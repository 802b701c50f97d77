"""Violation and outcome types returned by every validation entry point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator

from .exceptions import OperationError


@dataclass(frozen=True)
class Violation:
    """A single failed check on a single field.

    The offending value is kept for diagnostics only and is never modified.
    """

    field: str
    message: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary representation."""
        return {"field": self.field, "message": self.message, "value": self.value}

    def __str__(self) -> str:
        return f"Violation[field={self.field}, message={self.message}, value={self.value!r}]"


class ValidationOutcome:
    """Ordered accumulator of violations for one validation pass.

    Insertion order is discovery order and nothing is deduplicated, so a field
    that fails several constraints appears several times. An empty outcome
    means the target is valid.

    The outcome is mutable while a pass runs and is frozen before it is handed
    back to the caller; mutating a frozen outcome raises ``OperationError``.
    """

    def __init__(self, violations: Iterable[Violation] | None = None):
        """Initialize the outcome.

        Args:
            violations: Optional initial violations, in order
        """
        self._violations: list[Violation] = list(violations or [])
        self._frozen = False

    @property
    def errors(self) -> tuple[Violation, ...]:
        """Read-only view of the violations, in discovery order."""
        return tuple(self._violations)

    @property
    def valid(self) -> bool:
        """True when no violations were recorded."""
        return not self._violations

    @property
    def has_errors(self) -> bool:
        """True when at least one violation was recorded."""
        return bool(self._violations)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __bool__(self) -> bool:
        """Allow 'if outcome:' usage to check validity."""
        return self.valid

    def __len__(self) -> int:
        return len(self._violations)

    def __iter__(self) -> Iterator[Violation]:
        return iter(tuple(self._violations))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationOutcome):
            return NotImplemented
        return self._violations == other._violations

    def __repr__(self) -> str:
        return f"ValidationOutcome(violations={self._violations!r})"

    def add(self, violation: Violation) -> ValidationOutcome:
        """Append a violation (fluent API).

        Args:
            violation: Violation to record

        Returns:
            Self for chaining

        Raises:
            OperationError: If the outcome has been frozen
        """
        self._check_mutable()
        self._violations.append(violation)
        return self

    def add_error(self, field: str, message: str, value: Any = None) -> ValidationOutcome:
        """Build and append a violation (fluent API).

        Args:
            field: Name of the failing field
            message: Resolved message
            value: Offending value, if any

        Returns:
            Self for chaining
        """
        return self.add(Violation(field, message, value))

    def extend(self, violations: Iterable[Violation]) -> ValidationOutcome:
        """Append several violations, keeping their order.

        Args:
            violations: Violations to record

        Returns:
            Self for chaining
        """
        self._check_mutable()
        self._violations.extend(violations)
        return self

    def merge(self, other: ValidationOutcome) -> ValidationOutcome:
        """Combine with another outcome into a new, unfrozen outcome.

        Args:
            other: Outcome whose violations follow this one's

        Returns:
            New ValidationOutcome with both sets of violations
        """
        return ValidationOutcome(self._violations + other._violations)

    def freeze(self) -> ValidationOutcome:
        """Make the outcome logically immutable and return it."""
        self._frozen = True
        return self

    def for_field(self, field: str) -> list[Violation]:
        """Violations recorded against a given field name."""
        return [v for v in self._violations if v.field == field]

    def messages(self) -> list[str]:
        """Resolved messages, in discovery order."""
        return [v.message for v in self._violations]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary representation.

        Returns:
            Dictionary with validity flag and violations
        """
        return {
            "valid": self.valid,
            "errors": [v.to_dict() for v in self._violations],
        }

    def _check_mutable(self) -> None:
        if self._frozen:
            raise OperationError(
                "Cannot modify a validation outcome after it was returned",
                context={"violation_count": len(self._violations)},
            )
