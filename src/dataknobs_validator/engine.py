"""Metadata-driven validation of whole objects.

The engine looks up the cached field table of the target's type, applies
every declared constraint, and cascades into the values of ``NotNull`` fields
that hold nested objects or collections. All violations are accumulated; the
pass never stops at the first failure.
"""

from __future__ import annotations

import logging
from typing import Any, Set

from .cascade import CascadeEngine, should_cascade
from .constraints import CheckStatus, ConstraintKind
from .context import ValidatorContext, get_default_context
from .dispatch import ConstraintDispatcher, MessageFormatter
from .exceptions import ValidationFailedError
from .metadata import FieldDescriptor
from .results import ValidationOutcome, Violation

logger = logging.getLogger(__name__)

TARGET_FIELD = "object"


class ValidatorEngine:
    """Validates objects against the constraints declared on their types.

    Example:
        ```python
        engine = ValidatorEngine()
        outcome = engine.accumulate_validate(user)
        if not outcome:
            for violation in outcome:
                print(violation.field, violation.message)
        ```
    """

    def __init__(self, context: ValidatorContext | None = None):
        """Initialize the engine.

        Args:
            context: Validation context; the process-wide default when omitted
        """
        self.context = context if context is not None else get_default_context()
        self.formatter = MessageFormatter(self.context.messages)
        self.dispatcher = ConstraintDispatcher(self.formatter, self.context.email_regex)
        self.cascader = CascadeEngine(
            self._validate_object, detect_cycles=self.context.settings.detect_cycles
        )

    def accumulate_validate(self, target: Any) -> ValidationOutcome:
        """Validate ``target`` and return every violation found.

        A missing target yields a single violation on the ``object``
        pseudo-field and nothing else is checked.

        Returns:
            Frozen ValidationOutcome; empty when the target is valid
        """
        outcome = ValidationOutcome()
        self.validate_into(target, outcome)
        return outcome.freeze()

    validate = accumulate_validate

    def validate_and_throw(self, target: Any) -> ValidationOutcome:
        """Validate ``target``, raising if anything is violated.

        Returns:
            The empty outcome when the target is valid

        Raises:
            ValidationFailedError: Carrying the full outcome
        """
        outcome = self.accumulate_validate(target)
        if outcome.has_errors:
            raise ValidationFailedError(outcome)
        return outcome

    def validate_into(self, target: Any, outcome: ValidationOutcome) -> None:
        """Validate ``target`` into an existing, unfrozen outcome."""
        if target is None:
            outcome.add(self.null_target_violation())
            return
        self._validate_object(target, outcome, set())

    def cascade_into(self, value: Any, outcome: ValidationOutcome) -> None:
        """Cascade into a nested value as a ``NotNull`` field would."""
        self.cascader.cascade(value, outcome, set())

    def null_target_violation(self) -> Violation:
        return Violation(
            TARGET_FIELD,
            self.formatter.text("error.targetNull", "Target object is null"),
            None,
        )

    def _validate_object(self, target: Any, outcome: ValidationOutcome, path: Set[int]) -> None:
        metadata = self.context.cache.get(type(target))
        path.add(id(target))
        try:
            for descriptor in metadata.fields:
                if descriptor.constraints:
                    self._validate_field(target, descriptor, outcome, path)
        finally:
            path.discard(id(target))

    def _validate_field(
        self,
        target: Any,
        descriptor: FieldDescriptor,
        outcome: ValidationOutcome,
        path: Set[int],
    ) -> None:
        read = descriptor.read(target)
        if not read.ok:
            return

        value = read.value
        for constraint in descriptor.constraints:
            violation = self.dispatcher.check(constraint, descriptor.name, value)
            if violation is not None:
                outcome.add(violation)
            elif (
                constraint.kind is ConstraintKind.NOT_NULL
                and constraint.check(value) is CheckStatus.PASSED
                and should_cascade(value)
            ):
                self.cascader.cascade(value, outcome, path)
