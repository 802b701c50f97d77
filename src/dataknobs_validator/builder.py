"""Fluent validation API mixing declared constraints with programmatic checks.

    ```python
    outcome = (
        Validator.check(user)
        .is_not_null("name", "Name must not be null")
        .is_email("email", "Email is invalid")
        .has_length_between("password", 8, 20)
        .apply_rule("strongPassword", "password", "Weak password")
        .custom_rule(lambda u: u.password != u.name, "Password must differ from name")
        .validate()
    )
    ```

By default ``validate()`` first runs the metadata-driven pass over the
target's declared constraints, then appends the violations of the chained
checks. ``skip_metadata()`` turns the declared pass off, which is what ad hoc
targets without declarations (dicts, form values) need.

Every chained check is lenient about its field: a field that is missing or
cannot be read is skipped, not reported.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, List

from .constraints import Constraint, Email, NotNull, Pattern, Size, is_text
from .context import ValidatorContext, get_default_context
from .engine import TARGET_FIELD, ValidatorEngine
from .exceptions import ValidationFailedError
from .metadata import FieldDescriptor, FieldRead
from .results import ValidationOutcome, Violation
from .rules import CompositeRule

logger = logging.getLogger(__name__)


class ValidationBuilder:
    """Accumulates checks against one target; finalized by ``validate()``."""

    def __init__(self, target: Any, context: ValidatorContext | None = None):
        """Initialize the builder.

        Args:
            target: Object (or mapping) to validate
            context: Validation context; the process-wide default when omitted
        """
        self.target = target
        self.context = context if context is not None else get_default_context()
        self.include_metadata = True
        self._engine = ValidatorEngine(self.context)
        self._violations: List[Violation] = []
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def skip_metadata(self) -> ValidationBuilder:
        """Only run the chained checks, not the declared constraints."""
        self.include_metadata = False
        return self

    def with_metadata(self, include: bool = True) -> ValidationBuilder:
        self.include_metadata = include
        return self

    def is_not_null(
        self, field_name: str, message: str = "", allow_empty: bool = False
    ) -> ValidationBuilder:
        """Field must be present (not None, and not empty text unless allowed)."""
        return self._check_constraint(
            field_name, NotNull(message=message, allow_empty=allow_empty)
        )

    def is_email(self, field_name: str, message: str = "") -> ValidationBuilder:
        """Text field must look like an email address."""
        return self._check_constraint(field_name, Email(message=message))

    def has_length_between(
        self, field_name: str, min_length: int, max_length: int, message: str = ""
    ) -> ValidationBuilder:
        """Text field length must be within ``[min_length, max_length]``.

        Bounds that cannot form a ``Size`` declaration (negative, or
        ``min_length > max_length``) are compared as given, so an empty range
        fails every text value.
        """
        message = message or f"Length must be between {min_length} and {max_length}"
        try:
            constraint = Size(min_length, max_length, message=message)
        except ValueError as e:
            logger.warning(f"Length check on '{field_name}' compares raw bounds: {e}")
            return self._check_raw_length(field_name, min_length, max_length, message)
        return self._check_constraint(field_name, constraint)

    def matches_regex(self, field_name: str, regex: str, message: str = "") -> ValidationBuilder:
        """Text field must match ``regex`` in full."""
        try:
            constraint = Pattern(
                regex,
                message=message or f"Field '{field_name}' must match regex '{regex}'",
            )
        except ValueError as e:
            logger.warning(f"Skipping regex check on '{field_name}': {e}")
            return self
        return self._check_constraint(field_name, constraint)

    def cascade(self, field_name: str) -> ValidationBuilder:
        """Validate the object or collection held by a field.

        A missing nested value is reported; a failure while walking the value
        is reported instead of raised.
        """
        read = self._read(field_name)
        if not read.ok:
            return self

        if read.value is None:
            self._violations.append(
                Violation(
                    field_name,
                    self._engine.formatter.text("error.nestedNull", "Nested object is null"),
                    None,
                )
            )
            return self

        nested = ValidationOutcome()
        try:
            self._engine.cascade_into(read.value, nested)
        except Exception as e:
            logger.warning(f"Cascading into '{field_name}' failed: {e}")
            nested.add_error(field_name, f"Error cascading validation: {e}")
        self._violations.extend(nested)
        return self

    def apply_rule(self, rule_name: str, field_name: str, message: str = "") -> ValidationBuilder:
        """Test a field against a rule registered under ``rule_name``.

        An unregistered rule is reported as a violation naming the rule.
        """
        read = self._read(field_name)
        if not read.ok:
            return self

        rule = self.context.rules.get_optional(rule_name)
        if rule is None:
            logger.warning(f"No rule registered under '{rule_name}'")
            self._violations.append(
                Violation(
                    field_name,
                    self._engine.formatter.text(
                        "error.noRule", f"No rule found for: {rule_name}", rule_name
                    ),
                    read.value,
                )
            )
            return self

        if not _passes(rule, read.value):
            self._violations.append(
                Violation(
                    field_name,
                    message or _rule_failure_message(rule, rule_name, field_name, read.value),
                    read.value,
                )
            )
        return self

    def custom_rule(self, predicate: Callable[[Any], bool], message: str) -> ValidationBuilder:
        """Test a predicate against the whole target."""
        if not _passes(predicate, self.target):
            self._violations.append(Violation(TARGET_FIELD, message, self.target))
        return self

    def with_profile(self, profile_name: str) -> ValidationBuilder:
        """Add the checks of a registered profile to this builder.

        An unregistered profile is reported as a violation naming it.
        """
        profile = self.context.profiles.get_optional(profile_name)
        if profile is None:
            logger.warning(f"No profile registered under '{profile_name}'")
            self._violations.append(
                Violation(
                    TARGET_FIELD,
                    self._engine.formatter.text(
                        "error.noProfile", f"No profile found for: {profile_name}", profile_name
                    ),
                    None,
                )
            )
            return self
        profile(self)
        return self

    def validate(self) -> ValidationOutcome:
        """Run the checks.

        Returns:
            Frozen outcome: declared-constraint violations (unless skipped)
            followed by chained-check violations, in discovery order
        """
        if self._finalized:
            logger.debug("validate() called again on a finalized builder")

        outcome = ValidationOutcome()
        if self.include_metadata:
            self._engine.validate_into(self.target, outcome)
        outcome.extend(self._violations)
        self._finalized = True
        return outcome.freeze()

    def validate_and_throw(self) -> ValidationOutcome:
        """Run the checks, raising if anything is violated.

        Raises:
            ValidationFailedError: Carrying the full outcome
        """
        outcome = self.validate()
        if outcome.has_errors:
            raise ValidationFailedError(outcome)
        return outcome

    def _check_constraint(self, field_name: str, constraint: Constraint) -> ValidationBuilder:
        read = self._read(field_name)
        if read.ok:
            violation = self._engine.dispatcher.check(constraint, field_name, read.value)
            if violation is not None:
                self._violations.append(violation)
        return self

    def _check_raw_length(
        self, field_name: str, min_length: int, max_length: int, message: str
    ) -> ValidationBuilder:
        read = self._read(field_name)
        if read.ok and is_text(read.value):
            length = len(read.value)
            if length < min_length or length > max_length:
                self._violations.append(Violation(field_name, message, read.value))
        return self

    def _read(self, field_name: str) -> FieldRead:
        target = self.target
        if target is None:
            return FieldRead.unreadable()
        if isinstance(target, Mapping):
            if field_name in target:
                return FieldRead.found(target[field_name])
            return FieldRead.unreadable()

        descriptor = self.context.cache.get(type(target)).descriptor(field_name)
        if descriptor is None:
            descriptor = FieldDescriptor(field_name, declared=False)
        return descriptor.read(target)


class Validator:
    """Entry point of the fluent API."""

    @staticmethod
    def check(target: Any, context: ValidatorContext | None = None) -> ValidationBuilder:
        """Start a validation chain for ``target``."""
        return ValidationBuilder(target, context)


def validate(target: Any, context: ValidatorContext | None = None) -> ValidationOutcome:
    """Validate the declared constraints of ``target``."""
    return ValidatorEngine(context).accumulate_validate(target)


def validate_and_throw(target: Any, context: ValidatorContext | None = None) -> ValidationOutcome:
    """Validate the declared constraints of ``target``, raising on violations."""
    return ValidatorEngine(context).validate_and_throw(target)


def _passes(predicate: Callable[[Any], bool], value: Any) -> bool:
    """Evaluate a predicate; a raising predicate counts as failed."""
    try:
        return bool(predicate(value))
    except Exception as e:
        logger.debug(f"Predicate raised, treating as failed: {e}")
        return False


def _rule_failure_message(rule: Any, rule_name: str, field_name: str, value: Any) -> str:
    if isinstance(rule, CompositeRule):
        failed = rule.failed_rules(value)
        if failed:
            return "; ".join(r.error_message for r in failed)
    return f"Field '{field_name}' failed rule '{rule_name}'"
