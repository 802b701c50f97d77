"""Live validation of a single input value, e.g. a form field being edited.

The checks are declared once and replayed every time the value changes:

    ```python
    email_input = InputValidator(context) \\
        .is_email("Invalid email!") \\
        .on_valid(lambda: field.set_style("ok")) \\
        .on_invalid(lambda: field.set_style("error"))

    field.on_change(email_input.set_value)
    ```

Only the chained checks run; there are no declarations on a bare value.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List

from .builder import ValidationBuilder, Validator
from .context import ValidatorContext
from .metadata import FieldDescriptor
from .results import ValidationOutcome

logger = logging.getLogger(__name__)

VALUE_FIELD = "value"

Step = Callable[[ValidationBuilder], Any]


class _InputValue:
    """Holder exposing the current input under ``VALUE_FIELD``."""

    def __init__(self) -> None:
        self.value: Any = None


class InputValidator:
    """Re-validates a value on every change and fires the matching callback.

    Attributes:
        outcome: Result of the most recent validation
    """

    def __init__(self, context: ValidatorContext | None = None):
        self.context = context
        self.outcome = ValidationOutcome().freeze()
        self._holder = _InputValue()
        self._field = FieldDescriptor(VALUE_FIELD, declared=True)
        self._steps: List[Step] = []
        self._on_valid: Callable[[], Any] | None = None
        self._on_invalid: Callable[[], Any] | None = None

    @property
    def value(self) -> Any:
        return self._field.read(self._holder).value

    def is_email(self, message: str = "") -> InputValidator:
        self._steps.append(lambda b: b.is_email(VALUE_FIELD, message))
        return self

    def is_not_empty(self, message: str = "") -> InputValidator:
        self._steps.append(lambda b: b.is_not_null(VALUE_FIELD, message))
        return self

    def has_length_between(self, min_length: int, max_length: int, message: str = "") -> InputValidator:
        self._steps.append(
            lambda b: b.has_length_between(VALUE_FIELD, min_length, max_length, message)
        )
        return self

    def matches_regex(self, regex: str, message: str = "") -> InputValidator:
        self._steps.append(lambda b: b.matches_regex(VALUE_FIELD, regex, message))
        return self

    def apply_rule(self, rule_name: str, message: str = "") -> InputValidator:
        self._steps.append(lambda b: b.apply_rule(rule_name, VALUE_FIELD, message))
        return self

    def on_valid(self, callback: Callable[[], Any]) -> InputValidator:
        self._on_valid = callback
        return self

    def on_invalid(self, callback: Callable[[], Any]) -> InputValidator:
        self._on_invalid = callback
        return self

    def set_value(self, value: Any) -> ValidationOutcome:
        """Store a new value, re-validate it and fire the matching callback.

        Returns:
            The new outcome, also kept in ``outcome``
        """
        self._field.write(self._holder, value)
        return self.revalidate()

    def revalidate(self) -> ValidationOutcome:
        """Validate the current value again."""
        builder = Validator.check(self._holder, self.context).skip_metadata()
        for step in self._steps:
            step(builder)
        self.outcome = builder.validate()

        if self.outcome.valid:
            if self._on_valid is not None:
                self._on_valid()
        else:
            logger.debug(f"Input invalid: {self.outcome.messages()}")
            if self._on_invalid is not None:
                self._on_invalid()
        return self.outcome
