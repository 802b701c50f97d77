"""Exceptions for the validator package.

Built on the common exception framework from dataknobs_common. Configuration,
lookup and state errors are the shared ``ConfigurationError``,
``NotFoundError`` and ``OperationError`` types, so callers can handle them the
same way across dataknobs packages.

Only a small set of situations raise at all. Validation failures are reported
as data (a ``ValidationOutcome``) and are converted into an exception only by
the ``validate_and_throw`` entry points, which raise ``ValidationFailedError``.

Example:
    ```python
    from dataknobs_validator import Validator, ValidationFailedError

    try:
        Validator.check(user).validate_and_throw()
    except ValidationFailedError as e:
        for violation in e.outcome:
            print(violation.field, violation.message)
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dataknobs_common import (
    ConfigurationError,
    DataknobsError,
    NotFoundError,
    OperationError,
    ValidationError,
)

if TYPE_CHECKING:
    from .results import ValidationOutcome


class ValidatorError(DataknobsError):
    """Base exception for errors specific to the validator package."""

    pass


class ValidationFailedError(ValidatorError, ValidationError):
    """Raised by the ``validate_and_throw`` entry points on a non-empty outcome.

    The full, ordered outcome is attached so callers can inspect every
    violation, not just the first one.

    Example:
        ```python
        raise ValidationFailedError(outcome)
        ```
    """

    def __init__(self, outcome: ValidationOutcome, message: str = "Validation failed"):
        super().__init__(
            message,
            context={
                "violation_count": len(outcome),
                "fields": [violation.field for violation in outcome],
            },
        )
        self.outcome = outcome

    @property
    def violations(self):
        """Violations carried by the attached outcome."""
        return self.outcome.errors


__all__ = [
    "DataknobsError",
    "ValidatorError",
    "ValidationFailedError",
    "ConfigurationError",
    "NotFoundError",
    "OperationError",
]
