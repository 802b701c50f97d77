"""Tests for violations, outcomes and exceptions."""

import pytest
from dataknobs_common import ConfigurationError as CommonConfigurationError
from dataknobs_common import DataknobsError, ValidationError

from dataknobs_validator import (
    ConfigurationError,
    OperationError,
    ValidationFailedError,
    ValidationOutcome,
    ValidatorError,
    Violation,
)


class TestViolation:
    """Test Violation values."""

    def test_to_dict(self):
        assert Violation("age", "Too young", 12).to_dict() == {
            "field": "age",
            "message": "Too young",
            "value": 12,
        }

    def test_str(self):
        assert str(Violation("name", "Required")) == (
            "Violation[field=name, message=Required, value=None]"
        )

    def test_equality(self):
        assert Violation("a", "m", 1) == Violation("a", "m", 1)
        assert Violation("a", "m", 1) != Violation("a", "m", 2)


class TestValidationOutcome:
    """Test outcome accumulation."""

    def test_empty_is_valid(self):
        outcome = ValidationOutcome()
        assert outcome.valid
        assert not outcome.has_errors
        assert bool(outcome) is True
        assert outcome.errors == ()

    def test_accumulates_in_order(self):
        outcome = ValidationOutcome()
        outcome.add_error("name", "first").add(Violation("email", "second")).add_error("name", "third")

        assert not outcome.valid
        assert bool(outcome) is False
        assert outcome.messages() == ["first", "second", "third"]
        assert [v.message for v in outcome.for_field("name")] == ["first", "third"]
        assert len(outcome) == 3

    def test_duplicates_kept(self):
        outcome = ValidationOutcome([Violation("a", "m"), Violation("a", "m")])
        assert len(outcome) == 2

    def test_merge(self):
        first = ValidationOutcome([Violation("a", "1")])
        second = ValidationOutcome([Violation("b", "2")]).freeze()

        merged = first.merge(second)
        assert merged.messages() == ["1", "2"]
        assert not merged.frozen
        assert len(first) == 1

    def test_frozen_outcome_rejects_mutation(self):
        outcome = ValidationOutcome().freeze()

        with pytest.raises(OperationError):
            outcome.add_error("a", "m")
        with pytest.raises(OperationError):
            outcome.extend([Violation("a", "m")])

    def test_errors_view_is_a_copy(self):
        outcome = ValidationOutcome([Violation("a", "m")])
        errors = outcome.errors
        outcome.add_error("b", "n")
        assert len(errors) == 1

    def test_contents_equality(self):
        assert ValidationOutcome([Violation("a", "m")]) == ValidationOutcome([Violation("a", "m")])
        assert ValidationOutcome() != ValidationOutcome([Violation("a", "m")])

    def test_to_dict(self):
        outcome = ValidationOutcome([Violation("age", "Too young", 12)])
        assert outcome.to_dict() == {
            "valid": False,
            "errors": [{"field": "age", "message": "Too young", "value": 12}],
        }


class TestExceptions:
    """Test the exception hierarchy."""

    def test_context(self):
        error = ConfigurationError("bad", context={"key": "value"})
        assert isinstance(error, DataknobsError)
        assert error.context == {"key": "value"}
        assert error.details is error.context
        assert str(error) == "bad"

    def test_details_alias(self):
        assert ValidatorError("x", details={"a": 1}).context == {"a": 1}
        assert ValidatorError("x").context == {}

    def test_validation_failed_carries_outcome(self):
        outcome = ValidationOutcome([Violation("name", "Required"), Violation("email", "Invalid")])
        error = ValidationFailedError(outcome)

        assert error.outcome is outcome
        assert error.violations == outcome.errors
        assert error.context == {"violation_count": 2, "fields": ["name", "email"]}
        assert str(error) == "Validation failed"
        assert isinstance(error, ValidatorError)
        assert isinstance(error, ValidationError)

    def test_shared_error_types(self):
        assert ConfigurationError is CommonConfigurationError
        assert issubclass(ValidatorError, DataknobsError)
