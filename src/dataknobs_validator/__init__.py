"""DataKnobs Validator Package - Declarative and fluent object validation.

The `dataknobs-validator` package validates Python objects against constraints
declared on their types, accumulating every violation in one pass instead of
stopping at the first failure. Declared constraints can be mixed with
programmatic checks through a fluent builder.

Modules:
    constraints: Constraint declarations (NotNull, Email, Size, Min, Max, Pattern)
    metadata: Scan-once, thread-safe cache of per-type constraint metadata
    dispatch: Applies constraints to field values and resolves messages
    cascade: Recursive validation of nested objects and collections
    engine: Metadata-driven validation of whole objects
    builder: Fluent validation API
    messages: Localized message catalogs
    rules: Named predicate rules and composite rule builder
    profiles: Named, reusable sets of fluent checks
    pipeline: Request validation with success and failure callbacks
    input: Live validation of a single changing value
    settings: Settings from dictionaries, files and the environment
    context: Shared validation context and the process-wide default
    factory: Constraints and contexts from configuration
    exceptions: Custom exceptions for error handling

Quick Examples:

    Declare constraints and validate:

    ```python
    from dataclasses import dataclass
    from typing import Annotated

    from dataknobs_validator import Email, NotNull, Size, validate

    @dataclass
    class User:
        name: Annotated[str, NotNull(message="Name cannot be null!")] = None
        email: Annotated[str, Email()] = None
        password: Annotated[str, Size(8, 20)] = None

    outcome = validate(User(name="", email="invalid", password="123"))
    for violation in outcome:
        print(violation.field, violation.message)
    ```

    Mix in programmatic checks:

    ```python
    from dataknobs_validator import Validator

    Validator.check(user) \\
        .is_email("email", "Please enter a valid email") \\
        .custom_rule(lambda u: u.password != u.name, "Password must differ from name") \\
        .validate_and_throw()
    ```
"""

from .builder import ValidationBuilder, Validator, validate, validate_and_throw
from .cascade import CascadeEngine
from .constraints import (
    CONSTRAINTS_METADATA_KEY,
    CheckStatus,
    Constraint,
    ConstraintKind,
    Email,
    Max,
    Min,
    NotNull,
    Pattern,
    Size,
    constrained,
)
from .context import (
    ValidatorContext,
    get_default_context,
    reset_default_context,
    set_default_context,
)
from .dispatch import ConstraintDispatcher, MessageFormatter
from .engine import ValidatorEngine
from .exceptions import (
    ConfigurationError,
    NotFoundError,
    OperationError,
    ValidationFailedError,
    ValidatorError,
)
from .factory import ConstraintFactory, ContextFactory
from .input import InputValidator
from .messages import MessageResolver
from .metadata import FieldDescriptor, MetadataCache, TypeMetadata
from .pipeline import ValidationPipeline
from .profiles import ProfileRegistry
from .results import ValidationOutcome, Violation
from .rules import CompositeRule, Rule, RuleBuilder, RuleRegistry
from .settings import ValidatorSettings

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "Validator",
    "ValidationBuilder",
    "ValidatorEngine",
    "validate",
    "validate_and_throw",
    # Constraints
    "Constraint",
    "ConstraintKind",
    "CheckStatus",
    "NotNull",
    "Email",
    "Size",
    "Min",
    "Max",
    "Pattern",
    "constrained",
    "CONSTRAINTS_METADATA_KEY",
    # Metadata and dispatch
    "MetadataCache",
    "TypeMetadata",
    "FieldDescriptor",
    "ConstraintDispatcher",
    "MessageFormatter",
    "CascadeEngine",
    "MessageResolver",
    # Results
    "Violation",
    "ValidationOutcome",
    # Rules, profiles, pipeline, input
    "Rule",
    "CompositeRule",
    "RuleBuilder",
    "RuleRegistry",
    "ProfileRegistry",
    "ValidationPipeline",
    "InputValidator",
    # Configuration
    "ValidatorSettings",
    "ValidatorContext",
    "get_default_context",
    "set_default_context",
    "reset_default_context",
    "ConstraintFactory",
    "ContextFactory",
    # Exceptions
    "ValidatorError",
    "ValidationFailedError",
    "ConfigurationError",
    "NotFoundError",
    "OperationError",
]
