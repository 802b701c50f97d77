"""Request validation pipeline with success and failure callbacks.

    ```python
    ValidationPipeline(context) \\
        .validate_request(signup) \\
        .with_rule_set("signup") \\
        .on_failure(lambda outcome: respond(400, outcome.to_dict())) \\
        .on_success(lambda: respond(201)) \\
        .execute()
    ```
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .builder import Validator
from .context import ValidatorContext
from .results import ValidationOutcome

logger = logging.getLogger(__name__)


class ValidationPipeline:
    """Validates one request object and dispatches on the outcome.

    The declared constraints of the request are always checked. A rule set
    names a registered profile whose fluent checks are added on top.
    """

    def __init__(self, context: ValidatorContext | None = None):
        self.context = context
        self._request: Any = None
        self._rule_set: str | None = None
        self._on_failure: Callable[[ValidationOutcome], Any] | None = None
        self._on_success: Callable[[], Any] | None = None

    def validate_request(self, request: Any) -> ValidationPipeline:
        self._request = request
        return self

    def with_rule_set(self, name: str) -> ValidationPipeline:
        self._rule_set = name
        return self

    def on_failure(self, callback: Callable[[ValidationOutcome], Any]) -> ValidationPipeline:
        self._on_failure = callback
        return self

    def on_success(self, callback: Callable[[], Any]) -> ValidationPipeline:
        self._on_success = callback
        return self

    def execute(self) -> ValidationOutcome:
        """Validate the request and run the matching callback.

        Callback exceptions propagate to the caller.

        Returns:
            The frozen outcome of the validation
        """
        builder = Validator.check(self._request, self.context)
        if self._rule_set:
            builder.with_profile(self._rule_set)
        outcome = builder.validate()

        if outcome.has_errors:
            logger.debug(f"Request failed validation with {len(outcome)} violations")
            if self._on_failure is not None:
                self._on_failure(outcome)
        elif self._on_success is not None:
            self._on_success()
        return outcome
