"""Named, reusable predicate rules and a builder for composite rules.

Rules are plain predicates over a single value. They are registered by name
and applied to fields through ``ValidationBuilder.apply_rule``:

    ```python
    rules = RuleRegistry()
    rules.register("strongPassword", RuleBuilder()
        .length_at_least(8, "Too short")
        .matches(r".*\\d.*", "Needs a digit")
        .build())

    Validator.check(form, context).skip_metadata() \\
        .apply_rule("strongPassword", "password", "Weak password") \\
        .validate()
    ```
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from re import Pattern as RegexPattern
from typing import Any, Callable, List

from .registry import ReplacingRegistry

Predicate = Callable[[Any], bool]


class RuleRegistry(ReplacingRegistry[Predicate]):
    """Registry of named predicates; the last registration under a name wins."""

    def __init__(self, name: str = "rules"):
        super().__init__(name)


@dataclass(frozen=True)
class Rule:
    """One text predicate with the message describing its failure."""

    predicate: Callable[[str], bool]
    error_message: str

    def test(self, value: str) -> bool:
        return bool(self.predicate(value))


class CompositeRule:
    """Predicate that passes only when every rule passes on a text value.

    Non-text values never pass.
    """

    def __init__(self, rules: List[Rule]):
        self.rules = list(rules)

    def __call__(self, value: Any) -> bool:
        return self.test(value)

    def test(self, value: Any) -> bool:
        if not isinstance(value, str):
            return False
        return all(rule.test(value) for rule in self.rules)

    def failed_rules(self, value: Any) -> List[Rule]:
        """Rules the value does not satisfy."""
        if not isinstance(value, str):
            return list(self.rules)
        return [rule for rule in self.rules if not rule.test(value)]

    @property
    def error_messages(self) -> str:
        """All rule messages joined with ``"; "``."""
        return "; ".join(rule.error_message for rule in self.rules)


class RuleBuilder:
    """Fluent builder for ``CompositeRule`` predicates."""

    def __init__(self) -> None:
        self._rules: List[Rule] = []

    def length_at_least(self, length: int, error_message: str | None = None) -> RuleBuilder:
        """Require at least ``length`` characters (fluent API)."""
        message = error_message or f"Must be at least {length} characters long"
        self._rules.append(Rule(lambda s: len(s) >= length, message))
        return self

    def length_at_most(self, length: int, error_message: str | None = None) -> RuleBuilder:
        """Require at most ``length`` characters (fluent API)."""
        message = error_message or f"Must be at most {length} characters long"
        self._rules.append(Rule(lambda s: len(s) <= length, message))
        return self

    def matches(self, regex: str | RegexPattern, error_message: str | None = None) -> RuleBuilder:
        """Require a full match of ``regex`` (fluent API)."""
        pattern = re.compile(regex) if isinstance(regex, str) else regex
        message = error_message or f"Must match regex: {pattern.pattern}"
        self._rules.append(Rule(lambda s: pattern.fullmatch(s) is not None, message))
        return self

    def satisfies(self, predicate: Callable[[str], bool], error_message: str) -> RuleBuilder:
        """Require an arbitrary text predicate (fluent API)."""
        self._rules.append(Rule(predicate, error_message))
        return self

    def build(self) -> CompositeRule:
        return CompositeRule(self._rules)
