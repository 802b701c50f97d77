"""Apply declared constraints to field values and turn failures into violations.
"""

from __future__ import annotations

import logging
from re import Pattern as RegexPattern
from typing import Any, Iterable, List

from .constraints import CheckStatus, Constraint
from .messages import MessageResolver
from .metadata import FieldDescriptor
from .results import Violation

logger = logging.getLogger(__name__)


def is_placeholder(message: str) -> bool:
    """True for the ``??key??`` text resolvers return for unknown keys."""
    return len(message) >= 4 and message.startswith("??") and message.endswith("??")


class MessageFormatter:
    """Picks the message for a failed check.

    Order: the declaration's literal message, then the message key resolved
    through the resolver, then a synthesized ``Field '<name>' <reason>``.
    Resolver failures of any kind fall through to the synthesized text.
    """

    def __init__(self, resolver: MessageResolver):
        self.resolver = resolver

    def lookup(self, key: str, *args: Any) -> str | None:
        """Resolve a key, treating placeholders and resolver errors as missing."""
        try:
            message = self.resolver.resolve(key, *args)
        except Exception as e:
            logger.warning(f"Message resolver failed for '{key}': {e}")
            return None
        if message is None or is_placeholder(message):
            return None
        return message

    def for_constraint(self, constraint: Constraint, field_name: str) -> str:
        if constraint.message:
            return constraint.message
        message = self.lookup(constraint.message_key, field_name, *constraint.message_args())
        if message is not None:
            return message
        return f"Field '{field_name}' {constraint.default_reason()}"

    def text(self, key: str, default: str, *args: Any) -> str:
        """Resolve a key with a literal fallback."""
        message = self.lookup(key, *args)
        return message if message is not None else default


class ConstraintDispatcher:
    """Tests field values against their declared constraints.

    Each (field, constraint) pair yields at most one violation. Constraints
    that do not apply to the value's type are skipped silently.
    """

    def __init__(self, formatter: MessageFormatter, email_regex: RegexPattern | None = None):
        """Initialize the dispatcher.

        Args:
            formatter: Message formatter used for failed checks
            email_regex: Strict email pattern, or None for the pragmatic check
        """
        self.formatter = formatter
        self.email_regex = email_regex

    def check(self, constraint: Constraint, field_name: str, value: Any) -> Violation | None:
        """Test one value against one constraint.

        Returns:
            A Violation when the constraint is violated, else None
        """
        try:
            status = constraint.check(value, self.email_regex)
        except Exception as e:
            logger.warning(
                f"Skipping {constraint.kind.value} check on '{field_name}': {e}"
            )
            return None

        if status is not CheckStatus.VIOLATED:
            return None
        return Violation(field_name, self.formatter.for_constraint(constraint, field_name), value)

    def apply(self, target: Any, descriptor: FieldDescriptor) -> List[Violation]:
        """Check every constraint declared on a field of ``target``.

        An unreadable field produces no violations.
        """
        read = descriptor.read(target)
        if not read.ok:
            return []
        return self.check_all(descriptor.constraints, descriptor.name, read.value)

    def check_all(
        self, constraints: Iterable[Constraint], field_name: str, value: Any
    ) -> List[Violation]:
        violations = []
        for constraint in constraints:
            violation = self.check(constraint, field_name, value)
            if violation is not None:
                violations.append(violation)
        return violations
