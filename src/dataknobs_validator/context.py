"""Validation context: the shared collaborators of every validation pass.

A ``ValidatorContext`` bundles the settings, the metadata cache, the message
resolver and the rule and profile registries. Every entry point accepts an
explicit context. When none is given, the process-wide default context is
used; it is created on first use and can be replaced or reset:

    ```python
    from dataknobs_validator import ValidatorContext, set_default_context

    set_default_context(ValidatorContext.from_file("validator.yaml"))
    ...
    reset_default_context()  # e.g. in test teardown
    ```
"""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from re import Pattern as RegexPattern
from typing import Any, Mapping, Union

from .exceptions import ConfigurationError
from .messages import MessageResolver
from .metadata import MetadataCache
from .profiles import ProfileRegistry
from .rules import RuleRegistry
from .settings import ValidatorSettings

logger = logging.getLogger(__name__)


class ValidatorContext:
    """Settings plus the caches and registries shared across validations."""

    def __init__(
        self,
        settings: ValidatorSettings | None = None,
        cache: MetadataCache | None = None,
        messages: MessageResolver | None = None,
        rules: RuleRegistry | None = None,
        profiles: ProfileRegistry | None = None,
    ):
        """Initialize the context.

        Args:
            settings: Settings; defaults are used when omitted
            cache: Metadata cache; a fresh one when omitted
            messages: Message resolver; built from the settings when omitted
            rules: Rule registry; empty when omitted
            profiles: Profile registry; empty when omitted
        """
        self.settings = settings if settings is not None else ValidatorSettings()
        self.cache = cache if cache is not None else MetadataCache()
        self.messages = (
            messages if messages is not None else self._build_resolver(self.settings)
        )
        self.rules = rules if rules is not None else RuleRegistry()
        self.profiles = profiles if profiles is not None else ProfileRegistry()
        self._email_regex = self._compile_email_regex(self.settings)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ValidatorContext:
        """Create a context from a settings dictionary."""
        return cls(ValidatorSettings.from_dict(data))

    @classmethod
    def from_file(cls, path: Union[str, Path], use_env: bool = True) -> ValidatorContext:
        """Create a context from a settings file.

        Args:
            path: YAML or JSON settings file
            use_env: Apply ``DATAKNOBS_VALIDATOR__*`` environment overrides
        """
        settings = ValidatorSettings.from_file(path)
        if use_env:
            settings = settings.with_env_overrides()
        return cls(settings)

    @property
    def email_regex(self) -> RegexPattern | None:
        """Strict email pattern, or None when strict checking is off."""
        return self._email_regex

    @staticmethod
    def _build_resolver(settings: ValidatorSettings) -> MessageResolver:
        resolver = MessageResolver(settings.locale, settings.message_dirs)
        for locale, messages in settings.messages.items():
            resolver.add_messages(messages, locale or None)
        return resolver

    @staticmethod
    def _compile_email_regex(settings: ValidatorSettings) -> RegexPattern | None:
        if not settings.strict_email:
            return None
        try:
            return re.compile(settings.email_regex)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid email_regex setting: {e}",
                context={"email_regex": settings.email_regex},
            ) from e


_default_context: ValidatorContext | None = None
_default_lock = threading.Lock()


def get_default_context() -> ValidatorContext:
    """Get the process-wide default context, creating it on first use."""
    global _default_context
    with _default_lock:
        if _default_context is None:
            _default_context = ValidatorContext()
            logger.debug("Created default validator context")
        return _default_context


def set_default_context(context: ValidatorContext) -> None:
    """Replace the process-wide default context."""
    global _default_context
    with _default_lock:
        _default_context = context


def reset_default_context() -> None:
    """Drop the process-wide default context; the next use creates a fresh one."""
    global _default_context
    with _default_lock:
        _default_context = None
