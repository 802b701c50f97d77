"""Validator settings loaded from dictionaries, files and the environment.

Settings files are YAML or JSON. Either the settings live at the top level or
under a ``validator`` key:

    ```yaml
    validator:
      locale: fr
      strict_email: true
      message_dirs:
        - ./messages
      messages:
        en:
          error.notNull: "'{0}' is required"
    ```

Environment variables override file values. They use the form
``DATAKNOBS_VALIDATOR__<SETTING>``, for example
``DATAKNOBS_VALIDATOR__STRICT_EMAIL=true``.
"""

from __future__ import annotations

import copy
import dataclasses
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import yaml  # type: ignore[import-untyped]

from .constraints import DEFAULT_EMAIL_REGEX
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "DATAKNOBS_VALIDATOR"
ENV_SEPARATOR = "__"
SETTINGS_SECTION = "validator"


@dataclass
class ValidatorSettings:
    """Settings for a validation context.

    Attributes:
        locale: Locale used to resolve messages; empty for the base catalog
        strict_email: Check emails against ``email_regex`` instead of the
            pragmatic ``@`` and ``.`` test
        email_regex: Pattern used when ``strict_email`` is on
        detect_cycles: Skip objects already on the current cascade path
        message_dirs: Extra directories holding ``messages*.yaml`` catalogs
        messages: Inline messages per locale, applied last
    """

    locale: str = "en"
    strict_email: bool = False
    email_regex: str = DEFAULT_EMAIL_REGEX
    detect_cycles: bool = True
    message_dirs: List[str] = field(default_factory=list)
    messages: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ValidatorSettings:
        """Create settings from a dictionary.

        Args:
            data: Settings, either flat or under a ``validator`` key

        Returns:
            ValidatorSettings instance

        Raises:
            ConfigurationError: On unknown keys or badly typed values
        """
        if SETTINGS_SECTION in data and isinstance(data[SETTINGS_SECTION], Mapping):
            data = data[SETTINGS_SECTION]

        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown validator settings: {', '.join(sorted(unknown))}",
                context={"unknown": sorted(unknown), "known": sorted(known)},
            )

        settings = cls(**copy.deepcopy(dict(data)))
        settings.check()
        return settings

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> ValidatorSettings:
        """Create settings from a YAML or JSON file.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(
                f"Settings file not found: {path}", context={"path": str(path)}
            )

        try:
            with open(path, encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Cannot parse settings file {path}: {e}", context={"path": str(path)}
            ) from e

        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Settings file must contain a mapping: {path}", context={"path": str(path)}
            )

        logger.debug(f"Loaded validator settings from {path}")
        return cls.from_dict(data)

    def with_env_overrides(self, environ: Mapping[str, str] | None = None) -> ValidatorSettings:
        """Return a copy with ``DATAKNOBS_VALIDATOR__*`` overrides applied.

        Args:
            environ: Environment to read; defaults to ``os.environ``

        Returns:
            New ValidatorSettings instance
        """
        environ = os.environ if environ is None else environ
        prefix = f"{ENV_PREFIX}{ENV_SEPARATOR}"
        data = self.to_dict()

        for key, raw in environ.items():
            if not key.startswith(prefix):
                continue
            name = key[len(prefix):].lower()
            if name not in data or name == "messages":
                logger.warning(f"Ignoring unknown validator environment override: {key}")
                continue
            data[name] = _parse_env_value(raw, data[name])

        return type(self).from_dict(data)

    def check(self) -> None:
        """Check value types.

        Raises:
            ConfigurationError: On a badly typed value
        """
        expected = {
            "locale": str,
            "strict_email": bool,
            "email_regex": str,
            "detect_cycles": bool,
            "message_dirs": list,
            "messages": dict,
        }
        for name, kind in expected.items():
            value = getattr(self, name)
            if not isinstance(value, kind):
                raise ConfigurationError(
                    f"Setting '{name}' must be {kind.__name__}, got {type(value).__name__}",
                    context={"setting": name, "value": value},
                )

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(dataclasses.asdict(self))


def _parse_env_value(raw: str, current: Any) -> Any:
    """Parse an environment string into the type of the current value."""
    if isinstance(current, bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ConfigurationError(
            f"Cannot parse boolean setting value: {raw!r}", context={"value": raw}
        )
    if isinstance(current, list):
        return [part.strip() for part in raw.split(os.pathsep) if part.strip()]
    return raw
