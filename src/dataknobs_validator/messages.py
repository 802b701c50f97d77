"""Localized message lookup for validation violations.

Messages live in YAML catalogs named ``messages.yaml`` (the base catalog) and
``messages_<locale>.yaml``. Lookups fall back from the most specific locale to
the base catalog, so with locale ``fr_CA`` the resolver tries ``fr_CA``, then
``fr``, then the base catalog.

Catalogs may be flat (``error.notNull: "..."``) or nested
(``error: {notNull: "..."}``); nested keys are joined with dots. Templates use
positional ``str.format`` placeholders, ``{0}`` being the field name.

Example:
    ```python
    resolver = MessageResolver(locale="es")
    resolver.get_message("error.notNull", "name")
    # "El campo 'name' no puede ser nulo"
    resolver.get_message("error.unknown")
    # "??error.unknown??"
    ```
"""

from __future__ import annotations

import logging
import threading
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Union

import yaml  # type: ignore[import-untyped]

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CATALOG_PACKAGE_DIR = "catalogs"
CATALOG_BASENAME = "messages"
BASE_LOCALE = ""


def normalize_locale(locale: str | None) -> str:
    """Normalize ``fr-FR``/``fr_fr.UTF-8`` style tags to ``fr_FR``."""
    if not locale:
        return BASE_LOCALE
    tag = locale.split(".", 1)[0].replace("-", "_")
    parts = tag.split("_")
    if len(parts) == 1:
        return parts[0].lower()
    return f"{parts[0].lower()}_{parts[1].upper()}"


def locale_chain(locale: str | None) -> List[str]:
    """Candidate catalog locales, most specific first, ending with the base."""
    tag = normalize_locale(locale)
    chain: List[str] = []
    while tag:
        chain.append(tag)
        tag = tag.rpartition("_")[0]
    chain.append(BASE_LOCALE)
    return chain


def flatten_messages(data: Mapping[str, Any], prefix: str = "") -> Dict[str, str]:
    """Flatten a nested catalog mapping into dotted keys."""
    flat: Dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_messages(value, full_key))
        elif value is not None:
            flat[full_key] = str(value)
    return flat


def _catalog_filename(locale: str) -> str:
    if locale == BASE_LOCALE:
        return f"{CATALOG_BASENAME}.yaml"
    return f"{CATALOG_BASENAME}_{locale}.yaml"


def load_catalog_file(path: Union[str, Path]) -> Dict[str, str]:
    """Load and flatten one YAML catalog file.

    Raises:
        ConfigurationError: If the file is not a YAML mapping
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"Message catalog must be a mapping: {path}",
            context={"path": str(path), "type": type(data).__name__},
        )
    return flatten_messages(data)


class MessageResolver:
    """Resolves message keys to formatted, localized text.

    Catalog sources, lowest precedence first: the catalogs bundled with this
    package, catalogs in each configured directory (in order), then messages
    added at runtime with ``add_messages``.
    """

    def __init__(
        self,
        locale: str | None = None,
        message_dirs: Iterable[Union[str, Path]] | None = None,
        include_bundled: bool = True,
    ):
        """Initialize the resolver.

        Args:
            locale: Initial locale tag; None selects the base catalog
            message_dirs: Extra directories holding ``messages*.yaml`` files
            include_bundled: Whether to use the catalogs shipped with the package
        """
        self._locale = normalize_locale(locale)
        self._message_dirs = [Path(d) for d in (message_dirs or [])]
        self._include_bundled = include_bundled
        self._overrides: Dict[str, Dict[str, str]] = {}
        self._catalogs: Dict[str, Dict[str, str]] = {}
        self._lock = threading.RLock()

    @property
    def locale(self) -> str:
        return self._locale

    def set_locale(self, locale: str | None) -> None:
        """Switch the active locale."""
        with self._lock:
            self._locale = normalize_locale(locale)

    def add_messages(self, messages: Mapping[str, Any], locale: str | None = None) -> None:
        """Add or replace messages for a locale at runtime.

        Args:
            messages: Flat or nested mapping of key to template
            locale: Locale the messages belong to; None for the base catalog
        """
        tag = normalize_locale(locale)
        with self._lock:
            self._overrides.setdefault(tag, {}).update(flatten_messages(messages))
            self._catalogs.pop(tag, None)

    def resolve(self, key: str, *args: Any) -> str | None:
        """Resolve and format a message.

        Args:
            key: Message key, e.g. ``error.notNull``
            *args: Positional interpolation arguments

        Returns:
            The formatted message, or None when the key is unknown or its
            template cannot be formatted with the given arguments
        """
        if not key:
            return None
        template = self._lookup(key)
        if template is None:
            logger.debug(f"Message key not found: {key} (locale={self._locale or 'base'})")
            return None
        try:
            return template.format(*args)
        except (IndexError, KeyError, ValueError) as e:
            logger.warning(f"Cannot format message '{key}' with {len(args)} args: {e}")
            return None

    def get_message(self, key: str, *args: Any) -> str:
        """Resolve a message, returning ``??key??`` when it cannot be resolved."""
        message = self.resolve(key, *args)
        return message if message is not None else f"??{key}??"

    def has_message(self, key: str) -> bool:
        return self._lookup(key) is not None

    def reload(self) -> None:
        """Forget loaded catalogs so files are read again on next use."""
        with self._lock:
            self._catalogs.clear()

    def _lookup(self, key: str) -> str | None:
        with self._lock:
            for tag in locale_chain(self._locale):
                template = self._catalog(tag).get(key)
                if template is not None:
                    return template
        return None

    def _catalog(self, tag: str) -> Dict[str, str]:
        catalog = self._catalogs.get(tag)
        if catalog is None:
            catalog = self._load(tag)
            self._catalogs[tag] = catalog
        return catalog

    def _load(self, tag: str) -> Dict[str, str]:
        filename = _catalog_filename(tag)
        catalog: Dict[str, str] = {}

        if self._include_bundled:
            bundled = resources.files(__package__).joinpath(CATALOG_PACKAGE_DIR).joinpath(filename)
            if bundled.is_file():
                data = yaml.safe_load(bundled.read_text(encoding="utf-8")) or {}
                catalog.update(flatten_messages(data))

        for directory in self._message_dirs:
            path = directory / filename
            if not path.is_file():
                continue
            try:
                catalog.update(load_catalog_file(path))
                logger.debug(f"Loaded message catalog {path}")
            except (OSError, yaml.YAMLError, ConfigurationError) as e:
                logger.warning(f"Skipping unreadable message catalog {path}: {e}")

        catalog.update(self._overrides.get(tag, {}))
        return catalog
