"""Factories building constraints and validation contexts from configuration."""

from __future__ import annotations

import importlib
import logging
from typing import Any, Iterable, List, Mapping

from dataknobs_config import FactoryBase

from .constraints import CONSTRAINT_TYPES, Constraint, ConstraintKind
from .context import ValidatorContext
from .exceptions import ConfigurationError
from .metadata import MetadataCache
from .settings import ValidatorSettings

logger = logging.getLogger(__name__)


class ConstraintFactory(FactoryBase):
    """Factory for creating constraint declarations from configuration.

    Configuration Options:
        type (str): One of not_null, email, size, min, max, pattern
        message (str): Literal message overriding the catalog
        message_key (str): Catalog key used when no literal message is set

    Type Specific Options:
        not_null: allow_empty (bool)
        email: regex (str)
        size: min (int), max (int)
        min / max: value (int)
        pattern: regex (str)

    Example Configuration:
        types:
          myapp.models.User:
            name:
              - type: not_null
                message: "Name cannot be null!"
            password:
              - type: size
                min: 8
                max: 20
    """

    def create(self, **config: Any) -> Constraint:
        """Create a constraint from configuration.

        Raises:
            ConfigurationError: On an unknown type or invalid parameters
        """
        params = dict(config)
        type_name = str(params.pop("type", "")).lower()
        try:
            kind = ConstraintKind(type_name)
        except ValueError:
            raise ConfigurationError(
                f"Unknown constraint type: {type_name!r}",
                context={"type": type_name, "available": [k.value for k in ConstraintKind]},
            ) from None

        try:
            return CONSTRAINT_TYPES[kind](**params)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid {type_name} constraint configuration: {e}",
                context={"type": type_name, "config": params},
            ) from e

    def build_constraints(self, configs: Iterable[Mapping[str, Any]]) -> List[Constraint]:
        return [self.create(**config) for config in configs]

    def declare_types(self, cache: MetadataCache, config: Mapping[str, Any]) -> List[type]:
        """Declare constraints for classes named by dotted path.

        Args:
            cache: Cache to declare the constraints on
            config: Mapping of dotted class path to a mapping of field name
                to constraint configurations; may be nested under ``types``

        Returns:
            The classes that received declarations

        Raises:
            ConfigurationError: If a class cannot be imported or a constraint
                configuration is invalid
        """
        types_config = config.get("types", config)
        declared = []
        for path, fields in types_config.items():
            cls = import_class(path)
            cache.declare(
                cls,
                {name: self.build_constraints(items) for name, items in fields.items()},
            )
            logger.debug(f"Declared constraints on {path} for fields {sorted(fields)}")
            declared.append(cls)
        return declared


class ContextFactory(FactoryBase):
    """Factory for creating validation contexts from configuration.

    Configuration Options:
        Any ``ValidatorSettings`` option, plus
        types (dict): Constraint declarations, see ``ConstraintFactory``
    """

    def create(self, **config: Any) -> ValidatorContext:
        types_config = config.pop("types", None)
        context = ValidatorContext(ValidatorSettings.from_dict(config))
        if types_config:
            ConstraintFactory().declare_types(context.cache, types_config)
        logger.info(f"Created validator context (locale={context.settings.locale})")
        return context


def import_class(path: str) -> type:
    """Import a class from a ``package.module.Class`` path.

    Raises:
        ConfigurationError: If the path cannot be imported or is not a class
    """
    module_name, _, attr = path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Not a dotted class path: {path!r}", context={"path": path})
    try:
        obj = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot import {path}: {e}", context={"path": path}) from e
    if not isinstance(obj, type):
        raise ConfigurationError(f"Not a class: {path}", context={"path": path})
    return obj
