"""Last-registration-wins registry shared by rules and profiles."""

import logging
from typing import Any, Dict, TypeVar

from dataknobs_common import Registry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReplacingRegistry(Registry[T]):
    """Registry where registering a taken name replaces the earlier entry.

    Example:
        ```python
        rules = ReplacingRegistry[Callable[[Any], bool]]("rules")
        rules.register("nonEmpty", bool)
        rules.register("nonEmpty", lambda value: value != "")
        rules.get_optional("missing")
        # None
        ```
    """

    def register(
        self,
        key: str,
        item: T,
        metadata: Dict[str, Any] | None = None,
        allow_overwrite: bool = True,
    ) -> None:
        if allow_overwrite and self.has(key):
            logger.debug(f"Replacing '{key}' in {self.name}")
        super().register(key, item, metadata=metadata, allow_overwrite=allow_overwrite)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, count={self.count()})"
