"""Named validation profiles: reusable sets of fluent checks.

A profile is a callable that adds checks to a ``ValidationBuilder``. Profiles
are applied with ``ValidationBuilder.with_profile`` or through a
``ValidationPipeline`` rule set.

    ```python
    profiles = ProfileRegistry()
    profiles.register("signup", lambda b: b
        .is_not_null("name", "Name must not be null!")
        .has_length_between("name", 1, 100, "Name cannot be empty"))
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from .registry import ReplacingRegistry

if TYPE_CHECKING:
    from .builder import ValidationBuilder

Profile = Callable[["ValidationBuilder"], Any]


class ProfileRegistry(ReplacingRegistry[Profile]):
    """Registry of named profiles; the last registration under a name wins."""

    def __init__(self, name: str = "profiles"):
        super().__init__(name)
