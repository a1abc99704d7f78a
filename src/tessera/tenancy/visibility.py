"""Visibility levels for tenant configuration keys."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ConfigVisibility(str, Enum):
    """Which trust boundary a configuration key may cross.

    - PUBLIC: may be sent to the browser
    - PROTECTED: may be sent to the rendering edge, never to the browser
    - PRIVATE: never leaves the backend process
    """

    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"

    @classmethod
    def parse(cls, value: Any) -> ConfigVisibility:
        """Parse a loosely-typed visibility token.

        Unknown or malformed tokens degrade to PRIVATE.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.PRIVATE
        return cls.PRIVATE

    @property
    def is_exposed_to_edge(self) -> bool:
        return self is not ConfigVisibility.PRIVATE
