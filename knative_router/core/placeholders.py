"""Best-effort ``{{key}}`` placeholder resolution.

Supported forms:

* ``{{key}}`` — looked up in the supplied properties.
* ``{{key:fallback}}`` — as above, using *fallback* when the key is absent.
* ``{{env:NAME}}`` — looked up in the process environment.

Resolution is total: a placeholder that cannot be satisfied makes the whole
value resolve to ``None`` instead of raising.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")
_ENV_PREFIX = "env:"


class PlaceholderResolver:
    """Resolves placeholders against a fixed property mapping."""

    def __init__(
        self,
        properties: Mapping[str, str] | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._properties = dict(properties or {})
        self._environ = environ if environ is not None else os.environ

    def resolve(self, value: str | None) -> str | None:
        """Return *value* with placeholders substituted, or ``None``."""
        if value is None:
            return None
        missing: list[str] = []

        def _substitute(match: re.Match[str]) -> str:
            found = self._lookup(match.group(1))
            if found is None:
                missing.append(match.group(1))
                return ""
            return found

        resolved = _PLACEHOLDER.sub(_substitute, value)
        if missing:
            logger.debug("Unresolved placeholder(s) %s in %r.", missing, value)
            return None
        return resolved

    def _lookup(self, expression: str) -> str | None:
        if expression.startswith(_ENV_PREFIX):
            return self._environ.get(expression[len(_ENV_PREFIX):])
        key, sep, fallback = expression.partition(":")
        value = self._properties.get(key)
        if value is None and sep:
            return fallback
        return value
