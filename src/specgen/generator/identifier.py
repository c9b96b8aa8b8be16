"""Turn OpenAPI names into valid TypeScript identifiers.

Schema names, tag names and titles come from the document verbatim and may
contain hyphens, spaces, dots or other punctuation. :func:`sanitize` splits
such a name on every run of non-alphanumeric characters and re-joins the
segments in either PascalCase (schema identifiers) or camelCase (group and
variable identifiers).

Any alteration is reported as a warning on the ``specgen`` logger, carrying
both the original and the sanitized form, so users can see why a generated
identifier differs from the name in their document.
"""

from __future__ import annotations

import enum
import logging
import re

logger = logging.getLogger(__name__)

# Any run of characters that cannot appear in an identifier segment.
_SEPARATOR_RE = re.compile(r"[^a-zA-Z0-9]+")


class Casing(str, enum.Enum):
    """Segment join style."""

    PASCAL = "pascal"
    CAMEL = "camel"


def sanitize(name: str, casing: Casing, warn: bool = True) -> str:
    """Convert *name* to a PascalCase or camelCase identifier.

    Only the first character of each segment changes case; the rest of the
    segment is kept as written, so ``"userID"`` stays ``"UserID"`` in
    PascalCase rather than becoming ``"Userid"``.

    Args:
        name: The raw name from the document (e.g. ``"user-management"``).
        casing: :attr:`Casing.PASCAL` capitalizes every segment;
            :attr:`Casing.CAMEL` lowercases the first one.
        warn: Log the alteration, if any. Callers that sanitize the same
            name repeatedly pass ``False`` after the first time.

    Returns:
        The sanitized identifier. An identifier that would start with a
        digit is prefixed with ``_``.

    Example::

        >>> sanitize("user-management", Casing.PASCAL)
        'UserManagement'
        >>> sanitize("user-management", Casing.CAMEL)
        'userManagement'
    """
    parts = [part for part in _SEPARATOR_RE.split(name) if part]

    if casing == Casing.PASCAL:
        joined = "".join(_upper_first(part) for part in parts)
    else:
        joined = "".join(
            _lower_first(part) if index == 0 else _upper_first(part)
            for index, part in enumerate(parts)
        )

    if not joined:
        joined = "_"
    elif joined[0].isdigit():
        joined = f"_{joined}"

    if warn and joined != name:
        logger.warning('Identifier sanitized: "%s" -> "%s"', name, joined)

    return joined


def sanitize_pascal(name: str, warn: bool = True) -> str:
    """Sanitize *name* to PascalCase (schema and type names)."""
    return sanitize(name, Casing.PASCAL, warn)


def sanitize_camel(name: str) -> str:
    """Sanitize *name* to camelCase (group and variable names)."""
    return sanitize(name, Casing.CAMEL)


def _upper_first(part: str) -> str:
    return part[:1].upper() + part[1:]


def _lower_first(part: str) -> str:
    return part[:1].lower() + part[1:]
