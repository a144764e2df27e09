"""Cache key derivation and name normalization.

The same normalization is applied to query parameters and to row fields
during aggregation, so grouping and key lookup agree on what counts as
the same chapter, subject or topic.
"""

import re
from collections.abc import Mapping
from urllib.parse import quote

# quote() escapes "*", so no present value can serialize to this
ABSENT = "*all"

_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str | None) -> str:
    """Normalize a free-text name (chapter, subject, topic).

    Lower-cases, replaces hyphens with spaces, collapses whitespace runs
    and trims, so "Data  Structures" and "data-structures" compare equal.

    Args:
        name: The raw name, possibly None

    Returns:
        The normalized name ("" for None)
    """
    if not name:
        return ""
    return _WHITESPACE.sub(" ", name.replace("-", " ").lower()).strip()


def normalize_code(code: str | None) -> str:
    """Normalize a category code: trimmed and upper-cased."""
    if not code:
        return ""
    return code.strip().upper()


def _serialize(value: str | int | None) -> str:
    if value is None:
        return ABSENT
    return quote(str(value), safe="")


def derive_key(namespace: str, params: Mapping[str, str | int | None]) -> str:
    """Build a stable cache key from already-normalized parameters.

    Parameter names are sorted, so the order in which the mapping was
    built never changes the key.

    Args:
        namespace: Logical endpoint name (e.g. "chapter-counts")
        params: Parameter name to normalized value (None when absent)

    Returns:
        The cache key, e.g. "chapter-counts:category=CAT|chapter=graphs"

    Example:
        ```python
        derive_key("chapter-questions", {"chapter": "graphs", "difficulty": None})
        # 'chapter-questions:chapter=graphs|difficulty=*all'
        ```
    """
    parts = [f"{name}={_serialize(params[name])}" for name in sorted(params)]
    return f"{namespace}:{'|'.join(parts)}"
