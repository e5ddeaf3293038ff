"""Wire names for ontology properties.

Two conventions apply: a literal rename table substituted before emission,
and the plural key used when a property is list-valued.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional

DEFAULT_RENAMES: Dict[str, str] = {"specVersion": "spdxVersion"}

# Properties without any declared type that are still emitted as text
TEXT_FALLBACK_PROPERTIES = frozenset({"comment", "seeAlso"})

_VOWELS = "aeiou"


def collection_name(name: str) -> str:
    """Plural key for a list-valued property.

    Args:
        name: Singular property name

    Returns:
        ``name`` unchanged when it already ends in ``s``, ``ies`` for a
        consonant followed by ``y``, otherwise ``name`` plus ``s``
    """
    if not name or name.endswith("s"):
        return name
    if name.endswith("y") and len(name) > 1 and name[-2].lower() not in _VOWELS:
        return name[:-1] + "ies"
    return name + "s"


def wire_name(name: str, renames: Optional[Mapping[str, str]] = None) -> str:
    """Apply the rename table to a property local name."""
    table = DEFAULT_RENAMES if renames is None else renames
    return table.get(name, name)
