"""Identifier transforms used when turning reflected names into proto text."""

from __future__ import annotations

import re
from typing import Tuple

DEFAULT_NAMESPACE = "discord_protos"

# "DMs" (direct messages) must stay one word; the general rules would split it
# into D_MS.
_LITERAL_OVERRIDES = (("DMs", "Dms"),)

_LOWER_UPPER = re.compile(r"([a-z])([A-Z])")
_UPPER_UPPER_LOWER = re.compile(r"([A-Z])([A-Z][a-z])")
_LOWER_DIGIT = re.compile(r"([a-z])(\d)")
_ACRONYM_RUN = re.compile(r"([A-Z]+)(?=[A-Z][a-z])")

_SNAKE_BOUNDARY = re.compile(r"(([a-z])(?=[A-Z][a-zA-Z])|([A-Z])(?=[A-Z][a-z]))")


def split_qualified_name(dotted: str) -> Tuple[str, str]:
    """Split ``a.b.C`` into ``("a.b", "C")``. The package may be empty."""
    package, _, name = dotted.rpartition(".")
    return package, name


def in_namespace(qualified_name: str, namespace: str) -> bool:
    return qualified_name == namespace or qualified_name.startswith(namespace + ".")


def strip_namespace(package: str, namespace: str) -> str:
    """Drop the namespace root from a package: ``discord_protos.foo`` -> ``foo``."""
    if package == namespace:
        return ""
    if package.startswith(namespace + "."):
        return package[len(namespace) + 1:]
    return package


def to_screaming_snake(name: str) -> str:
    """Convert a PascalCase type name to the SCREAMING_SNAKE_CASE enum prefix.

    ``SlayerSDKReceive`` -> ``SLAYER_SDK_RECEIVE``
    ``UserDMsSettings``  -> ``USER_DMS_SETTINGS``
    """
    for literal, replacement in _LITERAL_OVERRIDES:
        name = name.replace(literal, replacement, 1)
    name = _LOWER_UPPER.sub(r"\1_\2", name)
    name = _UPPER_UPPER_LOWER.sub(r"\1_\2", name)
    name = _LOWER_DIGIT.sub(r"\1_\2", name)
    name = _ACRONYM_RUN.sub(r"\1_", name)
    return name.upper()


def to_snake_case(name: str) -> str:
    """Convert a camelCase oneof name to snake_case."""
    return _SNAKE_BOUNDARY.sub(r"\1_", name).lower()
