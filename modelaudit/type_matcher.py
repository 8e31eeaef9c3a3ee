"""
modelaudit - Type Compatibility Matcher
=======================================
Decides whether a declared cast is compatible with a physical column type.

A cast is one of:

* a scalar keyword string (``"integer"``, ``"decimal:2"``, ``"datetime"``),
* an enumeration (``enum.Enum`` subclass, given directly or as a dotted
  import path),
* a custom encoder (SQLAlchemy ``TypeDecorator`` / ``UserDefinedType``
  subclass, or any class with ``get``/``set`` methods).

Enumerations and custom encoders are special-cased; everything else goes
through the per-driver ``TypeMap`` with substring keyword matching, so
parameterised tokens like ``"decimal:2"`` need no parsing.
"""

from __future__ import annotations

import enum
import importlib
import logging
import re
from typing import Any, Dict, FrozenSet, List, Optional, Protocol, Set, runtime_checkable

from sqlalchemy.types import TypeDecorator, UserDefinedType

from modelaudit.models import DEFAULT_TYPE_MAP, WILDCARD_DRIVER, TypeMap

logger: logging.Logger = logging.getLogger("modelaudit.type_matcher")

INTEGER_PHYSICAL_TYPES: FrozenSet[str] = frozenset(
    {"int", "integer", "bigint", "tinyint", "smallint"}
)
STRING_PHYSICAL_TYPES: FrozenSet[str] = frozenset(
    {"string", "varchar", "char", "text", "enum", "set"}
)

_DOTTED_PATH_RE: re.Pattern[str] = re.compile(
    r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)+$"
)


@runtime_checkable
class AttributeCaster(Protocol):
    """Custom value encoder/decoder; opaque to the matcher."""

    def get(self, model: Any, key: str, value: Any, attributes: Dict[str, Any]) -> Any:
        ...

    def set(self, model: Any, key: str, value: Any, attributes: Dict[str, Any]) -> Any:
        ...


# ---------------------------------------------------------------------------
# Class resolution helpers
# ---------------------------------------------------------------------------


def resolve_class(cast: Any) -> Optional[type]:
    """
    Return the class a cast refers to, or ``None`` for plain keywords.

    Strings are treated as dotted import paths (``"app.enums.Status"``);
    anything that fails to import resolves to ``None``.
    """
    if isinstance(cast, type):
        return cast
    if not isinstance(cast, str):
        return None

    path: str = cast.lstrip("\\").strip()
    if not _DOTTED_PATH_RE.match(path):
        return None

    module_name, _, attr = path.rpartition(".")
    try:
        module = importlib.import_module(module_name)
    except Exception as exc:  # arbitrary import-time failures
        logger.debug("Could not import '%s' for cast '%s': %s", module_name, cast, exc)
        return None

    target: Any = getattr(module, attr, None)
    return target if isinstance(target, type) else None


def cast_label(cast: Any) -> str:
    """Human-readable name of a cast for diagnostics."""
    if isinstance(cast, type):
        return f"{cast.__module__}.{cast.__qualname__}"
    return str(cast).lstrip("\\")


def is_enum_class(target: Optional[type]) -> bool:
    return isinstance(target, type) and issubclass(target, enum.Enum)


def backing_kind(enum_cls: type) -> Optional[str]:
    """
    Backing representation of an enumeration: ``"int"``, ``"string"``,
    ``"pure"`` for plain ``Enum`` classes, or ``None`` when the class
    declares a backing type the matcher does not understand.

    An explicit ``__backing_type__`` class attribute wins over the mixin
    base class.
    """
    declared: Any = getattr(enum_cls, "__backing_type__", None)
    if declared is not None:
        lowered: str = str(declared).lower()
        if lowered in ("int", "integer"):
            return "int"
        if lowered in ("str", "string"):
            return "string"
        return None

    if issubclass(enum_cls, int):
        return "int"
    if issubclass(enum_cls, str):
        return "string"
    return "pure"


def is_custom_caster(target: Optional[type]) -> bool:
    if not isinstance(target, type):
        return False
    if issubclass(target, (TypeDecorator, UserDefinedType)):
        return True
    if is_enum_class(target):
        return False
    return isinstance(target, AttributeCaster)


# ---------------------------------------------------------------------------
# Matcher
# ---------------------------------------------------------------------------


class TypeMatcher:
    """
    Cast-vs-column compatibility policy for one database driver.

    Args:
        type_map: driver -> cast keyword -> physical types.
        driver:   Driver key (``"mysql"``, ``"pgsql"``, ``"sqlite"``,
                  ``"mariadb"``). Unknown drivers fall back to ``"*"``.
    """

    def __init__(self, type_map: Optional[TypeMap] = None, driver: str = WILDCARD_DRIVER) -> None:
        self.type_map: TypeMap = type_map if type_map is not None else DEFAULT_TYPE_MAP
        self.driver: str = driver if driver in self.type_map else WILDCARD_DRIVER

    def __repr__(self) -> str:
        return f"<TypeMatcher driver={self.driver!r}>"

    def _tables(self) -> List[Dict[str, List[str]]]:
        tables: List[Dict[str, List[str]]] = []
        driver_table = self.type_map.get(self.driver)
        if isinstance(driver_table, dict):
            tables.append(driver_table)
        fallback = self.type_map.get(WILDCARD_DRIVER)
        if isinstance(fallback, dict) and self.driver != WILDCARD_DRIVER:
            tables.append(fallback)
        return tables

    def is_compatible(self, physical_type: str, cast: Any) -> bool:
        physical: str = str(physical_type).lower()
        target: Optional[type] = resolve_class(cast)

        # 1) Enumerations
        if is_enum_class(target):
            kind: Optional[str] = backing_kind(target)
            if kind == "int":
                return physical in INTEGER_PHYSICAL_TYPES
            if kind == "string":
                return physical in STRING_PHYSICAL_TYPES
            # Pure enums and unknown backing: storage is handled elsewhere.
            return True

        # 2) Custom encoders
        if is_custom_caster(target):
            return True

        token: str = cast_label(cast).lower()

        # 3) Integer shorthand
        if token in ("int", "integer"):
            return physical in INTEGER_PHYSICAL_TYPES

        # 4) Driver table, then wildcard
        tables: List[Dict[str, List[str]]] = self._tables()
        keywords: Set[str] = _matching_keywords(token, tables)
        for table in tables:
            for keyword, physical_types in table.items():
                if keyword in keywords and physical in physical_types:
                    return True

        return False


def _matching_keywords(token: str, tables: List[Dict[str, List[str]]]) -> Set[str]:
    """
    Keywords contained in ``token``, minus those that only match as part of
    a longer matching keyword (``date`` inside ``datetime``).
    """
    found: Set[str] = {kw for table in tables for kw in table if kw and kw in token}
    return {
        kw for kw in found
        if not any(kw != other and kw in other for other in found)
    }


__all__: List[str] = [
    "AttributeCaster",
    "TypeMatcher",
    "INTEGER_PHYSICAL_TYPES",
    "STRING_PHYSICAL_TYPES",
    "resolve_class",
    "cast_label",
    "is_enum_class",
    "backing_kind",
    "is_custom_caster",
]
