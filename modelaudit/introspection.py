"""
modelaudit - Schema Introspection
=================================
Read-only view of the live database schema, built on SQLAlchemy's
``Inspector``.

Lookups that can fail for a single column return values instead of
raising: ``column_type`` gives a ``TypeLookup`` holding either the
physical type name or the error text, and ``column_nullable`` gives
``None`` when nullability cannot be determined.

Physical type names are the dialect-compiled column type, lowercased, with
arguments and modifiers removed::

    VARCHAR(50)                  -> varchar
    INTEGER UNSIGNED             -> integer
    TIMESTAMP WITHOUT TIME ZONE  -> timestamp
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from modelaudit.models import WILDCARD_DRIVER

logger: logging.Logger = logging.getLogger("modelaudit.introspection")

# SQLAlchemy dialect name -> type map driver key
_DRIVER_KEYS: Dict[str, str] = {
    "postgresql": "pgsql",
    "mysql": "mysql",
    "mariadb": "mariadb",
    "sqlite": "sqlite",
}


@dataclass(frozen=True)
class TypeLookup:
    """Outcome of a column type lookup: a type name or an error."""

    type_name: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.type_name is not None

    @classmethod
    def failed(cls, error: str) -> "TypeLookup":
        return cls(type_name=None, error=error)


def normalize_type_name(compiled: str) -> str:
    """``"VARCHAR(255)"`` -> ``"varchar"``; ``"DOUBLE PRECISION"`` -> ``"double"``."""
    head: str = compiled.split("(", 1)[0].strip().lower()
    parts: List[str] = head.split()
    return parts[0] if parts else ""


class SchemaIntrospector:
    """
    Schema metadata for one SQLAlchemy engine.

    Reflected column metadata is cached per table for the lifetime of the
    introspector; call ``refresh()`` after DDL changes.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine: Engine = engine
        self._inspector = inspect(engine)
        self._columns: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def __repr__(self) -> str:
        return f"<SchemaIntrospector dialect={self.engine.dialect.name!r}>"

    # -- Driver -------------------------------------------------------------

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @property
    def driver(self) -> str:
        """Type map key for this engine (``"pgsql"`` for PostgreSQL)."""
        return _DRIVER_KEYS.get(self.dialect_name, WILDCARD_DRIVER)

    def refresh(self) -> None:
        self._inspector.clear_cache()
        self._columns.clear()

    # -- Tables & columns ---------------------------------------------------

    def has_table(self, table: str) -> bool:
        try:
            return bool(self._inspector.has_table(table))
        except SQLAlchemyError as exc:
            logger.warning("has_table(%s) failed: %s", table, exc)
            return False

    def _column_map(self, table: str) -> Dict[str, Dict[str, Any]]:
        cached = self._columns.get(table)
        if cached is None:
            cached = {col["name"]: col for col in self._inspector.get_columns(table)}
            self._columns[table] = cached
        return cached

    def column_listing(self, table: str) -> List[str]:
        """Column names in table order; empty when reflection fails."""
        try:
            return list(self._column_map(table))
        except SQLAlchemyError as exc:
            logger.warning("Could not list columns of '%s': %s", table, exc)
            return []

    def column_type(self, table: str, column: str) -> TypeLookup:
        try:
            info = self._column_map(table).get(column)
            if info is None:
                return TypeLookup.failed(f"column '{column}' not found in table '{table}'")
            compiled: str = info["type"].compile(dialect=self.engine.dialect)
        except SQLAlchemyError as exc:
            logger.debug("Type lookup for %s.%s failed: %s", table, column, exc)
            return TypeLookup.failed(str(exc))

        type_name: str = normalize_type_name(compiled)
        if not type_name:
            return TypeLookup.failed(f"empty type for column '{column}'")
        return TypeLookup(type_name=type_name)

    # -- Nullability --------------------------------------------------------

    def column_nullable(self, table: str, column: str) -> Optional[bool]:
        """
        ``True`` if NULL is allowed, ``False`` for NOT NULL, ``None`` if
        unknown.

        Reflected column metadata is preferred; the engine-specific catalog
        queries are the fallback.
        """
        try:
            info = self._column_map(table).get(column)
        except SQLAlchemyError as exc:
            logger.debug("Reflection of %s failed, using catalog: %s", table, exc)
            info = None

        if info is not None and info.get("nullable") is not None:
            return bool(info["nullable"])

        return self.catalog_nullable(table, column)

    def catalog_nullable(self, table: str, column: str) -> Optional[bool]:
        """Nullability straight from the engine's catalog tables."""
        name: str = self.dialect_name
        try:
            with self.engine.connect() as conn:
                if name == "sqlite":
                    rows = conn.execute(
                        text(f"PRAGMA table_info({_quote_sqlite_ident(table)})")
                    ).mappings()
                    for row in rows:
                        if str(row["name"]) == column:
                            return int(row["notnull"]) == 0
                    return None

                if name in ("mysql", "mariadb"):
                    row = conn.execute(
                        text(
                            "SELECT IS_NULLABLE FROM INFORMATION_SCHEMA.COLUMNS "
                            "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table "
                            "AND COLUMN_NAME = :column LIMIT 1"
                        ),
                        {"table": table, "column": column},
                    ).first()
                    return None if row is None else str(row[0]).upper() == "YES"

                if name == "postgresql":
                    row = conn.execute(
                        text(
                            "SELECT is_nullable FROM information_schema.columns "
                            "WHERE table_schema = current_schema() AND table_name = :table "
                            "AND column_name = :column LIMIT 1"
                        ),
                        {"table": table, "column": column},
                    ).first()
                    return None if row is None else str(row[0]).upper() == "YES"
        except SQLAlchemyError as exc:
            logger.debug("Catalog nullability for %s.%s failed: %s", table, column, exc)

        return None


def _quote_sqlite_ident(ident: str) -> str:
    return '"' + ident.replace('"', '""') + '"'


__all__: List[str] = [
    "TypeLookup",
    "SchemaIntrospector",
    "normalize_type_name",
]
