"""
tests/test_introspection.py
Tests for modelaudit.introspection against a real SQLite database.
"""

from __future__ import annotations

from typing import Callable

import pytest
from sqlalchemy import create_engine

from modelaudit.introspection import SchemaIntrospector, TypeLookup, normalize_type_name


class TestNormalizeTypeName:
    @pytest.mark.parametrize(
        "compiled, expected",
        [
            ("VARCHAR(50)", "varchar"),
            ("NUMERIC(10, 2)", "numeric"),
            ("INTEGER UNSIGNED", "integer"),
            ("TIMESTAMP WITHOUT TIME ZONE", "timestamp"),
            ("DOUBLE PRECISION", "double"),
            ("text", "text"),
            ("", ""),
        ],
    )
    def test_normalize(self, compiled: str, expected: str) -> None:
        assert normalize_type_name(compiled) == expected


class TestTypeLookup:
    def test_ok(self) -> None:
        assert TypeLookup(type_name="varchar").ok

    def test_failed(self) -> None:
        lookup = TypeLookup.failed("boom")
        assert not lookup.ok
        assert lookup.type_name is None
        assert lookup.error == "boom"


class TestSchemaIntrospector:
    """Reflection over the customers / orders / order_lines schema."""

    def test_driver_key(self, orders_schema: SchemaIntrospector) -> None:
        assert orders_schema.dialect_name == "sqlite"
        assert orders_schema.driver == "sqlite"

    def test_has_table(self, orders_schema: SchemaIntrospector) -> None:
        assert orders_schema.has_table("orders")
        assert not orders_schema.has_table("invoices")

    def test_column_listing_in_table_order(self, orders_schema: SchemaIntrospector) -> None:
        assert orders_schema.column_listing("orders") == [
            "id", "qty", "note", "status", "customer_id", "created_at",
        ]

    def test_column_listing_of_missing_table(self, orders_schema: SchemaIntrospector) -> None:
        assert orders_schema.column_listing("invoices") == []

    @pytest.mark.parametrize(
        "column, expected",
        [
            ("id", "integer"),
            ("note", "text"),
            ("status", "varchar"),
            ("created_at", "datetime"),
        ],
    )
    def test_column_type(
        self, orders_schema: SchemaIntrospector, column: str, expected: str
    ) -> None:
        lookup = orders_schema.column_type("orders", column)
        assert lookup.ok
        assert lookup.type_name == expected

    def test_parameterised_type(self, orders_schema: SchemaIntrospector) -> None:
        assert orders_schema.column_type("order_lines", "price").type_name == "numeric"

    def test_missing_column_is_a_value_not_an_exception(
        self, orders_schema: SchemaIntrospector
    ) -> None:
        lookup = orders_schema.column_type("orders", "nope")
        assert not lookup.ok
        assert "nope" in (lookup.error or "")

    def test_nullability(self, orders_schema: SchemaIntrospector) -> None:
        assert orders_schema.column_nullable("orders", "note") is True
        assert orders_schema.column_nullable("orders", "qty") is False
        assert orders_schema.column_nullable("orders", "id") is False

    def test_catalog_nullability(self, orders_schema: SchemaIntrospector) -> None:
        assert orders_schema.catalog_nullable("orders", "note") is True
        assert orders_schema.catalog_nullable("orders", "status") is False
        assert orders_schema.catalog_nullable("orders", "missing") is None

    def test_nullability_of_unknown_table(self, orders_schema: SchemaIntrospector) -> None:
        assert orders_schema.column_nullable("invoices", "id") is None

    def test_refresh_picks_up_new_columns(
        self, make_schema: Callable[..., SchemaIntrospector]
    ) -> None:
        schema = make_schema("CREATE TABLE tags (id INTEGER NOT NULL PRIMARY KEY)")
        assert schema.column_listing("tags") == ["id"]

        with schema.engine.begin() as conn:
            conn.exec_driver_sql("ALTER TABLE tags ADD COLUMN label VARCHAR(30)")

        assert schema.column_listing("tags") == ["id"]
        schema.refresh()
        assert schema.column_listing("tags") == ["id", "label"]

    def test_in_memory_engine(self) -> None:
        schema = SchemaIntrospector(create_engine("sqlite://"))
        assert schema.driver == "sqlite"
        assert repr(schema) == "<SchemaIntrospector dialect='sqlite'>"
