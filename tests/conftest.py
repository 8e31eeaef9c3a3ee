"""
tests/conftest.py
Shared fixtures for the modelaudit test suite.

Every database is a real SQLite file inside pytest's ``tmp_path``; no
external mocking libraries are used.
"""

from __future__ import annotations

import pathlib
import textwrap
from typing import Callable, Dict, Iterator, Sequence

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from modelaudit.introspection import SchemaIntrospector
from modelaudit.models import DEFAULT_TYPE_MAP
from modelaudit.type_matcher import TypeMatcher


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

ORDERS_DDL: Sequence[str] = (
    """
    CREATE TABLE customers (
        id INTEGER NOT NULL PRIMARY KEY,
        name VARCHAR(100) NOT NULL
    )
    """,
    """
    CREATE TABLE orders (
        id INTEGER NOT NULL PRIMARY KEY,
        qty INTEGER NOT NULL,
        note TEXT,
        status VARCHAR(20) NOT NULL,
        customer_id INTEGER,
        created_at DATETIME NOT NULL
    )
    """,
    """
    CREATE TABLE order_lines (
        id INTEGER NOT NULL PRIMARY KEY,
        order_id INTEGER NOT NULL,
        price NUMERIC(10, 2) NOT NULL
    )
    """,
)


def run_ddl(engine: Engine, statements: Sequence[str]) -> None:
    with engine.begin() as conn:
        for statement in statements:
            conn.execute(text(statement))


# ---------------------------------------------------------------------------
# Engine / introspector fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_url(tmp_path: pathlib.Path) -> str:
    return f"sqlite:///{tmp_path / 'app.db'}"


@pytest.fixture()
def engine(db_url: str) -> Iterator[Engine]:
    eng = create_engine(db_url)
    yield eng
    eng.dispose()


@pytest.fixture()
def make_schema(engine: Engine) -> Callable[..., SchemaIntrospector]:
    """Run DDL statements, then return a fresh introspector."""

    def _make(*statements: str) -> SchemaIntrospector:
        run_ddl(engine, statements)
        return SchemaIntrospector(engine)

    return _make


@pytest.fixture()
def orders_schema(make_schema: Callable[..., SchemaIntrospector]) -> SchemaIntrospector:
    """customers / orders / order_lines, matching ``sample_models``."""
    return make_schema(*ORDERS_DDL)


@pytest.fixture()
def matcher() -> TypeMatcher:
    """Wildcard-only matcher over the default table."""
    return TypeMatcher(DEFAULT_TYPE_MAP, "*")


@pytest.fixture()
def sqlite_matcher() -> TypeMatcher:
    return TypeMatcher(DEFAULT_TYPE_MAP, "sqlite")


# ---------------------------------------------------------------------------
# On-disk model packages
# ---------------------------------------------------------------------------


@pytest.fixture()
def package_factory(
    tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch
) -> Callable[[Dict[str, str]], str]:
    """
    Write ``{relative path: source}`` under a uniquely named package in
    ``tmp_path`` and make it importable. Returns the package name.

    Package names are unique per test so ``sys.modules`` never serves a
    module written by another test.
    """

    def _make(files: Dict[str, str]) -> str:
        name = "pkg_" + "".join(c if c.isalnum() else "_" for c in tmp_path.name)
        root = tmp_path / name
        root.mkdir(exist_ok=True)
        (root / "__init__.py").touch()
        for relative, source in files.items():
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(textwrap.dedent(source), encoding="utf-8")
        monkeypatch.syspath_prepend(str(tmp_path))
        return name

    return _make
