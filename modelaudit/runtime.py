"""
modelaudit - Model Runtime Adapter
==================================
Reads what the checkers need from a model instance.

Conventions understood on the model class::

    class Order(Base, RelationsMixin):
        \"\"\"
        @property int $id
        @property ?string $note
        \"\"\"

        __tablename__ = "orders"
        __casts__ = {"qty": "integer", "status": OrderStatus}
        __fillable__ = ["qty", "note", "status"]

Everything is read from the class, so plain (non-SQLAlchemy) classes that
follow the same conventions work too.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, Iterator, List, NamedTuple, Optional

from modelaudit.relations import is_marked_relation
from modelaudit.utils import default_table_name

logger: logging.Logger = logging.getLogger("modelaudit.runtime")


class ModelMethod(NamedTuple):
    """A zero-argument method declared on the model's own class."""

    name: str
    invoke: Callable[[], Any]
    marked_relation: bool


class ModelRuntime:
    """Default adapter over declarative model classes."""

    def class_name(self, model: Any) -> str:
        cls: type = type(model)
        return f"{cls.__module__}.{cls.__qualname__}"

    def table_name(self, model: Any) -> str:
        name: Any = getattr(model, "__tablename__", None)
        if name:
            return str(name)
        table: Any = getattr(model, "__table__", None)
        if table is not None and getattr(table, "name", None):
            return str(table.name)
        return default_table_name(type(model).__name__)

    def casts(self, model: Any) -> Dict[str, Any]:
        declared: Any = getattr(model, "__casts__", None)
        if callable(declared):
            declared = declared()
        return dict(declared or {})

    def fillable(self, model: Any) -> List[str]:
        return [str(f) for f in (getattr(model, "__fillable__", None) or [])]

    def docblock(self, model: Any) -> Optional[str]:
        """The class's own docstring; inherited docstrings do not count."""
        return vars(type(model)).get("__doc__")

    def own_methods(self, model: Any) -> Iterator[ModelMethod]:
        """
        Public zero-argument methods defined directly on the model's class.

        Static methods, class methods and properties are skipped, as is
        anything inherited.
        """
        for name, member in vars(type(model)).items():
            if name.startswith("_") or not inspect.isfunction(member):
                continue
            try:
                params = list(inspect.signature(member).parameters.values())
            except (TypeError, ValueError):
                logger.debug("No signature for %s.%s; skipped.", type(model).__name__, name)
                continue
            if len(params) != 1:
                continue
            yield ModelMethod(name, getattr(model, name), is_marked_relation(member))


__all__: List[str] = ["ModelMethod", "ModelRuntime"]
