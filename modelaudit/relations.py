"""
modelaudit - Relation Descriptors
=================================
Relations are declared as zero-argument model methods that return one of
the tagged descriptor variants below::

    class Order(Base, RelationsMixin):
        __tablename__ = "orders"

        @relation
        def customer(self):
            return self.belongs_to("Customer", foreign_key="customer_id")

        def lines(self):
            return self.has_many("app.models.lines.OrderLine")

The related model is resolved when the descriptor is built, so an accessor
pointing at a class that does not exist raises ``RelationResolutionError``
when the relation checker invokes it.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Callable, ClassVar, List, Optional, TypeVar, Union

from modelaudit.exceptions import RelationResolutionError

logger: logging.Logger = logging.getLogger("modelaudit.relations")

RELATION_MARKER: str = "__modelaudit_relation__"

F = TypeVar("F", bound=Callable[..., Any])
ModelRef = Union[type, str]


def relation(func: F) -> F:
    """Mark a method as a relation accessor; it must return a ``Relation``."""
    setattr(func, RELATION_MARKER, True)
    return func


def is_marked_relation(func: Any) -> bool:
    return bool(getattr(func, RELATION_MARKER, False))


# ---------------------------------------------------------------------------
# Descriptor variants
# ---------------------------------------------------------------------------


class Relation:
    """Base of all relation descriptors."""

    kind: ClassVar[str] = "relation"

    def __init__(
        self,
        parent: Any,
        related: type,
        foreign_key: Optional[str] = None,
        local_key: Optional[str] = None,
    ) -> None:
        self.parent: Any = parent
        self.related: type = related
        self.foreign_key: Optional[str] = foreign_key
        self.local_key: Optional[str] = local_key

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {type(self.parent).__name__} -> {self.related.__name__}>"


class BelongsTo(Relation):
    kind = "belongs_to"


class HasOne(Relation):
    kind = "has_one"


class HasMany(Relation):
    kind = "has_many"


class BelongsToMany(Relation):
    kind = "belongs_to_many"

    def __init__(
        self,
        parent: Any,
        related: type,
        secondary: Optional[str] = None,
        foreign_key: Optional[str] = None,
        local_key: Optional[str] = None,
    ) -> None:
        super().__init__(parent, related, foreign_key, local_key)
        self.secondary: Optional[str] = secondary


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve_related(owner: Any, target: ModelRef) -> type:
    """
    Resolve a related model reference.

    ``target`` may be a class, a dotted import path, or a bare class name
    registered in the owner's SQLAlchemy declarative registry.
    """
    if isinstance(target, type):
        return target

    name: str = str(target).strip()
    if not name:
        raise RelationResolutionError("Empty related model reference.")

    if "." in name:
        module_name, _, attr = name.rpartition(".")
        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            raise RelationResolutionError(f"Class '{name}' not found: {exc}") from exc
        found: Any = getattr(module, attr, None)
        if not isinstance(found, type):
            raise RelationResolutionError(f"Class '{name}' not found.")
        return found

    registry: Any = getattr(type(owner), "registry", None)
    for mapper in getattr(registry, "mappers", ()):
        if mapper.class_.__name__ == name:
            return mapper.class_

    # Same-module lookup for models outside a declarative registry.
    module = importlib.import_module(type(owner).__module__)
    found = getattr(module, name, None)
    if isinstance(found, type):
        return found

    raise RelationResolutionError(f"Class '{name}' not found.")


class RelationsMixin:
    """Relation helper methods for model classes."""

    def belongs_to(self, related: ModelRef, foreign_key: Optional[str] = None,
                   owner_key: Optional[str] = None) -> BelongsTo:
        return BelongsTo(self, resolve_related(self, related), foreign_key, owner_key)

    def has_one(self, related: ModelRef, foreign_key: Optional[str] = None,
                local_key: Optional[str] = None) -> HasOne:
        return HasOne(self, resolve_related(self, related), foreign_key, local_key)

    def has_many(self, related: ModelRef, foreign_key: Optional[str] = None,
                 local_key: Optional[str] = None) -> HasMany:
        return HasMany(self, resolve_related(self, related), foreign_key, local_key)

    def belongs_to_many(self, related: ModelRef, secondary: Optional[str] = None,
                        foreign_key: Optional[str] = None,
                        local_key: Optional[str] = None) -> BelongsToMany:
        return BelongsToMany(
            self, resolve_related(self, related), secondary, foreign_key, local_key
        )


__all__: List[str] = [
    "Relation",
    "BelongsTo",
    "HasOne",
    "HasMany",
    "BelongsToMany",
    "RelationsMixin",
    "relation",
    "is_marked_relation",
    "resolve_related",
]
