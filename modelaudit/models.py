"""
modelaudit - Core Data Models
=============================
Issue/report value objects and the Pydantic V2 configuration models that
drive a validation run.

Reports are immutable: every "append" or "merge" returns a new report, so a
report can be shared freely between checkers, the validator service and the
CLI without copying.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelaudit.models")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class IssueKind(str, Enum):
    """Category of a validation finding."""

    TABLE = "table"
    COLUMN = "column"
    CAST = "cast"
    FILLABLE = "fillable"
    RELATION = "relation"
    ANNOTATION = "annotation"
    INTERNAL = "internal"


# ---------------------------------------------------------------------------
# Issue / report value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValidationIssue:
    """A single finding produced by a checker."""

    model_class: str
    kind: IssueKind
    message: str

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    """
    Ordered, immutable sequence of ``ValidationIssue`` for one model.

    ``with_issue`` and ``merge`` never touch ``self``; they build a new
    report whose issues keep the producers' order.
    """

    issues: Tuple[ValidationIssue, ...] = ()

    def is_clean(self) -> bool:
        return len(self.issues) == 0

    def with_issue(self, issue: ValidationIssue) -> "ValidationReport":
        return ValidationReport(self.issues + (issue,))

    def merge(self, other: "ValidationReport") -> "ValidationReport":
        return ValidationReport(self.issues + other.issues)

    def of_kind(self, kind: IssueKind) -> List[ValidationIssue]:
        return [i for i in self.issues if i.kind == kind]

    def summary(self) -> str:
        if self.is_clean():
            return "no issues"
        counts: Dict[str, int] = {}
        for issue in self.issues:
            counts[issue.kind.value] = counts.get(issue.kind.value, 0) + 1
        parts: List[str] = [f"{n} {kind}" for kind, n in counts.items()]
        return f"{len(self.issues)} issue(s): " + ", ".join(parts)

    def __len__(self) -> int:
        return len(self.issues)

    def __iter__(self) -> Iterator[ValidationIssue]:
        return iter(self.issues)


@dataclass(frozen=True)
class ParsedProperty:
    """One ``@property`` declaration read from a model docstring."""

    name: str
    types: Tuple[str, ...] = field(default_factory=tuple)
    nullable: bool = False
    raw: str = ""


# ---------------------------------------------------------------------------
# Type compatibility table
# ---------------------------------------------------------------------------

# driver key -> canonical cast keyword -> physical column types
TypeMap = Dict[str, Dict[str, List[str]]]

WILDCARD_DRIVER: str = "*"

DEFAULT_TYPE_MAP: TypeMap = {
    "*": {
        "integer": ["int", "integer", "bigint", "smallint", "tinyint"],
        "string": ["string", "varchar", "char", "text", "enum", "set"],
        "boolean": ["bool", "boolean", "tinyint"],
        "float": ["float", "double", "decimal"],
        "decimal": ["decimal", "numeric"],
        "datetime": ["datetime", "timestamp"],
        "date": ["date"],
        "json": ["json", "jsonb", "array"],
        "array": ["json", "jsonb", "array"],
    },
    "sqlite": {
        "boolean": ["boolean", "integer"],
        "float": ["real", "float", "double", "numeric"],
        "datetime": ["datetime", "timestamp", "text"],
        "json": ["json", "text"],
    },
    "mysql": {
        "boolean": ["tinyint", "bool", "boolean"],
        "integer": ["mediumint"],
        "string": ["mediumtext", "longtext", "tinytext"],
    },
    "mariadb": {
        "boolean": ["tinyint", "bool", "boolean"],
        "json": ["json", "longtext"],
    },
    "pgsql": {
        "float": ["double", "real", "float", "numeric"],
        "string": ["uuid", "citext"],
        "datetime": ["timestamp", "timestamptz"],
    },
}


# ---------------------------------------------------------------------------
# Configuration models
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    frozen=True,
    extra="forbid",
)


class ChecksConfig(BaseModel):
    """Which checks run."""

    model_config = _SHARED_CONFIG

    columns: bool = Field(default=True, description="Check columns can be introspected.")
    casts: bool = Field(default=True, description="Check casts against column types.")
    fillable: bool = Field(default=True, description="Check fillable fields exist.")
    relations: bool = Field(default=True, description="Invoke relation accessors.")
    annotations: bool = Field(default=True, description="Check docstring @property tags.")

    @property
    def any_column_check(self) -> bool:
        return self.columns or self.casts or self.fillable


class IgnoreConfig(BaseModel):
    """Names exempted from each check."""

    model_config = _SHARED_CONFIG

    columns: List[str] = Field(default_factory=list)
    casts: List[str] = Field(default_factory=list)
    fillable: List[str] = Field(default_factory=list)
    relations: List[str] = Field(default_factory=list)


class AnnotationsConfig(BaseModel):
    """Options for the docstring annotation checker."""

    model_config = _SHARED_CONFIG

    columns_only: bool = Field(
        default=True,
        description="Only check @property names that exist as columns.",
    )
    check_casts: bool = Field(
        default=True,
        description="Also compare annotation types with model casts.",
    )
    check_nullability: bool = Field(
        default=True,
        description="Compare annotation nullability with the column.",
    )
    ignore: List[str] = Field(default_factory=list, description="Property names to skip.")
    aliases: Dict[str, str] = Field(
        default_factory=dict,
        description="Short type names used in @property tags -> dotted import paths.",
    )


class ValidatorConfig(BaseModel):
    """
    Complete configuration of a validation run.

    Built once (from a config file, CLI flags or code) before the validator
    is composed, and never modified afterwards.
    """

    model_config = _SHARED_CONFIG

    models_paths: List[str] = Field(
        default_factory=lambda: ["app/models"],
        description="Directories searched for model modules.",
    )
    models_modules: List[str] = Field(
        default_factory=lambda: ["app.models"],
        description="Module prefix for each entry of models_paths.",
    )
    connection: Optional[str] = Field(
        default=None, description="SQLAlchemy database URL."
    )
    checks: ChecksConfig = Field(default_factory=ChecksConfig)
    ignore: IgnoreConfig = Field(default_factory=IgnoreConfig)
    annotations: AnnotationsConfig = Field(default_factory=AnnotationsConfig)
    fail_on_warnings: bool = Field(
        default=True, description="Exit non-zero when any issue is found."
    )
    type_map: TypeMap = Field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_TYPE_MAP.items()},
        description="driver -> cast keyword -> physical column types.",
    )

    @field_validator("type_map")
    @classmethod
    def _ensure_wildcard(cls, v: TypeMap) -> TypeMap:
        normalised: TypeMap = {
            driver: {
                keyword.lower(): [t.lower() for t in types]
                for keyword, types in table.items()
            }
            for driver, table in v.items()
        }
        if WILDCARD_DRIVER not in normalised:
            logger.debug("type_map has no '*' entry; using the default fallback table.")
            normalised[WILDCARD_DRIVER] = dict(DEFAULT_TYPE_MAP[WILDCARD_DRIVER])
        return normalised


__all__: List[str] = [
    "IssueKind",
    "ValidationIssue",
    "ValidationReport",
    "ParsedProperty",
    "TypeMap",
    "WILDCARD_DRIVER",
    "DEFAULT_TYPE_MAP",
    "ChecksConfig",
    "IgnoreConfig",
    "AnnotationsConfig",
    "ValidatorConfig",
]
