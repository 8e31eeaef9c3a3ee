"""
modelaudit - ORM Model vs Database Schema Auditor
=================================================

Checks that model declarations stay consistent with the live schema:
tables exist, casts match column types, casts and fillable fields name
real columns, relation accessors resolve, and docstring ``@property``
annotations agree with column types, nullability and casts.

Architecture overview::

    ┌──────────────┐     ┌────────────────────────┐
    │  CLI / Entry │────▶│ ModelValidatorService  │
    │   (cli.py)   │     │    (validators.py)     │
    └──────┬───────┘     └───────────┬────────────┘
           │            ┌────────────┼─────────────┐
           ▼            ▼            ▼             ▼
     ┌──────────┐ ┌───────────┐ ┌──────────┐ ┌────────────┐
     │ locator  │ │ColumnCast │ │ Relation │ │ Annotation │
     │  (.py)   │ │  Checker  │ │ Checker  │ │  Checker   │
     └──────────┘ └─────┬─────┘ └────┬─────┘ └─────┬──────┘
                        ▼            ▼             ▼
               type_matcher · introspection · runtime · docblock

Usage::

    from sqlalchemy import create_engine
    from modelaudit import SchemaIntrospector, ValidatorConfig, build_validator

    validator = build_validator(ValidatorConfig(), SchemaIntrospector(create_engine(url)))
    report = validator.validate(Order())
    for issue in report:
        print(issue)
"""

from __future__ import annotations

__version__: str = "1.0.0"

from modelaudit.docblock import DocblockPropertyParser
from modelaudit.exceptions import ModelAuditError, RelationResolutionError
from modelaudit.introspection import SchemaIntrospector, TypeLookup
from modelaudit.models import (
    DEFAULT_TYPE_MAP,
    AnnotationsConfig,
    ChecksConfig,
    IgnoreConfig,
    IssueKind,
    ParsedProperty,
    ValidationIssue,
    ValidationReport,
    ValidatorConfig,
)
from modelaudit.relations import (
    BelongsTo,
    BelongsToMany,
    HasMany,
    HasOne,
    Relation,
    RelationsMixin,
    relation,
)
from modelaudit.runtime import ModelRuntime
from modelaudit.type_matcher import TypeMatcher
from modelaudit.validators import (
    AnnotationChecker,
    ColumnCastChecker,
    ModelValidator,
    ModelValidatorService,
    RelationChecker,
    build_validator,
)

__all__: list[str] = [
    "__version__",
    # Validation
    "ModelValidator",
    "ModelValidatorService",
    "ColumnCastChecker",
    "RelationChecker",
    "AnnotationChecker",
    "build_validator",
    # Support
    "TypeMatcher",
    "DocblockPropertyParser",
    "SchemaIntrospector",
    "TypeLookup",
    "ModelRuntime",
    # Models
    "IssueKind",
    "ValidationIssue",
    "ValidationReport",
    "ParsedProperty",
    "ValidatorConfig",
    "ChecksConfig",
    "IgnoreConfig",
    "AnnotationsConfig",
    "DEFAULT_TYPE_MAP",
    # Relations
    "Relation",
    "BelongsTo",
    "HasOne",
    "HasMany",
    "BelongsToMany",
    "RelationsMixin",
    "relation",
    # Errors
    "ModelAuditError",
    "RelationResolutionError",
]
