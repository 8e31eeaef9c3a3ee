"""
modelaudit - Model vs Schema Validators
=======================================
The checkers that compare a model's declarations with the live schema, and
the service that composes them.

Every checker's ``check(model)`` returns a ``ValidationReport`` and never
raises: introspection failures come back from ``SchemaIntrospector`` as
values and are turned into issues on the spot, so one bad column never
stops the others from being checked.

Usage:
    from modelaudit.validators import build_validator
    validator = build_validator(config, SchemaIntrospector(engine))
    report = validator.validate(Order())
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, Set, Tuple, Union

from modelaudit.docblock import DocblockPropertyParser
from modelaudit.introspection import SchemaIntrospector, TypeLookup
from modelaudit.models import (
    ChecksConfig,
    IgnoreConfig,
    IssueKind,
    ParsedProperty,
    ValidationIssue,
    ValidationReport,
    ValidatorConfig,
)
from modelaudit.relations import Relation
from modelaudit.runtime import ModelRuntime
from modelaudit.type_matcher import (
    TypeMatcher,
    cast_label,
    is_enum_class,
    resolve_class,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelaudit.validators")

# Doc type names that mean "a datetime object"
_DATETIME_TYPE_NAMES: Set[str] = {
    "datetime",
    "datetime.datetime",
    "DateTime",
    "DateTimeInterface",
    "Carbon",
    "pendulum.DateTime",
    "arrow.Arrow",
}

_SCALAR_CAST_TOKENS: Dict[str, str] = {
    "int": "integer",
    "integer": "integer",
    "string": "string",
    "str": "string",
    "bool": "boolean",
    "boolean": "boolean",
    "float": "float",
    "double": "float",
    "decimal": "decimal",
    "array": "array",
    "json": "json",
}

# Loose normalisation, checked in order: first substring hit wins.
_LOOSE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("integer", ("int",)),
    ("boolean", ("bool",)),
    ("string", ("string",)),
    ("float", ("float", "double")),
    ("decimal", ("decimal",)),
    ("datetime", ("datetime",)),
    ("date", ("date",)),
    ("json", ("json",)),
    ("array", ("array",)),
)


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class ModelValidator(Protocol):
    """Validate a single model instance and return a report."""

    def validate(self, model: Any) -> ValidationReport:
        ...


# ---------------------------------------------------------------------------
# Column / cast / fillable checker
# ---------------------------------------------------------------------------


class ColumnCastChecker:
    """
    Table existence, column introspection, cast compatibility, orphaned
    casts and orphaned fillable fields.
    """

    def __init__(
        self,
        matcher: TypeMatcher,
        schema: SchemaIntrospector,
        runtime: Optional[ModelRuntime] = None,
        ignore: Optional[IgnoreConfig] = None,
        checks: Optional[ChecksConfig] = None,
    ) -> None:
        self.matcher: TypeMatcher = matcher
        self.schema: SchemaIntrospector = schema
        self.runtime: ModelRuntime = runtime or ModelRuntime()
        self.ignore: IgnoreConfig = ignore or IgnoreConfig()
        self.checks: ChecksConfig = checks or ChecksConfig()

    def check(self, model: Any) -> ValidationReport:
        report: ValidationReport = ValidationReport()
        owner: str = self.runtime.class_name(model)
        table: str = self.runtime.table_name(model)

        if not self.schema.has_table(table):
            return report.with_issue(
                ValidationIssue(owner, IssueKind.TABLE, f"Table '{table}' does not exist.")
            )

        columns: List[str] = self.schema.column_listing(table)
        casts: Dict[str, Any] = self.runtime.casts(model)
        fillable: List[str] = self.runtime.fillable(model)

        for column in columns:
            if column in self.ignore.columns:
                continue

            lookup: TypeLookup = self.schema.column_type(table, column)
            if not lookup.ok:
                report = report.with_issue(ValidationIssue(
                    owner,
                    IssueKind.COLUMN,
                    f"Could not get type for column '{column}': {lookup.error}",
                ))
                continue

            if not self.checks.casts:
                continue
            cast: Any = casts.get(column)
            if cast and column not in self.ignore.casts:
                if not self.matcher.is_compatible(lookup.type_name, cast):
                    report = report.with_issue(ValidationIssue(
                        owner,
                        IssueKind.CAST,
                        f"Column '{column}' mismatch. DB: {lookup.type_name}, "
                        f"Cast: {cast_label(cast)}",
                    ))

        if self.checks.casts:
            for field_name in casts:
                if field_name in self.ignore.casts:
                    continue
                if field_name not in columns:
                    report = report.with_issue(ValidationIssue(
                        owner,
                        IssueKind.CAST,
                        f"Model cast '{field_name}' not found in table.",
                    ))

        if self.checks.fillable:
            for field_name in fillable:
                if field_name in self.ignore.fillable:
                    continue
                if field_name not in columns:
                    report = report.with_issue(ValidationIssue(
                        owner,
                        IssueKind.FILLABLE,
                        f"Fillable '{field_name}' not found in table.",
                    ))

        logger.debug("ColumnCastChecker(%s): %s", owner, report.summary())
        return report


# ---------------------------------------------------------------------------
# Relation checker
# ---------------------------------------------------------------------------


class RelationChecker:
    """
    Invokes the model's own zero-argument methods and reports those that
    fail. Results that are not ``Relation`` descriptors are ignored unless
    the method carries the ``@relation`` marker.
    """

    def __init__(
        self,
        runtime: Optional[ModelRuntime] = None,
        ignore: Optional[Sequence[str]] = None,
    ) -> None:
        self.runtime: ModelRuntime = runtime or ModelRuntime()
        self.ignore: List[str] = list(ignore or [])

    def check(self, model: Any) -> ValidationReport:
        report: ValidationReport = ValidationReport()
        owner: str = self.runtime.class_name(model)

        for method in self.runtime.own_methods(model):
            if method.name in self.ignore:
                continue
            try:
                result: Any = method.invoke()
            except Exception as exc:  # arbitrary model code
                report = report.with_issue(ValidationIssue(
                    owner,
                    IssueKind.RELATION,
                    f"Could not resolve relation '{method.name}': {exc}",
                ))
                continue

            if isinstance(result, Relation):
                logger.debug("%s.%s -> %r", owner, method.name, result)
            elif method.marked_relation:
                report = report.with_issue(ValidationIssue(
                    owner,
                    IssueKind.RELATION,
                    f"Relation '{method.name}' did not return a relation "
                    f"(got {type(result).__name__}).",
                ))

        return report


# ---------------------------------------------------------------------------
# Annotation checker
# ---------------------------------------------------------------------------


class AnnotationChecker:
    """
    Cross-checks docstring ``@property`` tags against column existence,
    nullability, physical type and declared casts.

    Args:
        matcher:           Shared ``TypeMatcher``.
        schema:            Schema introspector.
        runtime:           Model runtime adapter.
        parser:            Docstring parser.
        columns_only:      Skip properties that are not real columns.
        check_casts:       Compare annotation types with model casts.
        ignore:            Property names to skip.
        aliases:           Short type name -> dotted import path.
        check_nullability: Compare annotation nullability with the column.
    """

    def __init__(
        self,
        matcher: TypeMatcher,
        schema: SchemaIntrospector,
        runtime: Optional[ModelRuntime] = None,
        parser: Optional[DocblockPropertyParser] = None,
        columns_only: bool = True,
        check_casts: bool = True,
        ignore: Optional[Sequence[str]] = None,
        aliases: Optional[Dict[str, str]] = None,
        check_nullability: bool = True,
    ) -> None:
        self.matcher: TypeMatcher = matcher
        self.schema: SchemaIntrospector = schema
        self.runtime: ModelRuntime = runtime or ModelRuntime()
        self.parser: DocblockPropertyParser = parser or DocblockPropertyParser()
        self.columns_only: bool = columns_only
        self.check_casts: bool = check_casts
        self.ignore: List[str] = list(ignore or [])
        self.aliases: Dict[str, str] = dict(aliases or {})
        self.check_nullability: bool = check_nullability

    def check(self, model: Any) -> ValidationReport:
        report: ValidationReport = ValidationReport()

        props: Dict[str, ParsedProperty] = self.parser.parse(self.runtime.docblock(model))
        if not props:
            return report

        table: str = self.runtime.table_name(model)
        if not self.schema.has_table(table):
            return report

        owner: str = self.runtime.class_name(model)
        columns: List[str] = self.schema.column_listing(table)
        casts: Dict[str, Any] = self.runtime.casts(model)

        for name, info in props.items():
            if name in self.ignore:
                continue
            if self.columns_only and name not in columns:
                continue

            lookup: TypeLookup = self.schema.column_type(table, name)
            if not lookup.ok:
                report = report.with_issue(ValidationIssue(
                    owner,
                    IssueKind.ANNOTATION,
                    f"@property ${name} type '{info.raw}' cannot be checked: unknown DB type.",
                ))
                continue
            db_type: str = lookup.type_name or ""

            if self.check_nullability:
                report = self._check_nullability(report, owner, table, info)

            if not any(
                self.matcher.is_compatible(db_type, self._to_cast_token(self._resolve_alias(t)))
                for t in info.types
            ):
                report = report.with_issue(ValidationIssue(
                    owner,
                    IssueKind.ANNOTATION,
                    f"@property ${name} '{info.raw}' not compatible with DB type '{db_type}'",
                ))

            if self.check_casts and casts.get(name) is not None:
                cast: Any = casts[name]
                if not any(self._consistent_with_cast(t, cast) for t in info.types):
                    report = report.with_issue(ValidationIssue(
                        owner,
                        IssueKind.ANNOTATION,
                        f"@property ${name} '{info.raw}' seems inconsistent with "
                        f"cast '{cast_label(cast)}'",
                    ))

        logger.debug("AnnotationChecker(%s): %s", owner, report.summary())
        return report

    def _check_nullability(
        self,
        report: ValidationReport,
        owner: str,
        table: str,
        info: ParsedProperty,
    ) -> ValidationReport:
        nullable: Optional[bool] = self.schema.column_nullable(table, info.name)
        if nullable is None:
            return report

        if info.nullable and nullable is False:
            report = report.with_issue(ValidationIssue(
                owner,
                IssueKind.ANNOTATION,
                f"@property ${info.name} allows null but column "
                f"'{table}.{info.name}' is NOT NULL",
            ))
        if not info.nullable and nullable is True:
            report = report.with_issue(ValidationIssue(
                owner,
                IssueKind.ANNOTATION,
                f"@property ${info.name} does not allow null but column "
                f"'{table}.{info.name}' is NULLABLE",
            ))
        return report

    def _resolve_alias(self, doc_type: str) -> str:
        name: str = doc_type.lstrip("\\")
        if name in self.aliases:
            return str(self.aliases[name]).lstrip("\\")
        return name

    def _to_cast_token(self, doc_type: str) -> Union[str, type]:
        """Map an alias-resolved doc type to something the matcher understands."""
        name: str = doc_type.lstrip("\\")
        lower: str = name.lower()

        if lower in _SCALAR_CAST_TOKENS:
            return _SCALAR_CAST_TOKENS[lower]
        if name in _DATETIME_TYPE_NAMES:
            return "datetime"
        if lower in ("date", "datetime.date"):
            return "date"

        target: Optional[type] = resolve_class(name)
        if is_enum_class(target):
            return target
        return lower

    def _consistent_with_cast(self, doc_type: str, cast: Any) -> bool:
        resolved: str = self._resolve_alias(doc_type)

        cast_enum: Optional[type] = resolve_class(cast)
        if is_enum_class(cast_enum):
            doc_enum: Optional[type] = resolve_class(resolved)
            if doc_enum is cast_enum or resolved.lower() == cast_label(cast).lower():
                return True

        token: Union[str, type] = self._to_cast_token(resolved)
        if not isinstance(token, str):
            return False
        return _loose_cast_token(token) == _loose_cast_token(cast_label(cast))


def _loose_cast_token(token: str) -> str:
    lowered: str = token.lstrip("\\").lower()
    for canonical, needles in _LOOSE_KEYWORDS:
        if any(needle in lowered for needle in needles):
            return canonical
    return lowered


# ---------------------------------------------------------------------------
# Validator service
# ---------------------------------------------------------------------------


class ModelValidatorService:
    """
    Runs the enabled checkers in a fixed order: columns/casts/fillable,
    then relations, then annotations.

    A checker that raises anyway is reported as one ``internal`` issue so
    the remaining checkers still run.
    """

    def __init__(
        self,
        columns: ColumnCastChecker,
        relations: RelationChecker,
        annotations: Optional[AnnotationChecker] = None,
        checks: Optional[ChecksConfig] = None,
    ) -> None:
        self.columns: ColumnCastChecker = columns
        self.relations: RelationChecker = relations
        self.annotations: Optional[AnnotationChecker] = annotations
        self.checks: ChecksConfig = checks or ChecksConfig()

    def validate(self, model: Any) -> ValidationReport:
        report: ValidationReport = ValidationReport()

        if self.checks.any_column_check:
            report = report.merge(self._run(self.columns, model))
        if self.checks.relations:
            report = report.merge(self._run(self.relations, model))
        if self.checks.annotations and self.annotations is not None:
            report = report.merge(self._run(self.annotations, model))

        logger.info("Validated %s: %s", type(model).__name__, report.summary())
        return report

    @staticmethod
    def _run(checker: Any, model: Any) -> ValidationReport:
        try:
            return checker.check(model)
        except Exception as exc:
            logger.exception("%s failed on %s", type(checker).__name__, type(model).__name__)
            cls: type = type(model)
            return ValidationReport().with_issue(ValidationIssue(
                f"{cls.__module__}.{cls.__qualname__}",
                IssueKind.INTERNAL,
                f"{type(checker).__name__} failed: {exc}",
            ))


def build_validator(
    config: ValidatorConfig,
    schema: SchemaIntrospector,
    runtime: Optional[ModelRuntime] = None,
) -> ModelValidatorService:
    """Compose a ``ModelValidatorService`` from a ``ValidatorConfig``."""
    runtime = runtime or ModelRuntime()
    matcher: TypeMatcher = TypeMatcher(config.type_map, schema.driver)
    logger.debug("Using %r", matcher)

    columns = ColumnCastChecker(matcher, schema, runtime, config.ignore, config.checks)
    relations = RelationChecker(runtime, config.ignore.relations)
    annotations = AnnotationChecker(
        matcher,
        schema,
        runtime,
        DocblockPropertyParser(),
        columns_only=config.annotations.columns_only,
        check_casts=config.annotations.check_casts,
        ignore=config.annotations.ignore,
        aliases=config.annotations.aliases,
        check_nullability=config.annotations.check_nullability,
    )
    return ModelValidatorService(columns, relations, annotations, config.checks)


__all__: List[str] = [
    "ModelValidator",
    "ColumnCastChecker",
    "RelationChecker",
    "AnnotationChecker",
    "ModelValidatorService",
    "build_validator",
]
