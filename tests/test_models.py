"""
tests/test_models.py
Unit tests for modelaudit.models.

Tests cover:
- ValidationIssue formatting
- ValidationReport immutability, ordering and summaries
- ValidatorConfig defaults, strictness and type_map normalisation
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from modelaudit.models import (
    DEFAULT_TYPE_MAP,
    ChecksConfig,
    IssueKind,
    ValidationIssue,
    ValidationReport,
    ValidatorConfig,
)


def _issue(kind: IssueKind, message: str = "msg") -> ValidationIssue:
    return ValidationIssue("app.models.Order", kind, message)


# ===========================================================================
# Issues and reports
# ===========================================================================


class TestValidationIssue:
    def test_str(self) -> None:
        assert str(_issue(IssueKind.CAST, "Column 'qty' mismatch.")) == "[cast] Column 'qty' mismatch."

    def test_is_frozen(self) -> None:
        issue = _issue(IssueKind.TABLE)
        with pytest.raises(AttributeError):
            issue.message = "changed"  # type: ignore[misc]


class TestValidationReport:
    def test_empty_report_is_clean(self) -> None:
        report = ValidationReport()
        assert report.is_clean()
        assert len(report) == 0
        assert report.summary() == "no issues"

    def test_with_issue_returns_new_report(self) -> None:
        empty = ValidationReport()
        one = empty.with_issue(_issue(IssueKind.TABLE))
        assert empty.is_clean()
        assert len(one) == 1
        assert not one.is_clean()

    def test_merge_keeps_order(self) -> None:
        first = ValidationReport().with_issue(_issue(IssueKind.CAST, "a"))
        second = (
            ValidationReport()
            .with_issue(_issue(IssueKind.RELATION, "b"))
            .with_issue(_issue(IssueKind.ANNOTATION, "c"))
        )
        merged = first.merge(second)
        assert [i.message for i in merged] == ["a", "b", "c"]
        assert len(first) == 1
        assert len(second) == 2

    def test_of_kind(self) -> None:
        report = (
            ValidationReport()
            .with_issue(_issue(IssueKind.CAST, "a"))
            .with_issue(_issue(IssueKind.FILLABLE, "b"))
            .with_issue(_issue(IssueKind.CAST, "c"))
        )
        assert [i.message for i in report.of_kind(IssueKind.CAST)] == ["a", "c"]
        assert report.of_kind(IssueKind.TABLE) == []

    def test_summary_counts_by_kind(self) -> None:
        report = (
            ValidationReport()
            .with_issue(_issue(IssueKind.CAST))
            .with_issue(_issue(IssueKind.CAST))
            .with_issue(_issue(IssueKind.TABLE))
        )
        assert report.summary() == "3 issue(s): 2 cast, 1 table"


# ===========================================================================
# Configuration
# ===========================================================================


class TestValidatorConfig:
    def test_defaults(self) -> None:
        config = ValidatorConfig()
        assert config.models_paths == ["app/models"]
        assert config.models_modules == ["app.models"]
        assert config.connection is None
        assert config.fail_on_warnings is True
        assert config.checks == ChecksConfig()
        assert config.annotations.columns_only is True
        assert config.type_map == DEFAULT_TYPE_MAP

    def test_default_type_map_is_a_copy(self) -> None:
        config = ValidatorConfig()
        assert config.type_map is not DEFAULT_TYPE_MAP
        assert config.type_map["*"] is not DEFAULT_TYPE_MAP["*"]

    def test_is_frozen(self) -> None:
        config = ValidatorConfig()
        with pytest.raises(ValidationError):
            config.fail_on_warnings = False  # type: ignore[misc]

    def test_unknown_keys_are_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ValidatorConfig.model_validate({"model_path": ["x"]})

    def test_nested_unknown_check_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ValidatorConfig.model_validate({"checks": {"indexes": True}})

    def test_type_map_is_lowercased(self) -> None:
        config = ValidatorConfig(type_map={"*": {"Money": ["BIGINT"]}})
        assert config.type_map["*"] == {"money": ["bigint"]}

    def test_wildcard_is_injected(self) -> None:
        config = ValidatorConfig(type_map={"mysql": {"boolean": ["tinyint"]}})
        assert config.type_map["mysql"] == {"boolean": ["tinyint"]}
        assert config.type_map["*"] == DEFAULT_TYPE_MAP["*"]


class TestChecksConfig:
    def test_any_column_check(self) -> None:
        assert ChecksConfig().any_column_check
        assert ChecksConfig(columns=False, casts=False).any_column_check
        assert not ChecksConfig(columns=False, casts=False, fillable=False).any_column_check
