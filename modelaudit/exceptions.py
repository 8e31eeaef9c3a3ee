"""Exception types raised by modelaudit."""

from __future__ import annotations

from typing import List


class ModelAuditError(Exception):
    """Base class for modelaudit errors."""


class RelationResolutionError(ModelAuditError, LookupError):
    """A relation accessor names a model that cannot be found."""


__all__: List[str] = ["ModelAuditError", "RelationResolutionError"]
