"""Domain models and payload validation."""

from .models import ApiBaseModel, Branch, ObjectType, PermissionRecord
from .validation import ResponseValidator, ValidationIssue

__all__ = [
    "ApiBaseModel",
    "Branch",
    "ObjectType",
    "PermissionRecord",
    "ResponseValidator",
    "ValidationIssue",
]
