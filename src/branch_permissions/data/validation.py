from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Type, TypeVar

from pydantic import ValidationError

from branch_permissions.data.models import ApiBaseModel
from branch_permissions.utils import get_logger


logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=ApiBaseModel)

_IDENTIFIER_KEYS = ("id", "idSucursal", "branchId")


@dataclass(slots=True)
class ValidationIssue:
    """One item of an API listing that was skipped instead of parsed."""

    resource: str
    index: int | None
    identifier: str | None
    message: str
    fields: tuple[str, ...] = ()


class ResponseValidator:
    """Parse listing payloads item by item.

    A malformed item never fails the whole listing: it is dropped, logged
    and kept in ``issues()`` until the next ``reset()``.
    """

    def __init__(
        self,
        resource: str,
        *,
        issue_callback: Callable[[ValidationIssue], None] | None = None,
    ) -> None:
        self.resource = resource
        self._on_issue = issue_callback
        self._issues: list[ValidationIssue] = []

    def parse(
        self, model: Type[ModelT], payload: Any, *, index: int | None = None
    ) -> ModelT | None:
        if not isinstance(payload, dict):
            self._skip(
                ValidationIssue(
                    resource=self.resource,
                    index=index,
                    identifier=None,
                    message=f"expected an object, got {type(payload).__name__}",
                )
            )
            return None
        try:
            return model.from_api(payload)
        except ValidationError as exc:
            self._skip(
                ValidationIssue(
                    resource=self.resource,
                    index=index,
                    identifier=_identifier(payload),
                    message=f"{exc.error_count()} field error(s)",
                    fields=tuple(
                        ".".join(str(part) for part in error["loc"])
                        for error in exc.errors(include_url=False)
                    ),
                )
            )
            return None

    def parse_many(self, model: Type[ModelT], payloads: Iterable[Any]) -> list[ModelT]:
        parsed = (
            self.parse(model, payload, index=position)
            for position, payload in enumerate(payloads)
        )
        return [item for item in parsed if item is not None]

    def issues(self) -> list[ValidationIssue]:
        return list(self._issues)

    def reset(self) -> None:
        self._issues.clear()

    def _skip(self, issue: ValidationIssue) -> None:
        self._issues.append(issue)
        logger.warning(
            "Skipping invalid API item",
            resource=issue.resource,
            index=issue.index,
            identifier=issue.identifier,
            reason=issue.message,
            fields=", ".join(issue.fields) or None,
        )
        if self._on_issue is None:
            return
        try:
            self._on_issue(issue)
        except Exception:  # pragma: no cover - callbacks should not break parsing
            logger.exception("Validation issue callback raised an exception")


def _identifier(payload: dict[str, Any]) -> str | None:
    for key in _IDENTIFIER_KEYS:
        value = payload.get(key)
        if value is not None:
            return str(value)
    return None


__all__ = ["ResponseValidator", "ValidationIssue"]
