from __future__ import annotations

from enum import StrEnum
from typing import Any, Self

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PositiveInt


class ObjectType(StrEnum):
    """Content kinds that carry a branch permission list."""

    BANNER_HOME = "BannerHome"
    LEGAL_TERMS = "TerminosCondiciones"
    TRIVIA = "Trivias"
    COUPON = "Cuponera"


class ApiBaseModel(BaseModel):
    """Base class for API payload helpers."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> Self:
        """Hydrate a model from a raw API response item."""
        return cls.model_validate(payload)

    def to_api(self) -> dict[str, Any]:
        """Serialize to the documented wire format."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Branch(ApiBaseModel):
    id: PositiveInt = Field(
        alias="id",
        validation_alias=AliasChoices("id", "idSucursal", "value"),
    )
    label: str = Field(
        alias="name",
        validation_alias=AliasChoices("name", "sucursalName", "label"),
    )

    def __str__(self) -> str:
        return f"{self.id}: {self.label}"


class PermissionRecord(ApiBaseModel):
    branch_id: int = Field(
        alias="branchId",
        validation_alias=AliasChoices("branchId", "idSucursal"),
    )
    object_type: str | None = Field(
        default=None,
        alias="objectType",
        validation_alias=AliasChoices("objectType", "objetoName"),
    )
    object_id: int | None = Field(
        default=None,
        alias="objectId",
        validation_alias=AliasChoices("objectId", "idObjeto"),
    )

    @property
    def key(self) -> tuple[str | None, int | None, int]:
        return (self.object_type, self.object_id, self.branch_id)


__all__ = ["ApiBaseModel", "Branch", "ObjectType", "PermissionRecord"]
