# This project was developed with assistance from AI tools.
"""Generic resource request/response schemas and the list query envelope."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator
from scopegate_db.enums import SortDirection
from scopegate_db.paths import ScopePath

from ..core.config import settings
from . import Pagination


class ResourceCreate(BaseModel):
    """Create a resource under ``scope_id`` (defaults to the caller's own scope)."""

    scope_id: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class ResourceUpdate(BaseModel):
    """Partial payload update. Keys set to null are removed."""

    payload: dict[str, Any] = Field(default_factory=dict)


class ResourceResponse(BaseModel):
    id: str
    type: str
    owner_scope_path: list[str]
    created_by: str
    payload: dict[str, Any]
    version: int
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None
    deleted: bool = False

    @classmethod
    def from_model(cls, resource) -> "ResourceResponse":
        return cls(
            id=resource.id,
            type=resource.resource_type,
            owner_scope_path=list(ScopePath.decode(resource.owner_scope_path).segments),
            created_by=resource.created_by,
            payload=dict(resource.payload or {}),
            version=resource.version,
            created_at=resource.created_at,
            updated_at=resource.updated_at,
            deleted_at=resource.deleted_at,
            deleted=resource.deleted_at is not None,
        )


class RangeFilter(BaseModel):
    """Inclusive/exclusive bounds; at least one must be given."""

    gt: datetime | int | float | str | None = None
    gte: datetime | int | float | str | None = None
    lt: datetime | int | float | str | None = None
    lte: datetime | int | float | str | None = None

    @model_validator(mode="after")
    def _at_least_one_bound(self):
        if all(v is None for v in (self.gt, self.gte, self.lt, self.lte)):
            raise ValueError("range filter needs at least one of gt, gte, lt, lte")
        return self


FilterValue = RangeFilter | bool | int | float | str


class SortSpec(BaseModel):
    field: str
    direction: SortDirection = SortDirection.ASC


class QueryRequest(BaseModel):
    """Generic list request: filters ANDed together, then sorted and paged."""

    scope_id: str | None = Field(
        default=None,
        description="Narrow the listing to this scope. Must lie within the caller's scope.",
    )
    filters: dict[str, FilterValue] = Field(default_factory=dict)
    search: str | None = Field(default=None, min_length=1, max_length=200)
    sort: list[SortSpec] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=settings.QUERY_DEFAULT_LIMIT, ge=1, le=settings.QUERY_MAX_LIMIT)
    include_deleted: bool = False


class QueryResult(BaseModel):
    """Paginated list envelope."""

    pagination: Pagination
    data: list[ResourceResponse]
