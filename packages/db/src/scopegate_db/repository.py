# This project was developed with assistance from AI tools.
"""SQL implementation of the resource and scope repositories.

The repository knows nothing about principals or policy. It receives an
already-resolved scope path plus normalized predicates and turns them into
SQL. Every read is bounded to the scope path prefix; every mutation loads
the row ``FOR UPDATE`` and relies on the ``version`` column so that two
concurrent writers of one resource serialize.

Transactions are owned by the caller: methods flush, they never commit.
"""

import enum
import operator
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .enums import FieldKind, ScopeLevel, SortDirection
from .models import Resource, ScopeNode
from .paths import ScopePath

CORE_FIELDS = frozenset({"id", "created_by", "created_at", "updated_at", "deleted_at"})
OWNER_SCOPE_FIELD = "owner_scope"


class RecordNotFound(LookupError):
    """No row with this (type, id)."""


class RecordDeleted(RuntimeError):
    """Mutation attempted on a soft-deleted row."""


class Operator(str, enum.Enum):
    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    WITHIN_SCOPE = "within_scope"


_COMPARATORS = {
    Operator.EQ: operator.eq,
    Operator.GT: operator.gt,
    Operator.GTE: operator.ge,
    Operator.LT: operator.lt,
    Operator.LTE: operator.le,
}


@dataclass(frozen=True)
class Predicate:
    """One ANDed filter term. ``kind`` is None for core columns."""

    field: str
    op: Operator
    value: Any
    kind: FieldKind | None = None


@dataclass(frozen=True)
class SortKey:
    field: str
    direction: SortDirection = SortDirection.ASC
    kind: FieldKind | None = None


@dataclass(frozen=True)
class SearchTerm:
    text: str
    fields: tuple[str, ...]


def _payload_expr(field: str, kind: FieldKind | None):
    element = Resource.payload[field]
    if kind == FieldKind.INTEGER:
        return element.as_integer()
    if kind == FieldKind.FLOAT:
        return element.as_float()
    if kind == FieldKind.BOOLEAN:
        return element.as_boolean()
    return element.as_string()


def _field_expr(field: str, kind: FieldKind | None):
    if field in CORE_FIELDS:
        return getattr(Resource, field)
    return _payload_expr(field, kind)


def _predicate_clause(predicate: Predicate):
    if predicate.op == Operator.WITHIN_SCOPE:
        segment = f"/{predicate.value}/"
        return Resource.owner_scope_path.contains(segment, autoescape=True)
    compare = _COMPARATORS[predicate.op]
    return compare(_field_expr(predicate.field, predicate.kind), predicate.value)


def _search_clause(search: SearchTerm):
    pattern = search.text
    clauses = [
        _payload_expr(field, FieldKind.STRING).icontains(pattern, autoescape=True)
        for field in search.fields
    ]
    if len(clauses) == 1:
        return clauses[0]
    return or_(*clauses)


def _order_expr(key: SortKey):
    expr = _field_expr(key.field, key.kind)
    ordered = expr.desc() if key.direction == SortDirection.DESC else expr.asc()
    return ordered.nulls_last()


class ResourceRepository:
    """Generic CRUD storage keyed by resource type + id."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(
        self,
        resource_type: str,
        resource_id: str,
        *,
        for_update: bool = False,
    ) -> Resource | None:
        stmt = select(Resource).where(
            Resource.id == resource_id,
            Resource.resource_type == resource_type,
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(
        self,
        resource_type: str,
        payload: dict,
        scope: ScopePath,
        *,
        created_by: str,
        now: datetime,
        resource_id: str | None = None,
    ) -> Resource:
        resource = Resource(
            resource_type=resource_type,
            owner_scope_path=scope.encode(),
            created_by=created_by,
            payload=dict(payload),
            created_at=now,
            updated_at=now,
        )
        if resource_id is not None:
            resource.id = resource_id
        self.session.add(resource)
        await self.session.flush()
        return resource

    async def update(
        self,
        resource_type: str,
        resource_id: str,
        patch: dict,
        *,
        now: datetime,
    ) -> Resource:
        """Merge ``patch`` into the payload. Keys mapped to None are removed."""
        resource = await self._load_live(resource_type, resource_id)
        merged = dict(resource.payload or {})
        for key, value in patch.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        # Reassign so the JSON column is flagged dirty
        resource.payload = merged
        resource.updated_at = now
        await self.session.flush()
        return resource

    async def soft_delete(
        self,
        resource_type: str,
        resource_id: str,
        *,
        now: datetime,
    ) -> Resource:
        resource = await self._load_live(resource_type, resource_id)
        resource.deleted_at = now
        resource.updated_at = now
        await self.session.flush()
        return resource

    async def query(
        self,
        resource_type: str,
        scope: ScopePath,
        *,
        predicates: tuple[Predicate, ...] | list[Predicate] = (),
        search: SearchTerm | None = None,
        sort: tuple[SortKey, ...] | list[SortKey] = (),
        page: int = 1,
        page_size: int = 20,
        include_deleted: bool = False,
        created_by: str | None = None,
    ) -> tuple[list[Resource], int]:
        """Return one page of matching rows plus the total match count.

        Ordering always ends with ``id`` ascending so pages are stable across
        calls even when the requested sort keys tie.
        """
        conditions = [Resource.resource_type == resource_type]
        if not scope.is_root:
            conditions.append(Resource.owner_scope_path.startswith(scope.encode(), autoescape=True))
        if not include_deleted:
            conditions.append(Resource.deleted_at.is_(None))
        if created_by is not None:
            conditions.append(Resource.created_by == created_by)
        conditions.extend(_predicate_clause(p) for p in predicates)
        if search is not None and search.fields:
            conditions.append(_search_clause(search))

        count_stmt = select(func.count(Resource.id)).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        offset = (page - 1) * page_size
        if offset >= total:
            return [], total

        order = [_order_expr(key) for key in sort]
        order.append(Resource.id.asc())
        stmt = select(Resource).where(*conditions).order_by(*order).offset(offset).limit(page_size)
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def _load_live(self, resource_type: str, resource_id: str) -> Resource:
        resource = await self.get(resource_type, resource_id, for_update=True)
        if resource is None:
            raise RecordNotFound(f"{resource_type} {resource_id} not found")
        if resource.deleted_at is not None:
            raise RecordDeleted(f"{resource_type} {resource_id} is deleted")
        return resource


class ScopeRepository:
    """Registry of scope nodes opened by container resources."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, scope_id: str, *, include_deleted: bool = True) -> ScopeNode | None:
        stmt = select(ScopeNode).where(ScopeNode.id == scope_id)
        if not include_deleted:
            stmt = stmt.where(ScopeNode.deleted_at.is_(None))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(
        self,
        scope_id: str,
        level: ScopeLevel,
        parent: ScopePath,
        *,
        now: datetime,
    ) -> ScopeNode:
        node = ScopeNode(
            id=scope_id,
            level=level,
            parent_id=parent.leaf,
            path=parent.child(scope_id).encode(),
            created_at=now,
        )
        self.session.add(node)
        await self.session.flush()
        return node

    async def any_deleted(self, path: ScopePath) -> bool:
        """True when any node on ``path`` has been soft-deleted."""
        if path.is_root:
            return False
        stmt = select(func.count(ScopeNode.id)).where(
            ScopeNode.id.in_(path.segments), ScopeNode.deleted_at.is_not(None)
        )
        return (await self.session.execute(stmt)).scalar_one() > 0

    async def mark_deleted(self, scope_id: str, *, now: datetime) -> None:
        node = await self.get(scope_id, include_deleted=False)
        if node is not None:
            node.deleted_at = now
            await self.session.flush()
