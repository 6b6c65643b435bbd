# This project was developed with assistance from AI tools.
"""Query Engine: scope-constrained, filtered, sorted, paginated listings.

List operations are always bounded to the principal's own scope chain, no
matter which filter values are supplied -- a filter pointing at a foreign
scope yields an empty page, never an error and never foreign rows. A page
beyond the last one is also just empty.
"""

import logging
import math
from datetime import UTC, datetime

from scopegate_db import Operator, Predicate, ResourceRepository, SearchTerm, SortKey
from scopegate_db.enums import Action, FieldKind, ScopeRelation, SortDirection
from scopegate_db.repository import CORE_FIELDS, OWNER_SCOPE_FIELD
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import InvalidQuery, NoSuchRule, ScopeMismatch
from ..core.policy import PolicyTable, ResourceTypeSpec, matches_kind
from ..schemas import Pagination
from ..schemas.auth import Principal
from ..schemas.resource import QueryRequest, QueryResult, RangeFilter, ResourceResponse
from .audit import record_denial
from .lifecycle import require_resource_type
from .scope import resolve_scope

logger = logging.getLogger(__name__)

_DATETIME_FIELDS = frozenset({"created_at", "updated_at", "deleted_at"})
_STRING_CORE_FIELDS = frozenset({"id", "created_by"})
_DEFAULT_SORT = (SortKey("created_at", SortDirection.DESC),)

_RANGE_OPERATORS = (
    ("gt", Operator.GT),
    ("gte", Operator.GTE),
    ("lt", Operator.LT),
    ("lte", Operator.LTE),
)


def _coerce_datetime(field: str, value) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidQuery(f"{field}: expected an ISO 8601 timestamp") from exc
    else:
        raise InvalidQuery(f"{field}: expected an ISO 8601 timestamp")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _coerce_payload(field: str, kind: FieldKind, value):
    if not matches_kind(kind, value):
        raise InvalidQuery(f"{field}: expected a {kind.value} value")
    return float(value) if kind == FieldKind.FLOAT else value


def _coerce(field: str, kind: FieldKind | None, value):
    if field in _DATETIME_FIELDS:
        return _coerce_datetime(field, value)
    if field in _STRING_CORE_FIELDS:
        if not isinstance(value, str):
            raise InvalidQuery(f"{field}: expected a string value")
        return value
    return _coerce_payload(field, kind, value)


def _field_kind(spec: ResourceTypeSpec, field: str) -> FieldKind | None:
    """Kind of a payload field; None for core columns. Unknown fields are rejected."""
    if field in CORE_FIELDS:
        return None
    kind = spec.fields.get(field)
    if kind is None:
        raise InvalidQuery(f"Unknown field {field!r} for {spec.name}")
    return kind


def build_predicates(spec: ResourceTypeSpec, filters: dict) -> list[Predicate]:
    """Translate request filters into repository predicates."""
    predicates: list[Predicate] = []
    for field, value in filters.items():
        if field == OWNER_SCOPE_FIELD:
            if not isinstance(value, str):
                raise InvalidQuery("owner_scope: expected a scope id")
            predicates.append(Predicate(field, Operator.WITHIN_SCOPE, value))
            continue

        kind = _field_kind(spec, field)
        if isinstance(value, RangeFilter):
            if kind == FieldKind.BOOLEAN:
                raise InvalidQuery(f"{field}: range filters are not supported on booleans")
            for attr, op in _RANGE_OPERATORS:
                bound = getattr(value, attr)
                if bound is not None:
                    predicates.append(Predicate(field, op, _coerce(field, kind, bound), kind))
        else:
            predicates.append(Predicate(field, Operator.EQ, _coerce(field, kind, value), kind))
    return predicates


def build_sort(spec: ResourceTypeSpec, request: QueryRequest) -> tuple[SortKey, ...]:
    if not request.sort:
        return _DEFAULT_SORT
    return tuple(
        SortKey(item.field, item.direction, _field_kind(spec, item.field))
        for item in request.sort
    )


def build_search(spec: ResourceTypeSpec, text: str | None) -> SearchTerm | None:
    if text is None:
        return None
    if not spec.searchable:
        raise InvalidQuery(f"{spec.name} has no searchable fields")
    return SearchTerm(text=text, fields=spec.searchable)


def page_count(records: int, limit: int) -> int:
    return math.ceil(records / limit) if records else 0


async def list_resources(
    session: AsyncSession,
    policy: PolicyTable,
    principal: Principal,
    resource_type: str,
    request: QueryRequest,
) -> QueryResult:
    """List resources of one type visible to ``principal``.

    Raises:
        NotFound: unknown resource type.
        NoSuchRule: the role has no ``list`` rule for this type.
        ScopeMismatch: ``request.scope_id`` lies outside the principal's scope.
        InvalidQuery: unknown field, wrong value type or unsupported filter.
    """
    spec = require_resource_type(policy, resource_type)

    rule = policy.lookup(principal.role, Action.LIST, resource_type)
    if rule is None:
        logger.warning(
            "Policy gap: no list rule for role=%s type=%s",
            principal.role.value,
            resource_type,
        )
        await record_denial(
            session,
            principal,
            action=Action.LIST,
            resource_type=resource_type,
            reason="no_such_rule",
        )
        raise NoSuchRule()

    try:
        resolved = await resolve_scope(session, principal, request.scope_id)
    except ScopeMismatch:
        await record_denial(
            session,
            principal,
            action=Action.LIST,
            resource_type=resource_type,
            reason="scope_mismatch",
        )
        raise

    predicates = build_predicates(spec, request.filters)
    sort = build_sort(spec, request)
    search = build_search(spec, request.search)
    created_by = principal.id if rule.scope_relation == ScopeRelation.SELF else None

    rows, records = await ResourceRepository(session).query(
        resource_type,
        resolved.path,
        predicates=predicates,
        search=search,
        sort=sort,
        page=request.page,
        page_size=request.limit,
        include_deleted=request.include_deleted,
        created_by=created_by,
    )

    logger.debug(
        "Listed %s for %s: page=%d limit=%d records=%d",
        resource_type,
        principal.id,
        request.page,
        request.limit,
        records,
    )
    return QueryResult(
        pagination=Pagination(
            current=request.page,
            limit=request.limit,
            records=records,
            pages=page_count(records, request.limit),
        ),
        data=[ResourceResponse.from_model(row) for row in rows],
    )
