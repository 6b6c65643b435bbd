# This project was developed with assistance from AI tools.
"""Role-prefixed generic resource routes.

``/api/{role}/{resource_type}`` serves create (POST) and list (PATCH with a
QueryRequest body); ``/api/{role}/{resource_type}/{resource_id}`` serves
read, update and soft delete. Out-of-scope resources answer 404, the same
as missing ones.
"""

from fastapi import APIRouter, Depends, status
from scopegate_db import get_db
from scopegate_db.enums import UserRole
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.policy import PolicyTable, get_policy
from ..middleware.auth import CurrentPrincipal, ensure_route_role
from ..schemas.resource import (
    QueryRequest,
    QueryResult,
    ResourceCreate,
    ResourceResponse,
    ResourceUpdate,
)
from ..services import lifecycle
from ..services.query import list_resources

router = APIRouter()


@router.post(
    "/{role}/{resource_type}",
    response_model=ResourceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_resource(
    role: UserRole,
    resource_type: str,
    body: ResourceCreate,
    principal: CurrentPrincipal,
    session: AsyncSession = Depends(get_db),
    policy: PolicyTable = Depends(get_policy),
) -> ResourceResponse:
    ensure_route_role(principal, role)
    resource = await lifecycle.create_resource(
        session, policy, principal, resource_type, body.payload, body.scope_id
    )
    return ResourceResponse.from_model(resource)


@router.patch("/{role}/{resource_type}", response_model=QueryResult)
async def search_resources(
    role: UserRole,
    resource_type: str,
    body: QueryRequest,
    principal: CurrentPrincipal,
    session: AsyncSession = Depends(get_db),
    policy: PolicyTable = Depends(get_policy),
) -> QueryResult:
    """Filtered, sorted, paginated listing bounded to the caller's scope."""
    ensure_route_role(principal, role)
    return await list_resources(session, policy, principal, resource_type, body)


@router.get("/{role}/{resource_type}/{resource_id}", response_model=ResourceResponse)
async def get_resource(
    role: UserRole,
    resource_type: str,
    resource_id: str,
    principal: CurrentPrincipal,
    session: AsyncSession = Depends(get_db),
    policy: PolicyTable = Depends(get_policy),
) -> ResourceResponse:
    ensure_route_role(principal, role)
    resource = await lifecycle.get_resource(session, policy, principal, resource_type, resource_id)
    return ResourceResponse.from_model(resource)


@router.put("/{role}/{resource_type}/{resource_id}", response_model=ResourceResponse)
async def update_resource(
    role: UserRole,
    resource_type: str,
    resource_id: str,
    body: ResourceUpdate,
    principal: CurrentPrincipal,
    session: AsyncSession = Depends(get_db),
    policy: PolicyTable = Depends(get_policy),
) -> ResourceResponse:
    ensure_route_role(principal, role)
    resource = await lifecycle.update_resource(
        session, policy, principal, resource_type, resource_id, body.payload
    )
    return ResourceResponse.from_model(resource)


@router.delete(
    "/{role}/{resource_type}/{resource_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_resource(
    role: UserRole,
    resource_type: str,
    resource_id: str,
    principal: CurrentPrincipal,
    session: AsyncSession = Depends(get_db),
    policy: PolicyTable = Depends(get_policy),
) -> None:
    ensure_route_role(principal, role)
    await lifecycle.soft_delete_resource(session, policy, principal, resource_type, resource_id)
