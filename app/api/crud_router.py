"""Generic CRUD routes built from an explicit resource description.

A CrudResource bundles everything the routes need for one entity: the model,
the input schemas, the projection function used for every response, optional
input hooks, and the access policy of each operation. build_crud_router turns
it into an APIRouter; nothing is discovered by reflection.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Annotated, Any, Generic

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.access import AccessGuard, RoutePolicy, register_policy
from app.core.database import get_db
from app.models.base import Base
from app.models.user import UserRole
from app.schemas.common import MessageResponse, PageResponse
from app.services.crud import CrudRepository, ModelT

CRUD_OPERATIONS = ("list", "paged", "get", "create", "update", "delete")

_OPERATION_ROUTES = {
    "list": ("GET", ""),
    "paged": ("GET", "/paged"),
    "get": ("GET", "/{id}"),
    "create": ("POST", ""),
    "update": ("PUT", "/{id}"),
    "delete": ("DELETE", "/{id}"),
}


def _unchanged(data: dict[str, Any]) -> dict[str, Any]:
    return data


def crud_policies(
    prefix: str,
    required_roles: dict[str, frozenset[UserRole]] | None = None,
    public: frozenset[str] = frozenset(),
) -> dict[str, RoutePolicy]:
    """Declare one RoutePolicy per CRUD operation mounted under prefix."""
    required_roles = required_roles or {}
    unknown = (set(required_roles) | set(public)) - set(CRUD_OPERATIONS)
    if unknown:
        raise ValueError(f"Unknown CRUD operation(s): {', '.join(sorted(unknown))}")
    return {
        op: register_policy(
            path=f"{prefix}{suffix}",
            method=method,
            required_roles=required_roles.get(op, frozenset()),
            public=op in public,
        )
        for op, (method, suffix) in _OPERATION_ROUTES.items()
    }


@dataclass
class CrudResource(Generic[ModelT]):
    """Everything needed to expose one model over the generic CRUD routes."""

    prefix: str
    model: type[ModelT]
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    response_schema: type[BaseModel]
    to_response: Callable[[ModelT], BaseModel]
    policies: dict[str, RoutePolicy]
    prepare_create: Callable[[dict[str, Any]], dict[str, Any]] = _unchanged
    prepare_update: Callable[[dict[str, Any]], dict[str, Any]] = _unchanged
    id_field: str = "id"
    tags: list[str] = field(default_factory=list)

    @property
    def entity_name(self) -> str:
        return self.model.__name__


def build_crud_router(resource: CrudResource[Any]) -> APIRouter:
    """Create list/paged/get/create/update/delete routes for one resource."""
    router = APIRouter(tags=resource.tags)
    create_schema = resource.create_schema
    update_schema = resource.update_schema
    response_schema = resource.response_schema
    project = resource.to_response

    def get_repository(db: Annotated[Session, Depends(get_db)]) -> CrudRepository[Base]:
        return CrudRepository(db, resource.model, id_field=resource.id_field)

    Repository = Annotated[CrudRepository[Base], Depends(get_repository)]

    def guard(op: str) -> list[Any]:
        return [Depends(AccessGuard(resource.policies[op]))]

    @router.get("", response_model=list[response_schema], dependencies=guard("list"))
    def get_all(repo: Repository) -> list[BaseModel]:
        """Return every record."""
        return [project(entity) for entity in repo.get_all()]

    @router.get(
        "/paged",
        response_model=PageResponse[response_schema],
        dependencies=guard("paged"),
    )
    def get_paginated(
        repo: Repository,
        page: Annotated[int, Query(description="Page number (starts at 1)")] = 1,
        limit: Annotated[int, Query(description="Records per page (1-100)")] = 10,
    ) -> PageResponse:
        """Return one page of records ordered by identity."""
        result = repo.get_paginated(page, limit)
        return PageResponse[response_schema](
            data=[project(entity) for entity in result.data],
            total=result.total,
            page=result.page,
            limit=result.limit,
            total_pages=result.total_pages,
        )

    @router.get("/{id}", response_model=response_schema, dependencies=guard("get"))
    def get_by_id(id: int, repo: Repository) -> BaseModel:
        """Return one record or 404."""
        return project(repo.get_by_id(id))

    @router.post(
        "",
        response_model=response_schema,
        status_code=status.HTTP_201_CREATED,
        dependencies=guard("create"),
    )
    def create(body: create_schema, repo: Repository) -> BaseModel:  # type: ignore[valid-type]
        """Create a record from the declared input fields."""
        data = resource.prepare_create(body.model_dump())
        return project(repo.create(data))

    @router.put("/{id}", response_model=response_schema, dependencies=guard("update"))
    def update(id: int, body: update_schema, repo: Repository) -> BaseModel:  # type: ignore[valid-type]
        """Merge the supplied fields over the stored record."""
        data = resource.prepare_update(body.model_dump(exclude_unset=True))
        return project(repo.update(id, data))

    @router.delete("/{id}", response_model=MessageResponse, dependencies=guard("delete"))
    def delete(id: int, repo: Repository) -> MessageResponse:
        """Hard-delete a record."""
        repo.delete(id)
        return MessageResponse(message=f"{resource.entity_name} deleted successfully")

    return router
