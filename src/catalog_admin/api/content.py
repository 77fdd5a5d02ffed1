"""Content routes, registered once per entity kind."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ValidationError

from catalog_admin.adapters.memory_store import InMemoryContentStore
from catalog_admin.api.auth import require_operator
from catalog_admin.domain.entities import SCHEMAS, AboutStats, EntityKind, EntitySchema

router = APIRouter(tags=["content"])

_logger = logging.getLogger(__name__)
_OPERATOR_ONLY = [Depends(require_operator)]


class PayloadRejected(Exception):
    """Raised when a request body fails validation."""

    def __init__(self, errors: list[dict[str, object]]) -> None:
        super().__init__("Invalid data")
        self.errors = errors


def _store(request: Request) -> InMemoryContentStore:
    return request.app.state.server.store


async def _validated(request: Request, model: type[BaseModel]) -> dict[str, object]:
    """Parse the JSON body against a draft model and return its wire payload."""
    try:
        body = await request.json()
    except ValueError as exc:
        raise PayloadRejected(
            [{"path": [], "message": "Request body must be JSON"}]
        ) from exc
    try:
        return model.model_validate(body).model_dump(mode="json", by_alias=True)
    except ValidationError as exc:
        raise PayloadRejected(
            [{"path": list(error["loc"]), "message": error["msg"]} for error in exc.errors()]
        ) from exc


def _not_found(label: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")


def _register_collection(schema: EntitySchema) -> None:  # noqa: C901
    kind = schema.kind
    item_path = f"{schema.path}/{{entity_id}}"
    # Inquiries come from the public contact form but are read by operators.
    read_guard = _OPERATOR_ONLY if kind is EntityKind.INQUIRIES else []
    create_guard = [] if kind is EntityKind.INQUIRIES else _OPERATOR_ONLY

    @router.get(schema.path, name=f"{kind.value}:list", dependencies=read_guard)
    async def list_entities(request: Request) -> dict[str, object]:
        return {schema.list_key: _store(request).list_records(kind)}

    @router.get(item_path, name=f"{kind.value}:get", dependencies=read_guard)
    async def get_entity(entity_id: int, request: Request) -> dict[str, object]:
        record = _store(request).get(kind, entity_id)
        if record is None:
            raise _not_found(schema.label)
        return {schema.item_key: record}

    @router.post(
        schema.path,
        status_code=status.HTTP_201_CREATED,
        name=f"{kind.value}:create",
        dependencies=create_guard,
    )
    async def create_entity(request: Request) -> dict[str, object]:
        data = await _validated(request, schema.draft_model)
        record = _store(request).create(kind, data)
        _logger.info("Created %s %s", kind.value, record["id"])
        return {"message": f"{schema.label} created successfully", schema.item_key: record}

    @router.delete(item_path, name=f"{kind.value}:delete", dependencies=_OPERATOR_ONLY)
    async def delete_entity(entity_id: int, request: Request) -> dict[str, object]:
        if not _store(request).delete(kind, entity_id):
            raise _not_found(schema.label)
        _logger.info("Deleted %s %s", kind.value, entity_id)
        return {"message": f"{schema.label} deleted successfully"}

    if kind is EntityKind.INQUIRIES:

        @router.api_route(
            f"{item_path}/read",
            methods=["PATCH", "PUT"],
            name="inquiries:read",
            dependencies=_OPERATOR_ONLY,
        )
        async def mark_read(entity_id: int, request: Request) -> dict[str, object]:
            record = _store(request).mark_inquiry_read(entity_id)
            if record is None:
                raise _not_found(schema.label)
            return {"message": "Inquiry marked as read", "inquiry": record}

    if not schema.editable:
        return

    @router.api_route(
        item_path,
        methods=["PUT", "PATCH"],
        name=f"{kind.value}:update",
        dependencies=_OPERATOR_ONLY,
    )
    async def update_entity(entity_id: int, request: Request) -> dict[str, object]:
        data = await _validated(request, schema.draft_model)
        record = _store(request).update(kind, entity_id, data)
        if record is None:
            raise _not_found(schema.label)
        return {"message": f"{schema.label} updated successfully", schema.item_key: record}


def _register_singleton(schema: EntitySchema) -> None:
    kind = schema.kind

    @router.get(schema.path, name=f"{kind.value}:get")
    async def get_singleton(request: Request) -> dict[str, object]:
        record = _store(request).get_singleton(kind)
        if record is None:
            raise _not_found(schema.label)
        return {schema.item_key: record}

    @router.put(schema.path, name=f"{kind.value}:update", dependencies=_OPERATOR_ONLY)
    async def put_singleton(request: Request) -> dict[str, object]:
        data = await _validated(request, schema.draft_model)
        record = _store(request).put_singleton(kind, data)
        return {"message": f"{schema.label} updated successfully", schema.item_key: record}


for _schema in SCHEMAS.values():
    if _schema.singleton:
        _register_singleton(_schema)
    else:
        _register_collection(_schema)


@router.get("/api/about-stats")
async def get_about_stats(request: Request) -> dict[str, object]:
    """Return the public about-page counters."""
    record = _store(request).get_about_stats()
    if record is None:
        raise _not_found("About stats")
    return {"aboutStats": record}


@router.put("/api/about-stats", dependencies=_OPERATOR_ONLY)
async def put_about_stats(request: Request) -> dict[str, object]:
    """Replace the about-page counters."""
    data = await _validated(request, AboutStats)
    return {
        "message": "About stats updated successfully",
        "aboutStats": _store(request).put_about_stats(data),
    }
