"""Generic list/form/mutate workflow shared by every admin screen."""

import logging
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ValidationError

from catalog_admin.domain.entities import SCHEMAS, EntityKind, EntitySchema, field_errors
from catalog_admin.domain.errors import (
    ApiError,
    NotFound,
    TransportFailure,
    ValidationFailed,
)
from catalog_admin.services.feedback import Notifier
from catalog_admin.services.photos import PhotoList
from catalog_admin.services.resources import ResourceService

_logger = logging.getLogger(__name__)

_SERVER_MANAGED = {"id", "created_at", "updated_at", "read"}


class FormMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


class SubmitOutcome(str, Enum):
    SAVED = "saved"
    INVALID = "invalid"
    REJECTED = "rejected"


@dataclass
class FormState:
    """Values entered into the create/edit form."""

    mode: FormMode = FormMode.CREATE
    entity_id: int | None = None
    values: dict[str, object] = field(default_factory=dict)
    photos: PhotoList = field(default_factory=PhotoList)
    field_errors: dict[str, list[str]] = field(default_factory=dict)
    is_open: bool = False
    submitting: bool = False


@dataclass
class ResourceManager:
    """Admin workflow for one entity kind."""

    schema: EntitySchema
    resources: ResourceService
    notifier: Notifier
    photo_warn_bytes: int = 2 * 1024 * 1024
    items: list[BaseModel] = field(default_factory=list)
    form: FormState = field(default_factory=FormState)
    pending_delete: int | None = None

    async def load(self) -> list[BaseModel]:
        """Load the entity list, falling back to cached data on failure."""
        try:
            payload = await self.resources.read(self.schema.path)
        except ApiError as exc:
            if self.schema.singleton and isinstance(exc, NotFound):
                self.items = []
                return self.items
            self.notifier.notify(
                f"Failed to load {self.schema.label.lower()} data",
                exc.message,
                destructive=True,
            )
            payload = self.resources.cached(self.schema.path)
            if payload is None:
                self.items = []
                return self.items
        self.items = self._decode_list(payload)
        return self.items

    async def fetch_one(self, entity_id: int) -> BaseModel:
        """Read a single entity by id."""
        payload = await self.resources.read(self.schema.item_path(entity_id))
        try:
            return self.schema.parse_entity(payload.get(self.schema.item_key) or {})
        except ValidationError as exc:
            raise TransportFailure(f"Malformed {self.schema.label.lower()}") from exc

    def open_create(self, values: dict[str, object] | None = None) -> FormState:
        initial = dict(values or {})
        photos = list(initial.pop("photos", []))
        self.form = FormState(
            mode=FormMode.CREATE,
            values=initial,
            photos=PhotoList(items=photos, warn_bytes=self.photo_warn_bytes),
            is_open=True,
        )
        return self.form

    def open_edit(self, entity: BaseModel) -> FormState:
        if not self.schema.editable:
            raise ValueError(f"{self.schema.label} cannot be edited")
        values = {
            name: getattr(entity, name)
            for name in self.schema.draft_model.model_fields
            if name not in _SERVER_MANAGED and name != "photos"
        }
        self.form = FormState(
            mode=FormMode.EDIT,
            entity_id=getattr(entity, "id", None),
            values=values,
            photos=PhotoList(
                items=list(getattr(entity, "photos", [])),
                warn_bytes=self.photo_warn_bytes,
            ),
            is_open=True,
        )
        return self.form

    def close_form(self) -> None:
        self.form = FormState()

    async def submit(self) -> SubmitOutcome:
        """Validate the form, then create or update the entity."""
        form = self.form
        if not form.is_open:
            raise RuntimeError("No form is open")
        if form.submitting:
            raise RuntimeError("A submission is already in progress")
        if form.photos.busy:
            form.field_errors = {"photos": ["Wait for the photo to finish loading"]}
            return SubmitOutcome.INVALID
        try:
            draft = self.schema.draft_model.model_validate(
                {**form.values, "photos": list(form.photos.items)}
            )
        except ValidationError as exc:
            form.field_errors = field_errors(exc)
            return SubmitOutcome.INVALID

        form.field_errors = {}
        form.submitting = True
        try:
            if form.mode is FormMode.CREATE and not self.schema.singleton:
                await self.resources.mutate(
                    "POST",
                    self.schema.path,
                    draft.to_payload(),
                    invalidates=[self.schema.path],
                )
            else:
                item_key = self.schema.item_path(form.entity_id)
                await self.resources.mutate(
                    "PUT",
                    item_key,
                    draft.to_payload(),
                    invalidates=sorted({self.schema.path, item_key}),
                )
        except ValidationFailed as exc:
            form.field_errors = exc.field_errors
            self._notify_failure("save", exc)
            return SubmitOutcome.REJECTED
        except ApiError as exc:
            self._notify_failure("save", exc)
            return SubmitOutcome.REJECTED
        finally:
            form.submitting = False

        verb = "created" if form.mode is FormMode.CREATE else "updated"
        self.notifier.notify("Success", f"{self.schema.label} {verb} successfully")
        self.close_form()
        await self.load()
        return SubmitOutcome.SAVED

    def request_delete(self, entity_id: int) -> None:
        """Ask for confirmation before deleting an entity."""
        if self.schema.singleton:
            raise ValueError(f"{self.schema.label} cannot be deleted")
        self.pending_delete = entity_id

    def cancel_delete(self) -> None:
        self.pending_delete = None

    async def confirm_delete(self) -> bool:
        """Delete the entity awaiting confirmation."""
        if self.pending_delete is None:
            raise RuntimeError("No delete is awaiting confirmation")
        item_key = self.schema.item_path(self.pending_delete)
        try:
            await self.resources.mutate(
                "DELETE", item_key, invalidates=[self.schema.path, item_key]
            )
        except ApiError as exc:
            self._notify_failure("delete", exc)
            return False
        finally:
            self.pending_delete = None
        self.notifier.notify("Success", f"{self.schema.label} deleted successfully")
        await self.load()
        return True

    async def perform(self, entity_id: int, action: str, method: str = "PATCH") -> bool:
        """Run an action sub-resource such as marking an inquiry read."""
        item_key = self.schema.item_path(entity_id)
        try:
            await self.resources.mutate(
                method,
                f"{item_key}/{action}",
                invalidates=[self.schema.path, item_key],
            )
        except ApiError as exc:
            self._notify_failure(action, exc)
            return False
        await self.load()
        return True

    def _decode_list(self, payload: dict[str, object]) -> list[BaseModel]:
        try:
            return self.schema.parse_list(payload)
        except ValidationError:
            _logger.exception("Malformed %s list", self.schema.kind.value)
            self.notifier.notify(
                f"Failed to load {self.schema.label.lower()} data",
                "The server returned malformed data",
                destructive=True,
            )
            return []

    def _notify_failure(self, action: str, exc: ApiError) -> None:
        self.notifier.notify(
            "Error",
            f"Failed to {action} {self.schema.label.lower()}: {exc.message}",
            destructive=True,
        )


def build_managers(
    resources: ResourceService,
    notifier: Notifier,
    photo_warn_bytes: int = 2 * 1024 * 1024,
) -> dict[EntityKind, ResourceManager]:
    """Create one manager per entity kind."""
    return {
        kind: ResourceManager(
            schema=schema,
            resources=resources,
            notifier=notifier,
            photo_warn_bytes=photo_warn_bytes,
        )
        for kind, schema in SCHEMAS.items()
    }
