"""Public-site operations that share the admin cache."""

from dataclasses import dataclass

from pydantic import ValidationError

from catalog_admin.domain.entities import SCHEMAS, AboutStats, EntityKind, Inquiry, InquiryDraft
from catalog_admin.domain.errors import NotFound, TransportFailure
from catalog_admin.services.resources import ResourceService

ABOUT_STATS_PATH = "/api/about-stats"


@dataclass
class PublicContentService:
    """Public page reads, the contact form and the about-page counters."""

    resources: ResourceService

    async def about_stats(self) -> AboutStats | None:
        """Return the about-page counters, or None when none are stored."""
        try:
            payload = await self.resources.read(ABOUT_STATS_PATH)
        except NotFound:
            return None
        try:
            return AboutStats.model_validate(payload.get("aboutStats") or {})
        except ValidationError as exc:
            raise TransportFailure("Malformed about stats") from exc

    async def send_inquiry(self, draft: InquiryDraft) -> Inquiry:
        """Submit a contact or product inquiry (no session required)."""
        schema = SCHEMAS[EntityKind.INQUIRIES]
        payload = await self.resources.mutate(
            "POST", schema.path, draft.to_payload(), invalidates=[schema.path]
        )
        try:
            return schema.parse_entity(payload.get(schema.item_key) or {})
        except ValidationError as exc:
            raise TransportFailure("Malformed inquiry") from exc

    async def update_about_stats(self, stats: AboutStats) -> AboutStats:
        """Replace the about-page counters (operator session required)."""
        payload = await self.resources.mutate(
            "PUT",
            ABOUT_STATS_PATH,
            stats.to_payload(),
            invalidates=[ABOUT_STATS_PATH],
        )
        try:
            return AboutStats.model_validate(payload.get("aboutStats") or {})
        except ValidationError as exc:
            raise TransportFailure("Malformed about stats") from exc
