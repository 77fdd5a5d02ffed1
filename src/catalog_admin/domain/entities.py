"""Content entity models keyed by entity kind."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
_DATA_IMAGE_PREFIX = "data:image/"


class EntityKind(str, Enum):
    """Content types managed through the back-office."""

    PRODUCTS = "products"
    BLOGS = "blogs"
    GALLERY = "gallery"
    PORTFOLIO = "portfolio"
    CUSTOMERS = "customers"
    CONTACT_INFO = "contact-info"
    INQUIRIES = "inquiries"
    BRANDS = "brands"
    SUB_PRODUCTS = "sub-products"


def is_http_url(value: str) -> bool:
    """Return True for absolute http(s) URLs."""
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def is_photo_reference(value: str) -> bool:
    """Return True for a photo URL or an embedded base64 image."""
    if value.startswith(_DATA_IMAGE_PREFIX):
        return ";base64," in value
    return is_http_url(value)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, object]:
        """Serialize to the camelCase JSON shape used on the wire."""
        return self.model_dump(mode="json", by_alias=True)


class _PhotoDraft(_CamelModel):
    photos: list[str] = Field(default_factory=list)

    @field_validator("photos")
    @classmethod
    def _check_photos(cls, photos: list[str]) -> list[str]:
        for photo in photos:
            if not is_photo_reference(photo):
                raise ValueError("Must be a valid URL or embedded image")
        return photos


class _Stored(_CamelModel):
    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductDraft(_PhotoDraft):
    name: str = Field(min_length=2)
    description: str = Field(min_length=10)
    photos: list[str] = Field(min_length=1)


class Product(_Stored, ProductDraft):
    pass


class BlogDraft(_PhotoDraft):
    title: str = Field(min_length=3)
    content: str = Field(min_length=10)


class Blog(_Stored, BlogDraft):
    pass


class GalleryItemDraft(_PhotoDraft):
    description: str = Field(min_length=2)
    photos: list[str] = Field(min_length=1)


class GalleryItem(_Stored, GalleryItemDraft):
    pass


class PortfolioItemDraft(_PhotoDraft):
    title: str = Field(min_length=2)
    description: str = Field(min_length=10)
    category: str = "social"
    project_details: str = ""


class PortfolioItem(_Stored, PortfolioItemDraft):
    pass


class CustomerDraft(_PhotoDraft):
    name: str = Field(min_length=1)
    website: str
    display_order: int = Field(default=0, ge=0)
    is_active: bool = True

    @field_validator("website")
    @classmethod
    def _check_website(cls, website: str) -> str:
        if not is_http_url(website):
            raise ValueError("Please enter a valid URL")
        return website


class Customer(_Stored, CustomerDraft):
    pass


class ContactInfoDraft(_PhotoDraft):
    address: str = Field(min_length=5)
    phone: str = Field(min_length=5)
    email: str = Field(pattern=_EMAIL_PATTERN)
    facebook: str | None = None
    instagram: str | None = None
    whatsapp: str | None = None
    linkedin: str | None = None

    @field_validator("facebook", "instagram", "whatsapp", "linkedin")
    @classmethod
    def _check_social(cls, value: str | None) -> str | None:
        if not value:
            return None
        if not is_http_url(value):
            raise ValueError("Please enter a valid URL")
        return value


class ContactInfo(_Stored, ContactInfoDraft):
    pass


class InquiryDraft(_PhotoDraft):
    name: str = Field(min_length=2)
    email: str = Field(pattern=_EMAIL_PATTERN)
    message: str = Field(min_length=10)
    # Weak reference: the product may have been removed since.
    product_id: int | None = None


class Inquiry(_Stored, InquiryDraft):
    read: bool = False


class BrandDraft(_PhotoDraft):
    name: str = Field(min_length=1)
    logo: str
    description: str = ""

    @field_validator("logo")
    @classmethod
    def _check_logo(cls, logo: str) -> str:
        if not is_photo_reference(logo):
            raise ValueError("Must be a valid URL or embedded image")
        return logo


class Brand(_Stored, BrandDraft):
    pass


class SubProductDraft(_PhotoDraft):
    model_config = ConfigDict(protected_namespaces=())

    name: str = Field(min_length=1)
    model_number: str | None = None
    content: str = ""
    photos: list[str] = Field(min_length=1)

    @field_validator("model_number")
    @classmethod
    def _blank_model_number(cls, value: str | None) -> str | None:
        return value or None


class SubProduct(_Stored, SubProductDraft):
    pass


class ProfileUpdate(_CamelModel):
    """Username and/or email change for the signed-in operator."""

    username: str | None = Field(default=None, min_length=1)
    email: str | None = Field(default=None, pattern=_EMAIL_PATTERN)

    @model_validator(mode="after")
    def _require_change(self) -> "ProfileUpdate":
        if self.username is None and self.email is None:
            raise ValueError("Nothing to update")
        return self


class PasswordChange(_CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class Testimonial(_CamelModel):
    name: str
    company: str
    text: str


class AboutStats(_CamelModel):
    """Counters shown on the public about page."""

    years_experience: int = 0
    customers_served: int = 0
    products_supplied: int = 0
    customers_testimonials: list[Testimonial] = Field(default_factory=list)
    updated_at: datetime | None = None


def field_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by dotted field path."""
    grouped: dict[str, list[str]] = {}
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"]) or "__root__"
        grouped.setdefault(path, []).append(error["msg"])
    return grouped


@dataclass(frozen=True)
class EntitySchema:
    """Field schema and endpoint layout for one entity kind."""

    kind: EntityKind
    label: str
    entity_model: type[_Stored]
    draft_model: type[_PhotoDraft]
    item_key: str
    list_key: str | None = None
    # Inquiries are written by visitors; operators only mark them read.
    editable: bool = True

    @property
    def singleton(self) -> bool:
        return self.list_key is None

    @property
    def path(self) -> str:
        return f"/api/{self.kind.value}"

    def item_path(self, entity_id: int | None = None) -> str:
        """Return the key addressing one entity (the path itself for singletons)."""
        if self.singleton:
            return self.path
        if entity_id is None:
            raise ValueError(f"{self.label} requires an id")
        return f"{self.path}/{entity_id}"

    def parse_entity(self, payload: dict[str, object]) -> _Stored:
        return self.entity_model.model_validate(payload)

    def parse_list(self, payload: dict[str, object]) -> list[_Stored]:
        """Decode a response envelope into entities."""
        if self.singleton:
            item = payload.get(self.item_key)
            return [self.parse_entity(item)] if item else []
        items = payload.get(self.list_key) or []
        return [self.parse_entity(item) for item in items]


SCHEMAS: dict[EntityKind, EntitySchema] = {
    schema.kind: schema
    for schema in (
        EntitySchema(
            EntityKind.PRODUCTS, "Product", Product, ProductDraft, "product", "products"
        ),
        EntitySchema(EntityKind.BLOGS, "Blog", Blog, BlogDraft, "blog", "blogs"),
        EntitySchema(
            EntityKind.GALLERY,
            "Gallery item",
            GalleryItem,
            GalleryItemDraft,
            "galleryItem",
            "gallery",
        ),
        EntitySchema(
            EntityKind.PORTFOLIO,
            "Portfolio item",
            PortfolioItem,
            PortfolioItemDraft,
            "portfolioItem",
            "portfolioItems",
        ),
        EntitySchema(
            EntityKind.CUSTOMERS,
            "Customer",
            Customer,
            CustomerDraft,
            "customer",
            "customers",
        ),
        EntitySchema(
            EntityKind.CONTACT_INFO,
            "Contact info",
            ContactInfo,
            ContactInfoDraft,
            "contactInfo",
        ),
        EntitySchema(
            EntityKind.INQUIRIES,
            "Inquiry",
            Inquiry,
            InquiryDraft,
            "inquiry",
            "inquiries",
            editable=False,
        ),
        EntitySchema(EntityKind.BRANDS, "Brand", Brand, BrandDraft, "brand", "brands"),
        EntitySchema(
            EntityKind.SUB_PRODUCTS,
            "Sub-product",
            SubProduct,
            SubProductDraft,
            "subProduct",
            "subProducts",
        ),
    )
}
