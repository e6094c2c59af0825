"""Content entities returned by the CMS.

Entities are created and mutated only on the remote CMS; these dataclasses
are transient, read-side copies. Both the flat response shape and the legacy
``{"id": ..., "attributes": {...}}`` shape (relations wrapped in
``{"data": ...}``) are accepted by ``from_dict``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

from .common import JSONPayload

E = TypeVar("E", bound="ContentEntity")


def unwrap_relation(value: Any) -> Any:
    """Strips the legacy ``{"data": ...}`` wrapper from a relation value."""
    if isinstance(value, dict) and set(value) <= {"data", "meta"} and "data" in value:
        return value["data"]
    return value


def flatten_entity(raw: Optional[JSONPayload]) -> Optional[JSONPayload]:
    """Returns a flat attribute dict for either response shape."""
    raw = unwrap_relation(raw)
    if not isinstance(raw, dict):
        return None
    attributes = raw.get("attributes")
    if isinstance(attributes, dict):
        flat = {key: value for key, value in raw.items() if key != "attributes"}
        flat.update(attributes)
        return flat
    return dict(raw)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parses the CMS ISO-8601 timestamps (``Z`` suffix included)."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass
class ContentEntity:
    """Common identity shared by every entity."""
    id: int
    document_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def _field_map(cls) -> Dict[str, str]:
        """camelCase attribute -> dataclass field."""
        return {"id": "id", "documentId": "document_id"}

    @classmethod
    def _relations(cls) -> Dict[str, Any]:
        """camelCase attribute -> (entity class, is_list)."""
        return {}

    @classmethod
    def from_dict(cls: Type[E], raw: Optional[JSONPayload]) -> Optional[E]:
        flat = flatten_entity(raw)
        if flat is None:
            return None
        field_map = cls._field_map()
        relations = cls._relations()
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in flat.items():
            if key in relations:
                entity_cls, is_list = relations[key]
                kwargs[field_map[key]] = _build_relation(entity_cls, value, is_list)
            elif key in field_map:
                kwargs[field_map[key]] = value
            else:
                extra[key] = value
        kwargs.setdefault("id", flat.get("id", 0))
        return cls(extra=extra, **kwargs)

    @property
    def ref(self) -> Any:
        """Identifier to use on item routes (document id when known)."""
        return self.document_id or self.id


def _build_relation(entity_cls: Type["ContentEntity"], value: Any, is_list: bool) -> Any:
    value = unwrap_relation(value)
    if is_list:
        if not isinstance(value, list):
            return []
        return [item for item in (entity_cls.from_dict(v) for v in value) if item is not None]
    return entity_cls.from_dict(value)


@dataclass
class Media(ContentEntity):
    url: str = ""
    name: Optional[str] = None
    alternative_text: Optional[str] = None
    caption: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    mime: Optional[str] = None
    formats: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def _field_map(cls) -> Dict[str, str]:
        mapping = super()._field_map()
        mapping.update({
            "url": "url", "name": "name", "alternativeText": "alternative_text",
            "caption": "caption", "width": "width", "height": "height",
            "mime": "mime", "formats": "formats",
        })
        return mapping


@dataclass
class Author(ContentEntity):
    name: str = ""
    slug: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[Media] = None

    @classmethod
    def _field_map(cls) -> Dict[str, str]:
        mapping = super()._field_map()
        mapping.update({"name": "name", "slug": "slug", "email": "email",
                        "bio": "bio", "avatar": "avatar"})
        return mapping

    @classmethod
    def _relations(cls) -> Dict[str, Any]:
        return {"avatar": (Media, False)}


@dataclass
class Category(ContentEntity):
    name: str = ""
    slug: str = ""
    description: Optional[str] = None
    image: Optional[Media] = None
    articles: List["Article"] = field(default_factory=list)

    @classmethod
    def _field_map(cls) -> Dict[str, str]:
        mapping = super()._field_map()
        mapping.update({"name": "name", "slug": "slug", "description": "description",
                        "image": "image", "articles": "articles"})
        return mapping

    @classmethod
    def _relations(cls) -> Dict[str, Any]:
        return {"image": (Media, False), "articles": (Article, True)}

    @property
    def article_count(self) -> int:
        return len(self.articles)


@dataclass
class Tag(ContentEntity):
    name: str = ""
    slug: str = ""

    @classmethod
    def _field_map(cls) -> Dict[str, str]:
        mapping = super()._field_map()
        mapping.update({"name": "name", "slug": "slug"})
        return mapping


@dataclass
class Article(ContentEntity):
    title: str = ""
    slug: str = ""
    description: Optional[str] = None
    content: Optional[str] = None
    published_at: Optional[str] = None
    updated_at: Optional[str] = None
    created_at: Optional[str] = None
    featured: bool = False
    view_count: int = 0
    reading_time: Optional[int] = None
    author: Optional[Author] = None
    category: Optional[Category] = None
    categories: List[Category] = field(default_factory=list)
    tags: List[Tag] = field(default_factory=list)
    cover: Optional[Media] = None
    seo: Optional[Dict[str, Any]] = None
    related_articles: List["Article"] = field(default_factory=list)

    @classmethod
    def _field_map(cls) -> Dict[str, str]:
        mapping = super()._field_map()
        mapping.update({
            "title": "title", "slug": "slug", "description": "description",
            "content": "content", "publishedAt": "published_at",
            "updatedAt": "updated_at", "createdAt": "created_at",
            "featured": "featured", "viewCount": "view_count",
            "readingTime": "reading_time", "author": "author",
            "category": "category", "categories": "categories", "tags": "tags",
            "cover": "cover", "seo": "seo", "relatedArticles": "related_articles",
        })
        return mapping

    @classmethod
    def _relations(cls) -> Dict[str, Any]:
        return {
            "author": (Author, False),
            "category": (Category, False),
            "categories": (Category, True),
            "tags": (Tag, True),
            "cover": (Media, False),
            "relatedArticles": (Article, True),
        }

    @property
    def published_datetime(self) -> Optional[datetime]:
        return parse_timestamp(self.published_at)

    @property
    def category_ids(self) -> List[int]:
        ids = [c.id for c in self.categories]
        if self.category is not None and self.category.id not in ids:
            ids.append(self.category.id)
        return ids

    @property
    def tag_ids(self) -> List[int]:
        return [t.id for t in self.tags]


@dataclass
class Comment(ContentEntity):
    content: str = ""
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    approved: bool = False
    published_at: Optional[str] = None

    @classmethod
    def _field_map(cls) -> Dict[str, str]:
        mapping = super()._field_map()
        mapping.update({"content": "content", "authorName": "author_name",
                        "authorEmail": "author_email", "approved": "approved",
                        "publishedAt": "published_at"})
        return mapping


# --- Footer single type ---

@dataclass
class SocialLink(ContentEntity):
    platform: str = ""
    url: str = ""
    icon: Optional[str] = None

    @classmethod
    def _field_map(cls) -> Dict[str, str]:
        mapping = super()._field_map()
        mapping.update({"platform": "platform", "url": "url", "icon": "icon"})
        return mapping


@dataclass
class MenuLink(ContentEntity):
    label: str = ""
    url: str = ""
    is_external: bool = False

    @classmethod
    def _field_map(cls) -> Dict[str, str]:
        mapping = super()._field_map()
        mapping.update({"label": "label", "url": "url", "isExternal": "is_external"})
        return mapping


@dataclass
class ContactInfo(ContentEntity):
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def _field_map(cls) -> Dict[str, str]:
        mapping = super()._field_map()
        mapping.update({"email": "email", "phone": "phone", "address": "address"})
        return mapping


@dataclass
class Footer(ContentEntity):
    company_name: Optional[str] = None
    description: Optional[str] = None
    copyright: Optional[str] = None
    logo: Optional[Media] = None
    social_links: List[SocialLink] = field(default_factory=list)
    menu_links: List[MenuLink] = field(default_factory=list)
    contact_info: Optional[ContactInfo] = None

    @classmethod
    def _field_map(cls) -> Dict[str, str]:
        mapping = super()._field_map()
        mapping.update({
            "companyName": "company_name", "description": "description",
            "copyright": "copyright", "logo": "logo",
            "socialLinks": "social_links", "menuLinks": "menu_links",
            "contactInfo": "contact_info",
        })
        return mapping

    @classmethod
    def _relations(cls) -> Dict[str, Any]:
        return {
            "logo": (Media, False),
            "socialLinks": (SocialLink, True),
            "menuLinks": (MenuLink, True),
            "contactInfo": (ContactInfo, False),
        }
