"""
Pydantic schemas for pre-rendered pages.

A SeoDescriptor is the unit of work for the renderer: one descriptor,
one output HTML file. Static routes come from data/routes.yml; story
routes are derived from Story Rows (plain dicts, see stories.py).
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .text import DESCRIPTION_MAX_LENGTH

DEFAULT_ROBOTS = "index, follow, max-image-preview:large"
NOINDEX_ROBOTS = "noindex, nofollow, noarchive"


# =============================================================================
# ENUMS
# =============================================================================

class OgType(str, Enum):
    WEBSITE = "website"
    ARTICLE = "article"
    PROFILE = "profile"


# =============================================================================
# PAGE MODELS
# =============================================================================

class SeoDescriptor(BaseModel):
    """Metadata used to render one route's <head>."""
    path: str
    title: str
    description: str = ""
    keywords: str = ""
    og_type: OgType = OgType.WEBSITE
    og_image: str | None = None          # Absolute URL, /path or bare filename
    image_alt: str | None = None

    # Article-only
    author: str | None = None
    published_time: str | None = None
    modified_time: str | None = None

    json_ld: dict[str, Any] | None = None
    robots: str | None = None            # None -> DEFAULT_ROBOTS

    @field_validator("path")
    @classmethod
    def path_is_site_relative(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"route path must start with '/': {value!r}")
        return value

    @field_validator("description")
    @classmethod
    def cap_description(cls, value: str) -> str:
        if len(value) > DESCRIPTION_MAX_LENGTH:
            return value[:DESCRIPTION_MAX_LENGTH - 3].strip() + "..."
        return value

    @model_validator(mode="after")
    def drop_article_fields(self) -> "SeoDescriptor":
        if self.og_type is not OgType.ARTICLE:
            self.author = None
            self.published_time = None
            self.modified_time = None
        return self

    @property
    def effective_robots(self) -> str:
        return self.robots or DEFAULT_ROBOTS


class StaticRoute(BaseModel):
    """An entry of the fixed route table (home, legal pages, auth pages...)."""
    path: str
    title: str
    description: str
    keywords: str = ""
    robots: str | None = None
    noindex: bool = False                # Shorthand for NOINDEX_ROBOTS
    changefreq: str = "monthly"          # Sitemap hints
    priority: str = "0.5"

    def to_seo(self) -> SeoDescriptor:
        robots = NOINDEX_ROBOTS if self.noindex else self.robots
        return SeoDescriptor(
            path=self.path,
            title=self.title,
            description=self.description,
            keywords=self.keywords,
            og_type=OgType.WEBSITE,
            robots=robots,
        )


class StoryPart(BaseModel):
    """One narrative installment, trimmed."""
    title: str = ""
    slug: str = ""
    content: str = ""


class RenderedRoute(BaseModel):
    """A route that was written to disk, kept for the sitemap."""
    path: str
    lastmod: str | None = None
    changefreq: str = "weekly"
    priority: str = "0.8"
    robots: str = DEFAULT_ROBOTS

    @property
    def indexable(self) -> bool:
        return not self.robots.lower().startswith("noindex")


class RenderSummary(BaseModel):
    routes: list[RenderedRoute] = Field(default_factory=list)
    story_routes: int = 0
    ads_txt_has_publisher: bool = False

    @property
    def total(self) -> int:
        return len(self.routes)
