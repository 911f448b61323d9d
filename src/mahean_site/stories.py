"""
Story Rows -> landing-page and per-part SEO descriptors.

Story Rows are plain dicts read from the data layer's JSON export. Older
rows carry structured fields (slug, parts, status) inside the excerpt,
wrapped in sentinel markers:

    __MAHEAN_META__:{"slug": "...", "parts": [...]}:__MAHEAN_META_END__<excerpt text>

Rows are never mutated; every derived value is built from a repaired copy.
"""

import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote

from .config import DEFAULT_OG_IMAGE, SITE_NAME, BuildSettings
from .mojibake import repair_deep
from .schemas import OgType, SeoDescriptor, StoryPart
from .text import normalize_part_title, normalize_plain_text, slugify, truncate

logger = logging.getLogger(__name__)

LEGACY_META_START = "__MAHEAN_META__:"
LEGACY_META_END = ":__MAHEAN_META_END__"

PUBLIC_STATUSES = {"published", "completed", "ongoing"}
PLACEHOLDER_DESCRIPTION = "বাংলা গল্প পড়ুন - Mahean Ahmed"
DEFAULT_STORY_TITLE = "Bangla Story"

# encodeURIComponent leaves these unescaped as well
_SEGMENT_SAFE = "!~*'()"


# =============================================================================
# LEGACY EMBEDDED METADATA
# =============================================================================

def parse_legacy_meta(excerpt) -> dict | None:
    """Return the JSON object embedded in an excerpt, or None if absent/malformed."""
    raw = excerpt if isinstance(excerpt, str) else ""
    if not raw.startswith(LEGACY_META_START):
        return None
    end = raw.find(LEGACY_META_END)
    if end < 0:
        return None
    payload = raw[len(LEGACY_META_START):end]
    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def normalize_excerpt(excerpt) -> str:
    """Excerpt text with any embedded metadata block removed."""
    raw = excerpt if isinstance(excerpt, str) else ""
    if raw.startswith(LEGACY_META_START):
        end = raw.find(LEGACY_META_END)
        if end >= 0:
            return raw[end + len(LEGACY_META_END):].strip()
    return raw.strip()


def _string_field(source: dict | None, key: str) -> str:
    value = (source or {}).get(key)
    return value.strip() if isinstance(value, str) else ""


# =============================================================================
# VISIBILITY AND URL SEGMENTS
# =============================================================================

def is_public_story(story: dict) -> bool:
    """
    Fail-open visibility check.

    A story is hidden only when it has a non-empty status outside
    published/completed/ongoing. Rows without a status of their own fall
    back to the status in legacy metadata.
    """
    status = _string_field(story, "status")
    if not status:
        status = _string_field(parse_legacy_meta(story.get("excerpt")), "status")
    if not status:
        return True
    return status.lower() in PUBLIC_STATUSES


def _usable_segment(value: str) -> str:
    # "." and ".." would escape the route directory
    return "" if value.strip(".") == "" else value


def to_story_segment(story: dict) -> str | None:
    """
    URL segment identifying a story.

    Precedence: explicit slug, slug from legacy metadata, slugified
    title, raw id. None when all of them are empty.
    """
    meta = parse_legacy_meta(story.get("excerpt"))
    candidates = (
        _string_field(story, "slug"),
        _string_field(meta, "slug"),
        slugify(story.get("title") if isinstance(story.get("title"), str) else ""),
        str(story.get("id") if story.get("id") is not None else "").strip(),
    )
    for candidate in candidates:
        segment = _usable_segment(candidate)
        if segment:
            return segment
    return None


def encode_segment(segment: str) -> str:
    return quote(segment, safe=_SEGMENT_SAFE)


# =============================================================================
# PARTS
# =============================================================================

def _to_part(raw: Any) -> StoryPart | None:
    if not isinstance(raw, dict):
        return None
    part = StoryPart(
        title=_string_field(raw, "title"),
        slug=_string_field(raw, "slug"),
        content=_string_field(raw, "content"),
    )
    if not (part.title or part.slug or part.content):
        return None
    return part


def to_story_parts(story: dict) -> list[StoryPart]:
    """
    Resolve a story's parts.

    Precedence: the row's parts[], parts[] from legacy metadata, then a
    single synthetic part from content or excerpt. Callers pass a row
    that has already been through repair_deep, so the excerpt is the
    repaired one.
    """
    meta = parse_legacy_meta(story.get("excerpt"))
    from_row = story.get("parts") if isinstance(story.get("parts"), list) else []
    from_meta = (meta or {}).get("parts") if isinstance((meta or {}).get("parts"), list) else []

    for candidate in (from_row, from_meta):
        parts = [p for p in (_to_part(raw) for raw in candidate) if p is not None]
        if parts:
            return parts

    content = _string_field(story, "content") or normalize_excerpt(story.get("excerpt"))
    return [StoryPart(content=content)]


def to_part_segment(part: StoryPart, index: int) -> str:
    """
    URL segment for a part: slugified title, then custom slug, then index.

    Only a title supplied by the row counts here; the positional
    "Part 01" label is for display and does not become a segment.
    """
    from_title = slugify(normalize_part_title(part.title, index)) if part.title else ""
    return from_title or slugify(part.slug) or str(index + 1)


# =============================================================================
# DESCRIPTORS
# =============================================================================

def _tags(story: dict) -> list[str]:
    tags = story.get("tags")
    if not isinstance(tags, list):
        return []
    return [tag.strip() for tag in tags if isinstance(tag, str) and tag.strip()]


def _first_text(*values) -> str:
    for value in values:
        if value:
            return value
    return ""


def _optional_str(value) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _article_json_ld(
    headline: str,
    description: str,
    url: str,
    author: str,
    image_url: str,
    published: str | None,
    modified: str | None,
) -> dict:
    json_ld = {
        "@context": "https://schema.org",
        "@type": "Article",
        "headline": headline,
        "description": description,
        "url": url,
        "datePublished": published,
        "dateModified": modified,
        "author": {"@type": "Person", "name": author},
        "image": [image_url],
    }
    return {key: value for key, value in json_ld.items() if value is not None}


def _story_image(story: dict) -> str:
    return _optional_str(story.get("cover_image")) or _optional_str(story.get("image")) or DEFAULT_OG_IMAGE


def to_story_seo(story: dict, settings: BuildSettings) -> SeoDescriptor | None:
    """
    Article descriptor for a story's landing page, /stories/<segment>.

    None when the story has no usable URL segment.
    """
    story = repair_deep(story)
    segment = to_story_segment(story)
    if not segment:
        return None

    story_title = normalize_plain_text(story.get("title"))
    author = normalize_plain_text(story.get("author")) or SITE_NAME
    image = _story_image(story)
    published = _optional_str(story.get("date"))
    modified = _optional_str(story.get("updated_at")) or published
    description = _first_text(
        truncate(normalize_excerpt(story.get("excerpt"))),
        truncate(story.get("content")),
        PLACEHOLDER_DESCRIPTION,
    )
    keywords = ", ".join(
        value for value in [*_tags(story), author, "Bangla Story", "Bengali Story"] if value
    )

    path = f"/stories/{encode_segment(segment)}"
    title = f"{story_title} - গল্প | {SITE_NAME}" if story_title else f"বাংলা গল্প | {SITE_NAME}"
    return SeoDescriptor(
        path=path,
        title=title,
        description=description,
        keywords=keywords,
        og_type=OgType.ARTICLE,
        og_image=image,
        image_alt=story_title or "Story cover image",
        author=author,
        published_time=published,
        modified_time=modified,
        json_ld=_article_json_ld(
            story_title or DEFAULT_STORY_TITLE,
            description,
            settings.canonical_url(path),
            author,
            settings.absolute_url(image),
            published,
            modified,
        ),
    )


def to_story_part_seos(story: dict, settings: BuildSettings) -> list[SeoDescriptor]:
    """
    One article descriptor per part of a story.

    Returns an empty list when the story has no usable URL segment.
    At most settings.max_parts_per_story parts are considered.
    """
    story = repair_deep(story)
    segment = to_story_segment(story)
    if not segment:
        logger.debug(f"Skipping story without slug, title or id: {story.get('id')!r}")
        return []

    story_title = normalize_plain_text(story.get("title"))
    author = normalize_plain_text(story.get("author")) or SITE_NAME
    category = normalize_plain_text(story.get("category"))
    tags = _tags(story)
    image = _story_image(story)
    published = _optional_str(story.get("date"))
    modified = _optional_str(story.get("updated_at")) or published
    excerpt = truncate(normalize_excerpt(story.get("excerpt")))
    story_content = truncate(story.get("content"))

    story_path = f"/stories/{encode_segment(segment)}"
    parts = to_story_parts(story)[:settings.max_parts_per_story]

    descriptors = []
    for index, part in enumerate(parts):
        label = normalize_part_title(part.title, index)
        headline = f"{story_title} - {label}" if story_title else label
        path = f"{story_path}/part/{encode_segment(to_part_segment(part, index))}"
        description = _first_text(truncate(part.content), excerpt, story_content, PLACEHOLDER_DESCRIPTION)
        keywords = ", ".join(
            value for value in [category, *tags, author, "Bangla Story", label] if value
        )

        descriptors.append(SeoDescriptor(
            path=path,
            title=f"{headline} | {SITE_NAME}",
            description=description,
            keywords=keywords,
            og_type=OgType.ARTICLE,
            og_image=image,
            image_alt=story_title or "Story cover image",
            author=author,
            published_time=published,
            modified_time=modified,
            json_ld=_article_json_ld(
                headline,
                description,
                settings.canonical_url(path),
                author,
                settings.absolute_url(image),
                published,
                modified,
            ),
        ))

    return descriptors


# =============================================================================
# INPUT
# =============================================================================

def load_story_rows(path: Path) -> list[dict]:
    """
    Read story rows from a JSON export ({"rows": [...]} or a bare list).

    A missing file or an unreadable/malformed one yields [] with a warning;
    the build carries on with static routes only.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning(f"Stories table not found at {path}, rendering static routes only")
        return []
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read stories table {path}: {e}")
        return []

    if isinstance(data, dict):
        data = data.get("rows")
    if not isinstance(data, list):
        logger.warning(f"Stories table {path} has no rows array")
        return []

    rows = [row for row in data if isinstance(row, dict)]
    logger.info(f"Loaded {len(rows)} story rows from {path}")
    return rows
