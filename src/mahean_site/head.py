"""
Rewrite a template's <head> for one route.

Tags are upserted by regex: if a tag matching the selector exists its
value is replaced, otherwise a new tag is inserted right before </head>.
The patterns expect `name`/`property` before `content` (and `rel` before
`href`), which is how the shipped template writes them.
"""

import html
import json
import re
from typing import Any

from .config import SITE_NAME, TWITTER_HANDLE, BuildSettings
from .schemas import OgType, SeoDescriptor

HEAD_CLOSE = "</head>"

_TITLE_PATTERN = re.compile(r"<title>[\s\S]*?</title>", re.IGNORECASE)
_CANONICAL_PATTERN = re.compile(
    r"""<link\s+rel=["']canonical["']\s+href=["'][^"']*["']\s*/?>""", re.IGNORECASE
)
_JSON_LD_PATTERN = re.compile(
    r"""\s*<script\s+type=["']application/ld\+json["'][\s\S]*?</script>""", re.IGNORECASE
)
_SCRIPT_CLOSE = re.compile(r"</script", re.IGNORECASE)


def escape_html(value: Any) -> str:
    return html.escape(str(value if value is not None else ""), quote=True)


def insert_before_head_close(document: str, markup: str) -> str:
    """Insert markup on its own line right before the first </head>."""
    return document.replace(HEAD_CLOSE, f"  {markup}\n{HEAD_CLOSE}", 1)


def upsert_tag(document: str, pattern: re.Pattern, tag: str) -> str:
    """Replace the first tag matching pattern, or insert tag before </head>."""
    if pattern.search(document):
        return pattern.sub(lambda _: tag, document, count=1)
    return insert_before_head_close(document, tag)


def _meta_pattern(attribute: str, key: str) -> re.Pattern:
    return re.compile(
        rf"""<meta\s+{attribute}=["']{re.escape(key)}["']\s+content=["'][^"']*["']\s*/?>""",
        re.IGNORECASE,
    )


def set_title(document: str, title: str) -> str:
    return upsert_tag(document, _TITLE_PATTERN, f"<title>{escape_html(title)}</title>")


def set_meta_name(document: str, name: str, content: str) -> str:
    tag = f'<meta name="{name}" content="{escape_html(content)}" />'
    return upsert_tag(document, _meta_pattern("name", name), tag)


def set_meta_property(document: str, prop: str, content: str) -> str:
    tag = f'<meta property="{prop}" content="{escape_html(content)}" />'
    return upsert_tag(document, _meta_pattern("property", prop), tag)


def set_canonical(document: str, url: str) -> str:
    tag = f'<link rel="canonical" href="{escape_html(url)}" />'
    return upsert_tag(document, _CANONICAL_PATTERN, tag)


def serialize_json_ld(payload: dict) -> str:
    """Compact JSON with </script escaped so it cannot close the tag early."""
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return _SCRIPT_CLOSE.sub(lambda _: "<\\/script", text)


def set_json_ld(document: str, payload: dict | None) -> str:
    """Replace the JSON-LD blocks in <head> with a fresh one; <body> is left alone."""
    if not payload:
        return document
    head_end = document.find(HEAD_CLOSE)
    if head_end < 0:
        return document
    head = _JSON_LD_PATTERN.sub("", document[:head_end])
    script = f'<script type="application/ld+json">{serialize_json_ld(payload)}</script>'
    return insert_before_head_close(head + document[head_end:], script)


def build_seo_html(template: str, seo: SeoDescriptor, settings: BuildSettings) -> str:
    """Return a copy of template with the route's metadata written into <head>."""
    canonical = settings.canonical_url(seo.path)
    image = settings.absolute_url(seo.og_image)
    image_alt = seo.image_alt or seo.title

    doc = set_title(template, seo.title)
    doc = set_canonical(doc, canonical)
    doc = set_meta_name(doc, "description", seo.description)
    doc = set_meta_name(doc, "keywords", seo.keywords)
    doc = set_meta_name(doc, "robots", seo.effective_robots)
    if seo.author:
        doc = set_meta_name(doc, "author", seo.author)

    doc = set_meta_property(doc, "og:type", seo.og_type.value)
    doc = set_meta_property(doc, "og:title", seo.title)
    doc = set_meta_property(doc, "og:description", seo.description)
    doc = set_meta_property(doc, "og:url", canonical)
    doc = set_meta_property(doc, "og:site_name", SITE_NAME)
    doc = set_meta_property(doc, "og:image", image)
    doc = set_meta_property(doc, "og:image:alt", image_alt)

    if seo.og_type is OgType.ARTICLE:
        if seo.author:
            doc = set_meta_property(doc, "article:author", seo.author)
        if seo.published_time:
            doc = set_meta_property(doc, "article:published_time", seo.published_time)
        if seo.modified_time:
            doc = set_meta_property(doc, "article:modified_time", seo.modified_time)

    doc = set_meta_name(doc, "twitter:card", "summary_large_image")
    doc = set_meta_name(doc, "twitter:title", seo.title)
    doc = set_meta_name(doc, "twitter:description", seo.description)
    doc = set_meta_name(doc, "twitter:site", TWITTER_HANDLE)
    doc = set_meta_name(doc, "twitter:image", image)
    doc = set_meta_name(doc, "twitter:image:alt", image_alt)

    return set_json_ld(doc, seo.json_ld)
