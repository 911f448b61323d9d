"""sitemap.xml for the routes written by a render run."""

import logging
from datetime import date, datetime
from pathlib import Path
from xml.sax.saxutils import escape

from .config import BuildSettings
from .schemas import RenderedRoute

logger = logging.getLogger(__name__)

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def to_date_only(value, today: str | None = None) -> str:
    """YYYY-MM-DD from an ISO-ish timestamp; today's date when unparseable."""
    today = today or date.today().isoformat()
    if not isinstance(value, str) or not value.strip():
        return today
    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        return today


def story_lastmod(story: dict, today: str | None = None) -> str:
    return to_date_only(story.get("updated_at") or story.get("date"), today)


def build_sitemap(routes: list[RenderedRoute], settings: BuildSettings, today: str | None = None) -> str:
    """Sitemap XML listing every indexable route once, in render order."""
    today = today or date.today().isoformat()
    entries = []
    seen = set()
    for route in routes:
        if not route.indexable or route.path in seen:
            continue
        seen.add(route.path)
        loc = escape(settings.canonical_url(route.path), _XML_ENTITIES)
        entries.append(
            "  <url>\n"
            f"    <loc>{loc}</loc>\n"
            f"    <lastmod>{route.lastmod or today}</lastmod>\n"
            f"    <changefreq>{route.changefreq}</changefreq>\n"
            f"    <priority>{route.priority}</priority>\n"
            "  </url>"
        )

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        + "\n".join(entries)
        + "\n</urlset>\n"
    )


def write_sitemap(routes: list[RenderedRoute], settings: BuildSettings, output_dir: Path) -> int:
    """Write sitemap.xml into output_dir; returns the number of URLs listed."""
    xml = build_sitemap(routes, settings)
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "sitemap.xml").write_text(xml, encoding="utf-8")
    count = xml.count("<url>")
    logger.info(f"sitemap.xml written with {count} URLs")
    return count
