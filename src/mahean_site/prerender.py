"""
Pre-render public routes into standalone HTML files for crawlers.

Reads the built SPA template (dist/index.html) and the stories table
once, derives one SeoDescriptor per route, and writes
dist/<route>/index.html for each. Also refreshes ads.txt and sitemap.xml.

Usage:
    mahean-prerender [--root PATH] [--dist PATH] [--stories PATH]
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from importlib import resources
from pathlib import Path

import yaml

from .adsense import apply_verification, write_ads_txt
from .config import BuildSettings, load_settings
from .head import build_seo_html
from .paths import route_to_output_file
from .schemas import RenderedRoute, RenderSummary, SeoDescriptor, StaticRoute
from .sitemap import story_lastmod, write_sitemap
from .stories import is_public_story, load_story_rows, to_story_part_seos, to_story_seo

logger = logging.getLogger(__name__)


class TemplateNotFoundError(FileNotFoundError):
    """The SPA template every route is rendered from is missing."""


@dataclass
class PlannedRoute:
    seo: SeoDescriptor
    meta: RenderedRoute
    is_story: bool = False


def load_static_routes(path: Path | None = None) -> list[StaticRoute]:
    """Load the static route table (the packaged routes.yml by default)."""
    if path is None:
        content = resources.files("mahean_site").joinpath("data/routes.yml").read_text(encoding="utf-8")
    else:
        content = path.read_text(encoding="utf-8")
    return [StaticRoute(**entry) for entry in yaml.safe_load(content) or []]


def write_route_html(route_path: str, html: str, output_dir: Path) -> Path:
    """Write one route's HTML, creating directories as needed. Errors propagate."""
    file_path = route_to_output_file(route_path, output_dir)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(html, encoding="utf-8")
    return file_path


def read_template(settings: BuildSettings) -> str:
    """
    Read the template and fill its AdSense block.

    The updated template is written back so the root page served by the
    SPA carries the same verification tags.
    """
    try:
        template = settings.template_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise TemplateNotFoundError(f"Template not found: {settings.template_path}") from e

    updated = apply_verification(template, settings.adsense_publisher_id)
    if updated != template:
        settings.template_path.write_text(updated, encoding="utf-8")
    return updated


def plan_routes(
    static_routes: list[StaticRoute],
    stories: list[dict],
    settings: BuildSettings,
) -> list[PlannedRoute]:
    """
    Every route to render, deduplicated by path.

    Each public story contributes its landing page followed by its parts.
    Story routes stop for good once settings.max_story_routes is reached;
    later stories and parts are skipped entirely.
    """
    planned: list[PlannedRoute] = []
    seen: set[str] = set()

    for route in static_routes:
        seo = route.to_seo()
        if seo.path in seen:
            continue
        seen.add(seo.path)
        planned.append(PlannedRoute(
            seo=seo,
            meta=RenderedRoute(
                path=seo.path,
                changefreq=route.changefreq,
                priority=route.priority,
                robots=seo.effective_robots,
            ),
        ))

    story_routes = 0
    for story in stories:
        if story_routes >= settings.max_story_routes:
            logger.warning(f"MAX_STORY_ROUTES={settings.max_story_routes} reached, skipping remaining stories")
            break
        if not is_public_story(story):
            continue

        lastmod = story_lastmod(story)
        landing = to_story_seo(story, settings)
        story_seos = [landing] if landing else []
        story_seos.extend(to_story_part_seos(story, settings))
        for seo in story_seos:
            if story_routes >= settings.max_story_routes:
                break
            if seo.path in seen:
                continue
            seen.add(seo.path)
            story_routes += 1
            planned.append(PlannedRoute(
                seo=seo,
                meta=RenderedRoute(path=seo.path, lastmod=lastmod, robots=seo.effective_robots),
                is_story=True,
            ))

    return planned


def render_site(
    settings: BuildSettings,
    static_routes: list[StaticRoute] | None = None,
    sitemap: bool = True,
) -> RenderSummary:
    """Run one full pre-render pass. Raises TemplateNotFoundError without a template."""
    template = read_template(settings)
    stories = load_story_rows(settings.stories_path)
    if static_routes is None:
        static_routes = load_static_routes()

    planned = plan_routes(static_routes, stories, settings)
    summary = RenderSummary()
    for route in planned:
        html = build_seo_html(template, route.seo, settings)
        write_route_html(route.seo.path, html, settings.dist_dir)
        summary.routes.append(route.meta)
        if route.is_story:
            summary.story_routes += 1

    summary.ads_txt_has_publisher = write_ads_txt(settings.dist_dir, settings.adsense_publisher_id)
    if sitemap:
        write_sitemap(summary.routes, settings, settings.dist_dir)

    logger.info(f"[prerender] generated {summary.total} HTML routes ({summary.story_routes} story routes).")
    if summary.ads_txt_has_publisher:
        logger.info("[prerender] ads.txt generated with AdSense publisher id.")
    else:
        logger.info("[prerender] ads.txt generated with placeholder comments.")
    return summary


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Pre-render public routes with SEO metadata")
    parser.add_argument("--root", type=Path, help="Project root (default: REPO_PATH or cwd)")
    parser.add_argument("--dist", type=Path, help="Build output directory holding index.html")
    parser.add_argument("--stories", type=Path, help="Stories table JSON (default: data/table-stories.json)")
    parser.add_argument("--no-sitemap", action="store_true", help="Skip writing sitemap.xml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        settings = load_settings(root=args.root, dist_dir=args.dist, stories_path=args.stories)
        render_site(settings, sitemap=not args.no_sitemap)
    except Exception as e:
        logger.error(f"[prerender] failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
