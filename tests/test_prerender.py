"""Tests for mahean_site.prerender."""

import dataclasses
import logging
from urllib.parse import quote

import pytest

from mahean_site.paths import route_to_output_file
from mahean_site.prerender import (
    TemplateNotFoundError,
    load_static_routes,
    main,
    plan_routes,
    read_template,
    render_site,
    write_route_html,
)
from mahean_site.schemas import NOINDEX_ROBOTS, StaticRoute

ABOUT = StaticRoute(path="/about", title="About", description="About me")


def _story(story_id: str, parts: int = 1, **extra) -> dict:
    row = {
        "id": story_id,
        "title": f"Story {story_id}",
        "parts": [{"title": f"পর্ব {i}", "content": f"text {i}"} for i in range(1, parts + 1)],
    }
    row.update(extra)
    return row


class TestStaticRoutes:

    def test_packaged_table(self):
        routes = load_static_routes()
        paths = [route.path for route in routes]
        assert paths[0] == "/"
        for path in ["/stories", "/about", "/contact", "/privacy", "/terms", "/disclaimer"]:
            assert path in paths
        assert len(paths) == len(set(paths))

    def test_auth_pages_are_noindex(self):
        routes = {route.path: route for route in load_static_routes()}
        assert routes["/admin"].to_seo().robots == NOINDEX_ROBOTS

    def test_custom_table(self, tmp_path):
        path = tmp_path / "routes.yml"
        path.write_text("- path: /x\n  title: X\n  description: x page\n", encoding="utf-8")
        assert load_static_routes(path) == [StaticRoute(path="/x", title="X", description="x page")]


class TestOutputFile:

    def test_root(self, tmp_path):
        assert route_to_output_file("/", tmp_path) == tmp_path / "index.html"

    def test_nested_with_trailing_slash(self, tmp_path):
        assert route_to_output_file("/a/b/", tmp_path) == tmp_path / "a" / "b" / "index.html"

    @pytest.mark.parametrize("path", ["about", "/a//b", "/../etc", "/a/./b"])
    def test_rejected_paths(self, tmp_path, path):
        with pytest.raises(ValueError):
            route_to_output_file(path, tmp_path)

    def test_write_creates_directories(self, tmp_path):
        written = write_route_html("/stories/x/part/1", "<html></html>", tmp_path)
        assert written.read_text(encoding="utf-8") == "<html></html>"


class TestPlanRoutes:

    def test_static_then_stories(self, settings, multi_part_story):
        planned = plan_routes([ABOUT], [multi_part_story], settings)
        assert [route.seo.path for route in planned] == [
            "/about",
            "/stories/raater-golpo",
            "/stories/raater-golpo/part/part-01",
            "/stories/raater-golpo/part/part-02",
            "/stories/raater-golpo/part/epilogue",
        ]
        assert [route.is_story for route in planned] == [False, True, True, True, True]

    def test_lastmod_from_story(self, settings, multi_part_story):
        planned = plan_routes([], [multi_part_story], settings)
        assert planned[0].meta.lastmod == "2024-03-05"

    def test_duplicate_paths_rendered_once(self, settings):
        planned = plan_routes([ABOUT, ABOUT], [_story("1"), _story("1")], settings)
        paths = [route.seo.path for route in planned]
        assert len(paths) == len(set(paths)) == 3

    def test_non_public_stories_skipped(self, settings):
        planned = plan_routes([], [_story("1", status="draft"), _story("2")], settings)
        assert [route.seo.path for route in planned] == ["/stories/story-2", "/stories/story-2/part/part-01"]

    def test_landing_page_before_parts(self, settings):
        planned = plan_routes([], [_story("1", parts=2)], settings)
        assert planned[0].seo.path == "/stories/story-1"
        assert planned[0].seo.title == "Story 1 - গল্প | Mahean Ahmed"
        assert planned[0].meta.changefreq == "weekly"
        assert planned[0].meta.priority == "0.8"

    def test_landing_page_counts_against_cap(self, settings, caplog):
        capped = dataclasses.replace(settings, max_story_routes=4)
        stories = [_story("1", parts=2), _story("2", parts=2), _story("3", parts=2)]
        with caplog.at_level(logging.WARNING):
            planned = plan_routes([ABOUT], stories, capped)
        assert [route.seo.path for route in planned] == [
            "/about",
            "/stories/story-1",
            "/stories/story-1/part/part-01",
            "/stories/story-1/part/part-02",
            "/stories/story-2",
        ]
        assert "MAX_STORY_ROUTES=4" in caplog.text

    def test_static_routes_not_counted_against_cap(self, settings):
        capped = dataclasses.replace(settings, max_story_routes=1)
        planned = plan_routes([ABOUT], [_story("1")], capped)
        assert [route.seo.path for route in planned] == ["/about", "/stories/story-1"]


class TestReadTemplate:

    def test_missing_template(self, settings):
        with pytest.raises(TemplateNotFoundError):
            read_template(settings)

    def test_template_not_found_is_file_not_found(self):
        assert issubclass(TemplateNotFoundError, FileNotFoundError)

    def test_verification_written_back(self, settings, built_template):
        configured = dataclasses.replace(settings, adsense_publisher_id="ca-pub-1234567890")
        template = read_template(configured)
        assert 'content="ca-pub-1234567890"' in template
        assert built_template.read_text(encoding="utf-8") == template


class TestRenderSite:

    def test_static_routes_only_without_stories(self, settings, built_template, caplog):
        with caplog.at_level(logging.INFO):
            summary = render_site(settings, static_routes=[ABOUT])
        assert summary.total == 1
        assert summary.story_routes == 0
        assert (settings.dist_dir / "about" / "index.html").is_file()
        assert "[prerender] generated 1 HTML routes (0 story routes)." in caplog.text

    def test_minimal_story(self, settings, built_template, write_stories):
        write_stories([{"id": "42", "title": "গল্প", "parts": [{"title": "", "content": "text"}]}])
        summary = render_site(settings, static_routes=[])

        encoded = quote("গল্প", safe="!~*'()")
        assert [route.path for route in summary.routes] == [f"/stories/{encoded}", f"/stories/{encoded}/part/1"]
        assert summary.story_routes == 2
        output = settings.dist_dir / "stories" / encoded / "part" / "1" / "index.html"
        html = output.read_text(encoding="utf-8")
        assert "<title>গল্প - Part 01 | Mahean Ahmed</title>" in html
        assert '<meta property="og:type" content="article" />' in html
        assert f'<link rel="canonical" href="https://example.com/stories/{encoded}/part/1" />' in html

    def test_story_landing_page_written(self, settings, built_template, write_stories, multi_part_story):
        write_stories([multi_part_story])
        summary = render_site(settings, static_routes=[])

        html = (settings.dist_dir / "stories" / "raater-golpo" / "index.html").read_text(encoding="utf-8")
        assert "<title>রাতের গল্প - গল্প | Mahean Ahmed</title>" in html
        assert '<link rel="canonical" href="https://example.com/stories/raater-golpo" />' in html
        sitemap = (settings.dist_dir / "sitemap.xml").read_text(encoding="utf-8")
        assert "<loc>https://example.com/stories/raater-golpo</loc>" in sitemap
        assert summary.story_routes == 4

    def test_write_failure_aborts_run(self, settings, built_template):
        contact = StaticRoute(path="/contact", title="Contact", description="Contact me")
        # A plain file where the /about directory has to go
        (settings.dist_dir / "about").write_text("", encoding="utf-8")

        with pytest.raises(OSError):
            render_site(settings, static_routes=[ABOUT, contact])
        assert not (settings.dist_dir / "contact").exists()
        assert not (settings.dist_dir / "sitemap.xml").exists()

    def test_writes_ads_txt_and_sitemap(self, settings, built_template):
        summary = render_site(settings, static_routes=[ABOUT])
        assert summary.ads_txt_has_publisher is False
        assert (settings.dist_dir / "ads.txt").read_text(encoding="utf-8").startswith("#")
        sitemap = (settings.dist_dir / "sitemap.xml").read_text(encoding="utf-8")
        assert "<loc>https://example.com/about</loc>" in sitemap

    def test_sitemap_optional(self, settings, built_template):
        render_site(settings, static_routes=[ABOUT], sitemap=False)
        assert not (settings.dist_dir / "sitemap.xml").exists()

    def test_rerun_is_stable(self, settings, built_template, write_stories, multi_part_story):
        write_stories([multi_part_story])
        render_site(settings, static_routes=[ABOUT])
        output = settings.dist_dir / "stories" / "raater-golpo" / "part" / "epilogue" / "index.html"
        first = output.read_text(encoding="utf-8")
        render_site(settings, static_routes=[ABOUT])
        assert output.read_text(encoding="utf-8") == first

    def test_missing_template_raises(self, settings):
        with pytest.raises(TemplateNotFoundError):
            render_site(settings, static_routes=[ABOUT])


class TestMain:

    def test_missing_template_exit_code(self, tmp_path, clean_env):
        assert main(["--root", str(tmp_path), "--no-sitemap"]) == 1

    def test_write_failure_exit_code(self, tmp_path, template, clean_env):
        dist = tmp_path / "dist"
        dist.mkdir()
        (dist / "index.html").write_text(template, encoding="utf-8")
        (dist / "about").write_text("", encoding="utf-8")
        assert main(["--root", str(tmp_path)]) == 1

    def test_successful_run(self, tmp_path, template, clean_env):
        dist = tmp_path / "dist"
        dist.mkdir()
        (dist / "index.html").write_text(template, encoding="utf-8")
        assert main(["--root", str(tmp_path)]) == 0
        assert (dist / "about" / "index.html").is_file()
        assert (dist / "index.html").read_text(encoding="utf-8").count("<title>") == 1
