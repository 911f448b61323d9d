"""Shared fixtures: a small SPA template, build settings under tmp_path, story rows."""

import json

import pytest

from mahean_site.config import BuildSettings

TEMPLATE = """<!doctype html>
<html lang="bn">
<head>
  <meta charset="UTF-8" />
  <title>Mahean Ahmed</title>
  <meta name="description" content="Default description" />
  <meta property="og:title" content="Default title" />
  <link rel="canonical" href="https://mahean.com/" />
  <script type="application/ld+json">{"@type":"WebSite","name":"Mahean Ahmed"}</script>
  <!-- ADSENSE_VERIFICATION_START -->
  <!-- ADSENSE_VERIFICATION_END -->
</head>
<body>
  <div id="root"></div>
</body>
</html>
"""


@pytest.fixture
def template() -> str:
    return TEMPLATE


@pytest.fixture
def settings(tmp_path) -> BuildSettings:
    dist = tmp_path / "dist"
    data = tmp_path / "data"
    return BuildSettings(
        site_url="https://example.com",
        dist_dir=dist,
        template_path=dist / "index.html",
        stories_path=data / "table-stories.json",
        data_dir=data,
    )


@pytest.fixture
def built_template(settings, template):
    """Write the template where the renderer expects it."""
    settings.dist_dir.mkdir(parents=True, exist_ok=True)
    settings.template_path.write_text(template, encoding="utf-8")
    return settings.template_path


@pytest.fixture
def write_stories(settings):
    """Write rows to the stories table as {"rows": [...]}."""
    def _write(rows):
        settings.stories_path.parent.mkdir(parents=True, exist_ok=True)
        settings.stories_path.write_text(json.dumps({"rows": rows}, ensure_ascii=False), encoding="utf-8")
        return settings.stories_path
    return _write


@pytest.fixture
def multi_part_story() -> dict:
    return {
        "id": "7",
        "slug": "raater-golpo",
        "title": "রাতের গল্প",
        "author": "Mahean Ahmed",
        "category": "Horror",
        "tags": ["ভৌতিক", "রাত"],
        "status": "published",
        "date": "2024-03-01T10:00:00Z",
        "updated_at": "2024-03-05T08:30:00Z",
        "cover_image": "/covers/raat.jpg",
        "parts": [
            {"title": "পর্ব ১", "content": "<p>প্রথম পর্বের শুরু।</p>"},
            {"title": "পর্ব ২", "content": "দ্বিতীয় পর্ব।"},
            {"title": "Epilogue", "slug": "shesh", "content": "শেষ।"},
        ],
    }


ENV_KEYS = (
    "SITE_URL",
    "VITE_SITE_URL",
    "VERCEL_PROJECT_PRODUCTION_URL",
    "VERCEL_URL",
    "VITE_ADSENSE_PUBLISHER_ID",
    "ADSENSE_PUBLISHER_ID",
    "NEXT_PUBLIC_ADSENSE_PUBLISHER_ID",
    "MAX_PARTS_PER_STORY",
    "MAX_STORY_ROUTES",
    "BUILD_MODE",
    "NODE_ENV",
    "REPO_PATH",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Unset build variables; anything env files set during a test is undone afterwards."""
    for key in ENV_KEYS:
        # setenv first so monkeypatch records the key and removes it on teardown
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch
