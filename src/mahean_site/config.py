"""Build configuration: env files, site URL, caps and paths."""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

DEFAULT_SITE_URL = "https://mahean.com"
SITE_NAME = "Mahean Ahmed"
TWITTER_HANDLE = "@mahean_ahmed"
DEFAULT_OG_IMAGE = "/mahean-3.jpg"

DEFAULT_MAX_PARTS_PER_STORY = 200
DEFAULT_MAX_STORY_ROUTES = 5000

SITE_URL_ENV_KEYS = ("SITE_URL", "VITE_SITE_URL", "VERCEL_PROJECT_PRODUCTION_URL", "VERCEL_URL")
ADSENSE_ENV_KEYS = ("VITE_ADSENSE_PUBLISHER_ID", "ADSENSE_PUBLISHER_ID", "NEXT_PUBLIC_ADSENSE_PUBLISHER_ID")

_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def _discover_root_path() -> Path:
    """REPO_PATH env var if set, else the current directory."""
    if env_path := os.environ.get("REPO_PATH"):
        return Path(env_path)
    return Path.cwd()


def build_mode() -> str:
    mode = os.environ.get("BUILD_MODE") or os.environ.get("NODE_ENV")
    return "development" if mode == "development" else "production"


def load_env_files(root: Path, mode: str | None = None) -> dict[str, str]:
    """
    Load .env files into os.environ without overriding existing variables.

    Files are read in order .env, .env.local, .env.<mode>, .env.<mode>.local;
    later files win over earlier ones. Returns the variables applied.
    """
    mode = mode or build_mode()
    resolved: dict[str, str] = {}
    for name in (".env", ".env.local", f".env.{mode}", f".env.{mode}.local"):
        path = root / name
        if not path.is_file():
            continue
        for key, value in dotenv_values(path).items():
            if value is not None:
                resolved[key] = value
        logger.debug(f"Loaded env file {path}")

    applied = {}
    for key, value in resolved.items():
        if key not in os.environ:
            os.environ[key] = value
            applied[key] = value
    return applied


def pick_first_env(*keys: str) -> str:
    """First non-blank value among the given environment variables."""
    for key in keys:
        value = os.environ.get(key)
        if value and value.strip():
            return value.strip()
    return ""


def normalize_base_url(value: str) -> str:
    """Add https:// when no scheme is given and drop trailing slashes."""
    trimmed = (value or "").strip()
    if not trimmed:
        return ""
    if not _SCHEME.match(trimmed):
        trimmed = f"https://{trimmed}"
    return trimmed.rstrip("/")


def _positive_int_env(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning(f"{key}={raw!r} is not an integer, using {default}")
        return default
    if value < 1:
        logger.warning(f"{key}={raw!r} must be positive, using {default}")
        return default
    return value


def normalize_adsense_publisher_id(value: str) -> str:
    """
    Normalize a publisher id to "ca-pub-<digits>".

    Accepts "ca-pub-N", "pub-N" or bare digits (6+ digits); anything else
    returns "".
    """
    cleaned = (value or "").strip()
    if not cleaned:
        return ""
    if re.fullmatch(r"ca-pub-\d{6,}", cleaned, re.IGNORECASE):
        return cleaned.lower()
    if re.fullmatch(r"pub-\d{6,}", cleaned, re.IGNORECASE):
        return f"ca-{cleaned.lower()}"
    if re.fullmatch(r"\d{6,}", cleaned):
        return f"ca-pub-{cleaned}"
    return ""


@dataclass(frozen=True)
class BuildSettings:
    site_url: str
    dist_dir: Path
    template_path: Path
    stories_path: Path
    data_dir: Path
    max_parts_per_story: int = DEFAULT_MAX_PARTS_PER_STORY
    max_story_routes: int = DEFAULT_MAX_STORY_ROUTES
    adsense_publisher_id: str = ""

    def absolute_url(self, value: str | None) -> str:
        """
        Resolve an image/link reference against the site URL.

        http(s) URLs are kept, /paths get the base URL prefixed, bare
        names get base URL + "/". Empty values use the default image.
        """
        if not value:
            value = DEFAULT_OG_IMAGE
        if _SCHEME.match(value):
            return value
        if value.startswith("/"):
            return f"{self.site_url}{value}"
        return f"{self.site_url}/{value}"

    def canonical_url(self, path: str) -> str:
        """Canonical URL for a route; "/" maps to the bare base URL."""
        if path == "/":
            return self.site_url
        return f"{self.site_url}{path}"


def load_settings(
    root: Path | None = None,
    dist_dir: Path | None = None,
    stories_path: Path | None = None,
    load_env: bool = True,
) -> BuildSettings:
    """
    Gather settings from env files, the environment and CLI overrides.

    Args:
        root: Project root (defaults to REPO_PATH or the current directory)
        dist_dir: Build output directory holding the template
        stories_path: JSON file with {"rows": [...]} story rows
        load_env: Read .env files before consulting the environment
    """
    root = root or _discover_root_path()
    if load_env:
        load_env_files(root)

    dist = dist_dir or root / "dist"
    data_dir = root / "data"
    site_url = normalize_base_url(pick_first_env(*SITE_URL_ENV_KEYS)) or DEFAULT_SITE_URL

    return BuildSettings(
        site_url=site_url,
        dist_dir=dist,
        template_path=dist / "index.html",
        stories_path=stories_path or data_dir / "table-stories.json",
        data_dir=data_dir,
        max_parts_per_story=_positive_int_env("MAX_PARTS_PER_STORY", DEFAULT_MAX_PARTS_PER_STORY),
        max_story_routes=_positive_int_env("MAX_STORY_ROUTES", DEFAULT_MAX_STORY_ROUTES),
        adsense_publisher_id=normalize_adsense_publisher_id(pick_first_env(*ADSENSE_ENV_KEYS)),
    )
