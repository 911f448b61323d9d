"""
AdSense wiring for the static build.

- The template's verification block is filled in for the configured publisher
- ads.txt is written next to the rendered pages
- `mahean-adsense-check` verifies a finished build is ready for review
"""

import argparse
import logging
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .config import load_settings
from .paths import route_to_output_file

logger = logging.getLogger(__name__)

ADSENSE_SELLER_ID = "f08c47fec0942fa0"
VERIFICATION_START = "<!-- ADSENSE_VERIFICATION_START -->"
VERIFICATION_END = "<!-- ADSENSE_VERIFICATION_END -->"
LOADER_URL = "https://pagead2.googlesyndication.com/pagead/js/adsbygoogle.js"

REQUIRED_LEGAL_ROUTES = ["/about", "/contact", "/privacy", "/terms", "/disclaimer"]

_BLOCK_PATTERN = re.compile(
    re.escape(VERIFICATION_START) + r"[\s\S]*?" + re.escape(VERIFICATION_END), re.IGNORECASE
)


def build_verification_block(publisher_id: str) -> str:
    """Account meta + loader script, or an empty block when no publisher is set."""
    if not publisher_id:
        return f"{VERIFICATION_START}\n  {VERIFICATION_END}"
    return "\n".join([
        VERIFICATION_START,
        f'  <meta name="google-adsense-account" content="{publisher_id}" />',
        '  <script id="google-adsense-script" async',
        f'    src="{LOADER_URL}?client={publisher_id}"',
        '    crossorigin="anonymous"></script>',
        f"  {VERIFICATION_END}",
    ])


def apply_verification(template: str, publisher_id: str) -> str:
    """Fill the verification block; templates without one are returned unchanged."""
    if not _BLOCK_PATTERN.search(template):
        return template
    block = build_verification_block(publisher_id)
    return _BLOCK_PATTERN.sub(lambda _: block, template, count=1)


def ads_txt_content(publisher_id: str) -> str:
    publisher = re.sub(r"^ca-", "", publisher_id, flags=re.IGNORECASE) if publisher_id else ""
    if publisher:
        return f"google.com, {publisher}, DIRECT, {ADSENSE_SELLER_ID}\n"
    return "\n".join([
        "# Google AdSense ads.txt",
        "# Configure VITE_ADSENSE_PUBLISHER_ID to auto-generate this file during build.",
        "# Example:",
        f"# google.com, pub-XXXXXXXXXXXXXXXX, DIRECT, {ADSENSE_SELLER_ID}",
        "",
    ])


def write_ads_txt(output_dir: Path, publisher_id: str) -> bool:
    """Write ads.txt; returns True when it carries a real publisher record."""
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "ads.txt").write_text(ads_txt_content(publisher_id), encoding="utf-8")
    return bool(publisher_id)


# =============================================================================
# READINESS CHECK
# =============================================================================

@dataclass
class ReadinessReport:
    passed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def _read_if_exists(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""


def check_readiness(dist_dir: Path) -> ReadinessReport:
    """Inspect a built site for the things AdSense review looks at."""
    report = ReadinessReport()

    index_html = _read_if_exists(dist_dir / "index.html")
    if not index_html:
        report.failed.append(f"{dist_dir / 'index.html'} not found. Run the build first.")
        return report

    account = re.search(
        r"""<meta\s+name=["']google-adsense-account["']\s+content=["'](ca-pub-\d{6,})["'][^>]*>""",
        index_html,
        re.IGNORECASE,
    )
    if account:
        report.passed.append(f"AdSense account meta found ({account.group(1)}).")
    else:
        report.failed.append("AdSense account meta not found with a valid ca-pub id in index.html.")

    if re.search(re.escape(LOADER_URL) + r"\?client=ca-pub-\d{6,}", index_html, re.IGNORECASE):
        report.passed.append("AdSense script tag found with a valid client id.")
    else:
        report.failed.append("AdSense script tag is missing or does not include a valid client id.")

    ads_txt = _read_if_exists(dist_dir / "ads.txt")
    record = re.compile(
        rf"^google\.com,\s*pub-\d{{6,}},\s*DIRECT,\s*{ADSENSE_SELLER_ID}$",
        re.IGNORECASE | re.MULTILINE,
    )
    if record.search(ads_txt):
        report.passed.append("ads.txt contains a valid AdSense record.")
    else:
        report.failed.append(
            f"ads.txt does not contain a valid AdSense record (google.com, pub-..., DIRECT, {ADSENSE_SELLER_ID})."
        )

    for route in REQUIRED_LEGAL_ROUTES:
        if _read_if_exists(route_to_output_file(route, dist_dir)):
            report.passed.append(f"Legal page exists: {route}")
        else:
            report.failed.append(f"Missing legal page output: {route}")

    robots_txt = _read_if_exists(dist_dir / "robots.txt")
    if not robots_txt:
        report.warnings.append("robots.txt not found.")
        return report

    if re.search(r"User-agent:\s*\*\s*[\s\S]*?Disallow:\s*/\s*$", robots_txt, re.IGNORECASE | re.MULTILINE):
        report.failed.append("robots.txt blocks all crawlers (Disallow: /).")
    else:
        report.passed.append("robots.txt does not block all crawlers.")

    if re.search(
        r"User-agent:\s*Mediapartners-Google[\s\S]*?Disallow:\s*/\s*$", robots_txt, re.IGNORECASE | re.MULTILINE
    ):
        report.failed.append("robots.txt blocks Mediapartners-Google.")
    else:
        report.passed.append("robots.txt does not block Mediapartners-Google.")

    return report


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check a built site for AdSense readiness")
    parser.add_argument("--dist", type=Path, help="Build output directory (default: dist/)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    dist_dir = args.dist or load_settings().dist_dir
    report = check_readiness(dist_dir)

    for message in report.passed:
        logger.info(f"PASS  {message}")
    for message in report.failed:
        logger.error(f"FAIL  {message}")
    for message in report.warnings:
        logger.warning(f"WARN  {message}")

    if not report.ok:
        logger.error("AdSense readiness check failed.")
        return 1
    logger.info("AdSense readiness check passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
