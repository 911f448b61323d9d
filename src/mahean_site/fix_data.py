"""
Repair double-encoded Bangla text in the JSON data tables.

Every data/table-*.json file is parsed, each string value is passed
through the mojibake repair, and the file is rewritten only when
something changed.

Usage:
    mahean-fix-encoding [--data-dir PATH] [--dry-run]
"""

import argparse
import json
import logging
import re
import sys
from pathlib import Path

from .config import load_settings
from .mojibake import repair_deep_with_count

logger = logging.getLogger(__name__)

TABLE_FILE_PATTERN = re.compile(r"^table-[a-z0-9_-]+\.json$", re.IGNORECASE)


def find_table_files(data_dir: Path) -> list[Path]:
    """Sorted table-*.json files in data_dir ([] when the directory is missing)."""
    if not data_dir.is_dir():
        return []
    return sorted(p for p in data_dir.iterdir() if p.is_file() and TABLE_FILE_PATTERN.match(p.name))


def repair_file(path: Path, dry_run: bool = False) -> int:
    """Repair one table file. Returns the number of strings changed."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    repaired, changed = repair_deep_with_count(data)
    if changed and not dry_run:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(repaired, f, ensure_ascii=False, indent=2)
    return changed


def repair_data_dir(data_dir: Path, dry_run: bool = False) -> tuple[int, int, int]:
    """
    Repair every table file in data_dir.

    Returns (files_changed, files_scanned, strings_repaired).
    """
    targets = find_table_files(data_dir)
    if not targets:
        logger.info(f"[db:fix-encoding] no table files found in {data_dir}, nothing to do.")
        return 0, 0, 0

    changed_files = 0
    changed_strings = 0
    status = "would update" if dry_run else "updated"

    for path in targets:
        changed = repair_file(path, dry_run=dry_run)
        if changed:
            changed_files += 1
            changed_strings += changed
            logger.info(f"[db:fix-encoding] {status} {path.name}: {changed} string(s) repaired")
        else:
            logger.info(f"[db:fix-encoding] ok {path.name}")

    logger.info(
        f"[db:fix-encoding] done. files changed: {changed_files}/{len(targets)}, "
        f"strings repaired: {changed_strings}"
    )
    return changed_files, len(targets), changed_strings


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Fix double-encoded Bangla text in data/table-*.json")
    parser.add_argument("--data-dir", type=Path, help="Directory holding table-*.json (default: data/)")
    parser.add_argument("--dry-run", action="store_true", help="Report without modifying files")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    try:
        data_dir = args.data_dir or load_settings().data_dir
        repair_data_dir(data_dir, dry_run=args.dry_run)
    except Exception as e:
        logger.error(f"[db:fix-encoding] failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
