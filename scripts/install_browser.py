#!/usr/bin/env python3
"""
Browser Provisioning
====================

Ensures the Playwright Chromium build is present in the browser cache
directory, installing it when the cache is missing or empty.

Usage:
    python scripts/install_browser.py [--with-deps]
"""

import argparse
import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.config.logging import get_logger

logger = get_logger("install_browser")


def browser_cache_path() -> Path:
    """Directory Playwright installs browsers into."""
    override = os.environ.get("PLAYWRIGHT_BROWSERS_PATH")
    if override and override != "0":
        return Path(override)
    return Path.home() / ".cache" / "ms-playwright"


def installed_builds(cache_path: Path) -> list[str]:
    if not cache_path.is_dir():
        return []
    return sorted(p.name for p in cache_path.iterdir() if p.name.startswith("chromium"))


def install_chromium(with_deps: bool = False) -> None:
    command = [sys.executable, "-m", "playwright", "install", "chromium"]
    if with_deps:
        command.append("--with-deps")
    subprocess.run(command, check=True)


def main() -> int:
    parser = argparse.ArgumentParser(description="Install the Chromium build used for rendering")
    parser.add_argument(
        "--with-deps", action="store_true", help="Also install system dependencies"
    )
    args = parser.parse_args()

    cache_path = browser_cache_path()
    logger.info("Checking Chromium installation", cache_path=str(cache_path))

    builds = installed_builds(cache_path)
    if builds:
        logger.info("Chromium already installed", builds=builds)
        return 0

    logger.info("Chromium not found, installing")
    try:
        install_chromium(with_deps=args.with_deps)
    except subprocess.CalledProcessError as e:
        logger.error("Error installing Chromium", returncode=e.returncode)
        return 1

    logger.info("Chromium installed successfully", builds=installed_builds(cache_path))
    return 0


if __name__ == "__main__":
    sys.exit(main())
