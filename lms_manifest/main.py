'''
Extract every video lecture of an LMS course into an aria2c input file.

The script reuses an existing login: it loads a saved cookie set into a browser,
opens the course page, visits each video lecture to read its download link, and
writes one "URL + out=" pair per lecture. Downloading is left to aria2c.

Usage:
    python -m lms_manifest.main --course /courses/enrolled/123456
    python -m lms_manifest.main --members-url https://members.example.com --course /courses/enrolled/123456 --cookies cookies.json --output links.txt
    aria2c -i links.txt

Settings are read from .env and environment variables; command line flags override them.
'''

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from playwright.async_api import BrowserContext, Page, async_playwright
from pydantic_settings import BaseSettings

from .errors import ConfigurationError
from .extractor import ExtractionOptions, Throttle, build_course_url, get_course
from .manifest import build_manifest, render_manifest, write_manifest
from .models import Course
from .session import apply_cookies, load_cookies

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


# Settings loader using pydantic
class Settings(BaseSettings):
    MEMBERS_URL: str = ""
    COURSE: str = ""
    COOKIES_PATH: str = ""
    ARIA2C_OUTPUT: str = ""
    HEADLESS: bool = False
    TIMEOUT_PAGE_LOAD: int = 60000
    NAVIGATION_TIMEOUT: int = 30000
    DOWNLOAD_LINK_TIMEOUT: int = 30000
    CHAPTER_DELAY: int = 500
    FAIL_ON_MISSING_LINK: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def str_to_bool(v):
    """Convert string to boolean for argparse."""
    if isinstance(v, bool):
        return v
    if v.lower() in ('yes', 'true', 't', 'y', '1'):
        return True
    elif v.lower() in ('no', 'false', 'f', 'n', '0'):
        return False
    else:
        raise argparse.ArgumentTypeError('Boolean value expected.')


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build an aria2c input file with the video links of an LMS course.")
    parser.add_argument('--members-url', help='Member area base URL (overrides MEMBERS_URL)')
    parser.add_argument('--course', help='Course path appended to the members URL (overrides COURSE)')
    parser.add_argument('--cookies', help='Cookie file: JSON export, Playwright storage state or cookies.txt (overrides COOKIES_PATH)')
    parser.add_argument('--output', help='Where to write the aria2c input file (overrides ARIA2C_OUTPUT)')
    parser.add_argument('--headless', type=str_to_bool, help='Run browser in headless mode (true/false)')
    parser.add_argument('--delay', type=int, help='Pause between lectures in milliseconds (overrides CHAPTER_DELAY)')
    parser.add_argument('--strict', action='store_true', default=None, help='Fail when a lecture has no download link')
    return parser.parse_args(argv)


def merge_settings(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply command line overrides on top of .env settings."""
    overrides = {
        'MEMBERS_URL': args.members_url,
        'COURSE': args.course,
        'COOKIES_PATH': args.cookies,
        'ARIA2C_OUTPUT': args.output,
        'HEADLESS': args.headless,
        'CHAPTER_DELAY': args.delay,
        'FAIL_ON_MISSING_LINK': args.strict,
    }
    return settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def validate_settings(settings: Settings) -> str:
    """Check required settings and return the full course URL."""
    course_url = build_course_url(settings.MEMBERS_URL, settings.COURSE)
    if not settings.MEMBERS_URL:
        raise ConfigurationError("Members URL is empty; set MEMBERS_URL or pass --members-url.")
    if not settings.COOKIES_PATH:
        raise ConfigurationError("Cookie file path is empty; set COOKIES_PATH or pass --cookies.")
    if not settings.ARIA2C_OUTPUT:
        raise ConfigurationError("Output path is empty; set ARIA2C_OUTPUT or pass --output.")
    if settings.CHAPTER_DELAY < 0:
        raise ConfigurationError(f"CHAPTER_DELAY must not be negative, got {settings.CHAPTER_DELAY}.")
    return course_url


def extraction_options(settings: Settings) -> ExtractionOptions:
    return ExtractionOptions(
        members_url=settings.MEMBERS_URL,
        navigation_timeout=settings.NAVIGATION_TIMEOUT,
        link_timeout=settings.DOWNLOAD_LINK_TIMEOUT,
        page_timeout=settings.TIMEOUT_PAGE_LOAD,
        throttle=Throttle(settings.CHAPTER_DELAY),
        strict=settings.FAIL_ON_MISSING_LINK,
    )


async def extract_course(context: BrowserContext, page: Page, cookies: list, course_url: str, options: ExtractionOptions) -> Course:
    """Authenticate the context with the saved cookies, then extract the course."""
    await apply_cookies(context, cookies)
    return await get_course(page, course_url, options)


async def run(settings: Settings) -> Path:
    """Run the whole pipeline. The manifest is only written once the course is fully extracted."""
    course_url = validate_settings(settings)
    cookies = load_cookies(settings.COOKIES_PATH)
    options = extraction_options(settings)

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=settings.HEADLESS)
        try:
            context = await browser.new_context()
            page = await context.new_page()
            course = await extract_course(context, page, cookies, course_url, options)
        finally:
            try:
                await browser.close()
            except Exception as e:
                logger.warning(f"Error while closing browser: {e}")

    entries = build_manifest(course)
    logger.info(f"Built {len(entries)} manifest entries.")
    return write_manifest(settings.ARIA2C_OUTPUT, render_manifest(entries))


def configure_logging(level=logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


async def main(argv=None) -> Optional[Path]:
    # Load settings from .env and allow override by CLI
    settings = merge_settings(Settings(), parse_args(argv))

    # Set log level from settings
    log_level = settings.LOG_LEVEL.upper()
    configure_logging(getattr(logging, log_level, logging.INFO))

    return await run(settings)


def cli(argv=None) -> None:
    # before Settings(), so its validation errors are logged with LOG_FORMAT
    configure_logging()
    try:
        asyncio.run(main(argv))
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    cli()
