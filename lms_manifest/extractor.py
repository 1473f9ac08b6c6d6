'''
Walk the course page and collect sections and video chapters.

Every function takes the Playwright page (or a locator on it) explicitly. Items
are addressed with locators (section index, item index), which Playwright
re-resolves on every call, so they stay valid after the page navigates to a
lecture and back.
'''

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse

from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import ConfigurationError, DownloadLinkNotFound, ExtractionError
from .models import Chapter, Course, Section

logger = logging.getLogger(__name__)

COURSE_TITLE_SELECTOR = ".course-sidebar-head h2"
SECTION_SELECTOR = "div.course-section"
SECTION_TITLE_SELECTOR = "div.section-title"
CHAPTER_ITEM_SELECTOR = "ul.section-list li.section-item"
CHAPTER_ICON_SELECTOR = "svg use"
CHAPTER_NAME_SELECTOR = "span.lecture-name"
CHAPTER_LINK_SELECTOR = "a.item[href]"
DOWNLOAD_LINK_SELECTOR = "a.download"

VIDEO_ICON = "#icon__Video"


class Throttle:
    """Fixed pause between chapter resolutions. An interval of 0 disables it."""

    def __init__(self, interval_ms: int = 500):
        if interval_ms < 0:
            raise ValueError(f"Throttle interval must not be negative, got {interval_ms}")
        self.interval_ms = interval_ms

    async def wait(self) -> None:
        if self.interval_ms:
            await asyncio.sleep(self.interval_ms / 1000)


@dataclass
class ExtractionOptions:
    members_url: str
    navigation_timeout: int = 30000
    link_timeout: int = 30000
    page_timeout: int = 60000
    throttle: Throttle = field(default_factory=Throttle)
    # Raise instead of recording a chapter without a download URL
    strict: bool = False


def absolute_url(members_url: str, href: str) -> str:
    if urlparse(href).scheme:
        return href
    return f"{members_url}{href}"


async def _text_or_empty(locator: Locator) -> str:
    if await locator.count() == 0:
        return ""
    text = await locator.first.inner_text()
    return (text or "").strip()


async def _required_text(locator: Locator, what: str) -> str:
    if await locator.count() == 0:
        raise ExtractionError(f"Could not find {what}.")
    text = await locator.first.text_content()
    return (text or "").strip()


async def is_video_item(item: Locator) -> bool:
    """A chapter item is a video lecture when its icon points at the video symbol."""
    icon = item.locator(CHAPTER_ICON_SELECTOR)
    if await icon.count() == 0:
        return False
    icon = icon.first
    ref = await icon.get_attribute("xlink:href")
    if ref is None:
        ref = await icon.get_attribute("href")
    return ref == VIDEO_ICON


async def get_chapter_name(item: Locator) -> str:
    return await _text_or_empty(item.locator(CHAPTER_NAME_SELECTOR))


async def resolve_download_url(page: Page, item: Locator, options: ExtractionOptions) -> Optional[str]:
    """Open the chapter's lecture page and read its download link.

    Returns None when the lecture page or the download link does not show up in
    time. The page is sent back to where it was before the click either way.
    """
    link = item.locator(CHAPTER_LINK_SELECTOR)
    if await link.count() == 0:
        logger.warning("Chapter item has no lecture link.")
        return None

    return_url = page.url
    try:
        try:
            async with page.expect_navigation(timeout=options.navigation_timeout):
                await link.first.click()
        except PlaywrightTimeoutError:
            logger.warning(f"Lecture page did not load within {options.navigation_timeout} ms.")
            return None

        try:
            anchor = await page.wait_for_selector(DOWNLOAD_LINK_SELECTOR, timeout=options.link_timeout)
        except PlaywrightTimeoutError:
            logger.warning(f"No download link appeared on {page.url} within {options.link_timeout} ms.")
            return None
        if anchor is None:
            return None

        href = await anchor.get_attribute("href")
        if not href:
            logger.warning(f"Download link on {page.url} has no href.")
            return None
        return absolute_url(options.members_url, href)
    finally:
        if page.url != return_url:
            logger.debug(f"Returning to {return_url}")
            await page.goto(return_url, timeout=options.page_timeout)


async def get_section_chapters(page: Page, section: Locator, options: ExtractionOptions) -> List[Chapter]:
    chapters = []
    items = section.locator(CHAPTER_ITEM_SELECTOR)
    count = await items.count()
    for idx in range(count):
        item = items.nth(idx)
        if not await is_video_item(item):
            logger.debug(f"Skipping item #{idx + 1}: not a video.")
            continue

        name = await get_chapter_name(item)
        download_url = await resolve_download_url(page, item, options)
        if download_url is None:
            if options.strict:
                raise DownloadLinkNotFound(f"Could not resolve download link for chapter {name!r}.")
            logger.warning(f"Chapter {name!r} has no download link; it will have an empty URL.")
        else:
            logger.info(f"Resolved chapter {name!r}")
        chapters.append(Chapter(name=name, download_url=download_url))
        await options.throttle.wait()
    return chapters


async def get_course_sections(page: Page, options: ExtractionOptions) -> List[Section]:
    sections = []
    section_locators = page.locator(SECTION_SELECTOR)
    count = await section_locators.count()
    logger.info(f"Found {count} sections.")
    for idx in range(count):
        section = section_locators.nth(idx)
        name = await _required_text(section.locator(SECTION_TITLE_SELECTOR), f"title of section #{idx + 1}")
        logger.info(f"[{idx + 1}/{count}] Section: {name}")
        chapters = await get_section_chapters(page, section, options)
        logger.info(f"[{idx + 1}/{count}] {len(chapters)} video chapters.")
        sections.append(Section(name=name, chapters=chapters))
    return sections


def build_course_url(members_url: str, course: str) -> str:
    if not course:
        raise ConfigurationError("Course slug is empty; set COURSE or pass --course.")
    return f"{members_url}{course}"


async def get_course_name(page: Page) -> str:
    return await _required_text(page.locator(COURSE_TITLE_SELECTOR), "course title")


async def get_course(page: Page, course_url: str, options: ExtractionOptions) -> Course:
    """Navigate to the course page and extract the whole course tree."""
    logger.info(f"Navigating to course page: {course_url}")
    await page.goto(course_url, timeout=options.page_timeout)
    name = await get_course_name(page)
    logger.info(f"Course: {name}")
    sections = await get_course_sections(page, options)
    course = Course(name=name, sections=sections)
    logger.info(f"Extracted {len(course.sections)} sections with {course.chapter_count} video chapters.")
    return course
