"""
In-memory stand-ins for the parts of the Playwright page API the extractor uses.

Pages are trees of ``El`` nodes keyed by URL. A node's children are looked up by
the exact selector string the extractor queries. Locators re-resolve against the
current page on every call, like Playwright's, so a test fails if the extractor
keeps working on a lecture page instead of returning to the course page.
"""
import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from lms_manifest.extractor import ExtractionOptions, Throttle

MEMBERS_URL = "https://members.example.com"
COURSE_URL = f"{MEMBERS_URL}/courses/enrolled/42"


class El:
    def __init__(self, text="", attrs=None, children=None):
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}

    def select(self, selector):
        return self.children.get(selector, [])


class FakeHandle:
    def __init__(self, node):
        self.node = node

    async def get_attribute(self, name):
        return self.node.attrs.get(name)


class FakeLocator:
    def __init__(self, page, steps):
        self.page = page
        self.steps = steps

    def _resolve(self):
        nodes = [self.page.root]
        for kind, arg in self.steps:
            if kind == "css":
                nodes = [child for node in nodes for child in node.select(arg)]
            else:
                nodes = nodes[arg:arg + 1]
        return nodes

    def _one(self):
        nodes = self._resolve()
        if not nodes:
            raise PlaywrightTimeoutError(f"Timeout waiting for locator {self.steps!r}")
        return nodes[0]

    def locator(self, selector):
        return FakeLocator(self.page, self.steps + [("css", selector)])

    def nth(self, index):
        return FakeLocator(self.page, self.steps + [("nth", index)])

    @property
    def first(self):
        return self.nth(0)

    async def count(self):
        return len(self._resolve())

    async def inner_text(self):
        return self._one().text

    async def text_content(self):
        return self._one().text

    async def get_attribute(self, name):
        return self._one().attrs.get(name)

    async def click(self):
        node = self._one()
        self.page.clicks.append(node.attrs.get("href"))
        target = node.attrs.get("href")
        if target in self.page.pages:
            self.page.url = target


class _ExpectNavigation:
    def __init__(self, page, timeout):
        self.page = page
        self.timeout = timeout

    async def __aenter__(self):
        self.start_url = self.page.url
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None and self.page.url == self.start_url:
            raise PlaywrightTimeoutError(f"Timeout {self.timeout}ms exceeded waiting for navigation")
        return False


class FakePage:
    def __init__(self, pages):
        self.pages = pages
        self.url = "about:blank"
        self.history = []
        self.clicks = []

    @property
    def root(self):
        return self.pages.get(self.url, El())

    def locator(self, selector):
        return FakeLocator(self, [("css", selector)])

    async def goto(self, url, timeout=None):
        self.history.append(url)
        self.url = url

    def expect_navigation(self, timeout=None):
        return _ExpectNavigation(self, timeout)

    async def wait_for_selector(self, selector, timeout=None):
        nodes = self.root.select(selector)
        if not nodes:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return FakeHandle(nodes[0])


class FakeContext:
    def __init__(self, events=None):
        self.cookies = []
        self.events = events if events is not None else []

    async def add_cookies(self, cookies):
        self.events.append("add_cookies")
        self.cookies.extend(cookies)


class RecordingThrottle(Throttle):
    def __init__(self):
        super().__init__(0)
        self.calls = 0

    async def wait(self):
        self.calls += 1


def video_item(name, lecture_url, icon="#icon__Video"):
    return El(children={
        "svg use": [El(attrs={"xlink:href": icon})],
        "span.lecture-name": [El(text=name)],
        "a.item[href]": [El(attrs={"href": lecture_url})],
    })


def quiz_item(name):
    return video_item(name, f"{MEMBERS_URL}/quiz", icon="#icon__Quiz")


def section(title, items):
    return El(children={
        "div.section-title": [El(text=title)],
        "ul.section-list li.section-item": items,
    })


def course_page(title, sections):
    return El(children={
        ".course-sidebar-head h2": [El(text=f"\n  {title}  \n")],
        "div.course-section": sections,
    })


def lecture_page(download_href=None):
    if download_href is None:
        return El()
    return El(children={"a.download": [El(attrs={"href": download_href})]})


@pytest.fixture
def throttle():
    return RecordingThrottle()


@pytest.fixture
def options(throttle):
    return ExtractionOptions(
        members_url=MEMBERS_URL,
        navigation_timeout=10,
        link_timeout=10,
        page_timeout=10,
        throttle=throttle,
    )
