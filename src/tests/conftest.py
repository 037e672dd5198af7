"""Shared fixtures: mock pages, fake DOM locators and run contexts."""

import pytest
from unittest.mock import AsyncMock, MagicMock
from playwright.async_api import Error as PlaywrightError

from search_e2e.config.harness_config import HarnessConfig
from search_e2e.harness.run_context import RunContext
from search_e2e.models.harness_models import BrowserIdentity, BrowserKind

BASE_URL = "https://search.example.test/"


def build_page(url: str = BASE_URL) -> MagicMock:
    """MagicMock page with the async surface the harness touches."""
    page = MagicMock()
    page.url = url
    page.goto = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.content = AsyncMock(return_value="<html></html>")
    page.screenshot = AsyncMock()
    page.evaluate = AsyncMock()
    page.keyboard = MagicMock()
    page.keyboard.press = AsyncMock()
    page.close = AsyncMock()
    page.is_closed = MagicMock(return_value=False)
    page.video = None
    return page


def build_context() -> MagicMock:
    context = MagicMock()
    context.new_page = AsyncMock(side_effect=lambda: build_page())
    context.close = AsyncMock()
    context.tracing = MagicMock()
    context.tracing.start = AsyncMock()
    context.tracing.stop = AsyncMock()
    return context


def build_run_context(kinds, base_url: str = BASE_URL, results_dir=None) -> RunContext:
    run_context = RunContext(base_url=base_url, results_dir=results_dir)
    for index, kind in enumerate(kinds):
        run_context.add_target(
            BrowserIdentity(kind=kind, index=index), MagicMock(), build_context(), build_page(base_url)
        )
    return run_context


@pytest.fixture
def make_page():
    return build_page


@pytest.fixture
def make_run_context():
    return build_run_context


@pytest.fixture
def three_browsers():
    """Chrome, Firefox and Edge in one scenario."""
    return build_run_context([BrowserKind.CHROME, BrowserKind.FIREFOX, BrowserKind.MSEDGE])


@pytest.fixture
def config(tmp_path, monkeypatch):
    """Deterministic configuration independent of the environment."""
    monkeypatch.delenv("PLAYWRIGHT_BROWSER", raising=False)
    return HarnessConfig(
        environment_name="test",
        base_url=BASE_URL,
        browser="chromium",
        browsers=["chrome", "firefox", "msedge"],
        multibrowser_enabled=False,
        headless=True,
        timeout_ms=5000,
        network_idle_timeout_ms=1000,
        recovery_delay_ms=0,
        slow_mo=0,
        viewport_width=1280,
        viewport_height=720,
        use_full_window=False,
        record_video=False,
        record_trace=False,
        results_dir=str(tmp_path / "TestResults"),
        history_dir=str(tmp_path / "TestResultsHistory"),
        accessibility_enabled=True,
        contrast_enabled=True,
        performance_enabled=True,
        max_page_load_seconds=3.0,
        max_search_response_seconds=2.0,
    )


class FakeElement:
    """A single matched element with the locator surface page objects use."""

    def __init__(self, text="", visible=True, enabled=True, attrs=None, children=None, box=None):
        self.text = text
        self.visible = visible
        self.enabled = enabled
        self.attrs = dict(attrs or {})
        self.children = dict(children or {})
        self.box = box if box is not None else {"x": 0, "y": 0, "width": 240, "height": 40}
        self.value = ""
        self.fill = AsyncMock(side_effect=lambda value, **kwargs: setattr(self, "value", value))
        self.focus = AsyncMock()
        self.press = AsyncMock()
        self.click = AsyncMock()
        self.select_option = AsyncMock()
        self.scroll_into_view_if_needed = AsyncMock()

    @property
    def first(self):
        return self

    def nth(self, index):
        return self

    def locator(self, selector):
        return self.children.get(selector, FakeLocator())

    async def count(self):
        return 1

    async def wait_for(self, state="visible", timeout=None):
        if not self.visible:
            raise PlaywrightError(f"Timeout {timeout}ms exceeded.")

    async def is_visible(self):
        return self.visible

    async def is_enabled(self):
        return self.enabled

    async def inner_text(self):
        return self.text

    async def get_attribute(self, name):
        return self.attrs.get(name)

    async def input_value(self):
        return self.value

    async def bounding_box(self):
        return self.box if self.visible else None


class MissingElement(FakeElement):
    """What ``.first`` yields on an empty locator: every interaction times out."""

    def __init__(self):
        super().__init__(visible=False)
        self.click = AsyncMock(side_effect=PlaywrightError("Timeout exceeded."))
        self.select_option = AsyncMock(side_effect=PlaywrightError("Timeout exceeded."))

    async def count(self):
        return 0

    async def inner_text(self):
        raise PlaywrightError("Timeout exceeded.")


class FakeLocator:
    """Ordered matches for one selector."""

    def __init__(self, *elements):
        self.elements = list(elements)

    @property
    def first(self):
        return self.elements[0] if self.elements else MissingElement()

    def nth(self, index):
        return self.elements[index] if index < len(self.elements) else MissingElement()

    def locator(self, selector):
        nested = []
        for element in self.elements:
            nested.extend(element.locator(selector).elements)
        return FakeLocator(*nested)

    async def count(self):
        return len(self.elements)


def build_dom_page(dom=None, roles=None, url=BASE_URL) -> MagicMock:
    """Mock page whose locators resolve from ``dom`` (selector -> FakeLocator)."""
    dom = dom or {}
    roles = roles or {}
    page = build_page(url)
    page.locator = MagicMock(side_effect=lambda selector: dom.get(selector, FakeLocator()))
    page.get_by_role = MagicMock(side_effect=lambda role: roles.get(role, FakeLocator()))
    return page


@pytest.fixture
def make_dom_page():
    return build_dom_page


@pytest.fixture
def fake_element():
    return FakeElement


@pytest.fixture
def fake_locator():
    return FakeLocator
