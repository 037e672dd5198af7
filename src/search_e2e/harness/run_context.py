"""Per-scenario holder for Playwright objects."""

import logging
from typing import Any, List, Optional

from ..models.harness_models import BrowserIdentity

logger = logging.getLogger(__name__)


class RunContext:
    """
    Playwright objects owned by one scenario.

    The lists are index-aligned: ``pages[i]`` lives in ``contexts[i]``, which
    belongs to ``browsers[i]`` described by ``identities[i]``. The single
    ``browser``/``context``/``page`` fields mirror index 0 for steps that only
    drive one browser.

    CRITICAL: Only recovery mutates ``pages`` mid-scenario, and only at the
    index being recovered.
    """

    def __init__(
        self,
        base_url: str = "",
        navigation_timeout_ms: int = 30000,
        results_dir: Optional[str] = None,
    ):
        self.base_url = base_url
        self.navigation_timeout_ms = navigation_timeout_ms
        self.results_dir = results_dir

        self.playwright: Any = None
        self.manager: Any = None
        self.browsers: List[Any] = []
        self.contexts: List[Any] = []
        self.pages: List[Any] = []
        self.identities: List[BrowserIdentity] = []

        self.browser: Any = None
        self.context: Any = None
        self.page: Any = None

    @property
    def is_multi_browser(self) -> bool:
        return len(self.pages) > 0

    def add_target(self, identity: BrowserIdentity, browser: Any, context: Any, page: Any) -> None:
        """Register a provisioned browser/context/page triple."""
        self.identities.append(identity)
        self.browsers.append(browser)
        self.contexts.append(context)
        self.pages.append(page)

        if len(self.pages) == 1:
            self.browser = browser
            self.context = context
            self.page = page

    def context_at(self, index: int) -> Any:
        """Browsing context owning the page at ``index``, or None."""
        if 0 <= index < len(self.contexts):
            return self.contexts[index]
        if index == 0:
            return self.context
        return None

    def replace_page(self, index: int, page: Any) -> None:
        """Swap the page at ``index``.

        Args:
            index: Target index
            page: Replacement page
        """
        if index < 0:
            raise ValueError(f"Page index must be non-negative: {index}")

        while len(self.pages) <= index:
            self.pages.append(None)
        self.pages[index] = page

        if index == 0:
            self.page = page

        logger.debug(f"Replaced page at index {index}")

    def clear(self) -> None:
        """Drop all references at scenario end."""
        self.playwright = None
        self.manager = None
        self.browsers = []
        self.contexts = []
        self.pages = []
        self.identities = []
        self.browser = None
        self.context = None
        self.page = None
