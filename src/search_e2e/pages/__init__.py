"""Page objects for the site under test."""

from .base_page import BasePage
from .home_page import HomePage
from .search_results_page import SearchResultsPage
from .site_interaction import dismiss_cookie_banner
from .locators import first_successful, first_visible, first_visible_of

__all__ = [
    "BasePage",
    "HomePage",
    "SearchResultsPage",
    "dismiss_cookie_banner",
    "first_successful",
    "first_visible",
    "first_visible_of",
]
