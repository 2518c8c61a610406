"""Services for the dashboard UI suite."""

from dashboard_qa.services.browser_manager import BrowserSession
from dashboard_qa.services.page_loader import PageLoader
from dashboard_qa.services.page_handler import PageHandler, CacheMode
from dashboard_qa.services.top_filters import TopFilterActionHandler
from dashboard_qa.services.widgets import WidgetActionHandler
from dashboard_qa.services.kpis import KpiReader

__all__ = [
    "BrowserSession",
    "PageLoader",
    "PageHandler",
    "CacheMode",
    "TopFilterActionHandler",
    "WidgetActionHandler",
    "KpiReader",
]
