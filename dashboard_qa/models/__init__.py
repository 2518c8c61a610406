"""Data models for the dashboard UI suite."""

from dashboard_qa.models.page import (
    Page,
    UrlParam,
    RequestsSpec,
    TopFilters,
    TopFilterItem,
    SelectFilterAction,
    DatepickerFilterAction,
    CalendarMove,
    CalendarSelect,
    FilterTarget,
    WidgetTarget,
    KpiSpec,
    Widget,
    WidgetFilter,
    WidgetSelectAction,
    WidgetDatepickerAction,
    WidgetsSpec,
    RequestCheck,
    TopFilterCheck,
    KpiCheck,
    WidgetCheck,
    FilterType,
)
from dashboard_qa.models.cache import (
    BrowserRequest,
    ConsoleEntry,
    LogLevel,
    ReserveItem,
    ReserveWidgetFilter,
    ReserveWidgetItem,
    Reserve,
    PageCache,
    PageKpi,
)
from dashboard_qa.models.scenario import Scenario, ScenarioResult

__all__ = [
    'Page',
    'UrlParam',
    'RequestsSpec',
    'TopFilters',
    'TopFilterItem',
    'SelectFilterAction',
    'DatepickerFilterAction',
    'CalendarMove',
    'CalendarSelect',
    'FilterTarget',
    'WidgetTarget',
    'KpiSpec',
    'Widget',
    'WidgetFilter',
    'WidgetSelectAction',
    'WidgetDatepickerAction',
    'WidgetsSpec',
    'RequestCheck',
    'TopFilterCheck',
    'KpiCheck',
    'WidgetCheck',
    'FilterType',
    'BrowserRequest',
    'ConsoleEntry',
    'LogLevel',
    'ReserveItem',
    'ReserveWidgetFilter',
    'ReserveWidgetItem',
    'Reserve',
    'PageCache',
    'PageKpi',
    'Scenario',
    'ScenarioResult',
]
