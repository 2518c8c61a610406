"""Models for observed browser state and the per-page reserve cache."""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(str, Enum):
    """Console severities, named the way WebDriver log entries name them."""
    SEVERE = "SEVERE"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"


class BrowserRequest(BaseModel):
    """A network response observed by the browser."""
    url: str
    status: int


class ConsoleEntry(BaseModel):
    """A console message (or uncaught page error) observed by the browser."""
    level: LogLevel
    message: str


class ReserveItem(BaseModel):
    """Rendered state of a filter and its URL binding."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    key: str
    label: Optional[str] = None
    value_text: Optional[str] = Field(None, alias="valueText")
    value: Any = None
    url: Optional[str] = None


class ReserveWidgetFilter(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    key: str
    title: Optional[str] = None
    value_text: Optional[str] = Field(None, alias="valueText")
    value: Any = None


class ReserveWidgetItem(ReserveItem):
    """Widget state as logged by the dashboard itself (`widgetParams`)."""
    key: str = ""
    widget: str
    filters: List[ReserveWidgetFilter] = Field(default_factory=list)

    def filter(self, key: str) -> Optional[ReserveWidgetFilter]:
        for item in self.filters:
            if item.key == key:
                return item
        return None


class Reserve(BaseModel):
    top_filters: List[ReserveItem] = Field(default_factory=list)
    widgets: List[ReserveWidgetItem] = Field(default_factory=list)

    def top_filter(self, key: str) -> Optional[ReserveItem]:
        for item in self.top_filters:
            if item.key == key:
                return item
        return None

    def widget(self, key: str) -> Optional[ReserveWidgetItem]:
        """Latest logged state of a widget."""
        found = None
        for item in self.widgets:
            if item.widget == key:
                found = item
        return found


class PageCache(BaseModel):
    """Snapshot of the last observed page state.

    Each refresh replaces a whole section; sections are never merged.
    """
    requests: List[BrowserRequest] = Field(default_factory=list)
    reserve: Reserve = Field(default_factory=Reserve)


class PageKpi(BaseModel):
    title: str
    units: List[str] = Field(default_factory=list)
