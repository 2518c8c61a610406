"""Models for declarative page definitions."""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


class RequestCheck(str, Enum):
    """Validations available for captured requests."""
    EXISTENCE = "existence"
    STATUS = "status"
    LOG = "log"


class TopFilterCheck(str, Enum):
    """Validations available for a top filter item."""
    LABEL = "label"
    VALUE = "value"
    URL = "url"


class KpiCheck(str, Enum):
    """Validations available for KPI cards."""
    EXISTENCE = "existence"
    UNITS = "units"


class WidgetCheck(str, Enum):
    """Validations available for widgets."""
    EXISTENCE = "existence"
    LOG = "log"
    FILTERS = "filters"


class FilterType(str, Enum):
    """Kinds of top filter controls."""
    SELECT = "select"
    DATEPICKER = "datepicker"


class PageModel(BaseModel):
    """Base for page definition models: immutable, aliases match page-file keys."""
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")


SelectIndex = Union[StrictInt, Literal["first", "last", "random"]]


class CalendarMove(PageModel):
    """Move the calendar view one month back or forward."""
    action: Literal["prev", "next"]


class CalendarSelect(PageModel):
    """Pick the calendar cell whose day-of-month text equals `day`."""
    action: Literal["select"]
    day: str = Field(..., alias="select_date_index", description="Day of month as rendered")

    @field_validator("day", mode="before")
    @classmethod
    def _day_as_text(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


PickerStep = Annotated[Union[CalendarMove, CalendarSelect], Field(discriminator="action")]


class FilterTarget(PageModel):
    """Top filter to re-check after an action."""
    key: str
    is_widget: Literal[False] = Field(default=False, alias="isWidget")


class WidgetTarget(PageModel):
    """Widget filter to re-check after an action (declared, not asserted)."""
    key: str
    is_widget: Literal[True] = Field(..., alias="isWidget")
    widget: str


ValidationTarget = Union[WidgetTarget, FilterTarget]


class SelectFilterAction(PageModel):
    """Choose an option in a top filter selector."""
    action: Literal["set-select-filter"]
    key: str
    select_index: SelectIndex = Field(..., alias="selectIndex")
    multi_select: bool = Field(default=False, alias="multiSelect")
    wait_time: int = Field(default=0, alias="waitTime", ge=0, description="Pause after the action (ms)")
    close_overlay: bool = Field(default=False, alias="closeOverlay")
    targets: List[ValidationTarget] = Field(default_factory=list, alias="validate")


class DatepickerFilterAction(PageModel):
    """Walk a top filter calendar and pick a date."""
    action: Literal["set-datepicker-filter"]
    key: str
    picker: List[PickerStep] = Field(default_factory=list)
    wait_time: int = Field(default=0, alias="waitTime", ge=0, description="Pause after the action (ms)")
    targets: List[ValidationTarget] = Field(default_factory=list, alias="validate")


TopFilterAction = Annotated[
    Union[SelectFilterAction, DatepickerFilterAction],
    Field(discriminator="action")
]


class TopFilterItem(PageModel):
    """Expected initial state of a top filter."""
    key: str
    type: FilterType
    label: str
    value: str
    url: Optional[str] = Field(None, description="Value bound to the URL query, if any")
    checks: List[TopFilterCheck] = Field(default_factory=list, alias="validate")


class TopFilters(PageModel):
    items: List[TopFilterItem] = Field(default_factory=list)
    actions: List[TopFilterAction] = Field(default_factory=list)

    def item(self, key: str) -> Optional[TopFilterItem]:
        for item in self.items:
            if item.key == key:
                return item
        return None


class UrlParam(PageModel):
    key: str
    value: str


class RequestsSpec(PageModel):
    """Network expectations for the initial page load."""
    time_for_request_loading: int = Field(
        default=0,
        alias="timeForRequestLoading",
        ge=0,
        description="Settle time before capturing requests (ms)"
    )
    requests: List[str] = Field(default_factory=list, description="Request URLs that must be observed")
    checks: List[RequestCheck] = Field(default_factory=list, alias="validate")


class KpiSpec(PageModel):
    items: List[str] = Field(default_factory=list, description="KPI titles")
    checks: List[KpiCheck] = Field(default_factory=list, alias="validate")


class WidgetSelectAction(PageModel):
    """Choose an option in a selector inside a widget's filter modal."""
    action: Literal["set-select-filter"]
    label: str
    key: Optional[str] = None
    select_index: SelectIndex = Field(..., alias="selectIndex")
    multi_select: bool = Field(default=False, alias="multiSelect")
    wait_time: int = Field(default=0, alias="waitTime", ge=0)
    close_overlay: bool = Field(default=False, alias="closeOverlay")


class WidgetDateTarget(PageModel):
    widget: str
    key: str


class WidgetDatepickerAction(PageModel):
    """Pick a date in a calendar inside a widget's filter modal."""
    action: Literal["set-datepicker-filter"]
    label: str
    picker: List[PickerStep] = Field(default_factory=list)
    wait_time: int = Field(default=0, alias="waitTime", ge=0)
    targets: List[WidgetDateTarget] = Field(default_factory=list, alias="validate")


WidgetFilterAction = Annotated[
    Union[WidgetSelectAction, WidgetDatepickerAction],
    Field(discriminator="action")
]


class WidgetFilter(PageModel):
    key: str
    label: str
    actions: List[WidgetFilterAction] = Field(default_factory=list)


class Widget(PageModel):
    key: str
    title: str
    filters: List[WidgetFilter] = Field(default_factory=list)


class WidgetsSpec(PageModel):
    items: List[Widget] = Field(default_factory=list)
    checks: List[WidgetCheck] = Field(default_factory=list, alias="validate")


class Page(PageModel):
    """Complete declarative description of one dashboard page."""
    title: str = Field(..., description="Human readable page title")
    url: str = Field(..., description="Path appended to the base URL")
    url_params: List[UrlParam] = Field(default_factory=list, alias="urlParams")

    requests: RequestsSpec = Field(default_factory=RequestsSpec)
    top_filters: TopFilters = Field(default_factory=TopFilters, alias="topFilters")
    kpis: KpiSpec = Field(default_factory=KpiSpec)
    widgets: WidgetsSpec = Field(default_factory=WidgetsSpec)
