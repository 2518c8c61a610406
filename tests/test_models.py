"""Tests for page definition and cache models."""

import pytest
from pydantic import ValidationError

from dashboard_qa.models import (
    CalendarMove,
    CalendarSelect,
    DatepickerFilterAction,
    FilterTarget,
    Page,
    Reserve,
    ReserveItem,
    ReserveWidgetItem,
    SelectFilterAction,
    WidgetSelectAction,
    WidgetTarget,
)
from dashboard_qa.models.scenario import Scenario


PAGE = {
    "title": "Expenses",
    "url": "expenses",
    "urlParams": [{"key": "autotests", "value": "on"}],
    "requests": {"timeForRequestLoading": 2000, "requests": [], "validate": ["status"]},
    "topFilters": {
        "items": [
            {"key": "date", "type": "datepicker", "label": "Date:", "value": "2023-09-30",
             "url": "2023-09-30", "validate": ["label"]},
        ],
        "actions": [
            {"key": "date", "action": "set-datepicker-filter",
             "picker": [{"action": "next"}, {"action": "select", "select_date_index": 31}],
             "waitTime": 1000, "validate": [{"key": "date", "isWidget": False}]},
            {"key": "date", "action": "set-select-filter", "selectIndex": "random",
             "multiSelect": True, "closeOverlay": True,
             "validate": [{"key": "grbs", "isWidget": True, "widget": "NewExpensesTable"}]},
        ],
    },
    "widgets": {
        "items": [{
            "key": "NewExpensesTable",
            "title": "Table",
            "filters": [{
                "key": "grbsFilter",
                "label": "ГРБС: ",
                "actions": [{"action": "set-select-filter", "label": "ГРБС:", "selectIndex": 0}],
            }],
        }],
        "validate": ["existence"],
    },
}


class TestPage:
    """Tests for the page model."""

    def test_parses_aliases(self):
        """Should read page-file keys into model fields."""
        page = Page.model_validate(PAGE)

        assert page.url_params[0].key == "autotests"
        assert page.requests.time_for_request_loading == 2000
        assert page.top_filters.items[0].checks[0].value == "label"

    def test_action_union(self):
        """Should pick the action model from its action tag."""
        page = Page.model_validate(PAGE)
        datepicker, select = page.top_filters.actions

        assert isinstance(datepicker, DatepickerFilterAction)
        assert isinstance(select, SelectFilterAction)
        assert select.select_index == "random"
        assert select.multi_select is True
        assert select.close_overlay is True

    def test_picker_steps(self):
        """Should parse calendar steps and read the day as text."""
        datepicker = Page.model_validate(PAGE).top_filters.actions[0]

        assert isinstance(datepicker.picker[0], CalendarMove)
        assert isinstance(datepicker.picker[1], CalendarSelect)
        assert datepicker.picker[1].day == "31"

    def test_validation_targets(self):
        """Should tell widget targets from top filter targets."""
        page = Page.model_validate(PAGE)

        assert isinstance(page.top_filters.actions[0].targets[0], FilterTarget)
        target = page.top_filters.actions[1].targets[0]
        assert isinstance(target, WidgetTarget)
        assert target.widget == "NewExpensesTable"

    def test_widget_actions(self):
        """Should parse widget filter actions."""
        widget = Page.model_validate(PAGE).widgets.items[0]
        assert isinstance(widget.filters[0].actions[0], WidgetSelectAction)

    def test_defaults(self):
        """Should default every section to empty."""
        page = Page.model_validate({"title": "Empty", "url": "empty"})

        assert page.top_filters.items == []
        assert page.kpis.checks == []
        assert page.requests.time_for_request_loading == 0

    def test_item_lookup(self):
        """Should find top filter items by key."""
        page = Page.model_validate(PAGE)

        assert page.top_filters.item("date").label == "Date:"
        assert page.top_filters.item("missing") is None

    def test_rejects_unknown_fields(self):
        """Should reject keys the page format does not define."""
        with pytest.raises(ValidationError):
            Page.model_validate({**PAGE, "unexpected": True})

    def test_rejects_unknown_action(self):
        """Should reject an unknown action tag."""
        data = {"title": "x", "url": "x", "topFilters": {"actions": [{"key": "a", "action": "click"}]}}
        with pytest.raises(ValidationError):
            Page.model_validate(data)

    def test_rejects_unknown_select_keyword(self):
        """Should reject a selectIndex keyword other than first, last or random."""
        with pytest.raises(ValidationError):
            SelectFilterAction.model_validate({"action": "set-select-filter", "key": "a", "selectIndex": "middle"})

    def test_rejects_numeric_string_index(self):
        """Should not read a quoted number as a position."""
        with pytest.raises(ValidationError):
            SelectFilterAction.model_validate({"action": "set-select-filter", "key": "a", "selectIndex": "2"})

    def test_immutable(self):
        """Should not allow mutation of a parsed page."""
        page = Page.model_validate(PAGE)
        with pytest.raises(ValidationError):
            page.title = "Other"


class TestReserve:
    """Tests for cache models."""

    def test_reserve_item_aliases(self):
        """Should read valueText from logged widget state."""
        item = ReserveItem.model_validate({"key": "a", "valueText": "Все", "extra": 1})
        assert item.value_text == "Все"

    def test_widget_lookup_returns_latest(self):
        """Should return the last cached state of a widget."""
        reserve = Reserve(widgets=[
            ReserveWidgetItem(widget="W", value_text="old"),
            ReserveWidgetItem(widget="W", value_text="new"),
        ])

        assert reserve.widget("W").value_text == "new"
        assert reserve.widget("missing") is None

    def test_widget_filter_lookup(self):
        """Should find a widget filter by key."""
        item = ReserveWidgetItem.model_validate({
            "widget": "W",
            "filters": [{"key": "grbsFilter", "title": "ГРБС", "valueText": "Все"}],
        })

        assert item.filter("grbsFilter").title == "ГРБС"
        assert item.filter("missing") is None


class TestScenario:
    """Tests for scenario naming."""

    def test_name_joins_path(self):
        """Should join the scenario path into its name."""
        scenario = Scenario(path=("root", "group", "check"), run=None)
        assert scenario.name == "root > group > check"
