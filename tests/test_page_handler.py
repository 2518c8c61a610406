"""Tests for scenario generation and execution by the page handler."""

from unittest.mock import AsyncMock, Mock

import pytest

from dashboard_qa.models.cache import (
    BrowserRequest,
    ConsoleEntry,
    LogLevel,
    PageKpi,
    ReserveItem,
    ReserveWidgetItem,
)
from dashboard_qa.models.page import Page
from dashboard_qa.services.page_handler import CacheMode, PageHandler
from dashboard_qa.services.validators import widget_console_clean
from dashboard_qa.utils.errors import ScenarioSkipped, ValidationFailure
from tests.fakes import FakePage, FakeSession


ROOT = '"Expenses" is running'

PAGE = {
    "title": "Expenses",
    "url": "expenses",
    "urlParams": [{"key": "autotests", "value": "on"}],
    "requests": {"timeForRequestLoading": 100, "requests": [], "validate": ["existence", "status", "log"]},
    "topFilters": {
        "items": [
            {"key": "currentUnit", "type": "select", "label": "Units:", "value": "0", "url": "0",
             "validate": ["label", "value", "url"]},
            {"key": "compareYears", "type": "select", "label": "Years:", "value": "2022,2021",
             "validate": ["label", "url"]},
        ],
        "actions": [
            {"key": "currentUnit", "action": "set-select-filter", "selectIndex": 2,
             "validate": [{"key": "currentUnit", "isWidget": False},
                          {"key": "grbsFilter", "isWidget": True, "widget": "NewExpensesTable"}]},
            {"key": "missing", "action": "set-select-filter", "selectIndex": 0},
        ],
    },
    "kpis": {"items": ["Расходы"], "validate": ["existence", "units"]},
    "widgets": {
        "items": [{
            "key": "NewExpensesTable",
            "title": "Table",
            "filters": [{
                "key": "grbsFilter",
                "label": "ГРБС: ",
                "actions": [{"action": "set-select-filter", "label": "ГРБС:", "selectIndex": "random"}],
            }],
        }],
        "validate": ["existence", "log", "filters"],
    },
}


class StubTopFilters:
    """Top filter handler double backed by a key -> rendered state mapping."""

    def __init__(self, state, outcomes=None):
        self.state = {item.key: item for item in state}
        self.outcomes = outcomes or {}

    async def read_existence(self, key):
        item = self.state.get(key)
        return (True, item.label, item.value_text) if item else (False, None, None)

    async def read_value(self, key):
        item = self.state.get(key)
        return (True, item.value) if item else (False, None)

    async def read_url_binding(self, key):
        item = self.state.get(key)
        return item.url if item else None

    async def snapshot(self):
        return list(self.state.values())

    async def apply_select_filter(self, item, action):
        outcome = self.outcomes[item.key]
        if isinstance(outcome, Exception):
            raise outcome
        self.state[item.key] = outcome
        return outcome.value_text, outcome.value

    apply_datepicker_filter = apply_select_filter


def rendered(key, label, value, value_text, url=None):
    return ReserveItem(key=key, label=label, value=value, value_text=value_text, url=url)


def make_top_filters(outcome=None):
    return StubTopFilters(
        [
            rendered("currentUnit", "Units:", "0", "тыс. руб.", "0"),
            rendered("compareYears", "Years:", "2022,2021", "2022, 2021"),
        ],
        outcomes={"currentUnit": outcome or rendered("currentUnit", "Units:", "2", "млрд. руб.", "2")},
    )


def make_widgets(cached=True):
    widgets = Mock()
    widgets.read_widgets_cache.return_value = [ReserveWidgetItem.model_validate({
        "widget": "NewExpensesTable",
        "filters": [{"key": "grbsFilter", "title": "ГРБС", "valueText": "Все"}],
    })] if cached else []
    widgets.console_clean = Mock(side_effect=widget_console_clean)
    widgets.go_to_widget = AsyncMock()
    widgets.read_title = AsyncMock(return_value=(True, "Table"))
    widgets.read_filter_existence = AsyncMock(return_value=(True, "ГРБС:", "Все"))
    widgets.open_filter_modal = AsyncMock()
    widgets.apply_select_in_modal = AsyncMock(return_value=("ГРБС 1", "101"))
    return widgets


def make_kpis(units=("2022",)):
    kpis = Mock()
    kpis.read = AsyncMock(return_value=[PageKpi(title="Расходы", units=list(units))])
    return kpis


def make_handler(data=PAGE, session=None, top_filters=None, widgets=None, kpis=None):
    return PageHandler(
        Page.model_validate(data),
        session or FakeSession(FakePage()),
        base_url="http://host/#/",
        request_prefix="http://srv/rpc/",
        settle_ms=5,
        commit_ms=5,
        top_filters=top_filters or make_top_filters(),
        widgets=widgets or make_widgets(),
        kpis=kpis or make_kpis(),
    )


class TestScenarioGeneration:
    """Tests for the scenario tree."""

    def test_full_tree(self):
        """Should generate every enabled scenario in pipeline order."""
        names = [scenario.name for scenario in make_handler().scenarios()]

        assert len(names) == 16
        assert names[0] == f"{ROOT} > Launching the driver"
        assert names[1] == f"{ROOT} > Running the requests and validations > Waiting till requests are loaded"
        assert names[2] == (
            f"{ROOT} > Running the requests and validations > Validating the requests"
            " > Validating the existence of the requests"
        )
        assert names[5] == (
            f'{ROOT} > Running the NAVIGATION FILTERS > Initializing the "Units => (currentUnit)"'
            ' > Validating the existence of the "Units"'
        )
        assert names[9] == (
            f'{ROOT} > Running the NAVIGATION FILTERS > Handling actions the "Units => (currentUnit)"'
            ' > (set-select-filter) New action item to "Units"'
        )
        assert names[10] == f"{ROOT} > Running the TOP KPI-s > Validating the existence of the KPIs"
        assert names[-1] == (
            f'{ROOT} > Running the WIDGET-s > Initializing/Validating the "Table => (NewExpensesTable)"'
            ' > Validating the filters of the "Table"'
            ' > Validating & Handling action of the filter "grbsFilter"'
            ' > Handling the actions of the filter "grbsFilter"'
        )

    def test_url_check_needs_declared_url(self):
        """Should not generate a URL check for a filter without a declared binding."""
        names = [scenario.name for scenario in make_handler().scenarios()]

        assert any('Validating the urls of the "Units"' in name for name in names)
        assert not any('Validating the urls of the "Years"' in name for name in names)

    def test_no_validations(self):
        """Should keep only navigation and settling when nothing is validated."""
        handler = make_handler({"title": "Expenses", "url": "expenses"})
        assert [scenario.path[-1] for scenario in handler.scenarios()] == [
            "Launching the driver",
            "Waiting till requests are loaded",
        ]

    def test_unknown_action_target(self, caplog):
        """Should warn about and skip an action for an undeclared filter."""
        names = [scenario.name for scenario in make_handler().scenarios()]

        assert "targets unknown filter 'missing'" in caplog.text
        assert not any("missing" in name for name in names)


class TestRequests:
    """Tests for navigation and request checks."""

    @pytest.mark.asyncio
    async def test_navigate(self):
        """Should open the page address with its query string."""
        session = FakeSession(FakePage())
        await make_handler(session=session).navigate()

        assert session.page.visited == ["http://host/#/expenses?autotests=on&currentUnit=0"]

    @pytest.mark.asyncio
    async def test_settle_refreshes_cache(self):
        """Should wait, then cache requests, top filters and widgets."""
        session = FakeSession(responses=[
            BrowserRequest(url="http://srv/rpc/a", status=200),
            BrowserRequest(url="http://cdn/app.js", status=200),
        ])
        handler = make_handler(session=session)

        await handler.settle()

        assert session.waits == [100]
        assert [request.url for request in handler.cache.requests] == ["http://srv/rpc/a"]
        assert handler.cache.reserve.top_filter("compareYears").value == "2022,2021"
        assert handler.cache.reserve.widget("NewExpensesTable") is not None

    @pytest.mark.asyncio
    async def test_failed_status(self):
        """Should fail the status check for a non-200 response."""
        session = FakeSession(responses=[BrowserRequest(url="http://srv/rpc/a", status=500)])
        handler = make_handler(session=session)
        await handler.settle()

        with pytest.raises(ValidationFailure) as exc_info:
            await handler.validate_requests_statuses()

        assert "500 http://srv/rpc/a" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_required_request(self):
        """Should fail the existence check for an unobserved request."""
        data = {**PAGE, "requests": {"requests": ["http://srv/rpc/b"], "validate": ["existence"]}}
        handler = make_handler(data)
        await handler.settle()

        with pytest.raises(ValidationFailure):
            await handler.validate_requests_existence()

    @pytest.mark.asyncio
    async def test_bad_request_in_console(self):
        """Should fail the log check when the console reports a bad request."""
        session = FakeSession(console=[
            ConsoleEntry(level=LogLevel.SEVERE, message="http://srv/rpc/a 0:0 400 (Bad Request)")
        ])

        with pytest.raises(ValidationFailure):
            await make_handler(session=session).validate_requests_logs()


class TestTopFilterScenarios:
    """Tests for top filter checks and actions."""

    @pytest.mark.asyncio
    async def test_label_mismatch(self):
        """Should fail when the rendered label differs."""
        handler = make_handler()
        item = handler.page.top_filters.item("currentUnit")
        handler.top_filters.state["currentUnit"] = rendered("currentUnit", "Other:", "0", "x", "0")

        with pytest.raises(ValidationFailure):
            await handler.validate_top_filter_label(item)

    @pytest.mark.asyncio
    async def test_action_passes(self):
        """Should accept an action whose value reached the control and the address."""
        handler = make_handler()
        await handler.settle()
        item = handler.page.top_filters.item("currentUnit")

        await handler.handle_top_filter_action(item, handler.page.top_filters.actions[0])

        assert handler.cache.reserve.top_filter("currentUnit").value == "2"

    @pytest.mark.asyncio
    async def test_action_without_url_update(self):
        """Should fail when the address keeps the old value."""
        handler = make_handler(top_filters=make_top_filters(
            outcome=rendered("currentUnit", "Units:", "2", "млрд. руб.", "0")
        ))
        item = handler.page.top_filters.item("currentUnit")

        with pytest.raises(ValidationFailure) as exc_info:
            await handler.handle_top_filter_action(item, handler.page.top_filters.actions[0])

        assert "URL binding" in str(exc_info.value)


class TestKpiScenarios:
    """Tests for KPI checks."""

    @pytest.mark.asyncio
    async def test_units_within_compare_years(self):
        """Should accept units listed in the compare years filter."""
        handler = make_handler()
        await handler.settle()
        await handler.validate_kpi_units()

    @pytest.mark.asyncio
    async def test_unexpected_unit(self):
        """Should fail for a unit outside the compare years."""
        handler = make_handler(kpis=make_kpis(units=("2020",)))
        await handler.settle()

        with pytest.raises(ValidationFailure):
            await handler.validate_kpi_units()

    @pytest.mark.asyncio
    async def test_missing_kpi(self):
        """Should fail when a declared KPI is not rendered."""
        kpis = Mock()
        kpis.read = AsyncMock(return_value=[PageKpi(title="Другое")])

        with pytest.raises(ValidationFailure):
            await make_handler(kpis=kpis).validate_kpi_existence()


class TestWidgetScenarios:
    """Tests for widget checks."""

    @pytest.mark.asyncio
    async def test_filter_not_logged(self):
        """Should skip the filter check when the widget has not logged the filter."""
        handler = make_handler(widgets=make_widgets(cached=False))
        await handler.settle()
        widget = handler.page.widgets.items[0]

        with pytest.raises(ScenarioSkipped):
            await handler.validate_widget_filter(widget, widget.filters[0])

    @pytest.mark.asyncio
    async def test_filter_matches_logged_state(self):
        """Should accept a rendered filter matching the logged state."""
        handler = make_handler()
        await handler.settle()
        widget = handler.page.widgets.items[0]

        await handler.validate_widget_filter(widget, widget.filters[0])

    @pytest.mark.asyncio
    async def test_widget_errors_in_console(self):
        """Should fail the log check when an error mentions the widget."""
        session = FakeSession(console=[
            ConsoleEntry(level=LogLevel.SEVERE, message="app.js 1:1 NewExpensesTable: request failed")
        ])
        handler = make_handler(session=session)

        with pytest.raises(ValidationFailure):
            await handler.validate_widget_logs(handler.page.widgets.items[0])

    @pytest.mark.asyncio
    async def test_filter_actions_are_logged(self, caplog):
        """Should apply modal actions and log their outcome."""
        caplog.set_level("INFO")
        widgets = make_widgets()
        handler = make_handler(widgets=widgets)
        widget = handler.page.widgets.items[0]

        await handler.handle_widget_filter_actions(widget, widget.filters[0])

        widgets.open_filter_modal.assert_awaited_once_with("NewExpensesTable")
        widgets.apply_select_in_modal.assert_awaited_once()
        assert "set to ГРБС 1 (101)" in caplog.text


class TestCache:
    """Tests for cache refreshes."""

    @pytest.mark.asyncio
    async def test_sections_are_replaced_independently(self):
        """Should replace only the requested section."""
        handler = make_handler()
        await handler.settle()

        handler.top_filters.state = {"date": rendered("date", "Date:", "2023-12-31", "31.12.2023")}
        await handler.cache_items(CacheMode.TOP_FILTERS)

        assert [item.key for item in handler.cache.reserve.top_filters] == ["date"]
        assert handler.cache.reserve.widget("NewExpensesTable") is not None


class TestRunAll:
    """Tests for running the whole page."""

    @pytest.mark.asyncio
    async def test_all_pass(self):
        """Should pass every scenario against a consistent page."""
        report = await make_handler().run_all()

        assert report["total"] == 16
        assert report["passed"] == 16
        assert report["failed"] == 0

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_later_scenarios(self):
        """Should keep running widget scenarios after a top filter action fails."""
        handler = make_handler(top_filters=make_top_filters(outcome=RuntimeError("selector detached")))

        report = await handler.run_all()

        assert report["failed"] == 1
        assert report["passed"] == 15
        failed = [result for result in report["scenarios"] if result.status == "failed"]
        assert "New action item" in failed[0].name
        assert failed[0].error == "selector detached"
        assert report["scenarios"][-1].status == "passed"

    @pytest.mark.asyncio
    async def test_skipped_scenarios_are_counted(self):
        """Should report a scenario with nothing to check as skipped."""
        report = await make_handler(widgets=make_widgets(cached=False)).run_all()

        assert report["skipped"] == 1
        assert report["failed"] == 0
