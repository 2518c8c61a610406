"""
Page handler: turns a page definition into an ordered list of scenarios.

The scenarios follow a fixed pipeline (navigation, requests, top filters,
KPIs, widgets). Each one is independent: a failure fails that scenario
only. All of them share the handler's browser session and cache, and must
run in the order they were generated.
"""

import logging
import random
import time
from enum import Enum
from functools import partial
from typing import Any, Dict, List, Optional

from dashboard_qa.models.cache import BrowserRequest, ConsoleEntry, LogLevel, PageCache, Reserve
from dashboard_qa.models.page import (
    DatepickerFilterAction,
    KpiCheck,
    Page,
    RequestCheck,
    SelectFilterAction,
    TopFilterCheck,
    TopFilterItem,
    Widget,
    WidgetCheck,
    WidgetDatepickerAction,
    WidgetFilter,
    WidgetSelectAction,
    WidgetTarget,
)
from dashboard_qa.models.scenario import Scenario, ScenarioResult
from dashboard_qa.services.expectations import (
    expect_contains,
    expect_equal,
    expect_not_none,
    expect_true,
)
from dashboard_qa.services.kpis import KpiReader
from dashboard_qa.services.top_filters import TopFilterActionHandler
from dashboard_qa.services.url_params import page_address
from dashboard_qa.services.validators import (
    console_clean,
    failed_statuses,
    is_enabled,
    requests_exist,
    statuses_ok,
)
from dashboard_qa.services.widgets import WidgetActionHandler
from dashboard_qa.utils.errors import ScenarioSkipped

logger = logging.getLogger(__name__)


class CacheMode(str, Enum):
    """Cache sections refreshed by `PageHandler.cache_items`."""
    REQUESTS = "requests"
    TOP_FILTERS = "topFilters"
    WIDGETS = "widgets"
    ALL = "all"


def display_label(item: TopFilterItem) -> str:
    return item.label.replace(":", "", 1)


class PageHandler:
    """Runs one page definition against a live browser session."""

    def __init__(
        self,
        page: Page,
        session,
        base_url: str,
        request_prefix: str,
        compare_years_key: str = "compareYears",
        rng: Optional[random.Random] = None,
        settle_ms: int = 500,
        commit_ms: int = 1000,
        top_filters: Optional[TopFilterActionHandler] = None,
        widgets: Optional[WidgetActionHandler] = None,
        kpis: Optional[KpiReader] = None
    ):
        rng = rng or random.Random()

        self.page = page
        self.session = session
        self.base_url = base_url
        self.request_prefix = request_prefix
        self.compare_years_key = compare_years_key
        self.settle_ms = settle_ms
        self.cache = PageCache()

        self.top_filters = top_filters or TopFilterActionHandler(session, rng, settle_ms, commit_ms)
        self.widgets = widgets or WidgetActionHandler(session, rng, settle_ms, commit_ms)
        self.kpis = kpis or KpiReader(session)

    @classmethod
    def from_settings(cls, page: Page, session, settings, base_url: Optional[str] = None, seed: Optional[int] = None):
        seed = settings.RANDOM_SEED if seed is None else seed
        return cls(
            page,
            session,
            base_url=base_url or settings.BASE_URL,
            request_prefix=settings.REQUEST_PREFIX,
            compare_years_key=settings.COMPARE_YEARS_KEY,
            rng=random.Random(seed),
            settle_ms=settings.UI_SETTLE_MS,
            commit_ms=settings.OPTION_COMMIT_MS,
        )

    @property
    def root(self) -> str:
        return f'"{self.page.title}" is running'

    # getters
    def get_requests(self) -> List[BrowserRequest]:
        return self.session.requests(self.request_prefix)

    def get_browser_logs(self) -> List[ConsoleEntry]:
        return self.session.console_entries(LogLevel.SEVERE)

    async def cache_items(self, mode: CacheMode = CacheMode.ALL) -> PageCache:
        """Replace the requested cache sections with freshly observed state."""
        if mode in (CacheMode.REQUESTS, CacheMode.ALL):
            self.cache.requests = self.get_requests()

        if mode in (CacheMode.TOP_FILTERS, CacheMode.ALL):
            self.cache.reserve = Reserve(
                top_filters=await self.top_filters.snapshot(),
                widgets=self.cache.reserve.widgets,
            )

        if mode in (CacheMode.WIDGETS, CacheMode.ALL):
            self.cache.reserve = Reserve(
                top_filters=self.cache.reserve.top_filters,
                widgets=self.widgets.read_widgets_cache(),
            )

        logger.debug(
            f"Cache refreshed ({mode.value}): {len(self.cache.requests)} requests, "
            f"{len(self.cache.reserve.top_filters)} top filters, {len(self.cache.reserve.widgets)} widgets"
        )
        return self.cache

    # Scenario tree
    def scenarios(self) -> List[Scenario]:
        """All scenarios of the page, in execution order."""
        return (
            self.handle_page()
            + self.handle_requests()
            + self.handle_top_filters()
            + self.handle_kpis()
            + self.handle_widgets()
        )

    def _scenario(self, *path: str, run) -> Scenario:
        return Scenario(path=(self.root,) + path, run=run)

    def handle_page(self) -> List[Scenario]:
        return [self._scenario("Launching the driver", run=self.navigate)]

    def handle_requests(self) -> List[Scenario]:
        group = "Running the requests and validations"
        checks = "Validating the requests"
        scenarios = [self._scenario(group, "Waiting till requests are loaded", run=self.settle)]

        if is_enabled(self.page, "requests.validate", RequestCheck.EXISTENCE):
            scenarios.append(self._scenario(
                group, checks, "Validating the existence of the requests",
                run=self.validate_requests_existence
            ))
        if is_enabled(self.page, "requests.validate", RequestCheck.STATUS):
            scenarios.append(self._scenario(
                group, checks, "Validating the statuses of the requests",
                run=self.validate_requests_statuses
            ))
        if is_enabled(self.page, "requests.validate", RequestCheck.LOG):
            scenarios.append(self._scenario(
                group, checks, "Validating the logs of the requests",
                run=self.validate_requests_logs
            ))

        return scenarios

    def handle_top_filters(self) -> List[Scenario]:
        group = "Running the NAVIGATION FILTERS"
        scenarios = []

        for item in self.page.top_filters.items:
            label = display_label(item)
            section = f'Initializing the "{label} => ({item.key})"'

            if is_enabled(item, "validate", TopFilterCheck.LABEL):
                scenarios.append(self._scenario(
                    group, section, f'Validating the existence of the "{label}"',
                    run=partial(self.validate_top_filter_label, item)
                ))
            if is_enabled(item, "validate", TopFilterCheck.VALUE):
                scenarios.append(self._scenario(
                    group, section, f'Validating the values of the "{label}"',
                    run=partial(self.validate_top_filter_value, item)
                ))
            if is_enabled(item, "validate", TopFilterCheck.URL) and item.url is not None:
                scenarios.append(self._scenario(
                    group, section, f'Validating the urls of the "{label}"',
                    run=partial(self.validate_top_filter_url, item)
                ))

        for action in self.page.top_filters.actions:
            item = self.page.top_filters.item(action.key)
            if item is None:
                logger.warning(
                    f"Top filter action '{action.action}' targets unknown filter '{action.key}', skipping it",
                    extra={"page": self.page.title}
                )
                continue

            label = display_label(item)
            scenarios.append(self._scenario(
                group,
                f'Handling actions the "{label} => ({item.key})"',
                f'({action.action}) New action item to "{label}"',
                run=partial(self.handle_top_filter_action, item, action)
            ))

        return scenarios

    def handle_kpis(self) -> List[Scenario]:
        group = "Running the TOP KPI-s"
        scenarios = []

        if is_enabled(self.page, "kpis.validate", KpiCheck.EXISTENCE):
            scenarios.append(self._scenario(
                group, "Validating the existence of the KPIs", run=self.validate_kpi_existence
            ))
        if is_enabled(self.page, "kpis.validate", KpiCheck.UNITS):
            scenarios.append(self._scenario(
                group, "Validating the compare units of the KPIs", run=self.validate_kpi_units
            ))

        return scenarios

    def handle_widgets(self) -> List[Scenario]:
        group = "Running the WIDGET-s"
        scenarios = []

        for widget in self.page.widgets.items:
            section = f'Initializing/Validating the "{widget.title} => ({widget.key})"'

            if is_enabled(self.page, "widgets.validate", WidgetCheck.EXISTENCE):
                scenarios.append(self._scenario(
                    group, section,
                    f'Validating the existence of the "{widget.title}"',
                    "Checking the existence of the widget",
                    run=partial(self.validate_widget_existence, widget)
                ))
            if is_enabled(self.page, "widgets.validate", WidgetCheck.LOG):
                scenarios.append(self._scenario(
                    group, section,
                    f'Validating the logs of the "{widget.title}"',
                    "Checking the logs of the widget",
                    run=partial(self.validate_widget_logs, widget)
                ))
            if is_enabled(self.page, "widgets.validate", WidgetCheck.FILTERS):
                for widget_filter in widget.filters:
                    subsection = f'Validating & Handling action of the filter "{widget_filter.key}"'
                    scenarios.append(self._scenario(
                        group, section, f'Validating the filters of the "{widget.title}"', subsection,
                        "Checking the existence of the filter",
                        run=partial(self.validate_widget_filter, widget, widget_filter)
                    ))
                    scenarios.append(self._scenario(
                        group, section, f'Validating the filters of the "{widget.title}"', subsection,
                        f'Handling the actions of the filter "{widget_filter.key}"',
                        run=partial(self.handle_widget_filter_actions, widget, widget_filter)
                    ))

        return scenarios

    # Navigation & requests
    async def navigate(self) -> None:
        await self.session.navigate(page_address(self.base_url, self.page))

    async def settle(self) -> None:
        await self.session.wait(self.page.requests.time_for_request_loading)
        await self.cache_items(CacheMode.ALL)

    async def validate_requests_existence(self) -> None:
        required = self.page.requests.requests
        observed = {request.url for request in self.cache.requests}
        missing = [url for url in required if url not in observed]

        expect_true(
            requests_exist(self.cache.requests, required),
            f"Required requests were observed (missing: {missing})"
        )

    async def validate_requests_statuses(self) -> None:
        failed = [f"{request.status} {request.url}" for request in failed_statuses(self.cache.requests)]
        expect_true(statuses_ok(self.cache.requests), f"Requests answered with 200 (failed: {failed})")

    async def validate_requests_logs(self) -> None:
        logs = self.get_browser_logs()
        expect_true(console_clean(logs), "Console reports no bad requests")

    # Top filters
    async def validate_top_filter_label(self, item: TopFilterItem) -> None:
        found, label, _ = await self.top_filters.read_existence(item.key)
        expect_true(found, f'Top filter "{item.key}" is rendered')
        expect_equal(label, item.label, f'Label of "{item.key}"')

    async def validate_top_filter_value(self, item: TopFilterItem) -> None:
        found, value = await self.top_filters.read_value(item.key)
        expect_true(found, f'Top filter "{item.key}" is rendered')
        expect_equal(value, item.value, f'Value of "{item.key}"')

    async def validate_top_filter_url(self, item: TopFilterItem) -> None:
        url = await self.top_filters.read_url_binding(item.key)
        expect_equal(url, item.url, f'URL binding of "{item.key}"')

    async def handle_top_filter_action(self, item: TopFilterItem, action) -> None:
        """Apply an action, check the filter's new live state, then re-check its targets."""
        if isinstance(action, SelectFilterAction):
            new_text, new_value = await self.top_filters.apply_select_filter(item, action)
        elif isinstance(action, DatepickerFilterAction):
            new_text, new_value = await self.top_filters.apply_datepicker_filter(item, action)
        else:
            raise TypeError(f"Unsupported top filter action: {action!r}")

        logger.info(
            f'"{item.key}" after {action.action}: {new_text} ({new_value})',
            extra={"page": self.page.title}
        )

        _, _, value_text = await self.top_filters.read_existence(item.key)
        _, value = await self.top_filters.read_value(item.key)
        url = await self.top_filters.read_url_binding(item.key)

        expect_not_none(new_text, f'Selected text of "{item.key}"')
        expect_not_none(new_value, f'Selected value of "{item.key}"')
        expect_equal(value, new_value, f'Value of "{item.key}"')
        expect_equal(url, new_value, f'URL binding of "{item.key}"')

        if isinstance(action, SelectFilterAction) and action.multi_select:
            expect_contains(new_text, value_text, f'Value text of "{item.key}"')
        else:
            expect_equal(value_text, new_text, f'Value text of "{item.key}"')

        await self.cache_items(CacheMode.TOP_FILTERS)
        await self.validate_action_targets(action)

    async def validate_action_targets(self, action) -> None:
        """Cross-check cached and live state of every filter the action may affect."""
        for target in action.targets:
            if isinstance(target, WidgetTarget):
                logger.debug(f"Widget target '{target.widget}/{target.key}' is not checked after top filter actions")
                continue

            cached = self.cache.reserve.top_filter(target.key)
            if cached is None:
                logger.warning(f"Action target '{target.key}' is not among the rendered top filters")
                continue

            _, _, value_text = await self.top_filters.read_existence(cached.key)
            _, value = await self.top_filters.read_value(cached.key)
            url = await self.top_filters.read_url_binding(cached.key)

            expect_contains(cached.value_text, value_text, f'Cached value text of "{cached.key}"')
            expect_equal(cached.value, value, f'Cached value of "{cached.key}"')
            expect_equal(cached.url, url, f'Cached URL binding of "{cached.key}"')

    # KPIs
    async def validate_kpi_existence(self) -> None:
        titles = [kpi.title for kpi in await self.kpis.read()]
        for title in self.page.kpis.items:
            expect_contains(titles, title, "Rendered KPI titles")

    async def validate_kpi_units(self) -> None:
        kpi_items = await self.kpis.read()
        compare = self.cache.reserve.top_filter(self.compare_years_key)
        compare_years = str(compare.value if compare and compare.value is not None else "").split(",")

        for title in self.page.kpis.items:
            kpi = next((item for item in kpi_items if item.title == title), None)
            if kpi is None:
                continue
            for unit in kpi.units:
                expect_contains(compare_years, unit, f'Compare unit of KPI "{title}"')

    # Widgets
    async def validate_widget_existence(self, widget: Widget) -> None:
        await self.widgets.go_to_widget(widget.key)
        found, title = await self.widgets.read_title(widget.key)

        expect_true(found, f'Widget "{widget.key}" is rendered')
        expect_equal(title, widget.title, f'Title of widget "{widget.key}"')

    async def validate_widget_logs(self, widget: Widget) -> None:
        logs = self.get_browser_logs()
        expect_true(
            self.widgets.console_clean(logs, widget.key),
            f'Console reports no errors for widget "{widget.key}"'
        )

    async def validate_widget_filter(self, widget: Widget, widget_filter: WidgetFilter) -> None:
        widget_cache = self.cache.reserve.widget(widget.key)
        filter_cache = widget_cache.filter(widget_filter.key) if widget_cache else None

        if filter_cache is None:
            raise ScenarioSkipped(f'Widget "{widget.key}" has not logged filter "{widget_filter.key}"')

        found, label, value_text = await self.widgets.read_filter_existence(widget.key, widget_filter.key)

        expect_true(found, f'Filter "{widget_filter.key}" of widget "{widget.key}" is rendered')
        expect_contains(label, filter_cache.title, f'Label of filter "{widget_filter.key}"')
        expect_contains(value_text, filter_cache.value_text, f'Value text of filter "{widget_filter.key}"')

    async def handle_widget_filter_actions(self, widget: Widget, widget_filter: WidgetFilter) -> None:
        """Apply the filter's actions inside the widget modal; outcomes are logged only."""
        modal = await self.widgets.open_filter_modal(widget.key)
        await self.session.wait(self.settle_ms)

        for action in widget_filter.actions:
            if isinstance(action, WidgetSelectAction):
                label, value = await self.widgets.apply_select_in_modal(modal, action)
            elif isinstance(action, WidgetDatepickerAction):
                label, value = await self.widgets.apply_datepicker_in_modal(modal, action)
            else:
                raise TypeError(f"Unsupported widget filter action: {action!r}")

            if not label and not value:
                logger.warning(
                    f'Widget "{widget.key}" filter "{action.label}": {action.action} changed nothing',
                    extra={"page": self.page.title}
                )
            else:
                logger.info(
                    f'Widget "{widget.key}" filter "{action.label}" set to {label} ({value})',
                    extra={"page": self.page.title}
                )

    # Execution
    async def run_scenario(self, scenario: Scenario) -> ScenarioResult:
        """Run one scenario, turning its outcome into a result."""
        start_time = time.time()
        extra = {"page": self.page.title, "scenario": scenario.name}

        try:
            await scenario.run()
            status, error = "passed", None
        except ScenarioSkipped as e:
            status, error = "skipped", str(e)
            logger.info(f"Skipped: {e}", extra=extra)
        except Exception as e:
            status, error = "failed", str(e)[:500]
            logger.error(f"Failed: {e}", extra=extra)

        return ScenarioResult(
            name=scenario.name,
            status=status,
            duration_ms=int((time.time() - start_time) * 1000),
            error=error
        )

    async def run_all(self) -> Dict[str, Any]:
        """Run every scenario in order; a failure never stops the following ones."""
        scenarios = self.scenarios()
        report = {
            "page": self.page.title,
            "total": len(scenarios),
            "passed": 0,
            "failed": 0,
            "skipped": 0,
            "scenarios": []
        }

        logger.info(f"Running {len(scenarios)} scenarios", extra={"page": self.page.title})

        for scenario in scenarios:
            result = await self.run_scenario(scenario)
            report["scenarios"].append(result)
            report[result.status] += 1

        logger.info(
            f"Summary: {report['passed']} passed, {report['failed']} failed, {report['skipped']} skipped",
            extra={"page": self.page.title}
        )
        return report
