"""
pytest plugin: every YAML file in a `pages` directory is a page suite.

Each page file becomes a collector owning one event loop and one browser
session; each generated scenario becomes one test item.
"""

import asyncio
import logging
from pathlib import Path

import pytest

from dashboard_qa.models.scenario import Scenario
from dashboard_qa.services.browser_manager import BrowserSession
from dashboard_qa.services.page_handler import PageHandler
from dashboard_qa.services.page_loader import PAGE_SUFFIXES, PageLoader
from dashboard_qa.utils.config import settings, validate_settings
from dashboard_qa.utils.errors import (
    ElementNotFoundError,
    PageDefinitionError,
    ScenarioSkipped,
    ValidationFailure,
)
from dashboard_qa.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def pytest_addoption(parser):
    group = parser.getgroup("dashboard-qa", "dashboard page suites")
    group.addoption(
        "--dashboard-base-url",
        default=None,
        help="Dashboard base URL (overrides BASE_URL)",
    )
    group.addoption(
        "--dashboard-headed",
        action="store_true",
        default=False,
        help="Show the browser window",
    )
    group.addoption(
        "--dashboard-seed",
        type=int,
        default=None,
        help="Seed for 'random' option selection (overrides RANDOM_SEED)",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "dashboard_page: scenario generated from a page definition")


def pytest_collect_file(parent, file_path):
    if file_path.suffix in PAGE_SUFFIXES and file_path.parent.name == Path(settings.PAGES_DIR).name:
        return PageFile.from_parent(parent, path=file_path)
    return None


class PageFile(pytest.File):
    """A page definition file and the browser session its scenarios share."""

    def collect(self):
        try:
            page = PageLoader(self.path.parent).load_file(self.path)
        except PageDefinitionError as e:
            raise self.CollectError(str(e)) from e

        headed = self.config.getoption("dashboard_headed")
        self.browser = BrowserSession.from_settings(settings, headless=False if headed else None)
        self.handler = PageHandler.from_settings(
            page,
            self.browser,
            settings,
            base_url=self.config.getoption("dashboard_base_url"),
            seed=self.config.getoption("dashboard_seed"),
        )
        self.loop = None

        for scenario in self.handler.scenarios():
            yield ScenarioItem.from_parent(self, name=scenario.name, scenario=scenario)

    def setup(self):
        validate_settings()
        setup_logging()

        logger.info(f"Starting page suite {self.path.name}")
        self.loop = asyncio.new_event_loop()
        self.loop.run_until_complete(self.browser.start())

    def teardown(self):
        if self.loop is None:
            return
        try:
            self.loop.run_until_complete(self.browser.close())
        finally:
            self.loop.close()
            self.loop = None
            logger.info(f"Finished page suite {self.path.name}")

    def run(self, coroutine):
        return self.loop.run_until_complete(coroutine)


class ScenarioItem(pytest.Item):
    """One scenario of a page suite."""

    def __init__(self, *, scenario: Scenario, **kwargs):
        super().__init__(**kwargs)
        self.scenario = scenario
        self.add_marker("dashboard_page")

    def runtest(self):
        try:
            self.parent.run(self.scenario.run())
        except ScenarioSkipped as e:
            pytest.skip(str(e))

    def repr_failure(self, excinfo, style=None):
        if isinstance(excinfo.value, (ValidationFailure, ElementNotFoundError)):
            return f"{self.scenario.name}\n    {excinfo.value}"
        return super().repr_failure(excinfo, style=style)

    def reportinfo(self):
        return self.path, None, self.scenario.name
