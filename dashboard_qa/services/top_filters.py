"""Top filter reads and actions (the page header filter bar)."""

import logging
import random
from typing import List, Optional, Tuple

from playwright.async_api import Locator

from dashboard_qa.models.cache import ReserveItem
from dashboard_qa.models.page import DatepickerFilterAction, SelectFilterAction, TopFilterItem
from dashboard_qa.services import controls
from dashboard_qa.services.url_params import decode
from dashboard_qa.utils.errors import ElementNotFoundError

logger = logging.getLogger(__name__)

REGION = ".header-filter"
FILTER = REGION + " [test-key]"


def filter_selector(key: str) -> str:
    return f'{REGION} [test-key="{key}"]'


class TopFilterActionHandler:
    """Reads and drives the filters of the header filter bar."""

    def __init__(
        self,
        session,
        rng: Optional[random.Random] = None,
        settle_ms: int = 500,
        commit_ms: int = 1000
    ):
        self.session = session
        self.rng = rng or random.Random()
        self.settle_ms = settle_ms
        self.commit_ms = commit_ms

    @property
    def page(self):
        return self.session.page

    async def locate(self, key: str) -> Locator:
        """The filter element tagged with `key`."""
        selector = filter_selector(key)
        return await controls.require(self.page.locator(selector), f"Top filter '{key}'", selector)

    async def read_existence(self, key: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """(found, label, value text) of a filter."""
        try:
            element = await self.locate(key)
        except ElementNotFoundError as e:
            logger.warning(str(e))
            return False, None, None

        return True, await element.get_attribute("test-label"), await element.get_attribute("test-value-text")

    async def read_value(self, key: str) -> Tuple[bool, Optional[str]]:
        """(found, value) of a filter."""
        try:
            element = await self.locate(key)
        except ElementNotFoundError as e:
            logger.warning(str(e))
            return False, None

        return True, await element.get_attribute("test-value")

    async def read_url_binding(self, key: str) -> Optional[str]:
        """Value of the filter in the current address, None when absent or empty."""
        return decode(self.page.url).get(key) or None

    async def snapshot(self) -> List[ReserveItem]:
        """Rendered state of every filter in the bar."""
        params = decode(self.page.url)
        filters = self.page.locator(FILTER)
        result = []

        for position in range(await filters.count()):
            element = filters.nth(position)
            key = await element.get_attribute("test-key")
            result.append(ReserveItem(
                key=key,
                label=await element.get_attribute("test-label"),
                value=await element.get_attribute("test-value"),
                value_text=await element.get_attribute("test-value-text"),
                url=params.get(key) or None,
            ))

        logger.debug(f"Cached {len(result)} top filters")
        return result

    async def apply_select_filter(
        self,
        item: TopFilterItem,
        action: SelectFilterAction
    ) -> Tuple[Optional[str], Optional[str]]:
        """Open the filter's selector and activate the option chosen by the action."""
        element = await self.locate(item.key)

        preview = await controls.require(
            element.locator(controls.SELECT_PREVIEW), f"Selector of '{item.key}'", controls.SELECT_PREVIEW
        )
        await controls.click(preview)
        await self.page.wait_for_timeout(self.commit_ms)

        return await controls.choose_option(self.page, element, action, self.rng, self.commit_ms)

    async def apply_datepicker_filter(
        self,
        item: TopFilterItem,
        action: DatepickerFilterAction
    ) -> Tuple[str, str]:
        """Open the filter's calendar and run the picker steps."""
        element = await self.locate(item.key)

        opener = await controls.require(
            element.locator(controls.DATEPICKER_VALUE), f"Date picker of '{item.key}'", controls.DATEPICKER_VALUE
        )
        await controls.click(opener)
        await self.page.wait_for_timeout(self.commit_ms)

        value_text, value = await controls.pick_calendar_date(
            self.page, element, action.picker, self.settle_ms, self.commit_ms
        )
        if not value:
            logger.warning(f"Date picker '{item.key}': picker steps selected no date")

        await self.page.wait_for_timeout(action.wait_time)
        return value_text, value
