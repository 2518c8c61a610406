"""Widget reads and actions, including filters opened in a widget's modal."""

import json
import logging
import random
from typing import Iterable, List, Optional, Tuple

from playwright.async_api import Locator

from dashboard_qa.models.cache import ConsoleEntry, LogLevel, ReserveWidgetItem
from dashboard_qa.models.page import WidgetDatepickerAction, WidgetSelectAction
from dashboard_qa.services import controls
from dashboard_qa.services.validators import widget_console_clean
from dashboard_qa.utils.errors import ElementNotFoundError

logger = logging.getLogger(__name__)

WIDGET_PARAMS_MARKER = "widgetParams"
WIDGET_TITLE = "h3.card__header"
MODAL_OPENER = '[test-modal-opener="btn"]'
MODAL_WRAPPER = ".modal-wrapper"


def widget_selector(key: str) -> str:
    return f'article[widget-key="{key}"]'


def _decode_payload(text: str):
    payload = json.loads(text.strip())
    if isinstance(payload, str):
        payload = json.loads(payload)
    return payload


def parse_widget_params(message: str) -> Optional[ReserveWidgetItem]:
    """
    Extract the widget state from a `widgetParams` console line.

    Console lines read '<source> <line>:<column> <payload>'. The dashboard
    logs the widget state as a JSON string whose content is itself JSON,
    with the marker inside the state, so the payload is decoded twice.
    Lines that log the marker as a separate token in front of the payload
    are read from after the marker.
    """
    if WIDGET_PARAMS_MARKER not in message:
        return None

    _, _, rest = message.partition(" ")
    _, _, rest = rest.partition(" ")

    try:
        payload = _decode_payload(rest)
    except json.JSONDecodeError:
        head, _, tail = message.partition(WIDGET_PARAMS_MARKER)
        # Quoted marker: '"widgetParams" "<payload>"'
        if head.endswith('"') and tail.startswith('"'):
            tail = tail[1:]
        payload = _decode_payload(tail)

    return ReserveWidgetItem.model_validate(payload)


def collect_widget_params(entries: Iterable[ConsoleEntry]) -> List[ReserveWidgetItem]:
    """One cache entry per widget; a later log line replaces an earlier one."""
    latest = {}

    for entry in entries:
        if entry.level != LogLevel.INFO or WIDGET_PARAMS_MARKER not in entry.message:
            continue
        try:
            item = parse_widget_params(entry.message)
        except ValueError as e:
            logger.warning(f"Unreadable widgetParams log line: {e}")
            continue
        if item is not None:
            latest[item.widget] = item

    return list(latest.values())


class WidgetActionHandler:
    """Reads and drives dashboard widgets."""

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

    async def locate_widget(self, key: str) -> Locator:
        selector = widget_selector(key)
        return await controls.require(self.page.locator(selector), f"Widget '{key}'", selector)

    async def go_to_widget(self, key: str) -> None:
        widget = await self.locate_widget(key)
        await widget.scroll_into_view_if_needed()
        await self.page.wait_for_timeout(self.settle_ms)

    async def read_title(self, key: str) -> Tuple[bool, Optional[str]]:
        """(found, title) of a widget."""
        try:
            widget = await self.locate_widget(key)
            title = await controls.require(widget.locator(WIDGET_TITLE), f"Title of widget '{key}'", WIDGET_TITLE)
        except ElementNotFoundError as e:
            logger.warning(str(e))
            return False, None

        return True, (await title.inner_text()).strip()

    def read_widgets_cache(self) -> List[ReserveWidgetItem]:
        """Widget states the dashboard has logged so far."""
        items = collect_widget_params(self.session.console_entries(LogLevel.INFO))
        logger.debug(f"Cached {len(items)} widgets from console logs")
        return items

    def console_clean(self, entries: Iterable[ConsoleEntry], key: str) -> bool:
        return widget_console_clean(entries, key)

    async def read_filter_existence(self, widget_key: str, filter_key: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """(found, title, value text) of a filter block inside a widget."""
        selector = f'[test-block-name="{filter_key}"]'
        try:
            widget = await self.locate_widget(widget_key)
            block = await controls.require(widget.locator(selector), f"Filter '{filter_key}' of '{widget_key}'", selector)
        except ElementNotFoundError as e:
            logger.warning(str(e))
            return False, None, None

        return True, await block.get_attribute("test-block-title"), await block.get_attribute("test-block-value")

    async def open_filter_modal(self, widget_key: str) -> Locator:
        """Open the widget's filter modal and return its root."""
        opener_selector = f'{widget_selector(widget_key)} {MODAL_OPENER}'
        opener = await controls.require(
            self.page.locator(opener_selector), f"Modal opener of '{widget_key}'", opener_selector
        )
        await opener.hover()
        await self.page.wait_for_timeout(self.settle_ms)
        await opener.dispatch_event("click")
        await self.page.wait_for_timeout(self.settle_ms)

        modal_selector = f'{widget_selector(widget_key)} {MODAL_WRAPPER}'
        return await controls.require(
            self.page.locator(modal_selector), f"Filter modal of '{widget_key}'", modal_selector
        )

    async def _modal_control(self, modal: Locator, label: str) -> Locator:
        selector = f'[test-label="{label}"]'
        return await controls.require(modal.locator(selector), f"Modal filter '{label}'", selector)

    async def apply_select_in_modal(
        self,
        modal: Locator,
        action: WidgetSelectAction
    ) -> Tuple[Optional[str], Optional[str]]:
        """Open a selector in the modal and activate the option chosen by the action."""
        control = await self._modal_control(modal, action.label)
        block = await controls.require(
            control.locator(controls.SELECT_BLOCK), f"Selector '{action.label}'", controls.SELECT_BLOCK
        )
        await block.dispatch_event("click")
        await self.page.wait_for_timeout(self.settle_ms)

        return await controls.choose_option(self.page, control, action, self.rng, self.commit_ms)

    async def apply_datepicker_in_modal(
        self,
        modal: Locator,
        action: WidgetDatepickerAction
    ) -> Tuple[str, str]:
        """Open a calendar in the modal and run the picker steps."""
        control = await self._modal_control(modal, action.label)
        opener = await controls.require(
            control.locator(controls.DATEPICKER_VALUE), f"Date picker '{action.label}'", controls.DATEPICKER_VALUE
        )
        await opener.dispatch_event("click")
        await self.page.wait_for_timeout(self.commit_ms)

        value_text, value = await controls.pick_calendar_date(
            self.page, control, action.picker, self.settle_ms, self.commit_ms
        )
        await self.page.wait_for_timeout(action.wait_time)
        return value_text, value
