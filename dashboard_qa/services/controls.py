"""
Shared routines for the dashboard's custom select and calendar controls.

Top filters and widget filter modals render the same components; the
routines here operate on a control locator and never look outside it.
"""

import logging
import random
from typing import Optional, Sequence, Tuple, Union

from playwright.async_api import Locator, Page as BrowserPage

from dashboard_qa.models.page import CalendarMove, CalendarSelect
from dashboard_qa.utils.errors import ElementNotFoundError

logger = logging.getLogger(__name__)

# Select component
SELECT_PREVIEW = ".custom-select-component__preview-text-block"
SELECT_BLOCK = ".custom-select-component__block"
SELECT_OPTION = ".custom-select-component__option"
SELECT_OVERLAY = ".custom-select-component__overlay"

# Calendar component
DATEPICKER_VALUE = ".vuejs3-datepicker__value"
CALENDAR_PREV = ".vuejs3-datepicker__calendar .prev"
CALENDAR_NEXT = ".vuejs3-datepicker__calendar .next"
CALENDAR_CELL = ".vuejs3-datepicker__calendar .cell"
CALENDAR_HEADER = ".day__month_btn"

MONTHS = {
    'Янв': '01',
    'Фев': '02',
    'Мар': '03',
    'Апр': '04',
    'Май': '05',
    'Июн': '06',
    'Июл': '07',
    'Авг': '08',
    'Сен': '09',
    'Окт': '10',
    'Ноя': '11',
    'Дек': '12',
}


def resolve_select_index(
    count: int,
    select_index: Union[int, str],
    rng: Optional[random.Random] = None
) -> Optional[int]:
    """
    Pick the option position for a select action.

    Positions are scanned in order; an explicit integer is matched before
    'first' and 'last' on each position. 'random' is only considered once
    the scan found nothing, and then draws uniformly from all options.

    Returns:
        Option position, or None when nothing matches.
    """
    explicit = isinstance(select_index, int) and not isinstance(select_index, bool)

    for position in range(count):
        if explicit and position == select_index:
            return position
        if select_index == "first" and position == 0:
            return position
        if select_index == "last" and position == count - 1:
            return position

    if select_index == "random" and count > 0:
        return (rng or random).randrange(count)

    return None


def format_picked_date(day: str, header: str) -> Tuple[str, str]:
    """
    Convert a picked calendar day and the calendar header into filter values.

    Args:
        day: Day of month as rendered in the cell ('1'..'31')
        header: Month/year header as rendered, e.g. 'Дек. 2023'

    Returns:
        (value_text as DD.MM.YYYY, value as YYYY-MM-DD)
    """
    month_name, _, year = header.strip().partition(". ")
    month = MONTHS.get(month_name)
    if month is None or not year:
        raise ValueError(f"Unrecognised calendar header: '{header}'")

    day = day.strip().zfill(2)
    return f"{day}.{month}.{year.strip()}", f"{year.strip()}-{month}-{day}"


async def require(locator: Locator, what: str, selector: str) -> Locator:
    """First element of a locator, or ElementNotFoundError."""
    if await locator.count() == 0:
        raise ElementNotFoundError(what, selector)
    return locator.first


async def click(locator: Locator) -> None:
    """Click through overlays the way the dashboard's own handlers receive it."""
    await locator.scroll_into_view_if_needed()
    await locator.dispatch_event("click")


async def choose_option(
    browser_page: BrowserPage,
    control: Locator,
    action,
    rng: Optional[random.Random] = None,
    commit_ms: int = 1000
) -> Tuple[Optional[str], Optional[str]]:
    """
    Activate one option of an already opened select control.

    Args:
        browser_page: Page used for settle delays
        control: Element carrying test-value / test-value-text for the select
        action: Select action (top filter or widget modal variant)
        rng: Random source for 'random' selection
        commit_ms: Pause after clicking the option

    Returns:
        (label text, value): the aggregate state of the control for
        multi-select actions, otherwise the chosen option's own pair.
        (None, None) when no option matched.
    """
    options = control.locator(SELECT_OPTION)
    count = await options.count()
    position = resolve_select_index(count, action.select_index, rng)

    if position is None:
        logger.warning(
            f"No option matched selectIndex={action.select_index!r} among {count} options"
        )
        return None, None

    option = options.nth(position)
    text = await option.get_attribute("select-text")
    value = await option.get_attribute("select-value")
    logger.info(f"Selecting option {position + 1}/{count}: {text} ({value})")

    await option.dispatch_event("click")
    await browser_page.wait_for_timeout(commit_ms)

    if action.close_overlay:
        overlay = await require(control.locator(SELECT_OVERLAY), "Select overlay", SELECT_OVERLAY)
        await overlay.dispatch_event("click")

    await browser_page.wait_for_timeout(action.wait_time)

    if action.multi_select:
        return (
            await control.get_attribute("test-value-text"),
            await control.get_attribute("test-value"),
        )

    return text, value


async def pick_calendar_date(
    browser_page: BrowserPage,
    control: Locator,
    steps: Sequence[Union[CalendarMove, CalendarSelect]],
    settle_ms: int = 500,
    commit_ms: int = 1000
) -> Tuple[str, str]:
    """
    Walk an already opened calendar and pick a date.

    Returns:
        (value_text, value) of the last picked date, or ('', '') when no
        step matched a calendar cell.
    """
    value_text = ""
    value = ""

    for step in steps:
        if isinstance(step, CalendarMove):
            selector = CALENDAR_PREV if step.action == "prev" else CALENDAR_NEXT
            button = await require(control.locator(selector), f"Calendar '{step.action}' button", selector)
            await button.dispatch_event("click")
            await browser_page.wait_for_timeout(settle_ms)

        elif isinstance(step, CalendarSelect):
            cells = control.locator(CALENDAR_CELL)
            for position in range(await cells.count()):
                cell = cells.nth(position)
                if (await cell.inner_text()).strip() != step.day:
                    continue

                header = await require(control.locator(CALENDAR_HEADER), "Calendar header", CALENDAR_HEADER)
                value_text, value = format_picked_date(step.day, await header.inner_text())

                await cell.dispatch_event("click")
                await browser_page.wait_for_timeout(commit_ms)
                break
            else:
                logger.warning(f"No calendar cell shows day '{step.day}'")

        else:
            raise TypeError(f"Unsupported calendar step: {step!r}")

    return value_text, value
