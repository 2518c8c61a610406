"""KPI card reader."""

import logging
from typing import List

from dashboard_qa.models.cache import PageKpi

logger = logging.getLogger(__name__)

KPI_CARD = ".small-kpi"
KPI_TITLE = ".small-kpi__title"
KPI_UNIT = ".ps-1"
UNIT_PREFIX = "к "


class KpiReader:
    """Reads the small KPI cards at the top of a page."""

    def __init__(self, session):
        self.session = session

    async def read(self) -> List[PageKpi]:
        page = self.session.page
        cards = page.locator(KPI_CARD)
        kpis = []

        for position in range(await cards.count()):
            card = cards.nth(position)
            title = (await card.locator(KPI_TITLE).first.inner_text()).strip()

            units = []
            unit_items = card.locator(KPI_UNIT)
            for unit_position in range(await unit_items.count()):
                text = await unit_items.nth(unit_position).inner_text()
                units.append(text.replace(UNIT_PREFIX, "").strip())

            kpis.append(PageKpi(title=title, units=units))

        logger.debug(f"Read {len(kpis)} KPI cards")
        return kpis
