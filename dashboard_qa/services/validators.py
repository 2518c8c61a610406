"""
Validation gating and checks over captured requests and console output.
"""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterable, List, Sequence

from pydantic import BaseModel

from dashboard_qa.models.cache import BrowserRequest, ConsoleEntry

logger = logging.getLogger(__name__)

VALIDATE_KEY = "validate"
BAD_REQUEST_MARKER = "400 (Bad Request)"
OK_STATUS = 200


def is_enabled(entity: Any, path: str, name: Any) -> bool:
    """
    Check whether a named validation is declared for an entity.

    Args:
        entity: Page model object or plain mapping
        path: Dotted path to the validation list, e.g. 'requests.validate'
        name: Validation name (string or enum member)

    Returns:
        True if the validation is listed. A path that does not lead to a
        list means the validation is not configured and yields False.
    """
    node = entity.model_dump(by_alias=True, mode="json") if isinstance(entity, BaseModel) else entity

    for segment in path.split("."):
        if not segment:
            continue
        if not isinstance(node, Mapping) or segment not in node:
            logger.debug(f"Validation path '{path}' does not resolve at '{segment}'")
            return False
        node = node[segment]

    if isinstance(node, Mapping):
        node = node.get(VALIDATE_KEY)

    if not isinstance(node, (list, tuple, set, frozenset)):
        return False

    wanted = name.value if isinstance(name, Enum) else name
    return wanted in node


# requests
def requests_exist(captured: Sequence[BrowserRequest], required: Sequence[str]) -> bool:
    """Every required URL was observed. Nothing required means valid."""
    if not required:
        return True

    urls = {request.url for request in captured}
    return all(url in urls for url in required)


def statuses_ok(captured: Iterable[BrowserRequest]) -> bool:
    """Every captured response has status 200."""
    return all(request.status == OK_STATUS for request in captured)


def failed_statuses(captured: Iterable[BrowserRequest]) -> List[BrowserRequest]:
    return [request for request in captured if request.status != OK_STATUS]


def console_clean(entries: Iterable[ConsoleEntry]) -> bool:
    """No console entry reports a bad request."""
    return not any(BAD_REQUEST_MARKER in entry.message for entry in entries)


def widget_console_clean(entries: Iterable[ConsoleEntry], widget_key: str) -> bool:
    """No console entry mentions the widget."""
    return not any(widget_key in entry.message for entry in entries)
