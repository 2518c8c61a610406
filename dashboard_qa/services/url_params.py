"""
Query-string handling for page addresses.

Values are written and read verbatim: nothing is escaped on encode and
nothing is percent-decoded on decode. `decode` is only meant to read
back addresses the dashboard (or `encode`) produced.
"""

from typing import Dict

from dashboard_qa.models.page import Page


def encode(page: Page) -> str:
    """Build the query string for a page: url params, then URL-bound top filters."""
    pairs = [f"{param.key}={param.value}" for param in page.url_params]

    for item in page.top_filters.items:
        if item.url:
            pairs.append(f"{item.key}={item.url}")

    return "&".join(pairs)


def _is_bare_query(text: str) -> bool:
    return "=" in text and "/" not in text and "#" not in text


def decode(url: str) -> Dict[str, str]:
    """
    Read the query string of an address into a mapping (last duplicate wins).

    Input without '?' is read as a bare query string when it has pairs and
    no path or fragment ('x=1&y=2'); any other address without a query
    yields an empty mapping.
    """
    _, separator, query = url.partition("?")
    if not separator and _is_bare_query(url):
        query = url
    if not query:
        return {}

    params: Dict[str, str] = {}
    for pair in query.split("&"):
        if not pair:
            continue
        key, _, value = pair.partition("=")
        params[key] = value

    return params


def page_address(base_url: str, page: Page) -> str:
    """Full navigation target for a page."""
    return f"{base_url}{page.url}?{encode(page)}"
