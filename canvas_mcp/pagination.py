"""Link-header pagination for Canvas collections.

Canvas paginates list endpoints with an RFC 5988 ``Link`` header::

    <https://x.instructure.com/api/v1/courses?page=2&per_page=10>; rel="next",
    <https://x.instructure.com/api/v1/courses?page=1&per_page=10>; rel="first"

``fetch_all_pages`` is independent of the HTTP layer: it takes the first page
and a single-page fetcher, so it can be driven by a fake in tests.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from canvas_mcp.exceptions import TransportError

_URL_RE = re.compile(r"<([^>]+)>")
_REL_RE = re.compile(r'rel\s*=\s*"?([^";]+)"?', re.IGNORECASE)


@dataclass(frozen=True)
class Page:
    """One page of a collection plus its raw Link header (if any)."""

    records: list[Any]
    link: str | None = None


def parse_link_header(header: str | None) -> dict[str, str]:
    """Map each rel name in a Link header to its URL. Malformed entries are skipped."""
    links: dict[str, str] = {}
    if not header:
        return links
    for entry in header.split(","):
        url_match = _URL_RE.search(entry)
        rel_match = _REL_RE.search(entry)
        if not url_match or not rel_match:
            continue
        for rel in rel_match.group(1).split():
            links.setdefault(rel.lower(), url_match.group(1).strip())
    return links


def next_page_url(header: str | None) -> str | None:
    """Return the rel="next" URL, or None on the last page."""
    return parse_link_header(header).get("next")


def fetch_all_pages(
    first_page: Page,
    fetch_page: Callable[[str], Page],
    max_pages: int,
) -> list[Any]:
    """Follow rel="next" links until exhausted and concatenate every page.

    Pages are fetched strictly one after another and records keep the order
    Canvas returned them in. The next URL is requested verbatim because it may
    carry opaque cursor parameters.

    Raises:
        TransportError: if the collection spans more than ``max_pages`` pages.
    """
    records = list(first_page.records)
    next_url = next_page_url(first_page.link)
    pages = 1
    while next_url:
        if pages >= max_pages:
            raise TransportError(
                f"[ERROR] Pagination exceeded {max_pages} pages; "
                f"stopped before fetching {next_url}"
            )
        page = fetch_page(next_url)
        pages += 1
        records.extend(page.records)
        next_url = next_page_url(page.link)
    return records
