"""Listing query resolution shared by the JSON API and the products page.

Turns raw query-string parameters into a Mongo filter, a price sort and a
page window, and rebuilds prev/next navigation links from the same
parameters. Nothing here touches the database.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

DEFAULT_LIMIT = 10
DEFAULT_PAGE = 1

STATUS_TRUE_VALUES = ("true", "1", "yes")
AVAILABILITY_WORDS = ("true", "false", "disponible", "no disponible")
AVAILABLE_WORDS = ("true", "disponible")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class ListingQuery:
    filter: Dict[str, Any]
    sort_spec: Optional[List[Tuple[str, int]]]
    page: int
    limit: int
    sort: Optional[str] = None
    query: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class PageLinks:
    prev_link: Optional[str] = None
    next_link: Optional[str] = None


@dataclass
class Page:
    items: List[Dict[str, Any]] = field(default_factory=list)
    total_count: int = 0
    total_pages: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    has_prev_page: bool = False
    has_next_page: bool = False
    prev_page: Optional[int] = None
    next_page: Optional[int] = None


def coerce_int(value: Optional[str], default: int) -> int:
    """Leading-integer parse with fallback; 0 and garbage both mean default."""
    if value is None:
        return default
    match = _LEADING_INT.match(str(value))
    parsed = int(match.group(1)) if match else 0
    return max(1, parsed or default)


def parse_status(value: str) -> bool:
    return value in STATUS_TRUE_VALUES


def build_filter(
    query: Optional[str],
    category: Optional[str],
    status: Optional[str],
) -> Dict[str, Any]:
    if category:
        return {"category": category.strip()}
    if status is not None:
        return {"status": parse_status(status)}
    if query:
        lowered = query.strip().lower()
        if lowered in AVAILABILITY_WORDS:
            return {"status": lowered in AVAILABLE_WORDS}
        return {"category": query.strip()}
    return {}


def build_sort(sort: Optional[str]) -> Optional[List[Tuple[str, int]]]:
    if sort == "asc":
        return [("price", 1)]
    if sort == "desc":
        return [("price", -1)]
    return None


def resolve_listing(params: Mapping[str, str]) -> ListingQuery:
    query = params.get("query")
    category = params.get("category")
    status = params.get("status")
    sort = params.get("sort")
    return ListingQuery(
        filter=build_filter(query, category, status),
        sort_spec=build_sort(sort),
        page=coerce_int(params.get("page"), DEFAULT_PAGE),
        limit=coerce_int(params.get("limit"), DEFAULT_LIMIT),
        sort=sort,
        query=query,
        category=category,
        status=status,
    )


def paginate(total_count: int, page: int, limit: int) -> Page:
    total_pages = -(-total_count // limit)
    has_prev = page > 1
    has_next = page < total_pages
    return Page(
        total_count=total_count,
        total_pages=total_pages,
        page=page,
        limit=limit,
        has_prev_page=has_prev,
        has_next_page=has_next,
        prev_page=page - 1 if has_prev else None,
        next_page=page + 1 if has_next else None,
    )


def page_query_string(listing: ListingQuery, page: int) -> str:
    pairs: List[Tuple[str, Any]] = [("page", page)]
    if listing.limit != DEFAULT_LIMIT:
        pairs.append(("limit", listing.limit))
    if listing.sort:
        pairs.append(("sort", listing.sort))
    if listing.query:
        pairs.append(("query", listing.query))
    if listing.category:
        pairs.append(("category", listing.category))
    if listing.status is not None:
        pairs.append(("status", listing.status))
    return urlencode(pairs)


def build_links(listing: ListingQuery, result: Page, base_url: str) -> PageLinks:
    prev_link = None
    next_link = None
    if result.has_prev_page:
        prev_link = f"{base_url}?{page_query_string(listing, result.prev_page)}"
    if result.has_next_page:
        next_link = f"{base_url}?{page_query_string(listing, result.next_page)}"
    return PageLinks(prev_link=prev_link, next_link=next_link)
