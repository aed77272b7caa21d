"""Filtering, sorting and pagination settings taken from user input."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any, Iterable, Mapping, Sequence, TypeVar, Union
from urllib.parse import parse_qs

from previous.basic import snake_case_to_title_case

T = TypeVar("T")

ORDER_BY_URL_KEY = "orderBy"
ORDER_DESC_URL_KEY = "desc"
PAGE_NUM_URL_KEY = "pageNum"
ITEMS_PER_PAGE_URL_KEY = "itemsPerPage"
SEARCH_URL_KEY_PREFIX = "search_"
FILTER_DEFAULT_MAX_ITEMS = 10

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_TRUE = {"1", "t", "T", "TRUE", "true", "True"}

Query = Union[str, Mapping[str, Union[str, Sequence[str]]]]


class ColumnPosition(IntEnum):
    """Horizontal alignment of a table column."""

    LEFT = 0
    RIGHT = 1


@dataclass
class ColInfo:
    """Display settings for one table column."""

    display_name: str = ""
    db_name: str = ""
    sortable: bool = False
    display_position: ColumnPosition = ColumnPosition.LEFT


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


@dataclass
class Pagination:
    """Page position and derived page numbers for a result set."""

    enabled: bool = False
    current_page: int = 0
    next_page: int = 0
    previous_page: int = 0
    total_pages: int = 0
    total_items: int = 0
    max_items_per_page: int = 0
    items_this_page: int = 0
    view_range_lower: int = 0
    view_range_upper: int = 0

    def generate_pagination(self, total_items: int, items_this_page: int) -> None:
        """Fill in page counts and visible ranges from the size of the data."""
        self.total_items = total_items
        self.items_this_page = items_this_page

        if self.max_items_per_page == 0:
            self.max_items_per_page = FILTER_DEFAULT_MAX_ITEMS

        per_page = self.max_items_per_page
        self.total_pages = _trunc_div(total_items, per_page)
        if total_items - per_page * self.total_pages != 0:
            self.total_pages += 1
        if self.total_pages == 0:
            self.total_pages = 1

        if self.current_page < 1:
            self.current_page = 1
            self.previous_page = 1
        else:
            self.previous_page = self.current_page - 1

        start = per_page * self.current_page - per_page
        self.view_range_lower = start + 1 if total_items != 0 else 0
        self.view_range_upper = start + items_this_page

        if self.current_page >= self.total_pages:
            self.current_page = self.total_pages
            self.next_page = self.total_pages
        else:
            self.next_page = self.current_page + 1


@dataclass
class Filter:
    """Search terms, ordering and pagination requested by a user."""

    search: dict[str, str] = field(default_factory=dict)
    pagination: Pagination = field(default_factory=Pagination)
    order_by: str = ""
    order_descending: bool = False


def new_filter_from_search(search: dict[str, str]) -> Filter:
    """A filter holding only ``search``, positioned on the first page."""
    return Filter(search=search, pagination=Pagination(current_page=1))


def _query_values(query: Query) -> dict[str, list[str]]:
    if isinstance(query, str):
        return parse_qs(query.removeprefix("?"), keep_blank_values=True, separator="&")
    return {
        key: [value] if isinstance(value, str) else list(value)
        for key, value in query.items()
    }


def _atoi(text: str) -> int:
    if _INT_RE.fullmatch(text) is None:
        return 0
    return min(max(int(text), _INT64_MIN), _INT64_MAX)


def parse_filter_from_query(query: Query) -> Filter:
    """Build a filter from URL query parameters (a query string or a mapping)."""
    values = _query_values(query)

    def first(key: str) -> str:
        found = values.get(key)
        return found[0] if found else ""

    search = {
        key.removeprefix(SEARCH_URL_KEY_PREFIX): "".join(items)
        for key, items in values.items()
        if key.startswith(SEARCH_URL_KEY_PREFIX) and "".join(items)
    }

    max_items = _atoi(first(ITEMS_PER_PAGE_URL_KEY)) or FILTER_DEFAULT_MAX_ITEMS
    current_page = _atoi(first(PAGE_NUM_URL_KEY))
    if current_page <= 0:
        current_page = 1

    return Filter(
        search=search,
        pagination=Pagination(current_page=current_page, max_items_per_page=max_items),
        order_by=first(ORDER_BY_URL_KEY),
        order_descending=first(ORDER_DESC_URL_KEY) in _TRUE,
    )


def query_params_from_pagenum(page_num: int, query_filter: Filter) -> str:
    """Query string for ``query_filter`` moved to page ``page_num``."""
    moved = replace(query_filter, pagination=replace(query_filter.pagination, current_page=page_num))
    return query_params_from_filter(moved)


def query_params_from_order_by(order_by: str, descending: bool, query_filter: Filter) -> str:
    """Query string for ``query_filter`` reordered, back on the first page."""
    reordered = replace(
        query_filter,
        order_by=order_by,
        order_descending=descending,
        pagination=replace(query_filter.pagination, current_page=1),
    )
    return query_params_from_filter(reordered)


def query_params_from_filter(query_filter: Filter) -> str:
    """Encode a filter as a URL query string beginning with ``?``."""
    output = (
        f"?{ORDER_BY_URL_KEY}={query_filter.order_by}"
        f"&{ORDER_DESC_URL_KEY}={'true' if query_filter.order_descending else 'false'}"
        f"&{PAGE_NUM_URL_KEY}={query_filter.pagination.current_page}"
        f"&{ITEMS_PER_PAGE_URL_KEY}={query_filter.pagination.max_items_per_page}"
    )
    output += "".join(
        f"&{SEARCH_URL_KEY_PREFIX}{key}={value}" for key, value in query_filter.search.items()
    )
    return output


def _column_name(column: Any) -> str:
    return column if isinstance(column, str) else column.name


def find_column(name: str, columns: Iterable[Any]) -> Any | None:
    """The column called ``name``, or None.

    Columns are names or objects with a ``name`` attribute.
    """
    return next((column for column in columns if _column_name(column) == name), None)


def col_info_from_columns(columns: Iterable[Any]) -> list[ColInfo]:
    """Column display settings derived from column names."""
    return [
        ColInfo(display_name=snake_case_to_title_case(name), db_name=name)
        for name in map(_column_name, columns)
    ]


def paginate(items: Sequence[T], query_filter: Filter) -> list[T]:
    """The slice of ``items`` on the filter's current page, when pagination is on."""
    pagination = query_filter.pagination
    if not pagination.enabled or pagination.max_items_per_page <= 0:
        return list(items)

    page = max(pagination.current_page, 1)
    limit = pagination.max_items_per_page
    offset = (page - 1) * limit
    if offset > len(items):
        return []
    return list(items[offset : offset + limit])