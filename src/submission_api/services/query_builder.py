"""Translate list-request parameters into a store query descriptor.

The builder is pure: it never touches the database. ``SubmissionStore``
turns the resulting ``SubmissionQuery`` into SQL.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Union

from submission_api.app.config import get_settings

DEFAULT_SORT = "-createdAt"

# Request parameter -> Submission column
EQUALITY_FILTERS: dict[str, str] = {
    "type": "submission_type",
    "stage": "stage",
    "source": "source",
    "status": "status",
    "priority": "priority",
    "assignedTo": "assigned_to",
}

SEARCH_FIELDS: tuple[str, ...] = ("name", "email", "message")

# Wire (camelCase) and column names accepted by ?sort=
SORTABLE_FIELDS: dict[str, str] = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "name": "name",
    "email": "email",
    "submissionType": "submission_type",
    "stage": "stage",
    "source": "source",
    "status": "status",
    "priority": "priority",
    "assignedTo": "assigned_to",
    "dateOfFirstContact": "date_of_first_contact",
    "followUpDate": "follow_up_date",
    "lastContactDate": "last_contact_date",
}
SORTABLE_FIELDS.update({column: column for column in list(SORTABLE_FIELDS.values())})


@dataclass
class ListParams:
    """Raw list parameters as they arrive on the query string."""

    type: Optional[str] = None
    stage: Optional[str] = None
    source: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    assignedTo: Optional[str] = None
    search: Optional[str] = None
    page: Union[int, str, None] = None
    limit: Union[int, str, None] = None
    sort: Optional[str] = None


@dataclass
class SortSpec:
    column: str = "created_at"
    descending: bool = True


@dataclass
class SubmissionQuery:
    """Filter, sort and pagination descriptor consumed by the store."""

    filters: dict[str, str] = field(default_factory=dict)
    search: Optional[str] = None
    sort: SortSpec = field(default_factory=SortSpec)
    page: int = 1
    limit: int = 10
    echo: dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def applied_filters(self) -> dict[str, Optional[str]]:
        """The filter parameters actually applied, for echoing back to the client."""
        return {key: value for key, value in self.echo.items() if value is not None}


@dataclass
class Pagination:
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        total_pages = math.ceil(total / limit)
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            items_per_page=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )

    def to_dict(self) -> dict:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalItems": self.total_items,
            "itemsPerPage": self.items_per_page,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _positive_int(value: Union[int, str, None], default: int) -> int:
    """Parse a page/limit value, clamping anything below 1 (or unparseable) to 1."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 1
    return max(number, 1)


def parse_sort(sort: Optional[str]) -> SortSpec:
    """Parse "-createdAt" style sort strings. Unknown fields sort by createdAt."""
    sort = _clean(sort) or DEFAULT_SORT
    descending = sort.startswith("-")
    name = sort.lstrip("-+")
    column = SORTABLE_FIELDS.get(name)
    if column is None:
        return SortSpec(column="created_at", descending=descending)
    return SortSpec(column=column, descending=descending)


def build_query(params: ListParams) -> SubmissionQuery:
    """Build the store query for GET /api/submissions."""
    settings = get_settings()

    filters: dict[str, str] = {}
    echo: dict[str, Optional[str]] = {}
    for param, column in EQUALITY_FILTERS.items():
        value = _clean(getattr(params, param))
        echo[param] = value
        if value is not None:
            filters[column] = value

    search = _clean(params.search)
    echo["search"] = search

    page = _positive_int(params.page, 1)
    limit = min(_positive_int(params.limit, settings.default_page_size), settings.max_page_size)

    return SubmissionQuery(
        filters=filters,
        search=search,
        sort=parse_sort(params.sort),
        page=page,
        limit=limit,
        echo=echo,
    )
