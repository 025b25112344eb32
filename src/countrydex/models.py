"""
countrydex.models – records, sort specs and the controller's state
"""

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Union

ASC = "asc"
DESC = "desc"
SORT_DIRECTIONS = (ASC, DESC)

# Disabled placeholder in the pagination bar for skipped page numbers.
GAP = "..."

PageControl = Union[int, str]


@dataclass(frozen=True)
class Record:
    """One country row. `rank` is the 1-based position in the fetch response."""

    name: str
    flag_ref: str
    rank: int


@dataclass(frozen=True)
class SortSpec:
    field: str
    label: str


SORT_SPECS = {
    "no": SortSpec("no", "No."),
    "name": SortSpec("name", "Country Name"),
}
DEFAULT_SORT = SORT_SPECS["name"]


class Phase(enum.Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    LOADING = "loading"
    READY = "ready"


@dataclass
class QueryState:
    query_text: str = ""
    records: List[Record] = field(default_factory=list)
    sort_spec: SortSpec = DEFAULT_SORT
    sort_direction: str = ASC
    page: int = 1
    loading: bool = False


@dataclass(frozen=True)
class TableView:
    """Everything the rendering layer needs, recomputed after each mutation."""

    rows: List[Record]
    loading: bool
    sort_spec: SortSpec
    sort_direction: str
    page_controls: List[PageControl]
    has_prev: bool
    has_next: bool
    page: int
    total_pages: int
    total_records: int
    query_text: str
    message: Optional[str] = None
