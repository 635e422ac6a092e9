"""Data grid controller: one table page, its sort, its pager and its selection.

Fetches are split into ``begin`` (tag the request with a new generation) and
``complete``/``fail`` (apply the outcome only if its generation is still the
latest). ``load`` runs both halves; callers that overlap requests, such as
concurrent Dash callbacks, get "latest request wins" for free.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import List, Union

from ..data_model import TableView, row_identity
from ..errors import ConsoleError, DomainError
from .selection import HeaderState, SelectionSet

logger = logging.getLogger(__name__)

SORT_ORDERS = ("asc", "desc")
ELLIPSIS = "..."

_UNSET = object()


@dataclass(frozen=True)
class GridQuery:
    table: str
    page: int = 1
    sort_column: str | None = None
    sort_order: str = "asc"

    def __post_init__(self) -> None:
        if not str(self.table or "").strip():
            raise ValueError("Table name cannot be empty")
        if int(self.page) < 1:
            raise ValueError("Page must be 1 or greater")
        if self.sort_order not in SORT_ORDERS:
            raise ValueError(f"Sort order must be one of {', '.join(SORT_ORDERS)}")

    @property
    def is_sorted(self) -> bool:
        return bool(self.sort_column)

    def without_sort(self) -> "GridQuery":
        return replace(self, sort_column=None, sort_order="asc")


@dataclass(frozen=True)
class GridTicket:
    generation: int
    query: GridQuery


class DataGridController:
    def __init__(self, client) -> None:
        self.client = client
        self.query: GridQuery | None = None
        self.view: TableView | None = None
        self.selection = SelectionSet()
        self.error: str | None = None
        self.loading = False
        self.rejected_query: GridQuery | None = None
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self, query: GridQuery) -> GridTicket:
        with self._lock:
            self._generation += 1
            self.query = query
            self.loading = True
            self.rejected_query = None
            self.selection = SelectionSet(len(self.view.rows) if self.view else 0)
            return GridTicket(self._generation, query)

    def is_current(self, ticket: GridTicket) -> bool:
        return ticket.generation == self._generation

    def complete(self, ticket: GridTicket, view: TableView) -> bool:
        with self._lock:
            if not self.is_current(ticket):
                logger.debug("Dropping stale page for %s (generation %s < %s)", ticket.query, ticket.generation, self._generation)
                return False
            self.view = view
            self.selection = SelectionSet(len(view.rows))
            self.error = None
            self.loading = False
            return True

    def fail(self, ticket: GridTicket, exc: Exception) -> bool:
        with self._lock:
            if not self.is_current(ticket):
                logger.debug("Ignoring stale failure for %s: %s", ticket.query, exc)
                return False
            self.loading = False
            self.error = message = str(exc)
            retry_unsorted = isinstance(exc, DomainError) and ticket.query.is_sorted
        if not retry_unsorted:
            logger.error("Loading %s failed: %s", ticket.query.table, exc)
            return True
        logger.warning(
            "Sort %s %s rejected for %s, falling back to unsorted",
            ticket.query.sort_column,
            ticket.query.sort_order,
            ticket.query.table,
        )
        # the rejected sort must not stay in the navigation state
        if self.load(ticket.query.without_sort()):
            self.error = message
            self.rejected_query = ticket.query
        return True

    def load(self, query: GridQuery | None = None) -> bool:
        query = query or self.query
        if query is None:
            raise ValueError("No table selected")
        ticket = self.begin(query)
        try:
            view = self.client.fetch_table(
                query.table,
                page=query.page,
                column=query.sort_column,
                order=query.sort_order if query.sort_column else None,
            )
        except ConsoleError as exc:
            self.fail(ticket, exc)
            return False
        return self.complete(ticket, view)

    def refresh(self) -> bool:
        return self.load()

    def clear(self) -> None:
        """Forget the current table; responses still in flight become stale."""
        with self._lock:
            self._generation += 1
            self.query = None
            self.view = None
            self.selection = SelectionSet()
            self.error = None
            self.loading = False
            self.rejected_query = None

    def navigate(
        self,
        table: str | None = None,
        page: int | None = None,
        sort_column: Union[str, None, object] = _UNSET,
        sort_order: str | None = None,
    ) -> bool:
        """Move to new navigation parameters; re-fetches only when something changed."""
        current = self.query
        if table is not None and (current is None or table != current.table):
            query = GridQuery(
                table=table,
                page=page or 1,
                sort_column=None if sort_column is _UNSET else sort_column or None,
                sort_order=sort_order or "asc",
            )
        else:
            if current is None:
                raise ValueError("No table selected")
            query = GridQuery(
                table=current.table,
                page=current.page if page is None else int(page),
                sort_column=current.sort_column if sort_column is _UNSET else sort_column or None,
                sort_order=sort_order or current.sort_order,
            )
        settled = self.view is not None and (self.error is None or self.rejected_query is not None)
        if settled and query in (current, self.rejected_query):
            return False
        return self.load(query)

    def sort_by(self, column: str | None, order: str = "asc") -> bool:
        return self.navigate(page=1, sort_column=column, sort_order=order)

    @property
    def page(self) -> int:
        return self.query.page if self.query else 1

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    @property
    def has_next_page(self) -> bool:
        return bool(self.view and self.view.has_next_page)

    def next_page(self) -> bool:
        if not self.has_next_page:
            return False
        return self.navigate(page=self.page + 1)

    def previous_page(self) -> bool:
        if not self.has_previous_page:
            return False
        return self.navigate(page=self.page - 1)

    def go_to_page(self, page) -> bool:
        try:
            target = int(page)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid page number: {page!r}") from exc
        if target < 1:
            raise ValueError("Page must be 1 or greater")
        return self.navigate(page=target)

    def page_items(self) -> List[Union[int, str]]:
        """Pager entries around the current page; no last page because no total is known."""
        current = self.page
        items: List[Union[int, str]] = []
        if current > 2:
            items.append(1)
            if current > 3:
                items.append(ELLIPSIS)
        if current > 1:
            items.append(current - 1)
        items.append(current)
        if self.has_next_page:
            items.extend([current + 1, ELLIPSIS])
        return items

    def toggle_row(self, index: int) -> bool:
        with self._lock:
            return self.selection.toggle(index)

    def toggle_all(self) -> None:
        with self._lock:
            self.selection.toggle_all()

    def set_selection(self, indices) -> None:
        with self._lock:
            self.selection.select(indices)

    @property
    def header_state(self) -> HeaderState:
        return self.selection.header_state

    @property
    def selected_count(self) -> int:
        return self.selection.count

    def selected_identities(self) -> List[str]:
        if self.view is None:
            return []
        return [row_identity(self.view.rows[idx]) for idx in self.selection.indices]
