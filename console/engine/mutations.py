from __future__ import annotations

import logging
import threading
import urllib.parse
from dataclasses import dataclass

from ..errors import ConsoleError
from .grid import DataGridController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditTarget:
    """Where an edit form points, and the grid view it returns to."""

    table: str
    identity: str | None = None
    page: int = 1
    sort_column: str | None = None
    sort_order: str = "asc"

    def _view_params(self) -> dict:
        params: dict = {"page": self.page}
        if self.sort_column:
            params["column"] = self.sort_column
            params["order"] = self.sort_order
        return params

    def form_path(self) -> str:
        params = self._view_params()
        if self.identity:
            params = {"hash": self.identity, **params}
        return f"/tables/{urllib.parse.quote(self.table)}/form?{urllib.parse.urlencode(params)}"

    def return_path(self) -> str:
        return f"/tables/{urllib.parse.quote(self.table)}?{urllib.parse.urlencode(self._view_params())}"


class RowMutationCoordinator:
    """Deletes rows by identity and builds edit targets for the grid's rows.

    Deletion never touches the local TableView; the grid is re-fetched instead.
    """

    def __init__(self, client, grid: DataGridController) -> None:
        self.client = client
        self.grid = grid
        self.busy = False
        self.error: str | None = None
        self.message: str | None = None
        self._lock = threading.Lock()

    def delete_row(self, identity: str) -> bool:
        query = self.grid.query
        if query is None:
            raise ValueError("No table selected")
        identity = str(identity)
        with self._lock:
            if self.busy:
                logger.info("Delete of %s ignored, another mutation is in flight", identity)
                return False
            self.busy = True
            self.error = None
            self.message = None
        try:
            self.client.delete_row(query.table, identity, page=query.page)
        except ConsoleError as exc:
            logger.error("Deleting row %s from %s failed: %s", identity, query.table, exc)
            self.error = str(exc)
            return False
        finally:
            self.busy = False
        self.message = "Row deleted successfully"
        self.grid.refresh()
        return True

    def edit_target(self, identity: str | None = None) -> EditTarget:
        query = self.grid.query
        if query is None:
            raise ValueError("No table selected")
        return EditTarget(
            table=query.table,
            identity=str(identity) if identity is not None else None,
            page=query.page,
            sort_column=query.sort_column,
            sort_order=query.sort_order,
        )
