# engine/state.py
from __future__ import annotations

import logging
from typing import List

from ..data_model import TableSummary
from ..errors import ConsoleError

logger = logging.getLogger(__name__)


def verification_phrase(table_name: str) -> str:
    return f"DROP TABLE {table_name}"


class TablesState:
    """Table list shared by the sidebar and every page, refreshed after DDL changes."""

    def __init__(self, client) -> None:
        self.client = client
        self.tables: List[TableSummary] = []
        self.refreshing = False
        self.creating = False
        self.deleting = False
        self.error: str | None = None

    def list_names(self) -> List[str]:
        return [table.table_name for table in self.tables]

    def refresh(self) -> bool:
        self.refreshing = True
        try:
            self.tables = self.client.list_tables()
            return True
        except ConsoleError as exc:
            logger.error("Failed to fetch tables: %s", exc)
            self.error = str(exc)
            self.tables = []
            return False
        finally:
            self.refreshing = False

    def create_table(self, table_name: str, inputs: list[dict]) -> bool:
        if self.creating:
            return False
        self.creating = True
        self.error = None
        try:
            self.client.create_table(table_name, inputs)
        except ConsoleError as exc:
            logger.error("Creating table %s failed: %s", table_name, exc)
            self.error = str(exc)
            return False
        finally:
            self.creating = False
        self.refresh()
        return True

    def delete_table(self, table_name: str, verification_query: str) -> bool:
        if self.deleting:
            return False
        self.deleting = True
        self.error = None
        try:
            self.client.delete_table(table_name, verification_query)
        except ConsoleError as exc:
            logger.error("Deleting table %s failed: %s", table_name, exc)
            self.error = str(exc)
            return False
        finally:
            self.deleting = False
        self.refresh()
        return True
