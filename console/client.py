"""HTTP client for the console's REST backend.

Every endpoint answers with the envelope ``{"success": bool, "data": ..., "error": "..."}``.
Some mutations answer with an empty body and a 201/204 status instead.
"""
from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .config import ConsoleConfig
from .data_model import DataTypeCatalog, HistoryEntry, TableSummary, TableView
from .errors import DomainError, TransportError

logger = logging.getLogger(__name__)

Transport = Callable[[str, str, Optional[bytes], Dict[str, str], float], Tuple[int, bytes]]


def urllib_transport(
    method: str,
    url: str,
    body: bytes | None,
    headers: Dict[str, str],
    timeout: float,
) -> Tuple[int, bytes]:
    req = urllib.request.Request(url, data=body, headers=headers, method=method)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.status, resp.read()
    except urllib.error.HTTPError as exc:
        return exc.code, exc.read() or b""
    except (urllib.error.URLError, OSError, ValueError) as exc:
        reason = getattr(exc, "reason", exc)
        raise TransportError(f"{method} {url} failed: {reason}") from exc


def _quote(segment: str) -> str:
    return urllib.parse.quote(str(segment), safe="")


class ConsoleClient:
    """Thin wrapper over the REST surface; decodes envelopes into data-model objects."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Transport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport or urllib_transport

    @classmethod
    def from_config(cls, config: ConsoleConfig) -> "ConsoleClient":
        return cls(config.api_url, timeout=config.timeout)

    def _url(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        url = f"{self.base_url}{path}"
        query = {key: value for key, value in (params or {}).items() if value not in (None, "")}
        if query:
            url = f"{url}?{urllib.parse.urlencode(query)}"
        return url

    def _request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        payload: Any = None,
    ) -> Any:
        url = self._url(path, params)
        headers = {"Accept": "application/json"}
        body = None
        if payload is not None:
            body = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        logger.debug("%s %s", method, url)
        status, raw = self.transport(method, url, body, headers, self.timeout)

        text = raw.decode("utf-8", errors="replace").strip() if raw else ""
        envelope: Any = None
        if text:
            try:
                envelope = json.loads(text)
            except json.JSONDecodeError as exc:
                if status >= 400:
                    raise DomainError(text, status=status) from exc
                raise TransportError(f"{method} {url} returned invalid JSON") from exc

        if status >= 400:
            message = envelope.get("error") if isinstance(envelope, dict) else None
            logger.warning("%s %s -> %s %s", method, url, status, message or "")
            raise DomainError(message or f"Request failed with status {status}", status=status)
        if isinstance(envelope, dict) and envelope.get("success") is False:
            raise DomainError(envelope.get("error") or "Request was not successful", status=status)
        if isinstance(envelope, dict) and "success" in envelope:
            return envelope.get("data")
        return envelope

    def list_tables(self) -> List[TableSummary]:
        data = self._request("GET", "/tables")
        if not isinstance(data, list):
            return []
        return [TableSummary.from_payload(item) for item in data]

    def fetch_table(
        self,
        table: str,
        page: int = 1,
        column: str | None = None,
        order: str | None = None,
    ) -> TableView:
        params: Dict[str, Any] = {"page": page}
        if column:
            params["column"] = column
            params["order"] = order or "asc"
        data = self._request("GET", f"/tables/{_quote(table)}", params)
        if not isinstance(data, dict):
            raise DomainError(f"No data returned for table {table}")
        return TableView.from_payload(data)

    def delete_table(self, table: str, verification_query: str) -> None:
        self._request(
            "DELETE",
            "/tables",
            payload={"tableName": table, "verificationQuery": verification_query},
        )

    def delete_row(self, table: str, identity: str, page: int | None = None) -> None:
        self._request("DELETE", f"/tables/{_quote(table)}/row/{_quote(identity)}", {"page": page})

    def fetch_data_types(self) -> DataTypeCatalog:
        data = self._request("GET", "/tables/form/new")
        if not isinstance(data, dict):
            raise DomainError("No data types found")
        return DataTypeCatalog.from_payload(data)

    def create_table(self, table: str, inputs: List[Dict[str, Any]]) -> None:
        self._request("POST", "/tables/form/new", payload={"tableName": table, "inputs": inputs})

    def fetch_form(self, table: str, identity: str | None = None, page: int | None = None) -> Dict[str, Any]:
        params = {"hash": identity, "page": page} if identity else None
        data = self._request("GET", f"/tables/{_quote(table)}/form", params)
        if not isinstance(data, dict):
            raise DomainError(f"No form data returned for table {table}")
        return data

    def save_form(
        self,
        table: str,
        values: Mapping[str, Mapping[str, str]],
        identity: str | None = None,
        page: int | None = None,
    ) -> None:
        params = {"hash": identity, "page": page} if identity else None
        self._request("POST", f"/tables/{_quote(table)}/form", params, payload=dict(values))

    def list_history(self, page: int = 1) -> List[HistoryEntry]:
        data = self._request("GET", "/history", {"page": page})
        return [HistoryEntry.from_payload(item) for item in data or []]

    def recent_history(self) -> List[HistoryEntry]:
        data = self._request("GET", "/history/recent")
        return [HistoryEntry.from_payload(item) for item in data or []]
