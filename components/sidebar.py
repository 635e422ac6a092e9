# components/sidebar.py
from __future__ import annotations

import urllib.parse

import dash_bootstrap_components as dbc
from dash import html

from console.engine import TablesState


def table_href(table_name: str) -> str:
    return f"/tables/{urllib.parse.quote(table_name)}"


def build_sidebar(tables: TablesState, active_table: str | None = None):
    links = [
        dbc.NavLink(
            name,
            href=table_href(name),
            active=name == active_table,
            className="text-truncate",
        )
        for name in tables.list_names()
    ]
    if not links:
        links = [html.Div("No tables found.", className="text-muted small px-3")]
    return dbc.Card(
        [
            html.H4("Tables", className="card-title"),
            dbc.Nav(links, vertical=True, pills=True, className="mb-3"),
            html.Hr(),
            dbc.Button(
                "Refresh",
                id="refresh-tables",
                color="secondary",
                size="sm",
                className="w-100",
                disabled=tables.refreshing,
            ),
            dbc.Button("New Table", href="/tables/new", color="primary", size="sm", className="mt-2 w-100"),
        ],
        body=True,
    )


__all__ = ["build_sidebar", "table_href"]
