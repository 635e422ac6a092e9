# components/row_form.py
from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import html

from console.data_model import InputWidget
from console.engine import DynamicFormEngine, Override
from console.engine.form import ResolvedColumn

HIDDEN = {"display": "none"}


def field_value(form: DynamicFormEngine, col: ResolvedColumn):
    value = form.value(col.column_name)
    if col.input_widget is InputWidget.CHECKBOX:
        return bool(value)
    return value


def _widget(form: DynamicFormEngine, col: ResolvedColumn):
    name = col.column_name
    field_id = {"type": "field-input", "column": name}
    disabled = form.is_disabled(name)
    invalid = name in form.field_errors
    placeholder = f"Enter {col.descriptor.label}"
    if col.input_widget is InputWidget.CHECKBOX:
        return dbc.Checkbox(id=field_id, value=field_value(form, col), label=f"Enable {name}", disabled=disabled)
    if col.input_widget.multiline:
        return dbc.Textarea(
            id=field_id,
            value=field_value(form, col),
            rows=5,
            placeholder=placeholder,
            disabled=disabled,
            invalid=invalid,
        )
    return dbc.Input(
        id=field_id,
        type="number" if col.input_widget is InputWidget.NUMBER else "text",
        value=field_value(form, col),
        placeholder=placeholder,
        disabled=disabled,
        invalid=invalid,
    )


def _toggle(form: DynamicFormEngine, col: ResolvedColumn, kind: Override, label: str, available: bool):
    # rendered for every column so MATCH callbacks always find both toggles
    return dbc.Checkbox(
        id={"type": kind.value, "column": col.column_name},
        label=label,
        value=form.override_active(col.column_name, kind),
        style=None if available else HIDDEN,
        className="small",
    )


def _field(form: DynamicFormEngine, col: ResolvedColumn):
    desc = col.descriptor
    header = [dbc.Label(desc.column_name, className="fw-bold mb-0 me-2"), html.Small(f"({desc.data_type})", className="text-muted")]
    if desc.is_unique:
        header.append(dbc.Badge("Unique", color="info", className="ms-2"))
    return html.Div(
        [
            html.Div(header, className="d-flex align-items-center"),
            html.Div(
                [
                    _toggle(form, col, Override.DEFAULT, "Use default", desc.has_default),
                    _toggle(form, col, Override.AUTO_INCREMENT, "Auto increment", desc.has_auto_increment),
                ],
                className="d-flex gap-3",
            ),
            _widget(form, col),
            dbc.FormFeedback(form.field_errors.get(desc.column_name, ""), type="invalid"),
        ],
        className="mb-3",
    )


def build_row_form(form: DynamicFormEngine, cancel_href: str):
    if form.descriptor is None:
        return dbc.Alert(form.error or "No form loaded.", color="danger" if form.error else "secondary")
    descriptor = form.descriptor
    children = [html.H2(f"{descriptor.action.value} Record: {descriptor.table}", className="mb-3")]
    if form.error:
        children.append(dbc.Alert(form.error, color="danger"))
    children.extend(_field(form, col) for col in descriptor.columns)
    children.append(
        html.Div(
            [
                dbc.Button("Cancel", href=cancel_href, color="secondary", className="me-2"),
                dbc.Button(descriptor.action.value, id="form-submit", color="primary", disabled=form.submitting),
            ],
            className="d-flex justify-content-end",
        )
    )
    return dbc.Card(children, body=True)


__all__ = ["build_row_form", "field_value"]
