"""Formatting of non-streamed results: answers, raw JSON payloads, errors."""

from __future__ import annotations

import json
from typing import Any

from docstream.markdown_light import render_fragments
from docstream.markup import HTML, Dialect


def _section_title(title: str, dialect: Dialect) -> str:
    if dialect is HTML:
        return f"<h3>{dialect.escape(title)}</h3>"
    return f"[bold]{dialect.escape(title)}[/bold]"


def _body(text: str, dialect: Dialect) -> str:
    return dialect.separator.join(render_fragments(text, dialect))


def format_query_result(payload: dict[str, Any] | None, dialect: Dialect = HTML) -> str:
    """Render a synchronous query payload: the answer plus optional context.

    A missing or null ``response`` renders as an empty answer. The pieces are
    finished together so escaping sees the whole document.
    """
    payload = payload or {}
    answer = _body(payload.get("response") or "", dialect)
    context = payload.get("context_used")

    if dialect is HTML:
        out = _section_title("Response:", dialect)
        out += f'<div class="response-text formatted-response">{answer}</div>'
        if context:
            out += '<h3 style="margin-top: 25px;">Context Used:</h3>'
            out += f'<div class="context-text">{_body(context, dialect)}</div>'
        return dialect.finish(out)

    parts = [_section_title("Response:", dialect), answer]
    if context:
        parts.extend(["", _section_title("Context Used:", dialect), _body(context, dialect)])
    return dialect.finish("\n".join(parts))


def format_json(payload: Any, dialect: Dialect = HTML) -> str:  # noqa: ANN401
    """Show a payload verbatim as pretty-printed JSON."""
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    return dialect.finish(dialect.preformatted.format(dialect.escape(text)))


def format_error(message: str, dialect: Dialect = HTML) -> str:
    """Render an error message panel."""
    return dialect.finish(dialect.preformatted.format(dialect.escape(f"Error: {message}")))
