"""Markup dialects: wrapper templates and escaping for rendered answers.

HTML mirrors the styled markup of the web client; RICH targets Rich console
markup for the terminal front ends.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

INDENT_UNIT_PX = 20


@dataclass(frozen=True)
class Dialect:
    """Templates for one output markup language.

    Templates containing ``{}`` wrap already-escaped content. Rendered lines
    are joined with ``separator`` and the joined document goes through
    ``finish`` once before it is displayed.
    """

    name: str
    escape: Callable[[str], str]
    strong: str
    emphasis: str
    code: str
    heading: Callable[[int, str], str]
    strong_paragraph: str
    paragraph: str
    list_open: str
    list_close: str
    list_item: Callable[[int, str], str]
    line_break: str
    separator: str
    preformatted: str
    finish: Callable[[str], str]


def _unchanged(markup: str) -> str:
    return markup


def _html_escape(text: str) -> str:
    return html.escape(text, quote=True)


def _html_heading(level: int, text: str) -> str:
    return (
        f'<h{level} style="margin-top: 20px; margin-bottom: 10px; color: #667eea; '
        f'font-weight: 600;">{text}</h{level}>'
    )


def _html_list_item(indent: int, text: str) -> str:
    if indent > 0:
        return (
            f'<li style="margin-left: {indent * INDENT_UNIT_PX}px; margin-bottom: 8px;">'
            f"{text}</li>"
        )
    return f'<li style="margin-bottom: 8px;">{text}</li>'


HTML = Dialect(
    name="html",
    escape=_html_escape,
    strong="<strong>{}</strong>",
    emphasis="<em>{}</em>",
    code=(
        '<code style="background: #f4f4f4; padding: 2px 6px; border-radius: 3px; '
        'font-family: monospace;">{}</code>'
    ),
    heading=_html_heading,
    strong_paragraph=(
        '<p style="font-weight: 600; margin: 10px 0; color: #555;"><strong>{}</strong></p>'
    ),
    paragraph='<p style="margin: 10px 0; line-height: 1.8;">{}</p>',
    list_open='<ul style="margin: 10px 0; padding-left: 25px; line-height: 1.8;">',
    list_close="</ul>",
    list_item=_html_list_item,
    line_break="<br>",
    separator="",
    preformatted="<pre>{}</pre>",
    finish=_unchanged,
)


# A Rich tag may open on one line and close on a later one, so brackets from
# answer text are held as placeholders and escaped once per document.
_TEXT_OPEN = "\ue000"
_TEXT_CLOSE = "\ue001"
_BACKSLASHES_BEFORE_TAG_RE = re.compile(r"(\\+)(?=\[)")
# Same tag grammar as rich.markup: "[" + name start + anything up to "]"
# that does not cross another "[".
_TEXT_TAG_RE = re.compile(rf"(\\*){_TEXT_OPEN}(?=[a-z#/@][^\[{_TEXT_OPEN}]*?{_TEXT_CLOSE})")


def _rich_escape(text: str) -> str:
    text = text.replace(_TEXT_OPEN, "\ufffd").replace(_TEXT_CLOSE, "\ufffd")
    return text.replace("[", _TEXT_OPEN).replace("]", _TEXT_CLOSE)


def _rich_finish(markup: str) -> str:
    """Turn placeholder brackets back into text that Rich shows literally.

    Only a text "[" that would start a tag in the joined document gets a
    backslash. Backslashes in front of a real tag are doubled.
    """
    markup = _BACKSLASHES_BEFORE_TAG_RE.sub(lambda m: m.group(1) * 2, markup)
    markup = _TEXT_TAG_RE.sub(lambda m: m.group(1) * 2 + "\\" + _TEXT_OPEN, markup)
    return markup.replace(_TEXT_OPEN, "[").replace(_TEXT_CLOSE, "]")


def _rich_heading(level: int, text: str) -> str:
    # h1/h2 stand out with underline; deeper levels are just bold
    if level <= 2:  # noqa: PLR2004
        return f"[bold underline #667eea]{text}[/]"
    return f"[bold #667eea]{text}[/]"


def _rich_list_item(indent: int, text: str) -> str:
    return f"{' ' * indent}  • {text}"


RICH = Dialect(
    name="rich",
    escape=_rich_escape,
    strong="[bold]{}[/bold]",
    emphasis="[italic]{}[/italic]",
    code="[bold cyan]{}[/bold cyan]",
    heading=_rich_heading,
    strong_paragraph="[bold]{}[/bold]",
    paragraph="{}",
    list_open="",
    list_close="",
    list_item=_rich_list_item,
    line_break="",
    separator="\n",
    preformatted="{}",
    finish=_rich_finish,
)

DIALECTS: dict[str, Dialect] = {d.name: d for d in (HTML, RICH)}


def get_dialect(name: str) -> Dialect:
    """Look up a dialect by name ("html" or "rich")."""
    try:
        return DIALECTS[name]
    except KeyError:
        msg = f"Unknown markup dialect: {name!r}"
        raise ValueError(msg) from None
