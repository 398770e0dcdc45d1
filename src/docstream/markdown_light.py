"""Light Markdown renderer for streamed answers.

Handles: headings, whole-line bold paragraphs, flat bullet/numbered lists
(indentation becomes a margin), blank lines, bold, italic, inline code.
Does NOT handle: links, tables, block quotes, fenced code, nested lists.

Every call renders the whole text from scratch, so it is safe to call on each
new prefix of a growing stream.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeAlias

from docstream.markup import HTML, Dialect

if TYPE_CHECKING:
    from collections.abc import Callable

MAX_HEADING_LEVEL = 4

_BOLD_LINE_RE = re.compile(r"^\*\*.*\*\*$|^__.*__$")
_LIST_ITEM_RE = re.compile(r"^(?:[*\-•]|\d+\.)\s+")
_BULLET_RE = re.compile(r"^[*\-•]\s+")
_NUMBER_RE = re.compile(r"^\d+\.\s+")
# Looser than _LIST_ITEM_RE on purpose: a blank line only keeps the list open
# when the next line looks like it starts another item.
_LIST_CONTINUES_RE = re.compile(r"^[*\-•\d]")

# (pattern, dialect attribute) in application order
_INLINE_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\*\*(.+?)\*\*"), "strong"),
    (re.compile(r"\*(.+?)\*"), "emphasis"),
    (re.compile(r"_(.+?)_"), "emphasis"),
    (re.compile(r"`(.+?)`"), "code"),
)

# Stands in for an already formatted span while a later rule is matched.
_SPAN_MARK = "\ufffc"


@dataclass
class _Span:
    template: str
    children: list[_Token]


_Token: TypeAlias = "str | _Span"


def format_inline(line: str, dialect: Dialect = HTML) -> str:
    """Apply bold, italic and inline-code formatting to a single line.

    Rules run in order over the whole line. A later rule may enclose a span
    made by an earlier one (``*see **this** here*``) but never starts or ends
    inside it, so the output is always properly nested. Only the text is
    escaped, never the wrapper markup. Unterminated markers stay plain text.
    """
    return dialect.finish(_format_inline(line, dialect))


def _format_inline(line: str, dialect: Dialect) -> str:
    tokens: list[_Token] = [line] if line else []
    for pattern, attr in _INLINE_RULES:
        tokens = _apply_rule(tokens, pattern, getattr(dialect, attr))
    return _render_tokens(tokens, dialect)


def _apply_rule(tokens: list[_Token], pattern: re.Pattern[str], template: str) -> list[_Token]:
    """Wrap every match of ``pattern`` in a new span, at every nesting level."""
    for token in tokens:
        if isinstance(token, _Span):
            token.children = _apply_rule(token.children, pattern, template)

    flat = "".join(t if isinstance(t, str) else _SPAN_MARK for t in tokens)
    out: list[_Token] = []
    pos = 0
    for m in pattern.finditer(flat):
        out.extend(_slice(tokens, pos, m.start()))
        out.append(_Span(template, _slice(tokens, m.start(1), m.end(1))))
        pos = m.end()
    out.extend(_slice(tokens, pos, len(flat)))
    return out


def _slice(tokens: list[_Token], start: int, end: int) -> list[_Token]:
    """Return the tokens covering ``flat[start:end]``; a span is one position wide."""
    out: list[_Token] = []
    offset = 0
    for token in tokens:
        width = len(token) if isinstance(token, str) else 1
        lo, hi = max(start, offset), min(end, offset + width)
        if lo < hi:
            out.append(token[lo - offset : hi - offset] if isinstance(token, str) else token)
        offset += width
    return out


def _render_tokens(tokens: list[_Token], dialect: Dialect) -> str:
    out: list[str] = []
    for token in tokens:
        if isinstance(token, str):
            out.append(dialect.escape(token))
        else:
            out.append(token.template.format(_render_tokens(token.children, dialect)))
    return "".join(out)


@dataclass
class _RenderState:
    """Per-call state threaded through the line rules."""

    lines: list[str]
    dialect: Dialect
    list_open: bool = False
    fragments: list[str] = field(default_factory=list)

    def close_list(self) -> str:
        if self.list_open:
            self.list_open = False
            return self.dialect.list_close
        return ""

    def next_line(self, index: int) -> str:
        return self.lines[index + 1].strip() if index + 1 < len(self.lines) else ""


# === Line rules ===


def _is_heading(line: str) -> bool:
    return line.startswith("#")


def _heading(state: _RenderState, index: int) -> str:
    line = state.lines[index].strip()
    text = line.lstrip("#")
    level = min(len(line) - len(text), MAX_HEADING_LEVEL)
    text = text.lstrip()
    return state.close_list() + state.dialect.heading(level, state.dialect.escape(text))


def _is_bold_line(line: str) -> bool:
    return _BOLD_LINE_RE.match(line) is not None


def _bold_line(state: _RenderState, index: int) -> str:
    line = state.lines[index].strip()
    text = line.replace("**", "").replace("__", "")
    return state.close_list() + state.dialect.strong_paragraph.format(state.dialect.escape(text))


def _is_list_item(line: str) -> bool:
    return _LIST_ITEM_RE.match(line) is not None


def _list_item(state: _RenderState, index: int) -> str:
    raw = state.lines[index]
    line = raw.strip()
    prefix = ""
    if not state.list_open:
        state.list_open = True
        prefix = state.dialect.list_open
    indent = len(raw) - len(raw.lstrip())
    # A bullet may be followed by a number ("- 1. Step"); both markers go.
    text = _NUMBER_RE.sub("", _BULLET_RE.sub("", line, count=1), count=1)
    text = _format_inline(text, state.dialect)
    return prefix + state.dialect.list_item(indent, text)


def _is_blank(line: str) -> bool:
    return line == ""


def _blank(state: _RenderState, index: int) -> str:
    prefix = ""
    nxt = state.next_line(index)
    if state.list_open and (nxt == "" or _LIST_CONTINUES_RE.match(nxt) is None):
        prefix = state.close_list()
    return prefix + state.dialect.line_break


def _paragraph(state: _RenderState, index: int) -> str:
    line = state.lines[index].strip()
    return state.close_list() + state.dialect.paragraph.format(_format_inline(line, state.dialect))


def _always(_line: str) -> bool:
    return True


_Rule: TypeAlias = "tuple[Callable[[str], bool], Callable[[_RenderState, int], str]]"

# First match wins; the predicate sees the trimmed line.
_LINE_RULES: tuple[_Rule, ...] = (
    (_is_heading, _heading),
    (_is_bold_line, _bold_line),
    (_is_list_item, _list_item),
    (_is_blank, _blank),
    (_always, _paragraph),
)


def render_fragments(text: str | None, dialect: Dialect = HTML) -> list[str]:
    """Render ``text`` into one markup fragment per line.

    A trailing list-close fragment is appended when the text ends inside a
    list and the dialect has closing markup. Fragments are not finished:
    join them with ``dialect.separator`` and pass the result through
    ``dialect.finish``, as render_markdown does.
    """
    if not text:
        return []

    state = _RenderState(lines=text.split("\n"), dialect=dialect)
    for index, raw in enumerate(state.lines):
        line = raw.strip()
        for predicate, handler in _LINE_RULES:
            if predicate(line):
                state.fragments.append(handler(state, index))
                break

    closing = state.close_list()
    if closing:
        state.fragments.append(closing)
    return state.fragments


def render_markdown(text: str | None, dialect: Dialect = HTML) -> str:
    """Convert lightly formatted text to markup in the given dialect."""
    return dialect.finish(dialect.separator.join(render_fragments(text, dialect)))
