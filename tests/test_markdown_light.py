"""Tests for the light Markdown renderer (inline spans and block rules)."""

from __future__ import annotations

import re

import pytest
from rich.text import Text

from docstream.markdown_light import format_inline, render_fragments, render_markdown
from docstream.markup import HTML, RICH
from tests.conftest import SAMPLE_ANSWER

UL = HTML.list_open
LI = HTML.list_item


def P(inner: str) -> str:  # noqa: N802
    return HTML.paragraph.format(inner)


_STRUCTURAL_TAG_RE = re.compile(r'</?(?:h[1-4]|p|strong|em|code|ul|li|br)(?: style="[^"]*")?>')
_BARE_AMP_RE = re.compile(r"&(?!amp;|lt;|gt;|quot;|#x27;)")


def _assert_no_injected_markup(rendered: str) -> None:
    text_only = _STRUCTURAL_TAG_RE.sub("", rendered)
    assert "<" not in text_only
    assert ">" not in text_only
    assert _BARE_AMP_RE.search(text_only) is None


# === Inline formatter ===


def test_inline_bold_italic_code() -> None:
    """Each inline rule wraps its capture; the text between spans is kept."""
    assert format_inline("**b** *i* _u_ `c`") == (
        "<strong>b</strong> <em>i</em> <em>u</em> " + HTML.code.format("c")
    )


def test_inline_nested_spans_stay_well_formed() -> None:
    """Later rules apply inside earlier spans and may enclose them, never straddle them."""
    assert format_inline("**bold _it_**") == "<strong>bold <em>it</em></strong>"
    assert format_inline("**a _b** c_") == "<strong>a _b</strong> c_"


def test_inline_emphasis_wraps_bold_span() -> None:
    assert format_inline("*see **this** here*") == "<em>see <strong>this</strong> here</em>"
    assert format_inline("_a **b** c **d**_") == (
        "<em>a <strong>b</strong> c <strong>d</strong></em>"
    )
    assert format_inline("`x **y**`") == HTML.code.format("x <strong>y</strong>")


def test_inline_empty_captures_stay_literal() -> None:
    """A pair of markers with nothing between them is not a span."""
    assert format_inline("a ** b") == "a ** b"
    assert format_inline("snake__case and ``") == "snake__case and ``"


def test_inline_unterminated_markers_pass_through() -> None:
    """An opened ** that is never closed stays literal text."""
    assert format_inline("Hello **wor") == "Hello **wor"
    assert format_inline("2 * 3 = 6") == "2 * 3 = 6"
    assert format_inline("`open code") == "`open code"


def test_inline_escapes_text_but_not_wrappers() -> None:
    """Captured text and surrounding text are escaped, the wrappers are not."""
    assert format_inline("`<b>` & **<i>**") == (
        HTML.code.format("&lt;b&gt;") + " &amp; <strong>&lt;i&gt;</strong>"
    )
    assert format_inline("Tom's \"show\"") == "Tom&#x27;s &quot;show&quot;"


def test_inline_empty_string() -> None:
    assert format_inline("") == ""


# === Block renderer: sample answers ===


def test_heading_then_paragraph_with_spans() -> None:
    """# Title followed by a paragraph with italic and bold spans."""
    result = render_markdown("# Title\nSome *italic* and **bold** text.")
    assert result == HTML.heading(1, "Title") + P(
        "Some <em>italic</em> and <strong>bold</strong> text."
    )


def test_list_then_blank_then_paragraph() -> None:
    """- a / - b / blank / Done. → one list of two items, a break, one paragraph."""
    result = render_markdown("- a\n- b\n\nDone.")
    assert result == UL + LI(0, "a") + LI(0, "b") + "</ul>" + "<br>" + P("Done.")


# === Block renderer: properties ===


def test_render_is_deterministic() -> None:
    assert render_markdown(SAMPLE_ANSWER) == render_markdown(SAMPLE_ANSWER)


@pytest.mark.parametrize("text", ["", None])
def test_empty_input_renders_nothing(text: str | None) -> None:
    assert render_markdown(text) == ""
    assert render_fragments(text) == []


def test_list_closure_before_paragraph() -> None:
    """N list lines then a paragraph → exactly one list with N items, then the paragraph."""
    result = render_markdown("- one\n* two\n• three\n4. four\nAfter")
    assert result.count("<ul") == 1
    assert result.count("</ul>") == 1
    assert result.count("<li") == 4
    assert result.endswith("</ul>" + P("After"))


def test_heading_level_is_clamped() -> None:
    result = render_markdown("####### Deep")
    assert result == HTML.heading(4, "Deep")
    assert "<h7" not in result


def test_heading_text_is_escaped_not_formatted() -> None:
    assert render_markdown("## **<Title>**") == HTML.heading(2, "**&lt;Title&gt;**")


@pytest.mark.parametrize(
    "line",
    [
        "<script>alert('x')</script> & co",
        "# <script>alert(1)</script>",
        "- <img src=x onerror=alert(1)>",
        "**<b>bold</b>**",
        "`<code>` & *<em>*",
    ],
)
def test_untrusted_text_cannot_inject_markup(line: str) -> None:
    _assert_no_injected_markup(render_markdown(line))


def test_escaping_in_sample_answer() -> None:
    _assert_no_injected_markup(render_markdown(SAMPLE_ANSWER + "\n<script>x</script> & done"))


def test_prefix_consistency_at_line_boundaries() -> None:
    """Every completed line renders the same in a prefix and in the full text."""
    lines = SAMPLE_ANSWER.split("\n")
    full = render_fragments(SAMPLE_ANSWER)
    for k in range(1, len(lines) + 1):
        prefix = "\n".join(lines[:k])
        assert render_fragments(prefix)[: k - 1] == full[: k - 1]


def test_prefix_consistency_for_every_character_prefix() -> None:
    """Char-level prefixes: all lines before the last complete line are stable."""
    full = render_fragments(SAMPLE_ANSWER)
    for i in range(len(SAMPLE_ANSWER) + 1):
        prefix = SAMPLE_ANSWER[:i]
        stable = max(prefix.count("\n") - 1, 0)
        assert render_fragments(prefix)[:stable] == full[:stable]


def test_blank_line_lookahead_lags_one_line() -> None:
    """A blank line's list closing depends on the line after it."""
    assert render_fragments("- a\n\n")[1] == "</ul><br>"
    assert render_fragments("- a\n\n- b")[1] == "<br>"


def test_full_render_ends_with_closed_list() -> None:
    """A stream ending mid-list still produces a closed list."""
    result = render_markdown("Intro\n- a\n- b")
    assert result.endswith("</ul>")
    assert result.count("<ul") == result.count("</ul>") == 1


# === Block renderer: individual rules ===


def test_standalone_bold_line_becomes_emphasised_paragraph() -> None:
    assert render_markdown("**Key Risks**") == HTML.strong_paragraph.format("Key Risks")
    assert render_markdown("__Note__") == HTML.strong_paragraph.format("Note")


def test_standalone_bold_strips_every_marker() -> None:
    assert render_markdown("**a** and **b**") == HTML.strong_paragraph.format("a and b")


def test_bold_span_inside_line_is_not_a_bold_paragraph() -> None:
    assert render_markdown("Some **bold** here") == P("Some <strong>bold</strong> here")


def test_bold_line_closes_open_list() -> None:
    result = render_markdown("- a\n**Next**")
    assert result == UL + LI(0, "a") + "</ul>" + HTML.strong_paragraph.format("Next")


def test_indented_items_get_proportional_margin() -> None:
    result = render_markdown("- top\n  - sub\n\t- tabbed")
    assert result == (
        UL
        + '<li style="margin-bottom: 8px;">top</li>'
        + '<li style="margin-left: 40px; margin-bottom: 8px;">sub</li>'
        + '<li style="margin-left: 20px; margin-bottom: 8px;">tabbed</li>'
        + "</ul>"
    )


def test_numbered_items_strip_marker_and_format_inline() -> None:
    result = render_markdown("1. First *step*\n10. Tenth")
    assert result == UL + LI(0, "First <em>step</em>") + LI(0, "Tenth") + "</ul>"


def test_bullet_before_number_strips_both_markers() -> None:
    assert render_markdown("- 1. Step") == UL + LI(0, "Step") + "</ul>"


def test_marker_without_text_is_a_paragraph() -> None:
    assert render_markdown("-") == P("-")
    assert render_markdown("1.") == P("1.")


def test_blank_line_before_next_item_keeps_list_open() -> None:
    result = render_markdown("- a\n\n- b")
    assert result == UL + LI(0, "a") + "<br>" + LI(0, "b") + "</ul>"


def test_two_blank_lines_close_the_list() -> None:
    result = render_markdown("- a\n\n\n- b")
    assert result == UL + LI(0, "a") + "</ul><br>" + "<br>" + UL + LI(0, "b") + "</ul>"


def test_blank_lines_are_preserved() -> None:
    assert render_markdown("a\n\n\nb") == P("a") + "<br><br>" + P("b")


def test_digit_lookahead_keeps_list_open_until_paragraph() -> None:
    """A line starting with a digit looks like an item to the blank-line lookahead."""
    result = render_markdown("- a\n\n2024 was good")
    assert result == UL + LI(0, "a") + "<br>" + "</ul>" + P("2024 was good")


def test_carriage_returns_are_trimmed() -> None:
    assert render_markdown("a\r\nb\r\n") == P("a") + P("b") + "<br>"


def test_partial_line_renders_as_plain_text() -> None:
    assert render_markdown("Hello **wor") == P("Hello **wor")


# === Rich dialect ===


def test_rich_dialect_renders_lines() -> None:
    result = render_markdown("# T\n- a\nx **y**", RICH)
    assert result == "[bold underline #667eea]T[/]\n  • a\nx [bold]y[/bold]"


def test_rich_dialect_preserves_blank_lines() -> None:
    assert render_markdown("a\n\nb", RICH) == "a\n\nb"


def test_rich_dialect_escapes_markup_in_text() -> None:
    """Literal [tags] in the answer show up as text, not styles."""
    result = render_markdown("Use [red]x[/red] and **[b]**", RICH)
    text = Text.from_markup(result)
    assert text.plain == "Use [red]x[/red] and [b]"


BRACKETED_ANSWER = """\
# Notes [draft
See [/note
] and [1] here, C:\\path\\
- item [a
- next] **b[c]** end **x\\**
**[bold]**
`[code]` \\[red]x"""


@pytest.mark.parametrize(
    ("text", "plain"),
    [
        ("See [/note\n] here", "See [/note\n] here"),
        ("[see\nbelow] ok", "[see\nbelow] ok"),
        ("see [1] and [2]", "see [1] and [2]"),
        ("- item [a\n- next] b", "  • item [a\n  • next] b"),
        ("# [x\ny]", "[x\ny]"),
        ("[link=https://x.test]\n**bold**\n[/link]", "[link=https://x.test]\nbold\n[/link]"),
        ("**[bold]**\n[/bold]", "[bold]\n[/bold]"),
        ("a\\**b**", "a\\b"),
        ("**b\\**", "b\\"),
        ("\\[red]x", "\\[red]x"),
        ("ends with \\\n[b]x[/b]", "ends with \\\n[b]x[/b]"),
    ],
)
def test_rich_brackets_across_lines_stay_text(text: str, plain: str) -> None:
    """Brackets in the answer never form Rich tags, even across lines."""
    assert Text.from_markup(render_markdown(text, RICH)).plain == plain


def test_rich_escaping_holds_for_every_stream_prefix() -> None:
    """Each partial render parses, and keeps every bracket and backslash as text."""
    for i in range(len(BRACKETED_ANSWER) + 1):
        prefix = BRACKETED_ANSWER[:i]
        plain = Text.from_markup(render_markdown(prefix, RICH)).plain
        for char in "[]\\":
            assert plain.count(char) == prefix.count(char), (prefix, char)


def test_rich_format_inline_is_displayable() -> None:
    assert Text.from_markup(format_inline("*see [b]* **[/b]**", RICH)).plain == "see [b] [/b]"
