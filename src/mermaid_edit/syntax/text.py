"""Text content of shapes, edge labels and subgraph titles.

Reading side: unquote the four quoting forms and decode ``#name;``/``#NN;``
entity codes. Writing side: pick the lightest quoting form that reads back
to the same string.
"""

from __future__ import annotations

import re

from mermaid_edit.syntax.patterns import LEGACY_SHAPE_SYNTAX
from mermaid_edit.types import NodeShape

ENTITY_CODES: dict[str, str] = {
    "quot": '"',
    "apos": "'",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "nbsp": "\u00a0",
    "semi": ";",
    "colon": ":",
    "equals": "=",
    "lpar": "(",
    "rpar": ")",
    "lsqb": "[",
    "rsqb": "]",
    "lcub": "{",
    "rcub": "}",
    "pipe": "|",
    "comma": ",",
    "dash": "-",
}

_ENTITY_RE = re.compile(r"#(\w+);")
_HTML_RE = re.compile(r"</?[a-zA-Z][^>]*>")
_MARKDOWN_RE = re.compile(r"(\*\*|__)\S.*?\1|(?<![\w*])\*[^*\s][^*]*\*(?![\w*])|(?<![\w_])_[^_\s][^_]*_(?!\w)")
_SPECIAL_CHARS = frozenset('[](){}<>|\\/"\'`#;&@:')
_SPECIAL_SEQUENCES = ("%%", "--", "==", "-.", "~~~")


def decode_entities(text: str) -> str:
    """Replace ``#quot;``-style and numeric ``#35;`` codes in one pass."""

    def replace(m: re.Match[str]) -> str:
        code = m.group(1)
        if code.isdigit():
            return chr(int(code))
        return ENTITY_CODES.get(code, m.group(0))

    return _ENTITY_RE.sub(replace, text)


def unquote_text(text: str) -> str:
    """Strip one level of quoting and decode entity codes.

    Handles ``"`markdown`"``, ``"double"``, ``'single'`` and ```backtick```.
    """
    result = text.strip()
    if len(result) >= 4 and result.startswith('"`') and result.endswith('`"'):
        result = result[2:-2]
    elif len(result) > 1 and result[0] == result[-1] and result[0] in "\"'`":
        result = result[1:-1]
    return decode_entities(result)


def escape_quoted(text: str) -> str:
    if _ENTITY_RE.search(text):
        text = text.replace("#", "#35;")
    if "%%" in text:
        text = text.replace("%", "#37;")
    return text.replace('"', "#quot;").replace("`", "#96;").replace("\r", "").replace("\n", "#10;")


def needs_quoting(text: str, delimiters: tuple[str, ...] = ()) -> bool:
    if text != text.strip() or not text:
        return True
    if any(ch in _SPECIAL_CHARS for ch in text):
        return True
    if any(seq in text for seq in _SPECIAL_SEQUENCES):
        return True
    if any(d and d in text for d in delimiters):
        return True
    return not text.isascii()


def quote_text(text: str, delimiters: tuple[str, ...] = ()) -> str:
    """Return ``text`` bare, ``"quoted"`` or as a ``"`markdown`"`` string."""
    if _HTML_RE.search(text) and "\n" not in text:
        return f'"{escape_quoted(text)}"'
    if "\n" in text or _MARKDOWN_RE.search(text):
        return f'"`{escape_quoted(text)}`"'
    if needs_quoting(text, delimiters):
        return f'"{escape_quoted(text)}"'
    return text


def format_node_text(text: str, shape: NodeShape | str = NodeShape.Rect) -> str:
    delimiters = LEGACY_SHAPE_SYNTAX.get(shape, LEGACY_SHAPE_SYNTAX[NodeShape.Rect])
    return quote_text(text, delimiters)


def format_title(title: str) -> str:
    return quote_text(title)


def format_edge_text(text: str) -> str:
    """Edge labels sit between pipes, so pipes and quote characters become entity codes.

    Labels with whitespace at either end are wrapped in double quotes, which
    the reader strips without trimming what is inside.
    """
    if _ENTITY_RE.search(text):
        text = text.replace("#", "#35;")
    if "%%" in text:
        text = text.replace("%", "#37;")
    text = (
        text.replace("|", "#124;")
        .replace('"', "#quot;")
        .replace("'", "#39;")
        .replace("`", "#96;")
        .replace("\r", "")
        .replace("\n", "#10;")
    )
    if text != text.strip():
        return f'"{text}"'
    return text


def split_outside_quotes(text: str, sep: str) -> list[str]:
    """Split on ``sep`` characters that are not inside a quoted string."""
    parts: list[str] = []
    buf: list[str] = []
    quote: str | None = None
    for ch in text:
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == sep:
            parts.append("".join(buf))
            buf = []
            continue
        buf.append(ch)
    parts.append("".join(buf))
    return parts


def parse_at_properties(body: str) -> dict[str, str]:
    """Parse the inside of ``@{ key: value, ... }`` into a dict of strings."""
    props: dict[str, str] = {}
    for part in split_outside_quotes(body, ","):
        key, sep, value = part.partition(":")
        if not sep or not key.strip():
            continue
        props[key.strip()] = unquote_text(value)
    return props
