"""Line preprocessor: comments out, blank lines out, everything trimmed."""

from __future__ import annotations

COMMENT_MARKER = "%%"
FRONT_MATTER_FENCE = "---"


def strip_front_matter(text: str) -> str:
    """Drop a leading ``---`` ... ``---`` YAML block, if present."""
    lines = text.splitlines()
    i = 0
    while i < len(lines) and not lines[i].strip():
        i += 1
    if i >= len(lines) or lines[i].strip() != FRONT_MATTER_FENCE:
        return text
    for j in range(i + 1, len(lines)):
        if lines[j].strip() == FRONT_MATTER_FENCE:
            return "\n".join(lines[j + 1 :])
    return text


def preprocess(text: str) -> list[str]:
    lines: list[str] = []
    for raw in strip_front_matter(text).splitlines():
        cut = raw.find(COMMENT_MARKER)
        if cut != -1:
            raw = raw[:cut]
        line = raw.strip()
        if line:
            lines.append(line)
    return lines
