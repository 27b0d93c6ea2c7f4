"""Tests for mermaid_edit.parsers.preprocess."""

from mermaid_edit.parsers.preprocess import preprocess, strip_front_matter


def test_drops_blank_lines_and_trims():
    assert preprocess("  flowchart TD  \n\n\n   A --> B\n") == ["flowchart TD", "A --> B"]


def test_strips_full_line_comments():
    assert preprocess("%% a note\nflowchart TD\n") == ["flowchart TD"]


def test_strips_trailing_comments():
    assert preprocess("A --> B %% why\n") == ["A --> B"]


def test_comment_only_line_disappears():
    assert preprocess("   %% nothing here   \n") == []


def test_front_matter_is_removed():
    text = "---\nconfig:\n  theme: dark\n---\nflowchart LR\n"
    assert preprocess(text) == ["flowchart LR"]


def test_unterminated_front_matter_is_kept():
    text = "---\ntitle: x\n"
    assert strip_front_matter(text) == text
