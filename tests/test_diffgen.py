from __future__ import annotations

import textwrap

import pytest

import fuzzypatch
from fuzzypatch.core.diffgen import ELLIPSIS, DiffGenerator, truncate_context
from fuzzypatch.core.models import LineRecord, LineType

SIX_LINES = "line1\nline2\nline3\nline4\nline5\nline6"


def _lines(*names: str) -> str:
    return "\n".join(names)


def _patch(text: str) -> str:
    return textwrap.dedent(text).strip()


def test_no_changes_gives_empty_patch() -> None:
    assert fuzzypatch.generate("line1\nline2\nline3", "line1\nline2\nline3") == ""


def test_add_line() -> None:
    result = fuzzypatch.generate("line1\nline2\nline3", "line1\nline2\nnewLine\nline3")

    assert result == "  line1\n  line2\n+ newLine\n  line3"


def test_remove_line() -> None:
    result = fuzzypatch.generate("line1\nline2\nline3", "line1\nline3")

    assert result == "  line1\n- line2\n  line3"


def test_modify_line_puts_delete_before_add() -> None:
    result = fuzzypatch.generate("line1\nline2\nline3", "line1\nmodifiedLine2\nline3")

    assert result == "  line1\n- line2\n+ modifiedLine2\n  line3"


def test_trailing_deletions_are_emitted() -> None:
    result = fuzzypatch.generate("a\nb\nc", "a")

    assert result == "  a\n- b\n- c"


@pytest.mark.parametrize(
    "new, expected",
    [
        (
            _lines("line1", "line2", "line5", "line3", "line4", "line6"),
            """
              line1
              line2
            - line3
            - line4
              line5
            + line3
            + line4
              line6
            """,
        ),
        (
            _lines("line1", "line3", "line4", "line5", "line2", "line6"),
            """
              line1
            - line2
              line3
              line4
              line5
            + line2
              line6
            """,
        ),
        (
            _lines("line1", "line5", "line2", "line3", "line4", "line6"),
            """
              line1
            - line2
            - line3
            - line4
              line5
            + line2
            + line3
            + line4
              line6
            """,
        ),
        (
            _lines("line1", "line3", "line4", "line5", "line6", "line2"),
            """
              line1
            - line2
              line3
              line4
              line5
              line6
            + line2
            """,
        ),
        (
            _lines("line1", "line4", "line3", "line2", "line5", "line6"),
            """
              line1
            - line2
            - line3
              line4
            + line3
            + line2
              line5
              line6
            """,
        ),
        (
            _lines("line1", "line4", "line5", "line2", "line3", "line6"),
            """
              line1
            - line2
            - line3
              line4
              line5
            + line2
            + line3
              line6
            """,
        ),
    ],
    ids=["up", "down", "up-multiple", "down-multiple", "swap", "adjacent"],
)
def test_moved_lines_become_delete_and_add(new: str, expected: str) -> None:
    assert fuzzypatch.generate(SIX_LINES, new).strip() == _patch(expected)


def test_long_context_is_truncated() -> None:
    old = [f"l{i}" for i in range(20)]
    new = list(old)
    new[10] = "changed"

    result = fuzzypatch.generate("\n".join(old), "\n".join(new))

    assert result == "  l7\n  l8\n  l9\n- l10\n+ changed\n  l11\n  l12\n  l13"


def test_long_context_between_changes_gets_placeholder() -> None:
    old = [f"l{i}" for i in range(20)]
    new = list(old)
    new[2] = "X"
    new[17] = "Y"

    result = fuzzypatch.generate("\n".join(old), "\n".join(new))

    assert result.split("\n") == [
        "  l0",
        "  l1",
        "- l2",
        "+ X",
        "  l3",
        "  l4",
        "  l5",
        "  " + ELLIPSIS,
        "  l14",
        "  l15",
        "  l16",
        "- l17",
        "+ Y",
        "  l18",
        "  l19",
    ]


def test_truncate_context_without_changes_is_empty() -> None:
    diff = [LineRecord(i, f"l{i}") for i in range(10)]

    assert truncate_context(diff) == []


def test_identical_delete_add_pairs_annihilate() -> None:
    assert fuzzypatch.generate("x\nx\ny", "z\nx") == "- x\n- y\n+ z"


def test_synthetic_lines_never_annihilate() -> None:
    diff = [
        LineRecord(-1, "same", LineType.DELETE),
        LineRecord(3, "same", LineType.ADD),
        LineRecord(4, "other", LineType.DELETE),
        LineRecord(-1, "other", LineType.ADD),
    ]

    removed = DiffGenerator()._annihilate_noop_pairs(diff)

    assert removed == 0
    assert len(diff) == 4


def test_generation_does_not_use_fuzzy_matching() -> None:
    result = fuzzypatch.generate("start();\ntotal = compute(a, b);\nend();", "start();\ntotal = compute(a, c);\nend();")

    assert "- total = compute(a, b);" in result
    assert "+ total = compute(a, c);" in result


@pytest.mark.parametrize(
    "old, new",
    [
        ("a\nb\nc\nd\ne\nf", "a\nc\nd\nb\ne\nf\ng"),
        ("line1\nline2\nline3", "line1\nmodifiedLine2\nline3"),
        ("\n".join(f"l{i}" for i in range(20)), "\n".join("X" if i == 2 else "Y" if i == 17 else f"l{i}" for i in range(20))),
        ("keep\ndrop1\ndrop2", "keep"),
    ],
    ids=["move-and-append", "modify", "placeholder", "trailing-delete"],
)
def test_round_trip(old: str, new: str, squash) -> None:
    assert squash(fuzzypatch.apply(old, fuzzypatch.generate(old, new))) == squash(new)


def test_round_trip_identical_text() -> None:
    text = "alpha\nbeta\ngamma"

    assert fuzzypatch.apply(text, fuzzypatch.generate(text, text)) == text


def test_indentation_policy_round_trip_is_exact() -> None:
    old = "def f():\n    return 1"
    new = "def f():\n    x = 2\n    return x"

    patch = fuzzypatch.generate(old, new, policy="indentation")

    assert patch == "  def f():\n-     return 1\n+     x = 2\n+     return x"
    assert fuzzypatch.apply(old, patch, policy="indentation") == new
