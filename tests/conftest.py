from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture
def squash():
    """Compare texts line by line with surrounding whitespace ignored."""

    def _squash(text: str) -> str:
        return "\n".join(line.strip() for line in text.strip().split("\n"))

    return _squash
