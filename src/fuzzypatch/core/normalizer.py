"""fuzzypatch core: input cleanup and line normalization policies."""

from __future__ import annotations

import re
from enum import Enum
from pathlib import PurePath
from typing import List, Union

_ANY_WHITESPACE = re.compile(r"\s")
_TRAILING_WHITESPACE = re.compile(r"\s+$")

INDENTATION_SUFFIXES = (".py", ".pyi", ".yaml", ".yml")


class NormalizationPolicy(Enum):
    """
    How two lines are compared.

      - WHITESPACE: every whitespace character is removed (brace-delimited languages).
      - INDENTATION: only trailing whitespace is removed; leading indentation
        participates in equality and edit distance (Python, YAML).
    """

    WHITESPACE = "whitespace"
    INDENTATION = "indentation"

    def normalize(self, line: str) -> str:
        if self is NormalizationPolicy.INDENTATION:
            return _TRAILING_WHITESPACE.sub("", line)
        return _ANY_WHITESPACE.sub("", line)

    @property
    def uses_bracket_signature(self) -> bool:
        # Bracket depth says little about indentation-delimited code.
        return self is NormalizationPolicy.WHITESPACE


def coerce_policy(value: Union[str, NormalizationPolicy, None]) -> NormalizationPolicy:
    if value is None:
        return NormalizationPolicy.WHITESPACE
    if isinstance(value, NormalizationPolicy):
        return value
    try:
        return NormalizationPolicy(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown normalization policy: {value!r}") from None


def policy_for_path(path: Union[str, PurePath]) -> NormalizationPolicy:
    suffix = PurePath(path).suffix.lower()
    if suffix in INDENTATION_SUFFIXES:
        return NormalizationPolicy.INDENTATION
    return NormalizationPolicy.WHITESPACE


def prepare_text(raw_text: str) -> str:
    """Strip a UTF-8 BOM and normalize line endings to \\n."""
    if raw_text.startswith("\ufeff"):
        raw_text = raw_text.lstrip("\ufeff")
    return raw_text.replace("\r\n", "\n").replace("\r", "\n")


def split_lines(raw_text: str) -> List[str]:
    return prepare_text(raw_text).split("\n")
