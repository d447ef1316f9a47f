"""fuzzypatch core: aligning source lines with patch (or new-version) lines."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

import Levenshtein

from .models import LineRecord, LineType, measure_brackets
from .normalizer import NormalizationPolicy

LOGGER = logging.getLogger(__name__)

MAX_SUBSEQUENCE_DEPTH = 10
FUZZY_MIN_LENGTH = 5


class LineLinker:
    """
    Establishes ``match`` references between two line sequences.

    Passes, most specific first:
      1. unique exact match: normalized values occurring equally often on both
         sides are paired positionally
      2. adjacent propagation: unmatched neighbors of linked pairs are linked
         when they match exactly, or within a Levenshtein budget when fuzzy
      3. subsequence linking: passes 1-2 over the still-unmatched lines, with a
         bracket-signature fallback, repeated while progress is made

    Additions on the patch side are never linked.
    """

    def __init__(self, policy: NormalizationPolicy = NormalizationPolicy.WHITESPACE, fuzzy: bool = True) -> None:
        self.policy = policy
        self.fuzzy = fuzzy

    def link(self, source_lines: Sequence[LineRecord], patch_lines: Sequence[LineRecord]) -> int:
        LOGGER.debug("Step 1: linking unique matching lines")
        total = self.link_unique(source_lines, patch_lines)
        LOGGER.debug("Step 2: linking adjacent matching lines")
        total += self.link_adjacent(source_lines)
        LOGGER.debug("Step 3: subsequence linking")
        total += self.link_subsequences(source_lines, patch_lines)
        LOGGER.debug("Linked %d of %d source lines", total, len(source_lines))
        return total

    # ---- pass 1

    def link_unique(self, source_lines: Sequence[LineRecord], patch_lines: Sequence[LineRecord]) -> int:
        source_groups = self._group(source_lines)
        patch_groups = self._group(p for p in patch_lines if p.kind is not LineType.ADD)
        matched = 0
        for key, source_group in source_groups.items():
            patch_group = patch_groups.get(key)
            if patch_group is None or len(patch_group) != len(source_group):
                continue
            for source_line, patch_line in zip(source_group, patch_group):
                source_line.link(patch_line)
                LOGGER.debug("Linked unique lines: %s <-> %s", source_line, patch_line)
            matched += len(source_group)
        return matched

    # ---- pass 2

    def link_adjacent(self, source_lines: Sequence[LineRecord]) -> int:
        matched = 0
        found = True
        while found:
            found = False
            for source_line in source_lines:
                patch_line = source_line.match
                if patch_line is None:
                    continue
                source_prev = self._previous_valid(source_line.previous, skip_add=False)
                patch_prev = self._previous_valid(patch_line.previous, skip_add=True)
                if self._try_link(source_prev, patch_prev):
                    LOGGER.debug("Linked adjacent previous lines: %s <-> %s", source_prev, patch_prev)
                    found = True
                    matched += 1
                source_next = self._next_valid(source_line.next, skip_add=False)
                patch_next = self._next_valid(patch_line.next, skip_add=True)
                if self._try_link(source_next, patch_next):
                    LOGGER.debug("Linked adjacent next lines: %s <-> %s", source_next, patch_next)
                    found = True
                    matched += 1
        return matched

    # ---- pass 3

    def link_subsequences(self, source_lines: Sequence[LineRecord], patch_lines: Sequence[LineRecord]) -> int:
        source_segment: List[LineRecord] = list(source_lines)
        patch_segment: List[LineRecord] = list(patch_lines)
        total = 0
        for depth in range(MAX_SUBSEQUENCE_DEPTH + 1):
            source_segment = [line for line in source_segment if line.match is None]
            patch_segment = [line for line in patch_segment if line.match is None]
            if not source_segment or not patch_segment:
                break
            matched = self.link_unique(source_segment, patch_segment)
            matched += self.link_adjacent(source_segment)
            if matched == 0 and self.policy.uses_bracket_signature:
                matched = self.link_bracket_signatures(source_segment, patch_segment)
            LOGGER.debug("Matched %d lines in subsequence linking at depth %d", matched, depth)
            if matched == 0:
                break
            total += matched
        return total

    def link_bracket_signatures(self, source_lines: Sequence[LineRecord], patch_lines: Sequence[LineRecord]) -> int:
        """Pair equal lines that open brackets, positionally, whatever the group sizes."""
        source_groups = self._group(s for s in source_lines if self._opens_brackets(s))
        patch_groups = self._group(
            p for p in patch_lines if p.kind is not LineType.ADD and self._opens_brackets(p)
        )
        matched = 0
        for key, source_group in source_groups.items():
            for source_line, patch_line in zip(source_group, patch_groups.get(key, [])):
                source_line.link(patch_line)
                LOGGER.debug("Linked bracket lines: %s <-> %s", source_line, patch_line)
                matched += 1
        return matched

    # ---- helpers

    def is_match(self, a: LineRecord, b: LineRecord) -> bool:
        left = self.policy.normalize(a.text or "")
        right = self.policy.normalize(b.text or "")
        if left == right:
            return True
        longest = max(len(left), len(right))
        if self.fuzzy and longest > FUZZY_MIN_LENGTH:
            distance = Levenshtein.distance(left, right)
            LOGGER.debug("Levenshtein distance %d for %r / %r", distance, left, right)
            return distance <= longest // 4
        return False

    def _group(self, lines: Iterable[LineRecord]) -> Dict[str, List[LineRecord]]:
        groups: Dict[str, List[LineRecord]] = {}
        for line in lines:
            if not self._eligible(line):
                continue
            groups.setdefault(self.policy.normalize(line.text), []).append(line)
        return groups

    def _try_link(self, source_line: Optional[LineRecord], patch_line: Optional[LineRecord]) -> bool:
        if source_line is None or patch_line is None:
            return False
        if not self._eligible(source_line) or not self._eligible(patch_line):
            return False
        if not self.is_match(source_line, patch_line):
            return False
        source_line.link(patch_line)
        return True

    @staticmethod
    def _eligible(line: LineRecord) -> bool:
        return line.match is None and line.index != -1 and line.text is not None

    @staticmethod
    def _opens_brackets(line: LineRecord) -> bool:
        return line.text is not None and not measure_brackets(line.text).is_trivial()

    def _is_blank(self, line: LineRecord) -> bool:
        return not self.policy.normalize(line.text or "")

    def _previous_valid(self, start: Optional[LineRecord], skip_add: bool) -> Optional[LineRecord]:
        current = start
        while current is not None and ((skip_add and current.kind is LineType.ADD) or self._is_blank(current)):
            current = current.previous
        return current

    def _next_valid(self, start: Optional[LineRecord], skip_add: bool) -> Optional[LineRecord]:
        current = start
        while current is not None and ((skip_add and current.kind is LineType.ADD) or self._is_blank(current)):
            current = current.next
        return current
