"""fuzzypatch core: generating compact patches from an old/new text pair."""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from .linker import LineLinker
from .models import LineRecord, LineType
from .normalizer import NormalizationPolicy
from .parser import fix_patch_line_order, parse_lines

LOGGER = logging.getLogger(__name__)

CONTEXT_SIZE = 3
ELLIPSIS = "..."

_PREFIXES = {LineType.CONTEXT: "  ", LineType.ADD: "+ ", LineType.DELETE: "- "}


def mark_moved_lines(new_lines: List[LineRecord]) -> int:
    """
    Turn relocated lines into delete + re-add pairs.

    A source line is moved when some later source line is matched earlier in
    the new text. Returns the number of lines marked.
    """
    matched_sources = sorted((n.match for n in new_lines if n.match is not None), key=lambda s: s.index)
    marked = 0
    earliest_later = None
    for source_line in reversed(matched_sources):
        target = source_line.match
        if earliest_later is not None and earliest_later < target.index:
            source_line.kind = LineType.DELETE
            target.kind = LineType.ADD
            marked += 1
            LOGGER.debug("Marked moved line: source %d -> new %d", source_line.index, target.index)
        if earliest_later is None or target.index < earliest_later:
            earliest_later = target.index
    return marked


def truncate_context(diff: List[LineRecord], context_size: int = CONTEXT_SIZE) -> List[LineRecord]:
    """Keep at most ``context_size`` context lines around each change."""
    truncated: List[LineRecord] = []
    buffer: List[LineRecord] = []
    for line in diff:
        if line.kind is LineType.CONTEXT:
            buffer.append(line)
            continue
        if len(buffer) > context_size * 2:
            if truncated:
                truncated.extend(buffer[:context_size])
                truncated.append(LineRecord(-1, ELLIPSIS, LineType.CONTEXT))
            truncated.extend(buffer[-context_size:])
        else:
            truncated.extend(buffer)
        buffer = []
        truncated.append(line)
    if not truncated:
        return truncated
    truncated.extend(buffer[:context_size])
    return truncated


def render(diff: List[LineRecord]) -> str:
    return "\n".join(_PREFIXES[line.kind] + (line.text or "") for line in diff).rstrip()


class DiffGenerator:
    """
    Generate compact, context-truncated patches:
      - CONTEXT lines prefixed with two spaces
      - additions with "+ ", deletions with "- "
      - moved lines rendered as a deletion plus a re-addition
    """

    def __init__(self, policy: NormalizationPolicy = NormalizationPolicy.WHITESPACE) -> None:
        self.policy = policy
        self.linker = LineLinker(policy, fuzzy=False)

    def generate(self, old_text: str, new_text: str) -> str:
        LOGGER.info("Starting patch generation")
        source_lines = parse_lines(old_text)
        new_lines = parse_lines(new_text)
        self.linker.link(source_lines, new_lines)
        mark_moved_lines(new_lines)

        diff = truncate_context(self._new_to_patch(source_lines, new_lines))
        fix_patch_line_order(diff)
        removed = self._annihilate_noop_pairs(diff)
        LOGGER.debug("Generated diff with %d lines (%d no-op pairs removed)", len(diff), removed)
        return render(diff)

    def _new_to_patch(self, source_lines: List[LineRecord], new_lines: List[LineRecord]) -> List[LineRecord]:
        diff: List[LineRecord] = []
        for new_line in new_lines:
            source_line = new_line.match
            if source_line is None or new_line.kind is LineType.ADD:
                diff.append(LineRecord(new_line.index, new_line.text, LineType.ADD))
                continue
            diff.extend(self._deleted_run(source_line.previous))
            diff.append(LineRecord(new_line.index, new_line.text, LineType.CONTEXT))
        # Deletions after the last surviving source line.
        if source_lines:
            diff.extend(self._deleted_run(source_lines[-1]))
        return diff

    @staticmethod
    def _deleted_run(start: Optional[LineRecord]) -> List[LineRecord]:
        run: List[LineRecord] = []
        current = start
        while current is not None and (current.match is None or current.kind is LineType.DELETE):
            run.append(LineRecord(current.index, current.text, LineType.DELETE))
            current = current.previous
        run.reverse()
        return run

    def _annihilate_noop_pairs(self, diff: List[LineRecord]) -> int:
        """Drop DELETE/ADD pairs with identical content inside one change block."""
        pairs = []
        claimed: Set[int] = set()
        for i, line in enumerate(diff):
            if line.kind is not LineType.DELETE or line.index == -1:
                continue
            key = self.policy.normalize(line.text or "")
            for j in range(i + 1, len(diff)):
                other = diff[j]
                if other.kind is LineType.CONTEXT:
                    break
                if (
                    other.kind is LineType.ADD
                    and j not in claimed
                    and other.index != -1
                    and self.policy.normalize(other.text or "") == key
                ):
                    pairs.append((i, j))
                    claimed.add(j)
                    break
        for index in sorted({k for pair in pairs for k in pair}, reverse=True):
            del diff[index]
        return len(pairs)
