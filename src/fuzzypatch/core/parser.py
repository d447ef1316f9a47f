"""fuzzypatch core: parsing source text and classifying patch lines."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set

from .models import LineRecord, LineType, chain, compute_metrics
from .normalizer import NormalizationPolicy, split_lines

LOGGER = logging.getLogger(__name__)


def parse_lines(text: str) -> List[LineRecord]:
    """Parse plain text into a linked sequence of CONTEXT records."""
    lines = chain([LineRecord(index, line) for index, line in enumerate(split_lines(text))])
    compute_metrics(lines)
    return lines


def fix_patch_line_order(lines: List[LineRecord]) -> int:
    """
    Swap every ADD that is immediately followed by a DELETE until none remain.

    Only the two swapped records get new neighbor references. Returns the
    number of swaps made.
    """
    swaps = 0
    swapped = True
    while swapped:
        swapped = False
        for i in range(len(lines) - 1):
            add_line, delete_line = lines[i], lines[i + 1]
            if add_line.kind is not LineType.ADD or delete_line.kind is not LineType.DELETE:
                continue
            previous_line = add_line.previous
            next_line = delete_line.next
            delete_line.previous = previous_line
            delete_line.next = add_line
            add_line.previous = delete_line
            add_line.next = next_line
            lines[i], lines[i + 1] = delete_line, add_line
            swapped = True
            swaps += 1
    return swaps


class PatchLineClassifier:
    """
    Turns loosely formatted patch text into typed line records.

    Rules, first match wins:
      - two leading spaces: context, the two spaces are removed
      - comment lines (// or #): context
      - diff envelope (+++, ---, @@, "\\ No newline"): dropped
      - + / - markers: addition / deletion, marker removed (under the
        indentation policy also the "+ " / "- " separator space, when the
        whole patch uses one)
      - anything else: context when it exists in the source, otherwise an
        addition the generator forgot to mark
    """

    COMMENT_PREFIXES = ("//", "#")
    ENVELOPE_PREFIXES = ("+++", "---", "@@", "\\ No newline")

    def __init__(self, policy: NormalizationPolicy = NormalizationPolicy.WHITESPACE) -> None:
        self.policy = policy

    def classify(self, patch_text: str, source_lines: Sequence[LineRecord]) -> List[LineRecord]:
        source_keys = {self.policy.normalize(s.text) for s in source_lines if s.text is not None}
        raw_lines = split_lines(patch_text)
        separator = self.policy is NormalizationPolicy.INDENTATION and self.uses_marker_separator(raw_lines)
        records: List[LineRecord] = []
        for index, raw in enumerate(raw_lines):
            record = self._classify_line(index, raw, source_keys, separator)
            if record is None:
                LOGGER.debug("Dropped envelope line %d: %s", index, raw)
                continue
            records.append(record)

        chain(records)
        swaps = fix_patch_line_order(records)
        if swaps:
            LOGGER.debug("Reordered %d add/delete pairs", swaps)
        compute_metrics(records)
        LOGGER.debug("Classified %d patch lines", len(records))
        return records

    def _marker_payload(self, raw: str) -> Optional[str]:
        """Text after a +/- marker, or None when ``raw`` is not a marker line."""
        if raw.startswith("  "):
            return None
        content = raw.lstrip()
        if content.startswith(self.COMMENT_PREFIXES) or content.startswith(self.ENVELOPE_PREFIXES):
            return None
        if content.startswith(("+", "-")):
            return content[1:]
        return None

    def uses_marker_separator(self, raw_lines: Sequence[str]) -> bool:
        """
        True when every +/- line puts one space between marker and payload,
        the way generated patches ("+ ", "- ") are rendered.
        """
        payloads = [p for p in (self._marker_payload(raw) for raw in raw_lines) if p is not None]
        return bool(payloads) and all(not p or p.startswith(" ") for p in payloads)

    def _classify_line(
        self, index: int, raw: str, source_keys: Set[str], separator: bool = False
    ) -> Optional[LineRecord]:
        if raw.startswith("  "):
            return LineRecord(index, raw[2:], LineType.CONTEXT)

        content = raw.lstrip()
        if content.startswith(self.COMMENT_PREFIXES):
            return LineRecord(index, content, LineType.CONTEXT)
        if content.startswith(self.ENVELOPE_PREFIXES):
            return None
        if content.startswith(("+", "-")):
            payload = content[1:]
            if separator:
                payload = payload[1:]
            kind = LineType.ADD if content.startswith("+") else LineType.DELETE
            return LineRecord(index, payload, kind)

        # Unmarked line. Indentation is part of the payload when it is significant.
        candidate = raw if self.policy is NormalizationPolicy.INDENTATION else content
        if self.policy.normalize(candidate) in source_keys:
            return LineRecord(index, candidate, LineType.CONTEXT)
        LOGGER.debug("Unmarked line %d not found in source; treating as addition: %s", index, candidate)
        return LineRecord(index, candidate, LineType.ADD)
