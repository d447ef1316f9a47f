"""fuzzypatch core: applying loosely formatted patches to source text."""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from .linker import LineLinker
from .models import LineRecord, LineType
from .normalizer import NormalizationPolicy, split_lines
from .parser import PatchLineClassifier, parse_lines
from .validator import BalanceValidator

LOGGER = logging.getLogger(__name__)


def has_edit_markers(patch_text: str) -> bool:
    return any(line.lstrip().startswith(("+", "-")) for line in split_lines(patch_text))


def trim_blank_lines(lines: List[str]) -> List[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


class PatchApplier:
    """
    Implements:
      - diff-style patches: classify, link against the source, rebuild the text
      - snippet patches (no +/- markers): replace the source range between the
        snippet's first and last lines
      - validated apply: reject results that break bracket/quote balance

    Never raises because a line could not be placed; unplaced lines are either
    kept (source) or dropped (patch context).
    """

    def __init__(self, policy: NormalizationPolicy = NormalizationPolicy.WHITESPACE) -> None:
        self.policy = policy
        self.classifier = PatchLineClassifier(policy)
        self.linker = LineLinker(policy, fuzzy=True)

    def apply(self, source_text: str, patch_text: str) -> str:
        if not has_edit_markers(patch_text):
            LOGGER.info("Patch has no +/- lines; applying as snippet")
            return self.apply_snippet(source_text, patch_text)

        source_lines = parse_lines(source_text)
        patch_lines = self.classifier.classify(patch_text, source_lines)
        LOGGER.debug("Parsed %d source lines and %d patch lines", len(source_lines), len(patch_lines))
        self.linker.link(source_lines, patch_lines)

        patch_lines = [p for p in patch_lines if p.text is not None and self.policy.normalize(p.text)]
        for line in patch_lines:
            if line.kind is LineType.DELETE and line.match is None:
                LOGGER.warning("Deleted line %d not found in source; skipped: %s", line.index, line.text)
        result = self._reconstruct(source_lines, patch_lines)
        LOGGER.info("Patch applied: %d source lines -> %d lines", len(source_lines), len(result))
        return "\n".join(trim_blank_lines(result))

    def apply_validated(self, source_text: str, patch_text: str) -> str:
        """Apply and raise PatchValidationError when the result breaks a balance the source had."""
        return BalanceValidator().checked(source_text, self.apply(source_text, patch_text))

    def apply_snippet(self, source_text: str, patch_text: str) -> str:
        snippet = [line for line in split_lines(patch_text) if line.strip()]
        if not snippet:
            return source_text
        source = split_lines(source_text)
        normalized_source = [self.policy.normalize(line) for line in source]
        first = self.policy.normalize(snippet[0])
        last = self.policy.normalize(snippet[-1])

        start = next((i for i, line in enumerate(normalized_source) if line == first), -1)
        end = next((i for i in range(len(normalized_source) - 1, -1, -1) if normalized_source[i] == last), -1)
        if start == -1 or end == -1 or end < start:
            LOGGER.warning("Could not locate snippet anchors in the source; snippet not applied")
            return source_text
        LOGGER.info("Applying snippet over source lines %d..%d", start, end)
        return "\n".join(source[:start] + snippet + source[end + 1:])

    # ---- reconstruction

    def _reconstruct(self, source_lines: List[LineRecord], patch_lines: List[LineRecord]) -> List[str]:
        out: List[str] = []
        used: Set[LineRecord] = set()
        anchored = False
        for source_line in source_lines:
            patch_line = source_line.match
            if patch_line is not None and patch_line.kind is LineType.DELETE:
                LOGGER.debug("Deleting line: %s", source_line)
                used.add(patch_line)
                # Replacement lines attached directly to the deletion.
                following = patch_line.next
                while following is not None and following.kind is LineType.ADD and following not in used:
                    out.append(following.text or "")
                    used.add(following)
                    following = following.next
                self._insert_after(patch_line, used, out)
                anchored = True
            elif patch_line is not None:
                LOGGER.debug("Patching line: %s <-> %s", source_line, patch_line)
                self._insert_before(patch_line, used, out)
                used.add(patch_line)
                source_text = source_line.text or ""
                patch_text = patch_line.text or ""
                if self.policy.normalize(source_text) == self.policy.normalize(patch_text):
                    out.append(source_text)
                else:
                    out.append(patch_text)
                self._insert_after(patch_line, used, out)
                anchored = True
            else:
                out.append(source_line.text or "")

        if not anchored:
            for line in patch_lines:
                if line.kind is LineType.ADD and line not in used:
                    LOGGER.debug("Appending unanchored line: %s", line)
                    out.append(line.text or "")
        return out

    def _insert_before(self, patch_line: LineRecord, used: Set[LineRecord], out: List[str]) -> None:
        buffer: List[str] = []
        previous: Optional[LineRecord] = patch_line.previous
        while previous is not None and previous.kind is LineType.ADD and previous not in used:
            buffer.append(previous.text or "")
            used.add(previous)
            previous = previous.previous
        out.extend(reversed(buffer))

    def _insert_after(self, patch_line: LineRecord, used: Set[LineRecord], out: List[str]) -> None:
        following = patch_line.next
        while following is not None:
            while following is not None and self._is_filler(following):
                following = following.next
            if following is None or following.kind is not LineType.ADD or following in used:
                break
            out.append(following.text or "")
            used.add(following)
            following = following.next

    def _is_filler(self, line: LineRecord) -> bool:
        if not self.policy.normalize(line.text or ""):
            return True
        return line.match is None and line.kind is LineType.CONTEXT
