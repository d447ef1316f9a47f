"""fuzzypatch core: applying fenced diff blocks found in a generator response."""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from .backends import LinePatchEngine, PatchEngine
from .errors import PatchError, PatchSizeError
from .models import ApplyResult

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_DIFF_CHARS = 100000

# A ```diff fence must open at the start of a line.
DIFF_BLOCK_PATTERN = re.compile(r"(?<![^\n])```diff\n(.*?)\n```", re.DOTALL)


def extract_blocks(response: str) -> List[str]:
    """Return the bodies of fenced ``diff`` blocks, first occurrence of each only."""
    seen = set()
    blocks: List[str] = []
    for match in DIFF_BLOCK_PATTERN.finditer(response.replace("\r\n", "\n")):
        body = match.group(1)
        if body in seen:
            continue
        seen.add(body)
        blocks.append(body)
    return blocks


class DiffBlockApplier:
    """
    Responsibilities:
      - locate ```diff fenced blocks in free-form text
      - refuse blocks above the size limit
      - apply blocks in order, each through the engine's validated apply
        (plain apply when ``validate`` is off)
    """

    def __init__(
        self,
        engine: Optional[PatchEngine] = None,
        max_diff_chars: int = DEFAULT_MAX_DIFF_CHARS,
        validate: bool = True,
    ) -> None:
        self.engine = engine if engine is not None else LinePatchEngine()
        self.max_diff_chars = max_diff_chars
        self.validate = validate

    def _apply_block(self, code: str, block: str) -> str:
        self._check_size(block)
        if self.validate:
            return self.engine.apply_validated(code, block)
        return self.engine.apply(code, block)

    def _check_size(self, block: str) -> None:
        if len(block) > self.max_diff_chars:
            raise PatchSizeError(
                f"Diff block exceeds maximum size of {self.max_diff_chars} characters",
                details={"size": len(block), "limit": self.max_diff_chars},
            )

    def apply(self, code: str, response: str) -> str:
        blocks = extract_blocks(response)
        LOGGER.info("Found %d diff block(s) in response", len(blocks))
        current = code
        for number, block in enumerate(blocks, start=1):
            try:
                current = self._apply_block(current, block)
            except PatchError as e:
                LOGGER.error("Error applying diff block %d: %s", number, e)
                raise
        return current

    def preview(self, code: str, response: str, options: Optional[dict] = None) -> ApplyResult:
        """
        Apply every block without raising; the outcome is reported in an ApplyResult.

        With ``options["stop_on_error"]`` (default True) the first failing block
        ends the run; otherwise failing blocks are skipped.
        """
        options = options or {}
        stop_on_error = bool(options.get("stop_on_error", True))
        res = ApplyResult(success=True, overall_message="OK", text=code)
        blocks = extract_blocks(response)
        res.summary = {"blocks": len(blocks), "applied": 0, "failed": 0}
        if not blocks:
            res.success = False
            res.overall_message = "No diff blocks found"
            res.add_log("WARN", "No ```diff blocks in response")
            return res

        current = code
        for number, block in enumerate(blocks, start=1):
            try:
                current = self._apply_block(current, block)
            except PatchError as e:
                res.success = False
                res.summary["failed"] += 1
                res.add_log("ERROR", f"Block {number} rejected: {e}", block=number, details=e.details)
                if stop_on_error:
                    break
                continue
            res.summary["applied"] += 1
            res.add_log("INFO", f"Block {number} applied", block=number)

        res.text = current
        if not res.success:
            res.overall_message = f"{res.summary['failed']} of {len(blocks)} block(s) failed"
        return res
