"""fuzzypatch core: interchangeable patch engines."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import PurePath
from typing import Optional, Union

from diff_match_patch import diff_match_patch

from .applier import PatchApplier
from .diffgen import DiffGenerator
from .errors import ConfigError, PatchApplyError
from .normalizer import NormalizationPolicy, coerce_policy, policy_for_path
from .validator import BalanceValidator

LOGGER = logging.getLogger(__name__)

BACKENDS = ("linker", "dmp")


class PatchEngine(ABC):
    """Common surface of every backend: generate, apply, and validated apply."""

    name = "base"

    @abstractmethod
    def generate(self, old_text: str, new_text: str) -> str:
        ...

    @abstractmethod
    def apply(self, source_text: str, patch_text: str) -> str:
        ...

    def apply_validated(self, source_text: str, patch_text: str) -> str:
        return BalanceValidator().checked(source_text, self.apply(source_text, patch_text))


class LinePatchEngine(PatchEngine):
    """The fuzzy line-linking engine."""

    name = "linker"

    def __init__(self, policy: NormalizationPolicy = NormalizationPolicy.WHITESPACE) -> None:
        self.policy = policy

    def generate(self, old_text: str, new_text: str) -> str:
        return DiffGenerator(self.policy).generate(old_text, new_text)

    def apply(self, source_text: str, patch_text: str) -> str:
        return PatchApplier(self.policy).apply(source_text, patch_text)


class DmpPatchEngine(PatchEngine):
    """
    Character-level engine built on diff-match-patch.

    Patches are in the library's own text format (``patch_toText``), not the
    line format the linker engine produces.
    """

    name = "dmp"

    def __init__(self, match_threshold: float = 0.5, match_distance: int = 1000) -> None:
        self.match_threshold = match_threshold
        self.match_distance = match_distance

    def _matcher(self) -> diff_match_patch:
        dmp = diff_match_patch()
        dmp.Match_Threshold = self.match_threshold
        dmp.Match_Distance = self.match_distance
        return dmp

    def generate(self, old_text: str, new_text: str) -> str:
        dmp = self._matcher()
        return dmp.patch_toText(dmp.patch_make(old_text, new_text))

    def apply(self, source_text: str, patch_text: str) -> str:
        dmp = self._matcher()
        try:
            patches = dmp.patch_fromText(patch_text)
        except ValueError as e:
            raise PatchApplyError(f"Invalid diff-match-patch text: {e}") from e
        new_text, results = dmp.patch_apply(patches, source_text)
        failed = [i for i, ok in enumerate(results) if not ok]
        if failed:
            LOGGER.error("diff-match-patch could not place %d of %d hunk(s)", len(failed), len(results))
            raise PatchApplyError(
                f"{len(failed)} of {len(results)} hunk(s) failed to apply",
                details={"failed_hunks": failed},
            )
        LOGGER.info("diff-match-patch applied %d hunk(s)", len(results))
        return new_text


def engine_for(options: Optional[dict] = None, path: Optional[Union[str, PurePath]] = None) -> PatchEngine:
    """
    Build the engine named by ``options["backend"]``.

    ``options["policy"] == "auto"`` picks the policy from ``path``'s suffix
    (whitespace when no path is known).
    """
    options = options or {}
    backend = str(options.get("backend", "linker")).lower()
    if backend == "dmp":
        return DmpPatchEngine(
            match_threshold=float(options.get("dmp_match_threshold", 0.5)),
            match_distance=int(options.get("dmp_match_distance", 1000)),
        )
    if backend != "linker":
        raise ConfigError(f"Unknown backend: {backend!r}", details={"choices": list(BACKENDS)})

    policy_value = options.get("policy", "auto")
    if policy_value == "auto":
        policy = policy_for_path(path) if path is not None else NormalizationPolicy.WHITESPACE
    else:
        try:
            policy = coerce_policy(policy_value)
        except ValueError as e:
            raise ConfigError(str(e)) from e
    LOGGER.debug("Using linker engine with %s policy", policy.value)
    return LinePatchEngine(policy)
