"""Fuzzy application and generation of loosely formatted line patches."""

from __future__ import annotations

from typing import Union

from .core import (
    ConfigError,
    DiffGenerator,
    NormalizationPolicy,
    PatchApplier,
    PatchApplyError,
    PatchError,
    PatchSizeError,
    PatchValidationError,
)
from .core.normalizer import coerce_policy

__version__ = "0.1.0"

PolicyLike = Union[str, NormalizationPolicy, None]


def generate(old_text: str, new_text: str, policy: PolicyLike = NormalizationPolicy.WHITESPACE) -> str:
    """Produce a compact patch turning ``old_text`` into ``new_text``."""
    return DiffGenerator(coerce_policy(policy)).generate(old_text, new_text)


def apply(source_text: str, patch_text: str, policy: PolicyLike = NormalizationPolicy.WHITESPACE) -> str:
    """Apply a diff-style or snippet patch to ``source_text``."""
    return PatchApplier(coerce_policy(policy)).apply(source_text, patch_text)


def apply_validated(source_text: str, patch_text: str, policy: PolicyLike = NormalizationPolicy.WHITESPACE) -> str:
    """Like :func:`apply`, raising PatchValidationError when a bracket or quote balance breaks."""
    return PatchApplier(coerce_policy(policy)).apply_validated(source_text, patch_text)


__all__ = [
    "generate",
    "apply",
    "apply_validated",
    "NormalizationPolicy",
    "PatchError",
    "PatchValidationError",
    "PatchSizeError",
    "PatchApplyError",
    "ConfigError",
    "__version__",
]
