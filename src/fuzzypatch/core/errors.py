"""fuzzypatch core: exception hierarchy."""

from __future__ import annotations

from typing import Any, List, Mapping


class PatchError(RuntimeError):
    """Base class for every error the engine surfaces to callers."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = dict(details or {})


class PatchValidationError(PatchError):
    """A patch broke a bracket or quote balance that held before it was applied."""

    @property
    def broken(self) -> List[str]:
        return list(self.details.get("broken", []))


class PatchSizeError(PatchError):
    """A diff block exceeds the configured size limit."""


class PatchApplyError(PatchError):
    """The character-level backend could not place one or more hunks."""


class ConfigError(PatchError):
    """Options are malformed or name an unknown setting."""
