from __future__ import annotations

import pytest

from fuzzypatch.core.backends import DmpPatchEngine, LinePatchEngine, PatchEngine, engine_for
from fuzzypatch.core.errors import ConfigError, PatchApplyError, PatchValidationError
from fuzzypatch.core.normalizer import NormalizationPolicy


def test_line_engine_generates_and_applies() -> None:
    engine = LinePatchEngine()
    old = "line1\nline2\nline3"
    new = "line1\nline2b\nline3"

    patch = engine.generate(old, new)

    assert patch == "  line1\n- line2\n+ line2b\n  line3"
    assert engine.apply(old, patch) == "line1\n line2b\nline3"


def test_dmp_engine_round_trip() -> None:
    engine = DmpPatchEngine()
    old = "alpha\nbeta\ngamma\n"
    new = "alpha\nBETA\ngamma\n"

    patch = engine.generate(old, new)

    assert patch.startswith("@@ -")
    assert engine.apply(old, patch) == new


def test_dmp_engine_tolerates_shifted_target() -> None:
    engine = DmpPatchEngine()
    patch = engine.generate("alpha\nbeta\ngamma\n", "alpha\nBETA\ngamma\n")

    assert engine.apply("header\nalpha\nbeta\ngamma\n", patch) == "header\nalpha\nBETA\ngamma\n"


def test_dmp_engine_raises_when_hunk_cannot_be_placed() -> None:
    engine = DmpPatchEngine()
    patch = engine.generate(
        "The quick brown fox jumps over the lazy dog.",
        "The quick brown cat jumps over the lazy dog.",
    )

    with pytest.raises(PatchApplyError) as excinfo:
        engine.apply("0123456789" * 4, patch)

    assert excinfo.value.details == {"failed_hunks": [0]}


def test_dmp_engine_rejects_malformed_patch_text() -> None:
    with pytest.raises(PatchApplyError):
        DmpPatchEngine().apply("text", "this is not a patch")


def test_validated_apply_is_shared_by_engines() -> None:
    engine = DmpPatchEngine()
    patch = engine.generate("f(x)\n", "f(x\n")

    with pytest.raises(PatchValidationError):
        engine.apply_validated("f(x)\n", patch)


def test_line_engine_validated_apply_matches_applier() -> None:
    engine = LinePatchEngine()

    assert engine.apply_validated("f(a)\r\ng(b)", "f(a)\n-g(b)\n+g(c)") == "f(a)\ng(c)"
    with pytest.raises(PatchValidationError):
        engine.apply_validated("f(a)\ng(b)", "f(a)\n-g(b)\n+g(b")


def test_incomplete_engine_cannot_be_instantiated() -> None:
    class ApplyOnly(PatchEngine):
        def apply(self, source_text: str, patch_text: str) -> str:
            return source_text

    with pytest.raises(TypeError):
        ApplyOnly()


def test_engine_for_defaults_to_line_engine() -> None:
    engine = engine_for()

    assert isinstance(engine, LinePatchEngine)
    assert engine.policy is NormalizationPolicy.WHITESPACE


def test_engine_for_picks_policy_from_path() -> None:
    assert engine_for({"policy": "auto"}, path="pkg/module.py").policy is NormalizationPolicy.INDENTATION
    assert engine_for({"policy": "auto"}, path="config.YML").policy is NormalizationPolicy.INDENTATION
    assert engine_for({"policy": "auto"}, path="Main.kt").policy is NormalizationPolicy.WHITESPACE
    assert engine_for({"policy": "whitespace"}, path="module.py").policy is NormalizationPolicy.WHITESPACE


def test_engine_for_dmp_options() -> None:
    engine = engine_for({"backend": "dmp", "dmp_match_threshold": 0.3, "dmp_match_distance": 50})

    assert isinstance(engine, DmpPatchEngine)
    assert engine.match_threshold == 0.3
    assert engine.match_distance == 50


@pytest.mark.parametrize("options", [{"backend": "svn"}, {"policy": "tabs"}])
def test_engine_for_rejects_unknown_values(options: dict) -> None:
    with pytest.raises(ConfigError):
        engine_for(options)
