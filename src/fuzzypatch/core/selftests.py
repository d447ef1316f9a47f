"""fuzzypatch core: in-process self tests."""

from __future__ import annotations

from typing import Tuple

from .applier import PatchApplier
from .backends import DmpPatchEngine
from .blocks import DiffBlockApplier
from .diffgen import DiffGenerator
from .errors import PatchValidationError
from .normalizer import NormalizationPolicy


def _squash(text: str) -> str:
    return "\n".join(line.strip() for line in text.strip().split("\n"))


class FuzzyPatchSelfTests:
    """
    In-process self tests using embedded source and patch strings.
    """

    @staticmethod
    def run() -> Tuple[bool, str]:
        applier = PatchApplier()
        generator = DiffGenerator()

        report_lines = []
        ok = True

        def fail(msg: str) -> None:
            nonlocal ok
            ok = False
            report_lines.append("FAIL: " + msg)

        def pass_(msg: str) -> None:
            report_lines.append("OK: " + msg)

        source = "line1\nline2\nline3"

        # 1) Marked addition
        out = applier.apply(source, "line1\nline2\n+newLine\nline3")
        if _squash(out) != "line1\nline2\nnewLine\nline3":
            fail("Marked addition produced: " + repr(out))
        else:
            pass_("Marked addition.")

        # 2) Replacement
        out = applier.apply(source, "line1\n-line2\n+modifiedLine2\nline3")
        if _squash(out) != "line1\nmodifiedLine2\nline3":
            fail("Replacement produced: " + repr(out))
        else:
            pass_("Replacement.")

        # 3) Deletion with a sloppy marker indent
        out = applier.apply(source, "line1\n - line2\nline3")
        if _squash(out) != "line1\nline3":
            fail("Indented deletion produced: " + repr(out))
        else:
            pass_("Indented deletion.")

        # 4) Whitespace-tolerant context keeps source formatting
        code = "function f() {\n    return 1;\n}"
        out = applier.apply(code, "function f(){\n+    log();\nreturn 1;\n}")
        if out != "function f() {\n    log();\n    return 1;\n}":
            fail("Whitespace-tolerant context produced: " + repr(out))
        else:
            pass_("Whitespace-tolerant context.")

        # 5) Snippet fallback
        out = applier.apply("a\nb\nc\nd\ne", "b\nX\nd")
        if out != "a\nb\nX\nd\ne":
            fail("Snippet fallback produced: " + repr(out))
        else:
            pass_("Snippet fallback.")

        # 6) Generation and round trip
        diff = generator.generate(source, "line1\nmodifiedLine2\nline3")
        if diff != "  line1\n- line2\n+ modifiedLine2\n  line3":
            fail("Generated diff incorrect: " + repr(diff))
        else:
            pass_("Diff generation.")
        if generator.generate(source, source) != "":
            fail("Identical texts produced a non-empty diff.")
        else:
            pass_("Empty diff for identical texts.")

        old = "a\nb\nc\nd\ne\nf"
        new = "a\nc\nd\nb\ne\nf\ng"
        round_trip = applier.apply(old, generator.generate(old, new))
        if _squash(round_trip) != new:
            fail("Round trip produced: " + repr(round_trip))
        else:
            pass_("Round trip with moved line.")

        # 7) Indentation-significant policy
        py_source = "def f():\n    x = 1\n    return x"
        py_applier = PatchApplier(NormalizationPolicy.INDENTATION)
        out = py_applier.apply(py_source, "  def f():\n      x = 1\n+     y = 2\n      return x")
        if out != "def f():\n    x = 1\n    y = 2\n    return x":
            fail("Indentation policy produced: " + repr(out))
        else:
            pass_("Indentation policy.")

        # 8) Validation rejects newly unbalanced output
        try:
            applier.apply_validated("f(a)\ng(b)", "f(a)\n-g(b)\n+g(b")
            fail("Unbalanced result was not rejected.")
        except PatchValidationError as e:
            if "parenthesis" not in e.broken:
                fail("Rejection named the wrong balance: " + ", ".join(e.broken))
            else:
                pass_("Balance regression rejected.")

        # 9) Fenced blocks in a response
        response = "Here you go:\n```diff\n line1\n-line2\n+line two\n line3\n```\nDone."
        out = DiffBlockApplier().apply(source, response)
        if _squash(out) != "line1\nline two\nline3":
            fail("Fenced block apply produced: " + repr(out))
        else:
            pass_("Fenced block apply.")

        # 10) Character-level backend
        dmp = DmpPatchEngine()
        target = "alpha\nbeta\ngamma\n"
        patch_text = dmp.generate(target, "alpha\nBETA\ngamma\n")
        if dmp.apply(target, patch_text) != "alpha\nBETA\ngamma\n":
            fail("diff-match-patch backend round trip failed.")
        else:
            pass_("diff-match-patch backend.")

        report = "\n".join(report_lines)
        return ok, report
