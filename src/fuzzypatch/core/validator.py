"""fuzzypatch core: bracket and quote balance checks."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Tuple

from .errors import PatchValidationError
from .models import ValidationError

LOGGER = logging.getLogger(__name__)


def _pairs_balanced(code: str, opener: str, closer: str) -> bool:
    count = 0
    for ch in code:
        if ch == opener:
            count += 1
        elif ch == closer:
            count -= 1
            if count < 0:
                return False
    return count == 0


def _quotes_balanced(code: str, quote: str) -> bool:
    count = 0
    escaped = False
    for ch in code:
        if ch == "\\":
            escaped = not escaped
        elif ch == quote and not escaped:
            count += 1
        else:
            escaped = False
    return count % 2 == 0


def is_curly_balanced(code: str) -> bool:
    return _pairs_balanced(code, "{", "}")


def is_square_balanced(code: str) -> bool:
    return _pairs_balanced(code, "[", "]")


def is_parenthesis_balanced(code: str) -> bool:
    return _pairs_balanced(code, "(", ")")


def is_quote_balanced(code: str) -> bool:
    return _quotes_balanced(code, '"')


def is_single_quote_balanced(code: str) -> bool:
    return _quotes_balanced(code, "'")


class BalanceValidator:
    """
    Structural safety net around patch application.

    A balance that was already broken in the source is not this validator's
    concern; only regressions are reported.
    """

    CHECKS: Tuple[Tuple[str, str, Callable[[str], bool]], ...] = (
        ("curly", "Curly braces are not balanced", is_curly_balanced),
        ("square", "Square brackets are not balanced", is_square_balanced),
        ("parenthesis", "Parentheses are not balanced", is_parenthesis_balanced),
        ("quote", "Quotes are not balanced", is_quote_balanced),
        ("single_quote", "Single quotes are not balanced", is_single_quote_balanced),
    )

    def report(self, code: str) -> Dict[str, bool]:
        return {name: check(code) for name, _, check in self.CHECKS}

    def validate_grammar(self, code: str) -> List[ValidationError]:
        return [ValidationError(message=message) for name, message, check in self.CHECKS if not check(code)]

    def regressions(self, before: str, after: str) -> List[str]:
        old, new = self.report(before), self.report(after)
        return [name for name, _, _ in self.CHECKS if old[name] and not new[name]]

    def check_regression(self, before: str, after: str) -> None:
        broken = self.regressions(before, after)
        if not broken:
            return
        messages = {name: message for name, message, _ in self.CHECKS}
        text = "\n".join(messages[name] for name in broken)
        LOGGER.error("Patch rejected: %s", "; ".join(messages[name] for name in broken))
        raise PatchValidationError(text, details={"broken": broken})

    def checked(self, before: str, after: str) -> str:
        """Return ``after`` without carriage returns, or raise PatchValidationError on a regression."""
        after = after.replace("\r", "")
        self.check_regression(before, after)
        return after
