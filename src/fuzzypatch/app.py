"""fuzzypatch command-line entrypoint."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .config import load_options, merge_options
from .core.backends import engine_for
from .core.blocks import DiffBlockApplier
from .core.errors import PatchError
from .core.selftests import FuzzyPatchSelfTests
from .core.validator import BalanceValidator

APP_HELP = "Apply and generate fuzzy line patches."
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

LOGGER = logging.getLogger(__name__)

app = typer.Typer(help=APP_HELP)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every linking decision."),
) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def _read(path: Path) -> str:
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


def _options(config: Optional[Path], **overrides: Any) -> Dict[str, Any]:
    base = load_options(config) if config is not None else merge_options()
    base.update({key: value for key, value in overrides.items() if value is not None})
    return merge_options(base)


def _emit(text: str, output: Optional[Path]) -> None:
    if output is None:
        typer.echo(text)
        return
    output.write_text(text, encoding="utf-8")
    typer.echo(f"Wrote {output}")


def _exit_for(error: PatchError) -> typer.Exit:
    typer.echo(f"Error: {error}", err=True)
    return typer.Exit(code=1)


@app.command("apply")
def apply_command(
    source: Path = typer.Argument(..., help="File to patch."),
    patch: Path = typer.Argument(..., help="Patch or snippet to apply."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead of stdout."),
    policy: Optional[str] = typer.Option(None, "--policy", help="auto, whitespace or indentation."),
    backend: Optional[str] = typer.Option(None, "--backend", help="linker or dmp."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML options file."),
    validate: Optional[bool] = typer.Option(
        None,
        "--validate/--no-validate",
        help="Reject results that break bracket or quote balance.",
    ),
) -> None:
    """Apply PATCH to SOURCE."""
    source_text = _read(source)
    patch_text = _read(patch)
    try:
        options = _options(config, policy=policy, backend=backend, validate=validate)
        engine = engine_for(options, path=source)
        if options["validate"]:
            result = engine.apply_validated(source_text, patch_text)
        else:
            result = engine.apply(source_text, patch_text)
    except PatchError as e:
        raise _exit_for(e) from e
    _emit(result, output)


@app.command("generate")
def generate_command(
    old: Path = typer.Argument(..., help="Original file."),
    new: Path = typer.Argument(..., help="Updated file."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the patch here instead of stdout."),
    policy: Optional[str] = typer.Option(None, "--policy", help="auto, whitespace or indentation."),
    backend: Optional[str] = typer.Option(None, "--backend", help="linker or dmp."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML options file."),
) -> None:
    """Generate a patch turning OLD into NEW."""
    old_text = _read(old)
    new_text = _read(new)
    try:
        options = _options(config, policy=policy, backend=backend)
        diff = engine_for(options, path=old).generate(old_text, new_text)
    except PatchError as e:
        raise _exit_for(e) from e
    if not diff:
        LOGGER.info("No changes between %s and %s", old, new)
    _emit(diff, output)


@app.command("apply-response")
def apply_response_command(
    source: Path = typer.Argument(..., help="File to patch."),
    response: Path = typer.Argument(..., help="Text containing ```diff fenced blocks."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result here instead of stdout."),
    policy: Optional[str] = typer.Option(None, "--policy", help="auto, whitespace or indentation."),
    backend: Optional[str] = typer.Option(None, "--backend", help="linker or dmp."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML options file."),
    validate: Optional[bool] = typer.Option(
        None,
        "--validate/--no-validate",
        help="Reject blocks whose result breaks bracket or quote balance.",
    ),
) -> None:
    """Apply every fenced diff block found in RESPONSE to SOURCE."""
    source_text = _read(source)
    response_text = _read(response)
    try:
        options = _options(config, policy=policy, backend=backend, validate=validate)
        applier = DiffBlockApplier(
            engine_for(options, path=source),
            max_diff_chars=options["max_diff_chars"],
            validate=options["validate"],
        )
        result = applier.apply(source_text, response_text)
    except PatchError as e:
        raise _exit_for(e) from e
    _emit(result, output)


@app.command("validate")
def validate_command(
    file: Path = typer.Argument(..., help="File to check."),
) -> None:
    """Report unbalanced brackets and quotes in FILE."""
    errors = BalanceValidator().validate_grammar(_read(file))
    if not errors:
        typer.echo(f"{file}: balanced")
        return
    for error in errors:
        typer.echo(f"{file}: {error.severity.value}: {error.message}")
    raise typer.Exit(code=1)


@app.command("selftest")
def selftest_command() -> None:
    """Run the built-in self tests."""
    ok, report = FuzzyPatchSelfTests.run()
    typer.echo(report)
    if not ok:
        raise typer.Exit(code=2)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
