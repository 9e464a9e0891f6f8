from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from ipa_uploader.core.config import CONFIG_FILE_NAME, Config, load_config, load_config_or_default
from ipa_uploader.core.errors import ErrorCode
from ipa_uploader.core.result import Err
from ipa_uploader.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    console: ConsoleProtocol


def build_context(config_path: Path | None = None) -> CLIContext:
    """Load config (explicit path, or ./ipa-uploader.toml if present)."""
    if config_path is not None:
        result = load_config(config_path.expanduser())
    else:
        result = load_config_or_default(Path.cwd() / CONFIG_FILE_NAME)

    if isinstance(result, Err):
        typer.echo(f"error: {result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(config=result.value, console=RichConsole(stderr=True))
