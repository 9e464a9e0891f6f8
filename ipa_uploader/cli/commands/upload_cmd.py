from __future__ import annotations

import asyncio
from pathlib import Path
from typing import NoReturn

import typer

from ipa_uploader.cli.context import build_context
from ipa_uploader.core.errors import ErrorCode
from ipa_uploader.core.result import Err
from ipa_uploader.github.http import RealHttpClient
from ipa_uploader.output.console import ConsoleProtocol, Style
from ipa_uploader.output.progress import RichUploadProgress
from ipa_uploader.services.upload import (
    Binary,
    ExtractionError,
    PublishError,
    PublishRequest,
    RequestError,
    UploadError,
    UploadService,
    WriteError,
)


def upload_error_code(error: UploadError) -> ErrorCode:
    if isinstance(error, ExtractionError):
        return ErrorCode.PACKAGE_ERROR
    if isinstance(error, WriteError):
        return ErrorCode.IO_ERROR
    if isinstance(error, PublishError):
        return ErrorCode.NETWORK_ERROR
    return ErrorCode.USER_ERROR


def exit_upload(console: ConsoleProtocol, error: UploadError) -> NoReturn:
    console.error(error.pretty())
    raise typer.Exit(code=int(upload_error_code(error)))


def upload(
    binaries: list[Path] | None = typer.Argument(
        None, help="Files to attach (.ipa get a manifest)", show_default=False
    ),
    owner: str | None = typer.Option(None, "--owner", help="Repository owner"),
    repo: str | None = typer.Option(None, "--repo", help="Repository name"),
    token: str | None = typer.Option(
        None, "--token", envvar="GITHUB_TOKEN", help="GitHub token", show_default=False
    ),
    tag: str | None = typer.Option(None, "--tag", help="Release tag (derived when omitted)"),
    tag_prefix: str | None = typer.Option(
        None, "--tag-prefix", help="Prefix for derived tags: <prefix>_<version>_<build>"
    ),
    version: str | None = typer.Option(None, "--version", help="Override package version"),
    build_number: str | None = typer.Option(
        None, "--build-number", help="Override package build number"
    ),
    icon_url: str | None = typer.Option(None, "--icon-url", help="Icon URL for manifests"),
    config: Path | None = typer.Option(None, "--config", help="Config file (TOML)"),
) -> None:
    """Publish binaries to a GitHub release with install manifests."""
    ctx = build_context(config)
    gh = ctx.config.github

    request = PublishRequest(
        owner=owner or gh.owner or "",
        repo=repo or gh.repo or "",
        token=token or "",
        binaries=tuple(Binary(path=p, icon_url=icon_url) for p in binaries or []),
        tag=tag,
        tag_prefix=tag_prefix or gh.tag_prefix,
        version=version,
        build_number=build_number,
    )
    if not request.token:
        exit_upload(
            ctx.console,
            RequestError("missing GitHub token", hint="pass --token or set GITHUB_TOKEN"),
        )

    ctx.console.header(f"Upload to {request.owner}/{request.repo}")
    service = UploadService(
        http=RealHttpClient(token=request.token, timeout=gh.timeout),
        console=ctx.console,
        observer=RichUploadProgress(),
        config=ctx.config,
    )
    result = asyncio.run(service.run(request))
    if isinstance(result, Err):
        exit_upload(ctx.console, result.error)

    published = result.value
    release = published.release
    ctx.console.success(f"published {release.tag} ({len(release.assets)} asset(s))")
    if release.html_url:
        ctx.console.print(release.html_url, Style.DIM)
    ctx.console.print(f"version: {published.version or '-'}", Style.DIM)
    ctx.console.print(f"build: {published.build_number or '-'}", Style.DIM)
    if published.plist:
        ctx.console.print(f"manifest: {published.plist}", Style.DIM)
