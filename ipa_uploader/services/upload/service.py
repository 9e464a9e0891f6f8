from __future__ import annotations

import asyncio
import tempfile
from collections.abc import Iterable
from pathlib import Path

from ipa_uploader.core.config import Config
from ipa_uploader.core.result import Err, Ok, Result
from ipa_uploader.github.http import HttpClient, RealHttpClient
from ipa_uploader.github.releases import PublishObserver, publish
from ipa_uploader.output.console import ConsoleProtocol, RichConsole, Style
from ipa_uploader.output.progress import RichUploadProgress
from ipa_uploader.platform.files import remove_files
from ipa_uploader.services.upload.assets import collect_assets
from ipa_uploader.services.upload.errors import RequestError, UploadError
from ipa_uploader.services.upload.manifest import load_template
from ipa_uploader.services.upload.metadata import MetadataExtractor, extract_metadata
from ipa_uploader.services.upload.model import PublishRequest, PublishResult

__all__ = ["UploadService", "upload", "validate_request"]


def validate_request(request: PublishRequest) -> Result[None, RequestError]:
    missing = [
        name
        for name, value in (
            ("owner", request.owner),
            ("repo", request.repo),
            ("token", request.token),
        )
        if not value or not value.strip()
    ]
    if missing:
        return Err(RequestError(f"missing required field(s): {', '.join(missing)}"))
    return Ok(None)


class UploadService:
    """Publish binaries and their install manifests to a GitHub release.

    Sequence: collect assets (metadata, defaults, manifests), publish them,
    then delete the generated manifests. Manifests are deleted whether or not
    publishing succeeded.
    """

    def __init__(
        self,
        *,
        http: HttpClient,
        console: ConsoleProtocol,
        observer: PublishObserver | None = None,
        config: Config | None = None,
        extract: MetadataExtractor = extract_metadata,
    ) -> None:
        self._http = http
        self._console = console
        self._observer = observer
        self._config = config or Config()
        self._extract = extract

    @property
    def manifest_dir(self) -> Path:
        return self._config.manifest.output_dir or Path(tempfile.gettempdir())

    async def run(self, request: PublishRequest) -> Result[PublishResult, UploadError]:
        valid = validate_request(request)
        if isinstance(valid, Err):
            return valid

        template = load_template(self._config.manifest.template)
        if isinstance(template, Err):
            return template

        collected = await collect_assets(
            request,
            template=template.value,
            output_dir=self.manifest_dir,
            console=self._console,
            extract=self._extract,
        )
        if isinstance(collected, Err):
            return collected

        resolved = collected.value.request
        target = resolved.target()
        assert target is not None

        self._console.info(
            f"publishing {len(collected.value.assets)} asset(s) to {target.slug}@{target.tag}"
        )
        try:
            published = await publish(
                http=self._http,
                api_url=self._config.github.api_url,
                target=target,
                assets=collected.value.assets,
                observer=self._observer,
            )
        finally:
            self._cleanup(collected.value.manifests)

        if isinstance(published, Err):
            return published

        manifests = collected.value.manifests
        return Ok(
            PublishResult(
                version=resolved.version,
                build_number=resolved.build_number,
                plist=manifests[-1].name if manifests else None,
                release=published.value,
            )
        )

    def _cleanup(self, manifests: Iterable[Path]) -> None:
        def warn(path: Path, error: OSError) -> None:
            self._console.warning(f"could not remove {path}: {error.strerror or error}")

        for path in remove_files(manifests, on_error=warn):
            self._console.print(f"removed {path}", Style.DIM)


def upload(
    request: PublishRequest,
    *,
    config: Config | None = None,
    console: ConsoleProtocol | None = None,
    observer: PublishObserver | None = None,
    http: HttpClient | None = None,
) -> Result[PublishResult, UploadError]:
    """Run the whole upload on a fresh event loop.

    Defaults: Rich console on stderr, Rich progress bars, urllib client
    authenticated with the request token.
    """
    cfg = config or Config()
    service = UploadService(
        http=http or RealHttpClient(token=request.token, timeout=cfg.github.timeout),
        console=console or RichConsole(stderr=True),
        observer=observer or RichUploadProgress(),
        config=cfg,
    )
    return asyncio.run(service.run(request))
