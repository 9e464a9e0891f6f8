from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

from ipa_uploader.github.model import Release
from ipa_uploader.github.releases import ReleaseTarget

PACKAGE_SUFFIX = ".ipa"
MANIFEST_SUFFIX = ".plist"
TAG_SEPARATOR = "_"


@dataclass(frozen=True, slots=True)
class Binary:
    """A file to attach to the release.

    `icon_url` is only used in the manifest generated for .ipa packages.
    """

    path: Path
    icon_url: str | None = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_package(self) -> bool:
        return self.name.lower().endswith(PACKAGE_SUFFIX)


@dataclass(frozen=True, slots=True)
class IpaMetadata:
    """Identification fields read from a package's Info.plist."""

    bundle_identifier: str
    display_name: str
    version: str  # CFBundleShortVersionString
    build_number: str  # CFBundleVersion


def derive_tag(tag_prefix: str | None, version: str, build_number: str) -> str:
    """Join prefix, version and build number: ("rel", "1.2.3", "45") -> "rel_1.2.3_45".

    A missing prefix still contributes an empty leading segment ("_1.2.3_45"),
    keeping tags produced by earlier uploads stable.
    """
    return TAG_SEPARATOR.join([tag_prefix or "", version, build_number])


@dataclass(frozen=True, slots=True)
class PublishRequest:
    owner: str
    repo: str
    token: str = field(repr=False)
    binaries: tuple[Binary, ...] = ()
    tag: str | None = None
    tag_prefix: str | None = None
    version: str | None = None
    build_number: str | None = None

    @property
    def packages(self) -> tuple[Binary, ...]:
        return tuple(b for b in self.binaries if b.is_package)

    def with_defaults(self, metadata: IpaMetadata | None) -> PublishRequest:
        """Fill version, build number and tag where the caller left them empty.

        Explicit values always win over metadata. The tag is derived only when
        both version and build number are known.
        """
        version = self.version or (metadata.version if metadata else None)
        build_number = self.build_number or (metadata.build_number if metadata else None)

        tag = self.tag
        if not tag and version and build_number:
            tag = derive_tag(self.tag_prefix, version, build_number)

        return replace(self, version=version, build_number=build_number, tag=tag)

    def target(self) -> ReleaseTarget | None:
        if not self.tag:
            return None
        return ReleaseTarget(owner=self.owner, repo=self.repo, tag=self.tag)


@dataclass(frozen=True, slots=True)
class PublishResult:
    version: str | None
    build_number: str | None
    plist: str | None  # basename of the generated manifest, if any
    release: Release
