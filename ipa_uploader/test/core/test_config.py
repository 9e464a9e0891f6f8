"""Tests for ipa_uploader.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from ipa_uploader.core.config import (
    DEFAULT_API_URL,
    DEFAULT_TIMEOUT_SECONDS,
    Config,
    GitHubConfig,
    ManifestConfig,
    load_config,
    load_config_or_default,
)
from ipa_uploader.core.result import Err, Ok


class TestDefaults:
    def test_github_defaults(self) -> None:
        config = GitHubConfig()
        assert config.owner is None
        assert config.repo is None
        assert config.tag_prefix is None
        assert config.api_url == "https://api.github.com"
        assert config.timeout == DEFAULT_TIMEOUT_SECONDS

    def test_manifest_defaults(self) -> None:
        config = ManifestConfig()
        assert config.template is None
        assert config.output_dir is None

    def test_frozen(self) -> None:
        config = Config()
        with pytest.raises(AttributeError):
            config.github = GitHubConfig()  # type: ignore[misc]


class TestFromDict:
    def test_empty_dict_gives_defaults(self) -> None:
        assert Config.from_dict({}) == Config()

    def test_github_section(self) -> None:
        config = Config.from_dict(
            {
                "github": {
                    "owner": "acme",
                    "repo": "app",
                    "tag_prefix": "rel",
                    "api_url": "https://ghe.example.com/api/v3/",
                    "timeout": 30,
                }
            }
        )
        assert config.github.owner == "acme"
        assert config.github.repo == "app"
        assert config.github.tag_prefix == "rel"
        assert config.github.api_url == "https://ghe.example.com/api/v3"
        assert config.github.timeout == 30.0

    def test_relative_manifest_paths_resolve_against_base_dir(self, tmp_path: Path) -> None:
        config = Config.from_dict(
            {"manifest": {"template": "tpl.plist", "output_dir": "/abs/out"}},
            base_dir=tmp_path,
        )
        assert config.manifest.template == tmp_path / "tpl.plist"
        assert config.manifest.output_dir == Path("/abs/out")

    def test_negative_timeout_rejected(self) -> None:
        with pytest.raises(ValueError, match="timeout"):
            Config.from_dict({"github": {"timeout": -1}})


class TestLoadConfig:
    def test_load_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "ipa-uploader.toml"
        path.write_text('[github]\nowner = "acme"\nrepo = "app"\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.github.owner == "acme"
        assert result.value.github.api_url == DEFAULT_API_URL

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.toml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[github\nowner=", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message
        assert result.error.path == path

    def test_invalid_structure(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[github]\ntimeout = -5\n", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid config structure" in result.error.message


class TestLoadConfigOrDefault:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_config_or_default(tmp_path / "missing.toml") == Ok(Config())

    def test_broken_file_is_still_an_error(self, tmp_path: Path) -> None:
        path = tmp_path / "ipa-uploader.toml"
        path.write_text("not = [valid", encoding="utf-8")
        assert isinstance(load_config_or_default(path), Err)
