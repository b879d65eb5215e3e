"""Tests for pneuma.config -- loading and validating ~/.config/pneuma.json."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pneuma.config import (
    ConfigError,
    PneumaConfig,
    SiteConfig,
    config_from_dict,
    default_config_path,
    load_config,
)


@pytest.fixture(autouse=True)
def _no_editor_env(monkeypatch):
    monkeypatch.delenv("VISUAL", raising=False)
    monkeypatch.delenv("EDITOR", raising=False)
    monkeypatch.delenv("PNEUMA_CONFIG", raising=False)


def write_config(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestConfigFromDict:
    def test_full(self, tmp_path):
        config = config_from_dict({
            "extension": ".md",
            "editor": "vim",
            "sites": [
                {"name": "blog", "path": str(tmp_path / "blog")},
                {"name": "notes", "path": str(tmp_path / "notes")},
            ],
        })
        assert config == PneumaConfig(
            extension=".md",
            editor="vim",
            sites=[
                SiteConfig("blog", tmp_path / "blog"),
                SiteConfig("notes", tmp_path / "notes"),
            ],
        )

    def test_defaults(self):
        config = config_from_dict({"sites": [{"name": "blog", "path": "/srv/blog"}]})
        assert config.extension == ".md"
        assert config.editor == "vi"

    def test_editor_from_environment(self, monkeypatch):
        monkeypatch.setenv("EDITOR", "nano")
        config = config_from_dict({"sites": [{"path": "/srv/blog"}]})
        assert config.editor == "nano"
        monkeypatch.setenv("VISUAL", "emacs")
        config = config_from_dict({"sites": [{"path": "/srv/blog"}]})
        assert config.editor == "emacs"

    def test_extension_gets_leading_dot(self):
        config = config_from_dict({"extension": "org", "sites": [{"path": "/srv/blog"}]})
        assert config.extension == ".org"

    def test_site_path_expands_user(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        config = config_from_dict({"sites": [{"name": "blog", "path": "~/blog"}]})
        assert config.sites[0].path == tmp_path / "blog"

    def test_site_name_defaults_to_directory(self):
        config = config_from_dict({"sites": [{"path": "/srv/blog"}]})
        assert config.sites[0].name == "blog"

    def test_find_site(self):
        config = config_from_dict({"sites": [{"name": "a", "path": "/a"}, {"name": "b", "path": "/b"}]})
        assert config.find_site("b") == SiteConfig("b", Path("/b"))
        assert config.find_site("c") is None

    @pytest.mark.parametrize(
        "data",
        [
            [],
            "sites",
            {},
            {"sites": []},
            {"sites": {"name": "blog"}},
            {"sites": [{"name": "blog"}]},
            {"sites": [{"name": "blog", "path": ""}]},
            {"sites": ["blog"]},
            {"extension": 3, "sites": [{"path": "/a"}]},
            {"editor": ["vim"], "sites": [{"path": "/a"}]},
        ],
    )
    def test_invalid(self, data):
        with pytest.raises(ConfigError):
            config_from_dict(data)


class TestLoadConfig:
    def test_load(self, tmp_path):
        path = write_config(tmp_path / "pneuma.json", {
            "editor": "vim",
            "sites": [{"name": "blog", "path": "/srv/blog"}],
        })
        config = load_config(path)
        assert config.editor == "vim"
        assert config.sites == [SiteConfig("blog", Path("/srv/blog"))]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "pneuma.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="invalid JSON"):
            load_config(path)

    def test_env_path(self, tmp_path, monkeypatch):
        path = write_config(tmp_path / "custom.json", {"sites": [{"path": "/srv/blog"}]})
        monkeypatch.setenv("PNEUMA_CONFIG", str(path))
        assert default_config_path() == path
        assert load_config().sites[0].name == "blog"

    def test_default_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert default_config_path() == tmp_path / ".config" / "pneuma.json"
