"""Tests for configuration models and settings loading."""

import json
import os

import pytest
import yaml
from pydantic import ValidationError

from fsgate.filesystem import (
    ConfigAllowedDirectories,
    ConfigLineLimit,
    FileSystemAccessConfig,
    ReaderConfig,
    StaticAllowedDirectories,
)
from fsgate.settings import FsgateSettings


class TestFileSystemAccessConfig:
    """Tests for FileSystemAccessConfig."""

    def test_defaults(self):
        """Test default configuration."""
        config = FileSystemAccessConfig()

        assert config.allowed_directories == []
        assert config.file_read_line_limit == 1000
        assert config.path_validation_timeout_seconds == 10.0
        assert config.file_read_timeout_seconds == 30.0
        assert config.reader.large_file_threshold_bytes == 10 * 1024 * 1024
        assert config.reader.small_tail_threshold_lines == 100
        assert config.reader.estimate_offset_threshold_lines == 1000
        assert config.reader.tail_chunk_size_bytes == 8192

    def test_home_is_expanded(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))

        config = FileSystemAccessConfig(allowed_directories=["~/projects", "/srv"])
        assert config.allowed_directories == [os.path.join(str(tmp_path), "projects"), "/srv"]

    def test_rejects_invalid_values(self):
        with pytest.raises(ValidationError):
            FileSystemAccessConfig(file_read_line_limit=-1)

        with pytest.raises(ValidationError):
            ReaderConfig(tail_chunk_size_bytes=0)

    def test_repr_hides_directories(self):
        config = FileSystemAccessConfig(allowed_directories=["/secret/place"])
        assert "/secret/place" not in repr(config)


class TestProviders:
    """Tests for allow-list and line-limit providers."""

    def test_config_providers_are_live(self):
        config = FileSystemAccessConfig(allowed_directories=["/a"], file_read_line_limit=5)
        directories = ConfigAllowedDirectories(config)
        line_limit = ConfigLineLimit(config)

        config.allowed_directories.append("/b")
        config.file_read_line_limit = 9

        assert directories.get_allowed_directories() == ["/a", "/b"]
        assert line_limit.get_default_line_limit() == 9

    def test_static_provider_returns_copies(self):
        provider = StaticAllowedDirectories(["/a"])
        provider.get_allowed_directories().append("/b")

        assert provider.get_allowed_directories() == ["/a"]


class TestFsgateSettings:
    """Tests for FsgateSettings loading."""

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "fsgate.yaml"
        path.write_text(
            yaml.dump(
                {
                    "filesystem": {
                        "allowed_directories": ["/var/log"],
                        "file_read_line_limit": 250,
                        "reader": {"large_file_threshold_bytes": 1024},
                    },
                    "log_level": "DEBUG",
                }
            )
        )

        settings = FsgateSettings.from_file(path)

        assert settings.filesystem.allowed_directories == ["/var/log"]
        assert settings.filesystem.file_read_line_limit == 250
        assert settings.filesystem.reader.large_file_threshold_bytes == 1024
        assert settings.log_level == "DEBUG"

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "fsgate.json"
        path.write_text(json.dumps({"filesystem": {"file_read_line_limit": 42}}))

        settings = FsgateSettings.from_file(path)
        assert settings.filesystem.file_read_line_limit == 42

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FsgateSettings.from_file(tmp_path / "nope.yaml")

    def test_from_env(self, monkeypatch):
        """Test nested settings from FSGATE_ environment variables."""
        monkeypatch.setenv("FSGATE_FILESYSTEM__ALLOWED_DIRECTORIES", '["/data", "/logs"]')
        monkeypatch.setenv("FSGATE_FILESYSTEM__FILE_READ_LINE_LIMIT", "7")
        monkeypatch.setenv("FSGATE_TELEMETRY_ENABLED", "true")

        settings = FsgateSettings()

        assert settings.filesystem.allowed_directories == ["/data", "/logs"]
        assert settings.filesystem.file_read_line_limit == 7
        assert settings.telemetry_enabled is True

    def test_save_and_reload(self, tmp_path):
        settings = FsgateSettings.from_dict(
            {"filesystem": {"allowed_directories": ["/srv"], "file_read_line_limit": 12}}
        )
        path = tmp_path / "out" / "fsgate.yaml"

        settings.save(path)
        reloaded = FsgateSettings.from_file(path)

        assert reloaded.filesystem.allowed_directories == ["/srv"]
        assert reloaded.filesystem.file_read_line_limit == 12
