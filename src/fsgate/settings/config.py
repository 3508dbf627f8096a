"""
fsgate settings.

Settings can come from the environment (``FSGATE_`` prefix, ``__`` for
nesting), from a YAML or JSON file, or from a plain dictionary.
"""

import json
from pathlib import Path
from typing import Union

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fsgate.filesystem.config import FileSystemAccessConfig


class FsgateSettings(BaseSettings):
    """
    Top-level settings.

    Example environment:
        FSGATE_FILESYSTEM__ALLOWED_DIRECTORIES='["/srv/data", "~/projects"]'
        FSGATE_FILESYSTEM__FILE_READ_LINE_LIMIT=500
        FSGATE_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="FSGATE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    filesystem: FileSystemAccessConfig = Field(
        default_factory=FileSystemAccessConfig,
        description="Filesystem sandbox and reader settings",
    )

    log_level: str = Field(
        default="INFO",
        description="Log level for the CLI",
    )

    telemetry_enabled: bool = Field(
        default=False,
        description="Log telemetry events at debug level",
    )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "FsgateSettings":
        """
        Load settings from a YAML or JSON file.

        File format (YAML):
            ```yaml
            filesystem:
              allowed_directories:
                - ~/projects
                - /var/log
              file_read_line_limit: 1000
              reader:
                large_file_threshold_bytes: 10485760
            log_level: INFO
            ```

        Args:
            path: Path to the settings file

        Returns:
            Loaded FsgateSettings instance

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text()

        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        elif path.suffix == ".json":
            data = json.loads(content)
        else:
            # Try YAML first, then JSON
            try:
                data = yaml.safe_load(content)
            except yaml.YAMLError:
                data = json.loads(content)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict) -> "FsgateSettings":
        return cls(**data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")

    def save(self, path: Union[str, Path], format: str = "yaml") -> None:
        """Write settings to ``path`` as YAML or JSON."""
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.to_dict()

        if format == "yaml":
            content = yaml.dump(data, default_flow_style=False, sort_keys=False)
        elif format == "json":
            content = json.dumps(data, indent=2)
        else:
            raise ValueError(f"Unknown format: {format}")

        path.write_text(content)
