"""Centralized configuration for Quark.

This module provides typed, validated configuration loaded from
environment variables and .env files.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


CACHE_FORMATS = ("json", "ini")
POPULATE_MODES = ("auto", "refill", "update", "cached")


@dataclass
class PathConfig:
    """Path configuration."""
    base_dir: Path = field(default_factory=lambda: Path("."))
    extensions_dir: Optional[Path] = None
    data_dir: Optional[Path] = None
    logs_dir: Optional[Path] = None

    def __post_init__(self):
        base = os.getenv("QUARK_BASE_DIR")
        if base:
            self.base_dir = Path(base)
        self.base_dir = Path(self.base_dir)

        extensions = os.getenv("QUARK_EXTENSIONS_DIR")
        if extensions:
            self.extensions_dir = Path(extensions)
        elif self.extensions_dir is None:
            self.extensions_dir = self.base_dir / "extensions"

        data = os.getenv("QUARK_DATA_DIR")
        if data:
            self.data_dir = Path(data)
        elif self.data_dir is None:
            self.data_dir = self.base_dir / "data"

        if self.logs_dir is None:
            self.logs_dir = self.data_dir / "logs"


@dataclass
class ExtensionsConfig:
    """Extension discovery and cache configuration."""
    cache_format: str = "json"
    cache_file: Optional[str] = None
    populate_mode: str = "auto"

    def __post_init__(self):
        self.cache_format = os.getenv("QUARK_CACHE_FORMAT", self.cache_format).lower()
        self.cache_file = os.getenv("QUARK_CACHE_FILE", self.cache_file)
        self.populate_mode = os.getenv("QUARK_POPULATE_MODE", self.populate_mode).lower()

        if self.cache_file is None:
            self.cache_file = f"extensions.{self.cache_format}"


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "text"  # "json" or "text"
    file_enabled: bool = False
    console_enabled: bool = True

    def __post_init__(self):
        self.level = os.getenv("QUARK_LOG_LEVEL", self.level).upper()
        self.format = os.getenv("QUARK_LOG_FORMAT", self.format).lower()
        self.file_enabled = os.getenv("QUARK_LOG_FILE", str(self.file_enabled)).lower() == "true"
        self.console_enabled = os.getenv("QUARK_LOG_CONSOLE", str(self.console_enabled)).lower() == "true"


@dataclass
class Config:
    """Main configuration container."""
    paths: PathConfig = field(default_factory=PathConfig)
    extensions: ExtensionsConfig = field(default_factory=ExtensionsConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def cache_path(self) -> Path:
        return self.paths.data_dir / self.extensions.cache_file

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if not self.paths.extensions_dir.is_dir():
            issues.append(f"Extensions directory {self.paths.extensions_dir} does not exist")

        if self.extensions.cache_format not in CACHE_FORMATS:
            issues.append(f"QUARK_CACHE_FORMAT must be one of {', '.join(CACHE_FORMATS)}")

        if self.extensions.populate_mode not in POPULATE_MODES:
            issues.append(f"QUARK_POPULATE_MODE must be one of {', '.join(POPULATE_MODES)}")

        if self.log.format not in ("json", "text"):
            issues.append("QUARK_LOG_FORMAT must be 'json' or 'text'")

        return issues

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
