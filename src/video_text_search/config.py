"""Configuration schemas and dataclasses for Video Text Search."""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, List, Optional

import yaml

from video_text_search.errors import ConfigurationError
from video_text_search.core.matcher import normalize_search_text
from video_text_search.core.pipeline import default_worker_count
from video_text_search.utils.logging_config import parse_level

MODES = ("parallel", "sequential")


def parse_skip_frames(value: Any) -> int:
    """
    Parse a frame stride leniently.

    Values that are not integers fall back to 1 and values below 1 are
    clamped to 1.
    """
    try:
        skip = int(str(value).strip())
    except (TypeError, ValueError):
        return 1
    return max(1, skip)


@dataclass
class SourceConfig:
    """Configuration for frame extraction."""
    skip_frames: int = 1


@dataclass
class OCRConfig:
    """Configuration for OCR processing."""
    engine: str = "tesseract"
    languages: List[str] = field(default_factory=lambda: ["en"])
    gpu: bool = False
    tessdata_dir: Optional[str] = None


@dataclass
class PipelineSettings:
    """Configuration for the frame pipeline."""
    mode: str = "parallel"
    workers: int = 0  # 0 = auto-detect based on CPU cores
    flush_every: int = 10
    stream: bool = True

    @property
    def resolved_workers(self) -> int:
        if self.workers and self.workers > 0:
            return self.workers
        return default_worker_count()


@dataclass
class OutputConfig:
    """Configuration for the result file."""
    path: Optional[str] = None
    flush_retries: int = 3


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: Optional[str] = None
    rich_formatting: bool = True


@dataclass
class SearchConfig:
    """Main configuration container for a search run."""
    search_text: str = ""
    video_path: Optional[str] = None
    source: SourceConfig = field(default_factory=SourceConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def query(self) -> str:
        """Search text with surrounding quotes removed."""
        return normalize_search_text(self.search_text)

    def validate(self) -> None:
        """
        Check the configuration before any resource is opened.

        Raises:
            ConfigurationError: On the first invalid setting
        """
        if not self.query:
            raise ConfigurationError("The text to find cannot be empty.")
        if not self.video_path:
            raise ConfigurationError("A video path is required.")
        if self.pipeline.mode not in MODES:
            raise ConfigurationError(
                f"Unknown mode: {self.pipeline.mode}. Available: {', '.join(MODES)}"
            )
        if self.pipeline.flush_every < 1:
            raise ConfigurationError("flush_every must be at least 1")
        if self.pipeline.workers < 0:
            raise ConfigurationError("workers must be 0 (auto) or a positive number")
        parse_level(self.logging.level)

        self.source.skip_frames = parse_skip_frames(self.source.skip_frames)

    @classmethod
    def from_yaml(cls, path: Path) -> "SearchConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not read config file {path}: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "SearchConfig":
        """
        Create configuration from a dictionary.

        Raises:
            ConfigurationError: If the data or one of its sections is not a
                mapping, or a section has unknown keys
        """
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Invalid configuration: expected a mapping, got {type(data).__name__}"
            )

        def section(name: str) -> dict:
            value = data.get(name) or {}
            if not isinstance(value, dict):
                raise ConfigurationError(
                    f"Invalid configuration: section '{name}' must be a mapping"
                )
            return value

        try:
            return cls(
                search_text=data.get("search_text", ""),
                video_path=data.get("video_path"),
                source=SourceConfig(**section("source")),
                ocr=OCRConfig(**section("ocr")),
                pipeline=PipelineSettings(**section("pipeline")),
                output=OutputConfig(**section("output")),
                logging=LoggingConfig(**section("logging")),
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def merge_with(self, overrides: dict) -> "SearchConfig":
        """Create a new config with overrides applied."""
        base = self.to_dict()

        def deep_merge(base_dict: dict, override_dict: dict) -> dict:
            result = base_dict.copy()
            for key, value in override_dict.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                elif value is not None:
                    result[key] = value
            return result

        merged = deep_merge(base, overrides)
        return SearchConfig.from_dict(merged)


DEFAULT_LOCATIONS = [
    Path("video-text-search.yaml"),
    Path("~/.video-text-search/config.yaml").expanduser(),
]


def load_config(config_path: Optional[Path] = None) -> SearchConfig:
    """Load configuration from file or return defaults."""
    if config_path is not None:
        if not Path(config_path).exists():
            raise ConfigurationError(f"Config file not found: {config_path}")
        return SearchConfig.from_yaml(config_path)

    for location in DEFAULT_LOCATIONS:
        if location.exists():
            return SearchConfig.from_yaml(location)

    return SearchConfig()
