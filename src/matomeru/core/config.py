"""
Configuration module for matomeru.

Supports loading from YAML/JSON files with environment variable overrides.
Default values are loaded from defaults.yaml for maintainability.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from matomeru.core.file_scanner.models import ScanOptions, SkippedFilePolicy

logger = logging.getLogger(__name__)

# Path to the default configuration file
_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

# Cache for default values
_defaults_cache: dict[str, Any] | None = None


def _load_defaults() -> dict[str, Any]:
    """Load default configuration values from defaults.yaml."""
    global _defaults_cache

    if _defaults_cache is not None:
        return _defaults_cache

    if not _DEFAULTS_CONFIG_PATH.exists():
        logger.warning(f"Defaults config not found: {_DEFAULTS_CONFIG_PATH}")
        _defaults_cache = {}
        return _defaults_cache

    try:
        content = _DEFAULTS_CONFIG_PATH.read_text(encoding="utf-8")
        _defaults_cache = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config: {e}")
        _defaults_cache = {}

    return _defaults_cache


def _get_default(section: str, key: str, fallback: Any = None) -> Any:
    """Get a default value from the defaults config."""
    defaults = _load_defaults()
    section_defaults = defaults.get(section, {})
    value = section_defaults.get(key, fallback)
    # Lists are copied so dataclass instances never share them
    if isinstance(value, list):
        return list(value)
    return value


@dataclass
class ScanConfig:
    """Configuration for directory scanning."""

    max_file_size: int = field(default_factory=lambda: _get_default("scan", "max_file_size", 1048576))
    exclude_patterns: list[str] = field(
        default_factory=lambda: _get_default("scan", "exclude_patterns", [])
    )
    use_gitignore: bool = field(default_factory=lambda: _get_default("scan", "use_gitignore", False))
    use_vscodeignore: bool = field(
        default_factory=lambda: _get_default("scan", "use_vscodeignore", False)
    )
    include_dependencies: bool = field(
        default_factory=lambda: _get_default("scan", "include_dependencies", False)
    )
    skipped_file_policy: str = field(
        default_factory=lambda: _get_default("scan", "skipped_file_policy", "list")
    )
    batch_size: int = field(default_factory=lambda: _get_default("scan", "batch_size", 100))
    concurrency: int = field(default_factory=lambda: _get_default("scan", "concurrency", 8))

    def to_scan_options(self) -> ScanOptions:
        """Build the immutable per-call scan options."""
        return ScanOptions(
            max_file_size=self.max_file_size,
            exclude_patterns=tuple(self.exclude_patterns),
            use_gitignore=self.use_gitignore,
            use_vscodeignore=self.use_vscodeignore,
            include_dependencies=self.include_dependencies,
            skipped_file_policy=SkippedFilePolicy(self.skipped_file_policy),
            batch_size=self.batch_size,
            concurrency=self.concurrency,
        )


@dataclass
class OutputConfig:
    """Configuration for document generation."""

    format: str = field(default_factory=lambda: _get_default("output", "format", "markdown"))
    prefix_text: str = field(default_factory=lambda: _get_default("output", "prefix_text", ""))
    include_content_in_yaml: bool = field(
        default_factory=lambda: _get_default("output", "include_content_in_yaml", True)
    )
    mermaid_max_nodes: int = field(
        default_factory=lambda: _get_default("output", "mermaid_max_nodes", 300)
    )
    compress: bool = field(default_factory=lambda: _get_default("output", "compress", False))


@dataclass
class OutlineConfig:
    """Configuration for the directory outline in Markdown output."""

    directory_icon: str = field(
        default_factory=lambda: _get_default("outline", "directory_icon", "📁")
    )
    file_icon: str = field(default_factory=lambda: _get_default("outline", "file_icon", "📄"))
    indent_size: int = field(default_factory=lambda: _get_default("outline", "indent_size", 2))
    show_file_extensions: bool = field(
        default_factory=lambda: _get_default("outline", "show_file_extensions", True)
    )
    use_emoji: bool = field(default_factory=lambda: _get_default("outline", "use_emoji", True))


@dataclass
class DiffConfig:
    """Configuration for git diff mode."""

    range: str = field(default_factory=lambda: _get_default("diff", "range", ""))
    git_executable: str = field(
        default_factory=lambda: _get_default("diff", "git_executable", "git")
    )
    timeout: float = field(default_factory=lambda: _get_default("diff", "timeout", 30.0))
    context_lines: int = field(default_factory=lambda: _get_default("diff", "context_lines", 3))
    function_scoped: bool = field(
        default_factory=lambda: _get_default("diff", "function_scoped", False)
    )


@dataclass
class EstimateConfig:
    """Configuration for size and token estimation."""

    bytes_per_token: float = field(
        default_factory=lambda: _get_default("estimate", "bytes_per_token", 3.6)
    )
    per_file_overhead_bytes: int = field(
        default_factory=lambda: _get_default("estimate", "per_file_overhead_bytes", 100)
    )
    tokenizer: str = field(default_factory=lambda: _get_default("estimate", "tokenizer", "tiktoken"))
    encoding_name: str = field(
        default_factory=lambda: _get_default("estimate", "encoding_name", "cl100k_base")
    )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("logging", "level", "INFO"))
    format: str = field(
        default_factory=lambda: _get_default(
            "logging", "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    )


@dataclass
class MatomeruConfig:
    """Main configuration class for matomeru."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    outline: OutlineConfig = field(default_factory=OutlineConfig)
    diff: DiffConfig = field(default_factory=DiffConfig)
    estimate: EstimateConfig = field(default_factory=EstimateConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "MatomeruConfig":
        """
        Load configuration from a YAML or JSON file.

        Args:
            path: Path to the configuration file (.yaml, .yml, or .json)

        Returns:
            MatomeruConfig instance with loaded values

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValueError: If the file format is unsupported
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        elif path.suffix == ".json":
            data = json.loads(content) if content.strip() else {}
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "MatomeruConfig":
        """Create MatomeruConfig from a dictionary."""
        config = cls()

        if "scan" in data:
            config.scan = ScanConfig(**data["scan"])
        if "output" in data:
            config.output = OutputConfig(**data["output"])
        if "outline" in data:
            config.outline = OutlineConfig(**data["outline"])
        if "diff" in data:
            config.diff = DiffConfig(**data["diff"])
        if "estimate" in data:
            config.estimate = EstimateConfig(**data["estimate"])
        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])

        return config

    def apply_env_overrides(self) -> "MatomeruConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: MATOMERU_<SECTION>_<KEY>
        Examples:
            - MATOMERU_SCAN_MAX_FILE_SIZE
            - MATOMERU_SCAN_EXCLUDE_PATTERNS (comma separated)
            - MATOMERU_OUTPUT_FORMAT
            - MATOMERU_DIFF_RANGE
            - MATOMERU_LOGGING_LEVEL

        Returns:
            Self with environment overrides applied
        """
        env_mappings = {
            # Scan config
            "MATOMERU_SCAN_MAX_FILE_SIZE": ("scan", "max_file_size", int),
            "MATOMERU_SCAN_EXCLUDE_PATTERNS": ("scan", "exclude_patterns", _parse_list),
            "MATOMERU_SCAN_USE_GITIGNORE": ("scan", "use_gitignore", _parse_bool),
            "MATOMERU_SCAN_USE_VSCODEIGNORE": ("scan", "use_vscodeignore", _parse_bool),
            "MATOMERU_SCAN_INCLUDE_DEPENDENCIES": ("scan", "include_dependencies", _parse_bool),
            "MATOMERU_SCAN_SKIPPED_FILE_POLICY": ("scan", "skipped_file_policy", str),
            "MATOMERU_SCAN_BATCH_SIZE": ("scan", "batch_size", int),
            "MATOMERU_SCAN_CONCURRENCY": ("scan", "concurrency", int),
            # Output config
            "MATOMERU_OUTPUT_FORMAT": ("output", "format", str),
            "MATOMERU_OUTPUT_PREFIX_TEXT": ("output", "prefix_text", str),
            "MATOMERU_OUTPUT_INCLUDE_CONTENT_IN_YAML": (
                "output",
                "include_content_in_yaml",
                _parse_bool,
            ),
            "MATOMERU_OUTPUT_MERMAID_MAX_NODES": ("output", "mermaid_max_nodes", int),
            "MATOMERU_OUTPUT_COMPRESS": ("output", "compress", _parse_bool),
            # Diff config
            "MATOMERU_DIFF_RANGE": ("diff", "range", str),
            "MATOMERU_DIFF_GIT_EXECUTABLE": ("diff", "git_executable", str),
            "MATOMERU_DIFF_TIMEOUT": ("diff", "timeout", float),
            "MATOMERU_DIFF_CONTEXT_LINES": ("diff", "context_lines", int),
            "MATOMERU_DIFF_FUNCTION_SCOPED": ("diff", "function_scoped", _parse_bool),
            # Estimate config
            "MATOMERU_ESTIMATE_BYTES_PER_TOKEN": ("estimate", "bytes_per_token", float),
            "MATOMERU_ESTIMATE_TOKENIZER": ("estimate", "tokenizer", str),
            "MATOMERU_ESTIMATE_ENCODING_NAME": ("estimate", "encoding_name", str),
            # Logging config
            "MATOMERU_LOGGING_LEVEL": ("logging", "level", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                section_obj = getattr(self, section)
                setattr(section_obj, key, converter(value))

        return self

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(
            self.to_dict(), default_flow_style=False, sort_keys=False, allow_unicode=True
        )

    def to_json(self) -> str:
        """Serialize configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def save(self, path: Path | str) -> None:
        """
        Save configuration to a file.

        Args:
            path: Path to save the configuration (.yaml, .yml, or .json)

        Raises:
            ValueError: If the file format is unsupported
        """
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            content = self.to_yaml()
        elif path.suffix == ".json":
            content = self.to_json()
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def _parse_bool(value: str) -> bool:
    """Parse a string to boolean."""
    return value.lower() in ("true", "1", "yes", "on")


def _parse_list(value: str) -> list[str]:
    """Parse a comma separated string into a list of non-empty items."""
    return [item.strip() for item in value.split(",") if item.strip()]


def configure_logging(config: LoggingConfig) -> None:
    """
    Configure the root logger from a LoggingConfig.

    Called once by entry points; library modules only create loggers.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=config.format, force=True)


def load_config(
    config_path: Optional[Path | str] = None, apply_env: bool = True
) -> MatomeruConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        MatomeruConfig instance
    """
    if config_path:
        config = MatomeruConfig.from_file(config_path)
    else:
        config = MatomeruConfig()

    if apply_env:
        config.apply_env_overrides()

    return config
