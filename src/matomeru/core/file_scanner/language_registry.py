"""
Language registry for mapping file extensions to language tags.
"""

import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

# Default path to the languages configuration file
_DEFAULT_LANGUAGES_CONFIG = Path(__file__).parent.parent / "languages.yaml"

UNKNOWN_LANGUAGE = "plaintext"


class LanguageRegistry:
    """
    Extensible registry for mapping file extensions to language tags.

    Entries starting with a dot are extensions; anything else is matched
    against the exact file name (e.g. 'Dockerfile').

    Example:
        >>> registry = LanguageRegistry()
        >>> registry.register("elixir", [".ex", ".exs"])
        >>> registry.detect(".ex")
        'elixir'
    """

    def __init__(self, load_defaults: bool = True):
        """
        Initialize the language registry.

        Args:
            load_defaults: If True, load default language mappings from languages.yaml.
        """
        self._extension_to_language: dict[str, str] = {}
        self._filename_to_language: dict[str, str] = {}

        if load_defaults:
            self._load_from_yaml(_DEFAULT_LANGUAGES_CONFIG)

    @classmethod
    def from_yaml(cls, config_path: Path | str) -> "LanguageRegistry":
        """
        Create a LanguageRegistry from a YAML configuration file.

        Raises:
            ValueError: If the config file format is invalid
        """
        registry = cls(load_defaults=False)
        registry._load_from_yaml(Path(config_path))
        return registry

    def _load_from_yaml(self, config_path: Path) -> None:
        """
        Load language mappings from a YAML file.

        Expected format:
            language_name:
              - .ext1
              - FileName
        """
        if not config_path.exists():
            logger.warning(f"Languages config not found: {config_path}, using empty registry")
            return

        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse languages config: {e}")
            raise ValueError(f"Invalid YAML in languages config: {e}") from e

        if data is None:
            return

        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid languages config format: expected dict, got {type(data)}"
            )

        for language, entries in data.items():
            if not isinstance(entries, list):
                logger.warning(
                    f"Invalid extensions for {language}: expected list, got {type(entries)}"
                )
                continue
            self.register(str(language), [str(e) for e in entries])

    def register(self, language: str, extensions: list[str]) -> "LanguageRegistry":
        """Register a language with its extensions or file names. Returns self."""
        for entry in extensions:
            if entry.startswith("."):
                self._extension_to_language[entry.lower()] = language
            else:
                self._filename_to_language[entry] = language
        return self

    def detect(self, extension: str) -> str:
        """Detect language from a file extension including the dot."""
        return self._extension_to_language.get(extension.lower(), UNKNOWN_LANGUAGE)

    def detect_from_path(self, file_path: Path | str) -> str:
        """Detect language from a file path, trying the exact name first."""
        path = Path(file_path)
        by_name = self._filename_to_language.get(path.name)
        if by_name:
            return by_name
        return self.detect(path.suffix)

    def get_all_languages(self) -> set[str]:
        """Get all registered language tags."""
        return set(self._extension_to_language.values()) | set(
            self._filename_to_language.values()
        )
