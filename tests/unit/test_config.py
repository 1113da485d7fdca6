"""
Tests for MatomeruConfig loading, overrides and serialization.
"""

import json
import logging

import pytest

from matomeru.core.config import (
    MatomeruConfig,
    ScanConfig,
    configure_logging,
    load_config,
)
from matomeru.core.file_scanner import SkippedFilePolicy


class TestDefaults:
    def test_packaged_defaults(self):
        config = MatomeruConfig()
        assert config.scan.max_file_size == 1048576
        assert "node_modules/**" in config.scan.exclude_patterns
        assert config.output.format == "markdown"
        assert config.estimate.bytes_per_token == 3.6
        assert config.diff.git_executable == "git"

    def test_instances_do_not_share_lists(self):
        first, second = ScanConfig(), ScanConfig()
        first.exclude_patterns.append("extra/**")
        assert "extra/**" not in second.exclude_patterns

    def test_to_scan_options(self):
        config = ScanConfig(exclude_patterns=["a/**", "a/**"], skipped_file_policy="omit")
        options = config.to_scan_options()
        assert options.exclude_patterns == ("a/**",)
        assert options.skipped_file_policy is SkippedFilePolicy.OMIT


class TestFromFile:
    def test_yaml(self, tmp_path):
        path = tmp_path / "matomeru.yaml"
        path.write_text("output:\n  format: yaml\ndiff:\n  context_lines: 5\n", encoding="utf-8")
        config = MatomeruConfig.from_file(path)
        assert config.output.format == "yaml"
        assert config.diff.context_lines == 5
        assert config.scan.max_file_size == 1048576

    def test_json(self, tmp_path):
        path = tmp_path / "matomeru.json"
        path.write_text(json.dumps({"scan": {"use_gitignore": True}}), encoding="utf-8")
        assert MatomeruConfig.from_file(path).scan.use_gitignore is True

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")
        assert MatomeruConfig.from_file(path).output.format == "markdown"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            MatomeruConfig.from_file(tmp_path / "nope.yaml")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="Unsupported config file format"):
            MatomeruConfig.from_file(path)


class TestEnvOverrides:
    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("MATOMERU_SCAN_MAX_FILE_SIZE", "2048")
        monkeypatch.setenv("MATOMERU_SCAN_EXCLUDE_PATTERNS", "a/**, b/** ,")
        monkeypatch.setenv("MATOMERU_SCAN_USE_GITIGNORE", "yes")
        monkeypatch.setenv("MATOMERU_DIFF_TIMEOUT", "2.5")
        monkeypatch.setenv("MATOMERU_ESTIMATE_TOKENIZER", "bytes")

        config = load_config()

        assert config.scan.max_file_size == 2048
        assert config.scan.exclude_patterns == ["a/**", "b/**"]
        assert config.scan.use_gitignore is True
        assert config.diff.timeout == 2.5
        assert config.estimate.tokenizer == "bytes"

    def test_env_can_be_skipped(self, monkeypatch):
        monkeypatch.setenv("MATOMERU_OUTPUT_FORMAT", "yaml")
        assert load_config(apply_env=False).output.format == "markdown"

    def test_env_wins_over_file(self, tmp_path, monkeypatch):
        path = tmp_path / "matomeru.yaml"
        path.write_text("output:\n  format: yaml\n", encoding="utf-8")
        monkeypatch.setenv("MATOMERU_OUTPUT_FORMAT", "markdown")
        assert load_config(path).output.format == "markdown"


class TestSerialization:
    def test_save_and_reload(self, tmp_path):
        config = MatomeruConfig()
        config.outline.use_emoji = False
        config.scan.exclude_patterns = ["x/**"]

        for name in ("out/config.yaml", "out/config.json"):
            path = tmp_path / name
            config.save(path)
            assert MatomeruConfig.from_file(path) == config

    def test_save_rejects_unknown_suffix(self, tmp_path):
        with pytest.raises(ValueError):
            MatomeruConfig().save(tmp_path / "config.ini")


class TestConfigureLogging:
    def test_sets_root_level(self):
        config = MatomeruConfig()
        config.logging.level = "debug"
        configure_logging(config.logging)
        assert logging.getLogger().level == logging.DEBUG
        config.logging.level = "WARNING"
        configure_logging(config.logging)
        assert logging.getLogger().level == logging.WARNING
