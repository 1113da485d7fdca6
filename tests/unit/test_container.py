"""
Tests for the services container.
"""

import pytest

from matomeru.core.config import MatomeruConfig
from matomeru.core.tokenizer import ByteRatioTokenizer, TiktokenTokenizer
from matomeru.services import AggregationService, create_services


def _config(**estimate) -> MatomeruConfig:
    config = MatomeruConfig()
    config.estimate.tokenizer = "bytes"
    for key, value in estimate.items():
        setattr(config.estimate, key, value)
    return config


class TestServicesContainer:
    def test_requires_open(self):
        container = create_services(config=_config())
        assert not container.is_open
        with pytest.raises(RuntimeError, match="not open"):
            container.aggregation_service

    def test_context_manager(self):
        with create_services(config=_config()) as container:
            assert container.is_open
            service = container.aggregation_service
            assert isinstance(service, AggregationService)
            assert container.open().aggregation_service is service
        assert not container.is_open

    def test_close_is_idempotent(self):
        container = create_services(config=_config()).open()
        container.close()
        container.close()
        assert not container.is_open

    def test_each_container_owns_its_instances(self):
        first = create_services(config=_config())
        second = create_services(config=_config())
        assert first.scanner is not second.scanner
        assert first.scope_finder is not second.scope_finder

    def test_tokenizer_from_config(self):
        container = create_services(config=_config())
        assert isinstance(container.tokenizer, ByteRatioTokenizer)
        assert set(container.generators) == {"markdown", "yaml"}

    def test_tiktoken_is_created_lazily(self):
        config = _config(tokenizer="tiktoken")
        container = create_services(config=config)
        assert isinstance(container.tokenizer, TiktokenTokenizer)

    def test_unknown_tokenizer(self):
        with pytest.raises(ValueError, match="Unknown tokenizer"):
            create_services(config=_config(tokenizer="words"))

    def test_explicit_tokenizer_wins(self):
        tokenizer = ByteRatioTokenizer(4)
        container = create_services(config=_config(tokenizer="words"), tokenizer=tokenizer)
        assert container.tokenizer is tokenizer

    def test_config_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MATOMERU_ESTIMATE_TOKENIZER", "bytes")
        path = tmp_path / "matomeru.yaml"
        path.write_text("diff:\n  git_executable: /usr/local/bin/git\n", encoding="utf-8")
        container = create_services(config_path=path)
        assert container.config.diff.git_executable == "/usr/local/bin/git"
