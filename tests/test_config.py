"""Tests for config loading and validation."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from cli.config import find_config, load_config_model
from cli.config_models import ExtractionConfig, LoggingConfig, MemoryEngineConfig, RetrievalConfig


class TestDefaults:
    def test_defaults(self):
        config = MemoryEngineConfig()
        assert config.user_id == "default"
        assert config.extraction.pacing_delay == 0.1
        assert config.extraction.batch_size == 10
        assert config.retrieval.relevance_weight == 0.7
        assert config.retrieval.context_min_importance == 0.5
        assert config.llm.provider == "auto"

    def test_paths_expanded(self):
        config = MemoryEngineConfig.from_dict({"paths": {"db_path": "~/mem.db"}})
        assert config.paths.db_path == Path.home() / "mem.db"


class TestValidation:
    def test_invalid_provider(self):
        with pytest.raises(ValidationError):
            MemoryEngineConfig.from_dict({"llm": {"provider": "llama"}})

    def test_batch_size_positive(self):
        with pytest.raises(ValidationError):
            ExtractionConfig(batch_size=0)

    def test_negative_pacing(self):
        with pytest.raises(ValidationError):
            ExtractionConfig(pacing_delay=-1)

    def test_weight_in_unit_interval(self):
        with pytest.raises(ValidationError):
            RetrievalConfig(relevance_weight=1.5)

    def test_log_level_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")

    def test_env_api_key(self, monkeypatch):
        monkeypatch.setenv("MY_KEY", "sk-ant-from-env")
        config = MemoryEngineConfig.from_dict({"llm": {"api_key": "${MY_KEY}"}})
        assert config.llm.api_key == "sk-ant-from-env"


class TestLoadConfig:
    def test_from_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.dump({"user_id": "robin", "extraction": {"use_primary": False, "batch_size": 5}})
        )
        config = load_config_model(path)
        assert config.user_id == "robin"
        assert config.extraction.use_primary is False
        assert config.extraction.batch_size == 5

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config_model(path).user_id == "default"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("user_id: [unclosed")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config_model(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config_model(path)

    def test_validation_failure(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"retrieval": {"recency_decay_days": 0}}))
        with pytest.raises(ValueError, match="Config validation failed"):
            load_config_model(path)

    def test_find_config_in_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config.yaml").write_text("user_id: cwd\n")
        assert find_config() == tmp_path / "config.yaml"
