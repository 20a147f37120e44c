"""Tests for CLI component wiring."""

from unittest.mock import patch

from cli.config_models import MemoryEngineConfig
from cli.utils import get_components
from llm import LLMError
from memory import MemoryPipeline, SQLiteMemoryStore


def _config(tmp_path, **extraction):
    return MemoryEngineConfig.from_dict(
        {
            "user_id": "robin",
            "paths": {"db_path": str(tmp_path / "memory.db"), "log_file": None},
            "extraction": {"pacing_delay": 0.5, "batch_size": 4, **extraction},
        }
    )


class TestGetComponents:
    def test_rule_based_only(self, tmp_path):
        c = get_components(use_ai=False, config_model=_config(tmp_path))

        assert isinstance(c["store"], SQLiteMemoryStore)
        assert isinstance(c["pipeline"], MemoryPipeline)
        assert c["extractor"].use_primary is False
        assert c["coordinator"].paced is False
        assert c["pipeline"].batch_size == 4
        assert c["config"].user_id == "robin"

    def test_with_provider(self, tmp_path, provider):
        with patch("llm.provider_from_config", return_value=provider):
            c = get_components(config_model=_config(tmp_path))
        assert c["extractor"].use_primary is True
        assert c["coordinator"].pacing_delay == 0.5
        assert c["coordinator"].paced is True

    def test_llm_unavailable_degrades(self, tmp_path):
        with patch("llm.provider_from_config", side_effect=LLMError("No LLM API key found")):
            c = get_components(config_model=_config(tmp_path))
        assert c["extractor"].use_primary is False

    def test_config_disables_primary(self, tmp_path):
        with patch("llm.provider_from_config") as mock_factory:
            c = get_components(config_model=_config(tmp_path, use_primary=False))
        mock_factory.assert_not_called()
        assert c["extractor"].use_primary is False
