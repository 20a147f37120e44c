"""Tests for LLM factory and auto-detection."""

from unittest.mock import MagicMock, patch

import pytest

from cli.config_models import LLMConfig
from llm import LLMError, create_cheap_provider, create_llm_provider, provider_from_config
from llm.factory import _auto_detect_provider, _detect_provider_from_key


@pytest.fixture
def no_keys(monkeypatch):
    for var in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "GOOGLE_API_KEY"):
        monkeypatch.delenv(var, raising=False)


class TestAutoDetection:
    def test_detects_anthropic_key(self, no_keys, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        assert _auto_detect_provider() == "claude"

    def test_detects_openai_key(self, no_keys, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert _auto_detect_provider() == "openai"

    def test_detects_google_key(self, no_keys, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "AIza-test")
        assert _auto_detect_provider() == "gemini"

    def test_prefers_anthropic_when_multiple(self, no_keys, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert _auto_detect_provider() == "claude"

    def test_explicit_key_prefix_wins(self, no_keys, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        assert _auto_detect_provider("AIza-explicit") == "gemini"

    @pytest.mark.parametrize(
        "key,expected",
        [("sk-ant-abc", "claude"), ("sk-abc", "openai"), ("AIzaXYZ", "gemini"), ("xyz", None)],
    )
    def test_key_prefixes(self, key, expected):
        assert _detect_provider_from_key(key) == expected

    def test_no_keys_raises(self, no_keys):
        with pytest.raises(LLMError, match="No LLM API key found"):
            _auto_detect_provider()


class TestCreateProvider:
    @pytest.mark.parametrize("name", ["claude", "openai", "gemini"])
    def test_explicit_with_client(self, name):
        mock_client = MagicMock()
        provider = create_llm_provider(provider=name, client=mock_client)
        assert provider.provider_name == name
        assert provider.client is mock_client

    def test_unknown_provider_raises(self):
        with pytest.raises(LLMError, match="Unknown provider"):
            create_llm_provider(provider="llama", client=MagicMock())

    def test_auto_with_anthropic_key(self, no_keys, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        # Mock Anthropic client to avoid real init
        with patch("anthropic.Anthropic"):
            provider = create_llm_provider()
            assert provider.provider_name == "claude"

    def test_default_models(self):
        mock_client = MagicMock()
        assert (
            create_llm_provider(provider="claude", client=mock_client).model
            == "claude-sonnet-4-20250514"
        )
        assert create_llm_provider(provider="openai", client=mock_client).model == "gpt-4o"
        assert (
            create_llm_provider(provider="gemini", client=mock_client).model_name
            == "gemini-2.5-flash"
        )


class TestCheapProvider:
    def test_cheap_defaults(self):
        mock_client = MagicMock()
        assert create_cheap_provider("claude", client=mock_client).model == "claude-haiku-4-5"
        assert create_cheap_provider("openai", client=mock_client).model == "gpt-4o-mini"
        assert (
            create_cheap_provider("gemini", client=mock_client).model_name == "gemini-2.0-flash"
        )

    def test_explicit_model_kept(self):
        provider = create_cheap_provider("claude", model="claude-opus-4-1", client=MagicMock())
        assert provider.model == "claude-opus-4-1"

    def test_from_config(self, no_keys):
        config = LLMConfig(provider="claude", api_key="sk-ant-cfg", timeout=5)
        with patch("anthropic.Anthropic") as mock_cls:
            provider = provider_from_config(config)
        assert provider.model == "claude-haiku-4-5"
        mock_cls.assert_called_once_with(api_key="sk-ant-cfg", timeout=5)

    def test_from_config_without_key(self, no_keys):
        with pytest.raises(LLMError):
            provider_from_config(LLMConfig())
