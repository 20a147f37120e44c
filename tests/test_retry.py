"""Tests for LLM retry backoff."""

from unittest.mock import MagicMock

import pytest

from cli.retry import llm_retry
from llm.base import LLMError, LLMRateLimitError


def _wrapped(fn, **kwargs):
    return llm_retry(min_wait=0, max_wait=0, **kwargs)(fn)


class TestLLMRetry:
    def test_retries_listed_exceptions(self):
        fn = MagicMock(side_effect=[LLMRateLimitError("429"), LLMRateLimitError("429"), "ok"])
        assert _wrapped(fn, max_attempts=3, exceptions=(LLMRateLimitError,))() == "ok"
        assert fn.call_count == 3

    def test_reraises_last_error(self):
        fn = MagicMock(side_effect=LLMRateLimitError("429"))
        with pytest.raises(LLMRateLimitError):
            _wrapped(fn, max_attempts=2, exceptions=(LLMRateLimitError,))()
        assert fn.call_count == 2

    def test_other_errors_not_retried(self):
        fn = MagicMock(side_effect=LLMError("bad request"))
        with pytest.raises(LLMError):
            _wrapped(fn, max_attempts=5, exceptions=(LLMRateLimitError,))()
        assert fn.call_count == 1

    def test_at_least_one_attempt(self):
        fn = MagicMock(return_value="ok")
        assert _wrapped(fn, max_attempts=0)() == "ok"
