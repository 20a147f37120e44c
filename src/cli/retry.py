"""Backoff for rate-limited LLM calls."""

import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger()


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "llm.retry",
        attempt=state.attempt_number,
        wait=round(state.next_action.sleep, 2) if state.next_action else None,
        error=str(exc) if exc else None,
    )


def llm_retry(
    max_attempts: int = 3,
    min_wait: float = 2.0,
    max_wait: float = 30.0,
    exceptions: tuple = (Exception,),
):
    """Retry decorator with exponential backoff.

    Only ``exceptions`` are retried. Once attempts run out the last exception
    is re-raised unchanged so callers can map it to their own failure type.
    """
    return retry(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=_log_retry,
        reraise=True,
    )
