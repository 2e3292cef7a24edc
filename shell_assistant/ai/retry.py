from typing import Callable, Optional, TypeVar

from loguru import logger
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt

from ..errors import RETRYABLE_ERRORS

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3


class RetryObserver:
    """Receives retry events for one invocation. The default implementation ignores them."""

    def on_retry(self, attempt: int, max_retries: int, error: Exception):
        pass

    def on_exhausted(self, max_retries: int, error: Exception):
        pass


class LoggingRetryObserver(RetryObserver):
    def __init__(self, operation: str = "LLM request"):
        self.operation = operation

    def on_retry(self, attempt: int, max_retries: int, error: Exception):
        logger.warning(
            "{} failed (attempt {}/{}): {}. Retrying...",
            self.operation,
            attempt,
            max_retries,
            error,
        )

    def on_exhausted(self, max_retries: int, error: Exception):
        logger.error("{}: all {} attempts exhausted. Last error: {}", self.operation, max_retries, error)


def retry_with_parse(
    call: Callable[[], str],
    parse: Callable[[str], T],
    max_retries: int = DEFAULT_MAX_RETRIES,
    observer: Optional[RetryObserver] = None,
) -> T:
    """
    Calls the provider and parses its reply, retrying either step on failure.

    Call failures and parse failures consume attempts from the same budget and
    there is no delay between attempts. Once the budget is spent the most recent
    error is raised as is; errors outside `RETRYABLE_ERRORS` propagate at once.

    Args:
        call: Performs one provider round-trip and returns the raw text.
        parse: Turns the raw text into the structured result.
        max_retries: Total number of attempts, at least 1.
        observer: Notified before each further attempt and on exhaustion.
    """
    if max_retries < 1:
        raise ValueError("max_retries must be a positive integer.")

    observer = observer or LoggingRetryObserver()

    def before_sleep(retry_state: RetryCallState):
        observer.on_retry(retry_state.attempt_number, max_retries, retry_state.outcome.exception())

    retrying = Retrying(
        stop=stop_after_attempt(max_retries),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=before_sleep,
        reraise=True,
    )

    try:
        for attempt in retrying:
            with attempt:
                return parse(call())
    except RETRYABLE_ERRORS as e:
        observer.on_exhausted(max_retries, e)
        raise
