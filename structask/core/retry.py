"""Bounded retry budget for recoverable answer-parse failures."""

import logging

from structask.core.errors import TooManyRetries

logger = logging.getLogger(__name__)


class RetryBudget:
    """Shared, run-wide cap on failures.

    `record` stores the failure and runs `on_failure` (typically appending a
    corrective message); `check` raises `TooManyRetries` once `max_attempts`
    failures have been recorded.
    """

    def __init__(self, max_attempts, on_failure=None):
        self.max_attempts = max_attempts
        self.on_failure = on_failure
        self.errors = []

    @property
    def exhausted(self) -> bool:
        return len(self.errors) >= self.max_attempts

    def record(self, error) -> None:
        self.errors.append(error)
        logger.warning(
            "Recoverable failure %d/%d: %s",
            len(self.errors),
            self.max_attempts,
            error,
        )
        if self.on_failure is not None:
            self.on_failure(error)

    def check(self) -> None:
        if self.exhausted:
            raise TooManyRetries(self.errors)
