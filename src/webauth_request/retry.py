"""Send a descriptor, resending it once on a retryable server error."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable

from .classifier import Classification, classify
from .exceptions import TransportFailure
from .models import RequestDescriptor, RequestState, TransportResponse
from .request_options import RequestConfig
from .security import sanitize_url
from .transport import TransportAdapter

logger = logging.getLogger("webauth_request")

MAX_RETRY_AFTER = 60.0


@dataclass(frozen=True)
class RetryBudget:
    remaining: int = 1

    @classmethod
    def for_config(cls, config: RequestConfig) -> "RetryBudget":
        return cls(remaining=1 if config.retry_if_server_error else 0)

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    def consume(self) -> "RetryBudget":
        if self.exhausted:
            raise ValueError("retry budget already exhausted")
        return RetryBudget(remaining=self.remaining - 1)


@dataclass(frozen=True)
class ExchangeResult:
    classification: Classification
    attempts: int
    response: TransportResponse | None = None
    error: TransportFailure | None = None


def retry_after_seconds(response: TransportResponse) -> float | None:
    """Seconds the response asked us to wait, from delta-seconds or an HTTP date."""
    raw = (response.header("Retry-After") or "").strip()
    if not raw:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def retry_delay(config: RequestConfig, response: TransportResponse) -> float:
    delay = config.retry_delay
    if config.honor_retry_after:
        retry_after = retry_after_seconds(response)
        if retry_after is not None:
            delay = max(delay, min(retry_after, MAX_RETRY_AFTER))
    return delay


class RetryController:
    """Runs the exchange for one send and owns its retry budget."""

    def __init__(
        self,
        transport: TransportAdapter,
        config: RequestConfig,
        *,
        on_transition: Callable[[RequestState], None] | None = None,
    ) -> None:
        self._transport = transport
        self._config = config
        self._on_transition = on_transition
        self.budget = RetryBudget.for_config(config)
        self.attempts = 0

    def _transition(self, state: RequestState) -> None:
        if self._on_transition is not None:
            self._on_transition(state)

    async def run(self, request: RequestDescriptor) -> ExchangeResult:
        while True:
            self.attempts += 1
            self._transition(RequestState.SENT)
            try:
                response = await self._transport.send(request)
            except TransportFailure as exc:
                logger.debug("Transport failure on attempt %d for %s %s: %s", self.attempts, request.method, sanitize_url(request.url), exc)
                return ExchangeResult(
                    classification=classify(None, self._config, self.budget),
                    attempts=self.attempts,
                    error=exc,
                )

            verdict = classify(response.status_code, self._config, self.budget)
            if verdict is not Classification.RETRY_SERVER_ERROR:
                return ExchangeResult(classification=verdict, attempts=self.attempts, response=response)

            self.budget = self.budget.consume()
            self._transition(RequestState.RETRYING)
            wait = retry_delay(self._config, response)
            logger.info(
                "Server error %d from %s %s, retrying in %.2fs",
                response.status_code,
                request.method,
                sanitize_url(request.url),
                wait,
            )
            if wait > 0:
                await asyncio.sleep(wait)
