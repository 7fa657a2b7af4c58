"""The request object: one authenticated web exchange from parameters to Outcome."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, cast

from pydantic import ValidationError

from .builder import SUPPORTED_METHODS, build_request
from .classifier import Classification
from .dispatcher import CompletionCallback, CompletionDispatcher
from .exceptions import (
    EncodingError,
    ParseError,
    RequestStateError,
    TransportFailure,
    UnexpectedStatusError,
    WebAuthError,
)
from .models import Failure, Outcome, RequestState, Success, TransportResponse
from .normalizer import normalize, parse_json_object
from .request_options import RequestConfig
from .retry import RetryController
from .security import sanitize_headers, sanitize_url, validate_endpoint_url
from .transport import TransportAdapter

logger = logging.getLogger("webauth_request")

CORRELATION_HEADER = "client-request-id"
RETURN_CORRELATION_HEADER = "return-client-request-id"


def _error_message(response: TransportResponse) -> str:
    message = f"Unexpected HTTP response ({response.status_code})"
    try:
        payload = parse_json_object(response.body)
    except ValidationError:
        return message
    for field in ("error_description", "error", "message"):
        detail = payload.get(field)
        if isinstance(detail, str) and detail:
            return f"{message}: {detail}"
    return message


def unexpected_status(response: TransportResponse) -> UnexpectedStatusError:
    return UnexpectedStatusError(
        _error_message(response),
        status_code=response.status_code,
        body=response.body,
        headers=response.headers,
    )


class WebAuthRequest:
    """A single request to an authentication endpoint.

    Parameters and config may be replaced until ``send`` is called; from then
    on they are frozen. The object is single-use: it carries exactly one
    exchange and delivers exactly one Outcome.
    """

    def __init__(
        self,
        url: str,
        *,
        transport: TransportAdapter,
        method: str = "GET",
        parameters: Mapping[str, str] | None = None,
        config: RequestConfig | None = None,
        headers: Mapping[str, str] | None = None,
        correlation_id: uuid.UUID | None = None,
        allow_http: bool = False,
    ) -> None:
        validate_endpoint_url(url, allow_http=allow_http)
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported method: {method}")
        self.url = url
        self.method = method
        self.correlation_id = correlation_id or uuid.uuid4()
        self._transport = transport
        self._parameters: Mapping[str, str] = MappingProxyType(dict(parameters or {}))
        self._config = config or RequestConfig()
        self._headers = dict(headers or {})
        self._state = RequestState.NOT_SENT
        self._start_time: datetime | None = None
        self._started: float | None = None
        self._task: asyncio.Task[Outcome] | None = None

    def __repr__(self) -> str:
        return f"WebAuthRequest(method={self.method!r}, url={sanitize_url(self.url)!r}, state={self._state.value!r})"

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def start_time(self) -> datetime | None:
        return self._start_time

    @property
    def parameters(self) -> Mapping[str, str]:
        return self._parameters

    @parameters.setter
    def parameters(self, value: Mapping[str, str]) -> None:
        self._ensure_not_sent("parameters")
        self._parameters = MappingProxyType(dict(value))

    @property
    def config(self) -> RequestConfig:
        return self._config

    @config.setter
    def config(self, value: RequestConfig) -> None:
        self._ensure_not_sent("config")
        self._config = value

    def _ensure_not_sent(self, what: str) -> None:
        if self._state is not RequestState.NOT_SENT:
            raise RequestStateError(f"Cannot change {what} once the request has been sent")

    def _elapsed(self) -> float:
        if self._started is None:
            return 0.0
        return time.monotonic() - self._started

    def _set_state(self, state: RequestState) -> None:
        self._state = state

    def _request_headers(self) -> dict[str, str]:
        headers = dict(self._headers)
        headers[CORRELATION_HEADER] = str(self.correlation_id)
        headers[RETURN_CORRELATION_HEADER] = "true"
        return headers

    def _check_correlation(self, response: TransportResponse) -> None:
        echoed = response.header(CORRELATION_HEADER)
        if echoed is not None and echoed.lower() != str(self.correlation_id).lower():
            logger.warning(
                "Response correlation id %s does not match request correlation id %s",
                echoed,
                self.correlation_id,
            )

    def send(self, callback: CompletionCallback, *, loop: asyncio.AbstractEventLoop | None = None) -> "asyncio.Task[Outcome]":
        """Start the exchange and return without waiting for it.

        Must be called from a running event loop. ``callback`` receives the
        Outcome exactly once, on the loop's thread or, when ``loop`` is given,
        handed off to that loop.
        """
        if self._state is RequestState.COMPLETED:
            raise RequestStateError("Request has already completed; create a new request to send again")
        if self._state is not RequestState.NOT_SENT:
            raise RequestStateError("Request is already in progress")

        running_loop = asyncio.get_running_loop()
        self._start_time = datetime.now(timezone.utc)
        self._started = time.monotonic()
        self._state = RequestState.SENT
        dispatcher = CompletionDispatcher(callback, loop=loop)
        self._task = running_loop.create_task(self._run(dispatcher))
        self._task.add_done_callback(lambda task: self._on_task_done(task, dispatcher))
        return self._task

    async def execute(self) -> Outcome:
        """Send the request and wait for its Outcome."""
        future: asyncio.Future[Outcome] = asyncio.get_running_loop().create_future()

        def resolve(outcome: Outcome) -> None:
            if not future.done():
                future.set_result(outcome)

        task = self.send(resolve)
        try:
            return await future
        except asyncio.CancelledError:
            task.cancel()
            raise

    async def _run(self, dispatcher: CompletionDispatcher) -> Outcome:
        try:
            outcome = await self._exchange()
        except asyncio.CancelledError as exc:
            self._complete(dispatcher, Failure(TransportFailure("Request was cancelled", cause=exc), elapsed=self._elapsed()))
            raise
        except Exception as exc:
            logger.exception("Transport adapter failed outside its contract for %s %s", self.method, sanitize_url(self.url))
            outcome = Failure(WebAuthError("Unexpected failure while sending request", cause=exc), elapsed=self._elapsed())

        self._complete(dispatcher, outcome)
        return outcome

    def _on_task_done(self, task: "asyncio.Task[Outcome]", dispatcher: CompletionDispatcher) -> None:
        # a task cancelled before its first step never enters _run
        if task.cancelled() and not dispatcher.delivered:
            self._complete(dispatcher, Failure(TransportFailure("Request was cancelled"), elapsed=self._elapsed()))

    def _complete(self, dispatcher: CompletionDispatcher, outcome: Outcome) -> None:
        self._state = RequestState.COMPLETED
        logger.debug(
            "%s %s completed in %.3fs (%s)",
            self.method,
            sanitize_url(self.url),
            outcome.elapsed,
            type(outcome.error).__name__ if isinstance(outcome, Failure) else "success",
        )
        dispatcher.dispatch(outcome)

    async def _exchange(self) -> Outcome:
        try:
            descriptor = build_request(self.method, self.url, self._parameters, headers=self._request_headers())
        except EncodingError as exc:
            return Failure(exc, attempts=0, elapsed=self._elapsed())

        logger.debug("Request %s %s headers=%s", descriptor.method, sanitize_url(descriptor.url), sanitize_headers(descriptor.headers))
        controller = RetryController(self._transport, self._config, on_transition=self._set_state)
        result = await controller.run(descriptor)

        if result.classification is Classification.REJECT_TRANSPORT_FAILURE:
            return Failure(cast(TransportFailure, result.error), attempts=result.attempts, elapsed=self._elapsed())

        response = cast(TransportResponse, result.response)
        logger.debug("Response %d after %d attempt(s)", response.status_code, result.attempts)
        self._check_correlation(response)

        if result.classification is Classification.REJECT_UNEXPECTED_STATUS:
            return Failure(unexpected_status(response), attempts=result.attempts, elapsed=self._elapsed())

        try:
            envelope = normalize(response, self._config)
        except ParseError as exc:
            return Failure(exc, attempts=result.attempts, elapsed=self._elapsed())
        return Success(envelope, attempts=result.attempts, elapsed=self._elapsed())
