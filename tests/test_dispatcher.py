from __future__ import annotations

import asyncio
import threading

import pytest

from webauth_request.dispatcher import CompletionDispatcher
from webauth_request.exceptions import RequestStateError, WebAuthError
from webauth_request.models import Failure, Outcome


def test_dispatch_delivers_once_and_rejects_second_delivery() -> None:
    received: list[Outcome] = []
    dispatcher = CompletionDispatcher(received.append)
    outcome = Failure(WebAuthError("boom"))

    dispatcher.dispatch(outcome)
    with pytest.raises(RequestStateError):
        dispatcher.dispatch(outcome)

    assert received == [outcome]
    assert dispatcher.delivered


def test_concurrent_dispatch_from_threads_delivers_exactly_once() -> None:
    received: list[Outcome] = []
    dispatcher = CompletionDispatcher(received.append)
    errors: list[Exception] = []
    barrier = threading.Barrier(8)

    def worker() -> None:
        barrier.wait()
        try:
            dispatcher.dispatch(Failure(WebAuthError("race")))
        except RequestStateError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(received) == 1
    assert len(errors) == 7


def test_loop_handoff_runs_callback_on_loop_thread() -> None:
    async def scenario() -> tuple[Outcome, int]:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[tuple[Outcome, int]] = loop.create_future()

        def callback(outcome: Outcome) -> None:
            future.set_result((outcome, threading.get_ident()))

        dispatcher = CompletionDispatcher(callback, loop=loop)
        outcome = Failure(WebAuthError("from worker"))
        worker = threading.Thread(target=dispatcher.dispatch, args=(outcome,))
        worker.start()
        worker.join()
        return await future

    loop_thread = threading.get_ident()
    outcome, callback_thread = asyncio.run(scenario())
    assert isinstance(outcome, Failure)
    assert callback_thread == loop_thread
