"""Send a single request from the command line and print its outcome."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any, Sequence

from .models import Failure, Outcome
from .request import WebAuthRequest
from .request_options import RequestConfig
from .transport import HttpxTransport


def _parse_parameter(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {raw!r}")
    return key, value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="webauth-request")
    parser.add_argument("url")
    parser.add_argument("-X", "--method", default="GET", choices=["GET", "POST"], type=str.upper)
    parser.add_argument("-p", "--param", dest="params", action="append", default=[], type=_parse_parameter)
    parser.add_argument("--raw", action="store_true", help="return the body without JSON parsing")
    parser.add_argument("--no-retry", action="store_true", help="do not resend on a server error")
    parser.add_argument("--accept-only-ok", action="store_true", help="fail on any status other than 200 OK")
    parser.add_argument("--timeout", type=float, default=None)
    parser.add_argument("--allow-http", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _build_transport(timeout: float | None) -> HttpxTransport:
    return HttpxTransport(timeout=timeout)


def _render(outcome: Outcome) -> dict[str, Any]:
    if isinstance(outcome, Failure):
        error = outcome.error
        return {
            "ok": False,
            "error": type(error).__name__,
            "message": str(error),
            "status_code": error.status_code,
            "body": error.body.decode("utf-8", errors="replace") if error.body is not None else None,
            "attempts": outcome.attempts,
        }
    envelope = outcome.envelope
    body = envelope.body
    return {
        "ok": True,
        "status_code": envelope.status_code,
        "headers": envelope.headers,
        "body": body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body,
        "attempts": outcome.attempts,
    }


async def _send(args: argparse.Namespace) -> Outcome:
    config = RequestConfig(
        return_raw_response=args.raw,
        retry_if_server_error=not args.no_retry,
        accept_only_ok_response=args.accept_only_ok,
    )
    async with _build_transport(args.timeout) as transport:
        request = WebAuthRequest(
            args.url,
            transport=transport,
            method=args.method,
            parameters=dict(args.params),
            config=config,
            allow_http=args.allow_http,
        )
        return await request.execute()


def _main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    try:
        outcome = asyncio.run(_send(args))
    except ValueError as exc:
        print(json.dumps({"ok": False, "error": "ValueError", "message": str(exc)}))
        return 2

    print(json.dumps(_render(outcome), indent=2))
    return 0 if outcome.ok else 1


def main() -> None:
    raise SystemExit(_main())
