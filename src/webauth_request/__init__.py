"""Authenticated web request execution engine."""

import logging

from .builder import build_request
from .classifier import Classification, classify
from .dispatcher import CompletionDispatcher
from .exceptions import (
    EncodingError,
    ParseError,
    RequestStateError,
    TransportFailure,
    TransportTimeoutError,
    UnexpectedStatusError,
    WebAuthError,
)
from .models import (
    Failure,
    Outcome,
    RequestDescriptor,
    RequestState,
    ResponseEnvelope,
    Success,
    TransportResponse,
)
from .normalizer import normalize
from .request import WebAuthRequest
from .request_options import RequestConfig
from .retry import RetryBudget, RetryController
from .transport import HttpxTransport, TransportAdapter

__version__ = "0.1.0"

logging.getLogger("webauth_request").addHandler(logging.NullHandler())

__all__ = [
    "Classification",
    "CompletionDispatcher",
    "EncodingError",
    "Failure",
    "HttpxTransport",
    "Outcome",
    "ParseError",
    "RequestConfig",
    "RequestDescriptor",
    "RequestState",
    "RequestStateError",
    "ResponseEnvelope",
    "RetryBudget",
    "RetryController",
    "Success",
    "TransportAdapter",
    "TransportFailure",
    "TransportResponse",
    "TransportTimeoutError",
    "UnexpectedStatusError",
    "WebAuthError",
    "WebAuthRequest",
    "build_request",
    "classify",
    "normalize",
    "__version__",
]
