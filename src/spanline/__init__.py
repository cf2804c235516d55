"""spanline: non-blocking trace, span and feedback telemetry for LLM applications.

Client:
    SpanlineClient, SpanlineConfig, track, set_client, get_client

Tracing:
    Trace, Span, SpanType, Usage, ErrorInfo

Feedback:
    FeedbackScore, FeedbackScoreSource

Delivery:
    BatchQueue, Message, MessageKind, FlushRegistry, get_registry

Transports:
    Transport, HttpTransport, InMemoryTransport

Cost:
    calculate_cost, calculate_cost_per_million

Exceptions:
    SpanlineError, ConfigurationError, TransportError
"""

from importlib.metadata import PackageNotFoundError, version

from spanline.client import SpanlineClient
from spanline.config import SpanlineConfig
from spanline.cost import calculate_cost, calculate_cost_per_million
from spanline.decorators import get_client, set_client, track
from spanline.exceptions import ConfigurationError, SpanlineError, TransportError
from spanline.feedback import FeedbackScore, FeedbackScoreSource
from spanline.messages import BatchQueue, FlushRegistry, Message, MessageKind, get_registry
from spanline.protocols import FailureCallback, Transport
from spanline.tracer import ErrorInfo, Span, SpanType, Trace, Usage
from spanline.transport import HttpTransport, InMemoryTransport

try:
    __version__ = version("spanline")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = [
    "BatchQueue",
    "ConfigurationError",
    "ErrorInfo",
    "FailureCallback",
    "FeedbackScore",
    "FeedbackScoreSource",
    "FlushRegistry",
    "HttpTransport",
    "InMemoryTransport",
    "Message",
    "MessageKind",
    "Span",
    "SpanType",
    "SpanlineClient",
    "SpanlineConfig",
    "SpanlineError",
    "Trace",
    "Transport",
    "TransportError",
    "Usage",
    "__version__",
    "calculate_cost",
    "calculate_cost_per_million",
    "get_client",
    "get_registry",
    "set_client",
    "track",
]
