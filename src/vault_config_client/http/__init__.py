"""HTTP layer: transport interface and request execution."""

from .executor import RequestExecutor, VaultResponse, join_url
from .transport import AiohttpTransport, Transport, TransportResponse

__all__ = [
    "RequestExecutor",
    "VaultResponse",
    "join_url",
    "Transport",
    "TransportResponse",
    "AiohttpTransport",
]
