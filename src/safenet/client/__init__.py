"""HTTP transport, the authenticated request primitive and its responses."""

from safenet.client.gateway import GatewayClient
from safenet.client.response import GatewayResponse
from safenet.client.transport import GatewayTransport

__all__ = ["GatewayClient", "GatewayResponse", "GatewayTransport"]
