"""Connection to the origin approval gateway."""

from gatekeeper.gateway.client import GatewayClient

__all__ = ["GatewayClient"]
