"""
Upstream adapters

HTTP clients of the API gateway, Typesense and Supabase. Import from the
concrete modules, e.g. ``from adapters.gateway_client import GatewayClient``.
"""

__all__: list = []
