"""
Token Vesting Ledger JSON-RPC API
"""

from vesting.api.server import APIServer, create_api_server
from vesting.api.client import VestingClient
from vesting.api.methods import (
    METHOD_REGISTRY,
    RPCError,
    get_method,
    list_methods,
)

__all__ = [
    "APIServer",
    "create_api_server",
    "VestingClient",
    "METHOD_REGISTRY",
    "RPCError",
    "get_method",
    "list_methods",
]
