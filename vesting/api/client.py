"""
Token Vesting Ledger JSON-RPC Client

Async httpx client for a running vesting API server.
"""

from __future__ import annotations
import itertools
import logging
from typing import Any, List, Optional, Union

import httpx

from vesting.api.methods import RPCError, ERROR_INTERNAL
from vesting.constants import API_DEFAULT_HOST, API_DEFAULT_PORT
from vesting.core.types import Address

logger = logging.getLogger(__name__)

AddressLike = Union[Address, str]


class VestingClient:
    """
    JSON-RPC client.

    Usage:
        async with VestingClient("http://127.0.0.1:8645") as client:
            await client.add_admin(owner, admin)
            balance = await client.get_contract_balance()

    Errors returned by the server are raised as RPCError carrying the
    server's code, message and data.
    """

    def __init__(
        self,
        url: str = f"http://{API_DEFAULT_HOST}:{API_DEFAULT_PORT}",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = url
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "VestingClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def call(self, method: str, *params: Any) -> Any:
        """Invoke `method` with positional params and return its result."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": [str(p) if isinstance(p, Address) else p for p in params],
            "id": next(self._ids),
        }
        logger.debug(f"RPC call {method} -> {self.url}")

        try:
            resp = await self._client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            raise RPCError(ERROR_INTERNAL, f"Transport error: {e}")

        data = resp.json()
        if "error" in data:
            error = data["error"]
            raise RPCError(error["code"], error["message"], error.get("data"))
        return data.get("result")

    # Admin

    async def add_admin(self, sender: AddressLike, admin: AddressLike) -> bool:
        return await self.call("vest_addAdmin", sender, admin)

    async def is_admin(self, address: AddressLike) -> bool:
        return await self.call("vest_isAdmin", address)

    # Membership

    async def add_treasury_member(self, sender: AddressLike, member: AddressLike, amount: int) -> dict:
        return await self.call("vest_addTreasuryMember", sender, member, amount)

    async def add_team_member(self, sender: AddressLike, member: AddressLike, amount: int) -> dict:
        return await self.call("vest_addTeamMember", sender, member, amount)

    async def add_presale_member(self, sender: AddressLike, member: AddressLike, amount: int) -> dict:
        return await self.call("vest_addPreSaleMember", sender, member, amount)

    async def get_member_data(self, address: AddressLike) -> dict:
        return await self.call("vest_getMemberData", address)

    # Unlock / withdrawal

    async def unlock_token(self, sender: AddressLike) -> dict:
        return await self.call("vest_unlockToken", sender)

    async def withdraw_by_member(self, sender: AddressLike) -> int:
        return await self.call("vest_withdrawByMember", sender)

    async def get_contract_balance(self) -> int:
        return await self.call("vest_getContractBalance")

    async def vault_info(self) -> dict:
        return await self.call("vest_info")

    # Token

    async def token_info(self) -> dict:
        return await self.call("token_info")

    async def balance_of(self, address: AddressLike) -> int:
        return await self.call("token_balanceOf", address)

    async def list_methods(self) -> List[str]:
        """Fetch the server's method list from GET /methods."""
        base = self.url.rstrip("/")
        resp = await self._client.get(f"{base}/methods")
        return resp.json()["methods"]
