"""
Token Vesting Ledger JSON-RPC Server

HTTP JSON-RPC 2.0 server over a single vault. Calls are executed one at a
time under an asyncio.Lock, so each vault operation runs to completion
before the next starts.
"""

from __future__ import annotations
import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, TYPE_CHECKING

from aiohttp import web

from vesting.api.methods import (
    METHOD_REGISTRY,
    RPCError,
    ERROR_PARSE,
    ERROR_INVALID_REQUEST,
    ERROR_METHOD_NOT_FOUND,
    ERROR_INVALID_PARAMS,
    ERROR_INTERNAL,
    ERROR_REJECTED,
)
from vesting.constants import API_DEFAULT_HOST, API_DEFAULT_PORT, API_MAX_BATCH_SIZE
from vesting.errors import VestingError

if TYPE_CHECKING:
    from vesting.state.storage import StateStorage
    from vesting.state.vault import TokenVesting

logger = logging.getLogger(__name__)


# Methods that change vault or token state; a snapshot is saved after each
MUTATING_METHODS = frozenset({
    "vest_addAdmin",
    "vest_addTreasuryMember",
    "vest_addTeamMember",
    "vest_addPreSaleMember",
    "vest_unlockToken",
    "vest_withdrawByMember",
})


@dataclass
class RPCResponse:
    """JSON-RPC response."""
    jsonrpc: str = "2.0"
    result: Any = None
    error: Optional[dict] = None
    id: Any = None

    def to_dict(self) -> dict:
        d = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error:
            d["error"] = self.error
        else:
            d["result"] = self.result
        return d


@dataclass
class APIServer:
    """
    JSON-RPC API Server.

    Provides HTTP interface for interacting with the vesting vault. If a
    storage is attached, a snapshot is saved after every successful
    state-changing call, and a call whose snapshot fails is rolled back.
    """
    vesting: "TokenVesting"
    host: str = API_DEFAULT_HOST
    port: int = API_DEFAULT_PORT
    max_batch_size: int = API_MAX_BATCH_SIZE
    storage: Optional["StateStorage"] = None

    _runner: Optional[web.AppRunner] = None
    _site: Optional[web.TCPSite] = None
    _running: bool = False
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def running(self) -> bool:
        return self._running

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/", self._handle_rpc)
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/methods", self._handle_methods)
        return app

    async def start(self) -> None:
        """Start the API server."""
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()

        self._running = True
        logger.info(f"API server started on http://{self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the API server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            self._running = False
            logger.info("API server stopped")

    async def _handle_health(self, request: web.Request) -> web.Response:
        """Handle health check."""
        return web.json_response({
            "status": "ok",
            "vault": str(self.vesting.address),
            "members": self.vesting.member_count(),
        })

    async def _handle_methods(self, request: web.Request) -> web.Response:
        """Handle methods listing."""
        return web.json_response({"methods": list(METHOD_REGISTRY.keys())})

    async def _handle_rpc(self, request: web.Request) -> web.Response:
        """Handle JSON-RPC request."""
        try:
            body = await request.text()
            data = json.loads(body)
        except json.JSONDecodeError as e:
            return web.json_response(
                RPCResponse(
                    error={"code": ERROR_PARSE, "message": f"Parse error: {e}"}
                ).to_dict(),
                status=400
            )

        result, status = await self.dispatch(data)
        return web.json_response(result, status=status)

    async def dispatch(self, data: Any) -> tuple:
        """
        Dispatch a decoded JSON-RPC payload (single request or batch).

        Returns:
            (response body, HTTP status)
        """
        if isinstance(data, list):
            if not data:
                return RPCResponse(
                    error={"code": ERROR_INVALID_REQUEST, "message": "Empty batch"}
                ).to_dict(), 400

            if len(data) > self.max_batch_size:
                return RPCResponse(
                    error={
                        "code": ERROR_INVALID_REQUEST,
                        "message": f"Batch size exceeds maximum ({self.max_batch_size})"
                    }
                ).to_dict(), 400

            responses = []
            for req in data:
                responses.append(await self._process_request(req))
            return [r.to_dict() for r in responses], 200

        response = await self._process_request(data)
        return response.to_dict(), 200

    async def _process_request(self, data: Any) -> RPCResponse:
        """Process a single JSON-RPC request."""
        if not isinstance(data, dict):
            return RPCResponse(
                error={"code": ERROR_INVALID_REQUEST, "message": "Invalid request"}
            )

        if data.get("jsonrpc") != "2.0":
            return RPCResponse(
                error={"code": ERROR_INVALID_REQUEST, "message": "Invalid JSON-RPC version"},
                id=data.get("id")
            )

        method = data.get("method")
        if not method or not isinstance(method, str):
            return RPCResponse(
                error={"code": ERROR_INVALID_REQUEST, "message": "Missing method"},
                id=data.get("id")
            )

        params = data.get("params", [])
        req_id = data.get("id")

        try:
            async with self._lock:
                if self.storage is not None and method in MUTATING_METHODS:
                    result = await self._execute_persisted(method, params)
                else:
                    result = await self._execute_method(method, params)
            return RPCResponse(result=result, id=req_id)

        except RPCError as e:
            return RPCResponse(
                error={"code": e.code, "message": e.message, "data": e.data},
                id=req_id
            )

        except VestingError as e:
            logger.info(f"{method} rejected: {e}")
            return RPCResponse(
                error={"code": ERROR_REJECTED, "message": e.message, "data": e.to_dict()},
                id=req_id
            )

        except Exception as e:
            logger.error(f"RPC error: {e}", exc_info=True)
            return RPCResponse(
                error={"code": ERROR_INTERNAL, "message": str(e)},
                id=req_id
            )

    async def _execute_persisted(self, method: str, params: Any) -> Any:
        """
        Execute a state-changing method and save a snapshot.

        If the snapshot cannot be written, vault and token are reset to
        their state before the call and the call fails.
        """
        token = self.vesting.token
        vault_before = self.vesting.to_dict()
        token_before = token.to_dict()

        result = await self._execute_method(method, params)

        try:
            await self.storage.save_snapshot(self.vesting, token)
        except Exception as e:
            self.vesting.restore(vault_before)
            token.restore(token_before)
            logger.error(f"{method} rolled back, snapshot not saved: {e}")
            raise RPCError(ERROR_INTERNAL, f"State not persisted, call rolled back: {e}")

        return result

    async def _execute_method(self, method: str, params: Any) -> Any:
        """Execute an RPC method."""
        handler = METHOD_REGISTRY.get(method)

        if handler is None:
            raise RPCError(ERROR_METHOD_NOT_FOUND, f"Method not found: {method}")

        try:
            if isinstance(params, list):
                return await handler(self.vesting, *params)
            elif isinstance(params, dict):
                return await handler(self.vesting, **params)
            elif params is None:
                return await handler(self.vesting)
        except TypeError as e:
            raise RPCError(ERROR_INVALID_PARAMS, f"Invalid params for {method}: {e}")

        raise RPCError(ERROR_INVALID_PARAMS, "Invalid params format")


def create_api_server(
    vesting: "TokenVesting",
    host: str = API_DEFAULT_HOST,
    port: int = API_DEFAULT_PORT,
    **kwargs
) -> APIServer:
    """Create an API server."""
    return APIServer(vesting, host, port, **kwargs)

