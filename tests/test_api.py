"""
Token Vesting Ledger JSON-RPC Tests
"""

import asyncio
import json
import time
from unittest.mock import AsyncMock, Mock

import httpx
import ntplib
import pytest
from aiohttp import test_utils

from vesting.api.client import VestingClient
from vesting.api.methods import (
    ERROR_INTERNAL,
    ERROR_INVALID_PARAMS,
    ERROR_INVALID_REQUEST,
    ERROR_METHOD_NOT_FOUND,
    ERROR_REJECTED,
    RPCError,
    get_method,
    list_methods,
)
from vesting.api.server import APIServer, create_api_server
from vesting.clock import NTPClock
from vesting.constants import ONE_TOKEN, UNLOCK_2022_06_30
from vesting.errors import ErrorCode
from vesting.state.storage import StateStorage
from vesting.state.vault import TokenVesting


def rpc(method, *params, req_id=1):
    return {"jsonrpc": "2.0", "method": method, "params": list(params), "id": req_id}


@pytest.fixture
def server(vesting) -> APIServer:
    return APIServer(vesting)


def client_for(server: APIServer) -> VestingClient:
    """VestingClient wired to the server's dispatcher through httpx.MockTransport."""
    async def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET" and request.url.path == "/methods":
            return httpx.Response(200, json={"methods": list_methods()})
        body, status = await server.dispatch(json.loads(request.content))
        return httpx.Response(status, json=body)

    return VestingClient("http://vesting.test/", transport=httpx.MockTransport(handler))


class TestMethodRegistry:
    """Tests for the method registry."""

    def test_methods_listed(self):
        methods = list_methods()
        for name in (
            "vest_addAdmin",
            "vest_addTreasuryMember",
            "vest_addTeamMember",
            "vest_addPreSaleMember",
            "vest_unlockToken",
            "vest_withdrawByMember",
            "vest_getMemberData",
            "vest_getContractBalance",
            "token_balanceOf",
        ):
            assert name in methods

    def test_get_method(self):
        assert get_method("vest_info") is not None
        assert get_method("vest_selfDestruct") is None

    def test_create_api_server(self, vesting):
        server = create_api_server(vesting, port=9000, max_batch_size=5)
        assert server.port == 9000
        assert server.max_batch_size == 5
        assert not server.running


class TestDispatch:
    """Tests for request dispatch without HTTP."""

    @pytest.mark.asyncio
    async def test_contract_balance(self, server):
        body, status = await server.dispatch(rpc("vest_getContractBalance"))
        assert status == 200
        assert body == {"jsonrpc": "2.0", "id": 1, "result": 50_000_000 * ONE_TOKEN}

    @pytest.mark.asyncio
    async def test_add_member(self, server, owner, treasury_member):
        body, _ = await server.dispatch(
            rpc("vest_addTreasuryMember", str(owner), str(treasury_member), str(ONE_TOKEN))
        )
        assert body["result"]["total_allocation"] == ONE_TOKEN
        assert body["result"]["category"] == "treasury"
        assert server.vesting.member_count() == 1

    @pytest.mark.asyncio
    async def test_named_params(self, server, owner, admin):
        body, _ = await server.dispatch({
            "jsonrpc": "2.0",
            "method": "vest_addAdmin",
            "params": {"sender": str(owner), "admin": str(admin)},
            "id": 7,
        })
        assert body == {"jsonrpc": "2.0", "id": 7, "result": True}
        assert server.vesting.is_admin(admin)

    @pytest.mark.asyncio
    async def test_vesting_error_mapped(self, server, stranger, treasury_member):
        body, _ = await server.dispatch(
            rpc("vest_addTreasuryMember", str(stranger), str(treasury_member), 1)
        )
        error = body["error"]
        assert error["code"] == ERROR_REJECTED
        assert error["data"]["code"] == ErrorCode.UNAUTHORIZED
        assert error["data"]["name"] == "UNAUTHORIZED"
        assert server.vesting.member_count() == 0

    @pytest.mark.asyncio
    async def test_unknown_method(self, server):
        body, _ = await server.dispatch(rpc("vest_selfDestruct"))
        assert body["error"]["code"] == ERROR_METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_bad_address(self, server):
        body, _ = await server.dispatch(rpc("vest_getMemberData", "0xnothex"))
        assert body["error"]["code"] == ERROR_INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_bad_amount(self, server, owner, treasury_member):
        body, _ = await server.dispatch(
            rpc("vest_addTreasuryMember", str(owner), str(treasury_member), "1.5")
        )
        assert body["error"]["code"] == ERROR_INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_wrong_param_count(self, server):
        body, _ = await server.dispatch(rpc("vest_unlockToken"))
        assert body["error"]["code"] == ERROR_INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_invalid_version(self, server):
        body, _ = await server.dispatch({"jsonrpc": "1.0", "method": "vest_info", "id": 3})
        assert body["error"]["code"] == ERROR_INVALID_REQUEST
        assert body["id"] == 3

    @pytest.mark.asyncio
    async def test_batch(self, server, owner, team_member):
        body, status = await server.dispatch([
            rpc("vest_addTeamMember", str(owner), str(team_member), 100, req_id=1),
            rpc("vest_getMemberData", str(team_member), req_id=2),
        ])
        assert status == 200
        assert [r["id"] for r in body] == [1, 2]
        assert body[1]["result"]["total_allocation"] == 100

    @pytest.mark.asyncio
    async def test_batch_too_large(self, vesting):
        server = APIServer(vesting, max_batch_size=1)
        body, status = await server.dispatch([rpc("vest_info"), rpc("vest_info")])
        assert status == 400
        assert body["error"]["code"] == ERROR_INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_snapshot_after_mutation(self, tmp_path, vesting, owner, team_member):
        storage = StateStorage(str(tmp_path / "state.db"))
        server = APIServer(vesting, storage=storage)
        try:
            await server.dispatch(rpc("vest_addTeamMember", str(owner), str(team_member), 100))
            restored = await storage.load_vault(vesting.token)
        finally:
            await storage.close()

        assert restored.get_member_data(team_member).total_allocation == 100

    @pytest.mark.asyncio
    async def test_failed_snapshot_rolls_back_member(self, vesting, owner, team_member):
        storage = Mock()
        storage.save_snapshot = AsyncMock(side_effect=OSError("disk full"))
        server = APIServer(vesting, storage=storage)

        body, _ = await server.dispatch(
            rpc("vest_addTeamMember", str(owner), str(team_member), 100)
        )

        assert body["error"]["code"] == ERROR_INTERNAL
        assert "disk full" in body["error"]["message"]
        storage.save_snapshot.assert_awaited_once()
        assert vesting.member_count() == 0
        assert vesting.total_allocation() == 0

    @pytest.mark.asyncio
    async def test_failed_snapshot_rolls_back_withdrawal(
        self, vesting, token, owner, clock, presale_member
    ):
        vesting.add_presale_member(owner, presale_member, 1_000)
        clock.increase_to(UNLOCK_2022_06_30 + 1)
        vesting.unlock_token(owner)
        vault_before = vesting.to_dict()
        token_before = token.to_dict()

        storage = Mock()
        storage.save_snapshot = AsyncMock(side_effect=OSError("disk full"))
        server = APIServer(vesting, storage=storage)

        body, _ = await server.dispatch(rpc("vest_withdrawByMember", str(presale_member)))

        assert body["error"]["code"] == ERROR_INTERNAL
        assert token.balance_of(presale_member) == 0
        assert vesting.get_member_data(presale_member).withdrawn_amount == 0
        assert vesting.to_dict() == vault_before
        assert token.to_dict() == token_before

        # Nothing was lost: the same withdrawal succeeds once saving works
        storage.save_snapshot = AsyncMock()
        body, _ = await server.dispatch(rpc("vest_withdrawByMember", str(presale_member)))
        assert body["result"] == 250
        assert token.balance_of(presale_member) == 250

    @pytest.mark.asyncio
    async def test_ntp_unlock_keeps_loop_running(
        self, token, owner, vault_address, team_member
    ):
        """Retrying NTP reads inside an unlock call leave other tasks running."""
        client = Mock()
        client.request.side_effect = ntplib.NTPException("no response")
        vault = TokenVesting(
            token=token,
            address=vault_address,
            owner=owner,
            clock=NTPClock(host="ntp.test", client=client, retries=3),
        )
        token.transfer(owner, vault_address, 1_000)
        vault.add_admin(owner, owner)
        vault.add_team_member(owner, team_member, 100)
        server = APIServer(vault)

        gaps = []
        done = asyncio.Event()

        async def ticker():
            last = time.monotonic()
            while not done.is_set():
                await asyncio.sleep(0.01)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        task = asyncio.create_task(ticker())
        try:
            body, _ = await server.dispatch(rpc("vest_unlockToken", str(owner)))
        finally:
            done.set()
            await task

        assert body["error"]["code"] == ERROR_REJECTED
        assert body["error"]["data"]["name"] == "CLOCK_UNAVAILABLE"
        assert client.request.call_count == 3
        assert len(gaps) >= 10
        assert max(gaps) < 0.1

    @pytest.mark.asyncio
    async def test_unlock_checks_caller_before_clock(
        self, token, owner, vault_address, stranger, team_member
    ):
        client = Mock()
        vault = TokenVesting(
            token=token,
            address=vault_address,
            owner=owner,
            clock=NTPClock(client=client),
        )
        token.transfer(owner, vault_address, 1_000)
        vault.add_admin(owner, owner)
        vault.add_team_member(owner, team_member, 100)

        body, _ = await APIServer(vault).dispatch(rpc("vest_unlockToken", str(stranger)))

        assert body["error"]["data"]["name"] == "UNAUTHORIZED"
        client.request.assert_not_called()


class TestVestingClient:
    """Tests for VestingClient over a mock transport."""

    @pytest.mark.asyncio
    async def test_reference_flow(self, server, owner, clock, presale_member):
        async with client_for(server) as client:
            await client.add_presale_member(owner, presale_member, 1_000)
            clock.increase_to(UNLOCK_2022_06_30 + 1)

            report = await client.unlock_token(owner)
            assert report["total_unlocked"] == 250

            assert await client.withdraw_by_member(presale_member) == 250
            assert await client.balance_of(presale_member) == 250

            data = await client.get_member_data(presale_member)
            assert data["withdrawn_amount"] == 250
            assert data["settlement_status"] == "settled"

    @pytest.mark.asyncio
    async def test_error_raised(self, server, stranger):
        async with client_for(server) as client:
            with pytest.raises(RPCError) as exc_info:
                await client.withdraw_by_member(stranger)

        assert exc_info.value.code == ERROR_REJECTED
        assert exc_info.value.data["name"] == "MEMBER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_info(self, server, owner):
        async with client_for(server) as client:
            info = await client.vault_info()
            token = await client.token_info()
            methods = await client.list_methods()

        assert info["admins"] == [str(owner)]
        assert info["schedules"]["presale"][0] == [UNLOCK_2022_06_30, 2500]
        assert token["symbol"] == "FLAN"
        assert "vest_unlockToken" in methods

    @pytest.mark.asyncio
    async def test_is_admin(self, server, owner, stranger):
        async with client_for(server) as client:
            assert await client.is_admin(owner) is True
            assert await client.is_admin(stranger) is False


class TestHTTP:
    """Tests for the aiohttp application."""

    @pytest.mark.asyncio
    async def test_health_and_methods(self, server):
        async with test_utils.TestClient(test_utils.TestServer(server.create_app())) as client:
            resp = await client.get("/health")
            assert resp.status == 200
            health = await resp.json()
            assert health["status"] == "ok"
            assert health["vault"] == str(server.vesting.address)

            resp = await client.get("/methods")
            assert "vest_info" in (await resp.json())["methods"]

    @pytest.mark.asyncio
    async def test_rpc_post(self, server):
        async with test_utils.TestClient(test_utils.TestServer(server.create_app())) as client:
            resp = await client.post("/", json=rpc("vest_getContractBalance"))
            body = await resp.json()
            assert body["result"] == 50_000_000 * ONE_TOKEN

    @pytest.mark.asyncio
    async def test_parse_error(self, server):
        async with test_utils.TestClient(test_utils.TestServer(server.create_app())) as client:
            resp = await client.post("/", data="{not json")
            assert resp.status == 400
            assert (await resp.json())["error"]["code"] == -32700
