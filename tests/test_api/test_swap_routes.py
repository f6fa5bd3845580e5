"""End-to-end tests for the swap REST routes (httpx + ASGITransport)."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from confidential_swap.api.deps import get_app_settings, get_clock, get_db_session
from confidential_swap.api.middleware import status_code_for
from confidential_swap.domain.exceptions import (
    AddressMismatchError,
    InvalidAmountError,
    SwapNotExecutedError,
    SwapNotFoundError,
    UnauthorizedError,
)
from confidential_swap.main import create_app

NOW = 1_700_000_000


@pytest_asyncio.fixture
async def client(session_factory, clock, settings):
    app = create_app()

    async def _session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _session
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_app_settings] = lambda: settings

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _create(client: httpx.AsyncClient, owner: str, amount_in: int = 1000) -> dict:
    response = await client.post(
        "/api/v1/swaps",
        json={"owner": owner, "amount_in": amount_in, "minimum_amount_out": 950},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestInitializeRoute:
    @pytest.mark.asyncio
    async def test_created(self, client: httpx.AsyncClient, owner: str) -> None:
        body = await _create(client, owner)
        assert body["status"] == "Pending"
        assert body["executed_at"] == 0
        assert body["owner"] == owner
        assert body["custodian"] is None

    @pytest.mark.asyncio
    async def test_matches_derive_endpoint(self, client: httpx.AsyncClient, owner: str) -> None:
        derived = (await client.get(f"/api/v1/swaps/derive/{owner}")).json()
        body = await _create(client, owner)
        assert body["address"] == derived["address"]
        assert body["derivation_bump"] == derived["bump"]

    @pytest.mark.asyncio
    async def test_duplicate_conflict(self, client: httpx.AsyncClient, owner: str) -> None:
        await _create(client, owner)
        response = await client.post(
            "/api/v1/swaps",
            json={"owner": owner, "amount_in": 1, "minimum_amount_out": 1},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_RECORD"

    @pytest.mark.asyncio
    async def test_zero_amount_rejected(self, client: httpx.AsyncClient, owner: str) -> None:
        response = await client.post(
            "/api/v1/swaps",
            json={"owner": owner, "amount_in": 0, "minimum_amount_out": 0},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_malformed_owner_rejected(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/v1/swaps",
            json={"owner": "zz" * 32, "amount_in": 1, "minimum_amount_out": 0},
        )
        assert response.status_code == 422


class TestLifecycleRoutes:
    @pytest.mark.asyncio
    async def test_full_lifecycle(
        self, client: httpx.AsyncClient, owner: str, validator: str, payer: str
    ) -> None:
        address = (await _create(client, owner))["address"]

        delegated = await client.post(
            f"/api/v1/swaps/{address}/delegate",
            json={"validator": validator, "payer": payer},
        )
        assert delegated.status_code == 200
        assert delegated.json()["custodian"] == validator

        executed = await client.post(f"/api/v1/swaps/{address}/execute")
        assert executed.status_code == 200
        assert executed.json()["status"] == "Executed"
        assert executed.json()["executed_at"] == NOW

        finalized = await client.post(f"/api/v1/swaps/{address}/finalize")
        assert finalized.status_code == 200
        assert finalized.json()["status"] == "Finalized"

        again = await client.post(f"/api/v1/swaps/{address}/execute")
        assert again.status_code == 409
        assert again.json()["error"] == "INVALID_SWAP_STATUS"

    @pytest.mark.asyncio
    async def test_finalize_before_execute(self, client: httpx.AsyncClient, owner: str) -> None:
        address = (await _create(client, owner))["address"]
        response = await client.post(f"/api/v1/swaps/{address}/finalize", json={})
        assert response.status_code == 409
        assert response.json()["error"] == "SWAP_NOT_EXECUTED"

        status = (await client.get(f"/api/v1/swaps/{address}/status")).json()
        assert status["status"] == "Pending"

    @pytest.mark.asyncio
    async def test_redelegation_conflict(
        self, client: httpx.AsyncClient, owner: str, validator: str, payer: str
    ) -> None:
        address = (await _create(client, owner))["address"]
        await client.post(
            f"/api/v1/swaps/{address}/delegate",
            json={"validator": validator, "payer": payer},
        )
        response = await client.post(
            f"/api/v1/swaps/{address}/delegate",
            json={"validator": "c3" * 32, "payer": payer},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "ALREADY_DELEGATED"

    @pytest.mark.asyncio
    async def test_close_by_stranger_forbidden(
        self, client: httpx.AsyncClient, owner: str, other_owner: str
    ) -> None:
        address = (await _create(client, owner))["address"]
        await client.post(f"/api/v1/swaps/{address}/execute")
        await client.post(f"/api/v1/swaps/{address}/finalize")

        response = await client.post(
            f"/api/v1/swaps/{address}/close", json={"signer": other_owner}
        )
        assert response.status_code == 403

        closed = await client.post(f"/api/v1/swaps/{address}/close", json={"signer": owner})
        assert closed.status_code == 200
        assert (await client.get(f"/api/v1/swaps/{address}")).status_code == 404


class TestReadRoutes:
    @pytest.mark.asyncio
    async def test_unknown_address(self, client: httpx.AsyncClient) -> None:
        response = await client.get(f"/api/v1/swaps/{'ee' * 32}")
        assert response.status_code == 404
        assert response.json()["error"] == "SWAP_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_malformed_address(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/swaps/not-hex/status")
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_INPUT"

    @pytest.mark.asyncio
    async def test_status_allowed_events(self, client: httpx.AsyncClient, owner: str) -> None:
        address = (await _create(client, owner))["address"]
        await client.post(f"/api/v1/swaps/{address}/execute")
        status = (await client.get(f"/api/v1/swaps/{address}/status")).json()
        assert status["status"] == "Executed"
        assert status["allowed_events"] == ["finalize_swap"]

    @pytest.mark.asyncio
    async def test_events(self, client: httpx.AsyncClient, owner: str) -> None:
        address = (await _create(client, owner))["address"]
        await client.post(f"/api/v1/swaps/{address}/execute")
        events = (await client.get(f"/api/v1/swaps/{address}/events")).json()

        assert [e["event_type"] for e in events] == ["SWAP_INITIALIZED", "SWAP_EXECUTED"]
        assert events[1]["metadata"] == {"executed_at": NOW}

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client: httpx.AsyncClient, owner: str) -> None:
        response = await client.get(
            f"/api/v1/swaps/derive/{owner}", headers={"X-Request-ID": "req-42"}
        )
        assert response.headers["X-Request-ID"] == "req-42"


class TestStatusMapping:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (SwapNotFoundError("ab"), 404),
            (UnauthorizedError("a", "b"), 403),
            (SwapNotExecutedError("Pending"), 409),
            (AddressMismatchError("a", "b"), 400),
            (InvalidAmountError("amount_in", 0), 400),
        ],
    )
    def test_status_code_for(self, exc, expected: int) -> None:
        assert status_code_for(exc) == expected
