"""
HTTP-level tests for the ledger API.
"""

from decimal import Decimal

import httpx
import pytest

from personify_ledger.api.deps import get_app_settings, get_db
from personify_ledger.app import create_app
from personify_ledger.config import Settings


@pytest.fixture
async def client(session_factory, transfer_engine):
    app = create_app()
    app.state.transfer_engine = transfer_engine

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_app_settings] = lambda: Settings(admin_token="secret")

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def test_health(client):
    res = await client.get("/api/health")
    assert res.status_code == 200
    assert res.json() == {"status": "healthy"}


async def test_list_accounts(client, make_accounts):
    await make_accounts({2: "300.00", 1: "500.00"})

    res = await client.get("/api/transaction/accounts")

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert [a["account_id"] for a in body["accounts"]] == [1, 2]
    assert body["accounts"][0]["display_name"] == "Alice"
    assert Decimal(body["accounts"][0]["balance"]) == Decimal("500.00")


async def test_get_account_not_found(client, make_accounts):
    await make_accounts({1: "500.00"})

    res = await client.get("/api/transaction/accounts/9")

    assert res.status_code == 404
    assert res.json()["detail"] == "Account not found"


async def test_transfer_committed(client, make_accounts):
    await make_accounts({1: "500.00", 2: "300.00"})

    res = await client.post(
        "/api/transaction/transfer",
        json={"fromAccountId": 1, "toAccountId": 2, "amount": "100.00"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["outcome"] == "COMMITTED"
    assert isinstance(body["transferId"], int)
    assert Decimal(body["fromBalance"]) == Decimal("400.00")
    assert Decimal(body["toBalance"]) == Decimal("400.00")
    assert "reason" not in body

    account = (await client.get("/api/transaction/accounts/1")).json()
    assert Decimal(account["balance"]) == Decimal("400.00")


async def test_transfer_rolled_back_insufficient_balance(client, make_accounts):
    await make_accounts({1: "50.00", 2: "300.00"})

    res = await client.post(
        "/api/transaction/transfer",
        json={"fromAccountId": 1, "toAccountId": 2, "amount": 100},
    )

    assert res.status_code == 400
    body = res.json()
    assert body["outcome"] == "ROLLED_BACK"
    assert body["reason"] == "InsufficientBalance"
    assert "Insufficient balance" in body["message"]
    assert "transferId" not in body


async def test_transfer_accepts_simulate_error_alias(client, make_accounts):
    await make_accounts({1: "500.00", 2: "300.00"})

    res = await client.post(
        "/api/transaction/transfer",
        json={"fromAccountId": 1, "toAccountId": 2, "amount": "100.00", "simulateError": True},
    )

    assert res.status_code == 400
    assert res.json()["reason"] == "SimulatedFailure"

    log = (await client.get("/api/transaction/log")).json()
    assert len(log) == 1
    assert log[0]["status"] == "FAILED"
    assert log[0]["error_message"].startswith("Simulated error")


async def test_transfer_same_account_is_a_client_error_without_log(client, make_accounts):
    await make_accounts({1: "500.00"})

    res = await client.post(
        "/api/transaction/transfer",
        json={"fromAccountId": 1, "toAccountId": 1, "amount": "10.00"},
    )

    assert res.status_code == 400
    assert res.json()["detail"] == "Cannot transfer to the same account"
    assert (await client.get("/api/transaction/log")).json() == []


async def test_transfer_missing_fields(client):
    res = await client.post("/api/transaction/transfer", json={"amount": "10.00"})

    assert res.status_code == 400
    assert res.json()["detail"] == "Both fromAccountId and toAccountId are required"


async def test_transfer_system_error_is_500(client, make_accounts, monkeypatch):
    await make_accounts({1: "500.00", 2: "300.00"})

    from personify_ledger.ledger import LedgerStore

    async def broken_get(self, account_id, for_update=False, role="Account"):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(LedgerStore, "get", broken_get)

    res = await client.post(
        "/api/transaction/transfer",
        json={"fromAccountId": 1, "toAccountId": 2, "amount": "10.00"},
    )

    assert res.status_code == 500
    assert res.json()["reason"] == "SystemError"


async def test_seed_requires_token(client):
    res = await client.post("/api/admin/seed", json={"token": "wrong"})
    assert res.status_code == 401


async def test_seed_is_idempotent(client):
    first = await client.post("/api/admin/seed", json={"token": "secret"})
    second = await client.post("/api/admin/seed", json={"token": "secret"})

    assert first.json() == {"seeded_accounts_created": 3}
    assert second.json() == {"seeded_accounts_created": 0}

    accounts = (await client.get("/api/transaction/accounts")).json()["accounts"]
    assert [(a["display_name"], Decimal(a["balance"])) for a in accounts] == [
        ("Alice", Decimal("500.00")),
        ("Bob", Decimal("300.00")),
        ("Charlie", Decimal("150.00")),
    ]
