"""
Integration tests: the HTTP API driven end to end through the ASGI app.
"""
import importlib.util
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from payways.main import create_app
from payways.schemas import RiskLevel, RiskVerdict
from payways.state import AppState

ADMIN_EMAIL = "admin@payways.com"


async def _register(client: AsyncClient, email: str, password: str = "pw") -> dict:
    resp = await client.post("/v1/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


async def _pay(client: AsyncClient, amount="100", country="US", method="Credit Card") -> dict:
    resp = await client.post(
        "/v1/payments", json={"country_code": country, "payment_method": method, "amount": amount}
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestAuthApi:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_register_admin_opens_session(self, client: AsyncClient) -> None:
        data = await _register(client, ADMIN_EMAIL, "x")
        assert data["account"]["is_admin"] is True
        assert data["screen"] == "payment"
        assert "password_hash" not in data["account"]

        session = (await client.get("/v1/session")).json()
        assert session["account"]["email"] == ADMIN_EMAIL

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_duplicate_email(self, client: AsyncClient) -> None:
        await _register(client, "alice@example.com")
        resp = await client.post("/v1/auth/register", json={"email": "alice@example.com", "password": "other"})
        assert resp.status_code == 409
        assert resp.json()["error"] == "DuplicateEmail"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_login_failures_are_generic(self, client: AsyncClient) -> None:
        await _register(client, "alice@example.com", "right")
        wrong = await client.post("/v1/auth/login", json={"email": "alice@example.com", "password": "wrong"})
        missing = await client.post("/v1/auth/login", json={"email": "ghost@example.com", "password": "right"})
        assert wrong.status_code == missing.status_code == 401
        assert wrong.json() == missing.json()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_logout_ends_session(self, client: AsyncClient) -> None:
        await _register(client, "alice@example.com")
        resp = await client.post("/v1/auth/logout")
        assert resp.json()["screen"] == "unauthenticated"
        assert (await client.get("/v1/payments")).status_code == 401

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_repeated_login_replaces_session(self, client: AsyncClient, state: AppState) -> None:
        await _register(client, "alice@example.com")
        first = client.cookies.get("payways_session")
        for _ in range(5):
            resp = await client.post("/v1/auth/login", json={"email": "alice@example.com", "password": "pw"})
            assert resp.status_code == 200

        assert len(state.sessions) == 1
        assert state.sessions.get(first) is None
        assert state.sessions.get(client.cookies.get("payways_session")) is not None

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unauthenticated_payment_refused(self, client: AsyncClient, state: AppState) -> None:
        resp = await client.post("/v1/payments", json={"country_code": "US", "payment_method": "PayPal", "amount": 5})
        assert resp.status_code == 401
        assert len(state.ledger) == 0


class TestPaymentApi:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_admin_end_to_end(self, admin_client: AsyncClient) -> None:
        outcome = await _pay(admin_client, amount=100)

        assert outcome["state"] == "settled"
        assert outcome["verdict"] == {"risk_level": "low", "reason": "ok", "indicators": []}

        history = (await admin_client.get("/v1/payments")).json()
        assert history["count"] == 1
        assert history["payments"][0]["amount"] == 100.0
        assert history["payments"][0]["country"] == "United States"
        assert f"{history['payments'][0]['amount']:.2f}" == "100.00"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_zero_amount_rejected(self, admin_client: AsyncClient, state: AppState) -> None:
        outcome = await _pay(admin_client, amount=0)

        assert outcome["state"] == "rejected"
        assert outcome["error"]["field"] == "amount"
        assert len(state.ledger) == 0

        flow = (await admin_client.post("/v1/payments/flow/edit")).json()
        assert flow["state"] == "idle"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_high_risk_denied(self, admin_client: AsyncClient, state: AppState, gateway) -> None:
        gateway.verdict = RiskVerdict(risk_level=RiskLevel.HIGH, reason="Suspicious", indicators=["High-risk region"])

        outcome = await _pay(admin_client, amount="9000", country="AE", method="Crypto")

        assert outcome["state"] == "denied"
        assert outcome["verdict"]["indicators"] == ["High-risk region"]
        assert (await admin_client.get("/v1/payments/flow")).json()["state"] == "denied"
        assert (await admin_client.post("/v1/payments/flow/acknowledge")).json()["state"] == "idle"
        assert len(state.ledger) == 0

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_history_filtered_per_account(self, client: AsyncClient) -> None:
        alice = (await _register(client, "alice@example.com"))["account"]
        await _pay(client, amount=10)
        await _register(client, "bob@example.com")
        await _pay(client, amount=20)
        await _pay(client, amount=30)

        bob_rows = (await client.get("/v1/payments")).json()["payments"]
        assert [p["amount"] for p in bob_rows] == [30.0, 20.0]

        await client.post("/v1/auth/login", json={"email": "alice@example.com", "password": "pw"})
        alice_rows = (await client.get("/v1/payments")).json()["payments"]
        assert [p["amount"] for p in alice_rows] == [10.0]
        assert alice_rows[0]["user_id"] == alice["id"]

        await _register(client, ADMIN_EMAIL)
        admin_rows = (await client.get("/v1/payments")).json()["payments"]
        assert [p["amount"] for p in admin_rows] == [30.0, 20.0, 10.0]


class TestAdminApi:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_non_admin_is_refused(self, client: AsyncClient) -> None:
        await _register(client, "alice@example.com")
        assert (await client.get("/v1/stats")).status_code == 403
        assert (await client.delete("/v1/countries/US")).status_code == 403
        resp = await client.put("/v1/session/view", json={"screen": "admin"})
        assert resp.status_code == 403
        assert (await client.put("/v1/session/view", json={"screen": "history"})).json()["screen"] == "history"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_country_crud(self, admin_client: AsyncClient) -> None:
        new = {"code": "fr", "name": "France", "currency": {"code": "EUR", "symbol": "€"}, "payment_methods": ["Credit Card"]}
        resp = await admin_client.post("/v1/countries", json=new)
        assert resp.status_code == 201
        assert resp.json()["code"] == "FR"

        dup = await admin_client.post("/v1/countries", json=new)
        assert dup.status_code == 409

        upd = await admin_client.put(
            "/v1/countries/fr",
            json={"name": "France", "currency": {"code": "EUR", "symbol": "€"}, "payment_methods": ["PayPal"]},
        )
        assert upd.json()["payment_methods"] == ["PayPal"]

        names = [c["name"] for c in (await admin_client.get("/v1/countries")).json()]
        assert names == sorted(names, key=str.casefold)
        assert "France" in names

        assert (await admin_client.delete("/v1/countries/FR")).status_code == 200
        assert (await admin_client.delete("/v1/countries/FR")).status_code == 404
        assert (await admin_client.put("/v1/countries/FR", json=new)).status_code == 404

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_delete_country_keeps_history(self, admin_client: AsyncClient) -> None:
        await _pay(admin_client, amount=50, country="KE", method="Mobile Money")
        await admin_client.delete("/v1/countries/KE")

        rows = (await admin_client.get("/v1/payments")).json()["payments"]
        assert rows[0]["country"] == "Kenya"
        codes = [c["code"] for c in (await admin_client.get("/v1/countries")).json()]
        assert "KE" not in codes

        again = await _pay(admin_client, amount=50, country="KE", method="Mobile Money")
        assert again["state"] == "rejected"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_stats_sum_without_conversion(self, admin_client: AsyncClient) -> None:
        await _pay(admin_client, amount=100, country="US")
        await _pay(admin_client, amount=1000, country="JP", method="Bank Transfer")

        stats = (await admin_client.get("/v1/stats")).json()
        assert stats["total_transactions"] == 2
        assert stats["total_volume"] == 1100.0
        assert stats["countries"] == 11


class TestMiscApi:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_health_and_index(self, client: AsyncClient) -> None:
        health = await client.get("/health")
        assert health.json()["status"] == "ok"
        assert "X-Request-ID" in health.headers

        page = await client.get("/")
        assert page.status_code == 200
        assert "PayWays" in page.text

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_payment_methods_listed(self, client: AsyncClient) -> None:
        methods = (await client.get("/v1/payment-methods")).json()
        assert [m["method"] for m in methods] == ["Credit Card", "PayPal", "Bank Transfer", "Crypto", "Mobile Money"]
        assert all(m["icon"] for m in methods)

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_example_client(self, state: AppState) -> None:
        path = Path(__file__).resolve().parent.parent / "examples" / "python_client.py"
        spec = importlib.util.spec_from_file_location("payways_example_client", path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        pw = module.PayWaysClient("http://test", transport=ASGITransport(app=create_app(state)))
        try:
            await pw.register("client@example.com", "pw")
            outcome = await pw.pay("GB", "PayPal", 42.0)
            assert outcome["state"] == "settled"
            assert [p["amount"] for p in await pw.history()] == [42.0]
        finally:
            await pw.close()
