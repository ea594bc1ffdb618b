"""
PayWays — Python Integration Example

Minimal async client for the PayWays API: log in, submit a simulated
payment, read history.

Requirements: pip install httpx
"""

import asyncio
from typing import Optional

import httpx


class PayWaysClient:
    """Lightweight async client. Keeps the session cookie between calls."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def register(self, email: str, password: str) -> dict:
        resp = await self._client.post("/v1/auth/register", json={"email": email, "password": password})
        resp.raise_for_status()
        return resp.json()

    async def login(self, email: str, password: str) -> dict:
        resp = await self._client.post("/v1/auth/login", json={"email": email, "password": password})
        resp.raise_for_status()
        return resp.json()

    async def countries(self) -> list:
        resp = await self._client.get("/v1/countries")
        resp.raise_for_status()
        return resp.json()

    async def pay(self, country_code: str, payment_method: str, amount: float) -> dict:
        """
        Submit a payment. Returns the flow outcome: state is one of
        settled | denied | rejected, with the risk verdict when assessed.
        """
        resp = await self._client.post(
            "/v1/payments",
            json={"country_code": country_code, "payment_method": payment_method, "amount": amount},
        )
        resp.raise_for_status()
        return resp.json()

    async def history(self) -> list:
        resp = await self._client.get("/v1/payments")
        resp.raise_for_status()
        return resp.json()["payments"]

    async def health(self) -> dict:
        resp = await self._client.get("/health")
        return resp.json()

    async def close(self):
        await self._client.aclose()


# ── Usage example ──

async def main():
    pw = PayWaysClient(base_url="http://localhost:8000")

    health = await pw.health()
    print(f"PayWays status: {health['status']}, risk gateway configured: {health['risk_gateway_configured']}")

    try:
        await pw.login("demo@example.com", "demo")
    except httpx.HTTPStatusError:
        await pw.register("demo@example.com", "demo")

    result = await pw.pay("US", "Credit Card", 100.0)
    print(f"Outcome: {result['state']}")
    if result.get("verdict"):
        print(f"  Risk: {result['verdict']['risk_level']} — {result['verdict']['reason']}")

    for p in await pw.history():
        print(f"  {p['date'][:10]}  {p['country']:<20} {p['payment_method']:<14} {p['amount']:.2f}")

    await pw.close()


if __name__ == "__main__":
    asyncio.run(main())
