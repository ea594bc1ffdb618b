"""
Fraud-risk assessment via the Gemini generateContent API.

The gateway is fail-open: with no API key, on any transport error, and on
any answer that does not parse into a RiskVerdict, it returns a LOW verdict
and the payment settles. That trades risk enforcement for availability and
is only acceptable because every payment here is simulated.
"""

from __future__ import annotations

import json
import time
from typing import Any, Optional, Union

import httpx
from pydantic import ValidationError as PydanticValidationError

from . import config
from .errors import GatewaySchemaViolation, GatewayUnavailable
from .logging_config import get_logger
from .schemas import PaymentMethod, ProviderVerdict, RiskLevel, RiskVerdict

logger = get_logger(__name__)

NO_KEY_REASON = "API key not configured. Defaulting to low risk."
API_ERROR_REASON = "Could not perform risk analysis due to an API error."

PROMPT_TEMPLATE = """
Analyze the following payment transaction for potential fraud risk and return a JSON object.
Transaction details:
- Country: {country}
- Amount ({currency_code}): {currency_symbol}{amount}
- Payment Method: {payment_method}

Consider factors like typical transaction amounts for the country, high-risk countries for certain payment types, unusually large sums, or common fraud patterns associated with the payment method.

Provide:
1. A 'riskLevel' (low, medium, high).
2. A brief 'reason' summarizing the main factor for the risk level.
3. An array of strings called 'indicators' listing specific factors that contributed to the risk assessment (e.g., "Large transaction for this country", "Payment method mismatch", "High-risk region"). If no specific indicators are found, return an empty array.
"""

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "riskLevel": {
            "type": "STRING",
            "enum": [level.value for level in RiskLevel],
            "description": 'The calculated risk level, either "low", "medium", or "high".',
        },
        "reason": {
            "type": "STRING",
            "description": "A brief explanation for the assigned risk level.",
        },
        "indicators": {
            "type": "ARRAY",
            "description": "A list of specific risk indicators found in the transaction.",
            "items": {"type": "STRING"},
        },
    },
    "required": ["riskLevel", "reason", "indicators"],
}


def fallback_verdict(reason: str) -> RiskVerdict:
    return RiskVerdict(risk_level=RiskLevel.LOW, reason=reason, indicators=[])


def parse_verdict(text: str) -> RiskVerdict:
    """Parse the model's JSON text into a RiskVerdict or raise GatewaySchemaViolation."""
    try:
        obj = json.loads(text)
    except (TypeError, ValueError) as e:
        raise GatewaySchemaViolation(f"response is not JSON: {e}") from e
    if not isinstance(obj, dict):
        raise GatewaySchemaViolation(f"expected a JSON object, got {type(obj).__name__}")
    try:
        return ProviderVerdict.model_validate(obj).to_verdict()
    except PydanticValidationError as e:
        raise GatewaySchemaViolation(f"invalid verdict: {e.error_count()} error(s)") from e


def _extract_text(body: Any) -> str:
    try:
        parts = body["candidates"][0]["content"]["parts"]
        text = "".join(p.get("text", "") for p in parts)
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        raise GatewaySchemaViolation("response has no candidate text") from e
    if not text.strip():
        raise GatewaySchemaViolation("candidate text is empty")
    return text.strip()


class RiskGateway:
    """Best-effort remote risk assessment. Never raises to the caller."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = config.GEMINI_API_KEY if api_key is None else api_key
        self.model = model or config.GEMINI_MODEL
        self.base_url = (base_url or config.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.RISK_TIMEOUT_S
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def assess(
        self,
        country: str,
        amount: float,
        payment_method: Union[PaymentMethod, str],
        currency_code: str,
        currency_symbol: str,
    ) -> RiskVerdict:
        if not self.configured:
            logger.warning("risk_gateway_fallback", cause="api_key_missing")
            return fallback_verdict(NO_KEY_REASON)

        method = payment_method.value if isinstance(payment_method, PaymentMethod) else payment_method
        prompt = PROMPT_TEMPLATE.format(
            country=country,
            amount=amount,
            payment_method=method,
            currency_code=currency_code,
            currency_symbol=currency_symbol,
        )

        start = time.monotonic()
        try:
            text = await self._generate(prompt)
            verdict = parse_verdict(text)
        except (GatewayUnavailable, GatewaySchemaViolation) as e:
            logger.error(
                "risk_gateway_fallback",
                cause=type(e).__name__,
                error=str(e),
                elapsed_s=round(time.monotonic() - start, 3),
            )
            return fallback_verdict(API_ERROR_REASON)

        logger.info(
            "risk_assessed",
            risk_level=verdict.risk_level.value,
            indicators=len(verdict.indicators),
            elapsed_s=round(time.monotonic() - start, 3),
        )
        return verdict

    async def _generate(self, prompt: str) -> str:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
            ) as client:
                resp = await client.post(f"/models/{self.model}:generateContent", json=payload)
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as e:
            raise GatewayUnavailable(f"provider returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise GatewayUnavailable(f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise GatewaySchemaViolation("provider body is not JSON") from e
        return _extract_text(body)
