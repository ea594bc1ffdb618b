"""
Pydantic models for persisted records and API bodies.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator


class PaymentMethod(str, Enum):
    CREDIT_CARD = "Credit Card"
    PAYPAL = "PayPal"
    BANK_TRANSFER = "Bank Transfer"
    CRYPTO = "Crypto"
    MOBILE_MONEY = "Mobile Money"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


class FlowState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    ASSESSING = "assessing"
    SETTLED = "settled"
    DENIED = "denied"
    REJECTED = "rejected"


class Screen(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    PAYMENT = "payment"
    HISTORY = "history"
    ADMIN = "admin"


# ── Catalog ──

class Currency(BaseModel):
    code: str = Field(..., min_length=3, max_length=3, description="ISO 4217 code, e.g. USD")
    symbol: str = Field(..., min_length=1, max_length=8, description="Display symbol, e.g. $")

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        if not v.isalpha():
            raise ValueError("Currency code must be 3 letters")
        return v.upper()


class CountryDetails(BaseModel):
    """Mutable part of a country profile (everything but the code)."""

    name: str = Field(..., min_length=1)
    currency: Currency
    payment_methods: List[PaymentMethod] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v

    @field_validator("payment_methods")
    @classmethod
    def dedupe_methods(cls, v: List[PaymentMethod]) -> List[PaymentMethod]:
        seen = set(v)
        return [m for m in PaymentMethod if m in seen]


class CountryProfile(CountryDetails):
    code: str = Field(..., min_length=2, max_length=2, description="ISO 3166 alpha-2 code")

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        if not v.isalpha() or not v.isascii():
            raise ValueError("Country code must be two letters")
        return v.upper()

    def accepts(self, method: PaymentMethod) -> bool:
        return method in self.payment_methods


# ── Accounts ──

class Account(BaseModel):
    id: str
    email: str
    password_hash: str
    is_admin: bool = False

    def public(self) -> "AccountOut":
        return AccountOut(id=self.id, email=self.email, is_admin=self.is_admin)


class AccountOut(BaseModel):
    id: str
    email: str
    is_admin: bool


class Credentials(BaseModel):
    email: str = ""
    password: str = ""


# ── Ledger ──

class Transaction(BaseModel):
    id: str
    user_id: Optional[str] = None
    country: str
    payment_method: PaymentMethod
    amount: float = Field(..., ge=0)
    date: datetime


# ── Risk ──

class RiskVerdict(BaseModel):
    risk_level: RiskLevel
    reason: str = Field(..., min_length=1)
    indicators: List[str]

    @property
    def denies(self) -> bool:
        return self.risk_level == RiskLevel.HIGH


class ProviderVerdict(BaseModel):
    """The provider's answer, exactly as the response schema names it."""

    risk_level: RiskLevel = Field(..., alias="riskLevel")
    reason: str = Field(..., min_length=1)
    indicators: List[str]

    def to_verdict(self) -> RiskVerdict:
        return RiskVerdict(risk_level=self.risk_level, reason=self.reason, indicators=self.indicators)


# ── Submission flow ──

class PaymentSubmission(BaseModel):
    """Raw payment form. Checked by the submission flow, not here."""

    country_code: str = ""
    payment_method: str = ""
    amount: Union[float, str, None] = None


class FieldMessage(BaseModel):
    field: str
    message: str


class FlowStatus(BaseModel):
    state: FlowState
    verdict: Optional[RiskVerdict] = None
    transaction: Optional[Transaction] = None
    error: Optional[FieldMessage] = None
    message: str = ""


# ── Session / views ──

class ViewChange(BaseModel):
    screen: Screen


class SessionOut(BaseModel):
    account: Optional[AccountOut] = None
    screen: Screen = Screen.UNAUTHENTICATED


class PaymentMethodOut(BaseModel):
    method: PaymentMethod
    icon: str
    label: str


class Stats(BaseModel):
    total_transactions: int
    total_volume: float
    countries: int
