"""
Static data: the seed catalog and payment-method presentation.
"""

from __future__ import annotations

from typing import Dict, NamedTuple

from .schemas import CountryProfile, PaymentMethod


class MethodPresentation(NamedTuple):
    icon: str
    label: str


PAYMENT_METHOD_PRESENTATION: Dict[PaymentMethod, MethodPresentation] = {
    PaymentMethod.CREDIT_CARD: MethodPresentation("\U0001F4B3", "Credit Card"),
    PaymentMethod.PAYPAL: MethodPresentation("\U0001F17F", "PayPal"),
    PaymentMethod.BANK_TRANSFER: MethodPresentation("\U0001F3E6", "Bank Transfer"),
    PaymentMethod.CRYPTO: MethodPresentation("₿", "Crypto"),
    PaymentMethod.MOBILE_MONEY: MethodPresentation("\U0001F4F1", "Mobile Money"),
}

_unmapped = set(PaymentMethod) - set(PAYMENT_METHOD_PRESENTATION)
if _unmapped:
    raise RuntimeError(
        "Payment methods without presentation: " + ", ".join(sorted(m.value for m in _unmapped))
    )


# Persistence keys
USERS_KEY = "users"
PAYMENTS_KEY = "paymentHistory"
COUNTRIES_KEY = "countries"


def _country(code: str, name: str, currency: str, symbol: str, *methods: PaymentMethod) -> CountryProfile:
    return CountryProfile(
        code=code,
        name=name,
        currency={"code": currency, "symbol": symbol},
        payment_methods=list(methods),
    )


_CC = PaymentMethod.CREDIT_CARD
_PP = PaymentMethod.PAYPAL
_BT = PaymentMethod.BANK_TRANSFER
_CR = PaymentMethod.CRYPTO
_MM = PaymentMethod.MOBILE_MONEY

INITIAL_COUNTRIES = [
    _country("US", "United States", "USD", "$", _CC, _PP, _BT),
    _country("CA", "Canada", "CAD", "CA$", _CC, _PP),
    _country("GB", "United Kingdom", "GBP", "£", _CC, _PP, _BT),
    _country("AU", "Australia", "AUD", "A$", _CC, _PP),
    _country("DE", "Germany", "EUR", "€", _CC, _BT),
    _country("NG", "Nigeria", "NGN", "₦", _CC, _BT, _MM),
    _country("GH", "Ghana", "GHS", "GH₵", _CC, _MM),
    _country("KE", "Kenya", "KES", "KSh", _CC, _MM),
    _country("ZA", "South Africa", "ZAR", "R", _CC, _BT),
    _country("JP", "Japan", "JPY", "¥", _CC, _BT),
    _country("AE", "United Arab Emirates", "AED", "AED", _CC, _CR),
]
