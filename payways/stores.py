"""
In-memory collections mirrored to the key-value store.

Each store owns one collection, keeps it in memory as the source of truth,
and writes the whole collection back after every mutation. A failed write
is logged and ignored.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from typing import Any, Callable, Generic, List, Optional, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from . import config
from .constants import COUNTRIES_KEY, INITIAL_COUNTRIES, PAYMENTS_KEY, USERS_KEY
from .db import KeyValueStore
from .errors import CountryNotFound, DuplicateCode, DuplicateEmail, InvalidCredentials, ValidationError
from .logging_config import get_logger
from .schemas import Account, CountryProfile, Transaction

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def simulated_hash(secret: str) -> str:
    """Deterministic, NON-cryptographic verifier for the demo login.

    Signed 32-bit ``h = h * 31 + unit`` over the UTF-16 code units of the
    secret. Anyone holding the stored value can brute-force it instantly.
    """
    h = 0
    data = secret.encode("utf-16-le")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return f"simulated_hash_{h}"


class _Collection(Generic[M]):
    key: str = ""

    def __init__(self, kv: Optional[KeyValueStore], items: List[M]):
        self._kv = kv
        self._items = items
        self._lock = asyncio.Lock()

    @classmethod
    async def _read(
        cls, kv: Optional[KeyValueStore], model: type, default: Callable[[], List[Any]]
    ) -> List[Any]:
        if kv is None:
            return default()
        try:
            raw = await kv.get(cls.key)
        except Exception as e:
            logger.error("persistence_read_failed", key=cls.key, error=str(e))
            return default()
        if raw is None:
            return default()
        try:
            return TypeAdapter(List[model]).validate_json(raw)
        except PydanticValidationError as e:
            logger.warning("persisted_collection_invalid", key=cls.key, errors=e.error_count())
            return default()

    async def save(self) -> None:
        if self._kv is None:
            return
        async with self._lock:
            payload = json.dumps([item.model_dump(mode="json") for item in self._items])
            try:
                await self._kv.set(self.key, payload)
            except Exception as e:
                logger.error("persistence_write_failed", key=self.key, error=str(e))

    def __len__(self) -> int:
        return len(self._items)


class CredentialStore(_Collection[Account]):
    key = USERS_KEY

    def __init__(self, kv: Optional[KeyValueStore], items: List[Account], admin_email: str = ""):
        super().__init__(kv, items)
        self.admin_email = (admin_email or config.ADMIN_EMAIL).lower()

    @classmethod
    async def load(cls, kv: Optional[KeyValueStore], admin_email: str = "") -> "CredentialStore":
        return cls(kv, await cls._read(kv, Account, list), admin_email)

    def find(self, email: str) -> Optional[Account]:
        for account in self._items:
            if account.email == email:
                return account
        return None

    def get(self, account_id: str) -> Optional[Account]:
        for account in self._items:
            if account.id == account_id:
                return account
        return None

    async def register(self, email: str, secret: str) -> Account:
        _require_credentials(email, secret)
        if self.find(email) is not None:
            raise DuplicateEmail()
        account = Account(
            id=uuid.uuid4().hex,
            email=email,
            password_hash=simulated_hash(secret),
            is_admin=email.lower() == self.admin_email,
        )
        self._items.append(account)
        await self.save()
        logger.info("account_registered", account_id=account.id, is_admin=account.is_admin)
        return account

    def authenticate(self, email: str, secret: str) -> Account:
        _require_credentials(email, secret)
        verifier = simulated_hash(secret)
        account = self.find(email)
        if account is None or account.password_hash != verifier:
            logger.info("authentication_failed")
            raise InvalidCredentials()
        return account


def _require_credentials(email: str, secret: str) -> None:
    if not email.strip() or not secret.strip():
        raise ValidationError("email" if not email.strip() else "password",
                              "Email and password are required.")


def _seed_countries() -> List[CountryProfile]:
    return [c.model_copy(deep=True) for c in INITIAL_COUNTRIES]


class CatalogStore(_Collection[CountryProfile]):
    key = COUNTRIES_KEY

    @classmethod
    async def load(cls, kv: Optional[KeyValueStore]) -> "CatalogStore":
        return cls(kv, await cls._read(kv, CountryProfile, _seed_countries))

    def list(self) -> List[CountryProfile]:
        return sorted(self._items, key=lambda c: c.name.casefold())

    def get(self, code: str) -> Optional[CountryProfile]:
        code = code.strip().upper()
        for country in self._items:
            if country.code == code:
                return country
        return None

    async def add(self, profile: CountryProfile) -> CountryProfile:
        if self.get(profile.code) is not None:
            raise DuplicateCode()
        self._items.append(profile)
        await self.save()
        logger.info("country_added", code=profile.code)
        return profile

    async def update(self, profile: CountryProfile) -> CountryProfile:
        for i, country in enumerate(self._items):
            if country.code == profile.code:
                self._items[i] = profile
                await self.save()
                logger.info("country_updated", code=profile.code)
                return profile
        raise CountryNotFound()

    async def remove(self, code: str) -> None:
        existing = self.get(code)
        if existing is None:
            raise CountryNotFound()
        self._items = [c for c in self._items if c.code != existing.code]
        await self.save()
        logger.info("country_removed", code=existing.code)


class Ledger(_Collection[Transaction]):
    """Settled payments, newest first. Never mutated or pruned."""

    key = PAYMENTS_KEY

    @classmethod
    async def load(cls, kv: Optional[KeyValueStore]) -> "Ledger":
        return cls(kv, await cls._read(kv, Transaction, list))

    async def append(self, txn: Transaction) -> Transaction:
        self._items.insert(0, txn)
        await self.save()
        return txn

    def all(self) -> List[Transaction]:
        return list(self._items)

    def for_account(self, account_id: str) -> List[Transaction]:
        return [t for t in self._items if t.user_id == account_id]

    def total_volume(self) -> float:
        # Sums across currencies as-is; there is no conversion.
        return sum(t.amount for t in self._items)
