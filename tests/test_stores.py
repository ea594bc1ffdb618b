"""
Unit tests for the credential store, catalog store and ledger.
"""
from datetime import datetime, timezone
from typing import Optional

import pytest

from payways.constants import COUNTRIES_KEY, USERS_KEY
from payways.db import KeyValueStore
from payways.errors import CountryNotFound, DuplicateCode, DuplicateEmail, InvalidCredentials, ValidationError
from payways.schemas import CountryProfile, PaymentMethod, Transaction
from payways.stores import CatalogStore, CredentialStore, Ledger, simulated_hash

ADMIN_EMAIL = "admin@payways.com"


def _txn(user_id: Optional[str], country: str = "United States", amount: float = 10.0) -> Transaction:
    return Transaction(
        id=f"t-{user_id}-{amount}",
        user_id=user_id,
        country=country,
        payment_method=PaymentMethod.CREDIT_CARD,
        amount=amount,
        date=datetime.now(timezone.utc),
    )


class BrokenStore:
    """Key-value store whose reads and writes always fail."""

    async def get(self, key: str) -> Optional[str]:
        raise OSError("disk gone")

    async def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


class TestSimulatedHash:
    @pytest.mark.unit
    def test_matches_rolling_hash(self) -> None:
        assert simulated_hash("x") == "simulated_hash_120"
        assert simulated_hash("abc") == "simulated_hash_96354"
        assert simulated_hash("") == "simulated_hash_0"

    @pytest.mark.unit
    def test_wraps_to_signed_32_bit(self) -> None:
        assert simulated_hash("polygenelubricants") == "simulated_hash_-2147483648"


class TestCredentialStore:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_register_then_authenticate(self, kv: KeyValueStore) -> None:
        store = await CredentialStore.load(kv, ADMIN_EMAIL)
        account = await store.register("alice@example.com", "s3cret")
        assert account.is_admin is False
        assert account.password_hash == simulated_hash("s3cret")
        assert store.authenticate("alice@example.com", "s3cret") == account

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_duplicate_email_leaves_store_unchanged(self, kv: KeyValueStore) -> None:
        store = await CredentialStore.load(kv, ADMIN_EMAIL)
        first = await store.register("alice@example.com", "one")
        with pytest.raises(DuplicateEmail):
            await store.register("alice@example.com", "two")
        assert len(store) == 1
        assert store.authenticate("alice@example.com", "one") == first

        reloaded = await CredentialStore.load(kv, ADMIN_EMAIL)
        assert len(reloaded) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_email_is_case_sensitive(self, kv: KeyValueStore) -> None:
        store = await CredentialStore.load(kv, ADMIN_EMAIL)
        await store.register("Alice@example.com", "pw")
        await store.register("alice@example.com", "pw")
        assert len(store) == 2
        with pytest.raises(InvalidCredentials):
            store.authenticate("ALICE@example.com", "pw")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reserved_address_is_admin(self, kv: KeyValueStore) -> None:
        store = await CredentialStore.load(kv, ADMIN_EMAIL)
        assert (await store.register(ADMIN_EMAIL, "x")).is_admin is True
        assert (await store.register("Admin@PayWays.com", "x")).is_admin is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_wrong_secret_and_unknown_email_look_alike(self, kv: KeyValueStore) -> None:
        store = await CredentialStore.load(kv, ADMIN_EMAIL)
        await store.register("bob@example.com", "right")
        with pytest.raises(InvalidCredentials) as wrong:
            store.authenticate("bob@example.com", "wrong")
        with pytest.raises(InvalidCredentials) as missing:
            store.authenticate("nobody@example.com", "right")
        assert wrong.value.message == missing.value.message

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blank_credentials_rejected(self, kv: KeyValueStore) -> None:
        store = await CredentialStore.load(kv, ADMIN_EMAIL)
        with pytest.raises(ValidationError, match="required"):
            await store.register("  ", "pw")
        with pytest.raises(ValidationError):
            store.authenticate("bob@example.com", "")
        assert len(store) == 0


class TestCatalogStore:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_seeded_and_sorted_by_name(self, kv: KeyValueStore) -> None:
        catalog = await CatalogStore.load(kv)
        names = [c.name for c in catalog.list()]
        assert names == sorted(names, key=str.casefold)
        assert catalog.get("us").name == "United States"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_add_rejects_duplicate_code(self, kv: KeyValueStore) -> None:
        catalog = await CatalogStore.load(kv)
        before = len(catalog)
        with pytest.raises(DuplicateCode):
            await catalog.add(CountryProfile(code="us", name="Again", currency={"code": "USD", "symbol": "$"}))
        assert len(catalog) == before

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_add_update_remove_persist(self, kv: KeyValueStore) -> None:
        catalog = await CatalogStore.load(kv)
        await catalog.add(CountryProfile(
            code="FR", name="France", currency={"code": "EUR", "symbol": "€"}, payment_methods=["Credit Card"],
        ))
        await catalog.update(CountryProfile(
            code="FR", name="France", currency={"code": "EUR", "symbol": "€"},
            payment_methods=["Credit Card", "PayPal"],
        ))
        await catalog.remove("jp")

        reloaded = await CatalogStore.load(kv)
        assert reloaded.get("FR").payment_methods == [PaymentMethod.CREDIT_CARD, PaymentMethod.PAYPAL]
        assert reloaded.get("JP") is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_code(self, kv: KeyValueStore) -> None:
        catalog = await CatalogStore.load(kv)
        with pytest.raises(CountryNotFound):
            await catalog.remove("ZZ")
        with pytest.raises(CountryNotFound):
            await catalog.update(CountryProfile(code="ZZ", name="Nowhere", currency={"code": "XXX", "symbol": "?"}))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_remove_keeps_history_names(self, kv: KeyValueStore) -> None:
        catalog = await CatalogStore.load(kv)
        ledger = await Ledger.load(kv)
        await ledger.append(_txn("u1", country="Japan"))

        await catalog.remove("JP")

        assert "Japan" not in [c.name for c in catalog.list()]
        assert ledger.all()[0].country == "Japan"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_corrupt_collection_falls_back_to_seed(self, kv: KeyValueStore) -> None:
        await kv.set(COUNTRIES_KEY, "{not json")
        catalog = await CatalogStore.load(kv)
        assert len(catalog) == 11


class TestLedger:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_newest_first_and_filtering(self, kv: KeyValueStore) -> None:
        ledger = await Ledger.load(kv)
        await ledger.append(_txn("u1", amount=1))
        await ledger.append(_txn("u2", amount=2))
        await ledger.append(_txn(None, amount=3))

        assert [t.amount for t in ledger.all()] == [3, 2, 1]
        assert [t.amount for t in ledger.for_account("u1")] == [1]
        assert ledger.total_volume() == 6

        reloaded = await Ledger.load(kv)
        assert [t.id for t in reloaded.all()] == [t.id for t in ledger.all()]


class TestPersistenceFailures:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_io_is_ignored(self) -> None:
        broken = BrokenStore()
        store = await CredentialStore.load(broken, ADMIN_EMAIL)
        account = await store.register("carol@example.com", "pw")
        assert store.authenticate("carol@example.com", "pw") == account

        ledger = await Ledger.load(broken)
        await ledger.append(_txn(account.id))
        assert len(ledger) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_users_round_trip_through_kv(self, kv: KeyValueStore) -> None:
        store = await CredentialStore.load(kv, ADMIN_EMAIL)
        await store.register("dave@example.com", "pw")
        assert "dave@example.com" in (await kv.get(USERS_KEY))
