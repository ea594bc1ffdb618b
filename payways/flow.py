"""
Payment submission state machine.

    idle -> validating -> assessing -> settled | denied
                      \\-> rejected

Only a HIGH verdict denies; LOW and MEDIUM settle. Settled and denied
results are shown for a fixed delay and then reset to idle on their own;
rejected waits for the next edit.
"""

from __future__ import annotations

import asyncio
import math
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple

from . import config
from .errors import SubmissionInProgress, ValidationError
from .logging_config import get_logger
from .risk import RiskGateway
from .schemas import (
    Account,
    CountryProfile,
    FieldMessage,
    FlowState,
    FlowStatus,
    PaymentMethod,
    PaymentSubmission,
    Transaction,
)
from .stores import CatalogStore, Ledger

logger = get_logger(__name__)

ANALYZING_MESSAGE = "Securing connection and analyzing transaction..."
SETTLED_MESSAGE = "Payment successful."
DENIED_MESSAGE = "Payment denied due to high fraud risk."
ABANDONED_MESSAGE = "Submission abandoned."

_BUSY = (FlowState.VALIDATING, FlowState.ASSESSING)
_SHOWING_RESULT = (FlowState.SETTLED, FlowState.DENIED)


def parse_amount(raw) -> float:
    if raw is None or isinstance(raw, bool) or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError("amount", "Enter an amount.")
    try:
        amount = float(raw)
    except (TypeError, ValueError):
        raise ValidationError("amount", "Amount must be a number.")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("amount", "Amount must be greater than zero.")
    return amount


def validate_submission(
    catalog: CatalogStore, form: PaymentSubmission
) -> Tuple[CountryProfile, PaymentMethod, float]:
    country = catalog.get(form.country_code) if form.country_code.strip() else None
    if country is None:
        raise ValidationError("country_code", "Select a supported country.")
    try:
        method = PaymentMethod(form.payment_method)
    except ValueError:
        raise ValidationError("payment_method", "Select a payment method.")
    if not country.accepts(method):
        raise ValidationError(
            "payment_method", f"{method.value} is not accepted in {country.name}."
        )
    return country, method, parse_amount(form.amount)


class SubmissionFlow:
    def __init__(
        self,
        catalog: CatalogStore,
        ledger: Ledger,
        gateway: RiskGateway,
        display_delay: Optional[float] = None,
    ):
        self._catalog = catalog
        self._ledger = ledger
        self._gateway = gateway
        self.display_delay = config.RESULT_DISPLAY_S if display_delay is None else display_delay
        self._status = FlowStatus(state=FlowState.IDLE)
        # Bumped on every reset; a verdict for an older generation is dropped.
        self._generation = 0
        self._reset_handle: Optional[asyncio.TimerHandle] = None

    @property
    def state(self) -> FlowState:
        return self._status.state

    def status(self) -> FlowStatus:
        return self._status

    async def submit(self, account: Optional[Account], form: PaymentSubmission) -> FlowStatus:
        if self.state in _BUSY:
            raise SubmissionInProgress()
        self._reset()
        generation = self._generation

        self._status = FlowStatus(state=FlowState.VALIDATING)
        try:
            country, method, amount = validate_submission(self._catalog, form)
        except ValidationError as e:
            logger.info("payment_rejected", field=e.field)
            self._status = FlowStatus(
                state=FlowState.REJECTED,
                error=FieldMessage(field=e.field, message=e.message),
                message=e.message,
            )
            return self._status

        self._status = FlowStatus(state=FlowState.ASSESSING, message=ANALYZING_MESSAGE)
        try:
            return await self._assess(generation, account, country, method, amount)
        except BaseException:
            # A cancelled or failed assessment must not leave the flow busy.
            if generation == self._generation:
                logger.warning("payment_assessment_interrupted", country=country.code)
                self._reset()
            raise

    async def _assess(
        self,
        generation: int,
        account: Optional[Account],
        country: CountryProfile,
        method: PaymentMethod,
        amount: float,
    ) -> FlowStatus:
        verdict = await self._gateway.assess(
            country=country.name,
            amount=amount,
            payment_method=method,
            currency_code=country.currency.code,
            currency_symbol=country.currency.symbol,
        )

        if generation != self._generation:
            logger.info("payment_abandoned", risk_level=verdict.risk_level.value)
            return FlowStatus(state=FlowState.IDLE, verdict=verdict, message=ABANDONED_MESSAGE)

        if verdict.denies:
            logger.info("payment_denied", country=country.code, method=method.value)
            self._status = FlowStatus(state=FlowState.DENIED, verdict=verdict, message=DENIED_MESSAGE)
        else:
            txn = await self._settle(account, country, method, amount)
            self._status = FlowStatus(
                state=FlowState.SETTLED, verdict=verdict, transaction=txn, message=SETTLED_MESSAGE
            )
        self._schedule_reset(generation)
        return self._status

    async def _settle(
        self, account: Optional[Account], country: CountryProfile, method: PaymentMethod, amount: float
    ) -> Transaction:
        txn = Transaction(
            id=uuid.uuid4().hex,
            user_id=account.id if account else None,
            country=country.name,
            payment_method=method,
            amount=amount,
            date=datetime.now(timezone.utc),
        )
        await self._ledger.append(txn)
        logger.info(
            "payment_settled",
            transaction_id=txn.id,
            country=country.code,
            method=method.value,
            amount=amount,
        )
        return txn

    def acknowledge(self) -> FlowStatus:
        """User dismissed a settled/denied result."""
        if self.state in _SHOWING_RESULT:
            self._reset()
        return self._status

    def edit(self) -> FlowStatus:
        """User changed the form after a rejection."""
        if self.state == FlowState.REJECTED:
            self._reset()
        return self._status

    def cancel(self) -> None:
        """Abandon whatever is in flight; a pending verdict will not settle."""
        self._reset()

    def _reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None
        self._generation += 1
        self._status = FlowStatus(state=FlowState.IDLE)

    def _schedule_reset(self, generation: int) -> None:
        loop = asyncio.get_running_loop()
        self._reset_handle = loop.call_later(self.display_delay, self._auto_reset, generation)

    def _auto_reset(self, generation: int) -> None:
        self._reset_handle = None
        if generation == self._generation and self.state in _SHOWING_RESULT:
            self._reset()
