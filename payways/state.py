"""
Application state shared by every request handler.
"""

from __future__ import annotations

from typing import Optional

from .db import KeyValueStore
from .flow import SubmissionFlow
from .risk import RiskGateway
from .schemas import Account
from .session import Session, SessionRegistry
from .stores import CatalogStore, CredentialStore, Ledger


class AppState:
    def __init__(
        self,
        credentials: CredentialStore,
        catalog: CatalogStore,
        ledger: Ledger,
        gateway: RiskGateway,
        display_delay: Optional[float] = None,
    ):
        self.credentials = credentials
        self.catalog = catalog
        self.ledger = ledger
        self.gateway = gateway
        self.display_delay = display_delay
        self.sessions = SessionRegistry()

    @classmethod
    async def load(
        cls,
        kv: Optional[KeyValueStore],
        gateway: Optional[RiskGateway] = None,
        admin_email: str = "",
        display_delay: Optional[float] = None,
    ) -> "AppState":
        return cls(
            credentials=await CredentialStore.load(kv, admin_email),
            catalog=await CatalogStore.load(kv),
            ledger=await Ledger.load(kv),
            gateway=gateway or RiskGateway(),
            display_delay=display_delay,
        )

    def start_session(self, account: Account) -> Session:
        flow = SubmissionFlow(self.catalog, self.ledger, self.gateway, self.display_delay)
        return self.sessions.open(account, flow)
