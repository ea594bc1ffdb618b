"""
Per-browser session: active account and the screen being shown.

Sessions live only in process memory, keyed by a random cookie token, and
disappear on logout or restart.
"""

from __future__ import annotations

import secrets
from typing import Dict, List, Optional

from .errors import AdminRequired, ValidationError
from .flow import SubmissionFlow
from .schemas import Account, Screen, Transaction
from .stores import Ledger


class Session:
    def __init__(self, token: str, account: Account, flow: SubmissionFlow):
        self.token = token
        self.account = account
        self.screen = Screen.PAYMENT
        self.flow = flow

    def show(self, screen: Screen) -> Screen:
        if screen == Screen.UNAUTHENTICATED:
            raise ValidationError("screen", "Log out to leave the app.")
        if screen == Screen.ADMIN and not self.account.is_admin:
            raise AdminRequired()
        self.screen = screen
        return self.screen

    def require_admin(self) -> Account:
        if not self.account.is_admin:
            raise AdminRequired()
        return self.account

    def visible_transactions(self, ledger: Ledger) -> List[Transaction]:
        if self.account.is_admin:
            return ledger.all()
        return ledger.for_account(self.account.id)


class SessionRegistry:
    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def open(self, account: Account, flow: SubmissionFlow) -> Session:
        token = secrets.token_urlsafe(32)
        session = Session(token, account, flow)
        self._sessions[token] = session
        return session

    def get(self, token: Optional[str]) -> Optional[Session]:
        if not token:
            return None
        return self._sessions.get(token)

    def close(self, token: Optional[str]) -> None:
        session = self._sessions.pop(token, None) if token else None
        if session is not None:
            session.flow.cancel()

    def __len__(self) -> int:
        return len(self._sessions)
