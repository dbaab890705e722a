"""
Shared fixtures: in-memory SQLite, a recording ledger and a wired service.
"""
import asyncio
from datetime import datetime
from typing import List, Optional

import pytest

from app.core.context import ServiceContext
from app.database import build_engine, build_session_factory, init_db
from app.models.tournament import Tournament
from app.repositories.tournament_repository import TournamentRepository
from app.schemas.ledger import LedgerReceipt, PayoutWinner
from app.services.ledger_service import LedgerService
from app.services.oracle_service import StaticPriceOracle
from app.services.tournament_service import TournamentService


class RecordingLedger:
    """Ledger client that remembers every call"""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.joins = []
        self.payouts = []

    async def record_join(self, tournament_id: int, user_address: str, entry_fee: str) -> LedgerReceipt:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.joins.append((tournament_id, user_address, entry_fee))
        return LedgerReceipt(confirmed=True, reference=f"join-{tournament_id}-{len(self.joins)}")

    async def record_payout(self, tournament_id: int, winners: List[PayoutWinner]) -> LedgerReceipt:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.payouts.append((tournament_id, list(winners)))
        return LedgerReceipt(confirmed=True, reference=f"payout-{tournament_id}-{len(self.payouts)}")


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def repository(session_factory):
    return TournamentRepository(session_factory)


@pytest.fixture
def ledger_client():
    return RecordingLedger()


def make_service(repository, ledger_client, enforce_prediction_window: bool = False, timeout: float = 1.0):
    context = ServiceContext(
        repository=repository,
        oracle=StaticPriceOracle(),
        ledger=LedgerService(ledger_client, timeout_seconds=timeout),
        enforce_prediction_window=enforce_prediction_window,
    )
    return TournamentService(context)


@pytest.fixture
def service(repository, ledger_client):
    return make_service(repository, ledger_client)


@pytest.fixture
def reschedule(session_factory):
    """Move a tournament's end/reveal times, e.g. into the past"""

    def _reschedule(tournament_id: int, end_time: Optional[datetime] = None, reveal_time: Optional[datetime] = None):
        with session_factory() as db:
            tournament = db.get(Tournament, tournament_id)
            if end_time is not None:
                tournament.end_time = end_time
            if reveal_time is not None:
                tournament.reveal_time = reveal_time
            db.commit()

    return _reschedule
