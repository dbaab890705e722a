"""
Explicitly constructed collaborators for the tournament services
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import sessionmaker

from app.core.config import Settings, settings as default_settings
from app.repositories.tournament_repository import TournamentRepository
from app.services.ledger_service import LedgerService, StubLedger
from app.services.oracle_service import StaticPriceOracle


@dataclass
class ServiceContext:
    repository: TournamentRepository
    oracle: StaticPriceOracle
    ledger: LedgerService
    enforce_prediction_window: bool = False


def build_context(session_factory: sessionmaker, config: Optional[Settings] = None) -> ServiceContext:
    """Wire the repository, oracle and ledger from settings"""
    config = config or default_settings
    ledger_client = StubLedger(
        move_package_id=config.MOVE_PACKAGE_ID,
        pools_object_id=config.POOLS_OBJECT_ID,
    )
    return ServiceContext(
        repository=TournamentRepository(session_factory),
        oracle=StaticPriceOracle(),
        ledger=LedgerService(ledger_client, timeout_seconds=config.LEDGER_TIMEOUT_SECONDS),
        enforce_prediction_window=config.ENFORCE_PREDICTION_WINDOW,
    )
