"""
Due-tournament sweeper: scores every tournament whose reveal time has passed
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from app.core.exceptions import ScoringInProgressError
from app.services.tournament_service import TournamentService
from app.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class SweepOutcome:
    tournament_id: int
    scored: bool = False
    skipped: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.tournament_id,
            "scored": self.scored,
            "skipped": self.skipped,
            "error": self.error,
        }


class TournamentSweeper:
    """Finds tournaments past reveal and scores them one at a time"""

    def __init__(self, tournament_service: TournamentService, clock: Callable[[], datetime] = utc_now):
        self.tournament_service = tournament_service
        self.clock = clock

    async def run_once(self, now: Optional[datetime] = None) -> List[SweepOutcome]:
        """Run a single sweep. A failure on one tournament does not stop the rest."""
        now = now or self.clock()
        due = self.tournament_service.list_due_tournaments(now)

        outcomes = []
        for tournament in due:
            outcome = SweepOutcome(tournament_id=tournament.id)
            try:
                result = await self.tournament_service.compute_scores(
                    tournament.id, wait=False, skip_finished=True
                )
                outcome.scored = bool(result and result.results)
            except ScoringInProgressError:
                logger.info(f"Tournament {tournament.id} is already being scored, skipping")
                outcome.skipped = True
            except Exception as e:
                logger.exception(f"Failed to score tournament {tournament.id}")
                outcome.error = str(e) or type(e).__name__
            outcomes.append(outcome)

        return outcomes
