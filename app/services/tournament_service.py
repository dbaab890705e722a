"""
Tournament service: creation, joins, predictions and scoring
"""
import asyncio
import logging
import weakref
from datetime import datetime, timedelta
from typing import List, Optional, Union

from app.core.constants import (
    DEFAULT_DURATION_SECONDS,
    DEFAULT_TOURNAMENT_NAME,
    DURATION_SECONDS,
    PLACEHOLDER_BUDGET,
    TournamentStatus,
)
from app.core.context import ServiceContext
from app.core.exceptions import (
    AlreadyPredictedError,
    PredictionWindowClosedError,
    ScoringInProgressError,
)
from app.models.tournament import Tournament
from app.schemas.ledger import PayoutWinner
from app.schemas.tournament import (
    JoinResponse,
    LeaderboardRow,
    PredictionResponse,
    ScoringResponse,
    TournamentResponse,
)
from app.schemas.user import JoinedTournament, ProfileResponse
from app.services.scoring_service import build_score_entries
from app.utils.time_utils import parse_iso_datetime, utc_now

logger = logging.getLogger(__name__)


def duration_to_timedelta(duration: str) -> timedelta:
    """Length of a duration class; unknown classes count as one hour"""
    return timedelta(seconds=DURATION_SECONDS.get(duration, DEFAULT_DURATION_SECONDS))


class TournamentService:
    """Service for tournament operations"""

    def __init__(self, context: ServiceContext):
        self.repository = context.repository
        self.oracle = context.oracle
        self.ledger = context.ledger
        self.enforce_prediction_window = context.enforce_prediction_window
        # Entries vanish once no pass holds or waits on the lock
        self._scoring_locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_tournaments(self) -> List[TournamentResponse]:
        """All tournaments, most recently started first"""
        return [self._to_response(t) for t in self.repository.list_tournaments()]

    def get_tournament(self, tournament_id: int) -> Optional[TournamentResponse]:
        tournament = self.repository.find_tournament(tournament_id)
        if not tournament:
            return None
        return self._to_response(tournament)

    def list_due_tournaments(self, now: datetime) -> List[Tournament]:
        """Tournaments whose reveal time has passed and that are not finished"""
        return self.repository.list_due_tournaments(now)

    def get_results(self, tournament_id: int) -> Optional[List[LeaderboardRow]]:
        """Stored scores in rank order, or None if the tournament does not exist"""
        if not self.repository.find_tournament(tournament_id):
            return None
        return self._leaderboard(tournament_id)

    def list_my_predictions(self, tournament_id: int, user_address: str) -> Optional[List[PredictionResponse]]:
        tournament = self.repository.find_tournament(tournament_id)
        if not tournament:
            return None

        user = self.repository.upsert_user(user_address)
        predictions = self.repository.list_predictions(tournament.id, user_id=user.id)
        return [PredictionResponse.model_validate(p) for p in predictions]

    def get_profile(self, user_address: str) -> ProfileResponse:
        user = self.repository.upsert_user(user_address)
        joins = self.repository.list_user_joins(user.id)
        return ProfileResponse(
            address=user.wallet_address,
            budget=PLACEHOLDER_BUDGET,
            joined_tournaments=[
                JoinedTournament(id=tournament_id, status=status)
                for tournament_id, status in joins
            ]
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_tournament(
        self,
        name: Optional[str],
        entry_fee: str,
        duration: str,
        reveal_time: Union[str, datetime, None] = None,
        creator_address: Optional[str] = None
    ) -> TournamentResponse:
        """
        Create a tournament that starts immediately.

        The reveal time is kept only if it is a valid instant strictly after
        the end of the prediction window; otherwise it is clamped to the end.
        """
        duration = getattr(duration, "value", duration)
        start_time = utc_now()
        end_time = start_time + duration_to_timedelta(duration)

        requested_reveal = parse_iso_datetime(reveal_time)
        if requested_reveal is not None and requested_reveal > end_time:
            reveal = requested_reveal
        else:
            reveal = end_time

        creator = self.repository.upsert_user(creator_address) if creator_address else None

        tournament = self.repository.create_tournament(
            name=name.strip() if name and name.strip() else DEFAULT_TOURNAMENT_NAME,
            entry_fee=entry_fee,
            duration=duration,
            start_time=start_time,
            end_time=end_time,
            reveal_time=reveal,
            status=TournamentStatus.ACTIVE.value,
            creator_id=creator.id if creator else None,
        )
        logger.info(f"Created tournament {tournament.id} ({duration}, fee {entry_fee}), reveal at {reveal.isoformat()}")
        return self._to_response(tournament)

    async def add_join(self, user_address: str, tournament_id: int) -> Optional[JoinResponse]:
        """
        Join a tournament. Rejoining is a no-op.

        The ledger is told about the join after it is stored; its receipt is
        passed back but never undoes the join.
        """
        tournament = self.repository.find_tournament(tournament_id)
        if not tournament:
            return None

        if self.enforce_prediction_window and tournament.status == TournamentStatus.FINISHED.value:
            raise PredictionWindowClosedError("Tournament has ended")

        user = self.repository.upsert_user(user_address)
        created = self.repository.upsert_join(user.id, tournament.id)
        if created:
            logger.info(f"User {user_address} joined tournament {tournament.id}")

        receipt = await self.ledger.record_join(tournament.id, user_address, tournament.entry_fee)

        participants = self.repository.count_joins(tournament.id)
        refreshed = self.repository.find_tournament(tournament.id)

        return JoinResponse(
            joined=True,
            participants=participants,
            tournament=self._to_response(refreshed) if refreshed else None,
            on_chain=receipt
        )

    def add_prediction(
        self,
        tournament_id: int,
        user_address: str,
        asset_symbol: str,
        predicted_direction: str
    ) -> Optional[PredictionResponse]:
        """Store a pick; each (user, tournament, asset) may be predicted once"""
        tournament = self.repository.find_tournament(tournament_id)
        if not tournament:
            return None

        if self.enforce_prediction_window:
            if tournament.status == TournamentStatus.FINISHED.value or utc_now() > tournament.end_time:
                raise PredictionWindowClosedError("Prediction window has closed")

        user = self.repository.upsert_user(user_address)

        if self.repository.find_prediction(user.id, tournament.id, asset_symbol):
            raise AlreadyPredictedError(asset_symbol)

        # A concurrent duplicate that slips past the check fails on the unique constraint
        prediction = self.repository.create_prediction(
            user_id=user.id,
            tournament_id=tournament.id,
            asset_symbol=asset_symbol,
            predicted_direction=predicted_direction,
        )
        return PredictionResponse.model_validate(prediction)

    async def compute_scores(
        self,
        tournament_id: int,
        wait: bool = True,
        skip_finished: bool = False
    ) -> Optional[ScoringResponse]:
        """
        Score a tournament. At most one pass per tournament runs at a time.

        If a pass is already in flight, ``wait=True`` blocks until it is done
        and returns its stored results, or scores the tournament itself if
        that pass failed; ``wait=False`` raises ScoringInProgressError. With
        ``skip_finished=True`` an already finished tournament is reported
        as-is instead of being rescored.
        """
        if not self.repository.find_tournament(tournament_id):
            return None

        lock = self._scoring_locks.setdefault(tournament_id, asyncio.Lock())

        waited = lock.locked()
        if waited and not wait:
            raise ScoringInProgressError(tournament_id)

        async with lock:
            tournament = self.repository.find_tournament(tournament_id)
            finished = tournament.status == TournamentStatus.FINISHED.value
            if finished and (waited or skip_finished):
                return ScoringResponse(results=self._leaderboard(tournament_id), payout=None)
            return await self._score_tournament(tournament)

    async def rescore_finished(self) -> List[ScoringResponse]:
        """Recompute scores of every finished tournament, one at a time"""
        results = []
        for tournament in self.repository.list_tournaments_by_status(TournamentStatus.FINISHED.value):
            outcome = await self.compute_scores(tournament.id)
            logger.info(
                f"Rescored tournament {tournament.id}: "
                f"{[row.model_dump(by_alias=True) for row in outcome.results]}"
            )
            results.append(outcome)
        return results

    async def _score_tournament(self, tournament: Tournament) -> ScoringResponse:
        predictions = self.repository.list_predictions(tournament.id)
        participants = self.repository.count_joins(tournament.id)
        actual_directions = self.oracle.get_actual_directions()

        entries = build_score_entries(predictions, participants, tournament.entry_fee, actual_directions)

        self.repository.replace_scores(tournament.id, entries)
        self.repository.update_tournament_status(tournament.id, TournamentStatus.FINISHED.value)

        results = self._leaderboard(tournament.id)
        winners = [
            PayoutWinner(address=row.user_address, amount=row.reward_amount)
            for row in results
            if row.reward_amount > 0
        ]
        payout = await self.ledger.record_payout(tournament.id, winners) if winners else None

        logger.info(
            f"Scored tournament {tournament.id}: {len(results)} ranked, "
            f"{participants} participants, {len(winners)} winners"
        )
        return ScoringResponse(results=results, payout=payout)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _leaderboard(self, tournament_id: int) -> List[LeaderboardRow]:
        return [
            LeaderboardRow(
                rank=score.rank,
                user_address=address,
                score=score.score,
                reward_amount=score.reward_amount
            )
            for score, address in self.repository.list_scores(tournament_id)
        ]

    def _to_response(self, tournament: Tournament) -> TournamentResponse:
        finished = tournament.status == TournamentStatus.FINISHED.value
        return TournamentResponse(
            id=tournament.id,
            name=tournament.name,
            entry_fee=tournament.entry_fee,
            duration=tournament.duration,
            participants=self.repository.count_joins(tournament.id),
            status=tournament.status,
            start_time=tournament.start_time,
            end_time=tournament.end_time,
            reveal_time=tournament.reveal_time,
            leaderboard=self._leaderboard(tournament.id) if finished else None
        )
