"""
Storage for tournaments, users, joins, predictions and scores.

Every method opens its own short-lived session and returns detached rows,
so callers never hold entity state across calls.
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from app.core.constants import TournamentStatus
from app.core.exceptions import AlreadyPredictedError
from app.models.prediction import Prediction
from app.models.score import Score
from app.models.tournament import Tournament, TournamentJoin
from app.models.user import User
from app.schemas.score import ScoreEntry


class TournamentRepository:
    """SQLAlchemy-backed tournament store"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def upsert_user(self, wallet_address: str) -> User:
        """Find or create a user by wallet address"""
        with self._session() as db:
            user = db.query(User).filter(User.wallet_address == wallet_address).first()
            if user:
                return user

            user = User(wallet_address=wallet_address)
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                # Lost a race with a concurrent upsert for the same address
                db.rollback()
                return db.query(User).filter(User.wallet_address == wallet_address).one()
            return user

    # ------------------------------------------------------------------
    # Tournaments
    # ------------------------------------------------------------------

    def find_tournament(self, tournament_id: int) -> Optional[Tournament]:
        with self._session() as db:
            return db.get(Tournament, tournament_id)

    def list_tournaments(self) -> List[Tournament]:
        with self._session() as db:
            return db.query(Tournament).order_by(desc(Tournament.start_time), desc(Tournament.id)).all()

    def create_tournament(
        self,
        name: str,
        entry_fee: str,
        duration: str,
        start_time: datetime,
        end_time: datetime,
        reveal_time: datetime,
        status: str = TournamentStatus.ACTIVE.value,
        creator_id: Optional[int] = None,
    ) -> Tournament:
        with self._session() as db:
            tournament = Tournament(
                name=name,
                entry_fee=entry_fee,
                duration=duration,
                status=status,
                start_time=start_time,
                end_time=end_time,
                reveal_time=reveal_time,
                creator_id=creator_id,
            )
            db.add(tournament)
            db.commit()
            return tournament

    def update_tournament_status(self, tournament_id: int, status: str) -> None:
        with self._session() as db:
            db.query(Tournament).filter(Tournament.id == tournament_id).update(
                {Tournament.status: status}, synchronize_session=False
            )
            db.commit()

    def list_tournaments_by_status(self, status: str) -> List[Tournament]:
        with self._session() as db:
            return db.query(Tournament).filter(Tournament.status == status).order_by(Tournament.id).all()

    def list_due_tournaments(self, now: datetime) -> List[Tournament]:
        """Tournaments past reveal that have not been scored yet"""
        with self._session() as db:
            return db.query(Tournament).filter(
                Tournament.reveal_time <= now,
                Tournament.status != TournamentStatus.FINISHED.value
            ).order_by(Tournament.reveal_time, Tournament.id).all()

    # ------------------------------------------------------------------
    # Joins
    # ------------------------------------------------------------------

    def upsert_join(self, user_id: int, tournament_id: int) -> bool:
        """Record a join; returns False when the user had already joined"""
        with self._session() as db:
            existing = db.query(TournamentJoin).filter(
                TournamentJoin.user_id == user_id,
                TournamentJoin.tournament_id == tournament_id
            ).first()
            if existing:
                return False

            db.add(TournamentJoin(user_id=user_id, tournament_id=tournament_id))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                return False
            return True

    def count_joins(self, tournament_id: int) -> int:
        with self._session() as db:
            count = db.query(func.count(TournamentJoin.id)).filter(
                TournamentJoin.tournament_id == tournament_id
            ).scalar()
            return count or 0

    def list_user_joins(self, user_id: int) -> List[Tuple[int, str]]:
        """(tournament id, tournament status) for every tournament a user joined"""
        with self._session() as db:
            rows = db.query(TournamentJoin.tournament_id, Tournament.status).join(
                Tournament, TournamentJoin.tournament_id == Tournament.id
            ).filter(
                TournamentJoin.user_id == user_id
            ).order_by(TournamentJoin.joined_at, TournamentJoin.id).all()
            return [(tournament_id, status) for tournament_id, status in rows]

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    def find_prediction(self, user_id: int, tournament_id: int, asset_symbol: str) -> Optional[Prediction]:
        with self._session() as db:
            return db.query(Prediction).filter(
                Prediction.user_id == user_id,
                Prediction.tournament_id == tournament_id,
                Prediction.asset_symbol == asset_symbol
            ).first()

    def create_prediction(
        self,
        user_id: int,
        tournament_id: int,
        asset_symbol: str,
        predicted_direction: str
    ) -> Prediction:
        """Insert a prediction; a uniqueness violation means it already exists"""
        with self._session() as db:
            prediction = Prediction(
                user_id=user_id,
                tournament_id=tournament_id,
                asset_symbol=asset_symbol,
                predicted_direction=predicted_direction,
            )
            db.add(prediction)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise AlreadyPredictedError(asset_symbol)
            return prediction

    def list_predictions(self, tournament_id: int, user_id: Optional[int] = None) -> List[Prediction]:
        """Predictions for a tournament; newest first when scoped to one user"""
        with self._session() as db:
            query = db.query(Prediction).filter(Prediction.tournament_id == tournament_id)
            if user_id is not None:
                query = query.filter(Prediction.user_id == user_id).order_by(
                    desc(Prediction.created_at), desc(Prediction.id)
                )
            else:
                query = query.order_by(Prediction.created_at, Prediction.id)
            return query.all()

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def replace_scores(self, tournament_id: int, entries: Sequence[ScoreEntry]) -> None:
        """Delete the tournament's scores and insert the new set in one transaction"""
        with self._session() as db:
            with db.begin():
                db.query(Score).filter(Score.tournament_id == tournament_id).delete(
                    synchronize_session=False
                )
                db.add_all([
                    Score(
                        tournament_id=tournament_id,
                        user_id=entry.user_id,
                        score=entry.score,
                        rank=entry.rank,
                        reward_amount=entry.reward_amount,
                    )
                    for entry in entries
                ])

    def list_scores(self, tournament_id: int) -> List[Tuple[Score, str]]:
        """(score row, wallet address) ordered by rank"""
        with self._session() as db:
            rows = db.query(Score, User.wallet_address).join(
                User, Score.user_id == User.id
            ).filter(
                Score.tournament_id == tournament_id
            ).order_by(Score.rank).all()
            return [(score, address) for score, address in rows]
