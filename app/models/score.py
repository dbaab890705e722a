"""
Tournament score model
"""
from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.time_utils import utc_now


class Score(Base):
    """Computed result for one user in one tournament.

    Rows are only ever written as a full set by a scoring pass.
    """
    __tablename__ = "scores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    score = Column(Integer, nullable=False, default=0)
    rank = Column(Integer, nullable=False)
    reward_amount = Column(Float, nullable=False, default=0.0)

    # Timestamps
    created_at = Column(DateTime, default=utc_now)

    __table_args__ = (
        UniqueConstraint('user_id', 'tournament_id', name='unique_score_per_user'),
        Index('ix_scores_leaderboard', 'tournament_id', 'rank'),
    )

    # Relationships
    tournament = relationship("Tournament", back_populates="scores")
    user = relationship("User", back_populates="scores")
