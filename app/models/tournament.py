"""
Tournament system models
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from app.core.constants import TournamentStatus
from app.database import Base
from app.utils.time_utils import utc_now


class Tournament(Base):
    """Tournament definition"""
    __tablename__ = "tournaments"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Tournament details
    name = Column(String(255), nullable=False)
    entry_fee = Column(String(64), nullable=False)  # Exact decimal string
    duration = Column(String(8), nullable=False)  # '1m', '15m', '1h', '4h', '24h'
    status = Column(String(50), default=TournamentStatus.ACTIVE.value, nullable=False)  # 'upcoming', 'active', 'finished'

    # Schedule
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    reveal_time = Column(DateTime, nullable=False)

    # Informational only
    creator_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utc_now)

    # Relationships
    joins = relationship("TournamentJoin", back_populates="tournament", cascade="all, delete-orphan")
    predictions = relationship("Prediction", back_populates="tournament", cascade="all, delete-orphan")
    scores = relationship("Score", back_populates="tournament", cascade="all, delete-orphan")
    creator = relationship("User")

    # Sweeper lookup
    __table_args__ = (
        Index('ix_tournaments_due', 'status', 'reveal_time'),
    )


class TournamentJoin(Base):
    """User's entry in a tournament"""
    __tablename__ = "tournament_joins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    # Timestamps
    joined_at = Column(DateTime, default=utc_now)

    # Unique constraint - one entry per user per tournament
    __table_args__ = (
        UniqueConstraint('user_id', 'tournament_id', name='unique_tournament_join'),
    )

    # Relationships
    tournament = relationship("Tournament", back_populates="joins")
    user = relationship("User", back_populates="joins")
